"""Client portal: everything the client of one project can see and do.

The portal never exposes internal notes, expenses or draft invoices.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field

from .. import billing, intake, lifecycle, projects
from ..models import InvoiceStatus
from ..services import Services, get_services

router = APIRouter(prefix="/portal/{project_id}", tags=["portal"])


class BriefRequest(BaseModel):
    description: str
    links: str = ""
    client_email: Optional[EmailStr] = None


class RevisionRequest(BaseModel):
    details: str


class CancellationRequest(BaseModel):
    reason: str = ""


class RatingRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    review: Optional[str] = None


class CommentRequest(BaseModel):
    comment: str


class PaymentRequest(BaseModel):
    invoice_id: str
    amount: Optional[float] = None  # defaults to the invoice total
    method: str = ""
    reference: str = ""


class NewProjectRequest(BaseModel):
    brief: str


def _client_invoices(services: Services, project_id: str):
    return [
        invoice
        for invoice in billing.list_invoices(services.store, project_id=project_id)
        if invoice.status != InvoiceStatus.DRAFT
    ]


@router.get("", summary="Get the client's view of the project")
def get_project(project_id: str, services: Services = Depends(get_services)):
    project = projects.get_project(services.store, project_id)
    return {
        **project.client_view(),
        "revisions_left": max(project.revision_limit - project.revisions_used, 0),
        "allowed_actions": lifecycle.allowed_actions(project.status, lifecycle.CLIENT_ACTIONS),
    }


@router.post("/brief", summary="Submit the project brief")
def submit_brief(project_id: str, req: BriefRequest, services: Services = Depends(get_services)):
    project = lifecycle.submit_brief(services, project_id, req.description, req.links, req.client_email)
    return project.client_view()


@router.post("/approve", summary="Approve the delivered work")
def approve_work(project_id: str, services: Services = Depends(get_services)):
    return lifecycle.approve_work(services, project_id).client_view()


@router.post("/revision", summary="Request a revision")
def request_revision(project_id: str, req: RevisionRequest, services: Services = Depends(get_services)):
    """
    Ask for changes. Each project includes a limited number of revisions
    (``revision_limit``); once they are used up this responds 409.
    """
    return lifecycle.request_revision(services, project_id, req.details).client_view()


@router.post("/cancellation", summary="Ask the agency to cancel the project")
def request_cancellation(project_id: str, req: CancellationRequest, services: Services = Depends(get_services)):
    return lifecycle.request_cancellation(services, project_id, req.reason).client_view()


@router.post("/rating", summary="Rate a completed project")
def rate(project_id: str, req: RatingRequest, services: Services = Depends(get_services)):
    return lifecycle.rate(services, project_id, req.rating, req.review).client_view()


@router.post("/feedback", status_code=201, summary="Comment on the project thread")
def add_feedback(project_id: str, req: CommentRequest, services: Services = Depends(get_services)):
    project = projects.get_project(services.store, project_id)
    return projects.add_feedback(services, project_id, project.client, req.comment)


@router.get("/notifications", summary="List project notifications, newest first")
def list_notifications(project_id: str, services: Services = Depends(get_services)):
    project = projects.get_project(services.store, project_id)
    return list(reversed(project.notifications))


@router.get("/invoices", summary="List the project's invoices")
def list_invoices(project_id: str, services: Services = Depends(get_services)):
    projects.get_project(services.store, project_id)
    return _client_invoices(services, project_id)


@router.get("/payments", summary="List submitted payments")
def list_payments(project_id: str, services: Services = Depends(get_services)):
    projects.get_project(services.store, project_id)
    return billing.list_payments(services.store, project_id=project_id)


@router.post("/payments", status_code=201, summary="Report a payment")
def submit_payment(project_id: str, req: PaymentRequest, services: Services = Depends(get_services)):
    """
    Tell the agency an invoice has been paid. The payment stays Pending
    until the admin approves it, which marks the invoice Paid.
    """
    projects.get_project(services.store, project_id)
    return billing.submit_payment(
        services,
        project_id,
        req.invoice_id,
        amount=req.amount,
        method=req.method,
        reference=req.reference,
    )


@router.post("/requests", status_code=201, summary="Request a new project")
def request_project(project_id: str, req: NewProjectRequest, services: Services = Depends(get_services)):
    return intake.create_request(services, project_id, req.brief)

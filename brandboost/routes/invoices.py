"""Admin billing: invoices and payment review."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from .. import billing
from ..models import InvoiceStatus, LineItem, PaymentStatus
from ..services import Services, get_services

router = APIRouter(prefix="/admin", tags=["billing"])


class InvoiceCreateRequest(BaseModel):
    project_id: str
    line_items: List[LineItem] = Field(..., min_length=1)
    due_date: date
    tax_rate: float = Field(0.0, ge=0)  # percentage
    issue_date: Optional[date] = None
    client_address: str = ""
    notes: Optional[str] = None
    payment_link: Optional[str] = None
    from_name: Optional[str] = None
    from_address: str = ""


class InvoiceUpdateRequest(BaseModel):
    line_items: Optional[List[LineItem]] = None
    tax_rate: Optional[float] = Field(None, ge=0)
    due_date: Optional[date] = None
    notes: Optional[str] = None
    client_address: Optional[str] = None
    payment_link: Optional[str] = None


class InvoiceStatusRequest(BaseModel):
    status: InvoiceStatus


class PaymentReviewRequest(BaseModel):
    status: PaymentStatus


# ---------------------------------------------------------------------------
# Invoices


@router.get("/invoices", summary="List invoices")
def list_invoices(
    project_id: Optional[str] = None,
    status: Optional[InvoiceStatus] = None,
    services: Services = Depends(get_services),
):
    return billing.list_invoices(services.store, project_id=project_id, status=status)


@router.post("/invoices", status_code=201, summary="Create a draft invoice")
def create_invoice(req: InvoiceCreateRequest, services: Services = Depends(get_services)):
    """
    Create a Draft invoice for a project. Line totals, subtotal, tax
    (``tax_rate`` is a percentage) and the grand total are computed on
    the server and rounded to cents; any totals sent by the client are
    ignored.
    """
    return billing.create_invoice(
        services,
        req.project_id,
        req.line_items,
        req.due_date,
        tax_rate=req.tax_rate,
        issue_date=req.issue_date,
        client_address=req.client_address,
        notes=req.notes,
        payment_link=req.payment_link,
        from_name=req.from_name,
        from_address=req.from_address,
    )


@router.post("/invoices/mark-overdue", summary="Flag sent invoices past their due date")
def mark_overdue(services: Services = Depends(get_services)):
    changed = billing.mark_overdue(services)
    return {"updated": [invoice.id for invoice in changed]}


@router.get("/invoices/{invoice_id}", summary="Get an invoice")
def get_invoice(invoice_id: str, services: Services = Depends(get_services)):
    return billing.get_invoice(services.store, invoice_id)


@router.patch("/invoices/{invoice_id}", summary="Edit an unpaid invoice")
def update_invoice(invoice_id: str, req: InvoiceUpdateRequest, services: Services = Depends(get_services)):
    return billing.update_invoice(
        services,
        invoice_id,
        line_items=req.line_items,
        tax_rate=req.tax_rate,
        due_date=req.due_date,
        notes=req.notes,
        client_address=req.client_address,
        payment_link=req.payment_link,
    )


@router.put("/invoices/{invoice_id}/status", summary="Change an invoice's status")
def set_invoice_status(invoice_id: str, req: InvoiceStatusRequest, services: Services = Depends(get_services)):
    return billing.set_invoice_status(services, invoice_id, req.status)


@router.put("/invoices/{invoice_id}/status/override", summary="Force an invoice's status")
def override_invoice_status(invoice_id: str, req: InvoiceStatusRequest, services: Services = Depends(get_services)):
    """
    Set any status, bypassing the usual transition rules. This is how a
    Paid invoice marked by mistake is moved back to Sent or Overdue.
    """
    return billing.override_invoice_status(services, invoice_id, req.status)


@router.post("/invoices/{invoice_id}/send", summary="Publish a draft invoice to the client portal")
def send_to_client(invoice_id: str, services: Services = Depends(get_services)):
    return billing.send_to_client(services, invoice_id)


@router.post("/invoices/{invoice_id}/email", summary="E-mail an invoice to the client")
def email_invoice(invoice_id: str, services: Services = Depends(get_services)):
    """
    E-mail the invoice to the project's client, marking a Draft invoice
    as Sent first. Responds 400 when the project has no client e-mail
    and 502 when the e-mail provider rejects the message.
    """
    return billing.email_invoice(services, invoice_id)


@router.post("/invoices/{invoice_id}/reminder", summary="Send a payment reminder")
def send_reminder(invoice_id: str, services: Services = Depends(get_services)):
    return billing.send_reminder(services, invoice_id)


@router.delete("/invoices/{invoice_id}", summary="Delete an unpaid invoice")
def delete_invoice(invoice_id: str, services: Services = Depends(get_services)):
    billing.delete_invoice(services, invoice_id)
    return {"status": "deleted"}


# ---------------------------------------------------------------------------
# Payments


@router.get("/payments", summary="List payment notices")
def list_payments(
    status: Optional[PaymentStatus] = None,
    project_id: Optional[str] = None,
    services: Services = Depends(get_services),
):
    return billing.list_payments(services.store, status=status, project_id=project_id)


@router.post("/payments/{payment_id}/review", summary="Approve or reject a payment")
def review_payment(payment_id: str, req: PaymentReviewRequest, services: Services = Depends(get_services)):
    """
    Review a Pending payment. Approving it marks the invoice Paid and the
    project's payment status Paid in the same batched write. A payment
    that has already been reviewed, or whose invoice is already Paid,
    responds 409, even when two reviews arrive at the same time.
    """
    return billing.review_payment(services, payment_id, req.status)

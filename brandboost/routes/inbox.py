"""Admin inbox: contact-form proposals and returning-client requests."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from .. import intake
from ..models import MessageStatus, ProjectType
from ..services import Services, get_services

router = APIRouter(prefix="/admin", tags=["inbox"])


class MessageStatusRequest(BaseModel):
    status: MessageStatus


class ConvertRequest(BaseModel):
    name: str = Field(..., min_length=1)
    team: List[str]
    duration_days: int = Field(30, ge=1)
    revision_limit: int = Field(3, ge=0)


class ApproveRequestRequest(ConvertRequest):
    project_type: ProjectType = ProjectType.OTHER


@router.get("/messages", summary="List proposals from the contact form")
def list_messages(status: Optional[MessageStatus] = None, services: Services = Depends(get_services)):
    return intake.list_messages(services.store, status)


@router.put("/messages/{message_id}/status", summary="Change a proposal's status")
def set_message_status(message_id: str, req: MessageStatusRequest, services: Services = Depends(get_services)):
    return intake.set_message_status(services, message_id, req.status)


@router.post("/messages/{message_id}/convert", status_code=201, summary="Convert a proposal into a project")
def convert_message(message_id: str, req: ConvertRequest, services: Services = Depends(get_services)):
    """
    Create an In Progress project from the proposal's contact details and
    mark the proposal Converted. The client receives a project-created
    e-mail with a link to their portal (best effort).
    """
    return intake.convert_message_to_project(
        services,
        message_id,
        name=req.name,
        team=req.team,
        duration_days=req.duration_days,
        revision_limit=req.revision_limit,
    )


@router.delete("/messages/{message_id}", summary="Delete a proposal")
def delete_message(message_id: str, services: Services = Depends(get_services)):
    intake.delete_message(services, message_id)
    return {"status": "deleted"}


@router.get("/requests", summary="List returning-client project requests")
def list_requests(services: Services = Depends(get_services)):
    return intake.list_requests(services.store)


@router.post("/requests/{request_id}/approve", status_code=201, summary="Start a project from a request")
def approve_request(request_id: str, req: ApproveRequestRequest, services: Services = Depends(get_services)):
    return intake.approve_request(
        services,
        request_id,
        name=req.name,
        team=req.team,
        project_type=req.project_type,
        duration_days=req.duration_days,
        revision_limit=req.revision_limit,
    )


@router.delete("/requests/{request_id}", summary="Dismiss a project request")
def delete_request(request_id: str, services: Services = Depends(get_services)):
    intake.delete_request(services, request_id)
    return {"status": "deleted"}

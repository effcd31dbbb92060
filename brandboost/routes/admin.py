"""Admin dashboard: projects, lifecycle decisions and project work items."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, EmailStr, Field

from .. import lifecycle, projects
from ..models import ProjectStatus, ProjectType
from ..services import Services, get_services
from ..storage import format_size
from ..team import get_member

router = APIRouter(prefix="/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# Request models


class ProjectCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    client: str = Field(..., min_length=1)
    project_type: ProjectType = ProjectType.OTHER
    team: List[str]
    description: Optional[str] = None
    client_email: Optional[EmailStr] = None
    revision_limit: int = Field(3, ge=0)
    duration_days: int = Field(30, ge=1)


class ProjectUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    client_email: Optional[EmailStr] = None
    due_date: Optional[date] = None
    team: Optional[List[str]] = None


class RevisionLimitRequest(BaseModel):
    revision_limit: int = Field(..., ge=0)


class ApproveRevisionRequest(BaseModel):
    extra_days: Optional[int] = None  # defaults to REVISION_EXTRA_DAYS


class BlockRequest(BaseModel):
    reason: str = ""


class StatusOverrideRequest(BaseModel):
    status: ProjectStatus


class TaskCreateRequest(BaseModel):
    text: str = Field(..., min_length=1)


class CommentRequest(BaseModel):
    comment: str
    user: str = "Admin"


class NoteRequest(BaseModel):
    author_id: str
    note: str


class NotificationRequest(BaseModel):
    text: str = Field(..., min_length=1)


class ExpenseRequest(BaseModel):
    description: str
    amount: float


class AssetRegisterRequest(BaseModel):
    """Metadata for a file the dashboard already uploaded to the bucket."""
    name: str
    path: str
    size_bytes: Optional[int] = None
    file_type: str = "file"
    url: Optional[str] = None  # only used when storage is not configured


def _detail(project):
    return {**project.model_dump(mode="json"), "allowed_actions": lifecycle.allowed_actions(project.status)}


# ---------------------------------------------------------------------------
# Projects


@router.get("/projects", summary="List projects")
def list_projects(
    tab: str = "all",
    status: Optional[List[ProjectStatus]] = Query(None),
    services: Services = Depends(get_services),
):
    """
    Return projects newest first. ``tab`` narrows the list the way the
    dashboard tabs do: ``active`` (anything still being worked on or
    waiting on someone), ``completed`` or ``archived`` (canceled).
    Repeat ``status`` to filter further.
    """
    return projects.list_projects(services.store, tab, status)


@router.post("/projects", status_code=201, summary="Create a project")
def create_project(req: ProjectCreateRequest, services: Services = Depends(get_services)):
    project = projects.create_project(
        services,
        name=req.name,
        client=req.client,
        project_type=req.project_type,
        team=req.team,
        description=req.description,
        client_email=req.client_email,
        revision_limit=req.revision_limit,
        duration_days=req.duration_days,
    )
    return _detail(project)


@router.get("/projects/{project_id}", summary="Get a project with the actions it allows")
def get_project(project_id: str, services: Services = Depends(get_services)):
    return _detail(projects.get_project(services.store, project_id))


@router.patch("/projects/{project_id}", summary="Update project details")
def update_project(project_id: str, req: ProjectUpdateRequest, services: Services = Depends(get_services)):
    project = projects.update_details(
        services,
        project_id,
        name=req.name,
        description=req.description,
        client_email=req.client_email,
        due_date=req.due_date,
        team=req.team,
    )
    return _detail(project)


@router.delete("/projects/{project_id}", summary="Delete a project")
def delete_project(project_id: str, services: Services = Depends(get_services)):
    projects.delete_project(services, project_id)
    return {"status": "deleted"}


@router.put("/projects/{project_id}/revision-limit", summary="Change the revision allowance")
def set_revision_limit(project_id: str, req: RevisionLimitRequest, services: Services = Depends(get_services)):
    return _detail(projects.set_revision_limit(services, project_id, req.revision_limit))


@router.get("/projects/{project_id}/activity", summary="Get recent activity for a project")
def get_activity(project_id: str, since: Optional[str] = None, services: Services = Depends(get_services)):
    """
    Return the project's events (status changes, invoices, payments,
    completed tasks). Pass ``since`` as an ISO 8601 timestamp to see
    everything after it; without it only the last 24 hours are returned.
    """
    projects.get_project(services.store, project_id)
    return projects.list_events(services.store, project_id, since)


# ---------------------------------------------------------------------------
# Lifecycle


@router.post("/projects/{project_id}/approve", summary="Approve the brief and start work")
def approve_and_start(project_id: str, services: Services = Depends(get_services)):
    return _detail(lifecycle.approve_and_start(services, project_id))


@router.post("/projects/{project_id}/reask-brief", summary="Ask the client for a more detailed brief")
def reask_brief(project_id: str, services: Services = Depends(get_services)):
    return _detail(lifecycle.reask_brief(services, project_id))


@router.post("/projects/{project_id}/request-feedback", summary="Send work to the client for review")
def request_feedback(project_id: str, services: Services = Depends(get_services)):
    return _detail(lifecycle.request_feedback(services, project_id))


@router.post("/projects/{project_id}/revision/approve", summary="Approve a revision request")
def approve_revision(project_id: str, req: ApproveRevisionRequest, services: Services = Depends(get_services)):
    return _detail(lifecycle.approve_revision(services, project_id, req.extra_days))


@router.post("/projects/{project_id}/revision/deny", summary="Deny a revision request")
def deny_revision(project_id: str, services: Services = Depends(get_services)):
    return _detail(lifecycle.deny_revision(services, project_id))


@router.post("/projects/{project_id}/block", summary="Mark a project as blocked")
def block(project_id: str, req: BlockRequest, services: Services = Depends(get_services)):
    return _detail(lifecycle.block(services, project_id, req.reason, reported_by="Admin"))


@router.post("/projects/{project_id}/unblock", summary="Resume a blocked project")
def unblock(project_id: str, services: Services = Depends(get_services)):
    return _detail(lifecycle.unblock(services, project_id))


@router.post("/projects/{project_id}/cancellation/deny", summary="Deny a cancellation request")
def deny_cancellation(project_id: str, services: Services = Depends(get_services)):
    return _detail(lifecycle.deny_cancellation(services, project_id))


@router.post("/projects/{project_id}/cancel", summary="Cancel a project")
def cancel(project_id: str, services: Services = Depends(get_services)):
    """
    Cancel the project and e-mail the client a confirmation. The e-mail
    is best effort; a delivery failure is logged and the project stays
    canceled.
    """
    return _detail(lifecycle.cancel(services, project_id))


@router.post("/projects/{project_id}/complete", summary="Mark a project as completed")
def complete(project_id: str, services: Services = Depends(get_services)):
    return _detail(lifecycle.complete(services, project_id))


@router.put("/projects/{project_id}/status", summary="Override a project's status")
def override_status(project_id: str, req: StatusOverrideRequest, services: Services = Depends(get_services)):
    return _detail(lifecycle.override_status(services, project_id, req.status))


# ---------------------------------------------------------------------------
# Tasks, comments, notes and expenses


@router.post("/projects/{project_id}/tasks", status_code=201, summary="Add a task")
def add_task(project_id: str, req: TaskCreateRequest, services: Services = Depends(get_services)):
    return projects.add_task(services, project_id, req.text)


@router.post("/projects/{project_id}/tasks/{task_id}/toggle", summary="Toggle a task")
def toggle_task(project_id: str, task_id: str, services: Services = Depends(get_services)):
    return projects.toggle_task(services, project_id, task_id)


@router.delete("/projects/{project_id}/tasks/{task_id}", summary="Delete a task")
def delete_task(project_id: str, task_id: str, services: Services = Depends(get_services)):
    projects.delete_task(services, project_id, task_id)
    return {"status": "deleted"}


@router.post("/projects/{project_id}/feedback", status_code=201, summary="Comment on the project thread")
def add_feedback(project_id: str, req: CommentRequest, services: Services = Depends(get_services)):
    return projects.add_feedback(services, project_id, req.user, req.comment)


@router.post("/projects/{project_id}/notes", status_code=201, summary="Add an internal note")
def add_note(project_id: str, req: NoteRequest, services: Services = Depends(get_services)):
    """Internal notes are visible to the team only, never in the client portal."""
    author = get_member(services.store, req.author_id)
    return projects.add_internal_note(services, project_id, author, req.note)


@router.post("/projects/{project_id}/notifications", status_code=201, summary="Notify the client")
def add_notification(project_id: str, req: NotificationRequest, services: Services = Depends(get_services)):
    return projects.notify(services, project_id, req.text).notifications[-1]


@router.post("/projects/{project_id}/expenses", status_code=201, summary="Record an expense")
def add_expense(project_id: str, req: ExpenseRequest, services: Services = Depends(get_services)):
    return projects.add_expense(services, project_id, req.description, req.amount)


@router.delete("/projects/{project_id}/expenses/{expense_id}", summary="Delete an expense")
def delete_expense(project_id: str, expense_id: str, services: Services = Depends(get_services)):
    projects.delete_expense(services, project_id, expense_id)
    return {"status": "deleted"}


# ---------------------------------------------------------------------------
# Assets


@router.post("/projects/{project_id}/assets", status_code=201, summary="Register an uploaded asset")
def add_asset(project_id: str, req: AssetRegisterRequest, services: Services = Depends(get_services)):
    return projects.register_asset(
        services,
        project_id,
        name=req.name,
        path=req.path,
        size=format_size(req.size_bytes) if req.size_bytes is not None else "",
        file_type=req.file_type,
        url=req.url,
    )


@router.delete("/projects/{project_id}/assets/{asset_id}", summary="Delete an asset")
def delete_asset(project_id: str, asset_id: str, services: Services = Depends(get_services)):
    projects.delete_asset(services, project_id, asset_id)
    return {"status": "deleted"}

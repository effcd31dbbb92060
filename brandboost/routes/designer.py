"""Designer portal: the projects a designer is assigned to."""

from __future__ import annotations

from typing import Optional, Tuple

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from .. import lifecycle, projects
from ..models import Project, TeamMember
from ..reports import designer_stats
from ..services import Services, get_services
from ..storage import format_size
from ..team import get_designer

router = APIRouter(prefix="/designer/{designer_id}", tags=["designer"])


class TimeLogRequest(BaseModel):
    minutes: int = Field(..., gt=0)


class CommentRequest(BaseModel):
    comment: str


class NoteRequest(BaseModel):
    note: str


class BlockRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class AssetRegisterRequest(BaseModel):
    name: str
    path: str
    size_bytes: Optional[int] = None
    file_type: str = "file"


def _assigned(services: Services, designer_id: str, project_id: str) -> Tuple[TeamMember, Project]:
    """Resolve the designer and one of their projects (403 when not on the team)."""
    designer = get_designer(services.store, designer_id)
    project = projects.get_project(services.store, project_id)
    projects.ensure_assigned(project, designer)
    return designer, project


@router.get("", summary="Get the designer's profile and stats")
def get_profile(designer_id: str, services: Services = Depends(get_services)):
    designer = get_designer(services.store, designer_id)
    return {"designer": designer, "stats": designer_stats(services.store, designer)}


@router.get("/projects", summary="List the designer's projects")
def list_projects(designer_id: str, services: Services = Depends(get_services)):
    designer = get_designer(services.store, designer_id)
    return projects.projects_for_designer(services.store, designer)


@router.get("/projects/{project_id}", summary="Get an assigned project")
def get_project(designer_id: str, project_id: str, services: Services = Depends(get_services)):
    designer, project = _assigned(services, designer_id, project_id)
    return {
        **project.model_dump(mode="json"),
        "my_minutes": projects.logged_minutes(project, designer.id),
        "allowed_actions": lifecycle.allowed_actions(project.status, lifecycle.DESIGNER_ACTIONS),
    }


@router.post("/projects/{project_id}/tasks/{task_id}/toggle", summary="Toggle a task")
def toggle_task(designer_id: str, project_id: str, task_id: str, services: Services = Depends(get_services)):
    _assigned(services, designer_id, project_id)
    return projects.toggle_task(services, project_id, task_id)


@router.post("/projects/{project_id}/tasks/{task_id}/time", status_code=201, summary="Log time on a task")
def log_time(
    designer_id: str,
    project_id: str,
    task_id: str,
    req: TimeLogRequest,
    services: Services = Depends(get_services),
):
    designer, _ = _assigned(services, designer_id, project_id)
    return projects.log_time(services, project_id, task_id, designer, req.minutes)


@router.post("/projects/{project_id}/feedback", status_code=201, summary="Comment on the project thread")
def add_feedback(designer_id: str, project_id: str, req: CommentRequest, services: Services = Depends(get_services)):
    designer, _ = _assigned(services, designer_id, project_id)
    return projects.add_feedback(services, project_id, designer.name, req.comment)


@router.post("/projects/{project_id}/notes", status_code=201, summary="Add an internal note")
def add_note(designer_id: str, project_id: str, req: NoteRequest, services: Services = Depends(get_services)):
    designer, _ = _assigned(services, designer_id, project_id)
    return projects.add_internal_note(services, project_id, designer, req.note)


@router.post("/projects/{project_id}/assets", status_code=201, summary="Deliver a file")
def add_asset(
    designer_id: str,
    project_id: str,
    req: AssetRegisterRequest,
    services: Services = Depends(get_services),
):
    _assigned(services, designer_id, project_id)
    return projects.register_asset(
        services,
        project_id,
        name=req.name,
        path=req.path,
        size=format_size(req.size_bytes) if req.size_bytes is not None else "",
        file_type=req.file_type,
    )


@router.post("/projects/{project_id}/request-feedback", summary="Send work to the client for review")
def request_feedback(designer_id: str, project_id: str, services: Services = Depends(get_services)):
    _assigned(services, designer_id, project_id)
    return lifecycle.request_feedback(services, project_id)


@router.post("/projects/{project_id}/block", summary="Report a blocker")
def block(designer_id: str, project_id: str, req: BlockRequest, services: Services = Depends(get_services)):
    designer, _ = _assigned(services, designer_id, project_id)
    return lifecycle.block(services, project_id, req.reason, reported_by=designer.name)

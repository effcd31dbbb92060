"""Admin team management and dashboard reports."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field

from .. import reports, team
from ..models import TeamMemberRole
from ..services import Services, get_services

router = APIRouter(prefix="/admin", tags=["team"])


class MemberCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    role: TeamMemberRole = TeamMemberRole.DESIGNER
    avatar_path: Optional[str] = None  # object key of an uploaded avatar


class MemberUpdateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[TeamMemberRole] = None


@router.get("/team", summary="List team members")
def list_members(role: Optional[TeamMemberRole] = None, services: Services = Depends(get_services)):
    return team.list_members(services.store, role)


@router.post("/team", status_code=201, summary="Add a team member")
def add_member(req: MemberCreateRequest, services: Services = Depends(get_services)):
    return team.add_member(services, req.name, req.email, req.role, req.avatar_path)


@router.patch("/team/{member_id}", summary="Update a team member")
def update_member(member_id: str, req: MemberUpdateRequest, services: Services = Depends(get_services)):
    return team.update_member(services, member_id, name=req.name, email=req.email, role=req.role)


@router.delete("/team/{member_id}", summary="Remove a team member")
def delete_member(member_id: str, services: Services = Depends(get_services)):
    team.delete_member(services, member_id)
    return {"status": "deleted"}


# ---------------------------------------------------------------------------
# Reports


@router.get("/reports/summary", summary="Dashboard totals")
def summary(services: Services = Depends(get_services)):
    return reports.dashboard_summary(services.store)


@router.get("/reports/clients", summary="Per-client roll-up")
def clients(services: Services = Depends(get_services)):
    return reports.client_rollup(services.store)


@router.get("/reports/reminders", summary="Upcoming project deadlines and invoice due dates")
def reminders(window_days: Optional[int] = None, services: Services = Depends(get_services)):
    """
    Return projects still in progress or awaiting feedback and invoices
    still unpaid that fall due within ``window_days`` (default
    REMINDER_WINDOW_DAYS), soonest first. Items already past due are
    included.
    """
    if window_days is None:
        window_days = services.settings.reminder_window_days
    return reports.reminders(services.store, window_days)


@router.get("/reports/reviews", summary="Client ratings and reviews")
def list_reviews(services: Services = Depends(get_services)):
    return reports.reviews(services.store)


@router.get("/reports/designers", summary="Workload and rating per designer")
def designers(services: Services = Depends(get_services)):
    members = team.list_members(services.store, TeamMemberRole.DESIGNER)
    return [reports.designer_stats(services.store, member) for member in members]

"""Project records and the work items embedded in them.

Lifecycle status changes live in ``brandboost.lifecycle``; this module
covers lookups, listing, creation and the day-to-day edits admins and
designers make (tasks, time logs, comments, notes, expenses, assets).
Embedded lists are read, modified and written back whole, so two
concurrent edits of the same list can overwrite each other; the store
offers no stronger guarantee.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from fastapi import HTTPException

from .models import (
    Asset,
    Event,
    Expense,
    Feedback,
    InternalNote,
    Notification,
    Project,
    ProjectPaymentStatus,
    ProjectStatus,
    ProjectType,
    Task,
    TeamMember,
    TimeLog,
    utcnow,
)
from .services import Services
from .store import EVENTS, PROJECTS, DocumentStore

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = frozenset(
    {
        ProjectStatus.IN_PROGRESS,
        ProjectStatus.PENDING_FEEDBACK,
        ProjectStatus.BLOCKED,
        ProjectStatus.AWAITING_BRIEF,
        ProjectStatus.PENDING_APPROVAL,
        ProjectStatus.CANCELLATION_REQUESTED,
        ProjectStatus.REVISION_REQUESTED,
    }
)

TABS = ("all", "active", "completed", "archived")


# ---------------------------------------------------------------------------
# Lookups and persistence


def get_project(store: DocumentStore, project_id: str) -> Project:
    doc = store.get(PROJECTS, project_id)
    if doc is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return Project.from_doc(doc)


def save_fields(store: DocumentStore, project: Project, *fields: str) -> None:
    """Write the named fields of ``project`` back to its document."""
    store.update(PROJECTS, project.id, project.model_dump(mode="json", include=set(fields)))


def log_event(store: DocumentStore, project_id: str, event_type: str, payload: Dict) -> Event:
    """Record an activity event for a project.

    Events feed the project activity view ("what changed since
    yesterday?"). Each event captures a timestamp and an arbitrary JSON
    payload, e.g. ``{"from": "In Progress", "to": "Completed"}`` for a
    ``status_changed`` event.
    """
    event = Event(project_id=project_id, type=event_type, payload=payload)
    event.id = store.add(EVENTS, event.to_doc())
    return event


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp; a trailing ``Z`` and naive values mean UTC."""
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def list_events(store: DocumentStore, project_id: str, since: Optional[str] = None) -> List[Event]:
    """Events for a project created after ``since`` (default: the last 24 hours)."""
    if since:
        try:
            cutoff = parse_timestamp(since)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid since timestamp")
    else:
        cutoff = utcnow() - timedelta(days=1)
    events = []
    for doc in store.list(EVENTS, where=[("project_id", "==", project_id)], order_by="created_at"):
        event = Event.from_doc(doc)
        try:
            created = parse_timestamp(event.created_at)
        except ValueError:
            continue
        if created > cutoff:
            events.append(event)
    return events


def list_projects(
    store: DocumentStore,
    tab: str = "all",
    statuses: Optional[Iterable[ProjectStatus]] = None,
) -> List[Project]:
    if tab not in TABS:
        raise HTTPException(status_code=400, detail=f"Unknown tab: {tab}")
    wanted = set(statuses or [])
    projects = []
    for doc in store.list(PROJECTS, order_by="created_at", descending=True):
        project = Project.from_doc(doc)
        if tab == "active" and project.status not in ACTIVE_STATUSES:
            continue
        if tab == "completed" and project.status != ProjectStatus.COMPLETED:
            continue
        if tab == "archived" and project.status != ProjectStatus.CANCELED:
            continue
        if wanted and project.status not in wanted:
            continue
        projects.append(project)
    return projects


def projects_for_designer(store: DocumentStore, designer: TeamMember) -> List[Project]:
    return [
        Project.from_doc(doc)
        for doc in store.list(PROJECTS, order_by="created_at", descending=True)
        if designer.name in doc.get("team", [])
    ]


def ensure_assigned(project: Project, designer: TeamMember) -> None:
    if designer.name not in project.team:
        raise HTTPException(status_code=403, detail="Designer is not assigned to this project")


# ---------------------------------------------------------------------------
# Creation


def insert_project(services: Services, project: Project) -> Project:
    project.id = services.store.add(PROJECTS, project.to_doc())
    log_event(services.store, project.id, "project_created", {"name": project.name, "status": project.status.value})
    logger.info("Created project %s (%s) for %s", project.id, project.status.value, project.client)
    return project


def create_project(
    services: Services,
    name: str,
    client: str,
    project_type: ProjectType,
    team: List[str],
    description: Optional[str] = None,
    client_email: Optional[str] = None,
    revision_limit: int = 3,
    duration_days: int = 30,
) -> Project:
    """Create a project from the admin dashboard. It waits for the client's brief."""
    if not team:
        raise HTTPException(status_code=400, detail="You must assign at least one designer.")
    project = Project(
        name=name,
        client=client,
        client_email=client_email,
        description=description or "No description provided.",
        status=ProjectStatus.AWAITING_BRIEF,
        payment_status=ProjectPaymentStatus.UNPAID,
        due_date=date.today() + timedelta(days=duration_days),
        team=list(dict.fromkeys(team)),
        project_type=project_type,
        revision_limit=revision_limit,
    )
    return insert_project(services, project)


def update_details(
    services: Services,
    project_id: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
    client_email: Optional[str] = None,
    due_date: Optional[date] = None,
    team: Optional[List[str]] = None,
) -> Project:
    project = get_project(services.store, project_id)
    changed = []
    for field, value in (
        ("name", name),
        ("description", description),
        ("client_email", client_email),
        ("due_date", due_date),
        ("team", team),
    ):
        if value is not None:
            setattr(project, field, value)
            changed.append(field)
    if team is not None and not team:
        raise HTTPException(status_code=400, detail="You must assign at least one designer.")
    if changed:
        project = Project.model_validate(project.model_dump())
        save_fields(services.store, project, *changed)
    return project


def set_revision_limit(services: Services, project_id: str, limit: int) -> Project:
    project = get_project(services.store, project_id)
    if limit < project.revisions_used:
        raise HTTPException(
            status_code=400,
            detail="The new limit cannot be less than the number of revisions already used.",
        )
    project.revision_limit = limit
    save_fields(services.store, project, "revision_limit")
    return project


def delete_project(services: Services, project_id: str) -> None:
    project = get_project(services.store, project_id)
    services.store.delete(PROJECTS, project.id)
    logger.info("Deleted project %s", project.id)


def notify(services: Services, project_id: str, text: str) -> Project:
    project = get_project(services.store, project_id)
    project.notifications.append(Notification(text=text))
    save_fields(services.store, project, "notifications")
    return project


# ---------------------------------------------------------------------------
# Tasks


def _find_task(project: Project, task_id: str) -> Task:
    task = next((t for t in project.tasks if t.id == task_id), None)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def add_task(services: Services, project_id: str, text: str) -> Task:
    project = get_project(services.store, project_id)
    task = Task(text=text.strip())
    project.tasks.append(task)
    save_fields(services.store, project, "tasks")
    return task


def toggle_task(services: Services, project_id: str, task_id: str) -> Task:
    project = get_project(services.store, project_id)
    task = _find_task(project, task_id)
    task.completed = not task.completed
    save_fields(services.store, project, "tasks")
    if task.completed:
        log_event(services.store, project.id, "task_completed", {"task_id": task.id, "text": task.text})
    return task


def delete_task(services: Services, project_id: str, task_id: str) -> None:
    project = get_project(services.store, project_id)
    _find_task(project, task_id)
    project.tasks = [t for t in project.tasks if t.id != task_id]
    save_fields(services.store, project, "tasks")


def log_time(services: Services, project_id: str, task_id: str, designer: TeamMember, minutes: int) -> Task:
    if minutes <= 0:
        raise HTTPException(status_code=400, detail="Minutes must be positive")
    project = get_project(services.store, project_id)
    task = _find_task(project, task_id)
    task.logged_time.append(TimeLog(designer_id=designer.id, designer_name=designer.name, minutes=minutes))
    save_fields(services.store, project, "tasks")
    return task


def logged_minutes(project: Project, designer_id: Optional[str] = None) -> int:
    return sum(
        log.minutes
        for task in project.tasks
        for log in task.logged_time
        if designer_id is None or log.designer_id == designer_id
    )


# ---------------------------------------------------------------------------
# Comments, notes and expenses


def add_feedback(services: Services, project_id: str, user: str, comment: str) -> Feedback:
    if not comment.strip():
        raise HTTPException(status_code=400, detail="Comment cannot be empty")
    project = get_project(services.store, project_id)
    entry = Feedback(user=user, comment=comment.strip())
    project.feedback.append(entry)
    save_fields(services.store, project, "feedback")
    return entry


def add_internal_note(services: Services, project_id: str, author: TeamMember, note: str) -> InternalNote:
    if not note.strip():
        raise HTTPException(status_code=400, detail="Note cannot be empty")
    project = get_project(services.store, project_id)
    entry = InternalNote(author_id=author.id, author_name=author.name, note=note.strip())
    project.internal_notes.append(entry)
    save_fields(services.store, project, "internal_notes")
    return entry


def add_expense(services: Services, project_id: str, description: str, amount: float) -> Expense:
    if not description.strip() or amount <= 0:
        raise HTTPException(status_code=400, detail="An expense needs a description and a positive amount")
    project = get_project(services.store, project_id)
    expense = Expense(description=description.strip(), amount=round(amount, 2))
    project.expenses.append(expense)
    save_fields(services.store, project, "expenses")
    return expense


def delete_expense(services: Services, project_id: str, expense_id: str) -> None:
    project = get_project(services.store, project_id)
    if not any(e.id == expense_id for e in project.expenses):
        raise HTTPException(status_code=404, detail="Expense not found")
    project.expenses = [e for e in project.expenses if e.id != expense_id]
    save_fields(services.store, project, "expenses")


# ---------------------------------------------------------------------------
# Assets


def register_asset(
    services: Services,
    project_id: str,
    name: str,
    path: str,
    size: str = "",
    file_type: str = "file",
    url: Optional[str] = None,
) -> Asset:
    """Attach a file already uploaded to the storage bucket.

    The public URL is resolved from ``path`` through Supabase Storage;
    an explicit ``url`` is only accepted when storage is not configured
    (e.g. an external link).
    """
    project = get_project(services.store, project_id)
    if services.storage.enabled:
        url = services.storage.public_url(path)
    elif not url:
        raise HTTPException(status_code=503, detail="File storage is not configured")
    asset = Asset(name=name, path=path, size=size, file_type=file_type or "file", url=url)
    project.assets.append(asset)
    save_fields(services.store, project, "assets")
    log_event(services.store, project.id, "asset_added", {"asset_id": asset.id, "name": asset.name})
    return asset


def delete_asset(services: Services, project_id: str, asset_id: str) -> None:
    project = get_project(services.store, project_id)
    asset = next((a for a in project.assets if a.id == asset_id), None)
    if asset is None:
        raise HTTPException(status_code=404, detail="Asset not found")
    services.storage.remove(asset.path)
    project.assets = [a for a in project.assets if a.id != asset_id]
    save_fields(services.store, project, "assets")

"""Project lifecycle state machine.

A project moves through its statuses only by named actions. Each action
lists the statuses it may start from and the status it leads to::

    Awaiting Brief --submit_brief--> Pending Approval --approve_and_start--> In Progress
    Pending Approval --reask_brief--> Awaiting Brief
    In Progress --request_feedback--> Pending Feedback --approve_work--> Approved
    In Progress / Pending Feedback / Approved --request_revision--> Revision Requested
    Revision Requested --approve_revision / deny_revision--> In Progress
    In Progress / Pending Feedback --block--> Blocked --unblock--> In Progress
    (any open status) --request_cancellation--> Cancellation Requested
    Cancellation Requested --deny_cancellation--> In Progress
    (any open status) --cancel--> Canceled
    In Progress / Pending Feedback / Approved --complete--> Completed

Completed and Canceled are terminal; only an admin ``override`` moves a
project out of them. Invoking an action from any other status is a 409.
Every status change is recorded as a ``status_changed`` event. There is
no rollback: side effects that run after the write (e-mails) are best
effort and never undo it.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Dict, FrozenSet, List, Optional, Tuple

from fastapi import HTTPException

from .models import (
    Feedback,
    Notification,
    Project,
    ProjectStatus,
    Task,
    utcnow_iso,
)
from .projects import get_project, log_event, save_fields
from .services import Services

logger = logging.getLogger(__name__)

S = ProjectStatus

TERMINAL_STATUSES: FrozenSet[ProjectStatus] = frozenset({S.COMPLETED, S.CANCELED})
OPEN_STATUSES: FrozenSet[ProjectStatus] = frozenset(set(S) - TERMINAL_STATUSES)

# action -> (allowed source statuses, target status)
TRANSITIONS: Dict[str, Tuple[FrozenSet[ProjectStatus], ProjectStatus]] = {
    "submit_brief": (frozenset({S.AWAITING_BRIEF}), S.PENDING_APPROVAL),
    "approve_and_start": (frozenset({S.PENDING_APPROVAL}), S.IN_PROGRESS),
    "reask_brief": (frozenset({S.PENDING_APPROVAL}), S.AWAITING_BRIEF),
    "request_feedback": (frozenset({S.IN_PROGRESS}), S.PENDING_FEEDBACK),
    "approve_work": (frozenset({S.PENDING_FEEDBACK}), S.APPROVED),
    "request_revision": (frozenset({S.IN_PROGRESS, S.PENDING_FEEDBACK, S.APPROVED}), S.REVISION_REQUESTED),
    "approve_revision": (frozenset({S.REVISION_REQUESTED}), S.IN_PROGRESS),
    "deny_revision": (frozenset({S.REVISION_REQUESTED}), S.IN_PROGRESS),
    "block": (frozenset({S.IN_PROGRESS, S.PENDING_FEEDBACK}), S.BLOCKED),
    "unblock": (frozenset({S.BLOCKED}), S.IN_PROGRESS),
    "request_cancellation": (OPEN_STATUSES - {S.CANCELLATION_REQUESTED}, S.CANCELLATION_REQUESTED),
    "deny_cancellation": (frozenset({S.CANCELLATION_REQUESTED}), S.IN_PROGRESS),
    "cancel": (OPEN_STATUSES, S.CANCELED),
    "complete": (frozenset({S.IN_PROGRESS, S.PENDING_FEEDBACK, S.APPROVED}), S.COMPLETED),
}


# Actions each portal exposes; the admin dashboard can invoke all of them
CLIENT_ACTIONS: FrozenSet[str] = frozenset({"submit_brief", "approve_work", "request_revision", "request_cancellation"})
DESIGNER_ACTIONS: FrozenSet[str] = frozenset({"request_feedback", "block"})


def allowed_actions(status: ProjectStatus, scope: Optional[FrozenSet[str]] = None) -> List[str]:
    """Actions valid from ``status``, limited to ``scope`` when given."""
    return sorted(
        action
        for action, (sources, _) in TRANSITIONS.items()
        if status in sources and (scope is None or action in scope)
    )


def target_status(status: ProjectStatus, action: str) -> ProjectStatus:
    """Return the status ``action`` leads to from ``status`` or raise a 409."""
    if action not in TRANSITIONS:
        raise ValueError(f"Unknown lifecycle action: {action}")
    sources, target = TRANSITIONS[action]
    if status not in sources:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot {action.replace('_', ' ')} while the project is '{status.value}'",
        )
    return target


def _apply(
    services: Services,
    project: Project,
    action: str,
    fields: Tuple[str, ...] = (),
    notification: Optional[str] = None,
    target: Optional[ProjectStatus] = None,
) -> Project:
    """Move ``project`` to its next status and persist the changed fields."""
    previous = project.status
    project.status = target or target_status(previous, action)
    changed = {"status", *fields}
    if notification:
        project.notifications.append(Notification(text=notification))
        changed.add("notifications")
    save_fields(services.store, project, *changed)
    log_event(
        services.store,
        project.id,
        "status_changed",
        {"action": action, "from": previous.value, "to": project.status.value},
    )
    logger.info("Project %s: %s -> %s (%s)", project.id, previous.value, project.status.value, action)
    return project


# ---------------------------------------------------------------------------
# Brief and kick-off


def submit_brief(
    services: Services,
    project_id: str,
    description: str,
    links: str = "",
    client_email: Optional[str] = None,
) -> Project:
    project = get_project(services.store, project_id)
    target_status(project.status, "submit_brief")
    if not description.strip():
        raise HTTPException(status_code=400, detail="The brief needs a description")
    project.brief_description = description.strip()
    project.brief_links = links.strip()
    fields = ["brief_description", "brief_links"]
    if client_email:
        project.client_email = client_email
        fields.append("client_email")
    return _apply(services, project, "submit_brief", tuple(fields))


def approve_and_start(services: Services, project_id: str) -> Project:
    """Approve the brief, generate the initial task list and start work."""
    project = get_project(services.store, project_id)
    target_status(project.status, "approve_and_start")
    if not project.brief_description:
        raise HTTPException(status_code=400, detail="The project has no brief to approve")
    project.tasks.extend(Task(text=text) for text in services.planner(project.brief_description))
    return _apply(
        services,
        project,
        "approve_and_start",
        ("tasks",),
        notification="Project approved and started. An initial task list has been generated.",
    )


def reask_brief(services: Services, project_id: str) -> Project:
    project = get_project(services.store, project_id)
    return _apply(
        services,
        project,
        "reask_brief",
        notification=(
            "The designer has requested more details for the project brief. "
            'Please update it in the "Project Brief" tab.'
        ),
    )


# ---------------------------------------------------------------------------
# Review loop


def request_feedback(services: Services, project_id: str) -> Project:
    project = get_project(services.store, project_id)
    return _apply(
        services,
        project,
        "request_feedback",
        notification="New work is ready for your review. Approve it or request a revision in your portal.",
    )


def approve_work(services: Services, project_id: str) -> Project:
    project = get_project(services.store, project_id)
    return _apply(services, project, "approve_work", notification="The client approved the delivered work.")


def request_revision(services: Services, project_id: str, details: str) -> Project:
    project = get_project(services.store, project_id)
    target_status(project.status, "request_revision")
    if not details.strip():
        raise HTTPException(status_code=400, detail="Describe the revision you need")
    if project.revisions_used >= project.revision_limit:
        raise HTTPException(
            status_code=409,
            detail=f"All {project.revision_limit} revisions for this project have been used",
        )
    project.revision_request_details = details.strip()
    project.revision_request_timestamp = utcnow_iso()
    return _apply(
        services, project, "request_revision", ("revision_request_details", "revision_request_timestamp")
    )


def approve_revision(services: Services, project_id: str, extra_days: Optional[int] = None) -> Project:
    """Accept a revision request.

    Counts one revision against the limit, pushes the deadline back by
    ``extra_days`` and turns the client's request into a task.
    """
    project = get_project(services.store, project_id)
    target_status(project.status, "approve_revision")
    if extra_days is None:
        extra_days = services.settings.revision_extra_days
    if extra_days < 0:
        raise HTTPException(status_code=400, detail="Extra days cannot be negative")
    task = Task(text=f"Client Revision: {project.revision_request_details}")
    project.tasks.append(task)
    project.revisions_used += 1
    project.due_date = project.due_date + timedelta(days=extra_days)
    project.revision_request_details = ""
    project.revision_request_timestamp = ""
    return _apply(
        services,
        project,
        "approve_revision",
        ("tasks", "revisions_used", "due_date", "revision_request_details", "revision_request_timestamp"),
        notification=f'Revision Approved. Deadline extended by {extra_days} days. New task added: "{task.text}"',
    )


def deny_revision(services: Services, project_id: str) -> Project:
    project = get_project(services.store, project_id)
    target_status(project.status, "deny_revision")
    project.revision_request_details = ""
    project.revision_request_timestamp = ""
    return _apply(
        services,
        project,
        "deny_revision",
        ("revision_request_details", "revision_request_timestamp"),
        notification='Your revision request was declined. The project is back "In Progress".',
    )


# ---------------------------------------------------------------------------
# Blocking, cancellation and completion


def block(services: Services, project_id: str, reason: str, reported_by: str) -> Project:
    project = get_project(services.store, project_id)
    target_status(project.status, "block")
    fields: Tuple[str, ...] = ()
    if reason.strip():
        project.feedback.append(Feedback(user=reported_by, comment=f"Blocked: {reason.strip()}"))
        fields = ("feedback",)
    return _apply(services, project, "block", fields)


def unblock(services: Services, project_id: str) -> Project:
    project = get_project(services.store, project_id)
    return _apply(services, project, "unblock")


def request_cancellation(services: Services, project_id: str, reason: str = "") -> Project:
    project = get_project(services.store, project_id)
    target_status(project.status, "request_cancellation")
    fields: Tuple[str, ...] = ()
    if reason.strip():
        project.feedback.append(Feedback(user="Client", comment=f"Cancellation requested: {reason.strip()}"))
        fields = ("feedback",)
    return _apply(services, project, "request_cancellation", fields)


def deny_cancellation(services: Services, project_id: str) -> Project:
    project = get_project(services.store, project_id)
    return _apply(
        services,
        project,
        "deny_cancellation",
        notification='Your cancellation request was declined. The project is back "In Progress".',
    )


def cancel(services: Services, project_id: str) -> Project:
    project = get_project(services.store, project_id)
    project = _apply(services, project, "cancel")
    if project.client_email:
        try:
            services.mailer.send_cancellation(project)
        except HTTPException as exc:
            logger.warning("Cancellation e-mail for project %s failed: %s", project.id, exc.detail)
    return project


def complete(services: Services, project_id: str) -> Project:
    project = get_project(services.store, project_id)
    return _apply(
        services,
        project,
        "complete",
        notification="Your project has been completed. Thank you for working with us!",
    )


def override_status(services: Services, project_id: str, status: ProjectStatus) -> Project:
    """Set any status directly; the admin's escape hatch for corrections."""
    project = get_project(services.store, project_id)
    if project.status == status:
        raise HTTPException(status_code=409, detail=f"The project is already '{status.value}'")
    return _apply(services, project, "override", target=status)


def rate(services: Services, project_id: str, rating: int, review: Optional[str] = None) -> Project:
    project = get_project(services.store, project_id)
    if project.status != S.COMPLETED:
        raise HTTPException(status_code=409, detail="Only completed projects can be rated")
    if not 1 <= rating <= 5:
        raise HTTPException(status_code=400, detail="Rating must be between 1 and 5")
    project.rating = rating
    project.review = review.strip() if review else None
    save_fields(services.store, project, "rating", "review")
    log_event(services.store, project.id, "project_rated", {"rating": rating})
    return project

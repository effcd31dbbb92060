"""New business: contact-form proposals and returning-client requests."""

from __future__ import annotations

import logging
import uuid
from datetime import date, timedelta
from typing import List, Optional

from fastapi import HTTPException

from .models import (
    ContactMessage,
    MessageStatus,
    Notification,
    Project,
    ProjectPaymentStatus,
    ProjectRequest,
    ProjectStatus,
    ProjectType,
    Task,
)
from .projects import get_project, insert_project
from .services import Services
from .store import MESSAGES, PROJECT_REQUESTS, DocumentStore

logger = logging.getLogger(__name__)


def new_proposal_id() -> str:
    return f"BB-{uuid.uuid4().hex[:8].upper()}"


def _project_type_for(service: Optional[str]) -> ProjectType:
    try:
        return ProjectType(service)
    except ValueError:
        return ProjectType.OTHER


def _send_project_created(services: Services, project: Project) -> bool:
    if not project.client_email:
        return False
    try:
        return services.mailer.send_project_created(project)
    except HTTPException as exc:
        logger.warning("Project-created e-mail for %s failed: %s", project.id, exc.detail)
        return False


# ---------------------------------------------------------------------------
# Contact form


def save_contact_message(
    services: Services,
    name: str,
    email: str,
    description: str,
    company: Optional[str] = None,
    service: Optional[str] = None,
    budget: Optional[str] = None,
) -> ContactMessage:
    message = ContactMessage(
        proposal_id=new_proposal_id(),
        name=name.strip(),
        email=email,
        company=company,
        service=service,
        budget=budget,
        description=description.strip(),
    )
    message.id = services.store.add(MESSAGES, message.to_doc())
    logger.info("Saved proposal %s from %s", message.proposal_id, message.email)
    try:
        services.mailer.send_proposal_received(message)
    except HTTPException as exc:
        logger.warning("Proposal confirmation for %s failed: %s", message.proposal_id, exc.detail)
    return message


def get_message(store: DocumentStore, message_id: str) -> ContactMessage:
    doc = store.get(MESSAGES, message_id)
    if doc is None:
        raise HTTPException(status_code=404, detail="Message not found")
    return ContactMessage.from_doc(doc)


def list_messages(store: DocumentStore, status: Optional[MessageStatus] = None) -> List[ContactMessage]:
    where = [("status", "==", status.value)] if status else []
    return [ContactMessage.from_doc(doc) for doc in store.list(MESSAGES, where=where, order_by="created_at", descending=True)]


def set_message_status(services: Services, message_id: str, status: MessageStatus) -> ContactMessage:
    message = get_message(services.store, message_id)
    message.status = status
    services.store.update(MESSAGES, message.id, {"status": status.value})
    return message


def delete_message(services: Services, message_id: str) -> None:
    message = get_message(services.store, message_id)
    services.store.delete(MESSAGES, message.id)


def convert_message_to_project(
    services: Services,
    message_id: str,
    name: str,
    team: List[str],
    duration_days: int = 30,
    revision_limit: int = 3,
) -> Project:
    """Turn an accepted proposal into a running project."""
    message = get_message(services.store, message_id)
    if message.status == MessageStatus.CONVERTED:
        raise HTTPException(status_code=409, detail="This proposal has already been converted to a project")
    if not team:
        raise HTTPException(status_code=400, detail="You must assign at least one designer.")
    project = Project(
        name=name,
        client=message.company or message.name,
        client_email=message.email,
        description=message.description or "No description provided.",
        brief_description=message.description,
        status=ProjectStatus.IN_PROGRESS,
        payment_status=ProjectPaymentStatus.UNPAID,
        due_date=date.today() + timedelta(days=duration_days),
        team=list(dict.fromkeys(team)),
        project_type=_project_type_for(message.service),
        revision_limit=revision_limit,
    )
    project = insert_project(services, project)
    services.store.update(MESSAGES, message.id, {"status": MessageStatus.CONVERTED.value})
    _send_project_created(services, project)
    return project


# ---------------------------------------------------------------------------
# Returning-client requests


def get_request(store: DocumentStore, request_id: str) -> ProjectRequest:
    doc = store.get(PROJECT_REQUESTS, request_id)
    if doc is None:
        raise HTTPException(status_code=404, detail="Project request not found")
    return ProjectRequest.from_doc(doc)


def list_requests(store: DocumentStore) -> List[ProjectRequest]:
    return [ProjectRequest.from_doc(doc) for doc in store.list(PROJECT_REQUESTS, order_by="requested_at", descending=True)]


def create_request(services: Services, source_project_id: str, brief: str) -> ProjectRequest:
    """A client asks for a new project from the portal of an existing one."""
    if not brief.strip():
        raise HTTPException(status_code=400, detail="Describe the project you need")
    source = get_project(services.store, source_project_id)
    request = ProjectRequest(
        client_name=source.client,
        client_email=source.client_email,
        source_project_id=source.id,
        brief=brief.strip(),
    )
    request.id = services.store.add(PROJECT_REQUESTS, request.to_doc())
    logger.info("Project request %s from %s", request.id, request.client_name)
    return request


def approve_request(
    services: Services,
    request_id: str,
    name: str,
    team: List[str],
    project_type: ProjectType = ProjectType.OTHER,
    duration_days: int = 30,
    revision_limit: int = 3,
) -> Project:
    request = get_request(services.store, request_id)
    if not team:
        raise HTTPException(status_code=400, detail="You must assign at least one designer.")
    project = Project(
        name=name,
        client=request.client_name,
        client_email=request.client_email,
        description=request.brief,
        brief_description=request.brief,
        status=ProjectStatus.IN_PROGRESS,
        payment_status=ProjectPaymentStatus.UNPAID,
        due_date=date.today() + timedelta(days=duration_days),
        team=list(dict.fromkeys(team)),
        project_type=project_type,
        revision_limit=revision_limit,
        tasks=[Task(text=text) for text in services.planner(request.brief)],
        notifications=[Notification(text="Project created from returning client request.")],
    )
    project = insert_project(services, project)
    services.store.delete(PROJECT_REQUESTS, request.id)
    _send_project_created(services, project)
    return project


def delete_request(services: Services, request_id: str) -> None:
    request = get_request(services.store, request_id)
    services.store.delete(PROJECT_REQUESTS, request.id)

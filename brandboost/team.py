"""Agency team members."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import HTTPException

from .models import TeamMember, TeamMemberRole
from .services import Services
from .store import TEAM_MEMBERS, DocumentStore

logger = logging.getLogger(__name__)


def get_member(store: DocumentStore, member_id: str) -> TeamMember:
    doc = store.get(TEAM_MEMBERS, member_id)
    if doc is None:
        raise HTTPException(status_code=404, detail="Team member not found")
    return TeamMember.from_doc(doc)


def list_members(store: DocumentStore, role: Optional[TeamMemberRole] = None) -> List[TeamMember]:
    where = [("role", "==", role.value)] if role else []
    members = [TeamMember.from_doc(doc) for doc in store.list(TEAM_MEMBERS, where=where)]
    return sorted(members, key=lambda m: m.name.lower())


def add_member(
    services: Services,
    name: str,
    email: str,
    role: TeamMemberRole = TeamMemberRole.DESIGNER,
    avatar_path: Optional[str] = None,
) -> TeamMember:
    if not name.strip():
        raise HTTPException(status_code=400, detail="Name is required")
    member = TeamMember(name=name.strip(), email=email, role=role, avatar_path=avatar_path)
    if avatar_path and services.storage.enabled:
        member.avatar_url = services.storage.public_url(avatar_path)
    member.id = services.store.add(TEAM_MEMBERS, member.to_doc())
    logger.info("Added %s %s", member.role.value.lower(), member.name)
    return member


def update_member(
    services: Services,
    member_id: str,
    name: Optional[str] = None,
    email: Optional[str] = None,
    role: Optional[TeamMemberRole] = None,
) -> TeamMember:
    member = get_member(services.store, member_id)
    if name is not None:
        if not name.strip():
            raise HTTPException(status_code=400, detail="Name is required")
        member.name = name.strip()
    if email is not None:
        member.email = email
    if role is not None:
        member.role = role
    services.store.set(TEAM_MEMBERS, member.id, member.to_doc())
    return member


def delete_member(services: Services, member_id: str) -> None:
    member = get_member(services.store, member_id)
    if member.avatar_path:
        services.storage.remove(member.avatar_path)
    services.store.delete(TEAM_MEMBERS, member.id)
    logger.info("Removed team member %s", member.name)


def get_designer(store: DocumentStore, designer_id: str) -> TeamMember:
    member = get_member(store, designer_id)
    if member.role != TeamMemberRole.DESIGNER:
        raise HTTPException(status_code=403, detail="Team member is not a designer")
    return member

"""Shared service dependencies handed to every request handler."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from .config import Settings
from .mailer import Mailer
from .planner import TaskPlanner
from .storage import AssetStorage
from .store import DocumentStore


@dataclass
class Services:
    settings: Settings
    store: DocumentStore
    mailer: Mailer
    storage: AssetStorage
    planner: TaskPlanner


def get_services(request: Request) -> Services:
    return request.app.state.services

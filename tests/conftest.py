"""Shared fixtures.

Every test gets a fresh application wired to an in-memory store, a mailer
that records outgoing messages instead of calling Resend, and a storage
stub standing in for the Supabase bucket.
"""

from datetime import date, timedelta

import pytest
import requests
from fastapi.testclient import TestClient

from brandboost import lifecycle, projects, team
from brandboost.billing import create_invoice
from brandboost.config import Settings
from brandboost.mailer import Mailer
from brandboost.main import create_app
from brandboost.models import LineItem, ProjectType, TeamMemberRole
from brandboost.storage import AssetStorage
from brandboost.store import MemoryStore


class RecordingMailer(Mailer):
    """Captures Resend payloads. Set ``status_code`` to simulate provider errors."""

    def __init__(self, settings):
        super().__init__(settings)
        self.sent = []
        self.status_code = 200

    def _post(self, payload):
        self.sent.append(payload)
        response = requests.Response()
        response.status_code = self.status_code
        response._content = b'{"id": "email_123"}'
        return response

    def subjects(self):
        return [payload["subject"] for payload in self.sent]


class FakeStorage(AssetStorage):
    def __init__(self):
        super().__init__(client=None, bucket="data-storage")
        self.removed = []

    @property
    def enabled(self):
        return True

    def public_url(self, path):
        return f"https://files.example.com/{self.bucket}/{path}"

    def remove(self, path):
        self.removed.append(path)
        return True


@pytest.fixture
def settings():
    return Settings(
        resend_api_key="re_test_key",
        public_base_url="https://studio.example.com",
    )


@pytest.fixture
def mailer(settings):
    return RecordingMailer(settings)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def app(settings, mailer, storage):
    return create_app(settings=settings, store=MemoryStore(), mailer=mailer, storage=storage)


@pytest.fixture
def services(app):
    return app.state.services


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def designer(services):
    return team.add_member(services, "Dana Designer", "dana@example.com", TeamMemberRole.DESIGNER)


@pytest.fixture
def new_project(services, designer):
    """A freshly created project waiting for its brief."""
    return projects.create_project(
        services,
        name="Acme Rebrand",
        client="Acme Corp",
        project_type=ProjectType.BRANDING,
        team=[designer.name],
        client_email="owner@acme.com",
    )


@pytest.fixture
def started_project(services, new_project):
    """A project whose brief was submitted and approved (In Progress)."""
    lifecycle.submit_brief(services, new_project.id, "A bold new identity for Acme.")
    return lifecycle.approve_and_start(services, new_project.id)


@pytest.fixture
def invoice(services, started_project):
    """A draft invoice for ``started_project`` totalling 275.00."""
    return create_invoice(
        services,
        started_project.id,
        [
            LineItem(description="Logo design", quantity=2, price=100),
            LineItem(description="Brand guide", quantity=1, price=50),
        ],
        due_date=date.today() + timedelta(days=30),
        tax_rate=10,
    )

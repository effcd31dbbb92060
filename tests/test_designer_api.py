"""Endpoint tests for the designer portal."""

import pytest

from brandboost import team
from brandboost.models import TeamMemberRole


@pytest.fixture
def base(designer):
    return f"/designer/{designer.id}"


@pytest.fixture
def outsider(services):
    return team.add_member(services, "Olly Outsider", "olly@example.com", TeamMemberRole.DESIGNER)


class TestProfile:
    def test_profile_and_projects(self, client, base, started_project):
        profile = client.get(base).json()
        assert profile["designer"]["name"] == "Dana Designer"
        assert profile["stats"]["assigned"] == 1
        projects = client.get(f"{base}/projects").json()
        assert [p["id"] for p in projects] == [started_project.id]

    def test_unknown_designer(self, client):
        assert client.get("/designer/missing/projects").status_code == 404

    def test_admin_is_not_a_designer(self, client, services):
        admin = team.add_member(services, "Ada Admin", "ada@example.com", TeamMemberRole.ADMIN)
        assert client.get(f"/designer/{admin.id}").status_code == 403


class TestAssignedWork:
    def test_project_view(self, client, base, started_project):
        body = client.get(f"{base}/projects/{started_project.id}").json()
        assert body["my_minutes"] == 0
        assert body["allowed_actions"] == ["block", "request_feedback"]

    def test_unassigned_project_forbidden(self, client, outsider, started_project):
        resp = client.get(f"/designer/{outsider.id}/projects/{started_project.id}")
        assert resp.status_code == 403
        resp = client.post(f"/designer/{outsider.id}/projects/{started_project.id}/request-feedback")
        assert resp.status_code == 403

    def test_log_time(self, client, base, started_project):
        task_id = started_project.tasks[0].id
        resp = client.post(f"{base}/projects/{started_project.id}/tasks/{task_id}/time", json={"minutes": 45})
        assert resp.status_code == 201
        assert resp.json()["logged_time"][0]["minutes"] == 45
        body = client.get(f"{base}/projects/{started_project.id}").json()
        assert body["my_minutes"] == 45

    def test_log_time_must_be_positive(self, client, base, started_project):
        task_id = started_project.tasks[0].id
        resp = client.post(f"{base}/projects/{started_project.id}/tasks/{task_id}/time", json={"minutes": 0})
        assert resp.status_code == 422

    def test_toggle_task(self, client, base, started_project):
        task_id = started_project.tasks[0].id
        resp = client.post(f"{base}/projects/{started_project.id}/tasks/{task_id}/toggle")
        assert resp.json()["completed"] is True

    def test_feedback_and_notes(self, client, base, started_project):
        resp = client.post(f"{base}/projects/{started_project.id}/feedback", json={"comment": "First draft up"})
        assert resp.json()["user"] == "Dana Designer"
        resp = client.post(f"{base}/projects/{started_project.id}/notes", json={"note": "Needs more contrast"})
        assert resp.json()["author_name"] == "Dana Designer"

    def test_deliver_asset(self, client, base, started_project):
        resp = client.post(
            f"{base}/projects/{started_project.id}/assets",
            json={"name": "draft.pdf", "path": "projects/draft.pdf", "file_type": "pdf"},
        )
        assert resp.status_code == 201
        assert resp.json()["url"].endswith("/projects/draft.pdf")

    def test_request_feedback_and_block(self, client, base, started_project):
        resp = client.post(f"{base}/projects/{started_project.id}/request-feedback")
        assert resp.json()["status"] == "Pending Feedback"
        resp = client.post(f"{base}/projects/{started_project.id}/block", json={"reason": "Waiting on copy"})
        assert resp.json()["status"] == "Blocked"
        assert resp.json()["feedback"][-1]["user"] == "Dana Designer"
        assert client.post(f"{base}/projects/{started_project.id}/request-feedback").status_code == 409

"""Endpoint tests for the admin dashboard routers."""

from datetime import date, timedelta

import pytest

from brandboost.store import PROJECTS


@pytest.fixture
def designer_id(client):
    resp = client.post("/admin/team", json={"name": "Dana Designer", "email": "dana@example.com"})
    return resp.json()["id"]


@pytest.fixture
def project_id(client, designer_id):
    resp = client.post(
        "/admin/projects",
        json={
            "name": "Acme Rebrand",
            "client": "Acme Corp",
            "project_type": "Branding",
            "team": ["Dana Designer"],
            "client_email": "owner@acme.com",
        },
    )
    return resp.json()["id"]


@pytest.fixture
def running_project_id(client, project_id):
    client.post(f"/portal/{project_id}/brief", json={"description": "Bold identity"})
    client.post(f"/admin/projects/{project_id}/approve")
    return project_id


class TestProjects:
    """/admin/projects"""

    def test_create(self, client, designer_id):
        resp = client.post(
            "/admin/projects",
            json={"name": "Web", "client": "Acme", "team": ["Dana Designer"], "duration_days": 10},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "Awaiting Brief"
        assert body["due_date"] == (date.today() + timedelta(days=10)).isoformat()
        assert body["allowed_actions"] == ["cancel", "request_cancellation", "submit_brief"]

    def test_create_without_team(self, client):
        resp = client.post("/admin/projects", json={"name": "Web", "client": "Acme", "team": []})
        assert resp.status_code == 400

    def test_create_invalid_email(self, client):
        resp = client.post(
            "/admin/projects",
            json={"name": "Web", "client": "Acme", "team": ["Dana"], "client_email": "not-an-email"},
        )
        assert resp.status_code == 422

    def test_list_tabs(self, client, project_id, running_project_id):
        other = client.post("/admin/projects", json={"name": "B", "client": "B", "team": ["Dana Designer"]}).json()
        client.post(f"/admin/projects/{other['id']}/cancel")

        active = client.get("/admin/projects", params={"tab": "active"}).json()
        archived = client.get("/admin/projects", params={"tab": "archived"}).json()
        assert [p["id"] for p in active] == [project_id]
        assert [p["id"] for p in archived] == [other["id"]]
        assert client.get("/admin/projects", params={"tab": "bogus"}).status_code == 400

    def test_filter_by_status(self, client, running_project_id):
        resp = client.get("/admin/projects", params=[("status", "In Progress"), ("status", "Blocked")])
        assert [p["id"] for p in resp.json()] == [running_project_id]

    def test_get_unknown(self, client):
        assert client.get("/admin/projects/missing").status_code == 404

    def test_update_and_delete(self, client, project_id):
        resp = client.patch(f"/admin/projects/{project_id}", json={"name": "Acme 2.0"})
        assert resp.json()["name"] == "Acme 2.0"
        assert client.delete(f"/admin/projects/{project_id}").json() == {"status": "deleted"}
        assert client.get(f"/admin/projects/{project_id}").status_code == 404

    def test_revision_limit(self, client, project_id):
        resp = client.put(f"/admin/projects/{project_id}/revision-limit", json={"revision_limit": 5})
        assert resp.json()["revision_limit"] == 5


class TestLifecycleEndpoints:
    def test_approve_starts_work(self, client, running_project_id):
        body = client.get(f"/admin/projects/{running_project_id}").json()
        assert body["status"] == "In Progress"
        assert len(body["tasks"]) == 4

    def test_wrong_status_conflicts(self, client, project_id):
        resp = client.post(f"/admin/projects/{project_id}/complete")
        assert resp.status_code == 409
        assert "Awaiting Brief" in resp.json()["detail"]

    def test_revision_flow(self, client, running_project_id):
        client.post(f"/portal/{running_project_id}/revision", json={"details": "Bigger logo"})
        resp = client.post(f"/admin/projects/{running_project_id}/revision/approve", json={"extra_days": 3})
        assert resp.status_code == 200
        assert resp.json()["revisions_used"] == 1

    def test_block_unblock(self, client, running_project_id):
        resp = client.post(f"/admin/projects/{running_project_id}/block", json={"reason": "No fonts"})
        assert resp.json()["status"] == "Blocked"
        resp = client.post(f"/admin/projects/{running_project_id}/unblock")
        assert resp.json()["status"] == "In Progress"

    def test_cancel_sends_email(self, client, mailer, running_project_id):
        resp = client.post(f"/admin/projects/{running_project_id}/cancel")
        assert resp.json()["status"] == "Canceled"
        assert "Cancellation" in mailer.subjects()[-1]

    def test_override(self, client, running_project_id):
        client.post(f"/admin/projects/{running_project_id}/complete")
        resp = client.put(f"/admin/projects/{running_project_id}/status", json={"status": "In Progress"})
        assert resp.json()["status"] == "In Progress"
        bad = client.put(f"/admin/projects/{running_project_id}/status", json={"status": "Done"})
        assert bad.status_code == 422

    def test_activity_feed(self, client, running_project_id):
        events = client.get(f"/admin/projects/{running_project_id}/activity").json()
        assert "status_changed" in [e["type"] for e in events]


class TestWorkItems:
    def test_tasks(self, client, running_project_id):
        task = client.post(f"/admin/projects/{running_project_id}/tasks", json={"text": "Export SVGs"}).json()
        toggled = client.post(f"/admin/projects/{running_project_id}/tasks/{task['id']}/toggle").json()
        assert toggled["completed"] is True
        client.delete(f"/admin/projects/{running_project_id}/tasks/{task['id']}")
        body = client.get(f"/admin/projects/{running_project_id}").json()
        assert "Export SVGs" not in [t["text"] for t in body["tasks"]]
        assert client.post(f"/admin/projects/{running_project_id}/tasks/nope/toggle").status_code == 404

    def test_internal_notes_hidden_from_client(self, client, designer_id, running_project_id):
        resp = client.post(
            f"/admin/projects/{running_project_id}/notes",
            json={"author_id": designer_id, "note": "Client prefers blue"},
        )
        assert resp.status_code == 201
        client.post(f"/admin/projects/{running_project_id}/expenses", json={"description": "Fonts", "amount": 49})
        portal = client.get(f"/portal/{running_project_id}").json()
        assert "internal_notes" not in portal
        assert "expenses" not in portal
        admin = client.get(f"/admin/projects/{running_project_id}").json()
        assert admin["internal_notes"][0]["note"] == "Client prefers blue"
        assert admin["expenses"][0]["amount"] == 49

    def test_invalid_expense(self, client, running_project_id):
        resp = client.post(f"/admin/projects/{running_project_id}/expenses", json={"description": "X", "amount": 0})
        assert resp.status_code == 400

    def test_assets(self, client, storage, running_project_id):
        resp = client.post(
            f"/admin/projects/{running_project_id}/assets",
            json={"name": "logo.png", "path": "projects/logo.png", "size_bytes": 1258291, "file_type": "image"},
        )
        asset = resp.json()
        assert asset["url"] == "https://files.example.com/data-storage/projects/logo.png"
        assert asset["size"] == "1.20 MB"
        client.delete(f"/admin/projects/{running_project_id}/assets/{asset['id']}")
        assert storage.removed == ["projects/logo.png"]

    def test_notification(self, client, running_project_id):
        resp = client.post(f"/admin/projects/{running_project_id}/notifications", json={"text": "Hello!"})
        assert resp.json()["text"] == "Hello!"


class TestInvoicesAndPayments:
    def _create_invoice(self, client, project_id):
        resp = client.post(
            "/admin/invoices",
            json={
                "project_id": project_id,
                "line_items": [{"description": "Logo", "quantity": 1, "price": 1200}],
                "tax_rate": 5,
                "due_date": (date.today() + timedelta(days=14)).isoformat(),
            },
        )
        assert resp.status_code == 201
        return resp.json()

    def test_full_payment_flow(self, client, services, running_project_id):
        invoice = self._create_invoice(client, running_project_id)
        assert invoice["total"] == 1260.0

        sent = client.post(f"/admin/invoices/{invoice['id']}/send").json()
        assert sent["status"] == "Sent"

        payment = client.post(
            f"/portal/{running_project_id}/payments",
            json={"invoice_id": invoice["id"], "method": "Wire"},
        ).json()
        assert payment["status"] == "Pending"

        pending = client.get("/admin/payments", params={"status": "Pending"}).json()
        assert [p["id"] for p in pending] == [payment["id"]]

        reviewed = client.post(f"/admin/payments/{payment['id']}/review", json={"status": "Approved"})
        assert reviewed.json()["status"] == "Approved"
        assert client.get(f"/admin/invoices/{invoice['id']}").json()["status"] == "Paid"
        assert services.store.get(PROJECTS, running_project_id)["payment_status"] == "Paid"

        again = client.post(f"/admin/payments/{payment['id']}/review", json={"status": "Approved"})
        assert again.status_code == 409
        assert client.delete(f"/admin/invoices/{invoice['id']}").status_code == 409

    def test_second_notice_for_same_invoice(self, client, running_project_id):
        invoice = self._create_invoice(client, running_project_id)
        client.post(f"/admin/invoices/{invoice['id']}/send")
        portal = f"/portal/{running_project_id}/payments"
        assert client.post(portal, json={"invoice_id": invoice["id"]}).status_code == 201
        assert client.post(portal, json={"invoice_id": invoice["id"]}).status_code == 409

    def test_override_paid_invoice(self, client, running_project_id):
        invoice = self._create_invoice(client, running_project_id)
        client.put(f"/admin/invoices/{invoice['id']}/status", json={"status": "Paid"})
        assert client.put(f"/admin/invoices/{invoice['id']}/status", json={"status": "Sent"}).status_code == 409
        resp = client.put(f"/admin/invoices/{invoice['id']}/status/override", json={"status": "Sent"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "Sent"
        again = client.put(f"/admin/invoices/{invoice['id']}/status/override", json={"status": "Sent"})
        assert again.status_code == 409

    def test_empty_line_items(self, client, running_project_id):
        resp = client.post(
            "/admin/invoices",
            json={"project_id": running_project_id, "line_items": [], "due_date": date.today().isoformat()},
        )
        assert resp.status_code == 422

    def test_email_invoice(self, client, mailer, running_project_id):
        invoice = self._create_invoice(client, running_project_id)
        resp = client.post(f"/admin/invoices/{invoice['id']}/email")
        assert resp.status_code == 200
        assert resp.json()["invoice"]["status"] == "Sent"
        assert mailer.sent[-1]["to"] == ["owner@acme.com"]

    def test_email_provider_failure(self, client, mailer, running_project_id):
        invoice = self._create_invoice(client, running_project_id)
        mailer.status_code = 500
        assert client.post(f"/admin/invoices/{invoice['id']}/email").status_code == 502

    def test_status_and_overdue_sweep(self, client, running_project_id):
        invoice = self._create_invoice(client, running_project_id)
        bad = client.put(f"/admin/invoices/{invoice['id']}/status", json={"status": "Overdue"})
        assert bad.status_code == 409
        client.put(f"/admin/invoices/{invoice['id']}/status", json={"status": "Sent"})
        assert client.post("/admin/invoices/mark-overdue").json() == {"updated": []}

    def test_update_invoice(self, client, running_project_id):
        invoice = self._create_invoice(client, running_project_id)
        resp = client.patch(
            f"/admin/invoices/{invoice['id']}",
            json={"line_items": [{"description": "Logo", "quantity": 2, "price": 1200}]},
        )
        assert resp.json()["subtotal"] == 2400.0
        assert resp.json()["total"] == 2520.0

    def test_list_by_project(self, client, running_project_id):
        invoice = self._create_invoice(client, running_project_id)
        listed = client.get("/admin/invoices", params={"project_id": running_project_id}).json()
        assert [i["id"] for i in listed] == [invoice["id"]]


class TestInbox:
    def test_convert_proposal(self, client, designer_id):
        proposal = client.post(
            "/contact",
            json={"name": "Ann", "email": "ann@bakery.com", "description": "A logo", "service": "Branding"},
        ).json()
        messages = client.get("/admin/messages").json()
        assert messages[0]["proposal_id"] == proposal["proposal_id"]

        resp = client.post(
            f"/admin/messages/{messages[0]['id']}/convert",
            json={"name": "Bakery Logo", "team": ["Dana Designer"]},
        )
        assert resp.status_code == 201
        assert resp.json()["status"] == "In Progress"
        assert client.get("/admin/messages", params={"status": "Converted"}).json()[0]["id"] == messages[0]["id"]

    def test_message_status(self, client):
        client.post("/contact", json={"name": "Ann", "email": "ann@bakery.com", "description": "A logo"})
        message_id = client.get("/admin/messages").json()[0]["id"]
        resp = client.put(f"/admin/messages/{message_id}/status", json={"status": "Archived"})
        assert resp.json()["status"] == "Archived"
        assert client.put("/admin/messages/missing/status", json={"status": "Archived"}).status_code == 404

    def test_approve_request(self, client, running_project_id):
        client.post(f"/portal/{running_project_id}/requests", json={"brief": "A website too"})
        request_id = client.get("/admin/requests").json()[0]["id"]
        resp = client.post(
            f"/admin/requests/{request_id}/approve",
            json={"name": "Acme Website", "team": ["Dana Designer"], "project_type": "Web Design"},
        )
        assert resp.status_code == 201
        assert resp.json()["project_type"] == "Web Design"
        assert client.get("/admin/requests").json() == []


class TestTeamAndReports:
    def test_team_crud(self, client, designer_id):
        client.post("/admin/team", json={"name": "Ada Admin", "email": "ada@example.com", "role": "Admin"})
        designers = client.get("/admin/team", params={"role": "Designer"}).json()
        assert [m["id"] for m in designers] == [designer_id]
        resp = client.patch(f"/admin/team/{designer_id}", json={"name": "Dana D."})
        assert resp.json()["name"] == "Dana D."
        client.delete(f"/admin/team/{designer_id}")
        assert client.get("/admin/team", params={"role": "Designer"}).json() == []

    def test_reports(self, client, running_project_id):
        summary = client.get("/admin/reports/summary").json()
        assert summary["by_status"]["In Progress"] == 1
        assert client.get("/admin/reports/clients").json()[0]["client"] == "Acme Corp"
        assert client.get("/admin/reports/reminders").json() == []
        assert [r["kind"] for r in client.get("/admin/reports/reminders", params={"window_days": 30}).json()] == [
            "project"
        ]
        designers = client.get("/admin/reports/designers").json()
        assert designers[0]["assigned"] == 1
        assert client.get("/admin/reports/reviews").json() == []

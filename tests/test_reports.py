"""Tests for dashboard aggregates."""

from datetime import date, timedelta

from brandboost import billing, lifecycle, projects, reports
from brandboost.models import InvoiceStatus, LineItem, PaymentStatus, ProjectType


def _paid_invoice(services, project):
    invoice = billing.create_invoice(
        services,
        project.id,
        [LineItem(description="Work", quantity=1, price=1000)],
        due_date=date.today() + timedelta(days=5),
    )
    billing.set_invoice_status(services, invoice.id, InvoiceStatus.SENT)
    payment = billing.submit_payment(services, project.id, invoice.id)
    billing.review_payment(services, payment.id, PaymentStatus.APPROVED)
    return invoice


class TestClientRollup:
    def test_counts_revenue_and_rating(self, services, designer, started_project):
        _paid_invoice(services, started_project)
        lifecycle.complete(services, started_project.id)
        lifecycle.rate(services, started_project.id, 4)
        projects.create_project(services, "Acme Web", "Acme Corp", ProjectType.WEB_DESIGN, [designer.name])
        projects.create_project(services, "Solo", "Other Co", ProjectType.OTHER, [designer.name])

        rows = reports.client_rollup(services.store)
        assert [r["client"] for r in rows] == ["Acme Corp", "Other Co"]
        acme = rows[0]
        assert acme["projects"] == 2
        assert acme["active"] == 1
        assert acme["completed"] == 1
        assert acme["revenue"] == 1000.0
        assert acme["average_rating"] == 4.0
        assert rows[1]["average_rating"] is None


class TestReminders:
    def test_window_and_order(self, services, designer, started_project):
        invoice = billing.create_invoice(
            services,
            started_project.id,
            [LineItem(description="Deposit", quantity=1, price=500)],
            due_date=date.today() + timedelta(days=3),
        )
        billing.set_invoice_status(services, invoice.id, InvoiceStatus.SENT)

        items = reports.reminders(services.store, window_days=14)
        assert [i["kind"] for i in items] == ["invoice"]
        assert items[0]["days_left"] == 3

        items = reports.reminders(services.store, window_days=30)
        assert [i["kind"] for i in items] == ["invoice", "project"]

    def test_draft_invoices_are_ignored(self, services, invoice):
        items = reports.reminders(services.store, window_days=60)
        assert [i["kind"] for i in items] == ["project"]


class TestDesignerStats:
    def test_stats(self, services, designer, started_project):
        task = started_project.tasks[0]
        projects.log_time(services, started_project.id, task.id, designer, 90)
        projects.log_time(services, started_project.id, task.id, designer, 30)
        lifecycle.request_feedback(services, started_project.id)

        stats = reports.designer_stats(services.store, designer)
        assert stats["assigned"] == 1
        assert stats["active"] == 1
        assert stats["completed"] == 0
        assert stats["logged_minutes"] == 120


class TestDashboardSummary:
    def test_summary(self, services, started_project, invoice):
        _paid_invoice(services, started_project)
        billing.set_invoice_status(services, invoice.id, InvoiceStatus.SENT)
        billing.submit_payment(services, started_project.id, invoice.id)

        summary = reports.dashboard_summary(services.store)
        assert summary["projects"] == 1
        assert summary["by_status"]["In Progress"] == 1
        assert summary["by_status"]["Canceled"] == 0
        assert summary["revenue"] == 1000.0
        assert summary["outstanding"] == 275.0
        assert summary["pending_payments"] == 1

    def test_reviews(self, services, started_project):
        lifecycle.complete(services, started_project.id)
        lifecycle.rate(services, started_project.id, 5, "Superb")
        assert reports.reviews(services.store)[0]["review"] == "Superb"

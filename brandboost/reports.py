"""Read-only aggregates for the admin dashboard and designer portal."""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import date, timedelta
from typing import Dict, List, Optional

from .billing import list_invoices, list_payments
from .models import InvoiceStatus, PaymentStatus, Project, ProjectStatus, TeamMember
from .projects import ACTIVE_STATUSES, list_projects, logged_minutes, projects_for_designer
from .store import DocumentStore

REMINDER_PROJECT_STATUSES = frozenset({ProjectStatus.IN_PROGRESS, ProjectStatus.PENDING_FEEDBACK})
REMINDER_INVOICE_STATUSES = frozenset({InvoiceStatus.SENT, InvoiceStatus.OVERDUE})
DESIGNER_ACTIVE_STATUSES = frozenset(
    {ProjectStatus.IN_PROGRESS, ProjectStatus.PENDING_FEEDBACK, ProjectStatus.REVISION_REQUESTED}
)


def _average_rating(projects: List[Project]) -> Optional[float]:
    ratings = [p.rating for p in projects if p.rating]
    if not ratings:
        return None
    return round(sum(ratings) / len(ratings), 1)


def client_rollup(store: DocumentStore) -> List[Dict]:
    """One row per client with project counts, paid revenue and average rating."""
    by_client: Dict[str, List[Project]] = defaultdict(list)
    for project in list_projects(store):
        by_client[project.client].append(project)
    revenue: Dict[str, float] = defaultdict(float)
    for invoice in list_invoices(store, status=InvoiceStatus.PAID):
        revenue[invoice.client_name] += invoice.total
    rows = []
    for client, projects in by_client.items():
        completed = [p for p in projects if p.status == ProjectStatus.COMPLETED]
        rows.append(
            {
                "client": client,
                "client_email": next((p.client_email for p in projects if p.client_email), None),
                "projects": len(projects),
                "active": sum(1 for p in projects if p.status in ACTIVE_STATUSES),
                "completed": len(completed),
                "revenue": round(revenue.get(client, 0.0), 2),
                "average_rating": _average_rating(completed),
            }
        )
    rows.sort(key=lambda r: (-r["projects"], r["client"].lower()))
    return rows


def reminders(store: DocumentStore, window_days: int, today: Optional[date] = None) -> List[Dict]:
    """Project deadlines and invoice due dates falling within ``window_days``.

    Anything already past due is included as well, so an overdue item
    keeps showing up until it is dealt with.
    """
    today = today or date.today()
    horizon = today + timedelta(days=window_days)
    items = []
    for project in list_projects(store):
        if project.status in REMINDER_PROJECT_STATUSES and project.due_date <= horizon:
            items.append(
                {
                    "kind": "project",
                    "id": project.id,
                    "title": project.name,
                    "client": project.client,
                    "status": project.status.value,
                    "due_date": project.due_date.isoformat(),
                    "days_left": (project.due_date - today).days,
                }
            )
    for invoice in list_invoices(store):
        if invoice.status in REMINDER_INVOICE_STATUSES and invoice.due_date <= horizon:
            items.append(
                {
                    "kind": "invoice",
                    "id": invoice.id,
                    "title": invoice.invoice_number,
                    "client": invoice.client_name,
                    "status": invoice.status.value,
                    "due_date": invoice.due_date.isoformat(),
                    "days_left": (invoice.due_date - today).days,
                    "amount": invoice.total,
                }
            )
    items.sort(key=lambda i: i["due_date"])
    return items


def designer_stats(store: DocumentStore, designer: TeamMember) -> Dict:
    projects = projects_for_designer(store, designer)
    completed = [p for p in projects if p.status == ProjectStatus.COMPLETED]
    return {
        "designer_id": designer.id,
        "name": designer.name,
        "assigned": len(projects),
        "active": sum(1 for p in projects if p.status in DESIGNER_ACTIVE_STATUSES),
        "completed": len(completed),
        "average_rating": _average_rating(completed),
        "logged_minutes": sum(logged_minutes(p, designer.id) for p in projects),
    }


def reviews(store: DocumentStore) -> List[Dict]:
    return [
        {
            "project_id": p.id,
            "project": p.name,
            "client": p.client,
            "rating": p.rating,
            "review": p.review,
            "team": p.team,
        }
        for p in list_projects(store)
        if p.rating
    ]


def dashboard_summary(store: DocumentStore) -> Dict:
    projects = list_projects(store)
    invoices = list_invoices(store)
    counts = Counter(p.status.value for p in projects)
    return {
        "projects": len(projects),
        "by_status": {status.value: counts.get(status.value, 0) for status in ProjectStatus},
        "revenue": round(sum(i.total for i in invoices if i.status == InvoiceStatus.PAID), 2),
        "outstanding": round(sum(i.total for i in invoices if i.status in REMINDER_INVOICE_STATUSES), 2),
        "pending_payments": len(list_payments(store, status=PaymentStatus.PENDING)),
    }

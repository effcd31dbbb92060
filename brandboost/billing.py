"""Invoices and client payment notices.

Invoice statuses follow ``Draft -> Sent -> Paid / Overdue``:

* ``Draft`` can be sent or marked paid directly.
* ``Sent`` becomes ``Paid`` or, once past its due date, ``Overdue``.
* ``Overdue`` can still be paid, or re-sent after the due date moved.
* ``Paid`` is final for ordinary status changes. An admin override
  (``override_invoice_status``) can still move it back to correct a
  mistake.

A payment notice starts ``Pending`` and is reviewed exactly once, and an
invoice has at most one notice pending at a time.
Approving it writes three documents in one batch: the payment becomes
``Approved``, its invoice ``Paid`` and its project's payment status
``Paid``. Either all three land or none does.
"""

from __future__ import annotations

import logging
import time
from datetime import date
from typing import Dict, FrozenSet, List, Optional

from fastapi import HTTPException

from .models import (
    Invoice,
    InvoiceStatus,
    LineItem,
    Notification,
    Payment,
    PaymentStatus,
    ProjectPaymentStatus,
    utcnow_iso,
)
from .projects import get_project, log_event, save_fields
from .services import Services
from .store import INVOICES, PAYMENTS, PROJECTS, DocumentNotFound, DocumentStore, PreconditionFailed

logger = logging.getLogger(__name__)


INVOICE_TRANSITIONS: Dict[InvoiceStatus, FrozenSet[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT, InvoiceStatus.PAID}),
    InvoiceStatus.SENT: frozenset({InvoiceStatus.PAID, InvoiceStatus.OVERDUE}),
    InvoiceStatus.OVERDUE: frozenset({InvoiceStatus.PAID, InvoiceStatus.SENT}),
    InvoiceStatus.PAID: frozenset(),
}

PAYABLE_STATUSES = frozenset({InvoiceStatus.SENT, InvoiceStatus.OVERDUE})


# ---------------------------------------------------------------------------
# Arithmetic


def calculate_totals(line_items: List[LineItem], tax_rate: float) -> Dict:
    """Compute line totals, subtotal, tax and grand total, rounded to cents.

    ``tax_rate`` is a percentage: 8.5 means 8.5 %.
    """
    if tax_rate < 0:
        raise HTTPException(status_code=400, detail="Tax rate cannot be negative")
    items = [
        LineItem(
            description=item.description,
            quantity=item.quantity,
            price=item.price,
            total=round(item.quantity * item.price, 2),
        )
        for item in line_items
    ]
    subtotal = round(sum(item.quantity * item.price for item in line_items), 2)
    tax_amount = round(subtotal * tax_rate / 100, 2)
    return {
        "line_items": items,
        "subtotal": subtotal,
        "tax_amount": tax_amount,
        "total": round(subtotal + tax_amount, 2),
    }


def next_invoice_number() -> str:
    return f"INV-{int(time.time() * 1000)}"


# ---------------------------------------------------------------------------
# Invoices


def get_invoice(store: DocumentStore, invoice_id: str) -> Invoice:
    doc = store.get(INVOICES, invoice_id)
    if doc is None:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return Invoice.from_doc(doc)


def list_invoices(
    store: DocumentStore,
    project_id: Optional[str] = None,
    status: Optional[InvoiceStatus] = None,
) -> List[Invoice]:
    where = []
    if project_id:
        where.append(("project_id", "==", project_id))
    if status:
        where.append(("status", "==", status.value))
    return [Invoice.from_doc(doc) for doc in store.list(INVOICES, where=where, order_by="created_at", descending=True)]


def create_invoice(
    services: Services,
    project_id: str,
    line_items: List[LineItem],
    due_date: date,
    tax_rate: float = 0.0,
    issue_date: Optional[date] = None,
    client_address: str = "",
    notes: Optional[str] = None,
    payment_link: Optional[str] = None,
    from_name: Optional[str] = None,
    from_address: str = "",
) -> Invoice:
    if not line_items:
        raise HTTPException(status_code=400, detail="An invoice needs at least one line item")
    project = get_project(services.store, project_id)
    invoice = Invoice(
        project_id=project.id,
        client_name=project.client,
        client_address=client_address,
        project_name=project.name,
        tax_rate=tax_rate,
        notes=notes,
        invoice_number=next_invoice_number(),
        issue_date=issue_date or date.today(),
        due_date=due_date,
        from_name=from_name or services.settings.company_name,
        from_address=from_address,
        payment_link=payment_link,
        status=InvoiceStatus.DRAFT,
        **calculate_totals(line_items, tax_rate),
    )
    invoice.id = services.store.add(INVOICES, invoice.to_doc())
    log_event(services.store, project.id, "invoice_created", {"invoice_id": invoice.id, "total": invoice.total})
    logger.info("Created invoice %s (%s) for project %s", invoice.invoice_number, invoice.total, project.id)
    return invoice


def update_invoice(
    services: Services,
    invoice_id: str,
    line_items: Optional[List[LineItem]] = None,
    tax_rate: Optional[float] = None,
    due_date: Optional[date] = None,
    notes: Optional[str] = None,
    client_address: Optional[str] = None,
    payment_link: Optional[str] = None,
) -> Invoice:
    invoice = get_invoice(services.store, invoice_id)
    if invoice.status == InvoiceStatus.PAID:
        raise HTTPException(status_code=409, detail="Paid invoices cannot be edited")
    if line_items is not None:
        if not line_items:
            raise HTTPException(status_code=400, detail="An invoice needs at least one line item")
        invoice.line_items = line_items
    if tax_rate is not None:
        invoice.tax_rate = tax_rate
    for field, value in (
        ("due_date", due_date),
        ("notes", notes),
        ("client_address", client_address),
        ("payment_link", payment_link),
    ):
        if value is not None:
            setattr(invoice, field, value)
    for field, value in calculate_totals(invoice.line_items, invoice.tax_rate).items():
        setattr(invoice, field, value)
    services.store.set(INVOICES, invoice.id, invoice.to_doc())
    return invoice


def set_invoice_status(services: Services, invoice_id: str, status: InvoiceStatus) -> Invoice:
    invoice = get_invoice(services.store, invoice_id)
    _check_invoice_transition(invoice, status)
    previous = invoice.status
    invoice.status = status
    services.store.update(INVOICES, invoice.id, {"status": status.value})
    log_event(
        services.store,
        invoice.project_id,
        "invoice_status_changed",
        {"invoice_id": invoice.id, "from": previous.value, "to": status.value},
    )
    logger.info("Invoice %s: %s -> %s", invoice.invoice_number, previous.value, status.value)
    return invoice


def override_invoice_status(services: Services, invoice_id: str, status: InvoiceStatus) -> Invoice:
    """Admin correction: set any status, including moving a Paid invoice back.

    Leaving Paid resets the project's payment status to Unpaid unless
    another of its invoices is still Paid.
    """
    invoice = get_invoice(services.store, invoice_id)
    if status == invoice.status:
        raise HTTPException(status_code=409, detail=f"Invoice is already marked as {status.value}")
    previous = invoice.status
    batch = services.store.batch()
    batch.require(INVOICES, invoice.id, "status", [previous.value])
    batch.update(INVOICES, invoice.id, {"status": status.value})
    if previous == InvoiceStatus.PAID:
        others = [
            other
            for other in list_invoices(services.store, project_id=invoice.project_id, status=InvoiceStatus.PAID)
            if other.id != invoice.id
        ]
        if not others:
            batch.update(PROJECTS, invoice.project_id, {"payment_status": ProjectPaymentStatus.UNPAID.value})
    elif status == InvoiceStatus.PAID:
        batch.update(PROJECTS, invoice.project_id, {"payment_status": ProjectPaymentStatus.PAID.value})
    try:
        batch.commit()
    except PreconditionFailed:
        raise HTTPException(status_code=409, detail="Invoice status changed while it was being updated")
    invoice.status = status
    log_event(
        services.store,
        invoice.project_id,
        "invoice_status_changed",
        {"invoice_id": invoice.id, "from": previous.value, "to": status.value, "action": "override"},
    )
    logger.warning("Invoice %s overridden: %s -> %s", invoice.invoice_number, previous.value, status.value)
    return invoice


def _check_invoice_transition(invoice: Invoice, status: InvoiceStatus) -> None:
    if status == invoice.status:
        raise HTTPException(status_code=409, detail=f"Invoice is already marked as {status.value}")
    if status not in INVOICE_TRANSITIONS[invoice.status]:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot mark a {invoice.status.value} invoice as {status.value}",
        )


def send_to_client(services: Services, invoice_id: str) -> Invoice:
    """Publish a draft invoice to the client portal."""
    invoice = get_invoice(services.store, invoice_id)
    if invoice.status != InvoiceStatus.DRAFT:
        raise HTTPException(status_code=409, detail="Only draft invoices can be sent to the client")
    project = get_project(services.store, invoice.project_id)
    invoice = set_invoice_status(services, invoice.id, InvoiceStatus.SENT)
    project.notifications.append(
        Notification(text=f"A new invoice ({invoice.invoice_number}) has been issued for your project.")
    )
    save_fields(services.store, project, "notifications")
    return invoice


def email_invoice(services: Services, invoice_id: str) -> Dict:
    invoice = get_invoice(services.store, invoice_id)
    if invoice.status == InvoiceStatus.PAID:
        raise HTTPException(status_code=409, detail="This invoice has already been paid")
    project = get_project(services.store, invoice.project_id)
    if not project.client_email:
        raise HTTPException(
            status_code=400,
            detail="Client email not found for this project. Please ask the client to provide it in their portal.",
        )
    if invoice.status == InvoiceStatus.DRAFT:
        invoice = set_invoice_status(services, invoice.id, InvoiceStatus.SENT)
    delivered = services.mailer.send_invoice(invoice, project)
    return {"invoice": invoice, "delivered": delivered, "message": f"Invoice sent to {project.client_email}"}


def send_reminder(services: Services, invoice_id: str) -> Dict:
    invoice = get_invoice(services.store, invoice_id)
    if invoice.status not in PAYABLE_STATUSES:
        raise HTTPException(status_code=409, detail="Reminders are only sent for outstanding invoices")
    project = get_project(services.store, invoice.project_id)
    delivered = services.mailer.send_reminder(invoice, project.client_email)
    log_event(services.store, project.id, "reminder_sent", {"invoice_id": invoice.id})
    return {"invoice": invoice, "delivered": delivered, "message": f"Reminder sent to {project.client_email}"}


def mark_overdue(services: Services, today: Optional[date] = None) -> List[Invoice]:
    """Flag every sent invoice whose due date has passed as overdue."""
    today = today or date.today()
    changed = []
    for invoice in list_invoices(services.store, status=InvoiceStatus.SENT):
        if invoice.due_date < today:
            changed.append(set_invoice_status(services, invoice.id, InvoiceStatus.OVERDUE))
    if changed:
        logger.info("Marked %s invoice(s) overdue", len(changed))
    return changed


def delete_invoice(services: Services, invoice_id: str) -> None:
    invoice = get_invoice(services.store, invoice_id)
    if invoice.status == InvoiceStatus.PAID:
        raise HTTPException(status_code=409, detail="Paid invoices cannot be deleted")
    services.store.delete(INVOICES, invoice.id)
    logger.info("Deleted invoice %s", invoice.invoice_number)


# ---------------------------------------------------------------------------
# Payments


def get_payment(store: DocumentStore, payment_id: str) -> Payment:
    doc = store.get(PAYMENTS, payment_id)
    if doc is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    return Payment.from_doc(doc)


def list_payments(
    store: DocumentStore,
    status: Optional[PaymentStatus] = None,
    project_id: Optional[str] = None,
    invoice_id: Optional[str] = None,
) -> List[Payment]:
    where = []
    if status:
        where.append(("status", "==", status.value))
    if project_id:
        where.append(("project_id", "==", project_id))
    if invoice_id:
        where.append(("invoice_id", "==", invoice_id))
    return [Payment.from_doc(doc) for doc in store.list(PAYMENTS, where=where, order_by="requested_at", descending=True)]


def submit_payment(
    services: Services,
    project_id: str,
    invoice_id: str,
    amount: Optional[float] = None,
    method: str = "",
    reference: str = "",
) -> Payment:
    """Record the client's notice that they paid an invoice.

    An invoice has at most one notice awaiting review at a time.
    """
    invoice = get_invoice(services.store, invoice_id)
    if invoice.project_id != project_id:
        raise HTTPException(status_code=404, detail="Invoice not found")
    if invoice.status not in PAYABLE_STATUSES:
        raise HTTPException(status_code=409, detail=f"A {invoice.status.value} invoice cannot be paid")
    if amount is not None and amount <= 0:
        raise HTTPException(status_code=400, detail="Amount must be positive")
    if list_payments(services.store, status=PaymentStatus.PENDING, invoice_id=invoice.id):
        raise HTTPException(status_code=409, detail="A payment for this invoice is already awaiting review")
    payment = Payment(
        invoice_id=invoice.id,
        project_id=invoice.project_id,
        client_name=invoice.client_name,
        amount=round(amount if amount is not None else invoice.total, 2),
        method=method,
        reference=reference,
    )
    payment.id = services.store.add(PAYMENTS, payment.to_doc())
    log_event(services.store, project_id, "payment_submitted", {"payment_id": payment.id, "amount": payment.amount})
    return payment


def review_payment(services: Services, payment_id: str, status: PaymentStatus) -> Payment:
    """Approve or reject a pending payment.

    Approval cascades into the invoice (Paid) and the project's payment
    status (Paid) within the same batch. The batch only commits while the
    payment is still Pending and, for an approval, the invoice is not yet
    Paid, so two reviews racing each other cannot both succeed.
    """
    if status == PaymentStatus.PENDING:
        raise HTTPException(status_code=400, detail="A payment can only be approved or rejected")
    payment = get_payment(services.store, payment_id)
    if payment.status != PaymentStatus.PENDING:
        raise HTTPException(
            status_code=409,
            detail=f"Payment has already been {payment.status.value.lower()}",
        )
    reviewed_at = utcnow_iso()
    batch = services.store.batch()
    batch.require(PAYMENTS, payment.id, "status", [PaymentStatus.PENDING.value])
    batch.update(PAYMENTS, payment.id, {"status": status.value, "reviewed_at": reviewed_at})
    if status == PaymentStatus.APPROVED:
        batch.require(INVOICES, payment.invoice_id, "status", [s.value for s in InvoiceStatus if s != InvoiceStatus.PAID])
        batch.update(INVOICES, payment.invoice_id, {"status": InvoiceStatus.PAID.value})
        batch.update(PROJECTS, payment.project_id, {"payment_status": ProjectPaymentStatus.PAID.value})
    try:
        batch.commit()
    except DocumentNotFound as exc:
        logger.error("Payment %s review aborted, missing document %s", payment.id, exc)
        raise HTTPException(status_code=409, detail="The invoice or project for this payment no longer exists")
    except PreconditionFailed as exc:
        logger.warning("Payment %s review aborted, %s", payment.id, exc)
        if exc.collection == INVOICES:
            raise HTTPException(status_code=409, detail="Invoice has already been paid")
        raise HTTPException(status_code=409, detail=f"Payment has already been {str(exc.actual).lower()}")
    payment.status = status
    payment.reviewed_at = reviewed_at
    log_event(
        services.store,
        payment.project_id,
        "payment_reviewed",
        {"payment_id": payment.id, "invoice_id": payment.invoice_id, "status": status.value},
    )
    logger.info("Payment %s %s (%s operation batch)", payment.id, status.value.lower(), len(batch))
    return payment

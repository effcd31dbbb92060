"""Transactional e-mail through the Resend HTTP API."""

from __future__ import annotations

import logging
from typing import List, Optional

import requests
from fastapi import HTTPException

from .config import Settings
from .models import ContactMessage, Invoice, Project

logger = logging.getLogger(__name__)

RESEND_ENDPOINT = "https://api.resend.com/emails"


class EmailDeliveryError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=502, detail=detail)


def format_currency(amount: float) -> str:
    return f"${amount:,.2f}"


class Mailer:
    """Sends the agency's transactional messages.

    Without ``RESEND_API_KEY`` delivery is disabled: messages are logged
    and ``send`` returns False instead of contacting the provider. A
    provider error raises ``EmailDeliveryError`` (HTTP 502).
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return bool(self.settings.resend_api_key)

    @property
    def sender(self) -> str:
        return f"{self.settings.company_name} <{self.settings.email_from}>"

    def send(self, to: List[str], subject: str, html: str) -> bool:
        if not self.enabled:
            logger.warning("RESEND_API_KEY not set; e-mail to %s not sent: %s", ", ".join(to), subject)
            return False
        payload = {"from": self.sender, "to": to, "subject": subject, "html": html}
        try:
            response = self._post(payload)
        except requests.RequestException as exc:
            logger.error("Resend request failed: %s", exc)
            raise EmailDeliveryError("Failed to send email") from exc
        if response.status_code >= 400:
            logger.error("Resend error %s: %s", response.status_code, response.text)
            raise EmailDeliveryError(f"Email provider rejected the message ({response.status_code})")
        logger.info("E-mail sent to %s: %s", ", ".join(to), subject)
        return True

    def _post(self, payload: dict) -> requests.Response:
        return requests.post(
            RESEND_ENDPOINT,
            json=payload,
            headers={"Authorization": f"Bearer {self.settings.resend_api_key}"},
            timeout=10,
        )

    # -- messages ----------------------------------------------------------

    def send_invoice(self, invoice: Invoice, project: Project) -> bool:
        if not project.client_email:
            raise HTTPException(
                status_code=400,
                detail="Client email not found for this project. Please ask the client to provide it in their portal.",
            )
        company = self.settings.company_name
        pay_now = f'<p><a href="{invoice.payment_link}">Pay now</a></p>' if invoice.payment_link else ""
        html = (
            f"<p>Hi {invoice.client_name},</p>"
            f"<p>A new invoice has been generated for your project, <strong>{invoice.project_name}</strong>.</p>"
            f"<p>Invoice number: {invoice.invoice_number}<br>Date issued: {invoice.issue_date}<br>"
            f"Due date: {invoice.due_date}<br>Amount due: {format_currency(invoice.total)}</p>"
            f"{pay_now}"
            f'<p><a href="{self.settings.portal_link(project.id)}">View project portal</a></p>'
        )
        return self.send([project.client_email], f"Invoice #{invoice.invoice_number} from {company}", html)

    def send_reminder(self, invoice: Invoice, client_email: Optional[str]) -> bool:
        if not client_email:
            raise HTTPException(status_code=400, detail="Client email not found for this project.")
        html = (
            f"<p>Hi {invoice.client_name},</p>"
            f"<p>This is a friendly reminder that invoice <strong>#{invoice.invoice_number}</strong> for "
            f"<strong>{format_currency(invoice.total)}</strong> was due on <strong>{invoice.due_date}</strong>.</p>"
            f"<p>Thank you,<br>The {self.settings.company_name} Team</p>"
        )
        return self.send([client_email], f"Reminder: Payment for Invoice #{invoice.invoice_number}", html)

    def send_cancellation(self, project: Project) -> bool:
        if not project.client_email:
            raise HTTPException(status_code=400, detail="Client email is not provided for this project.")
        html = (
            f"<p>Hi {project.client},</p>"
            f"<p>Your project <strong>{project.name}</strong> has been cancelled.</p>"
            f'<p><a href="{self.settings.portal_link(project.id)}">View project portal</a></p>'
        )
        return self.send([project.client_email], f"Confirmation of Cancellation for Order #{project.id}", html)

    def send_project_created(self, project: Project) -> bool:
        if not project.client_email:
            raise HTTPException(status_code=400, detail="Client email is not provided for this project.")
        html = (
            f"<p>Hi {project.client},</p>"
            f"<p>Your project <strong>{project.name}</strong> is now live. "
            f"Target delivery date: {project.due_date}.</p>"
            f'<p><a href="{self.settings.portal_link(project.id)}">Open your client portal</a></p>'
        )
        return self.send([project.client_email], f"Your project {project.name} has started", html)

    def send_proposal_received(self, message: ContactMessage) -> bool:
        html = (
            f"<p>Hi {message.name},</p>"
            f"<p>Thanks for reaching out. We received your proposal <strong>{message.proposal_id}</strong> "
            f"and will get back to you shortly.</p>"
        )
        return self.send([message.email], f"We received your proposal ({message.proposal_id})", html)

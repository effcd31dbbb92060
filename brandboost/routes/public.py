"""Marketing site endpoints: landing page, health check, contact form and site content."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, EmailStr, Field

from .. import site
from ..intake import save_contact_message
from ..services import Services, get_services

router = APIRouter(tags=["public"])


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def root(request: Request):
    """Serve a basic landing page at the service root.

    Without this handler a visitor opening the API's domain in a
    browser would get a 404. The page names the agency and links to
    the interactive API docs.
    """
    company = request.app.state.services.settings.company_name
    return f"""
    <!DOCTYPE html>
    <html lang="en">
      <head>
        <meta charset="utf-8" />
        <title>{company} Studio API</title>
        <style>
          body {{ font-family: sans-serif; margin: 2rem; line-height: 1.6; }}
          h1 {{ color: #333; }}
          a {{ color: #0055a5; text-decoration: none; }}
          a:hover {{ text-decoration: underline; }}
        </style>
      </head>
      <body>
        <h1>Welcome to the {company} Studio API</h1>
        <p>
          This service runs the agency's admin dashboard, the designer
          portal and every client's project portal.
        </p>
        <p>
          To explore the available endpoints and try them out interactively,
          visit the <a href="/docs">API documentation</a>.
        </p>
      </body>
    </html>
    """


@router.get("/health", summary="Health check endpoint")
def health():
    return {"status": "ok"}


class ContactRequest(BaseModel):
    """A proposal sent from the marketing site's contact form."""
    name: str = Field(..., min_length=1)
    email: EmailStr
    company: Optional[str] = None
    service: Optional[str] = None  # e.g. "Branding", "Web Design"
    budget: Optional[str] = None
    description: str = Field(..., min_length=1)


@router.post("/contact", status_code=201, summary="Submit a project proposal")
def submit_contact(req: ContactRequest, services: Services = Depends(get_services)):
    """
    Store the proposal for the admin's inbox and e-mail the sender a
    confirmation quoting its proposal id (``BB-`` followed by eight
    hex characters). The confirmation is best effort: the proposal is
    kept even if the e-mail cannot be delivered.
    """
    message = save_contact_message(
        services,
        name=req.name,
        email=req.email,
        description=req.description,
        company=req.company,
        service=req.service,
        budget=req.budget,
    )
    return {"proposal_id": message.proposal_id, "message": "Proposal received"}


@router.get("/site", summary="Content for the public marketing site")
def get_site(services: Services = Depends(get_services)):
    """
    Page content, service offerings, pricing tiers and portfolio items
    in one payload. Defaults are served until an admin edits the site.
    """
    return site.public_site(services.store)

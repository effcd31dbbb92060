"""Entry point for the BrandBoost Studio backend.

This module builds the FastAPI application that powers the agency's
three portals and its marketing site:

* ``/admin`` for the agency admin: projects, lifecycle decisions,
  invoices, payment approval, intake and the team.
* ``/designer/{designer_id}`` for designers working on assigned
  projects.
* ``/portal/{project_id}`` for the client of a project.
* ``/contact`` for proposals submitted from the public site and
  ``/site`` for the content it renders, edited under ``/admin/site``.

To run it locally:

```sh
pip install -e .
uvicorn brandboost.main:app --reload
```

Without Firebase credentials the server keeps its data in memory and
all state resets when the process restarts. Set the variables described
in ``brandboost.config`` (or a ``.env`` file) to use Firestore, Supabase
Storage and Resend.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import Settings
from .mailer import Mailer
from .planner import TaskPlanner
from .routes import admin, designer, inbox, invoices, portal, public, site, team
from .services import Services
from .storage import AssetStorage
from .store import DocumentNotFound, DocumentStore, create_store

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
    mailer: Optional[Mailer] = None,
    storage: Optional[AssetStorage] = None,
    planner: Optional[TaskPlanner] = None,
) -> FastAPI:
    """Build the application.

    Every collaborator can be injected, which is how the test-suite runs
    the API against an in-memory store and a recording mailer. Anything
    not passed in is built from ``settings`` (itself read from the
    environment when omitted).
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=f"{settings.company_name} Studio API", version=__version__)
    app.state.services = Services(
        settings=settings,
        store=store or create_store(settings),
        mailer=mailer or Mailer(settings),
        storage=storage or AssetStorage.from_settings(settings),
        planner=planner or TaskPlanner(),
    )

    # The admin dashboard and client portal are served from a separate
    # origin; restrict CORS_ORIGINS to it in production.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DocumentNotFound)
    async def document_not_found(request: Request, exc: DocumentNotFound):
        logger.warning("Missing document %s/%s on %s", exc.collection, exc.doc_id, request.url.path)
        return JSONResponse(status_code=404, content={"detail": "Document not found"})

    app.include_router(public.router)
    app.include_router(admin.router)
    app.include_router(invoices.router)
    app.include_router(inbox.router)
    app.include_router(team.router)
    app.include_router(site.router)
    app.include_router(designer.router)
    app.include_router(portal.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("brandboost.main:app", host="0.0.0.0", port=8000)

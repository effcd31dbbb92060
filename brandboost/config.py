"""Runtime configuration.

All settings come from environment variables. A ``.env`` file next to
the working directory is loaded first (without overriding variables
that are already set) so local development does not need exported
credentials. Anything left unset falls back to a local-only default:
an in-memory document store, disabled e-mail delivery and disabled
asset storage.
"""

from __future__ import annotations

import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class Settings(BaseModel):
    store_backend: str = "memory"
    firebase_project_id: Optional[str] = None
    firebase_credentials_json: Optional[str] = None
    firebase_credentials_path: Optional[str] = None

    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    supabase_bucket: str = "data-storage"

    resend_api_key: Optional[str] = None
    email_from: str = "onboarding@resend.dev"

    company_name: str = "BrandBoost AI"
    public_base_url: str = "http://localhost:3000"

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    revision_extra_days: int = 7
    reminder_window_days: int = 14

    @property
    def firebase_configured(self) -> bool:
        return bool(self.firebase_credentials_json or self.firebase_credentials_path or self.firebase_project_id)

    @property
    def supabase_configured(self) -> bool:
        # Placeholder values copied from an example .env are treated as unset
        return bool(self.supabase_url and self.supabase_anon_key and "your-supabase-url" not in self.supabase_url)

    def portal_link(self, project_id: str) -> str:
        return f"{self.public_base_url.rstrip('/')}/portal/{project_id}"

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "Settings":
        if load_dotenv_file:
            load_dotenv(override=False)
        env = os.environ
        firebase_json = env.get("FIREBASE_CREDENTIALS_JSON") or None
        firebase_path = env.get("FIREBASE_CREDENTIALS_PATH") or None
        firebase_project = (env.get("FIREBASE_PROJECT_ID") or "").strip() or None
        default_backend = "firestore" if (firebase_json or firebase_path or firebase_project) else "memory"
        origins = [o.strip() for o in env.get("CORS_ORIGINS", "*").split(",") if o.strip()]
        return cls(
            store_backend=env.get("BRANDBOOST_STORE", default_backend).lower(),
            firebase_project_id=firebase_project,
            firebase_credentials_json=firebase_json,
            firebase_credentials_path=firebase_path,
            supabase_url=env.get("SUPABASE_URL") or None,
            supabase_anon_key=env.get("SUPABASE_ANON_KEY") or None,
            supabase_bucket=env.get("SUPABASE_BUCKET", "data-storage"),
            resend_api_key=env.get("RESEND_API_KEY") or None,
            email_from=env.get("EMAIL_FROM", "onboarding@resend.dev"),
            company_name=env.get("COMPANY_NAME", "BrandBoost AI"),
            public_base_url=env.get("PUBLIC_BASE_URL", "http://localhost:3000"),
            cors_origins=origins or ["*"],
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            revision_extra_days=int(env.get("REVISION_EXTRA_DAYS", "7")),
            reminder_window_days=int(env.get("REMINDER_WINDOW_DAYS", "14")),
        )

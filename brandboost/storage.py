"""Supabase Storage access for delivered project files.

Uploads go straight from the browser to the bucket; the API only needs
to turn an object path into a public URL and remove objects when an
asset record is deleted. When SUPABASE_URL and SUPABASE_ANON_KEY are not
set the storage is disabled: URL resolution raises a 503 and removals
are skipped with a warning.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException
from supabase import Client, create_client

from .config import Settings

logger = logging.getLogger(__name__)


class AssetStorage:
    def __init__(self, client: Optional[Client], bucket: str):
        self._client = client
        self.bucket = bucket

    @classmethod
    def from_settings(cls, settings: Settings) -> "AssetStorage":
        client: Optional[Client] = None
        if settings.supabase_configured:
            try:
                client = create_client(settings.supabase_url, settings.supabase_anon_key)
            except Exception:
                logger.exception("Could not initialize Supabase client. Storage features will be disabled.")
                client = None
        else:
            logger.warning("Supabase credentials are not configured. File storage features will be disabled.")
        return cls(client, settings.supabase_bucket)

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def public_url(self, path: str) -> str:
        if not self._client:
            raise HTTPException(status_code=503, detail="File storage is not configured")
        return self._client.storage.from_(self.bucket).get_public_url(path)

    def remove(self, path: str) -> bool:
        """Delete an object. Returns False when nothing was removed."""
        if not path:
            return False
        if not self._client:
            logger.warning("Storage disabled; not removing %s", path)
            return False
        try:
            self._client.storage.from_(self.bucket).remove([path])
        except Exception:
            logger.exception("Failed to remove %s from bucket %s", path, self.bucket)
            return False
        return True


def format_size(size_bytes: int) -> str:
    return f"{size_bytes / 1024 / 1024:.2f} MB"

"""Supabase Storage for post artifacts (cover images, narration audio).

Objects live in one public bucket. Callers name objects by content
(``cover_path`` / ``audio_path``), so uploading the same artifact twice
finds the existing object and hands back its URL instead of writing again.

Prerequisites:
    - A public 'post-assets' bucket in the Supabase project
    - SUPABASE_URL and SUPABASE_SERVICE_KEY in .env

Usage:
    storage = SupabaseStorage(ProviderCredentials.from_env())
    result = await storage.upload_async(mp3_bytes, storage.audio_path(post_id, script), "audio/mpeg")
    if result.success:
        print(result.public_url)
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Optional

from inkpress.common.config import ProviderCredentials, StorageSettings, settings as default_settings

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    """Outcome of one upload. ``reused`` marks an object that already existed."""

    path: str
    public_url: str
    success: bool
    error: str = ""
    reused: bool = False


def content_key(data: bytes | str, length: int = 12) -> str:
    """Short stable digest used to name stored objects."""
    raw = data.encode("utf-8") if isinstance(data, str) else data
    return hashlib.sha1(raw).hexdigest()[:length]


class SupabaseStorage:
    """Bucket access for post artifacts. Never raises from ``upload``."""

    def __init__(
        self,
        credentials: ProviderCredentials,
        storage_settings: Optional[StorageSettings] = None,
        client: Any = None,
    ):
        self.credentials = credentials
        self.settings = storage_settings or default_settings.storage
        self._client = client

    @property
    def bucket(self) -> str:
        return self.settings.bucket

    @property
    def is_configured(self) -> bool:
        return bool(self.credentials.supabase_url and self.credentials.supabase_key)

    def _bucket_api(self):
        if self._client is None:
            url = self.credentials.require("supabase_url")
            key = self.credentials.require("supabase_key")
            from supabase import create_client

            self._client = create_client(url, key)
        return self._client.storage.from_(self.bucket)

    def get_public_url(self, path: str) -> str:
        """Public URL of ``path`` inside the bucket."""
        base = self.credentials.supabase_url.rstrip("/")
        return f"{base}/storage/v1/object/public/{self.bucket}/{path}"

    def cover_path(self, prompt: str, extension: str = "webp") -> str:
        return f"{self.settings.cover_prefix}/{content_key(prompt)}.{extension}"

    def audio_path(self, post_id: str, script: str) -> str:
        return f"{self.settings.audio_prefix}/{post_id}/{content_key(script)}.mp3"

    def file_exists(self, path: str) -> bool:
        folder, _, name = path.rpartition("/")
        try:
            listing = self._bucket_api().list(folder) or []
        except Exception as exc:
            # Treat as absent; the upload itself will surface real failures
            logger.warning("Listing %s failed: %s", folder or "/", exc)
            return False
        return any(entry.get("name") == name for entry in listing)

    def upload(
        self,
        data: bytes,
        path: str,
        content_type: str = "application/octet-stream",
    ) -> UploadResult:
        """Store ``data`` at ``path`` unless an object is already there."""
        if self.file_exists(path):
            logger.info("Reusing stored object: %s", path)
            return UploadResult(path, self.get_public_url(path), success=True, reused=True)

        try:
            self._bucket_api().upload(
                path=path,
                file=data,
                file_options={"content-type": content_type},
            )
        except Exception as exc:
            logger.error("Storage upload of %s (%d bytes) failed: %s", path, len(data), exc)
            return UploadResult(path, "", success=False, error=str(exc))

        url = self.get_public_url(path)
        logger.info("Stored %s (%d bytes, %s)", path, len(data), content_type)
        return UploadResult(path, url, success=True)

    async def upload_async(
        self,
        data: bytes,
        path: str,
        content_type: str = "application/octet-stream",
    ) -> UploadResult:
        """``upload`` in a worker thread; supabase-py is synchronous."""
        return await asyncio.to_thread(self.upload, data, path, content_type)

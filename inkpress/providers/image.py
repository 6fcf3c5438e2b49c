"""Image generation provider and the public fallback image service.

The primary provider returns inline image bytes (OpenAI Images, base64).
When it yields nothing, callers build a deterministic URL against a public
text-to-image service from the same prompt.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import openai

from inkpress.common.config import ImageSettings, ProviderCredentials, Settings, settings as default_settings
from inkpress.common.errors import ProviderCallError

logger = logging.getLogger(__name__)


@dataclass
class ImagePayload:
    """Inline image data returned by the primary provider."""

    data: bytes
    mime_type: str = "image/png"

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


def build_fallback_image_url(prompt: str, image_settings: ImageSettings | None = None) -> str:
    """Build the fallback image URL for a prompt.

    Derived from the prompt and settings only (no timestamp or random seed),
    so the same prompt always maps to the same URL.
    """
    cfg = image_settings or default_settings.image
    base = cfg.fallback_base_url.rstrip("/")
    encoded = quote(prompt.strip(), safe="")
    return (
        f"{base}/{encoded}"
        f"?width={cfg.fallback_width}&height={cfg.fallback_height}&nologo=true"
    )


class ImageProvider:
    """Primary image generation via the OpenAI Images API."""

    def __init__(
        self,
        credentials: ProviderCredentials,
        settings: Settings | None = None,
    ):
        self.credentials = credentials
        self.settings = settings or default_settings
        self._client: Optional[openai.AsyncOpenAI] = None

    def _get_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            api_key = self.credentials.require("openai_api_key")
            self._client = openai.AsyncOpenAI(api_key=api_key)
        return self._client

    async def generate(self, prompt: str) -> ImagePayload | None:
        """Generate an image for ``prompt``.

        Returns:
            ImagePayload, or None when the response carries no inline data.

        Raises:
            ProviderCallError: The API call failed.
        """
        client = self._get_client()
        cfg = self.settings.image
        logger.info("Image call: model=%s size=%s", cfg.model, cfg.size)

        try:
            response = await client.images.generate(
                model=cfg.model,
                prompt=prompt,
                size=cfg.size,
                n=1,
            )
        except openai.OpenAIError as exc:
            logger.error("Image generation failed: %s", exc)
            raise ProviderCallError(str(exc), provider="openai", stage="image") from exc

        items = getattr(response, "data", None) or []
        b64 = getattr(items[0], "b64_json", None) if items else None
        if not b64:
            logger.warning("Image response carried no inline data")
            return None

        try:
            data = base64.b64decode(b64)
        except (binascii.Error, ValueError):
            logger.warning("Image response carried undecodable inline data")
            return None

        return ImagePayload(data=data, mime_type="image/png")

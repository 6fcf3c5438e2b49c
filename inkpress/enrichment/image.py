"""Image stage: plan a cover-image prompt, then render it.

Fallback chain:
    1. Prompt planning fails → template prompt built from the topic.
    2. Primary provider fails or returns no inline data → deterministic URL
       against the public fallback image service, built from the same prompt.

``ImageStage.run`` never raises; it always returns an ImageResult.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from inkpress.common.config import Settings, settings as default_settings
from inkpress.providers.image import ImagePayload, ImageProvider, build_fallback_image_url
from inkpress.providers.text import TextProvider
from inkpress.publisher.storage import SupabaseStorage, content_key

from .image_processor import CoverImageProcessor

logger = logging.getLogger(__name__)

SOURCE_PRIMARY = "primary"
SOURCE_FALLBACK = "fallback"


@dataclass
class ImageResult:
    """Outcome of the image stage."""

    success: bool
    image_ref: Optional[str] = None  # URL or data URI
    source: str = ""
    prompt: str = ""
    error: str = ""


def fallback_image_prompt(topic: str) -> str:
    return (
        f"High tech abstract background representing {topic}, "
        "cinematic lighting, photorealistic, 8k"
    )


def build_image_prompt_request(topic: str) -> str:
    return f"""\
You are a creative director for a tech blog.
Task: Create an English image prompt for a blog thumbnail based on the topic: "{topic}".
Style requirements: Photorealistic, Cinematic lighting, High Quality, Abstract tech element.
Constraint: Return ONLY the prompt text. Do not add any conversational filler.
"""


class ImageStage:
    """Produces an embeddable cover image reference for a topic."""

    def __init__(
        self,
        text_provider: TextProvider,
        image_provider: ImageProvider,
        storage: Optional[SupabaseStorage] = None,
        processor: Optional[CoverImageProcessor] = None,
        settings: Settings | None = None,
    ):
        self.text_provider = text_provider
        self.image_provider = image_provider
        self.storage = storage
        self.settings = settings or default_settings
        self.processor = processor or CoverImageProcessor(self.settings.image)

    async def plan_prompt(self, topic: str) -> str:
        """Ask the text provider for an image prompt; template on failure."""
        try:
            text = await self.text_provider.generate(
                build_image_prompt_request(topic),
                model=self.settings.llm.default_model,
                temperature=0.7,
                stage="image.prompt",
            )
        except Exception as exc:
            logger.warning("Image prompt planning failed, using template: %s", exc)
            return fallback_image_prompt(topic)

        prompt = (text or "").strip().strip('"').strip()
        return prompt or fallback_image_prompt(topic)

    async def run(self, topic: str) -> ImageResult:
        prompt = ""
        try:
            prompt = await self.plan_prompt(topic)
            logger.info("Image prompt: %s", prompt)

            try:
                payload = await self.image_provider.generate(prompt)
            except Exception as exc:
                logger.warning("Primary image provider failed: %s", exc)
                payload = None

            if payload is not None:
                image_ref = await self._store(payload, prompt)
                return ImageResult(
                    success=True, image_ref=image_ref, source=SOURCE_PRIMARY, prompt=prompt
                )

            url = build_fallback_image_url(prompt, self.settings.image)
            logger.warning("Using fallback image service for cover image")
            return ImageResult(success=True, image_ref=url, source=SOURCE_FALLBACK, prompt=prompt)
        except Exception as exc:
            logger.error("Image stage failed: %s", exc)
            return ImageResult(success=False, prompt=prompt, error=str(exc))

    async def _store(self, payload: ImagePayload, prompt: str) -> str:
        """Re-encode and upload the payload; data URI when storage is unavailable."""
        try:
            processed = self.processor.process_bytes(payload.data, name=content_key(prompt))
            data, mime = processed.data, processed.content_type
        except ValueError as exc:
            logger.warning("Cover image processing failed, keeping original bytes: %s", exc)
            data, mime = payload.data, payload.mime_type

        if self.storage is not None and self.storage.is_configured:
            extension = "webp" if mime == "image/webp" else "png"
            result = await self.storage.upload_async(
                data, self.storage.cover_path(prompt, extension), mime
            )
            if result.success:
                return result.public_url
            logger.warning("Cover upload failed, embedding as data URI: %s", result.error)

        return ImagePayload(data=data, mime_type=mime).to_data_uri()

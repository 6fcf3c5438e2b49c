"""Outline stage: plan the title and ordered sections before any prose.

The provider is asked for JSON and the first well-formed payload is
extracted from whatever it returns. A missing or malformed payload is
fatal for the request; there is no retry.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from inkpress.common.config import Settings, settings as default_settings
from inkpress.common.errors import ProviderParseError
from inkpress.common.models import GenerationRequest, Outline, ResearchContext, SeoStrategy
from inkpress.providers.text import TextProvider

from .prompts import build_outline_prompt

logger = logging.getLogger(__name__)

STAGE = "outline"

_NUMBERED_HEADING_RE = re.compile(r"^\s*(\d+|[IVX]+)[.)]\s")
_TAKEAWAY_MARKERS = ("takeaway", "summary", "요약", "핵심")
_FAQ_MARKERS = ("faq", "자주 묻는", "q&a", "questions")


async def generate_outline(
    request: GenerationRequest,
    research: ResearchContext,
    text_provider: TextProvider,
    seo_strategy: Optional[SeoStrategy] = None,
    rival_insights: Optional[str] = None,
    settings: Settings | None = None,
) -> Outline:
    """Produce the Outline for a request.

    Raises:
        ProviderCallError: The provider call failed.
        ProviderParseError: No JSON payload, or the payload is not an outline.
    """
    settings = settings or default_settings
    prompt = build_outline_prompt(
        request,
        research.to_prompt_context(),
        settings.pipeline.content_language,
        seo_strategy=seo_strategy,
        rival_insights=rival_insights,
    )

    payload = await text_provider.generate_json(
        prompt,
        model=request.model,
        temperature=settings.llm.outline_temperature,
        stage=STAGE,
    )

    # Some models wrap the object in a one-element list
    if isinstance(payload, list) and len(payload) == 1 and isinstance(payload[0], dict):
        payload = payload[0]

    try:
        outline = Outline.model_validate(payload)
    except PydanticValidationError as exc:
        logger.error("Outline payload did not match the expected shape: %s", exc)
        raise ProviderParseError(
            "Outline payload is missing a title or sections",
            raw_text=str(payload)[:2000],
            stage=STAGE,
        ) from exc

    logger.info("Outline generated: %s (%d sections)", outline.title, len(outline.sections))
    for warning in check_outline_shape(outline):
        logger.warning("Outline shape: %s", warning)
    return outline


def check_outline_shape(outline: Outline) -> list[str]:
    """Report deviations from the requested outline policy.

    Purely advisory: headings are never rewritten.
    """
    warnings = []
    headings = [s.heading for s in outline.sections]

    if not 5 <= len(headings) <= 8:
        warnings.append(f"expected 5-8 sections, got {len(headings)}")

    first = headings[0].lower()
    if not any(marker in first for marker in _TAKEAWAY_MARKERS):
        warnings.append(f"first section is not a key-takeaways summary: {headings[0]!r}")

    last = headings[-1].lower()
    if not any(marker in last for marker in _FAQ_MARKERS):
        warnings.append(f"last section is not an FAQ: {headings[-1]!r}")

    for heading in headings:
        if _NUMBERED_HEADING_RE.match(heading):
            warnings.append(f"numbered heading: {heading!r}")

    return warnings

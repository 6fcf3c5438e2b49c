"""Refinement stage: an editor pass over the assembled draft.

Best-effort. Any provider failure, or an output too short to be a real
article, returns the draft unchanged.
"""

from __future__ import annotations

import logging
from typing import Optional

from inkpress.common.config import Settings, settings as default_settings
from inkpress.providers.text import TextProvider

from .prompts import build_refine_prompt
from .structure import compare_protected_spans

logger = logging.getLogger(__name__)

STAGE = "refine"
MIN_REFINED_CHARS = 50


async def refine_draft(
    draft: str,
    topic: str,
    text_provider: TextProvider,
    experience: Optional[str] = None,
    settings: Settings | None = None,
) -> str:
    """Return the refined draft, or ``draft`` itself on any failure."""
    settings = settings or default_settings
    prompt = build_refine_prompt(draft, topic, experience)

    logger.info("Editor reviewing draft (%d chars)", len(draft))
    try:
        refined = await text_provider.generate(
            prompt,
            model=settings.llm.editor_model,
            temperature=settings.llm.refine_temperature,
            stage=STAGE,
        )
    except Exception as exc:
        logger.warning("Refinement failed, keeping original draft: %s", exc)
        return draft

    refined = (refined or "").strip()
    if len(refined) < MIN_REFINED_CHARS:
        logger.warning(
            "Refined output too short (%d chars), keeping original draft", len(refined)
        )
        return draft

    compare_protected_spans(draft, refined, stage=STAGE)
    logger.info("Refinement complete (%d -> %d chars)", len(draft), len(refined))
    return refined

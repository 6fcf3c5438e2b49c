"""Section drafting stage.

Sections are drafted in sequential batches of ``concurrency``; within a
batch all calls run concurrently and batch N+1 starts only after every
call of batch N has settled. Results land in pre-sized slots by outline
index, so completion order never affects document order. A failing
section gets a placeholder body and never aborts its siblings.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Union

from inkpress.common.config import Settings, settings as default_settings
from inkpress.common.errors import ProviderParseError
from inkpress.common.models import (
    GenerationRequest,
    Outline,
    OutlineSection,
    ResearchContext,
    SectionResult,
    SectionStatus,
)
from inkpress.providers.text import TextProvider

from .prompts import build_section_prompt

logger = logging.getLogger(__name__)

STAGE = "section"

# (result, completed_count, total) -> None
ProgressCallback = Callable[[SectionResult, int, int], Union[None, Awaitable[None]]]


def placeholder_body(heading: str) -> str:
    """Body used when a section could not be generated."""
    return f'(Content generation failed for section "{heading}" due to an API error.)'


async def write_section(
    request: GenerationRequest,
    section: OutlineSection,
    research: ResearchContext,
    text_provider: TextProvider,
    settings: Settings | None = None,
    research_text: Optional[str] = None,
) -> str:
    """Draft the body of one section (without its heading).

    Raises:
        ProviderCallError: The provider call failed.
        ProviderParseError: The provider returned an empty body.
    """
    settings = settings or default_settings
    if research_text is None:
        research_text = research.to_prompt_context()
    prompt = build_section_prompt(
        request, section, research_text, settings.pipeline.content_language
    )
    body = await text_provider.generate(
        prompt,
        model=request.model,
        temperature=settings.llm.section_temperature,
        stage=STAGE,
    )
    if not body or not body.strip():
        raise ProviderParseError(
            f"Empty body for section {section.heading!r}", raw_text=body or "", stage=STAGE
        )
    return body.strip()


async def draft_sections(
    request: GenerationRequest,
    outline: Outline,
    research: ResearchContext,
    text_provider: TextProvider,
    concurrency: Optional[int] = None,
    on_progress: Optional[ProgressCallback] = None,
    settings: Settings | None = None,
) -> list[SectionResult]:
    """Draft every outline section with bounded concurrency.

    Returns:
        One SectionResult per outline section, in outline order, each in a
        terminal state (done or error).
    """
    settings = settings or default_settings
    limit = settings.pipeline.section_concurrency if concurrency is None else concurrency
    if limit < 1:
        raise ValueError("concurrency must be >= 1")

    total = len(outline.sections)
    results: list[SectionResult] = [
        SectionResult(index=i, heading=section.heading)
        for i, section in enumerate(outline.sections)
    ]
    research_text = research.to_prompt_context()
    completed = 0

    async def _notify(result: SectionResult) -> None:
        nonlocal completed
        completed += 1
        if on_progress is None:
            return
        outcome = on_progress(result, completed, total)
        if asyncio.iscoroutine(outcome):
            await outcome

    async def _draft_one(index: int) -> None:
        section = outline.sections[index]
        slot = results[index]
        slot.status = SectionStatus.WRITING
        logger.info("Writing section %d/%d: %s", index + 1, total, section.heading)
        try:
            slot.body = await write_section(
                request, section, research, text_provider,
                settings=settings, research_text=research_text,
            )
            slot.status = SectionStatus.DONE
            logger.info("Section %d done", index + 1)
        except Exception as exc:
            # Isolated: the batch and later batches carry on
            logger.warning("Section %d (%s) failed: %s", index + 1, section.heading, exc)
            slot.body = placeholder_body(section.heading)
            slot.status = SectionStatus.ERROR
            slot.error = str(exc) or type(exc).__name__
        await _notify(slot)

    for start in range(0, total, limit):
        batch = range(start, min(start + limit, total))
        logger.info("Processing batch %d (%d sections)", start // limit + 1, len(batch))
        await asyncio.gather(*(_draft_one(i) for i in batch))

    failed = sum(1 for r in results if r.status == SectionStatus.ERROR)
    if failed:
        logger.warning("%d of %d sections failed and were replaced by placeholders", failed, total)
    return results

"""Competitor (rival) content analysis.

Scrapes a competitor post and asks the text provider how to outperform it.
The resulting insights can steer the outline stage.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from inkpress.common.config import Settings, settings as default_settings
from inkpress.common.errors import ProviderParseError
from inkpress.common.models import ActionResult
from inkpress.providers.scraper import MAX_CONTENT_CHARS, ScrapedPage, scrape_url
from inkpress.providers.text import TextProvider

logger = logging.getLogger(__name__)

STAGE = "rival"


class RivalAnalysis(BaseModel):
    strategy: str = ""  # How to beat the competitor, 1-2 sentences
    weaknesses: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    structure: list[str] = Field(default_factory=list)  # Suggested H2 outline
    tone: str = ""

    def to_prompt_text(self) -> str:
        lines = [f"Strategy: {self.strategy}"]
        if self.weaknesses:
            lines.append("Competitor weaknesses: " + "; ".join(self.weaknesses))
        if self.keywords:
            lines.append("Competitor keywords: " + ", ".join(self.keywords))
        if self.structure:
            lines.append("Suggested structure: " + " | ".join(self.structure))
        if self.tone:
            lines.append(f"Competitor tone: {self.tone}")
        return "\n".join(lines)


def build_rival_prompt(page: ScrapedPage, topic: str) -> str:
    return f"""\
You are a competitive content strategist.
Analyze a competitor's blog post and provide a strategy to OUTPERFORM it.

Competitor URL: {page.url}
My Topic: {topic}

Competitor Content (excerpt):
\"\"\"
{page.content[:MAX_CONTENT_CHARS]}
\"\"\"

INSTRUCTIONS:
1. Analyze the content for depth, logic and SEO structure.
2. Identify WEAKNESSES: what is missing, shallow or outdated?
3. Extract the KEYWORDS they target.
4. Propose a SUPERIOR H2 STRUCTURE that covers their points and adds value.
5. Describe their TONE.

OUTPUT JSON:
{{
  "strategy": "string",
  "weaknesses": ["string"],
  "keywords": ["string"],
  "structure": ["string"],
  "tone": "string"
}}
"""


async def analyze_rival_content(
    page: ScrapedPage,
    topic: str,
    text_provider: TextProvider,
    settings: Settings | None = None,
) -> RivalAnalysis:
    """Analyze an already-scraped competitor page.

    Raises:
        ValueError: The page was not scraped successfully.
        ProviderCallError / ProviderParseError: The analysis call failed.
    """
    if not page.success or not page.content:
        raise ValueError("Invalid scraped data provided for analysis.")
    settings = settings or default_settings

    data = await text_provider.generate_json(
        build_rival_prompt(page, topic),
        model=settings.llm.default_model,
        temperature=settings.llm.outline_temperature,
        stage=STAGE,
    )
    try:
        return RivalAnalysis.model_validate(data)
    except PydanticValidationError as exc:
        raise ProviderParseError(
            "Rival analysis payload has an unexpected shape", raw_text=str(data), stage=STAGE
        ) from exc


async def analyze_rival(
    url: str,
    topic: str,
    text_provider: TextProvider,
    settings: Settings | None = None,
) -> ActionResult:
    """Scrape ``url`` and analyze it. Returns an ActionResult, never raises."""
    page = await asyncio.to_thread(scrape_url, url)
    if not page.success or not page.content:
        return ActionResult(success=False, message=f"Scraping failed: {page.error or 'no content'}")

    try:
        analysis = await analyze_rival_content(page, topic, text_provider, settings)
    except Exception as exc:
        logger.error("Rival analysis failed for %s: %s", url, exc)
        return ActionResult(success=False, message=str(exc) or "Analysis failed")

    logger.info("Rival analysis complete for %s", url)
    return ActionResult(success=True, data=analysis)


async def rival_insights_for(
    url: Optional[str],
    topic: str,
    text_provider: TextProvider,
    settings: Settings | None = None,
) -> Optional[str]:
    """Prompt-ready insights for a rival URL, or None when unavailable."""
    if not url:
        return None
    result = await analyze_rival(url, topic, text_provider, settings)
    if not result.success:
        logger.warning("Continuing without rival insights: %s", result.message)
        return None
    return result.data.to_prompt_text()

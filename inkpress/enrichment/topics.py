"""Topic recommendation from current trends in a category."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from pydantic import BaseModel

from inkpress.common.config import Settings, settings as default_settings
from inkpress.common.models import ActionResult, ResearchContext
from inkpress.providers.research import ResearchProvider
from inkpress.providers.text import TextProvider

logger = logging.getLogger(__name__)

STAGE = "topics"


class RecommendedTopic(BaseModel):
    topic: str
    reason: str = ""
    keywords: str = ""  # Comma-separated, ready for the request form


def build_trend_query(category: str, year: Optional[int] = None) -> str:
    year = year or date.today().year
    return f"{category} trends news {year} hot topics issues"


def build_topics_prompt(category: str, research: ResearchContext, language: str) -> str:
    context = "\n\n".join(f"Title: {r.title}\nContent: {r.content}" for r in research.results)
    return f"""\
You are a content strategist. Based on the latest search results for the
category "{category}", recommend 5 blog post topics likely to attract readers now.

Search results:
{context or "(no search results)"}

For each topic give a one-sentence reason and 3-5 comma-separated keywords.
Write the topics in {language}.

Return JSON: {{"topics": [{{"topic": "string", "reason": "string", "keywords": "k1, k2, k3"}}]}}
"""


async def recommend_topics(
    category: str,
    text_provider: TextProvider,
    research_provider: ResearchProvider,
    settings: Settings | None = None,
) -> ActionResult:
    """Search trends for ``category`` and propose topics. Never raises."""
    settings = settings or default_settings
    try:
        logger.info("Searching trends for category: %s", category)
        research = await research_provider.search(build_trend_query(category), depth="basic")

        data = await text_provider.generate_json(
            build_topics_prompt(category, research, settings.pipeline.content_language),
            model=settings.llm.default_model,
            temperature=0.7,
            stage=STAGE,
        )
        items = data.get("topics", []) if isinstance(data, dict) else data
        topics = []
        for item in items or []:
            if not isinstance(item, dict) or not item.get("topic"):
                continue
            keywords = item.get("keywords", "")
            if isinstance(keywords, list):
                keywords = ", ".join(str(k) for k in keywords)
            topics.append(
                RecommendedTopic(
                    topic=str(item["topic"]),
                    reason=str(item.get("reason", "")),
                    keywords=str(keywords),
                )
            )
    except Exception as exc:
        logger.error("Topic recommendation failed: %s", exc)
        return ActionResult(success=False, message=str(exc) or "Failed to recommend topics.")

    if not topics:
        return ActionResult(success=False, message="No topics could be recommended.")
    return ActionResult(success=True, data=topics)

"""SEO planning: target keywords, search intent, H2 ideas and FAQ pairs.

The strategy steers the outline stage and feeds the JSON-LD schema markup
stored with the post. Planning never fails the request: research or LLM
failures fall back to a topic-derived strategy.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Optional

from inkpress.common.config import Settings, settings as default_settings
from inkpress.common.errors import ProviderParseError
from inkpress.common.models import FAQItem, ResearchContext, SearchIntent, SeoStrategy
from inkpress.providers.research import ResearchProvider
from inkpress.providers.text import TextProvider

logger = logging.getLogger(__name__)

STAGE = "seo.plan"
CONTEXT_CHAR_LIMIT = 8000

_H1_TEXT_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)


def fallback_strategy(topic: str) -> SeoStrategy:
    return SeoStrategy(
        target_keywords=[topic, f"{topic} guide", f"{topic} tips"],
        search_intent=SearchIntent.INFORMATIONAL,
        h2_suggestions=[
            f"Introduction to {topic}",
            "Key Benefits",
            f"How to Master {topic}",
            "Conclusion",
        ],
        faq_section=[FAQItem(question=f"What is {topic}?", answer=f"{topic} is a key concept in its field.")],
    )


def build_seo_plan_prompt(topic: str, research: ResearchContext) -> str:
    snippets = "\n".join(f"- {r.title}: {r.content}" for r in research.results)
    return f"""\
You are an elite SEO strategist. Plan a blog post that ranks #1 on Google for the topic: "{topic}".

Top-ranking content snippets:
{snippets[:CONTEXT_CHAR_LIMIT] or "(no search context available)"}

Generate an SEO strategy as JSON:
1. targetKeywords: 1 main keyword + 3-4 secondary keywords.
2. searchIntent: one of Informational, Commercial, Transactional, Navigational.
3. h2Suggestions: 4-6 compelling H2 headings that include keywords.
4. faqSection: 3-5 "People Also Ask" questions with concise answers.

JSON Output Format:
{{
  "targetKeywords": ["string"],
  "searchIntent": "string",
  "h2Suggestions": ["string"],
  "faqSection": [{{"question": "string", "answer": "string"}}]
}}
"""


async def plan_seo_strategy(
    topic: str,
    text_provider: TextProvider,
    research_provider: Optional[ResearchProvider] = None,
    settings: Settings | None = None,
) -> SeoStrategy:
    """Plan an SeoStrategy for ``topic``; never raises."""
    settings = settings or default_settings
    research = ResearchContext.empty(topic)
    if research_provider is not None:
        try:
            research = await research_provider.search(topic, depth="basic")
        except Exception as exc:
            logger.warning("SEO planner research unavailable: %s", exc)

    try:
        data = await text_provider.generate_json(
            build_seo_plan_prompt(topic, research),
            model=settings.llm.default_model,
            temperature=settings.llm.outline_temperature,
            stage=STAGE,
        )
        if not isinstance(data, dict):
            raise ProviderParseError("SEO strategy payload is not an object", stage=STAGE)
        strategy = SeoStrategy(
            target_keywords=data.get("targetKeywords") or [],
            search_intent=data.get("searchIntent") or SearchIntent.INFORMATIONAL,
            h2_suggestions=data.get("h2Suggestions") or [],
            faq_section=data.get("faqSection") or [],
        )
        if not strategy.target_keywords:
            raise ProviderParseError("SEO strategy has no target keywords", stage=STAGE)
    except Exception as exc:
        logger.warning("SEO planning failed, using fallback strategy: %s", exc)
        return fallback_strategy(topic)

    logger.info(
        "SEO strategy: %s (%s)", strategy.target_keywords[0], strategy.search_intent.value
    )
    return strategy


def build_schema_markup(
    strategy: SeoStrategy,
    content: str,
    author: Optional[str] = None,
    published_at: Optional[datetime] = None,
) -> str:
    """JSON-LD array of an Article and an FAQPage schema."""
    match = _H1_TEXT_RE.search(content)
    if match:
        headline = match.group(1).strip()
    else:
        headline = strategy.target_keywords[0] if strategy.target_keywords else ""

    article = {
        "@context": "https://schema.org",
        "@type": "Article",
        "headline": headline,
        "datePublished": (published_at or datetime.now()).isoformat(),
        "author": {
            "@type": "Person",
            "name": author or default_settings.pipeline.author_name,
        },
    }
    faq = {
        "@context": "https://schema.org",
        "@type": "FAQPage",
        "mainEntity": [
            {
                "@type": "Question",
                "name": item.question,
                "acceptedAnswer": {"@type": "Answer", "text": item.answer},
            }
            for item in strategy.faq_section
        ],
    }
    return json.dumps([article, faq], ensure_ascii=False, indent=2)

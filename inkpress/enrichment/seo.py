"""SEO analysis and optimization.

Analysis combines the local heuristic score with an optional LLM review;
the two scores are averaged when both exist, otherwise the local score
stands alone. Optimization rewrites the post to apply suggestions while
leaving protected spans (tables, diagrams, callouts) untouched.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Any, Optional

from pydantic import BaseModel, Field

from inkpress.common.config import Settings, settings as default_settings
from inkpress.common.errors import ProviderCallError, ProviderParseError
from inkpress.common.models import ActionResult
from inkpress.providers.text import TextProvider
from inkpress.writer.prompts import PROTECTED_SPANS_RULES
from inkpress.writer.structure import compare_protected_spans

from .seo_local import LocalSeoScore, analyze_local_seo, round_half_up

logger = logging.getLogger(__name__)

META_TITLE_MAX = 60
META_DESCRIPTION_MAX = 160

_H1_TEXT_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_TOKEN_RE = re.compile(r"[^\W\d_][\w-]{2,}", re.UNICODE)
_STOPWORDS = frozenset(
    "the and for with that this from are was were have has you your not but "
    "can will into about what when which their they them more than also how".split()
)


class SeoReport(BaseModel):
    """Combined SEO analysis."""
    score: int
    meta_title: str
    meta_description: str
    keywords: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    local: LocalSeoScore
    llm_score: Optional[int] = None
    warnings: list[str] = Field(default_factory=list)


class OptimizationResult(BaseModel):
    content: str
    warnings: list[str] = Field(default_factory=list)


def build_seo_analysis_prompt(content: str, topic: str, limit: int) -> str:
    return f"""\
You are a Google SEO expert. Analyze the following blog post based on the topic: "{topic}".

Provide a JSON response with the following fields:
1. seoScore: a number between 0 and 100 indicating the SEO quality.
2. metaTitle: an optimized HTML title tag (max {META_TITLE_MAX} chars).
3. metaDescription: an optimized meta description (max {META_DESCRIPTION_MAX} chars).
4. keywords: an array of 5 important keywords extracted from the text.
5. suggestions: an array of 3-5 specific, actionable improvements.

Content:
{content[:limit]}
"""


def build_optimize_prompt(content: str, suggestions: list[str], language: str) -> str:
    items = "\n".join(f"- {s}" for s in suggestions)
    return f"""\
You are a professional content editor.
Rewrite the blog post below to apply the SEO suggestions, while strictly
preserving its structure and formatting.

SEO suggestions to apply:
{items}

CONSTRAINTS:
1. Do NOT change the markdown structure (headings, lists, emphasis).
2. Protected content:
{PROTECTED_SPANS_RULES}
3. Do NOT add new facts or change the meaning. Only improve clarity and keyword usage.
4. Keep the content in {language}.
5. Return ONLY the rewritten markdown.

Original Content:
{content}
"""


def extract_keywords(content: str, limit: int = 5) -> list[str]:
    """Most frequent content words, for when no LLM keywords are available."""
    tokens = [t.lower() for t in _TOKEN_RE.findall(content)]
    counts = Counter(t for t in tokens if t not in _STOPWORDS)
    return [word for word, _ in counts.most_common(limit)]


def local_meta(content: str, topic: str) -> tuple[str, str]:
    """Meta title/description derived from the document itself."""
    match = _H1_TEXT_RE.search(content)
    title = (match.group(1).strip() if match else topic)[:META_TITLE_MAX]

    description = ""
    for block in content.split("\n\n"):
        block = block.strip()
        if block and not block.startswith(("#", "|", ">", "```", "!", "-", "*")):
            description = " ".join(block.split())
            break
    return title, description[:META_DESCRIPTION_MAX]


def _coerce_score(value: Any) -> Optional[int]:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    return min(100, max(0, round_half_up(score)))


async def analyze_seo(
    content: str,
    topic: str,
    text_provider: Optional[TextProvider] = None,
    keyword: Optional[str] = None,
    settings: Settings | None = None,
) -> SeoReport:
    """Analyze ``content``. LLM failures degrade to the local analysis."""
    settings = settings or default_settings
    local = analyze_local_seo(content, keyword or topic)
    meta_title, meta_description = local_meta(content, topic)
    keywords = extract_keywords(content)
    suggestions = list(local.issues)
    warnings: list[str] = []
    llm_score: Optional[int] = None

    if text_provider is not None:
        try:
            data = await text_provider.generate_json(
                build_seo_analysis_prompt(content, topic, settings.pipeline.seo_content_limit),
                model=settings.llm.default_model,
                temperature=settings.llm.optimize_temperature,
                stage="seo.analyze",
            )
            if not isinstance(data, dict):
                raise ProviderParseError("SEO payload is not an object", stage="seo.analyze")
            llm_score = _coerce_score(data.get("seoScore"))
            meta_title = str(data.get("metaTitle") or meta_title)[:META_TITLE_MAX]
            meta_description = str(data.get("metaDescription") or meta_description)[
                :META_DESCRIPTION_MAX
            ]
            keywords = [str(k) for k in data.get("keywords") or []] or keywords
            llm_suggestions = [str(s) for s in data.get("suggestions") or []]
            suggestions = llm_suggestions + [s for s in suggestions if s not in llm_suggestions]
        except Exception as exc:
            logger.warning("LLM SEO analysis unavailable, using local score only: %s", exc)
            warnings.append(f"LLM analysis unavailable: {exc}")

    if llm_score is not None:
        score = round_half_up((llm_score + local.total_score) / 2)
    else:
        score = local.total_score

    return SeoReport(
        score=score,
        meta_title=meta_title,
        meta_description=meta_description,
        keywords=keywords,
        suggestions=suggestions,
        local=local,
        llm_score=llm_score,
        warnings=warnings,
    )


async def optimize_content(
    content: str,
    suggestions: list[str],
    text_provider: TextProvider,
    settings: Settings | None = None,
) -> OptimizationResult:
    """Rewrite ``content`` to apply ``suggestions``.

    Raises:
        ProviderCallError: The provider failed or returned nothing.
    """
    settings = settings or default_settings
    prompt = build_optimize_prompt(content, suggestions, settings.pipeline.content_language)
    try:
        rewritten = await text_provider.generate(
            prompt,
            model=settings.llm.editor_model,
            temperature=settings.llm.optimize_temperature,
            stage="seo.optimize",
        )
    except ProviderCallError:
        raise
    except Exception as exc:
        raise ProviderCallError(str(exc), stage="seo.optimize") from exc

    rewritten = (rewritten or "").strip()
    if not rewritten:
        raise ProviderCallError("Optimizer returned empty content", stage="seo.optimize")

    warnings = compare_protected_spans(content, rewritten, stage="seo.optimize")
    return OptimizationResult(content=rewritten, warnings=warnings)


async def run_seo_analysis(
    content: str,
    topic: str,
    text_provider: Optional[TextProvider] = None,
    keyword: Optional[str] = None,
) -> ActionResult:
    try:
        report = await analyze_seo(content, topic, text_provider, keyword)
    except Exception as exc:
        logger.error("SEO analysis failed: %s", exc)
        return ActionResult(success=False, message="Failed to analyze content.")
    return ActionResult(success=True, data=report)


async def run_optimization(
    content: str,
    suggestions: list[str],
    text_provider: TextProvider,
) -> ActionResult:
    try:
        result = await optimize_content(content, suggestions, text_provider)
    except Exception as exc:
        logger.error("Content optimization failed: %s", exc)
        return ActionResult(success=False, message="Failed to optimize content.")
    return ActionResult(success=True, data=result)

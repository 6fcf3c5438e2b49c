"""Tests for SEO analysis (local + LLM) and content optimization."""

import json

import pytest

from inkpress.common.errors import ProviderCallError
from inkpress.enrichment.seo import (
    analyze_seo,
    extract_keywords,
    local_meta,
    optimize_content,
    run_optimization,
    run_seo_analysis,
)
from inkpress.enrichment.seo_local import analyze_local_seo, round_half_up

CONTENT = (
    "# Remote Work Productivity Guide\n\n"
    "Remote work rewards deliberate routines. Focus blocks protect deep work.\n\n"
    "## Key Takeaways\n\n- Plan your day.\n\n"
    "| Tool | Use |\n|---|---|\n| Timer | Focus blocks |\n"
)

LLM_REPORT = json.dumps({
    "seoScore": 81,
    "metaTitle": "Remote Work Productivity: A Practical Guide",
    "metaDescription": "Routines and focus blocks that make remote work productive.",
    "keywords": ["remote work", "productivity"],
    "suggestions": ["Add an FAQ section."],
})


class TestAnalyzeSeo:
    async def test_scores_are_averaged(self, make_text_provider):
        local_total = analyze_local_seo(CONTENT, "Remote work").total_score

        report = await analyze_seo(CONTENT, "Remote work", make_text_provider({"seo.analyze": LLM_REPORT}))

        assert report.llm_score == 81
        assert report.score == round_half_up((81 + local_total) / 2)
        assert report.meta_title == "Remote Work Productivity: A Practical Guide"
        assert report.keywords == ["remote work", "productivity"]
        assert report.suggestions[0] == "Add an FAQ section."

    async def test_local_only_without_provider(self):
        report = await analyze_seo(CONTENT, "Remote work")

        assert report.llm_score is None
        assert report.score == report.local.total_score
        assert report.meta_title == "Remote Work Productivity Guide"
        assert report.meta_description.startswith("Remote work rewards deliberate routines.")

    async def test_topic_drives_keyword_density(self):
        report = await analyze_seo(CONTENT, "quantum batteries")

        assert report.local.keyword_score == 50
        assert report.local == analyze_local_seo(CONTENT, "quantum batteries")
        assert any("'quantum batteries' density is too low" in s for s in report.suggestions)

    async def test_explicit_keyword_overrides_topic(self):
        report = await analyze_seo(CONTENT, "quantum batteries", keyword="remote work")
        assert report.local == analyze_local_seo(CONTENT, "remote work")

    async def test_llm_failure_degrades_with_warning(self, make_text_provider):
        report = await analyze_seo(CONTENT, "Remote work", make_text_provider({"seo.analyze": ProviderCallError("down")}))

        assert report.score == report.local.total_score
        assert report.warnings and "LLM analysis unavailable" in report.warnings[0]

    async def test_llm_score_is_clamped(self, make_text_provider):
        payload = json.dumps({"seoScore": 140})
        report = await analyze_seo(CONTENT, "Remote work", make_text_provider({"seo.analyze": payload}))
        assert report.llm_score == 100

    async def test_action_wrapper(self, make_text_provider):
        result = await run_seo_analysis(CONTENT, "Remote work", make_text_provider({"seo.analyze": LLM_REPORT}))
        assert result.success
        assert result.data.llm_score == 81


class TestHelpers:
    def test_local_meta_uses_h1_and_first_paragraph(self):
        title, description = local_meta(CONTENT, "fallback topic")
        assert title == "Remote Work Productivity Guide"
        assert description == "Remote work rewards deliberate routines. Focus blocks protect deep work."

    def test_local_meta_without_h1(self):
        assert local_meta("plain text", "Topic")[0] == "Topic"

    def test_extract_keywords_skips_stopwords(self):
        keywords = extract_keywords("focus focus focus and and and the the deep deep work")
        assert keywords[:2] == ["focus", "deep"]
        assert "and" not in keywords


class TestOptimizeContent:
    async def test_returns_rewrite_with_span_warnings(self, make_text_provider):
        rewritten = CONTENT.replace("| Tool | Use |\n|---|---|\n| Timer | Focus blocks |\n", "Use a timer.\n")
        provider = make_text_provider({"seo.optimize": rewritten})

        result = await optimize_content(CONTENT, ["Add keywords"], provider)

        assert result.content == rewritten.strip()
        assert result.warnings == ["tables: 1 before, 0 after"]
        assert provider.calls_for("seo.optimize")[0]["model"] == "gpt-4o"

    async def test_failure_raises(self, make_text_provider):
        with pytest.raises(ProviderCallError):
            await optimize_content(CONTENT, ["x"], make_text_provider({"seo.optimize": ProviderCallError("down")}))

    async def test_empty_rewrite_raises(self, make_text_provider):
        with pytest.raises(ProviderCallError):
            await optimize_content(CONTENT, ["x"], make_text_provider({"seo.optimize": ""}))

    async def test_action_wrapper_reports_failure(self, make_text_provider):
        result = await run_optimization(CONTENT, ["x"], make_text_provider({"seo.optimize": ProviderCallError("down")}))
        assert not result.success
        assert result.message == "Failed to optimize content."

"""Tests for the outline stage."""

import json

import pytest

from inkpress.common.errors import ProviderCallError, ProviderParseError
from inkpress.common.models import GenerationModel, Outline, OutlineSection
from inkpress.writer.outline import check_outline_shape, generate_outline

OUTLINE_JSON = json.dumps({
    "title": "Remote Work Productivity Guide",
    "sections": [
        {"heading": "Key Takeaways", "key_points": ["Summary"]},
        {"heading": "Why Focus Matters", "key_points": ["Attention"]},
        {"heading": "FAQ", "key_points": ["Questions"]},
    ],
})


class TestGenerateOutline:
    async def test_parses_outline(self, make_text_provider, sample_request, sample_research, test_settings):
        provider = make_text_provider({"outline": OUTLINE_JSON})

        outline = await generate_outline(sample_request, sample_research, provider, settings=test_settings)

        assert outline.title == "Remote Work Productivity Guide"
        assert [s.heading for s in outline.sections] == ["Key Takeaways", "Why Focus Matters", "FAQ"]
        call = provider.calls_for("outline")[0]
        assert call["json_output"] is True
        assert call["model"] == GenerationModel.GPT_4O_MINI
        assert call["temperature"] == pytest.approx(0.2)

    async def test_prompt_carries_research_and_keywords(self, make_text_provider, sample_request, sample_research):
        provider = make_text_provider({"outline": OUTLINE_JSON})
        await generate_outline(sample_request, sample_research, provider)

        prompt = provider.calls_for("outline")[0]["prompt"]
        assert "Remote work productivity" in prompt
        assert "[1] Title: State of Remote Work 2025" in prompt
        assert "remote work, productivity" in prompt

    async def test_payload_wrapped_in_prose(self, make_text_provider, sample_request, sample_research):
        provider = make_text_provider({"outline": f"Here you go:\n```json\n{OUTLINE_JSON}\n```"})
        outline = await generate_outline(sample_request, sample_research, provider)
        assert len(outline.sections) == 3

    async def test_single_element_list_is_unwrapped(self, make_text_provider, sample_request, sample_research):
        provider = make_text_provider({"outline": f"[{OUTLINE_JSON}]"})
        outline = await generate_outline(sample_request, sample_research, provider)
        assert outline.title == "Remote Work Productivity Guide"

    async def test_missing_payload_is_fatal(self, make_text_provider, sample_request, sample_research):
        provider = make_text_provider({"outline": "Sorry, I can't do that."})
        with pytest.raises(ProviderParseError):
            await generate_outline(sample_request, sample_research, provider)

    async def test_wrong_shape_is_fatal(self, make_text_provider, sample_request, sample_research):
        provider = make_text_provider({"outline": '{"title": "No sections", "sections": []}'})
        with pytest.raises(ProviderParseError) as exc_info:
            await generate_outline(sample_request, sample_research, provider)
        assert exc_info.value.stage == "outline"

    async def test_provider_failure_propagates(self, make_text_provider, sample_request, sample_research):
        provider = make_text_provider({"outline": ProviderCallError("timeout", provider="openai", stage="outline")})
        with pytest.raises(ProviderCallError):
            await generate_outline(sample_request, sample_research, provider)


class TestOutlineShape:
    def test_conforming_outline_has_no_warnings(self, sample_outline):
        assert check_outline_shape(sample_outline) == []

    def test_reports_deviations_without_rewriting(self):
        outline = Outline(
            title="T",
            sections=[
                OutlineSection(heading="1. Introduction"),
                OutlineSection(heading="Conclusion"),
            ],
        )
        warnings = check_outline_shape(outline)

        assert any("expected 5-8 sections" in w for w in warnings)
        assert any("key-takeaways" in w for w in warnings)
        assert any("FAQ" in w for w in warnings)
        assert any("numbered heading" in w for w in warnings)
        assert outline.sections[0].heading == "1. Introduction"

"""Tests for shared common modules — models, errors, config."""

import logging

import pytest

from inkpress.common.config import ProviderCredentials, Settings
from inkpress.common.errors import ConfigurationError, PipelineError, ValidationError
from inkpress.common.logging import setup_logging
from inkpress.common.models import (
    GenerationModel,
    GenerationRequest,
    LLMProvider,
    PostLength,
    ResearchContext,
    SectionResult,
    SectionStatus,
    Tone,
)


class TestGenerationRequest:
    def test_topic_is_trimmed(self):
        request = GenerationRequest.parse({"topic": "   Quantum computing  ", "tone": "witty", "length": "short"})
        assert request.topic == "Quantum computing"
        assert request.tone == Tone.WITTY
        assert request.length == PostLength.SHORT

    def test_keywords_from_comma_string(self):
        request = GenerationRequest.parse(
            {"topic": "LLM agents", "tone": "professional", "length": "long", "keywords": "LLM, GPT-4, , automation"}
        )
        assert request.keywords == ["LLM", "GPT-4", "automation"]
        assert request.keywords_text == "LLM, GPT-4, automation"

    def test_empty_keywords_text(self):
        request = GenerationRequest(topic="LLM agents", tone=Tone.FRIENDLY, length=PostLength.MEDIUM)
        assert request.keywords_text == "N/A"

    def test_short_topic_after_trim_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            GenerationRequest.parse({"topic": "  abcd   ", "tone": "professional", "length": "medium"})
        assert exc_info.value.field_errors == {"topic": ["Topic must be at least 5 characters."]}
        assert exc_info.value.stage == "validation"

    def test_unknown_tone_is_reported_per_field(self):
        with pytest.raises(ValidationError) as exc_info:
            GenerationRequest.parse({"topic": "Valid topic", "tone": "angry", "length": "medium"})
        assert list(exc_info.value.field_errors) == ["tone"]

    def test_request_is_immutable(self, sample_request):
        with pytest.raises(Exception):
            sample_request.topic = "changed"

    def test_model_provider(self):
        assert GenerationModel.CLAUDE_SONNET.provider == LLMProvider.ANTHROPIC
        assert GenerationModel.GPT_4O.provider == LLMProvider.OPENAI


class TestResearchContext:
    def test_empty_context_renders_nothing(self):
        context = ResearchContext.empty("q")
        assert context.is_empty
        assert context.to_prompt_context() == ""

    def test_titles_are_single_line(self, sample_research):
        text = sample_research.model_copy(
            update={"results": [sample_research.results[0].model_copy(update={"title": "Multi\nline  title"})]}
        ).to_prompt_context()
        assert "[1] Title: Multi line title\n" in text


class TestSectionResult:
    def test_render(self):
        section = SectionResult(index=0, heading="Intro", body="\nHello.\n", status=SectionStatus.DONE)
        assert section.render() == "## Intro\n\nHello."
        assert section.is_terminal

    def test_pending_is_not_terminal(self):
        assert not SectionResult(index=0, heading="Intro").is_terminal


class TestErrors:
    def test_configuration_error_is_pipeline_error(self):
        err = ConfigurationError("missing key", stage="config")
        assert isinstance(err, PipelineError)
        assert str(err) == "missing key"
        assert err.stage == "config"


class TestConfig:
    def test_defaults(self):
        settings = Settings()
        assert settings.pipeline.section_concurrency == 2
        assert settings.llm.editor_model == "gpt-4o"
        assert settings.image.fallback_width == 1280

    def test_load_from_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("pipeline:\n  section_concurrency: 4\n  content_language: English\n", encoding="utf-8")

        settings = Settings.load(path)

        assert settings.pipeline.section_concurrency == 4
        assert settings.pipeline.content_language == "English"
        assert settings.llm.default_model == "gpt-4o-mini"

    def test_missing_file_uses_defaults(self, tmp_path):
        assert Settings.load(tmp_path / "absent.yaml") == Settings()

    def test_project_settings_file_loads(self, project_root):
        settings = Settings.load(project_root / "config" / "settings.yaml")
        assert settings.storage.bucket == "post-assets"

    def test_credentials_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("SUPABASE_URL", "")
        monkeypatch.setenv("NEXT_PUBLIC_SUPABASE_URL", "https://proj.supabase.co")

        creds = ProviderCredentials.from_env()

        assert creds.openai_api_key == "sk-test"
        assert creds.supabase_url == "https://proj.supabase.co"

    def test_require_missing_credential(self):
        with pytest.raises(ConfigurationError, match="TAVILY_API_KEY"):
            ProviderCredentials().require("tavily_api_key")


class TestLogging:
    def test_setup_logging_is_idempotent(self):
        logger = setup_logging(level=logging.DEBUG, module_name="inkpress.test")
        again = setup_logging(module_name="inkpress.test")
        assert logger is again
        assert len(logger.handlers) == 1

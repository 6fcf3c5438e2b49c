"""Shared test fixtures for Inkpress."""

import asyncio
import re
import sys
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

# Ensure inkpress is importable
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from inkpress.common.config import ProviderCredentials, Settings
from inkpress.common.models import (
    GenerationRequest,
    Outline,
    OutlineSection,
    PostLength,
    ResearchContext,
    ResearchResult,
    Tone,
)
from inkpress.providers.research import ResearchProvider
from inkpress.providers.text import TextProvider
from inkpress.publisher.repository import InMemoryPostRepository

_SECTION_RE = re.compile(r"^Current Section: (.+)$", re.MULTILINE)


def section_heading(prompt: str) -> str:
    """Heading a section prompt was built for."""
    match = _SECTION_RE.search(prompt)
    return match.group(1).strip() if match else ""


class FakeTextProvider(TextProvider):
    """TextProvider that answers from per-stage handlers instead of an API.

    A handler is a string, an exception instance (raised), or a callable
    taking the prompt and returning either of those (sync or async).
    ``generate_json`` is inherited, so JSON extraction runs for real.
    """

    def __init__(self, handlers: Optional[dict[str, Any]] = None, default: Any = ""):
        super().__init__(ProviderCredentials(), Settings())
        self.handlers = dict(handlers or {})
        self.default = default
        self.calls: list[dict] = []

    async def generate(self, prompt: str, *, stage: str = "", **kwargs: Any) -> str:
        self.calls.append({"prompt": prompt, "stage": stage, **kwargs})
        handler = self.handlers.get(stage, self.default)
        if callable(handler) and not isinstance(handler, BaseException):
            handler = handler(prompt)
            if asyncio.iscoroutine(handler):
                handler = await handler
        if isinstance(handler, BaseException):
            raise handler
        return handler

    def calls_for(self, stage: str) -> list[dict]:
        return [c for c in self.calls if c["stage"] == stage]


class FakeResearchProvider(ResearchProvider):
    """ResearchProvider returning a canned context or raising an error."""

    def __init__(self, context: Optional[ResearchContext] = None, error: Optional[Exception] = None):
        super().__init__(ProviderCredentials(tavily_api_key="test-key"), Settings())
        self.context = context
        self.error = error
        self.queries: list[tuple[str, Optional[str]]] = []

    async def search(self, query: str, depth: Optional[str] = None) -> ResearchContext:
        self.queries.append((query, depth))
        if self.error is not None:
            raise self.error
        return self.context or ResearchContext.empty(query)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def test_settings() -> Settings:
    """Default settings, independent of config/settings.yaml."""
    return Settings()


@pytest.fixture
def sample_request() -> GenerationRequest:
    return GenerationRequest(
        topic="Remote work productivity",
        keywords=["remote work", "productivity"],
        tone=Tone.PROFESSIONAL,
        length=PostLength.MEDIUM,
    )


@pytest.fixture
def sample_research() -> ResearchContext:
    return ResearchContext(
        query="Remote work productivity",
        answer="Remote workers report higher focus with structured schedules.",
        results=[
            ResearchResult(
                title="State of Remote Work 2025",
                url="https://example.com/state-of-remote",
                content="Survey of 3,000 remote employees.",
                score=0.92,
            ),
            ResearchResult(
                title="Deep Work at Home",
                url="https://example.org/deep-work",
                content="Techniques for uninterrupted focus.",
                score=0.81,
            ),
        ],
    )


@pytest.fixture
def sample_outline() -> Outline:
    return Outline(
        title="Remote Work Productivity Guide",
        sections=[
            OutlineSection(heading="Key Takeaways", key_points=["Summary"]),
            OutlineSection(heading="Why Focus Matters", key_points=["Attention"]),
            OutlineSection(heading="Designing Your Day", key_points=["Time blocks"]),
            OutlineSection(heading="Tools That Help", key_points=["Apps"]),
            OutlineSection(heading="FAQ", key_points=["Common questions"]),
        ],
    )


@pytest.fixture
def make_text_provider() -> Callable[..., FakeTextProvider]:
    return FakeTextProvider


@pytest.fixture
def make_research_provider() -> Callable[..., FakeResearchProvider]:
    return FakeResearchProvider


@pytest.fixture
def repository() -> InMemoryPostRepository:
    return InMemoryPostRepository()

"""Error taxonomy shared by every stage of the generation pipeline."""

from __future__ import annotations

from typing import Optional


class PipelineError(Exception):
    """Base class for pipeline errors.

    Args:
        message: Human-readable description.
        stage: Pipeline stage that raised (e.g. "outline", "audio.speech").
    """

    def __init__(self, message: str, stage: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, stage={self.stage!r})"


class ConfigurationError(PipelineError):
    """A required credential or setting is missing. Never retried."""


class ValidationError(PipelineError):
    """Request fields failed validation before any provider call."""

    def __init__(
        self,
        message: str,
        field_errors: Optional[dict[str, list[str]]] = None,
        stage: str = "validation",
    ) -> None:
        super().__init__(message, stage=stage)
        self.field_errors = field_errors or {}


class ProviderCallError(PipelineError):
    """Network or API failure talking to an external provider."""

    def __init__(self, message: str, provider: str = "", stage: str = "") -> None:
        super().__init__(message, stage=stage)
        self.provider = provider


class ProviderParseError(PipelineError):
    """Provider response did not contain the expected structured payload."""

    def __init__(self, message: str, raw_text: str = "", stage: str = "") -> None:
        super().__init__(message, stage=stage)
        self.raw_text = raw_text

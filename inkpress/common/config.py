"""Project configuration and paths.

Loads tunables from config/settings.yaml and credentials from environment
variables. Credentials are collected once into ProviderCredentials and
handed to providers explicitly; stage functions never read the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .errors import ConfigurationError

# === Paths ===
PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_DIR = PROJECT_ROOT / "config"
DATA_DIR = PROJECT_ROOT / "data"
DATA_EXPORTS_DIR = DATA_DIR / "exports"

# Load .env from project root
load_dotenv(PROJECT_ROOT / ".env")


class LLMSettings(BaseModel):
    """Text generation settings."""
    default_model: str = "gpt-4o-mini"
    editor_model: str = "gpt-4o"
    script_model: str = "gpt-4o-mini"
    max_tokens: int = 4096
    outline_temperature: float = 0.2
    section_temperature: float = 0.2
    refine_temperature: float = 0.1
    optimize_temperature: float = 0.2


class PipelineSettings(BaseModel):
    """Generation pipeline settings."""
    section_concurrency: int = Field(default=2, ge=1)
    content_language: str = "Korean"
    seo_content_limit: int = 10_000
    author_name: str = "Inkpress AI"


class ImageSettings(BaseModel):
    """Cover image generation settings."""
    model: str = "gpt-image-1"
    size: str = "1536x1024"
    fallback_base_url: str = "https://image.pollinations.ai/prompt"
    fallback_width: int = 1280
    fallback_height: int = 720
    max_width: int = 1600
    max_height: int = 900
    quality: int = 85


class SpeechSettings(BaseModel):
    """Text-to-speech settings."""
    model: str = "tts-1"
    voice: str = "onyx"


class ResearchSettings(BaseModel):
    """Tavily research settings."""
    endpoint: str = "https://api.tavily.com/search"
    timeout_seconds: float = 15.0
    max_results: int = 5
    default_depth: str = "advanced"


class StorageSettings(BaseModel):
    """Supabase Storage settings."""
    bucket: str = "post-assets"
    cover_prefix: str = "covers"
    audio_prefix: str = "audio"


class Settings(BaseModel):
    """Top-level application settings."""
    llm: LLMSettings = Field(default_factory=LLMSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    image: ImageSettings = Field(default_factory=ImageSettings)
    speech: SpeechSettings = Field(default_factory=SpeechSettings)
    research: ResearchSettings = Field(default_factory=ResearchSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> Settings:
        """Load settings from config/settings.yaml, falling back to defaults."""
        settings_path = path or CONFIG_DIR / "settings.yaml"
        if settings_path.exists():
            with open(settings_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            return cls(**data)
        return cls()


# Credential name → environment variable(s), first non-empty wins
CREDENTIAL_ENV_MAP: dict[str, tuple[str, ...]] = {
    "openai_api_key": ("OPENAI_API_KEY",),
    "anthropic_api_key": ("ANTHROPIC_API_KEY",),
    "tavily_api_key": ("TAVILY_API_KEY",),
    "supabase_url": ("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL"),
    "supabase_key": ("SUPABASE_SERVICE_KEY",),
}


@dataclass(frozen=True)
class ProviderCredentials:
    """API credentials passed into provider constructors at pipeline start."""

    openai_api_key: str = ""
    anthropic_api_key: str = ""
    tavily_api_key: str = ""
    supabase_url: str = ""
    supabase_key: str = ""

    @classmethod
    def from_env(cls) -> ProviderCredentials:
        """Collect credentials from the process environment."""
        values = {}
        for name, env_vars in CREDENTIAL_ENV_MAP.items():
            values[name] = next(
                (os.getenv(var, "") for var in env_vars if os.getenv(var, "")),
                "",
            )
        return cls(**values)

    def require(self, name: str) -> str:
        """Return a credential or raise ConfigurationError if it is empty."""
        value = getattr(self, name, "")
        if not value:
            env_hint = " / ".join(CREDENTIAL_ENV_MAP.get(name, (name.upper(),)))
            raise ConfigurationError(
                f"{env_hint} is not set. Add it to .env or the environment.",
                stage="config",
            )
        return value


# Singleton settings instance
settings = Settings.load()

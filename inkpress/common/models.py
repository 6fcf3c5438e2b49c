"""Shared Pydantic data models for Inkpress.

These models define the data contracts between the research, writer,
enrichment and publisher packages. All modules import from here.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

MIN_TOPIC_LENGTH = 5


# === Enums ===

class Tone(str, Enum):
    """Writing tone requested by the user."""
    PROFESSIONAL = "professional"
    FRIENDLY = "friendly"
    WITTY = "witty"


class PostLength(str, Enum):
    """Target article length."""
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class GenerationModel(str, Enum):
    """Generation models selectable per request."""
    GPT_4O_MINI = "gpt-4o-mini"
    GPT_4O = "gpt-4o"
    CLAUDE_SONNET = "claude-sonnet-4-5-20250929"

    @property
    def provider(self) -> LLMProvider:
        if self.value.startswith("claude"):
            return LLMProvider.ANTHROPIC
        return LLMProvider.OPENAI


class SectionStatus(str, Enum):
    """Lifecycle of a drafted section."""
    PENDING = "pending"
    WRITING = "writing"
    DONE = "done"
    ERROR = "error"


class PostStatus(str, Enum):
    """Persisted post status."""
    DRAFT = "DRAFT"
    COMPLETED = "COMPLETED"


class SearchIntent(str, Enum):
    """Primary search intent for a topic."""
    INFORMATIONAL = "Informational"
    COMMERCIAL = "Commercial"
    TRANSACTIONAL = "Transactional"
    NAVIGATIONAL = "Navigational"


class SocialPlatform(str, Enum):
    """Social platforms a post can be repackaged for."""
    INSTAGRAM = "instagram"
    TWITTER = "twitter"
    LINKEDIN = "linkedin"


# === Request ===

class GenerationRequest(BaseModel):
    """What the user asked for. Immutable once submitted."""
    model_config = ConfigDict(frozen=True)

    topic: str = Field(min_length=MIN_TOPIC_LENGTH)
    keywords: list[str] = Field(default_factory=list)
    tone: Tone
    length: PostLength
    include_image: bool = False
    model: GenerationModel = GenerationModel.GPT_4O_MINI
    experience: Optional[str] = None  # Personal anecdote used by refinement
    rival_url: Optional[str] = None

    @field_validator("topic", mode="before")
    @classmethod
    def _strip_topic(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("keywords", mode="before")
    @classmethod
    def _split_keywords(cls, value: Any) -> Any:
        """Accept "LLM, GPT-4, automation" as well as a list."""
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple)):
            return [str(k).strip() for k in value if str(k).strip()]
        return value

    @classmethod
    def parse(cls, data: GenerationRequest | dict) -> GenerationRequest:
        """Validate raw input, raising ValidationError with per-field messages."""
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            field_errors: dict[str, list[str]] = {}
            for err in exc.errors():
                field = str(err["loc"][0]) if err.get("loc") else "__root__"
                if field == "topic" and err.get("type") == "string_too_short":
                    message = f"Topic must be at least {MIN_TOPIC_LENGTH} characters."
                else:
                    message = err.get("msg", "Invalid value")
                field_errors.setdefault(field, []).append(message)
            raise ValidationError("Request validation failed.", field_errors) from exc

    @property
    def keywords_text(self) -> str:
        return ", ".join(self.keywords) if self.keywords else "N/A"


# === Research ===

class ResearchResult(BaseModel):
    """A single ranked search snippet."""
    title: str
    url: str
    content: str = ""
    score: float = 0.0


class ResearchContext(BaseModel):
    """Research Provider output for one request. Read-only after creation."""
    model_config = ConfigDict(frozen=True)

    query: str = ""
    answer: Optional[str] = None
    results: list[ResearchResult] = Field(default_factory=list)

    @classmethod
    def empty(cls, query: str = "") -> ResearchContext:
        return cls(query=query)

    @property
    def is_empty(self) -> bool:
        return not self.answer and not self.results

    def to_prompt_context(self) -> str:
        """Render the research block handed to prompts.

        Each result becomes a "[i] Title: ...\\nURL: ...\\nContent: ...\\n"
        entry; the assembly stage reads the references back from these markers.
        """
        parts = []
        if self.answer:
            parts.append(f"**Quick Answer:** {self.answer}")
        if self.results:
            parts.append("**Key Findings:**")
            for index, result in enumerate(self.results, start=1):
                title = " ".join(result.title.split())
                url = result.url.strip()
                parts.append(
                    f"[{index}] Title: {title}\nURL: {url}\nContent: {result.content}\n"
                )
        return "\n\n".join(parts)


# === Outline & sections ===

class OutlineSection(BaseModel):
    """One planned section: heading plus guidance points."""
    model_config = ConfigDict(frozen=True)

    heading: str = Field(min_length=1)
    key_points: list[str] = Field(default_factory=list)


class Outline(BaseModel):
    """Structured plan produced before any prose is written."""
    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    sections: list[OutlineSection] = Field(min_length=1)


class SectionResult(BaseModel):
    """Drafting state and output for one outline section."""
    index: int
    heading: str
    body: str = ""
    status: SectionStatus = SectionStatus.PENDING
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (SectionStatus.DONE, SectionStatus.ERROR)

    def render(self) -> str:
        """Markdown block for this section (H2 heading + body)."""
        return f"## {self.heading}\n\n{self.body.strip()}"


class Reference(BaseModel):
    """A citation extracted from the research context."""
    index: int
    title: str
    url: str


class AssembledDocument(BaseModel):
    """Title + ordered sections + references, rendered into one markdown draft."""
    title: str
    sections: list[str] = Field(default_factory=list)
    references: list[Reference] = Field(default_factory=list)
    content: str


# === Persistence ===

MUTABLE_POST_FIELDS = frozenset(
    {"content", "status", "cover_image", "audio_url", "schema_markup"}
)


class Post(BaseModel):
    """Persisted post record. Owned by the persistence collaborator."""
    id: str
    user_id: str
    topic: str
    content: str
    tone: str
    status: PostStatus = PostStatus.DRAFT
    cover_image: Optional[str] = None
    audio_url: Optional[str] = None
    schema_markup: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class PostCreate(BaseModel):
    """Fields supplied when a draft is first saved."""
    topic: str
    content: str
    tone: str
    status: PostStatus = PostStatus.DRAFT
    cover_image: Optional[str] = None
    schema_markup: Optional[str] = None


# === SEO ===

class FAQItem(BaseModel):
    """A single FAQ question/answer pair."""
    question: str
    answer: str


class SeoStrategy(BaseModel):
    """SEO plan that steers the outline and the schema markup."""
    model_config = ConfigDict(frozen=True)

    target_keywords: list[str] = Field(default_factory=list)
    search_intent: SearchIntent = SearchIntent.INFORMATIONAL
    h2_suggestions: list[str] = Field(default_factory=list)
    faq_section: list[FAQItem] = Field(default_factory=list)

    @field_validator("search_intent", mode="before")
    @classmethod
    def _normalize_intent(cls, value: Any) -> Any:
        if isinstance(value, str):
            for intent in SearchIntent:
                if intent.value.lower() == value.strip().lower():
                    return intent
            return SearchIntent.INFORMATIONAL
        return value


# === Actions ===

class ActionResult(BaseModel):
    """Outcome of an on-demand action invoked from the UI. Never raised."""
    success: bool
    message: str = ""
    data: Any = None


# === Social ===

class SocialPost(BaseModel):
    """Platform-tailored repackaging of a post. One per (post, platform)."""
    post_id: str
    platform: SocialPlatform
    content: str
    hashtags: list[str] = Field(default_factory=list)

"""Social content stage: repackage a post for social platforms.

Each platform has a style policy (length limit, tone, hashtag count) baked
into its prompt. Platforms are generated concurrently and independently;
every success is upserted as the single variant for (post, platform), so
regenerating replaces rather than appends.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from inkpress.common.config import Settings, settings as default_settings
from inkpress.common.errors import ProviderParseError
from inkpress.common.models import SocialPlatform, SocialPost
from inkpress.providers.text import TextProvider
from inkpress.publisher.repository import PostRepository

logger = logging.getLogger(__name__)

SOURCE_CHAR_LIMIT = 6000


@dataclass(frozen=True)
class PlatformPolicy:
    max_chars: int
    tone: str
    min_hashtags: int
    max_hashtags: int
    format_hint: str


PLATFORM_POLICIES: dict[SocialPlatform, PlatformPolicy] = {
    SocialPlatform.INSTAGRAM: PlatformPolicy(
        max_chars=2200,
        tone="warm, visual and casual, with a few emojis",
        min_hashtags=10,
        max_hashtags=15,
        format_hint="A hook line, 3-5 short paragraphs, and a call to action.",
    ),
    SocialPlatform.TWITTER: PlatformPolicy(
        max_chars=280,
        tone="punchy and concise",
        min_hashtags=2,
        max_hashtags=3,
        format_hint="One tweet. No threads.",
    ),
    SocialPlatform.LINKEDIN: PlatformPolicy(
        max_chars=3000,
        tone="professional and insightful",
        min_hashtags=3,
        max_hashtags=5,
        format_hint="A strong opening insight, short paragraphs, and a question to invite comments.",
    ),
}


@dataclass
class SocialContent:
    content: str
    hashtags: list[str]


@dataclass
class SocialGenerationResult:
    success: bool
    posts: list[SocialPost] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)
    message: str = ""


def build_social_prompt(content: str, platform: SocialPlatform, language: str) -> str:
    policy = PLATFORM_POLICIES[platform]
    return f"""\
You are a social media manager. Repackage the blog post below for {platform.value}.

Platform policy:
- Maximum length: {policy.max_chars} characters (hashtags excluded).
- Tone: {policy.tone}.
- Hashtags: {policy.min_hashtags}-{policy.max_hashtags}, without the '#' sign.
- Format: {policy.format_hint}
- Language: {language}.

Return JSON: {{"content": "post text", "hashtags": ["tag1", "tag2"]}}

Blog Post:
{content[:SOURCE_CHAR_LIMIT]}
"""


def _normalize_hashtags(raw: object, limit: int) -> list[str]:
    if isinstance(raw, str):
        raw = raw.replace(",", " ").split()
    tags: list[str] = []
    for item in raw or []:
        tag = str(item).strip().lstrip("#").replace(" ", "")
        if tag and tag not in tags:
            tags.append(tag)
    return tags[:limit]


def _fit(text: str, max_chars: int) -> str:
    text = text.strip()
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 1].rstrip() + "…"


async def generate_social_content(
    content: str,
    platform: SocialPlatform,
    text_provider: TextProvider,
    settings: Settings | None = None,
) -> SocialContent:
    """Generate the variant for one platform.

    Raises:
        ProviderCallError: The provider call failed.
        ProviderParseError: The response had no usable content.
    """
    settings = settings or default_settings
    platform = SocialPlatform(platform)
    policy = PLATFORM_POLICIES[platform]
    stage = f"social.{platform.value}"

    data = await text_provider.generate_json(
        build_social_prompt(content, platform, settings.pipeline.content_language),
        model=settings.llm.default_model,
        temperature=0.7,
        stage=stage,
    )
    if not isinstance(data, dict) or not str(data.get("content") or "").strip():
        raise ProviderParseError("Social payload has no content", raw_text=str(data), stage=stage)

    return SocialContent(
        content=_fit(str(data["content"]), policy.max_chars),
        hashtags=_normalize_hashtags(data.get("hashtags"), policy.max_hashtags),
    )


async def generate_social_posts(
    post_id: str,
    content: str,
    text_provider: TextProvider,
    repository: PostRepository,
    platforms: Optional[Iterable[SocialPlatform]] = None,
    settings: Settings | None = None,
) -> SocialGenerationResult:
    """Generate and upsert variants for several platforms concurrently."""
    targets = [SocialPlatform(p) for p in (platforms or list(SocialPlatform))]

    async def _one(platform: SocialPlatform) -> SocialPost:
        generated = await generate_social_content(content, platform, text_provider, settings)
        social_post = SocialPost(
            post_id=post_id,
            platform=platform,
            content=generated.content,
            hashtags=generated.hashtags,
        )
        return await repository.upsert_social_post(social_post)

    outcomes = await asyncio.gather(*(_one(p) for p in targets), return_exceptions=True)

    result = SocialGenerationResult(success=True)
    for platform, outcome in zip(targets, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning("Social generation failed for %s: %s", platform.value, outcome)
            result.failures[platform.value] = str(outcome) or type(outcome).__name__
        else:
            result.posts.append(outcome)

    result.success = not result.failures
    if result.failures:
        result.message = "Social content generation failed for: " + ", ".join(result.failures)
    else:
        result.message = f"Generated {len(result.posts)} social posts."
    logger.info(
        "Social generation for %s: %d ok, %d failed",
        post_id, len(result.posts), len(result.failures),
    )
    return result

"""Row models for the Supabase `posts` and `social_posts` tables."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from inkpress.common.models import Post, PostStatus, SocialPlatform, SocialPost


class PostRow(BaseModel):
    """Maps to the Supabase `posts` table schema."""
    user_id: str
    topic: str
    content: str
    tone: str
    status: PostStatus = PostStatus.DRAFT

    id: Optional[str] = None
    cover_image: Optional[str] = None
    audio_url: Optional[str] = None
    schema_markup: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_supabase_dict(self) -> dict:
        """Serialize for Supabase insert, omitting None values."""
        data = {}
        for field_name, value in self:
            if value is None:
                continue
            if field_name == "status":
                data["status"] = self.status.value
            else:
                data[field_name] = value
        return data

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> PostRow:
        data = {k: v for k, v in record.items() if k in cls.model_fields}
        for key in ("id", "user_id", "created_at", "updated_at"):
            if data.get(key) is not None:
                data[key] = str(data[key])
        return cls(**data)

    def to_post(self) -> Post:
        now = datetime.now()
        return Post(
            id=self.id or "",
            user_id=self.user_id,
            topic=self.topic,
            content=self.content,
            tone=self.tone,
            status=self.status,
            cover_image=self.cover_image,
            audio_url=self.audio_url,
            schema_markup=self.schema_markup,
            created_at=_parse_ts(self.created_at) or now,
            updated_at=_parse_ts(self.updated_at) or now,
        )


class SocialPostRow(BaseModel):
    """Maps to the Supabase `social_posts` table (unique on post_id, platform)."""
    post_id: str
    platform: SocialPlatform
    content: str
    hashtags: list[str] = Field(default_factory=list)
    updated_at: Optional[str] = None

    @classmethod
    def from_social_post(cls, post: SocialPost) -> SocialPostRow:
        return cls(
            post_id=post.post_id,
            platform=post.platform,
            content=post.content,
            hashtags=list(post.hashtags),
            updated_at=datetime.now().isoformat(),
        )

    def to_supabase_dict(self) -> dict:
        data = self.model_dump(exclude_none=True)
        data["platform"] = self.platform.value
        return data


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None

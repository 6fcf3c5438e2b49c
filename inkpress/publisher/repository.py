"""Post persistence.

The pipeline talks to a PostRepository: create a draft, update fields of
an existing post, read it back, and upsert social variants. Every update
is scoped by both post id and owning user id. Updates to the same post are
serialized by a per-post asyncio.Lock, so two side-pipelines writing the
same field apply one after the other (last write wins).

Implementations:
    SupabasePostRepository — `posts` / `social_posts` tables via supabase-py
    InMemoryPostRepository — dry runs and tests
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Optional

from inkpress.common.config import ProviderCredentials
from inkpress.common.errors import ProviderCallError
from inkpress.common.models import (
    MUTABLE_POST_FIELDS,
    Post,
    PostCreate,
    PostStatus,
    SocialPlatform,
    SocialPost,
)

from .models import PostRow, SocialPostRow

logger = logging.getLogger(__name__)

POSTS_TABLE = "posts"
SOCIAL_POSTS_TABLE = "social_posts"


class PostRepository(ABC):
    """Persistence collaborator for Post records."""

    def __init__(self) -> None:
        # post id -> (lock, number of holders and waiters)
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    @asynccontextmanager
    async def post_lock(self, post_id: str) -> AsyncIterator[None]:
        """Hold the update lock for one post.

        The entry is dropped once nobody holds or waits for it.
        """
        lock, users = self._locks.get(post_id) or (asyncio.Lock(), 0)
        self._locks[post_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[post_id]
            if users <= 1:
                del self._locks[post_id]
            else:
                self._locks[post_id] = (lock, users - 1)

    @property
    def tracked_locks(self) -> int:
        return len(self._locks)

    async def create(self, user_id: str, fields: PostCreate) -> Post:
        """Persist a new post and return it with its id."""
        post = await self._create(user_id, fields)
        logger.info("Post created: %s (status=%s)", post.id, post.status.value)
        return post

    async def update(self, post_id: str, user_id: str, **fields: Any) -> bool:
        """Update mutable fields of a post owned by ``user_id``.

        Returns:
            True when a matching post was updated.

        Raises:
            ValueError: A field is not updatable.
        """
        unknown = set(fields) - MUTABLE_POST_FIELDS
        if unknown:
            raise ValueError(f"fields not updatable: {sorted(unknown)}")
        if "status" in fields and fields["status"] is not None:
            fields["status"] = PostStatus(fields["status"])

        async with self.post_lock(post_id):
            updated = await self._update(post_id, user_id, fields)
        if updated:
            logger.info("Post %s updated: %s", post_id, ", ".join(sorted(fields)))
        else:
            logger.warning("Post %s not updated (not found for user)", post_id)
        return updated

    @abstractmethod
    async def _create(self, user_id: str, fields: PostCreate) -> Post:
        ...

    @abstractmethod
    async def _update(self, post_id: str, user_id: str, fields: dict[str, Any]) -> bool:
        ...

    @abstractmethod
    async def get(self, post_id: str, user_id: str) -> Optional[Post]:
        ...

    @abstractmethod
    async def upsert_social_post(self, social_post: SocialPost) -> SocialPost:
        """Insert or replace the variant for (post_id, platform)."""

    @abstractmethod
    async def list_social_posts(self, post_id: str) -> list[SocialPost]:
        ...


class InMemoryPostRepository(PostRepository):
    """Dictionary-backed repository used for dry runs and tests."""

    def __init__(self) -> None:
        super().__init__()
        self.posts: dict[str, Post] = {}
        self.social_posts: dict[tuple[str, SocialPlatform], SocialPost] = {}
        self.create_calls: list[PostCreate] = []

    async def _create(self, user_id: str, fields: PostCreate) -> Post:
        self.create_calls.append(fields)
        post = Post(id=str(uuid.uuid4()), user_id=user_id, **fields.model_dump())
        self.posts[post.id] = post
        return post

    async def _update(self, post_id: str, user_id: str, fields: dict[str, Any]) -> bool:
        post = self.posts.get(post_id)
        if post is None or post.user_id != user_id:
            return False
        self.posts[post_id] = post.model_copy(
            update={**fields, "updated_at": datetime.now()}
        )
        return True

    async def get(self, post_id: str, user_id: str) -> Optional[Post]:
        post = self.posts.get(post_id)
        if post is None or post.user_id != user_id:
            return None
        return post

    async def upsert_social_post(self, social_post: SocialPost) -> SocialPost:
        self.social_posts[(social_post.post_id, social_post.platform)] = social_post
        return social_post

    async def list_social_posts(self, post_id: str) -> list[SocialPost]:
        return [sp for (pid, _), sp in self.social_posts.items() if pid == post_id]


class SupabasePostRepository(PostRepository):
    """Supabase-backed repository.

    supabase-py is synchronous; calls are moved off the event loop with
    ``asyncio.to_thread``.
    """

    def __init__(self, credentials: ProviderCredentials, client: Any = None):
        super().__init__()
        self.credentials = credentials
        self._client = client  # Lazy init

    def _get_client(self):
        """Lazy-initialize Supabase client."""
        if self._client is not None:
            return self._client
        url = self.credentials.require("supabase_url")
        key = self.credentials.require("supabase_key")
        from supabase import create_client

        self._client = create_client(url, key)
        logger.info("Connected to Supabase: %s", url)
        return self._client

    async def _run(self, description: str, fn) -> Any:
        try:
            return await asyncio.to_thread(fn)
        except Exception as exc:
            logger.error("Supabase %s failed: %s", description, exc)
            raise ProviderCallError(str(exc), provider="supabase", stage="persistence") from exc

    async def _create(self, user_id: str, fields: PostCreate) -> Post:
        client = self._get_client()
        now = datetime.now().isoformat()
        row = PostRow(user_id=user_id, created_at=now, updated_at=now, **fields.model_dump())
        data = row.to_supabase_dict()

        result = await self._run(
            "insert", lambda: client.table(POSTS_TABLE).insert(data).execute()
        )
        records = getattr(result, "data", None) or []
        if not records:
            raise ProviderCallError("Insert returned no row", provider="supabase", stage="persistence")
        return PostRow.from_record(records[0]).to_post()

    async def _update(self, post_id: str, user_id: str, fields: dict[str, Any]) -> bool:
        client = self._get_client()
        data = {
            k: (v.value if isinstance(v, PostStatus) else v) for k, v in fields.items()
        }
        data["updated_at"] = datetime.now().isoformat()

        result = await self._run(
            "update",
            lambda: (
                client.table(POSTS_TABLE)
                .update(data)
                .eq("id", post_id)
                .eq("user_id", user_id)
                .execute()
            ),
        )
        return bool(getattr(result, "data", None))

    async def get(self, post_id: str, user_id: str) -> Optional[Post]:
        client = self._get_client()
        result = await self._run(
            "select",
            lambda: (
                client.table(POSTS_TABLE)
                .select("*")
                .eq("id", post_id)
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            ),
        )
        records = getattr(result, "data", None) or []
        return PostRow.from_record(records[0]).to_post() if records else None

    async def upsert_social_post(self, social_post: SocialPost) -> SocialPost:
        client = self._get_client()
        data = SocialPostRow.from_social_post(social_post).to_supabase_dict()
        await self._run(
            "social upsert",
            lambda: (
                client.table(SOCIAL_POSTS_TABLE)
                .upsert(data, on_conflict="post_id,platform")
                .execute()
            ),
        )
        return social_post

    async def list_social_posts(self, post_id: str) -> list[SocialPost]:
        client = self._get_client()
        result = await self._run(
            "social select",
            lambda: (
                client.table(SOCIAL_POSTS_TABLE)
                .select("*")
                .eq("post_id", post_id)
                .execute()
            ),
        )
        return [
            SocialPost(
                post_id=r["post_id"],
                platform=SocialPlatform(r["platform"]),
                content=r.get("content", ""),
                hashtags=r.get("hashtags") or [],
            )
            for r in getattr(result, "data", None) or []
        ]

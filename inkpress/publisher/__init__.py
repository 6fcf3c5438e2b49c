# Publisher — post persistence + binary artifact storage (Supabase)
"""
Persistence collaborator for the generation pipeline.

Stores and updates post records (scoped by post id and owning user),
upserts per-platform social variants, and uploads cover images and audio
narration to Supabase Storage.
"""

from .models import PostRow, SocialPostRow
from .repository import (
    InMemoryPostRepository,
    PostRepository,
    SupabasePostRepository,
)
from .storage import SupabaseStorage, UploadResult, content_key

__all__ = [
    "InMemoryPostRepository",
    "PostRepository",
    "PostRow",
    "SocialPostRow",
    "SupabasePostRepository",
    "SupabaseStorage",
    "UploadResult",
    "content_key",
]

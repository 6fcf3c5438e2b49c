"""Tests for Supabase Storage uploads."""

from unittest.mock import MagicMock

import pytest

from inkpress.common.config import ProviderCredentials, StorageSettings
from inkpress.common.errors import ConfigurationError
from inkpress.publisher.storage import SupabaseStorage, content_key

CREDS = ProviderCredentials(supabase_url="https://test.supabase.co/", supabase_key="test-key")


def _storage(existing=None):
    client = MagicMock()
    bucket = client.storage.from_.return_value
    bucket.list.return_value = [{"name": name} for name in existing or []]
    return SupabaseStorage(CREDS, client=client), bucket


class TestPaths:
    def test_public_url(self):
        storage = SupabaseStorage(CREDS)
        assert storage.get_public_url("covers/abc.webp") == (
            "https://test.supabase.co/storage/v1/object/public/post-assets/covers/abc.webp"
        )

    def test_custom_bucket(self):
        storage = SupabaseStorage(CREDS, StorageSettings(bucket="media"))
        assert "/public/media/" in storage.get_public_url("x.png")

    def test_paths_are_content_addressed(self):
        storage = SupabaseStorage(CREDS)
        assert storage.cover_path("a prompt") == storage.cover_path("a prompt")
        assert storage.cover_path("a prompt") != storage.cover_path("another prompt")
        assert storage.audio_path("p1", "script") == f"audio/p1/{content_key('script')}.mp3"

    def test_content_key_length(self):
        assert len(content_key(b"bytes")) == 12


class TestUpload:
    def test_uploads_new_object(self):
        storage, bucket = _storage()
        result = storage.upload(b"data", "covers/abc.webp", "image/webp")

        assert result.success
        assert result.public_url.endswith("/post-assets/covers/abc.webp")
        bucket.list.assert_called_once_with("covers")
        bucket.upload.assert_called_once_with(
            path="covers/abc.webp", file=b"data", file_options={"content-type": "image/webp"}
        )

    def test_existing_object_is_reused(self):
        storage, bucket = _storage(existing=["abc.webp"])
        result = storage.upload(b"data", "covers/abc.webp", "image/webp")

        assert result.success
        assert result.reused
        bucket.upload.assert_not_called()

    def test_failure_is_reported(self):
        storage, bucket = _storage()
        bucket.upload.side_effect = RuntimeError("403")
        result = storage.upload(b"data", "covers/abc.webp")

        assert not result.success
        assert result.error == "403"
        assert result.public_url == ""

    async def test_async_upload(self):
        storage, bucket = _storage()
        result = await storage.upload_async(b"mp3", "audio/p1/k.mp3", "audio/mpeg")
        assert result.success
        assert bucket.upload.call_args.kwargs["path"] == "audio/p1/k.mp3"


class TestCredentials:
    def test_not_configured_without_credentials(self):
        assert not SupabaseStorage(ProviderCredentials()).is_configured
        assert SupabaseStorage(CREDS).is_configured

    def test_missing_url_raises(self):
        with pytest.raises(ConfigurationError, match="SUPABASE_URL"):
            SupabaseStorage(ProviderCredentials())._bucket_api()

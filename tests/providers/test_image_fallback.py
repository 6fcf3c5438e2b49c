"""Tests for the image provider and the deterministic fallback URL."""

import base64
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import openai
import pytest

from inkpress.common.config import ImageSettings, ProviderCredentials, Settings
from inkpress.common.errors import ProviderCallError
from inkpress.providers.image import ImagePayload, ImageProvider, build_fallback_image_url


class TestFallbackUrl:
    def test_same_prompt_same_url(self):
        prompt = "A minimalist home office, soft morning light"
        assert build_fallback_image_url(prompt) == build_fallback_image_url(prompt)

    def test_prompt_is_fully_encoded(self):
        url = build_fallback_image_url("desk & chair / 50% off?")
        assert url.startswith("https://image.pollinations.ai/prompt/desk%20%26%20chair%20%2F%2050%25%20off%3F")
        assert url.endswith("?width=1280&height=720&nologo=true")

    def test_uses_settings(self):
        cfg = ImageSettings(fallback_base_url="https://img.example/p/", fallback_width=640, fallback_height=360)
        url = build_fallback_image_url("cat", cfg)
        assert url == "https://img.example/p/cat?width=640&height=360&nologo=true"


def _provider_with(images_generate):
    provider = ImageProvider(ProviderCredentials(openai_api_key="sk-test"), Settings())
    client = MagicMock()
    client.images.generate = images_generate
    provider._client = client
    return provider


class TestImageProvider:
    async def test_decodes_inline_data(self):
        raw = b"\x89PNG fake"
        response = SimpleNamespace(data=[SimpleNamespace(b64_json=base64.b64encode(raw).decode())])
        provider = _provider_with(AsyncMock(return_value=response))

        payload = await provider.generate("a cat")

        assert payload == ImagePayload(data=raw, mime_type="image/png")
        assert payload.to_data_uri().startswith("data:image/png;base64,")

    async def test_missing_inline_data_returns_none(self):
        response = SimpleNamespace(data=[SimpleNamespace(b64_json=None)])
        provider = _provider_with(AsyncMock(return_value=response))
        assert await provider.generate("a cat") is None

    async def test_sdk_error_is_wrapped(self):
        provider = _provider_with(AsyncMock(side_effect=openai.OpenAIError("quota exceeded")))
        with pytest.raises(ProviderCallError) as exc_info:
            await provider.generate("a cat")
        assert exc_info.value.stage == "image"

"""Tests for the cover image stage and its fallback chain."""

from io import BytesIO
from unittest.mock import MagicMock

import pytest
from PIL import Image

from inkpress.common.config import ProviderCredentials, Settings
from inkpress.common.errors import ProviderCallError
from inkpress.enrichment.image import (
    SOURCE_FALLBACK,
    SOURCE_PRIMARY,
    ImageStage,
    fallback_image_prompt,
)
from inkpress.enrichment.image_processor import CoverImageProcessor
from inkpress.providers.image import ImagePayload, build_fallback_image_url
from inkpress.publisher.storage import SupabaseStorage

TOPIC = "Remote work productivity"
PLANNED_PROMPT = "A calm home office at dawn, cinematic lighting"


def _png_bytes(width=64, height=48) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (width, height), color=(40, 90, 160)).save(buf, format="PNG")
    return buf.getvalue()


class FakeImageProvider:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.prompts = []

    async def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.payload


class TestFallbackChain:
    async def test_primary_failure_uses_fallback_url(self, make_text_provider):
        stage = ImageStage(
            make_text_provider({"image.prompt": PLANNED_PROMPT}),
            FakeImageProvider(error=ProviderCallError("quota", provider="openai", stage="image")),
            settings=Settings(),
        )

        result = await stage.run(TOPIC)

        assert result.success
        assert result.source == SOURCE_FALLBACK
        assert result.image_ref == build_fallback_image_url(PLANNED_PROMPT)

    async def test_empty_primary_response_uses_fallback_url(self, make_text_provider):
        stage = ImageStage(make_text_provider({"image.prompt": PLANNED_PROMPT}), FakeImageProvider(payload=None))
        result = await stage.run(TOPIC)
        assert result.source == SOURCE_FALLBACK

    async def test_fallback_is_deterministic(self, make_text_provider):
        def make_stage():
            return ImageStage(
                make_text_provider({"image.prompt": PLANNED_PROMPT}),
                FakeImageProvider(error=ProviderCallError("down")),
            )

        first = await make_stage().run(TOPIC)
        second = await make_stage().run(TOPIC)
        assert first.image_ref == second.image_ref

    async def test_prompt_planning_failure_uses_template(self, make_text_provider):
        image_provider = FakeImageProvider(error=ProviderCallError("down"))
        stage = ImageStage(make_text_provider({"image.prompt": ProviderCallError("down")}), image_provider)

        result = await stage.run(TOPIC)

        assert image_provider.prompts == [fallback_image_prompt(TOPIC)]
        assert result.image_ref == build_fallback_image_url(fallback_image_prompt(TOPIC))

    async def test_planned_prompt_quotes_are_stripped(self, make_text_provider):
        image_provider = FakeImageProvider()
        stage = ImageStage(make_text_provider({"image.prompt": f'"{PLANNED_PROMPT}"\n'}), image_provider)
        await stage.run(TOPIC)
        assert image_provider.prompts == [PLANNED_PROMPT]


class TestPrimaryImage:
    async def test_without_storage_returns_webp_data_uri(self, make_text_provider):
        stage = ImageStage(
            make_text_provider({"image.prompt": PLANNED_PROMPT}),
            FakeImageProvider(payload=ImagePayload(data=_png_bytes())),
        )

        result = await stage.run(TOPIC)

        assert result.success
        assert result.source == SOURCE_PRIMARY
        assert result.image_ref.startswith("data:image/webp;base64,")

    async def test_undecodable_bytes_are_kept_as_is(self, make_text_provider):
        stage = ImageStage(
            make_text_provider({"image.prompt": PLANNED_PROMPT}),
            FakeImageProvider(payload=ImagePayload(data=b"not really a png")),
        )
        result = await stage.run(TOPIC)
        assert result.image_ref.startswith("data:image/png;base64,")

    async def test_uploads_to_content_addressed_path(self, make_text_provider):
        client = MagicMock()
        client.storage.from_.return_value.list.return_value = []
        storage = SupabaseStorage(
            ProviderCredentials(supabase_url="https://proj.supabase.co", supabase_key="service-key"),
            client=client,
        )
        stage = ImageStage(
            make_text_provider({"image.prompt": PLANNED_PROMPT}),
            FakeImageProvider(payload=ImagePayload(data=_png_bytes())),
            storage=storage,
        )

        result = await stage.run(TOPIC)

        expected_path = storage.cover_path(PLANNED_PROMPT, "webp")
        assert result.image_ref == storage.get_public_url(expected_path)
        upload_kwargs = client.storage.from_.return_value.upload.call_args.kwargs
        assert upload_kwargs["path"] == expected_path
        assert upload_kwargs["file_options"] == {"content-type": "image/webp"}


class TestCoverImageProcessor:
    def test_downscales_large_images(self):
        processed = CoverImageProcessor().process_bytes(_png_bytes(3200, 1800), name="cover")
        assert (processed.width, processed.height) == (1600, 900)
        assert processed.filename == "cover.webp"
        assert processed.content_type == "image/webp"

    def test_does_not_upscale(self):
        processed = CoverImageProcessor().process_bytes(_png_bytes(320, 180), name="small")
        assert (processed.width, processed.height) == (320, 180)

    def test_rejects_placeholder_pixels(self):
        with pytest.raises(ValueError):
            CoverImageProcessor().process_bytes(_png_bytes(1, 1), name="pixel")

    def test_rejects_non_images(self):
        with pytest.raises(ValueError):
            CoverImageProcessor().process_bytes(b"<html>", name="bad")

"""Cover image processing.

Re-encodes generated cover images before storage:
    1. Strip metadata
    2. Resize (max 1600×900, aspect ratio preserved, no upscaling)
    3. Convert to WebP (quality 85)

Usage:
    processor = CoverImageProcessor()
    cover = processor.process_bytes(png_bytes, name="3f2a9c1e0b7d")
    # cover.data → bytes (WebP), cover.filename → "3f2a9c1e0b7d.webp"
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from inkpress.common.config import ImageSettings, settings as default_settings

MIN_DIMENSION = 10


@dataclass
class ProcessedImage:
    """Result of processing a single image."""

    data: bytes
    filename: str  # e.g. "3f2a9c1e0b7d.webp"
    content_type: str  # "image/webp"
    width: int
    height: int


class CoverImageProcessor:
    """Normalizes generated cover images to web-sized WebP."""

    output_format = "WEBP"

    def __init__(self, image_settings: Optional[ImageSettings] = None):
        self.config = image_settings or default_settings.image

    def process_bytes(self, raw_bytes: bytes, name: str) -> ProcessedImage:
        """Process raw image bytes through the full pipeline.

        Raises:
            ValueError: The bytes are not an image, or the image is a placeholder.
        """
        try:
            img = Image.open(BytesIO(raw_bytes))
            img.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError(f"Not a decodable image: {exc}") from exc

        # Reject tiny placeholder images (e.g. 1x1 pixel)
        if img.width < MIN_DIMENSION or img.height < MIN_DIMENSION:
            raise ValueError(
                f"Image too small ({img.width}x{img.height}), likely a placeholder"
            )

        img = self._strip_metadata(img)
        img = self._resize(img)
        output_bytes = self._to_webp(img)

        return ProcessedImage(
            data=output_bytes,
            filename=f"{name}.webp",
            content_type="image/webp",
            width=img.width,
            height=img.height,
        )

    # --- Pipeline stages ---

    def _strip_metadata(self, img: Image.Image) -> Image.Image:
        """Drop EXIF/ICC metadata by copying pixel data to a new image."""
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
        clean = Image.new(img.mode, img.size)
        clean.paste(img)
        return clean

    def _resize(self, img: Image.Image) -> Image.Image:
        """Resize to fit within max dimensions, preserving aspect ratio.

        Does NOT upscale images smaller than the max dimensions.
        """
        max_w = self.config.max_width
        max_h = self.config.max_height

        if img.width <= max_w and img.height <= max_h:
            return img

        ratio = min(max_w / img.width, max_h / img.height)
        new_w = max(1, int(img.width * ratio))
        new_h = max(1, int(img.height * ratio))

        return img.resize((new_w, new_h), Image.LANCZOS)

    def _to_webp(self, img: Image.Image) -> bytes:
        buf = BytesIO()
        img.save(buf, format=self.output_format, quality=self.config.quality)
        return buf.getvalue()

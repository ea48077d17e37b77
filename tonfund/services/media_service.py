"""Image resizing and upload to Supabase Storage."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from PIL import Image, ImageFilter, ImageOps, UnidentifiedImageError

from tonfund.config import settings
from tonfund.utils.errors import InvalidInputError
from supabase import Client

logger = logging.getLogger(__name__)

ORIGINAL_SIZE = (1024, 600)
THUMB_SIZE = (400, 240)
WEBP_QUALITY = 85
WEBP_MIME = "image/webp"
WEBP_EXT = ".webp"
CACHE_CONTROL = "31536000"


@dataclass(frozen=True)
class EncodedImage:
    """One encoded WebP variant."""

    data: bytes
    width: int
    height: int


def _open(raw: bytes) -> Image.Image:
    try:
        with Image.open(io.BytesIO(raw)) as source:
            source.load()
            image = ImageOps.exif_transpose(source)
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidInputError("Unsupported or corrupted image") from exc

    if image.mode in ("RGBA", "LA", "P"):
        return image.convert("RGBA")
    return image.convert("RGB")


def render_variant(image: Image.Image, size: tuple[int, int]) -> EncodedImage:
    """Cover-crop ``image`` to ``size`` and encode it as WebP."""
    fitted = ImageOps.fit(image, size, method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))
    sharpened = fitted.filter(ImageFilter.UnsharpMask(radius=0.4, percent=80, threshold=0))
    buffer = io.BytesIO()
    sharpened.save(buffer, format="WEBP", quality=WEBP_QUALITY, method=6)
    return EncodedImage(data=buffer.getvalue(), width=sharpened.width, height=sharpened.height)


def render_variants(raw: bytes) -> tuple[EncodedImage, EncodedImage]:
    """Return the (original, thumbnail) variants for uploaded bytes."""
    image = _open(raw)
    return render_variant(image, ORIGINAL_SIZE), render_variant(image, THUMB_SIZE)


class MediaService:
    """Process uploaded pictures and store them in the media bucket."""

    def __init__(self, client: Client, bucket: str | None = None) -> None:
        self.client = client
        self.bucket = bucket or settings.storage_bucket

    def upload(self, data: bytes, key_prefix: str) -> str:
        """Upload one WebP object and return its public URL."""
        key = f"{key_prefix}/{uuid4()}{WEBP_EXT}"
        storage = self.client.storage.from_(self.bucket)
        storage.upload(
            key,
            data,
            {"content-type": WEBP_MIME, "cache-control": CACHE_CONTROL, "upsert": "false"},
        )
        if settings.cdn_base:
            return f"{settings.cdn_base.rstrip('/')}/{key}"
        return storage.get_public_url(key)

    def process(self, raw: bytes, folder: str) -> dict[str, Any]:
        """Render both variants, upload them, and describe the result."""
        original, thumb = render_variants(raw)
        original_url = self.upload(original.data, f"{folder}/originals")
        thumb_url = self.upload(thumb.data, f"{folder}/thumbs")
        logger.info("Stored %s image %s", folder, original_url)
        return {
            "original_url": original_url,
            "thumb_url": thumb_url,
            "original_size": [original.width, original.height],
            "thumb_size": [thumb.width, thumb.height],
        }

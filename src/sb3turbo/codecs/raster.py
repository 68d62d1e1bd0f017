"""Bitmap costume re-encoder (Pillow -> lossy WebP)."""

from __future__ import annotations

import asyncio
import io

from PIL import Image

from sb3turbo.codecs.base import Asset

WEBP_EXTENSION = "webp"


def encode_webp(data: bytes, quality: float) -> bytes:
    """Decode any Pillow-readable bitmap and re-encode it as lossy WebP.

    Args:
        data: Original image bytes (png/jpeg).
        quality: 0.0-1.0, mapped onto Pillow's 0-100 scale.
    """
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        if img.mode in ("RGB", "RGBA"):
            bitmap = img.copy()
        elif "A" in img.getbands() or "transparency" in img.info:
            bitmap = img.convert("RGBA")
        else:
            bitmap = img.convert("RGB")

    buf = io.BytesIO()
    bitmap.save(buf, format="WEBP", quality=round(quality * 100))
    return buf.getvalue()


class RasterCodec:
    def __init__(self, *, quality: float = 0.80) -> None:
        self.quality = quality

    async def encode(self, asset: Asset) -> tuple[bytes, str]:
        encoded = await asyncio.to_thread(encode_webp, asset.data, self.quality)
        return encoded, WEBP_EXTENSION

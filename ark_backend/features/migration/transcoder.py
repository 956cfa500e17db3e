"""
Image transcoder - re-encodes raster images as WebP.
"""
from __future__ import annotations

import io
import posixpath

from PIL import Image, UnidentifiedImageError

from ...config import TRANSCODE_QUALITY
from ...shared import TRANSCODED_CONTENT_TYPE, TRANSCODED_EXTENSION, DecodeError, EncodeError, get_logger, with_extension
from ...adapters.asset_store.base import AssetFile

logger = get_logger(__name__)

TARGET_FORMAT = "WEBP"


def transcoded_name(original_name: str) -> str:
    return with_extension(posixpath.basename(str(original_name or "")), TRANSCODED_EXTENSION)


def _decode(data: bytes, original_name: str) -> Image.Image:
    try:
        with Image.open(io.BytesIO(data)) as im:
            im.load()
            # First frame only; animated sources are flattened.
            has_alpha = im.mode in ("RGBA", "LA", "PA") or (im.mode == "P" and "transparency" in im.info)
            return im.convert("RGBA" if has_alpha else "RGB")
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"Cannot decode {original_name} as an image: {exc}") from exc


def _render(source: Image.Image) -> Image.Image:
    """Draw the decoded image onto a fresh bitmap of the same size."""
    canvas = Image.new(source.mode, source.size)
    canvas.paste(source, (0, 0))
    return canvas


def transcode(data: bytes, original_name: str, quality: float = TRANSCODE_QUALITY) -> AssetFile:
    """
    Re-encode `data` as WebP at `quality` (0..1).

    Raises:
        DecodeError: the input is not a decodable image.
        EncodeError: encoding produced no output.
    """
    if not data:
        raise DecodeError(f"Cannot decode {original_name}: empty input")
    source = _decode(data, original_name)
    canvas = _render(source)

    out = io.BytesIO()
    try:
        canvas.save(out, format=TARGET_FORMAT, quality=max(1, min(100, int(round(quality * 100)))))
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError(f"WebP encoding of {original_name} failed: {exc}") from exc
    encoded = out.getvalue()
    if not encoded:
        raise EncodeError(f"WebP encoding of {original_name} produced no output")

    name = transcoded_name(original_name)
    logger.debug("Transcoded %s -> %s (%d -> %d bytes)", original_name, name, len(data), len(encoded))
    return AssetFile(name=name, data=encoded, content_type=TRANSCODED_CONTENT_TYPE)


class ImageTranscoder:
    def __init__(self, quality: float = TRANSCODE_QUALITY):
        self.quality = quality

    def transcode(self, data: bytes, original_name: str, quality: float | None = None) -> AssetFile:
        return transcode(data, original_name, self.quality if quality is None else quality)

    def __call__(self, data: bytes, original_name: str) -> AssetFile:
        return self.transcode(data, original_name)

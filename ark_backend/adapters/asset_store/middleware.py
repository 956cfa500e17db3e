"""
Host middleware around an AssetStoreClient.

- upload: raster images other than WebP/SVG are converted to WebP before
  being handed to the wrapped store (a failed conversion uploads the original).
- delete: blocked with `AssetInUseError` while the persisted reference index
  still lists the file.
"""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Mapping, Optional

from ...config import CONVERT_ON_UPLOAD
from ...shared import AssetInUseError, DeleteUnsupportedError, get_logger, path_extension
from .base import AssetFile, AssetStoreClient, BrowseResult

logger = get_logger(__name__)

Transcode = Callable[[bytes, str], AssetFile]
UsageLookup = Callable[[list[str]], Awaitable[Mapping[str, Any]]]

_PASSTHROUGH_TYPES = frozenset({"image/webp", "image/svg+xml"})
_PASSTHROUGH_EXTENSIONS = frozenset({".webp", ".svg"})


def should_convert_upload(file: AssetFile) -> bool:
    content_type = str(file.content_type or "").lower()
    if not content_type.startswith("image/"):
        return False
    if content_type in _PASSTHROUGH_TYPES:
        return False
    return path_extension(file.name) not in _PASSTHROUGH_EXTENSIONS


class GuardedAssetStore:
    """Decorates an AssetStoreClient with convert-on-upload and delete protection."""

    def __init__(
        self,
        inner: AssetStoreClient,
        *,
        transcode: Optional[Transcode] = None,
        usage_lookup: Optional[UsageLookup] = None,
        convert_on_upload: bool = CONVERT_ON_UPLOAD,
    ):
        self.inner = inner
        self._transcode = transcode
        self._usage_lookup = usage_lookup
        self._convert_on_upload = convert_on_upload

    async def browse(self, root: str, dir_path: str) -> BrowseResult:
        return await self.inner.browse(root, dir_path)

    async def create_directory(self, root: str, dir_path: str) -> None:
        await self.inner.create_directory(root, dir_path)

    async def probe_exists(self, path: str) -> bool:
        return await self.inner.probe_exists(path)

    async def fetch_binary(self, path: str) -> bytes:
        return await self.inner.fetch_binary(path)

    async def upload(self, root: str, dir_path: str, file: AssetFile) -> None:
        if self._convert_on_upload and self._transcode is not None and should_convert_upload(file):
            try:
                logger.info("Converting %s to WebP before upload", file.name)
                file = await asyncio.to_thread(self._transcode, file.data, file.name)
            except Exception as exc:
                logger.error("Conversion of %s failed, uploading original: %s", file.name, exc)
        await self.inner.upload(root, dir_path, file)

    async def delete(self, root: str, path: str) -> None:
        if self._usage_lookup is not None:
            usage = (await self._usage_lookup([path])).get(path)
            if usage is not None and getattr(usage, "used", False):
                locations = list(getattr(usage, "locations", []) or [])
                logger.warning("Blocked deletion of %s: referenced by %d location(s)", path, len(locations))
                raise AssetInUseError(path, locations)
        deleter = getattr(self.inner, "delete", None)
        if not callable(deleter):
            raise DeleteUnsupportedError("Wrapped asset store exposes no delete operation")
        await deleter(root, path)

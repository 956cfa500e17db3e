"""
aiohttp client for a host asset store exposing a small REST surface.

Endpoints (relative to the base URL):
- `GET/HEAD /<path>`                  : serve / probe a store-relative file
- `GET  /api/files/browse`            : `?source=&target=` -> `{"files": [...], "dirs": [...]}`
- `POST /api/files/mkdir`             : JSON `{"source", "target"}`
- `POST /api/files/upload`            : multipart `source`, `target`, `file`
- `POST /api/files/delete`            : JSON `{"source", "path"}` (404/405/501 = unsupported)
"""
from __future__ import annotations

import asyncio
import urllib.parse
from typing import Any, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout, FormData

from ...config import ASSET_STORE_TIMEOUT, ASSET_STORE_URL
from ...shared import (
    DeleteUnsupportedError,
    DirectoryBrowseError,
    FetchError,
    NotFoundError,
    get_logger,
)
from .base import AssetFile, BrowseResult

logger = get_logger(__name__)

_BROWSE_ENDPOINT = "/api/files/browse"
_MKDIR_ENDPOINT = "/api/files/mkdir"
_UPLOAD_ENDPOINT = "/api/files/upload"
_DELETE_ENDPOINT = "/api/files/delete"

_UNSUPPORTED_STATUSES = frozenset({404, 405, 501})


def _client_timeout(seconds: float) -> ClientTimeout:
    return ClientTimeout(total=seconds if seconds and seconds > 0 else None)


class HttpAssetStore:
    """AssetStoreClient over HTTP. Use as an async context manager or call `aclose()`."""

    def __init__(
        self,
        base_url: str = ASSET_STORE_URL,
        *,
        timeout: float = ASSET_STORE_TIMEOUT,
        session: Optional[ClientSession] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.base_url = str(base_url or "").rstrip("/")
        self._timeout = _client_timeout(timeout)
        self._session = session
        self._owns_session = session is None
        self._headers = dict(headers or {})

    async def __aenter__(self) -> "HttpAssetStore":
        self._ensure_session()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _ensure_session(self) -> ClientSession:
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=self._timeout, headers=self._headers)
            self._owns_session = True
        return self._session

    async def aclose(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    def file_url(self, path: str) -> str:
        return f"{self.base_url}/{urllib.parse.quote(str(path).lstrip('/'), safe='/')}"

    # ==================== Read ====================

    async def probe_exists(self, path: str) -> bool:
        """HEAD-style existence check. Network failures propagate as FetchError."""
        session = self._ensure_session()
        try:
            async with session.head(self.file_url(path), allow_redirects=True) as resp:
                return 200 <= resp.status < 300
        except (ClientError, asyncio.TimeoutError) as exc:
            raise FetchError(path, None, f"HEAD {path} failed: {exc}") from exc

    async def fetch_binary(self, path: str) -> bytes:
        session = self._ensure_session()
        try:
            async with session.get(self.file_url(path)) as resp:
                if resp.status < 200 or resp.status >= 300:
                    raise NotFoundError(path, resp.status)
                return await resp.read()
        except (ClientError, asyncio.TimeoutError) as exc:
            raise FetchError(path, None, f"GET {path} failed: {exc}") from exc

    async def browse(self, root: str, dir_path: str) -> BrowseResult:
        session = self._ensure_session()
        params = {"source": root, "target": dir_path}
        try:
            async with session.get(f"{self.base_url}{_BROWSE_ENDPOINT}", params=params) as resp:
                if resp.status != 200:
                    raise DirectoryBrowseError(dir_path, f"Browse {dir_path} returned status {resp.status}")
                payload = await resp.json(content_type=None)
        except (ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise DirectoryBrowseError(dir_path, f"Browse {dir_path} failed: {exc}") from exc
        if not isinstance(payload, dict):
            raise DirectoryBrowseError(dir_path, f"Browse {dir_path} returned an unexpected payload")
        return BrowseResult(
            files=[str(f) for f in payload.get("files") or []],
            dirs=[str(d) for d in payload.get("dirs") or []],
        )

    # ==================== Write ====================

    async def create_directory(self, root: str, dir_path: str) -> None:
        session = self._ensure_session()
        try:
            async with session.post(
                f"{self.base_url}{_MKDIR_ENDPOINT}", json={"source": root, "target": dir_path}
            ) as resp:
                if resp.status >= 400:
                    raise DirectoryBrowseError(dir_path, f"mkdir {dir_path} returned status {resp.status}")
        except (ClientError, asyncio.TimeoutError) as exc:
            raise DirectoryBrowseError(dir_path, f"mkdir {dir_path} failed: {exc}") from exc

    async def upload(self, root: str, dir_path: str, file: AssetFile) -> None:
        session = self._ensure_session()
        form = FormData()
        form.add_field("source", root)
        form.add_field("target", dir_path)
        form.add_field("file", file.data, filename=file.name, content_type=file.content_type)
        target = f"{dir_path}/{file.name}" if dir_path else file.name
        try:
            async with session.post(f"{self.base_url}{_UPLOAD_ENDPOINT}", data=form) as resp:
                if resp.status >= 400:
                    raise FetchError(target, resp.status, f"Upload of {target} returned status {resp.status}")
        except (ClientError, asyncio.TimeoutError) as exc:
            raise FetchError(target, None, f"Upload of {target} failed: {exc}") from exc
        logger.debug("Uploaded %s (%d bytes)", target, file.size)

    async def delete(self, root: str, path: str) -> None:
        session = self._ensure_session()
        try:
            async with session.post(
                f"{self.base_url}{_DELETE_ENDPOINT}", json={"source": root, "path": path}
            ) as resp:
                if resp.status in _UNSUPPORTED_STATUSES:
                    raise DeleteUnsupportedError(f"Asset store does not support deletion (status {resp.status})")
                if resp.status >= 400:
                    raise FetchError(path, resp.status, f"Delete of {path} returned status {resp.status}")
        except (ClientError, asyncio.TimeoutError) as exc:
            raise FetchError(path, None, f"Delete of {path} failed: {exc}") from exc

"""
Asset store collaborator contract.

The host owns the actual file storage; this module only describes the calls
the reference workflows make against it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class AssetFile:
    """An in-memory file ready to be uploaded."""
    name: str
    data: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class BrowseResult:
    """One directory listing: store-relative file paths and sub-directory paths."""
    files: list[str] = field(default_factory=list)
    dirs: list[str] = field(default_factory=list)


@runtime_checkable
class AssetStoreClient(Protocol):
    """
    Directory listing, existence probe, upload, delete, fetch.

    `delete` is optional: a host may not expose one, or may raise
    `DeleteUnsupportedError`. Callers must tolerate both.
    """

    async def browse(self, root: str, dir_path: str) -> BrowseResult: ...

    async def create_directory(self, root: str, dir_path: str) -> None: ...

    async def upload(self, root: str, dir_path: str, file: AssetFile) -> None: ...

    async def probe_exists(self, path: str) -> bool: ...

    async def fetch_binary(self, path: str) -> bytes: ...

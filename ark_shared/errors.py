"""
Error taxonomy and helpers for sanitizing error messages before they reach the operator.
"""
from __future__ import annotations

import os
import re
from typing import Any, Iterable

from .log import get_logger

logger = get_logger(__name__)
_DEBUG_MODE = os.getenv("ARK_DEBUG", "").strip().lower() in ("1", "true", "yes", "on")
_WINDOWS_PATH_RE = re.compile(r"[A-Za-z]:\\[^\s]+")
_UNC_PATH_RE = re.compile(r"\\\\[^\s\\]+\\[^\s]+")
_UNIX_PATH_RE = re.compile(r"(?<![A-Za-z0-9:/?&=#%])/(?!/)[^\s#?]+")


class AssetRefError(Exception):
    """Base class for asset reference errors."""


class FetchError(AssetRefError):
    """Asset unreachable (network failure or non-ok response)."""

    def __init__(self, path: str, status: int | None = None, message: str | None = None):
        self.path = path
        self.status = status
        super().__init__(message or f"Failed to fetch {path} (status={status})")


class NotFoundError(FetchError):
    """Asset retrieval returned a not-ok status."""

    def __init__(self, path: str, status: int | None = 404):
        super().__init__(path, status, f"{status}: {path}")


class DecodeError(AssetRefError):
    """Input bytes could not be decoded as an image."""


class EncodeError(AssetRefError):
    """Re-encoding produced no output."""


class StoreWriteError(AssetRefError):
    """Document persistence failed."""

    def __init__(self, document_id: str, message: str):
        self.document_id = document_id
        super().__init__(f"{document_id}: {message}")


class RewriteIncompleteError(StoreWriteError):
    """Some documents still reference the old path after a rewrite batch."""

    def __init__(self, old_path: str, new_path: str, failed: Iterable[str], rewritten: int = 0):
        self.old_path = old_path
        self.new_path = new_path
        self.failed = list(failed)
        self.rewritten = rewritten
        super().__init__(
            ", ".join(self.failed),
            f"{len(self.failed)} document(s) still reference {old_path} (wanted {new_path})",
        )


class DirectoryBrowseError(AssetRefError):
    """Directory listing failed."""

    def __init__(self, dir_path: str, message: str | None = None):
        self.dir_path = dir_path
        super().__init__(message or f"Failed to browse {dir_path}")


class IndexPersistError(AssetRefError):
    """Saving the reference index failed."""


class DeleteUnsupportedError(AssetRefError):
    """The asset store exposes no deletion capability."""


class AssetInUseError(AssetRefError):
    """Deletion blocked because documents still reference the file."""

    def __init__(self, path: str, locations: Iterable[str]):
        self.path = path
        self.locations = sorted(locations)
        super().__init__(f"{path} is still referenced by {len(self.locations)} location(s)")


def _mask_paths(value: str) -> str:
    """Mask absolute-path-looking substrings to avoid leaking filesystem structure."""
    cleaned = _WINDOWS_PATH_RE.sub("[path]", value)
    cleaned = _UNC_PATH_RE.sub("[path]", cleaned)
    cleaned = _UNIX_PATH_RE.sub("[path]", cleaned)
    return cleaned


def sanitize_error_message(exc: Any, fallback: str) -> str:
    """
    Build a safe error message for the operator.

    Args:
        exc: Exception or raw value to sanitize.
        fallback: Fallback message to show when nothing meaningful remains.

    Returns:
        A single-line string suitable for a Result error.
    """
    if not fallback:
        fallback = "An error occurred"

    if exc is None:
        return fallback

    try:
        raw = str(exc)
    except Exception:
        raw = ""

    if not raw:
        return fallback

    sanitized = _mask_paths(raw.replace(os.getcwd(), "[cwd]"))
    sanitized = " ".join(sanitized.splitlines()).strip()

    if _DEBUG_MODE:
        logger.debug("Sanitized error payload: %s", sanitized, exc_info=True)

    if sanitized:
        return f"{fallback}: {sanitized[:200]}"
    return fallback

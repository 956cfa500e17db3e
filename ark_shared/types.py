"""
Shared types, enums, and constants.
"""
import posixpath
import re
from enum import Enum
from typing import Final


class ErrorCode(str, Enum):
    """Standardized error codes (string enum)."""

    # Client / validation
    INVALID_INPUT = "INVALID_INPUT"
    FORBIDDEN = "FORBIDDEN"

    # Index
    INDEX_ERROR = "INDEX_ERROR"

    # Operation errors
    REPAIR_FAILED = "REPAIR_FAILED"
    CONVERSION_FAILED = "CONVERSION_FAILED"
    ORPHAN_SCAN_FAILED = "ORPHAN_SCAN_FAILED"


# A stored string is a reference when it ends with one of these (case-insensitive)
REFERENCE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"\.(png|jpg|jpeg|webp|webm|gif|svg|bmp|tiff)\Z", re.IGNORECASE
)

TRANSCODED_EXTENSION: Final[str] = ".webp"
TRANSCODED_CONTENT_TYPE: Final[str] = "image/webp"

# Raster formats worth converting
CONVERTIBLE_EXTENSIONS: Final[frozenset[str]] = frozenset({".png", ".jpg", ".jpeg"})

# Already optimal: transcoded, vector, or video container
OPTIMAL_EXTENSIONS: Final[frozenset[str]] = frozenset({".webp", ".svg", ".webm"})


def path_extension(path: str) -> str:
    """Lower-cased extension of the last path segment, with the dot ('' if none)."""
    name = posixpath.basename(str(path or ""))
    dot = name.rfind(".")
    if dot <= 0:
        return ""
    return name[dot:].lower()


def is_convertible(path: str) -> bool:
    return path_extension(path) in CONVERTIBLE_EXTENSIONS


def is_optimal(path: str) -> bool:
    return path_extension(path) in OPTIMAL_EXTENSIONS


def with_extension(path: str, extension: str) -> str:
    """Replace the extension of the last path segment, keeping the directory part."""
    head, name = posixpath.split(str(path or ""))
    dot = name.rfind(".")
    base = name[:dot] if dot > 0 else name
    return posixpath.join(head, base + extension) if head else base + extension


def transcoded_sibling(path: str) -> str:
    return with_extension(path, TRANSCODED_EXTENSION)


def is_reference_path(value: object) -> bool:
    """A store-relative image/video path: non-empty, not a network URL, known extension."""
    if not isinstance(value, str):
        return False
    if not value.strip() or value.startswith("http"):
        return False
    return REFERENCE_PATTERN.search(value) is not None

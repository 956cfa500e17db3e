"""
Reference scanner - finds asset paths inside one document's data tree.

Kind-specific extractors know where each document kind keeps its images
(portrait, token, scene background, journal pages...). Everything else is
found by `scan_deep`, a depth-bounded walk over arbitrary mappings and
sequences that picks up any string ending in a known image/video extension
and any embedded `src="..."` markup.
"""
from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Optional

from ...config import SCAN_MAX_DEPTH
from ...shared import get_logger, is_reference_path
from ...adapters.documents.base import Document

logger = get_logger(__name__)

Emit = Callable[[str, str], None]
Reference = tuple[str, str]

_HTML_SRC_RE = re.compile(r'src="([^"]+)"')


def _looks_like_markup(value: str) -> bool:
    return "<img" in value or "src=" in value


def _get(obj: Any, *keys: str) -> Any:
    """Follow nested mapping keys, returning None as soon as one is missing."""
    current = obj
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _children(obj: Any):
    if isinstance(obj, Mapping):
        return obj.items()
    if isinstance(obj, Sequence) and not isinstance(obj, (str, bytes, bytearray)):
        return enumerate(obj)
    return ()


def _is_container(value: Any) -> bool:
    return isinstance(value, Mapping) or (
        isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))
    )


def scan_html(content: Any, context: str, emit: Emit) -> None:
    """Emit every `src="..."` attribute value found in a markup string."""
    if not content or not isinstance(content, str):
        return
    for match in _HTML_SRC_RE.finditer(content):
        emit(match.group(1), f"{context} (HTML)")


def scan_deep(obj: Any, context: str, emit: Emit, depth: int = 0, max_depth: int = SCAN_MAX_DEPTH) -> None:
    """
    Walk an arbitrary mapping/sequence tree and emit image-like strings.

    `obj` itself sits at `depth`; containers nested deeper than `max_depth`
    are not visited.
    """
    if depth > max_depth or not _is_container(obj):
        return
    for key, value in _children(obj):
        child_context = f"{context}.{key}"
        if isinstance(value, str):
            if is_reference_path(value):
                emit(value, child_context)
            elif _looks_like_markup(value):
                scan_html(value, child_context, emit)
        elif _is_container(value):
            scan_deep(value, child_context, emit, depth + 1, max_depth)


# ==================== Kind-specific extractors ====================


def _scan_actor_or_item(data: Mapping[str, Any], context: str, emit: Emit, max_depth: int) -> None:
    token_src = _get(data, "prototypeToken", "texture", "src")
    if token_src:
        emit(token_src, f"{context} (Token)")

    system = data.get("system")
    if system:
        scan_deep(system, f"{context}.system", emit, 0, max_depth)

    items = data.get("items")
    if isinstance(items, Sequence) and not isinstance(items, (str, bytes)):
        for item in items:
            if isinstance(item, Mapping):
                nested = f"{context}.Item.{item.get('name')}"
                _scan_document_data(item, nested, "Item", emit, max_depth)


def _scan_scene(data: Mapping[str, Any], context: str, emit: Emit, max_depth: int) -> None:
    # Without `background.src` the primary `img` is the background; it is
    # indexed under both the plain and the (Background) context.
    emit(_get(data, "background", "src") or data.get("img"), f"{context} (Background)")

    for tile in data.get("tiles") or []:
        if isinstance(tile, Mapping):
            emit(_get(tile, "texture", "src") or tile.get("img"), f"{context}.Tile")

    for token in data.get("tokens") or []:
        if isinstance(token, Mapping):
            emit(_get(token, "texture", "src") or token.get("img"), f"{context}.Token.{token.get('name')}")

    foreground = data.get("foreground")
    if foreground:
        emit(foreground, f"{context} (Foreground)")

    scan_deep(data.get("flags") or {}, f"{context}.flags", emit, 0, max_depth)


def _scan_journal(data: Mapping[str, Any], context: str, emit: Emit, max_depth: int) -> None:
    for page in data.get("pages") or []:
        if not isinstance(page, Mapping):
            continue
        page_type = page.get("type")
        page_context = f"{context}.{page.get('name')}"
        if page_type == "image":
            emit(page.get("src"), page_context)
        elif page_type == "text":
            scan_html(_get(page, "text", "content"), page_context, emit)
        elif page_type == "video":
            emit(page.get("src"), f"{page_context} (Video)")


_KIND_SCANNERS: dict[str, Callable[[Mapping[str, Any], str, Emit, int], None]] = {
    "Actor": _scan_actor_or_item,
    "Item": _scan_actor_or_item,
    "Scene": _scan_scene,
    "JournalEntry": _scan_journal,
}


def _scan_document_data(data: Mapping[str, Any], context: str, kind: str, emit: Emit, max_depth: int) -> None:
    img = data.get("img")
    if img:
        emit(img, context)
    extractor = _KIND_SCANNERS.get(kind)
    if extractor is not None:
        extractor(data, context, emit, max_depth)


class ReferenceScanner:
    """Pure scanner: `scan()` returns the (path, context) pairs of one document."""

    def __init__(self, max_depth: int = SCAN_MAX_DEPTH):
        self.max_depth = max_depth

    def scan(self, document: Document | Mapping[str, Any], context: str, kind: Optional[str] = None) -> list[Reference]:
        if isinstance(document, Document):
            data: Any = document.data
            kind = kind or document.kind
        else:
            data = document
        if not isinstance(data, Mapping):
            return []

        found: list[Reference] = []

        def emit(path: Any, ctx: str) -> None:
            if is_reference_path(path):
                found.append((path, ctx))

        _scan_document_data(data, context, kind or "", emit, self.max_depth)
        return found

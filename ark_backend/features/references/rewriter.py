"""
Reference rewriter - replaces one asset path with another in every document
that mentions it.

Each document is serialized to text, checked for the old path, substituted
(quoted field values and raw occurrences inside markup), deserialized and
written back. Documents that never mention the old path are not written.
"""
from __future__ import annotations

import json
import re

from ...adapters.documents.base import Document, DocumentStore
from ...config import REWRITE_COMPENDIUMS
from ...shared import RewriteIncompleteError, get_logger

logger = get_logger(__name__)

# Every collection kind able to hold a path string
REWRITE_KINDS: tuple[str, ...] = ("Actor", "Item", "Scene", "JournalEntry", "Cards", "RollTable")


def substitute_path(text: str, old_path: str, new_path: str) -> str:
    """
    Replace `old_path` with `new_path` in serialized document text.

    The quoted form (`"old"`, a whole field value) and raw occurrences
    (markup, prose) are replaced in a single pass, so replaced text is never
    substituted again. When the new path contains the old one (a prefix shift
    such as `foo/a.png` -> `assets/foo/a.png`), existing occurrences of the
    new path are left untouched.
    """
    quoted_old = json.dumps(old_path, ensure_ascii=False)
    quoted_new = json.dumps(new_path, ensure_ascii=False)
    pattern = re.compile(f"{re.escape(quoted_old)}|{re.escape(old_path)}")

    def _swap(match: re.Match[str]) -> str:
        return quoted_new if match.group(0) == quoted_old else new_path

    if old_path in new_path and new_path in text:
        return new_path.join(pattern.sub(_swap, part) for part in text.split(new_path))
    return pattern.sub(_swap, text)


class ReferenceRewriter:
    def __init__(self, documents: DocumentStore, *, include_compendiums: bool = REWRITE_COMPENDIUMS):
        self.documents = documents
        self.include_compendiums = include_compendiums

    async def _iter_documents(self) -> list[Document]:
        docs: list[Document] = []
        for kind in REWRITE_KINDS:
            docs.extend(await self.documents.list_collection(kind))
        if not self.include_compendiums:
            return docs
        for pack in await self.documents.list_packs():
            if pack.locked:
                continue
            try:
                docs.extend(await self.documents.get_pack_documents(pack))
            except Exception as exc:
                logger.warning("Failed to load compendium %s for rewrite: %s", pack.label, exc)
        return docs

    async def rewrite_references(self, old_path: str, new_path: str) -> int:
        """
        Point every reference to `old_path` at `new_path`.

        Returns the number of documents written. A failure on one document is
        logged with its identity and the remaining documents are still tried;
        once the batch is done, any failure is raised as
        `RewriteIncompleteError` so callers never treat the old path as free.
        """
        if not old_path or not new_path or old_path == new_path:
            return 0

        rewritten = 0
        failed: list[str] = []
        for doc in await self._iter_documents():
            try:
                text = self.documents.serialize(doc)
            except Exception as exc:
                logger.error("Failed to serialize %s: %s", doc.identity, exc)
                failed.append(doc.identity)
                continue
            if old_path not in text:
                continue
            try:
                data = self.documents.deserialize(substitute_path(text, old_path, new_path))
                await self.documents.update(doc, data)
            except Exception as exc:
                logger.error("Failed to rewrite %s -> %s in %s: %s", old_path, new_path, doc.identity, exc)
                logger.debug("Rewrite failure details for %s", doc.identity, exc_info=True)
                failed.append(doc.identity)
                continue
            rewritten += 1

        if rewritten:
            logger.info("Rewrote %s -> %s in %d document(s)", old_path, new_path, rewritten)
        if failed:
            raise RewriteIncompleteError(old_path, new_path, failed, rewritten)
        return rewritten

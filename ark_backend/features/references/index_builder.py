"""
Reference index builder - scans every document collection and persists the
reverse index (asset path -> referencing contexts) into the asset store.

The index is rebuilt wholesale on every run; it is never merged with a
previous snapshot.
"""
from __future__ import annotations

import json
from typing import Callable, Optional

from ...adapters.asset_store.base import AssetFile, AssetStoreClient
from ...adapters.documents.base import Document, DocumentStore
from ...config import INDEX_DIR, INDEX_FILENAME, INDEX_SCHEMA_VERSION, STORE_SOURCE
from ...shared import IndexPersistError, get_logger, log_success, ms, timer
from .models import ReferenceIndex
from .scanner import Reference, ReferenceScanner

logger = get_logger(__name__)

# (collection kind, context prefix)
_WORLD_COLLECTIONS: tuple[tuple[str, str], ...] = (
    ("Actor", "Actor"),
    ("Item", "Item"),
    ("Scene", "Scene"),
)
_JOURNAL_COLLECTION: tuple[str, str] = ("JournalEntry", "Journal")
_PACK_KINDS = frozenset({"Actor", "Item", "Scene", "JournalEntry"})


def aggregate_references(references: list[Reference]) -> dict[str, set[str]]:
    files: dict[str, set[str]] = {}
    for path, context in references:
        files.setdefault(path, set()).add(context)
    return files


class ReferenceIndexBuilder:
    """Sole writer of the ReferenceIndex."""

    def __init__(
        self,
        documents: DocumentStore,
        asset_store: AssetStoreClient,
        scanner: Optional[ReferenceScanner] = None,
        *,
        source: str = STORE_SOURCE,
        index_dir: str = INDEX_DIR,
        index_filename: str = INDEX_FILENAME,
        clock: Callable[[], int] = ms,
    ):
        self.documents = documents
        self.asset_store = asset_store
        self.scanner = scanner or ReferenceScanner()
        self.source = source
        self.index_dir = index_dir.strip("/")
        self.index_filename = index_filename
        self._clock = clock

    @property
    def index_path(self) -> str:
        return f"{self.index_dir}/{self.index_filename}" if self.index_dir else self.index_filename

    # ==================== Build ====================

    async def build_index(self) -> ReferenceIndex:
        """
        Scan the world collections and every unlocked compendium pack, then
        persist the aggregated index.

        Returns the in-memory index even when persisting it failed.
        """
        logger.info("Starting reference indexing for %s...", self.documents.scope_id)
        with timer("reference index build", logger):
            references = await self._collect_references()
            index = ReferenceIndex(
                scope_id=str(self.documents.scope_id),
                files=aggregate_references(references),
                last_update=self._clock(),
                schema_version=INDEX_SCHEMA_VERSION,
            )

        try:
            await self.persist(index)
            log_success(logger, f"Reference index saved: {index.scope_id} ({len(index)} files)")
        except IndexPersistError as exc:
            logger.error("Failed to save reference index: %s", exc)
        return index

    async def _collect_references(self) -> list[Reference]:
        references: list[Reference] = []

        for kind, prefix in _WORLD_COLLECTIONS:
            for doc in await self.documents.list_collection(kind):
                references.extend(self._scan(doc, f"{prefix}.{doc.name}", kind))

        references.extend(await self._collect_pack_references())

        kind, prefix = _JOURNAL_COLLECTION
        for doc in await self.documents.list_collection(kind):
            references.extend(self._scan(doc, f"{prefix}.{doc.name}", kind))

        return references

    async def _collect_pack_references(self) -> list[Reference]:
        references: list[Reference] = []
        for pack in await self.documents.list_packs():
            if pack.document_name not in _PACK_KINDS:
                continue
            if pack.locked:
                logger.info("Skipping locked pack %s", pack.collection)
                continue
            try:
                docs = await self.documents.get_pack_documents(pack)
            except Exception as exc:
                logger.warning("Failed to scan compendium %s: %s", pack.label, exc)
                logger.debug("Compendium scan failure for %s", pack.collection, exc_info=True)
                continue
            for doc in docs:
                references.extend(self._scan(doc, f"Compendium.{pack.label}.{doc.name}", pack.document_name))
        return references

    def _scan(self, doc: Document, context: str, kind: str) -> list[Reference]:
        return self.scanner.scan(doc, context, kind)

    # ==================== Persistence ====================

    async def _ensure_index_dir(self) -> None:
        try:
            await self.asset_store.create_directory(self.source, self.index_dir)
            return
        except Exception as create_exc:
            logger.debug("create_directory(%s) failed: %s", self.index_dir, create_exc)
        try:
            await self.asset_store.browse(self.source, self.index_dir)
        except Exception as exc:
            raise IndexPersistError(f"Index directory {self.index_dir} unavailable: {exc}") from exc

    async def persist(self, index: ReferenceIndex) -> None:
        payload = json.dumps(index.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")
        file = AssetFile(name=self.index_filename, data=payload, content_type="application/json")
        await self._ensure_index_dir()
        try:
            await self.asset_store.upload(self.source, self.index_dir, file)
        except Exception as exc:
            raise IndexPersistError(f"Upload of {self.index_path} failed: {exc}") from exc

    async def load_index(self) -> Optional[ReferenceIndex]:
        """Read the persisted index; a missing or unreadable index means "no index yet"."""
        try:
            raw = await self.asset_store.fetch_binary(self.index_path)
            payload = json.loads(raw.decode("utf-8"))
        except Exception as exc:
            logger.debug("No readable reference index at %s: %s", self.index_path, exc)
            return None
        index = ReferenceIndex.from_dict(payload)
        if index is None:
            logger.debug("Reference index at %s is malformed", self.index_path)
        return index

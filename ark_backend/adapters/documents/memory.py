"""
In-process DocumentStore.

Serializes documents as JSON and applies updates with recursive-merge
semantics (mappings merge key by key, everything else is replaced).
"""
from __future__ import annotations

import copy
import json
from typing import Any, Iterable, Optional
from uuid import uuid4

from ...shared import StoreWriteError, get_logger
from .base import CompendiumPack, Document

logger = get_logger(__name__)


def merge_recursive(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    for key, value in source.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merge_recursive(current, value)
        else:
            target[key] = copy.deepcopy(value)
    return target


class InMemoryDocumentStore:
    def __init__(self, scope_id: str = "world", scope_label: str = "World", *, admin: bool = True):
        self.scope_id = scope_id
        self.scope_label = scope_label
        self._admin = admin
        self._collections: dict[str, list[Document]] = {}
        self._packs: list[CompendiumPack] = []
        self._pack_documents: dict[str, list[Document]] = {}
        self.writes: list[str] = []

    def is_admin(self) -> bool:
        return self._admin

    # ==================== Population ====================

    def add(self, kind: str, name: str, data: Optional[dict[str, Any]] = None, *, doc_id: Optional[str] = None) -> Document:
        doc = Document(kind=kind, id=doc_id or uuid4().hex[:16], name=name, data=copy.deepcopy(dict(data or {})))
        doc.data.setdefault("name", name)
        self._collections.setdefault(kind, []).append(doc)
        return doc

    def add_pack(
        self,
        label: str,
        document_name: str,
        documents: Iterable[tuple[str, dict[str, Any]]] = (),
        *,
        locked: bool = False,
        collection: Optional[str] = None,
    ) -> CompendiumPack:
        pack = CompendiumPack(
            collection=collection or f"world.{label.lower().replace(' ', '-')}",
            label=label,
            document_name=document_name,
            locked=locked,
        )
        self._packs.append(pack)
        docs = []
        for name, data in documents:
            doc = Document(kind=document_name, id=uuid4().hex[:16], name=name, data=copy.deepcopy(dict(data or {})))
            doc.data.setdefault("name", name)
            docs.append(doc)
        self._pack_documents[pack.collection] = docs
        return pack

    # ==================== DocumentStore ====================

    async def list_collection(self, kind: str) -> list[Document]:
        return list(self._collections.get(kind, []))

    async def list_packs(self) -> list[CompendiumPack]:
        return list(self._packs)

    async def get_pack_documents(self, pack: CompendiumPack) -> list[Document]:
        return list(self._pack_documents.get(pack.collection, []))

    def serialize(self, document: Document) -> str:
        return json.dumps(document.data, ensure_ascii=False)

    def deserialize(self, text: str) -> dict[str, Any]:
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("Serialized document is not an object")
        return data

    async def update(self, document: Document, data: dict[str, Any]) -> None:
        if not isinstance(data, dict):
            raise StoreWriteError(document.identity, "update payload must be an object")
        merge_recursive(document.data, data)
        self.writes.append(document.id)

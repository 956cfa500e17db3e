"""
Document store collaborator contract.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass
class Document:
    """A host document: kind, identity, display name and its untyped data tree."""
    kind: str
    id: str
    name: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def identity(self) -> str:
        return f"{self.kind}.{self.id} ({self.name})"


@dataclass(frozen=True)
class CompendiumPack:
    """A packaged document collection; locked packs are read-only."""
    collection: str
    label: str
    document_name: str
    locked: bool = False


@runtime_checkable
class DocumentStore(Protocol):
    """Enumerate collections, serialize/deserialize documents, persist updates."""

    scope_id: str
    scope_label: str

    def is_admin(self) -> bool: ...

    async def list_collection(self, kind: str) -> list[Document]: ...

    async def list_packs(self) -> list[CompendiumPack]: ...

    async def get_pack_documents(self, pack: CompendiumPack) -> list[Document]: ...

    def serialize(self, document: Document) -> str: ...

    def deserialize(self, text: str) -> dict[str, Any]: ...

    async def update(self, document: Document, data: dict[str, Any]) -> None: ...

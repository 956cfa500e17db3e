"""Document store adapters."""
from .base import CompendiumPack, Document, DocumentStore
from .memory import InMemoryDocumentStore, merge_recursive

__all__ = [
    "CompendiumPack",
    "Document",
    "DocumentStore",
    "InMemoryDocumentStore",
    "merge_recursive",
]

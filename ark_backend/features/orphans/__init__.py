"""Orphaned asset detection."""
from .service import OrphanDetector, browse_recursive, find_orphan_entries

__all__ = ["OrphanDetector", "browse_recursive", "find_orphan_entries"]

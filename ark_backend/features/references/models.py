"""
Data model for the reference workflows.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ...config import INDEX_SCHEMA_VERSION
from ...shared import format_duration


def percent_of(done: int, total: int) -> int:
    """Integer percent, rounding halves up."""
    if total <= 0:
        return 100
    return int(done * 100 / total + 0.5)


@dataclass
class ReferenceIndex:
    """
    Reverse index asset path -> contexts referencing it.

    Rebuilt wholesale by the index builder; consumers treat it as read-only.
    """
    scope_id: str
    files: dict[str, set[str]] = field(default_factory=dict)
    last_update: int = 0
    schema_version: int = INDEX_SCHEMA_VERSION

    def __contains__(self, path: object) -> bool:
        return path in self.files

    def __len__(self) -> int:
        return len(self.files)

    def paths(self) -> list[str]:
        return list(self.files.keys())

    def contexts(self, path: str) -> set[str]:
        return set(self.files.get(path, set()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "worldId": self.scope_id,
            "files": {path: sorted(ctx) for path, ctx in self.files.items()},
            "lastUpdate": self.last_update,
            "version": self.schema_version,
        }

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["ReferenceIndex"]:
        """Parse a persisted index; anything malformed yields None."""
        if not isinstance(payload, dict):
            return None
        raw_files = payload.get("files")
        if not isinstance(raw_files, dict):
            return None
        files: dict[str, set[str]] = {}
        for path, contexts in raw_files.items():
            if not isinstance(path, str) or not path:
                continue
            if isinstance(contexts, (list, tuple, set)):
                files[path] = {str(c) for c in contexts}
            else:
                files[path] = set()
        try:
            last_update = int(payload.get("lastUpdate") or 0)
        except (TypeError, ValueError):
            last_update = 0
        try:
            version = int(payload.get("version") or 0)
        except (TypeError, ValueError):
            version = 0
        return cls(
            scope_id=str(payload.get("worldId") or payload.get("scopeId") or ""),
            files=files,
            last_update=last_update,
            schema_version=version,
        )


@dataclass(frozen=True)
class FileUsage:
    used: bool = False
    locations: tuple[str, ...] = ()


@dataclass(frozen=True)
class OrphanEntry:
    path: str
    transcoded_counterpart: str
    extension: str

    def to_dict(self) -> dict[str, str]:
        return {
            "path": self.path,
            "transcodedCounterpart": self.transcoded_counterpart,
            "extension": self.extension,
        }


CLEANUP_INSTRUCTIONS: dict[str, str] = {
    "manual": "Delete the listed originals from the asset store data folder with your file manager.",
    "dataPath": "The data folder location depends on the host installation; check its configuration.",
    "warning": "Always back up your data before deleting files!",
}


@dataclass
class OrphanReport:
    """Unreferenced originals that already have a transcoded replacement. Never persisted."""
    timestamp: str
    scope_label: str
    orphaned_files: list[OrphanEntry] = field(default_factory=list)
    total_files: int = 0
    instructions: dict[str, str] = field(default_factory=lambda: dict(CLEANUP_INSTRUCTIONS))

    @property
    def total_orphans(self) -> int:
        return len(self.orphaned_files)

    def paths(self) -> list[str]:
        return [entry.path for entry in self.orphaned_files]

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "scopeLabel": self.scope_label,
            "totalFiles": self.total_files,
            "totalOrphans": self.total_orphans,
            "orphanedFiles": [entry.to_dict() for entry in self.orphaned_files],
            "instructions": dict(self.instructions),
        }


@dataclass
class MigrationProgress:
    """Per-run progress state; `start_time` and `now` are in milliseconds."""
    total_count: int
    start_time: float
    processed_count: int = 0

    def record(self) -> None:
        self.processed_count += 1

    @property
    def remaining(self) -> int:
        return max(0, self.total_count - self.processed_count)

    @property
    def percent(self) -> int:
        return percent_of(self.processed_count, self.total_count)

    def eta_ms(self, now: float) -> float:
        if self.processed_count <= 0:
            return 0.0
        elapsed = max(0.0, now - self.start_time)
        return self.remaining * (elapsed / self.processed_count)

    def eta_text(self, now: float) -> str:
        return format_duration(self.eta_ms(now))


@dataclass
class MigrationSummary:
    total: int = 0
    converted: int = 0
    skipped: int = 0
    failed: int = 0
    delete_failures: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "converted": self.converted,
            "skipped": self.skipped,
            "failed": self.failed,
            "deleteFailures": list(self.delete_failures),
        }

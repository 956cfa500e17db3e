"""Reference scanning, indexing, rewriting and usage lookup."""
from .index_builder import ReferenceIndexBuilder, aggregate_references
from .models import (
    FileUsage,
    MigrationProgress,
    MigrationSummary,
    OrphanEntry,
    OrphanReport,
    ReferenceIndex,
    percent_of,
)
from .rewriter import REWRITE_KINDS, ReferenceRewriter, substitute_path
from .scanner import ReferenceScanner, scan_deep, scan_html
from .usage import check_files

__all__ = [
    "ReferenceIndexBuilder",
    "aggregate_references",
    "FileUsage",
    "MigrationProgress",
    "MigrationSummary",
    "OrphanEntry",
    "OrphanReport",
    "ReferenceIndex",
    "percent_of",
    "REWRITE_KINDS",
    "ReferenceRewriter",
    "substitute_path",
    "ReferenceScanner",
    "scan_deep",
    "scan_html",
    "check_files",
]

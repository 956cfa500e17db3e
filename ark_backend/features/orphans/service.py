"""
Orphan detection - lists original images that nothing references any more
and that already have a WebP replacement next to them.

Nothing is deleted here; the report is handed to the operator for manual
cleanup.
"""
from __future__ import annotations

from typing import Iterable, Optional

from ...adapters.asset_store.base import AssetStoreClient
from ...config import BROWSE_MAX_DEPTH, ORPHAN_ROOTS, STORE_SOURCE
from ...shared import get_logger, is_convertible, path_extension, transcoded_sibling, utc_iso
from ..progress import ProgressCallback, notify_progress
from ..references.index_builder import ReferenceIndexBuilder
from ..references.models import OrphanEntry, OrphanReport, percent_of

logger = get_logger(__name__)


async def browse_recursive(
    asset_store: AssetStoreClient,
    source: str,
    target: str,
    max_depth: int = BROWSE_MAX_DEPTH,
) -> list[str]:
    """
    List every file below `target`.

    A directory that fails to browse is logged and its subtree skipped;
    directories deeper than `max_depth` below `target` are not visited.
    """
    results: list[str] = []

    async def _scan(path: str, depth: int) -> None:
        if depth > max_depth:
            logger.debug("Browse depth limit reached at %s", path)
            return
        try:
            content = await asset_store.browse(source, path)
        except Exception as exc:
            logger.warning("Error scanning %s: %s", path, exc)
            return
        results.extend(content.files)
        for sub in content.dirs:
            await _scan(sub, depth + 1)

    await _scan(target, 0)
    return results


def find_orphan_entries(physical_files: Iterable[str], referenced: Iterable[str]) -> list[OrphanEntry]:
    """Convertible, unreferenced, and with a transcoded sibling physically present."""
    physical = list(dict.fromkeys(physical_files))
    physical_set = set(physical)
    referenced_set = set(referenced)
    entries: list[OrphanEntry] = []
    for path in physical:
        if not is_convertible(path) or path in referenced_set:
            continue
        sibling = transcoded_sibling(path)
        if sibling in physical_set:
            entries.append(OrphanEntry(path=path, transcoded_counterpart=sibling, extension=path_extension(path)))
    return entries


def log_orphan_report(report: OrphanReport) -> None:
    logger.info("Orphaned files report for %s (%s)", report.scope_label, report.timestamp)
    logger.info("Total orphaned files: %d of %d scanned", report.total_orphans, report.total_files)
    for position, entry in enumerate(report.orphaned_files, start=1):
        logger.info("%d. %s (WebP exists: %s)", position, entry.path, entry.transcoded_counterpart)
    if report.orphaned_files:
        logger.warning(report.instructions.get("warning", ""))


class OrphanDetector:
    def __init__(
        self,
        builder: ReferenceIndexBuilder,
        asset_store: AssetStoreClient,
        roots: Iterable[str] = ORPHAN_ROOTS,
        *,
        source: str = STORE_SOURCE,
        max_depth: int = BROWSE_MAX_DEPTH,
    ):
        self.builder = builder
        self.asset_store = asset_store
        self.roots = tuple(roots)
        self.source = source
        self.max_depth = max_depth

    async def list_physical_files(self) -> list[str]:
        files: list[str] = []
        for root in self.roots:
            files.extend(await browse_recursive(self.asset_store, self.source, root, self.max_depth))
        return list(dict.fromkeys(files))

    async def find_orphans(self, on_progress: Optional[ProgressCallback] = None) -> OrphanReport:
        """
        Rebuild the index, walk the configured roots and report orphans.

        `on_progress(percent)` is called whenever the integer percent of
        examined physical files changes.
        """
        index = await self.builder.build_index()
        report = OrphanReport(timestamp=utc_iso(), scope_label=str(self.builder.documents.scope_label))
        if not index.files:
            return report

        logger.info("Scanning server for orphaned files...")
        physical = await self.list_physical_files()
        report.total_files = len(physical)

        orphans = {entry.path: entry for entry in find_orphan_entries(physical, index.files.keys())}
        last_percent = -1
        for position, path in enumerate(physical, start=1):
            entry = orphans.get(path)
            if entry is not None:
                report.orphaned_files.append(entry)
            percent = percent_of(position, len(physical))
            if percent != last_percent:
                last_percent = percent
                await notify_progress(on_progress, percent)

        if not report.orphaned_files:
            logger.info("No orphaned images found on server.")
        else:
            log_orphan_report(report)
        return report

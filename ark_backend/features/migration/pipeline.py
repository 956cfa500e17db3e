"""
Mass conversion pipeline.

For every indexed PNG/JPEG, one at a time:
fetch -> transcode -> upload next to the original -> rewrite references ->
delete the original. A failing item is logged and skipped; the batch always
runs to the end and the index is rebuilt afterwards. An original is only
deleted once every referencing document points at its replacement.
"""
from __future__ import annotations

import asyncio
import logging
import posixpath
from typing import Callable, Iterable, Optional

from ...adapters.asset_store.base import AssetFile, AssetStoreClient
from ...config import STORE_SOURCE
from ...shared import (
    DeleteUnsupportedError,
    NotFoundError,
    RewriteIncompleteError,
    get_logger,
    is_convertible,
    log_structured,
    log_success,
    ms,
    transcoded_sibling,
)
from ...utils import join_store_path, parent_dir
from ..progress import ProgressCallback, notify_progress
from ..references.index_builder import ReferenceIndexBuilder
from ..references.models import MigrationProgress, MigrationSummary, ReferenceIndex
from ..references.rewriter import ReferenceRewriter
from .transcoder import ImageTranscoder

logger = get_logger(__name__)

Transcode = Callable[[bytes, str], AssetFile]


def conversion_candidates(index: ReferenceIndex) -> list[str]:
    """Indexed paths in a convertible raster format (vector and WebP excluded)."""
    return [path for path in index.paths() if is_convertible(path)]


def split_collisions(candidates: list[str], reserved: Iterable[str] = ()) -> tuple[list[str], list[str]]:
    """
    Keep the first candidate per transcoded target path.

    A later candidate mapping to the same WebP name (`x.png` and `x.jpg`), or
    to a WebP path already in `reserved`, collides and is returned separately.
    """
    taken = set(reserved)
    kept: list[str] = []
    collided: list[str] = []
    for path in candidates:
        target = transcoded_sibling(path)
        if target in taken:
            collided.append(path)
            continue
        taken.add(target)
        kept.append(path)
    return kept, collided


class MigrationPipeline:
    def __init__(
        self,
        builder: ReferenceIndexBuilder,
        asset_store: AssetStoreClient,
        rewriter: ReferenceRewriter,
        transcoder: Optional[Transcode] = None,
        *,
        source: str = STORE_SOURCE,
        clock: Callable[[], float] = ms,
    ):
        self.builder = builder
        self.asset_store = asset_store
        self.rewriter = rewriter
        self.transcoder: Transcode = transcoder or ImageTranscoder()
        self.source = source
        self._clock = clock

    async def run_mass_conversion(self, on_progress: Optional[ProgressCallback] = None) -> MigrationSummary:
        """
        Convert every indexed raster image to WebP.

        `on_progress(percent, eta, processed, total)` is called after each
        path; `eta` is formatted as "Xm Ys", "Ys" or "---".
        """
        index = await self.builder.build_index()
        summary = MigrationSummary()
        if not index.files:
            return summary

        candidates = conversion_candidates(index)
        summary.total = len(candidates)
        if not candidates:
            logger.info("No images to convert.")
            return summary

        reserved = [path for path in index.paths() if not is_convertible(path)]
        to_convert, collided = split_collisions(candidates, reserved)
        for path in collided:
            summary.skipped += 1
            logger.warning(
                "Skipping conversion for %s: %s is already taken by another image.", path, transcoded_sibling(path)
            )
        if not to_convert:
            return summary

        logger.info("Starting mass conversion of %d files...", len(to_convert))
        progress = MigrationProgress(total_count=len(to_convert), start_time=self._clock())

        for old_path in to_convert:
            try:
                await self._convert(old_path, summary)
                summary.converted += 1
            except NotFoundError:
                summary.skipped += 1
                logger.warning("Skipping conversion for %s: file not found on server.", old_path)
            except Exception as exc:
                summary.failed += 1
                logger.error("Failed to convert %s: %s", old_path, exc)
                logger.debug("Conversion failure for %s", old_path, exc_info=True)

            progress.record()
            await notify_progress(
                on_progress,
                progress.percent,
                progress.eta_text(self._clock()),
                progress.processed_count,
                progress.total_count,
            )

        await self.builder.build_index()
        log_success(
            logger,
            f"Conversion complete: {summary.converted} converted, {summary.skipped} skipped, {summary.failed} failed",
        )
        if summary.delete_failures:
            log_structured(logger, logging.WARNING, "Originals left for manual cleanup", **summary.to_dict())
        return summary

    async def _convert(self, old_path: str, summary: MigrationSummary) -> str:
        data = await self.asset_store.fetch_binary(old_path)
        webp = await asyncio.to_thread(self.transcoder, data, posixpath.basename(old_path))

        folder = parent_dir(old_path)
        await self.asset_store.upload(self.source, folder, webp)
        new_path = join_store_path(folder, webp.name)

        # Documents must point at the new file before the original disappears.
        try:
            await self.rewriter.rewrite_references(old_path, new_path)
        except RewriteIncompleteError as exc:
            summary.delete_failures.append(old_path)
            logger.warning(
                "Keeping %s: %d document(s) still reference it. Manual cleanup required.", old_path, len(exc.failed)
            )
            raise

        if new_path != old_path and not await self._delete_original(old_path):
            summary.delete_failures.append(old_path)
        return new_path

    async def _delete_original(self, path: str) -> bool:
        deleter = getattr(self.asset_store, "delete", None)
        if not callable(deleter):
            logger.warning("Deletion API not found. Skipping deletion of %s. Manual cleanup required.", path)
            return False
        try:
            await deleter(self.source, path)
        except DeleteUnsupportedError:
            logger.warning("Deletion not supported by the asset store. Skipping %s. Manual cleanup required.", path)
            return False
        except Exception as exc:
            logger.warning("Could not delete %s: %s. Manual cleanup required.", path, exc)
            return False
        logger.info("Deleted original file: %s", path)
        return True

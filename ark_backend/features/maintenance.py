"""
Maintenance entry points - the operations an external trigger invokes.

Each entry point checks administrator privileges once, tags its log lines with
a run id, and returns a Result instead of raising.
"""
from __future__ import annotations

import asyncio
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterable, Iterator, Optional, TypeVar
from uuid import uuid4

from ..adapters.documents.base import DocumentStore
from ..config import STARTUP_INDEX_DELAY
from ..shared import ErrorCode, Result, get_logger, request_id_var, sanitize_error_message
from .migration.pipeline import MigrationPipeline
from .orphans.service import OrphanDetector
from .progress import ProgressCallback
from .references.index_builder import ReferenceIndexBuilder
from .references.models import FileUsage, MigrationSummary, OrphanReport, ReferenceIndex
from .references.usage import check_files
from .repair.service import LinkRepairer

logger = get_logger(__name__)

T = TypeVar("T")


@contextmanager
def _run_scope(operation: str) -> Iterator[str]:
    run_id = f"{operation}-{uuid4().hex[:8]}"
    token = request_id_var.set(run_id)
    try:
        yield run_id
    finally:
        request_id_var.reset(token)


class MaintenanceService:
    def __init__(
        self,
        documents: DocumentStore,
        builder: ReferenceIndexBuilder,
        repairer: LinkRepairer,
        pipeline: MigrationPipeline,
        orphans: OrphanDetector,
    ):
        self.documents = documents
        self.builder = builder
        self.repairer = repairer
        self.pipeline = pipeline
        self.orphans = orphans

    def _forbidden(self) -> Optional[Result[Any]]:
        if self.documents.is_admin():
            return None
        return Result.Err(ErrorCode.FORBIDDEN, "Administrator privileges required")

    async def _run(self, operation: str, code: ErrorCode, work: Callable[[], Awaitable[T]]) -> Result[T]:
        denied = self._forbidden()
        if denied is not None:
            logger.warning("%s refused: administrator privileges required", operation)
            return denied
        with _run_scope(operation):
            try:
                return Result.Ok(await work())
            except Exception as exc:
                logger.error("%s failed: %s", operation, exc)
                logger.debug("%s failure details", operation, exc_info=True)
                return Result.Err(code, sanitize_error_message(exc, f"{operation} failed"))

    async def build_index(self) -> Result[ReferenceIndex]:
        return await self._run("index", ErrorCode.INDEX_ERROR, self.builder.build_index)

    async def repair_links(self, on_progress: Optional[ProgressCallback] = None) -> Result[int]:
        return await self._run(
            "repair", ErrorCode.REPAIR_FAILED, lambda: self.repairer.repair_broken_links(on_progress)
        )

    async def run_mass_conversion(self, on_progress: Optional[ProgressCallback] = None) -> Result[MigrationSummary]:
        return await self._run(
            "convert", ErrorCode.CONVERSION_FAILED, lambda: self.pipeline.run_mass_conversion(on_progress)
        )

    async def find_orphans(self, on_progress: Optional[ProgressCallback] = None) -> Result[OrphanReport]:
        return await self._run(
            "orphans", ErrorCode.ORPHAN_SCAN_FAILED, lambda: self.orphans.find_orphans(on_progress)
        )

    async def check_files(self, paths: Iterable[str]) -> Result[dict[str, FileUsage]]:
        """Usage lookup; open to every user, it only reads the persisted index."""
        wanted = [p for p in paths if p]
        if not wanted:
            return Result.Err(ErrorCode.INVALID_INPUT, "No paths given")
        return Result.Ok(await check_files(self.builder, wanted))

    async def index_on_startup(self, delay: float = STARTUP_INDEX_DELAY) -> Result[ReferenceIndex]:
        """Rebuild the index shortly after the host is ready (administrators only)."""
        denied = self._forbidden()
        if denied is not None:
            return denied
        if delay > 0:
            await asyncio.sleep(delay)
        return await self.build_index()

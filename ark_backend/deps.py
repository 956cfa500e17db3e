"""
Dependency injection - builds services.
Simple, debug-friendly DI without framework magic.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from .adapters.asset_store.base import AssetStoreClient
from .adapters.asset_store.middleware import GuardedAssetStore
from .adapters.documents.base import DocumentStore
from .config import (
    ASSET_ROOT_PREFIX,
    BROWSE_MAX_DEPTH,
    CONVERT_ON_UPLOAD,
    KNOWN_ROOT_PREFIXES,
    ORPHAN_ROOTS,
    PATH_SHIFT_RULES,
    REWRITE_COMPENDIUMS,
    STORE_SOURCE,
    TRANSCODE_QUALITY,
)
from .features.maintenance import MaintenanceService
from .features.migration import ImageTranscoder, MigrationPipeline
from .features.orphans import OrphanDetector
from .features.references import ReferenceIndexBuilder, ReferenceRewriter, ReferenceScanner, check_files
from .features.repair import LinkRepairer, PathShiftRules
from .shared import get_logger, log_success

logger = get_logger(__name__)


def build_services(
    documents: DocumentStore,
    asset_store: AssetStoreClient,
    *,
    source: str = STORE_SOURCE,
    orphan_roots: Iterable[str] = ORPHAN_ROOTS,
    path_shift_rules: Mapping[str, str] = PATH_SHIFT_RULES,
    transcode_quality: float = TRANSCODE_QUALITY,
    rewrite_compendiums: bool = REWRITE_COMPENDIUMS,
    guard_asset_store: bool = False,
    index_dir: Optional[str] = None,
) -> dict[str, Any]:
    """
    Build all services (DI container).

    Args:
        documents: Host document store
        asset_store: Host asset store client
        guard_asset_store: Also build a `GuardedAssetStore` (convert-on-upload,
            delete protection) for the host to install as its upload/delete middleware

    Returns:
        dict of service instances
    """
    logger.info("Building services...")
    transcoder = ImageTranscoder(quality=transcode_quality)
    builder_kwargs: dict[str, Any] = {"source": source}
    if index_dir is not None:
        builder_kwargs["index_dir"] = index_dir
    builder = ReferenceIndexBuilder(documents, asset_store, ReferenceScanner(), **builder_kwargs)
    rewriter = ReferenceRewriter(documents, include_compendiums=rewrite_compendiums)
    rules = PathShiftRules(path_shift_rules, asset_root=ASSET_ROOT_PREFIX, known_prefixes=KNOWN_ROOT_PREFIXES)

    services: dict[str, Any] = {
        "documents": documents,
        "asset_store": asset_store,
        "transcoder": transcoder,
        "index_builder": builder,
        "rewriter": rewriter,
        "repairer": LinkRepairer(builder, asset_store, rewriter, rules),
        "migration": MigrationPipeline(builder, asset_store, rewriter, transcoder, source=source),
        "orphans": OrphanDetector(builder, asset_store, orphan_roots, source=source, max_depth=BROWSE_MAX_DEPTH),
    }
    services["maintenance"] = MaintenanceService(
        documents,
        builder,
        services["repairer"],
        services["migration"],
        services["orphans"],
    )

    if guard_asset_store:

        async def _usage_lookup(paths: list[str]):
            return await check_files(builder, paths)

        services["guarded_asset_store"] = GuardedAssetStore(
            asset_store,
            transcode=transcoder,
            usage_lookup=_usage_lookup,
            convert_on_upload=CONVERT_ON_UPLOAD,
        )

    log_success(logger, "Services built")
    return services

"""Asset store adapters."""
from .base import AssetFile, AssetStoreClient, BrowseResult
from .http import HttpAssetStore
from .middleware import GuardedAssetStore, should_convert_upload

__all__ = [
    "AssetFile",
    "AssetStoreClient",
    "BrowseResult",
    "HttpAssetStore",
    "GuardedAssetStore",
    "should_convert_upload",
]

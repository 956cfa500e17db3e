"""Shared utilities for Asset Reference Keeper."""
from .errors import (
    AssetInUseError,
    AssetRefError,
    DecodeError,
    DeleteUnsupportedError,
    DirectoryBrowseError,
    EncodeError,
    FetchError,
    IndexPersistError,
    NotFoundError,
    RewriteIncompleteError,
    StoreWriteError,
    sanitize_error_message,
)
from .log import get_logger, log_structured, log_success, request_id_var
from .result import Result
from .time import format_duration, ms, now, timer, utc_iso
from .types import (
    CONVERTIBLE_EXTENSIONS,
    OPTIMAL_EXTENSIONS,
    TRANSCODED_CONTENT_TYPE,
    TRANSCODED_EXTENSION,
    ErrorCode,
    is_convertible,
    is_optimal,
    is_reference_path,
    path_extension,
    transcoded_sibling,
    with_extension,
)

__all__ = [
    "Result",
    "get_logger",
    "log_success",
    "log_structured",
    "request_id_var",
    "now",
    "ms",
    "format_duration",
    "utc_iso",
    "timer",
    "ErrorCode",
    "is_convertible",
    "is_optimal",
    "is_reference_path",
    "path_extension",
    "transcoded_sibling",
    "with_extension",
    "CONVERTIBLE_EXTENSIONS",
    "OPTIMAL_EXTENSIONS",
    "TRANSCODED_CONTENT_TYPE",
    "TRANSCODED_EXTENSION",
    "sanitize_error_message",
    "AssetRefError",
    "FetchError",
    "NotFoundError",
    "RewriteIncompleteError",
    "DecodeError",
    "EncodeError",
    "StoreWriteError",
    "DirectoryBrowseError",
    "IndexPersistError",
    "DeleteUnsupportedError",
    "AssetInUseError",
]

"""Backend-facing alias for shared utilities.

Backend modules import shared helpers through this module so the backend can
be embedded by a host that loads it either as a sub-package or as a top-level
package.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import ark_shared as _root_shared
else:
    try:
        # When embedded as a package (e.g. <host_extension>.ark_backend.*)
        from .. import ark_shared as _root_shared  # type: ignore
    except ImportError:
        # When running tests or scripts that import `ark_backend.*` as a top-level package
        import ark_shared as _root_shared  # type: ignore

Result = _root_shared.Result
ErrorCode = _root_shared.ErrorCode
get_logger = _root_shared.get_logger
log_success = _root_shared.log_success
log_structured = _root_shared.log_structured
request_id_var = _root_shared.request_id_var
sanitize_error_message = _root_shared.sanitize_error_message
is_convertible = _root_shared.is_convertible
is_optimal = _root_shared.is_optimal
is_reference_path = _root_shared.is_reference_path
path_extension = _root_shared.path_extension
transcoded_sibling = _root_shared.transcoded_sibling
with_extension = _root_shared.with_extension
format_duration = _root_shared.format_duration
utc_iso = _root_shared.utc_iso
ms = _root_shared.ms
timer = _root_shared.timer
TRANSCODED_EXTENSION = _root_shared.TRANSCODED_EXTENSION
TRANSCODED_CONTENT_TYPE = _root_shared.TRANSCODED_CONTENT_TYPE

AssetRefError = _root_shared.AssetRefError
FetchError = _root_shared.FetchError
NotFoundError = _root_shared.NotFoundError
RewriteIncompleteError = _root_shared.RewriteIncompleteError
DecodeError = _root_shared.DecodeError
EncodeError = _root_shared.EncodeError
StoreWriteError = _root_shared.StoreWriteError
DirectoryBrowseError = _root_shared.DirectoryBrowseError
IndexPersistError = _root_shared.IndexPersistError
DeleteUnsupportedError = _root_shared.DeleteUnsupportedError
AssetInUseError = _root_shared.AssetInUseError

__all__ = [name for name in _root_shared.__all__ if name in globals()]

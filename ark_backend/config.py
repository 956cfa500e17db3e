"""
Configuration for Asset Reference Keeper.

Every value can be overridden through `ARK_*` environment variables; invalid
values log a warning and fall back to the default.
"""
import json
import logging
import os
from typing import Any

from .utils import env_bool

logger = logging.getLogger(__name__)


def _env_raw(*names: str, default: str | None = None) -> str | None:
    for name in names:
        if not name:
            continue
        val = os.getenv(name)
        if val is not None and str(val).strip() != "":
            return str(val).strip()
    return default


def _env_int(default: int, *names: str, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_float(default: float, *names: str, min_value: float | None = None, max_value: float | None = None) -> float:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid float for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_bool(default: bool, *names: str) -> bool:
    for name in names:
        if name and name in os.environ:
            return env_bool(name, default)
    return default


def _env_list(default: tuple[str, ...], *names: str) -> tuple[str, ...]:
    raw = _env_raw(*names)
    if raw is None:
        return default
    items = tuple(part.strip() for part in raw.split(",") if part.strip())
    return items or default


def _env_json(default: Any, *names: str) -> Any:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Invalid JSON for %s=%r, using default", names[0] if names else "<unknown>", raw)
        return default


# ==================== Asset store ====================

ASSET_STORE_URL = _env_raw("ARK_ASSET_STORE_URL", default="http://localhost:30000") or "http://localhost:30000"

# 0 disables the client timeout
ASSET_STORE_TIMEOUT = _env_float(0.0, "ARK_ASSET_STORE_TIMEOUT", min_value=0.0, max_value=3600.0)

# Storage source the host's file browser resolves store-relative paths against
STORE_SOURCE = _env_raw("ARK_STORE_SOURCE", default="data") or "data"

# ==================== Reference index ====================

INDEX_DIR = _env_raw("ARK_INDEX_DIR", default="modules/asset-ref-keeper/data") or "modules/asset-ref-keeper/data"
INDEX_FILENAME = _env_raw("ARK_INDEX_FILENAME", default="asset-ref-index.json") or "asset-ref-index.json"
INDEX_SCHEMA_VERSION = 3

# Containers nested deeper than this below a scanned root are not visited
SCAN_MAX_DEPTH = _env_int(10, "ARK_SCAN_MAX_DEPTH", min_value=1, max_value=64)

# ==================== Link repair ====================

DEFAULT_PATH_SHIFT_RULES: dict[str, str] = {"deadlands/": "assets/deadlands/"}
PATH_SHIFT_RULES: dict[str, str] = DEFAULT_PATH_SHIFT_RULES
_rules_raw = _env_json(None, "ARK_PATH_SHIFT_RULES")
if isinstance(_rules_raw, dict):
    PATH_SHIFT_RULES = {str(k): str(v) for k, v in _rules_raw.items() if k}
elif _rules_raw is not None:
    logger.warning("ARK_PATH_SHIFT_RULES must be a JSON object, using defaults")

ASSET_ROOT_PREFIX = _env_raw("ARK_ASSET_ROOT_PREFIX", default="assets/") or "assets/"
KNOWN_ROOT_PREFIXES = _env_list(("assets/", "modules/", "systems/"), "ARK_KNOWN_ROOT_PREFIXES")

# ==================== Migration ====================

TRANSCODE_QUALITY = _env_float(0.8, "ARK_TRANSCODE_QUALITY", min_value=0.05, max_value=1.0)
CONVERT_ON_UPLOAD = _env_bool(True, "ARK_CONVERT_ON_UPLOAD")

# Also rewrite references inside unlocked compendium packs
REWRITE_COMPENDIUMS = _env_bool(True, "ARK_REWRITE_COMPENDIUMS")

# ==================== Orphans ====================

ORPHAN_ROOTS = _env_list(("assets",), "ARK_ORPHAN_ROOTS")
BROWSE_MAX_DEPTH = _env_int(32, "ARK_BROWSE_MAX_DEPTH", min_value=1, max_value=256)

# ==================== Startup ====================

STARTUP_INDEX_DELAY = _env_float(10.0, "ARK_STARTUP_INDEX_DELAY", min_value=0.0, max_value=600.0)

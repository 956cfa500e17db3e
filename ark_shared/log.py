"""
Logging utilities with consistent formatting and emoji indicators.
"""
import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Final

# Emoji indicators for log levels
EMOJI_MAP: Final[dict[str, str]] = {
    "DEBUG": "🔍",
    "INFO": "ℹ️",
    "WARNING": "⚠️",
    "ERROR": "❌",
    "CRITICAL": "🔥",
    "SUCCESS": "✅",
}

PREFIX: Final[str] = "🗂️ AssetRefs"

LOGGER_NAMESPACE: Final[str] = "assetrefs"

# Correlates every line emitted by one workflow run (index, repair, convert, orphans).
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class CorrelationFilter(logging.Filter):
    """Inject `request_id` from `request_id_var` into each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            record.request_id = request_id_var.get("")
        except Exception:
            record.request_id = ""
        return True


class EmojiFormatter(logging.Formatter):
    """Formatter that adds the prefix, a level emoji and the optional run id."""

    def format(self, record: logging.LogRecord) -> str:
        emoji = EMOJI_MAP.get(record.levelname, "🗂️")

        # Format: 🗂️ AssetRefs [✅] features.references.index_builder [run-1]: message
        rid = str(getattr(record, "request_id", "") or "").strip()
        rid_part = f" [{rid}]" if rid else ""
        log_format = f"{PREFIX} [{emoji}] %(name)s{rid_part}: %(message)s"
        formatter = logging.Formatter(log_format)
        return formatter.format(record)


def _has_correlation_filter(logger: logging.Logger) -> bool:
    return any(isinstance(f, CorrelationFilter) for f in list(logger.filters or []))


def _ensure_correlation_filter(logger: logging.Logger) -> None:
    if _has_correlation_filter(logger):
        return
    logger.addFilter(CorrelationFilter())


def _short_name(name: str) -> str:
    if name.startswith("__main__"):
        return "main"
    if "." in name:
        parts = name.split(".")
        for anchor in ("features", "adapters"):
            if anchor in parts:
                idx = parts.index(anchor)
                return ".".join(parts[idx:])
        if parts[0] in ("ark_backend", "ark_shared"):
            return ".".join(parts[1:]) or parts[0]
    return name


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """
    Get a logger with the AssetRefs prefix and emoji indicators.

    Args:
        name: Logger name (usually __name__)
        level: Optional logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger instance with emoji formatting
    """
    logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{_short_name(name)}")
    _ensure_correlation_filter(logger)

    if level is not None:
        logger.setLevel(level)
    elif not logger.handlers:
        logger.setLevel(logging.INFO)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(EmojiFormatter())
        logger.addHandler(handler)
        logger.propagate = False

    return logger


# Add SUCCESS level
SUCCESS_LEVEL: Final[int] = 25  # Between INFO (20) and WARNING (30)
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")


def log_success(logger: logging.Logger, message: str) -> None:
    """Log a success message with the ✅ emoji."""
    logger.log(SUCCESS_LEVEL, message)


def log_structured(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Emit a structured JSON log entry with contextual fields."""
    payload = {
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "context": context,
    }
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))

"""
Progress callback helper shared by the batch workflows.
"""
from __future__ import annotations

import inspect
from typing import Any, Callable, Optional

from ..shared import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[..., Any]


async def notify_progress(callback: Optional[ProgressCallback], *args: Any) -> None:
    """Invoke a sync or async progress callback; a failing callback never aborts the batch."""
    if callback is None:
        return
    try:
        outcome = callback(*args)
        if inspect.isawaitable(outcome):
            await outcome
    except Exception:
        logger.debug("Progress callback failed", exc_info=True)

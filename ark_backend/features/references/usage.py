"""
Usage lookup against the persisted reference index.
"""
from __future__ import annotations

from typing import Iterable

from ...shared import get_logger
from .index_builder import ReferenceIndexBuilder
from .models import FileUsage

logger = get_logger(__name__)


async def check_files(builder: ReferenceIndexBuilder, paths: Iterable[str]) -> dict[str, FileUsage]:
    """
    Report, for each path, whether the last persisted index lists it and where.

    Without a readable index every path is reported as unused.
    """
    wanted = list(dict.fromkeys(paths))
    results = {path: FileUsage() for path in wanted}

    index = await builder.load_index()
    if index is None:
        logger.warning("No readable reference index; usage unknown for %d path(s)", len(wanted))
        return results

    for path in wanted:
        contexts = index.files.get(path)
        if contexts is not None:
            results[path] = FileUsage(used=True, locations=tuple(sorted(contexts)))
    return results

"""
Link repair - finds indexed references whose file is gone and points them at
the file's new location.

For each missing path, in order:
1. one path-shift candidate from the rule table (legacy prefix rewrite, or
   the asset root prepended to a path outside the known top-level folders);
2. the transcoded (WebP) sibling of the original path, then of the shifted path.
The first candidate that exists wins; otherwise the file is logged as missing.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from ...adapters.asset_store.base import AssetStoreClient
from ...config import ASSET_ROOT_PREFIX, KNOWN_ROOT_PREFIXES, PATH_SHIFT_RULES
from ...shared import RewriteIncompleteError, get_logger, is_optimal, transcoded_sibling
from ..progress import ProgressCallback, notify_progress
from ..references.index_builder import ReferenceIndexBuilder
from ..references.models import percent_of
from ..references.rewriter import ReferenceRewriter

logger = get_logger(__name__)


@dataclass(frozen=True)
class PathShiftRule:
    prefix: str
    replacement: str

    def apply(self, path: str) -> Optional[str]:
        if path.startswith(self.prefix):
            return self.replacement + path[len(self.prefix):]
        return None


class PathShiftRules:
    """
    Ordered path-shift heuristics.

    Prefix rules are tried first; the first match wins. A path matching no
    rule and not starting with a known top-level prefix gets the asset root
    prepended.
    """

    def __init__(
        self,
        rules: Mapping[str, str] | Iterable[PathShiftRule] = PATH_SHIFT_RULES,
        *,
        asset_root: str = ASSET_ROOT_PREFIX,
        known_prefixes: Iterable[str] = KNOWN_ROOT_PREFIXES,
    ):
        if isinstance(rules, Mapping):
            self.rules = [PathShiftRule(str(k), str(v)) for k, v in rules.items()]
        else:
            self.rules = list(rules)
        self.asset_root = asset_root
        self.known_prefixes = tuple(known_prefixes)

    def shift(self, path: str) -> Optional[str]:
        for rule in self.rules:
            shifted = rule.apply(path)
            if shifted is not None:
                return shifted
        if self.asset_root and not path.startswith(self.known_prefixes):
            return self.asset_root + path
        return None


class LinkRepairer:
    def __init__(
        self,
        builder: ReferenceIndexBuilder,
        asset_store: AssetStoreClient,
        rewriter: ReferenceRewriter,
        rules: Optional[PathShiftRules] = None,
    ):
        self.builder = builder
        self.asset_store = asset_store
        self.rewriter = rewriter
        self.rules = rules or PathShiftRules()

    async def repair_broken_links(self, on_progress: Optional[ProgressCallback] = None) -> int:
        """
        Repair every indexed reference whose file is missing.

        `on_progress(percent)` is called after each path. Returns the number
        of repaired paths; a path counts only when every referencing document
        was rewritten. The index is rebuilt before returning.
        """
        index = await self.builder.build_index()
        if not index.files:
            return 0

        to_check = [path for path in index.paths() if not is_optimal(path)]
        if not to_check:
            logger.info("No applicable links to check.")
            return 0

        logger.info("Starting link repair for %d files...", len(to_check))
        repaired = 0
        for processed, old_path in enumerate(to_check, start=1):
            try:
                if await self._repair_path(old_path):
                    repaired += 1
            except RewriteIncompleteError as exc:
                logger.warning("Partial repair of %s: %s", old_path, exc)
            except Exception as exc:
                logger.error("Error checking %s: %s", old_path, exc)
                logger.debug("Link check failure for %s", old_path, exc_info=True)
            await notify_progress(on_progress, percent_of(processed, len(to_check)))

        await self.builder.build_index()
        logger.info("Link repair finished: %d/%d repaired", repaired, len(to_check))
        return repaired

    async def _repair_path(self, old_path: str) -> bool:
        if await self.asset_store.probe_exists(old_path):
            return False

        shifted = self.rules.shift(old_path)
        if shifted and shifted != old_path and await self.asset_store.probe_exists(shifted):
            logger.info("Repairing path shift: %s -> %s", old_path, shifted)
            await self.rewriter.rewrite_references(old_path, shifted)
            return True

        candidates = [transcoded_sibling(old_path)]
        if shifted:
            candidates.append(transcoded_sibling(shifted))
        for candidate in dict.fromkeys(candidates):
            if candidate == old_path:
                continue
            if await self.asset_store.probe_exists(candidate):
                logger.info("Repairing broken link: %s -> %s", old_path, candidate)
                await self.rewriter.rewrite_references(old_path, candidate)
                return True

        logger.warning("File %s is missing and no safe fallback was found. Skipping.", old_path)
        return False

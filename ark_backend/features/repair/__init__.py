"""Broken link repair."""
from .service import LinkRepairer, PathShiftRule, PathShiftRules

__all__ = ["LinkRepairer", "PathShiftRule", "PathShiftRules"]

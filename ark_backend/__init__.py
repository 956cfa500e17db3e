"""
Asset Reference Keeper backend.

Keeps a reverse index of which documents reference which asset files, repairs
moved references, converts raster images to WebP while rewriting every
reference, and reports orphaned originals.
"""
from .deps import build_services

__all__ = ["build_services"]

"""
undup: replace duplicate files with symlinks to their authoritative copies.

Core features:
- Content matching by SHA-256, never by name or location
- Symlink-transparent hashing: already-linked files are recognised
- Optional hash cache (in-memory or persistent) keyed by size and mtime
- Dry run that only prints the plan; optional trash mode via send2trash
"""

try:
    from importlib.metadata import version as _version
    __version__ = _version("undup")
except Exception:
    __version__ = "0.0.0"

# Public API: only what users should import directly
from undup.commands import LinkCommand, find_matching_files
from undup.core import (
    CacheMode, DiscoveredIndex, LinkParams, MatchingFile, MatchResult, RegularFile,
    Symlink, TieBreak, TraversalError)
from undup.services import LinkService

__all__ = [
    "LinkCommand",
    "find_matching_files",
    "CacheMode",
    "DiscoveredIndex",
    "LinkParams",
    "MatchingFile",
    "MatchResult",
    "RegularFile",
    "Symlink",
    "TieBreak",
    "TraversalError",
    "LinkService",
    "__version__",
]

"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Core interfaces (Protocols) for the discovery and matching pipeline.

Key Components:
---------------
- HashingBackend: Single-method strategy turning a path into a content hash.
- HashCache: Storage used by the cached backend, keyed by path.
- TreeWalker: Builds a DiscoveredIndex from one or more roots.
- MatchingEngine: Pairs target duplicates with authoritative sources.
"""

from pathlib import Path
from typing import Iterable, Optional, Protocol

from undup.core.models import (
    CacheRecord,
    ContentHash,
    DiagnosticCallback,
    DiscoveredIndex,
    MatchResult,
)


class HashingBackend(Protocol):
    """
    Strategy for hashing file contents.

    Implementations always open through symlinks and raise OSError on failure.
    """

    def hash(self, path: Path) -> ContentHash:
        """Return the content hash of the file at `path`."""
        ...

    def close(self) -> None:
        """Release any resources held by the backend."""
        ...


class HashCache(Protocol):
    """
    Storage for previously computed hashes.

    A record is only valid while the file's size and modification time
    still equal the ones stored with it.
    """

    def get(self, path: str) -> Optional[CacheRecord]:
        ...

    def put(self, path: str, record: CacheRecord) -> None:
        ...

    def close(self) -> None:
        ...


class TreeWalker(Protocol):
    """Builds an index of every file and symlink below a set of roots."""

    def traverse(self, roots: Iterable[Path]) -> DiscoveredIndex:
        """
        Walk all roots and hash every entry.

        Raises:
            TraversalError: on the first I/O failure; nothing is returned.
        """
        ...


class MatchingEngine(Protocol):
    """Computes duplicate-target -> authoritative-source pairs."""

    def find_matches(
        self,
        source_index: DiscoveredIndex,
        target_index: DiscoveredIndex,
        on_diagnostic: Optional[DiagnosticCallback] = None,
    ) -> MatchResult:
        ...

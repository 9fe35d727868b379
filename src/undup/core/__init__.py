"""
Core engine: tree walker, content hashing backends, hash caches and the
cross-tree matching engine.

- TreeWalkerImpl: queue-based traversal building a DiscoveredIndex per tree
- hash_file + Uncached/CachedHashingBackend: SHA-256 content hashing
- MemoryHashCache / DbmHashCache: stores for the cached backend
- MatchingEngineImpl: duplicate-target -> authoritative-source pairing
- Models: entries, index, matches, diagnostics and run parameters

No filesystem mutation happens in this package.
"""

from .errors import CacheError, TraversalError, UndupError
from .models import (
    CacheMode, CacheRecord, ContentHash, Diagnostic, DiagnosticKind, DiscoveredIndex,
    Entry, EntryKind, LinkParams, MatchingFile, MatchResult, MatchStats, RegularFile,
    Symlink, TieBreak)
from .cache import DbmHashCache, MemoryHashCache
from .hasher import CachedHashingBackend, UncachedHashingBackend, create_backend, hash_file
from .scanner import TreeWalkerImpl
from .matcher import MatchingEngineImpl

__all__ = [
    "CacheError",
    "TraversalError",
    "UndupError",
    "CacheMode",
    "CacheRecord",
    "ContentHash",
    "Diagnostic",
    "DiagnosticKind",
    "DiscoveredIndex",
    "Entry",
    "EntryKind",
    "LinkParams",
    "MatchingFile",
    "MatchResult",
    "MatchStats",
    "RegularFile",
    "Symlink",
    "TieBreak",
    "DbmHashCache",
    "MemoryHashCache",
    "CachedHashingBackend",
    "UncachedHashingBackend",
    "create_backend",
    "hash_file",
    "TreeWalkerImpl",
    "MatchingEngineImpl",
]

"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models for content-hash discovery and cross-tree matching.
"""

import os
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

# Uppercase hex SHA-256 digest of a file's bytes
ContentHash = str

DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_CACHE_PATH = Path.home() / ".cache" / "undup" / "hashes.db"


# =============================
# Enums
# =============================

class EntryKind(str, Enum):
    FILE = "file"
    SYMLINK = "symlink"


class TieBreak(Enum):
    """
    Rule for picking one candidate out of a bucket with several.
    """
    DISCOVERY = "discovery"
    LEXICOGRAPHIC = "lexicographic"

    @property
    def display_name(self) -> str:
        """Human-readable name for CLI output."""
        mapping = {
            TieBreak.DISCOVERY: "Discovery order",
            TieBreak.LEXICOGRAPHIC: "Lexicographic path order",
        }
        return mapping.get(self, self.value)


class CacheMode(Enum):
    """
    Hashing backend selection.
    """
    NONE = "none"
    MEMORY = "memory"
    PERSISTENT = "persistent"

    @property
    def description(self) -> str:
        mapping = {
            CacheMode.NONE: "Re-hash every file on every run",
            CacheMode.MEMORY: "Cache hashes for the lifetime of the process",
            CacheMode.PERSISTENT: "Keep hashes on disk between runs (keyed by size + mtime)",
        }
        return mapping.get(self, self.value)

    def __repr__(self) -> str:
        return self.value


class DiagnosticKind(str, Enum):
    UNSUPPORTED_ENTRY = "unsupported-entry"
    UNRESOLVED_BUCKET = "unresolved-bucket"
    STALE_SYMLINK = "stale-symlink"


# ======================
#  Core Data Models
# ======================

@dataclass(frozen=True)
class RegularFile:
    """A plain file discovered during traversal."""
    path: Path

    @property
    def kind(self) -> EntryKind:
        return EntryKind.FILE

    def __repr__(self):
        return f"<RegularFile path={self.path}>"


@dataclass(frozen=True)
class Symlink:
    """
    A symbolic link discovered during traversal.
    `target_path` is the raw link text, as stored in the link. It is not
    resolved and may point nowhere.
    """
    link_path: Path
    target_path: Path

    @property
    def path(self) -> Path:
        return self.link_path

    @property
    def kind(self) -> EntryKind:
        return EntryKind.SYMLINK

    def __repr__(self):
        return f"<Symlink {self.link_path} -> {self.target_path}>"


Entry = Union[RegularFile, Symlink]


class DiscoveredIndex:
    """
    Maps each content hash to the entries sharing it, in discovery order.
    Built once per tree per run.
    """

    def __init__(self):
        self._buckets: Dict[ContentHash, List[Entry]] = {}

    def add(self, content_hash: ContentHash, entry: Entry) -> None:
        self._buckets.setdefault(content_hash, []).append(entry)

    def get(self, content_hash: ContentHash) -> List[Entry]:
        return self._buckets.get(content_hash, [])

    def buckets(self) -> Iterator[Tuple[ContentHash, List[Entry]]]:
        return iter(self._buckets.items())

    def entry_count(self) -> int:
        return sum(len(entries) for entries in self._buckets.values())

    def is_empty(self) -> bool:
        return not self._buckets

    def __contains__(self, content_hash: object) -> bool:
        return content_hash in self._buckets

    def __iter__(self) -> Iterator[ContentHash]:
        return iter(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)

    def __repr__(self):
        return f"<DiscoveredIndex buckets={len(self)}, entries={self.entry_count()}>"


@dataclass(frozen=True)
class MatchingFile:
    """
    `dest_path` is a target-tree regular file duplicating `src_path`;
    it is the candidate to become a symlink to `src_path`.
    """
    src_path: Path
    dest_path: Path

    def __str__(self):
        return f"{self.dest_path} -> {self.src_path}"


@dataclass(frozen=True)
class Diagnostic:
    """Informational note produced while walking or matching. Never an error."""
    kind: DiagnosticKind
    message: str
    paths: Tuple[Path, ...] = ()

    def __str__(self):
        return self.message


DiagnosticCallback = Callable[[Diagnostic], None]


@dataclass(frozen=True)
class CacheRecord:
    """A hash remembered together with the file metadata it was computed for."""
    size: int
    mtime_ns: int
    digest: ContentHash

    def matches(self, size: int, mtime_ns: int) -> bool:
        return self.size == size and self.mtime_ns == mtime_ns


@dataclass
class MatchResult:
    matches: List[MatchingFile] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def unresolved(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == DiagnosticKind.UNRESOLVED_BUCKET]


class MatchStats:
    """
    Statistics collected while building indexes and matching.
    """

    def __init__(self):
        self.total_time: float = 0.0
        self.phase_stats: Dict[str, Dict[str, Union[int, float]]] = {}
        self._listeners: List[Callable[[str, Dict], None]] = []
        self._started: Dict[str, float] = {}

    def add_listener(self, listener: Callable[[str, Dict], None]):
        """Adds a listener to receive updates when a phase finishes."""
        self._listeners.append(listener)

    def start_phase(self, phase: str) -> None:
        self._started[phase] = time.time()

    def finish_phase(self, phase: str, buckets: int, entries: int, matches: Optional[int] = None) -> None:
        duration = time.time() - self._started.pop(phase, time.time())
        data = self.phase_stats.setdefault(phase, {"buckets": 0, "entries": 0, "time": 0.0})
        data["buckets"] += buckets
        data["entries"] += entries
        if matches is not None:
            data["matches"] = data.get("matches", 0) + matches
        data["time"] += duration
        self.total_time += duration

        for listener in self._listeners:
            listener(phase, data)

    def print_summary(self) -> str:
        labels = {
            "source": "Source index",
            "target": "Target index",
            "match": "Matching",
        }

        lines = [
            "Undup Statistics:",
            f"Total Execution Time: {self.total_time:.3f}s\n",
            "Phase: BUCKETS / ENTRIES / TIME"
        ]
        for phase, data in self.phase_stats.items():
            label = labels.get(phase, phase.title())
            line = f"{label}: {data['buckets']} / {data['entries']} / {data['time']:.3f}s"
            if "matches" in data:
                line += f" ({data['matches']} matches)"
            lines.append(line)
        return "\n".join(lines)


# =============================
# Parameters
# =============================

@dataclass
class LinkParams:
    """Parameters for a matching run, validated on creation."""
    source_roots: List[Path]
    target_roots: List[Path]
    dry_run: bool = False
    cache_mode: CacheMode = CacheMode.NONE
    cache_path: Optional[Path] = None
    cache_max_entries: Optional[int] = None
    tie_break: TieBreak = TieBreak.DISCOVERY
    verify_symlinks: bool = False
    use_trash: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self):
        self.source_roots = [Path(p) for p in self.source_roots]
        self.target_roots = [Path(p) for p in self.target_roots]

        if not self.target_roots:
            raise ValueError("At least one target path is required")

        if self.chunk_size <= 0:
            raise ValueError("Chunk size must be positive")

        if self.cache_max_entries is not None and self.cache_max_entries <= 0:
            raise ValueError("Cache size must be positive")

        if self.cache_mode == CacheMode.PERSISTENT and self.cache_path is None:
            self.cache_path = DEFAULT_CACHE_PATH
        if self.cache_path is not None:
            self.cache_path = Path(os.path.expanduser(str(self.cache_path)))

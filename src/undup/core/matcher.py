"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/matcher.py
Cross-tree matching engine.

For every hash bucket of the target index the engine picks one
authoritative path and pairs every regular file of the bucket with it:

  1. Bucket holds a symlink  -> its target (a lone symlink is already linked: skip)
  2. Source index has hash   -> first source entry
  3. Otherwise               -> report the bucket as unresolved, no matches

Symlinks are never emitted as dest_path, and a file is never paired with
itself, however the two paths are spelled (compared by device and inode).
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from undup.core.interfaces import HashingBackend, MatchingEngine
from undup.core.models import (
    ContentHash,
    Diagnostic,
    DiagnosticCallback,
    DiagnosticKind,
    DiscoveredIndex,
    Entry,
    MatchingFile,
    MatchResult,
    RegularFile,
    Symlink,
    TieBreak,
)

logger = logging.getLogger(__name__)


def resolve_link_target(symlink: Symlink) -> Path:
    """
    Returns the link target as a usable path: relative link text is
    anchored at the link's directory. The result is not checked for existence.
    """
    target = symlink.target_path
    if target.is_absolute():
        return target
    return Path(os.path.normpath(symlink.link_path.parent / target))


def file_identity(path: Path) -> Optional[Tuple[int, int]]:
    """
    Returns (st_dev, st_ino) of the file `path` leads to, following links,
    or None if it cannot be stat'ed. Two spellings of one file share it.
    """
    try:
        st = os.stat(path)
    except OSError:
        return None
    return st.st_dev, st.st_ino


class MatchingEngineImpl(MatchingEngine):
    """
    Computes duplicate-target -> authoritative-source pairs by content hash.

    Args:
        tie_break: How to order candidates when a bucket has several
        verify_symlinks: Re-hash symlink targets before trusting them
        backend: Hashing backend, required when verify_symlinks is set
    """

    def __init__(
        self,
        tie_break: TieBreak = TieBreak.DISCOVERY,
        verify_symlinks: bool = False,
        backend: Optional[HashingBackend] = None,
    ):
        if verify_symlinks and backend is None:
            raise ValueError("verify_symlinks requires a hashing backend")
        self.tie_break = tie_break
        self.verify_symlinks = verify_symlinks
        self.backend = backend

    def find_matches(
        self,
        source_index: DiscoveredIndex,
        target_index: DiscoveredIndex,
        on_diagnostic: Optional[DiagnosticCallback] = None,
    ) -> MatchResult:
        result = MatchResult()

        def report(diagnostic: Diagnostic) -> None:
            logger.info(diagnostic.message)
            result.diagnostics.append(diagnostic)
            if on_diagnostic:
                on_diagnostic(diagnostic)

        for content_hash, entries in target_index.buckets():
            symlinks = [e for e in entries if isinstance(e, Symlink)]

            # Already fully linked, nothing to dedupe
            if symlinks and len(entries) == 1:
                logger.debug(f"Skipping lone symlink: {symlinks[0]}")
                continue

            chosen = None
            if symlinks:
                chosen = self._choose_symlink_target(content_hash, symlinks, report)
            if chosen is None:
                source_entries = source_index.get(content_hash)
                if source_entries:
                    chosen = self._ordered(source_entries)[0].path

            if chosen is None:
                paths = tuple(e.path for e in entries)
                report(Diagnostic(
                    kind=DiagnosticKind.UNRESOLVED_BUCKET,
                    message=f"Couldn't find file to symlink to for: {', '.join(map(str, paths))}",
                    paths=paths,
                ))
                continue

            chosen_abs = os.path.abspath(chosen)
            chosen_id = file_identity(chosen)
            for entry in entries:
                if not isinstance(entry, RegularFile):
                    continue
                if os.path.abspath(entry.path) == chosen_abs or (
                    chosen_id is not None and file_identity(entry.path) == chosen_id
                ):
                    logger.debug(f"Skipping {entry.path}: same file as {chosen}")
                    continue
                result.matches.append(MatchingFile(src_path=chosen, dest_path=entry.path))

        logger.debug(f"Found {len(result.matches)} matches")
        return result

    def _choose_symlink_target(
        self,
        content_hash: ContentHash,
        symlinks: List[Symlink],
        report: DiagnosticCallback,
    ) -> Optional[Path]:
        for symlink in self._ordered(symlinks):
            target = resolve_link_target(symlink)
            if not self.verify_symlinks or self._still_matches(target, content_hash):
                return target
            report(Diagnostic(
                kind=DiagnosticKind.STALE_SYMLINK,
                message=f"Not using {symlink.link_path}: target {target} no longer has the same content",
                paths=(symlink.link_path, target),
            ))
        return None

    def _still_matches(self, target: Path, content_hash: ContentHash) -> bool:
        try:
            return self.backend.hash(target) == content_hash
        except OSError as e:
            logger.debug(f"Cannot hash symlink target {target}: {e}")
            return False

    def _ordered(self, entries: Sequence[Entry]) -> Sequence[Entry]:
        if self.tie_break == TieBreak.LEXICOGRAPHIC:
            return sorted(entries, key=lambda e: str(e.path))
        return entries

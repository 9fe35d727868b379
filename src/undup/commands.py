"""
Command orchestrator for matching: walks both trees, then pairs duplicates.
This is the single entry point used by the CLI; it never mutates the filesystem.
"""
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from undup.core.errors import TraversalError
from undup.core.hasher import UncachedHashingBackend, create_backend
from undup.core.interfaces import HashingBackend
from undup.core.matcher import MatchingEngineImpl
from undup.core.models import (
    DiagnosticCallback,
    DiscoveredIndex,
    LinkParams,
    MatchingFile,
    MatchResult,
    MatchStats,
    TieBreak,
)
from undup.core.scanner import TreeWalkerImpl

logger = logging.getLogger(__name__)


class LinkCommand:
    """
    Orchestrates the matching workflow:
    1. Build the source index (zero roots is allowed)
    2. Build the target index
    3. Pair every duplicate target file with an authoritative source

    Usage:
        with LinkCommand.from_params(params) as command:
            result, stats = command.execute(
                params.source_roots,
                params.target_roots,
                on_diagnostic=print,
            )
    """

    def __init__(
        self,
        backend: Optional[HashingBackend] = None,
        tie_break: TieBreak = TieBreak.DISCOVERY,
        verify_symlinks: bool = False,
    ):
        self._backend = backend or UncachedHashingBackend()
        self._engine = MatchingEngineImpl(
            tie_break=tie_break,
            verify_symlinks=verify_symlinks,
            backend=self._backend,
        )

    @classmethod
    def from_params(cls, params: LinkParams) -> "LinkCommand":
        return cls(
            backend=create_backend(params),
            tie_break=params.tie_break,
            verify_symlinks=params.verify_symlinks,
        )

    def execute(
        self,
        source_roots: Iterable[Path],
        target_roots: Iterable[Path],
        on_diagnostic: Optional[DiagnosticCallback] = None,
    ) -> Tuple[MatchResult, MatchStats]:
        """
        Run the whole matching call.

        Args:
            source_roots: Roots holding authoritative copies
            target_roots: Roots that may hold duplicates
            on_diagnostic: Observer for informational notes

        Returns:
            Tuple of (match result, statistics)

        Raises:
            TraversalError: If any root fails; no partial result is returned
        """
        stats = MatchStats()
        walker = TreeWalkerImpl(self._backend, on_diagnostic)

        source_index = self._build_index(walker, source_roots, "source", stats)
        walk_diagnostics = list(walker.diagnostics)
        target_index = self._build_index(walker, target_roots, "target", stats)
        walk_diagnostics.extend(walker.diagnostics)

        stats.start_phase("match")
        result = self._engine.find_matches(source_index, target_index, on_diagnostic)
        stats.finish_phase(
            "match", len(target_index), target_index.entry_count(), matches=len(result.matches)
        )

        result.diagnostics[:0] = walk_diagnostics
        return result, stats

    @staticmethod
    def _build_index(
        walker: TreeWalkerImpl,
        roots: Iterable[Path],
        phase: str,
        stats: MatchStats,
    ) -> DiscoveredIndex:
        stats.start_phase(phase)
        try:
            index = walker.traverse(roots)
        except TraversalError as e:
            logger.error(f"IO error in {e.root}: {e.cause}")
            raise
        stats.finish_phase(phase, len(index), index.entry_count())
        return index

    def close(self) -> None:
        self._backend.close()

    def __enter__(self) -> "LinkCommand":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def find_matching_files(
    source_roots: Iterable[Path],
    target_roots: Iterable[Path],
    backend: Optional[HashingBackend] = None,
) -> List[MatchingFile]:
    """Hash both trees and return the duplicate -> source pairs."""
    result, _ = LinkCommand(backend=backend).execute(source_roots, target_roots)
    return result.matches

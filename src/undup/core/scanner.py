"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/scanner.py
Walks source or target roots and builds a DiscoveredIndex.
Features:
- Explicit queue of pending directories instead of recursion
- Classifies entries from lstat() metadata: directory, regular file, symlink
- Hashes symlinks through to their target and records the raw link text
- Skips (and reports) sockets, FIFOs, devices and links to directories
- Fails fast: the first I/O error aborts the whole traversal
"""

import logging
import os
import stat
from collections import deque
from pathlib import Path
from typing import Iterable, List, Optional

from undup.core.errors import TraversalError
from undup.core.interfaces import HashingBackend, TreeWalker
from undup.core.models import (
    ContentHash,
    Diagnostic,
    DiagnosticCallback,
    DiagnosticKind,
    DiscoveredIndex,
    RegularFile,
    Symlink,
)

logger = logging.getLogger(__name__)


class TreeWalkerImpl(TreeWalker):
    """
    Hashes every regular file and symlink below the given roots.

    Attributes:
        backend: Hashing backend used for every entry
        on_diagnostic: Optional observer for skipped entries
        diagnostics: Notes collected during the last traversal
    """

    def __init__(self, backend: HashingBackend, on_diagnostic: Optional[DiagnosticCallback] = None):
        self.backend = backend
        self.on_diagnostic = on_diagnostic
        self.diagnostics: List[Diagnostic] = []

    def traverse(self, roots: Iterable[Path]) -> DiscoveredIndex:
        """
        Walk each root in turn into one fresh index.

        Raises:
            TraversalError: on the first failure under any root.
        """
        self.diagnostics = []
        index = DiscoveredIndex()
        for root in roots:
            self.walk(Path(root), index)
        logger.debug(f"Traversal finished: {index}")
        return index

    def walk(self, root: Path, index: DiscoveredIndex) -> None:
        """Walk a single root into an existing index."""
        logger.debug(f"Walking root: {root}")
        try:
            root_stat = os.stat(root)
        except OSError as e:
            raise TraversalError(root, root, e) from e

        # A root that is a regular file is treated as a single file
        if stat.S_ISREG(root_stat.st_mode):
            index.add(self._hash(root, root), RegularFile(root))
            return
        if not stat.S_ISDIR(root_stat.st_mode):
            self._report(Diagnostic(
                kind=DiagnosticKind.UNSUPPORTED_ENTRY,
                message=f"Skipping root {root}: not a directory or regular file",
                paths=(root,),
            ))
            return

        pending = deque([root])
        while pending:
            directory = pending.pop()
            try:
                with os.scandir(directory) as it:
                    for dir_entry in it:
                        self._visit(root, Path(dir_entry.path), pending, index)
            except TraversalError:
                raise
            except OSError as e:
                raise TraversalError(root, directory, e) from e

    def _visit(self, root: Path, path: Path, pending: deque, index: DiscoveredIndex) -> None:
        try:
            mode = os.lstat(path).st_mode
        except OSError as e:
            raise TraversalError(root, path, e) from e

        if stat.S_ISDIR(mode):
            pending.append(path)
        elif stat.S_ISREG(mode):
            index.add(self._hash(root, path), RegularFile(path))
        elif stat.S_ISLNK(mode):
            self._visit_symlink(root, path, index)
        else:
            self._report(Diagnostic(
                kind=DiagnosticKind.UNSUPPORTED_ENTRY,
                message=f"Skipping {path}: not a directory, file or symlink",
                paths=(path,),
            ))

    def _visit_symlink(self, root: Path, path: Path, index: DiscoveredIndex) -> None:
        try:
            target_mode = os.stat(path).st_mode
            target = Path(os.readlink(path))
        except OSError as e:
            raise TraversalError(root, path, e) from e

        if not stat.S_ISREG(target_mode):
            what = "directory" if stat.S_ISDIR(target_mode) else "non-regular file"
            self._report(Diagnostic(
                kind=DiagnosticKind.UNSUPPORTED_ENTRY,
                message=f"Skipping {path}: symlink to {what} {target}",
                paths=(path,),
            ))
            return

        index.add(self._hash(root, path), Symlink(link_path=path, target_path=target))

    def _hash(self, root: Path, path: Path) -> ContentHash:
        try:
            return self.backend.hash(path)
        except OSError as e:
            raise TraversalError(root, path, e) from e

    def _report(self, diagnostic: Diagnostic) -> None:
        logger.warning(diagnostic.message)
        self.diagnostics.append(diagnostic)
        if self.on_diagnostic:
            self.on_diagnostic(diagnostic)

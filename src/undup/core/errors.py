"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/errors.py
Exception hierarchy for undup.
"""
from pathlib import Path
from typing import Optional


class UndupError(Exception):
    """Base exception."""


class TraversalError(UndupError, OSError):
    """
    Directory enumeration, metadata retrieval, file read or link read failed.
    Aborts the whole call: no partial index or match list is returned.
    """

    def __init__(self, root: Path, path: Path, cause: OSError):
        self.root = Path(root)
        self.path = Path(path)
        self.cause = cause
        super().__init__(cause.errno, f"{self.path}: {cause.strerror or cause}")

    def __str__(self):
        if self.root == self.path:
            return f"I/O error in {self.root}: {self.cause}"
        return f"I/O error in {self.root} at {self.path}: {self.cause}"


class CacheError(UndupError):
    """Hash cache store could not be opened or used."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)

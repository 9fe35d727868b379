"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

hasher.py
Content hashing and the pluggable hashing backends.

hash_file() streams a file through SHA-256 in bounded chunks. It opens
through symlinks, so a link hashes the same as the file it points at.
The backends wrap it: UncachedHashingBackend recomputes on every call,
CachedHashingBackend skips the read when size and mtime are unchanged.
"""

import hashlib
import logging
import os
import stat
from pathlib import Path
from typing import Union

from undup.core.cache import DbmHashCache, MemoryHashCache
from undup.core.interfaces import HashCache, HashingBackend
from undup.core.models import DEFAULT_CHUNK_SIZE, CacheMode, CacheRecord, ContentHash, LinkParams

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def hash_file(path: PathLike, chunk_size: int = DEFAULT_CHUNK_SIZE) -> ContentHash:
    """
    Computes the SHA-256 of the file at `path` as uppercase hex.
    Never holds more than `chunk_size` bytes of the file in memory.
    """
    logger.debug(f"Hashing: {path}")
    hasher = hashlib.sha256()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.hexdigest().upper()


class UncachedHashingBackend(HashingBackend):
    """Stateless backend: every call reads the whole file."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.chunk_size = chunk_size

    def hash(self, path: Path) -> ContentHash:
        return hash_file(path, self.chunk_size)

    def close(self) -> None:
        pass


class CachedHashingBackend(HashingBackend):
    """
    Backend that remembers digests per file.

    A cached digest is reused only when the file's current size and
    modification time equal the ones recorded when it was hashed. Records
    are keyed by the real path, so links to the same file share one record.
    """

    def __init__(self, cache: HashCache, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.cache = cache
        self.chunk_size = chunk_size
        self.hits = 0
        self.misses = 0

    def hash(self, path: Path) -> ContentHash:
        st = os.stat(path)
        if stat.S_ISDIR(st.st_mode):
            raise IsADirectoryError(f"Cannot hash contents of a directory: {path}")

        key = os.path.realpath(path)
        record = self.cache.get(key)
        if record is not None and record.matches(st.st_size, st.st_mtime_ns):
            self.hits += 1
            return record.digest

        self.misses += 1
        digest = hash_file(path, self.chunk_size)

        # Only remember the digest if the file did not change while being read
        after = os.stat(path)
        if (after.st_size, after.st_mtime_ns) == (st.st_size, st.st_mtime_ns):
            self.cache.put(key, CacheRecord(size=st.st_size, mtime_ns=st.st_mtime_ns, digest=digest))
        else:
            logger.warning(f"File changed while hashing, not caching: {path}")
        return digest

    def close(self) -> None:
        logger.debug(f"Hash cache: {self.hits} hits, {self.misses} misses")
        self.cache.close()


def create_backend(params: LinkParams) -> HashingBackend:
    """Builds the hashing backend selected by `params.cache_mode`."""
    if params.cache_mode == CacheMode.NONE:
        return UncachedHashingBackend(params.chunk_size)
    if params.cache_mode == CacheMode.MEMORY:
        return CachedHashingBackend(MemoryHashCache(params.cache_max_entries), params.chunk_size)
    if params.cache_mode == CacheMode.PERSISTENT:
        return CachedHashingBackend(DbmHashCache(params.cache_path), params.chunk_size)
    raise ValueError(f"Unknown cache mode: {params.cache_mode!r}")

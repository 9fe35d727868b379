"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/cache.py
Hash cache stores used by CachedHashingBackend.

MemoryHashCache keeps records for the lifetime of the process, optionally
bounded with least-recently-used eviction. DbmHashCache keeps them on disk
between runs. Both store (size, mtime_ns, digest) per path; validation
against the live file is done by the backend.
"""

import dbm
import logging
import os
import struct
from collections import OrderedDict
from pathlib import Path
from typing import Optional

from undup.core.errors import CacheError
from undup.core.interfaces import HashCache
from undup.core.models import CacheRecord

logger = logging.getLogger(__name__)

# size, mtime_ns; the hex digest follows
_RECORD_HEADER = struct.Struct("<Qq")


class MemoryHashCache(HashCache):
    """
    In-process cache. With `max_entries` set, the least recently used
    record is dropped once the bound is exceeded.
    """

    def __init__(self, max_entries: Optional[int] = None):
        self.max_entries = max_entries
        self._records: "OrderedDict[str, CacheRecord]" = OrderedDict()

    def get(self, path: str) -> Optional[CacheRecord]:
        record = self._records.get(path)
        if record is not None:
            self._records.move_to_end(path)
        return record

    def put(self, path: str, record: CacheRecord) -> None:
        self._records[path] = record
        self._records.move_to_end(path)
        if self.max_entries is not None:
            while len(self._records) > self.max_entries:
                evicted, _ = self._records.popitem(last=False)
                logger.debug(f"Evicted cached hash for {evicted}")

    def close(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


class DbmHashCache(HashCache):
    """
    Persistent cache on top of the standard dbm module.

    Keys are filesystem paths (bytes), values are the packed size and
    mtime followed by the ascii hex digest.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._db = dbm.open(str(self.db_path), "c")
        except (OSError, *dbm.error) as e:
            raise CacheError(f"Cannot open hash cache {self.db_path}: {e}", self.db_path) from e
        logger.debug(f"Opened hash cache: {self.db_path}")

    def get(self, path: str) -> Optional[CacheRecord]:
        raw = self._db.get(os.fsencode(path))
        if raw is None:
            return None
        if len(raw) <= _RECORD_HEADER.size:
            logger.warning(f"Ignoring malformed cache record for {path}")
            return None
        size, mtime_ns = _RECORD_HEADER.unpack_from(raw)
        digest = raw[_RECORD_HEADER.size:].decode("ascii")
        return CacheRecord(size=size, mtime_ns=mtime_ns, digest=digest)

    def put(self, path: str, record: CacheRecord) -> None:
        value = _RECORD_HEADER.pack(record.size, record.mtime_ns) + record.digest.encode("ascii")
        self._db[os.fsencode(path)] = value

    def close(self) -> None:
        self._db.close()

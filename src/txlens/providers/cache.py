"""
Response cache for providers.

A bounded in-memory LRU with a time-to-live, optionally backed by one JSON
file per key on disk so repeated runs against the same transaction do not
hit the node again. Only raw, JSON-compatible provider responses are
stored.
"""

import json
import os
import re
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional, Tuple

from txlens.config import DEFAULT_CACHE_ENTRIES, DEFAULT_CACHE_TTL, Settings
from txlens.utils.logging import get_logger

log = get_logger("providers.cache")

_UNSAFE_KEY_CHARS = re.compile(r'[^a-zA-Z0-9._-]')


class Cache:
    """
    LRU + TTL cache.

    Args:
        max_entries: In-memory capacity; least recently used entries are evicted
        ttl: Seconds an entry stays valid, in memory and on disk
        disk_dir: Directory for the on-disk layer; None disables it
        clock: Time source, replaceable in tests
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_CACHE_ENTRIES,
        ttl: float = DEFAULT_CACHE_TTL,
        disk_dir: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.max_entries = max(1, max_entries)
        self.ttl = ttl
        self.disk_dir = disk_dir
        self.clock = clock
        self._mem: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "Cache":
        return cls(max_entries=settings.cache_entries, ttl=settings.cache_ttl, disk_dir=settings.cache_dir)

    def __len__(self) -> int:
        return len(self._mem)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._mem.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self.clock() >= expires_at:
                del self._mem[key]
                return None
            self._mem.move_to_end(key)
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._mem[key] = (self.clock() + self.ttl, value)
            self._mem.move_to_end(key)
            while len(self._mem) > self.max_entries:
                self._mem.popitem(last=False)

    def get_or_set(self, key: str, loader: Callable[[], Any]) -> Any:
        """
        Return the cached value for ``key``, loading and storing it on a miss.

        A loader result of None is returned but not cached, since None is
        also how a miss is reported.
        """
        hit = self.get(key)
        if hit is not None:
            return hit

        if self.disk_dir:
            disk_hit = self._read_disk(key)
            if disk_hit is not None:
                self.set(key, disk_hit)
                return disk_hit

        value = loader()
        if value is not None:
            self.set(key, value)
            if self.disk_dir:
                self._write_disk(key, value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._mem.clear()

    # ------------------------------------------------------------------
    # Disk layer
    # ------------------------------------------------------------------

    def _file_path(self, key: str) -> str:
        return os.path.join(self.disk_dir, _UNSAFE_KEY_CHARS.sub('_', key) + '.json')

    def _read_disk(self, key: str) -> Optional[Any]:
        path = self._file_path(key)
        try:
            age = self.clock() - os.path.getmtime(path)
            if age > self.ttl:
                return None
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            log.debug(f"Ignoring unreadable cache file {path}: {e}")
            return None

    def _write_disk(self, key: str, value: Any) -> None:
        # A failed write only costs a refetch next time
        try:
            os.makedirs(self.disk_dir, exist_ok=True)
            with open(self._file_path(key), 'w', encoding='utf-8') as f:
                json.dump(value, f, default=str)
        except (OSError, TypeError, ValueError) as e:
            log.debug(f"Could not write cache entry {key}: {e}")

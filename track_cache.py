"""
Persistent track URI cache.

Maps "<title>|<artist>" to a Spotify URI. The whole cache is rewritten to a
JSON file on every insert. Once it grows past its capacity the oldest inserted
entries are dropped first (FIFO); lookups never change the order.
"""
import json
import os
import threading
import uuid
from collections import OrderedDict
from pathlib import Path
from typing import List, Optional

from config import CACHE
from errors import CacheIOFailed
from logging_config import get_logger

logger = get_logger(__name__)

KEY_SEPARATOR = "|"


def make_key(title: str, artist: str) -> str:
    # Exact match on purpose: no case or whitespace folding
    return f"{title}{KEY_SEPARATOR}{artist}"


class TrackCache:
    def __init__(self, cache_file=CACHE["file"], max_size: int = CACHE["max_size"]):
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.cache_file = Path(cache_file)
        self.max_size = max_size
        self._entries: "OrderedDict[str, str]" = OrderedDict()
        self._lock = threading.Lock()
        self._load()

    def _load(self) -> None:
        """Load the cache file once; any problem leaves the cache empty"""
        if not self.cache_file.exists():
            logger.debug(f"No track cache at {self.cache_file}, starting empty")
            return

        try:
            with open(self.cache_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise CacheIOFailed(f"cache file holds {type(data).__name__}, expected an object")
        except (OSError, ValueError, CacheIOFailed) as e:
            logger.warning(f"Failed to load track cache from {self.cache_file}: {e}")
            return

        for key, value in data.items():
            if isinstance(value, str):
                self._entries[key] = value
        evicted = self._evict()
        logger.info(f"Loaded {len(self._entries)} cached tracks from {self.cache_file}"
                    + (f" ({evicted} over capacity dropped)" if evicted else ""))

    def _evict(self) -> int:
        evicted = 0
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)  # Remove oldest (FIFO)
            evicted += 1
        return evicted

    def _save(self) -> None:
        """Write the whole cache; raises CacheIOFailed"""
        temp_path = self.cache_file.parent / f"cache_{uuid.uuid4().hex}.json.tmp"
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(self._entries, f, ensure_ascii=False)
            os.replace(temp_path, self.cache_file)
        except OSError as e:
            try:
                if temp_path.exists():
                    os.remove(temp_path)
            except OSError:
                pass
            raise CacheIOFailed(f"could not write {self.cache_file}: {e}") from e

    def lookup(self, key: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(key)

    def insert(self, key: str, value: str) -> bool:
        """
        Add a mapping, evict over capacity and persist.

        Returns:
            bool: False if the file could not be written. The in-memory entry
            is kept either way.
        """
        with self._lock:
            # An existing key keeps its original insertion position
            self._entries[key] = value
            evicted = self._evict()
            if evicted:
                logger.debug(f"Evicted {evicted} oldest cached tracks")
            try:
                self._save()
            except CacheIOFailed as e:
                logger.error(f"Track cache not persisted: {e}")
                return False
        return True

    def clear(self) -> bool:
        with self._lock:
            self._entries.clear()
            try:
                self._save()
            except CacheIOFailed as e:
                logger.error(f"Track cache not persisted: {e}")
                return False
        return True

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

# DEPENDENCIES
import sys
import math
import time
import hashlib
import threading
import numpy as np
from typing import Any
from typing import Dict
from pathlib import Path
from typing import Callable
from typing import Optional
from dataclasses import dataclass
from collections import OrderedDict

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from utils.logger import log_info
from utils.logger import log_debug


@dataclass
class CacheEntry:
    """
    Cached embedding with provenance and access bookkeeping
    """
    vector        : np.ndarray
    model         : str
    tokens_used   : int
    created_at    : float
    last_accessed : float
    access_count  : int = 0


class EmbeddingCache:
    """
    Thread-safe in-memory embedding cache : LRU ordering, batch eviction at capacity and TTL expiry
    """
    # Approximate per-entry bookkeeping (hex key plus entry fields)
    ENTRY_OVERHEAD_BYTES = 160

    def __init__(self, max_size: int = 10000, ttl_seconds: float = 24 * 3600, eviction_fraction: float = 0.1, clock: Callable[[], float] = time.time):
        """
        Initialize the cache

        Arguments:
        ----------
            max_size          { int }      : Maximum number of entries

            ttl_seconds       { float }    : Entry lifetime; entries older than this are treated as absent

            eviction_fraction { float }    : Share of entries removed (least recently used first) when capacity is reached

            clock             { callable } : Time source, injectable for tests
        """
        if (max_size < 1):
            raise ValueError("max_size must be at least 1")

        if not (0.0 < eviction_fraction <= 1.0):
            raise ValueError("eviction_fraction must be in (0, 1]")

        self.max_size          = max_size
        self.ttl_seconds       = ttl_seconds
        self.eviction_fraction = eviction_fraction
        self._clock            = clock

        self._entries          : "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock             = threading.RLock()

        self._hits             = 0
        self._misses           = 0
        self._evictions        = 0
        self._expirations      = 0

        log_info("EmbeddingCache initialized",
                 max_size          = max_size,
                 ttl_seconds       = ttl_seconds,
                 eviction_fraction = eviction_fraction,
                )


    @staticmethod
    def make_key(text: str, model: str) -> str:
        """
        Cache key from model id and already-normalized text; vectors from different models never share a key
        """
        return hashlib.sha256(f"{model}:{text}".encode("utf-8")).hexdigest()


    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return (now - entry.created_at) > self.ttl_seconds


    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Get a cached entry and bump its recency; expired entries are removed and reported as a miss
        """
        with self._lock:
            entry = self._entries.get(key)
            now   = self._clock()

            if entry is None:
                self._misses += 1
                return None

            if self._is_expired(entry, now):
                del self._entries[key]

                self._expirations += 1
                self._misses      += 1

                return None

            entry.last_accessed  = now
            entry.access_count  += 1
            self._entries.move_to_end(key)
            self._hits          += 1

            return entry


    def set(self, key: str, vector: Any, model: str, tokens_used: int = 0) -> CacheEntry:
        """
        Store a vector, evicting a batch of least recently used entries first when the cache is full
        """
        with self._lock:
            now   = self._clock()

            if (key not in self._entries) and (len(self._entries) >= self.max_size):
                self._evict_batch()

            entry = CacheEntry(vector        = np.asarray(vector, dtype = np.float32),
                               model         = model,
                               tokens_used   = int(tokens_used),
                               created_at    = now,
                               last_accessed = now,
                              )

            self._entries[key] = entry
            self._entries.move_to_end(key)

            return entry


    def _evict_batch(self) -> int:
        """
        Remove ceil(max_size * eviction_fraction) least recently used entries (caller holds the lock)
        """
        count   = min(len(self._entries), max(1, math.ceil(self.max_size * self.eviction_fraction)))

        for _ in range(count):
            self._entries.popitem(last = False)

        self._evictions += count

        log_debug("EmbeddingCache batch eviction", evicted = count, remaining = len(self._entries))

        return count


    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)

            return (entry is not None) and not self._is_expired(entry, self._clock())


    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


    def clear_expired(self) -> int:
        """
        TTL sweep : purge stale entries regardless of recency
        """
        with self._lock:
            now     = self._clock()
            expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]

            for key in expired:
                del self._entries[key]

            self._expirations += len(expired)

        log_info("Embedding cache cleanup completed", expired_entries = len(expired))

        return len(expired)


    def clear_all(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()

        log_info("Embedding cache cleared", entries_deleted = count)

        return count


    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics
        """
        with self._lock:
            total_bytes = sum(entry.vector.nbytes + self.ENTRY_OVERHEAD_BYTES for entry in self._entries.values())
            lookups     = self._hits + self._misses

            return {"size"            : len(self._entries),
                    "max_size"        : self.max_size,
                    "hits"            : self._hits,
                    "misses"          : self._misses,
                    "hit_rate"        : round(self._hits / lookups, 4) if lookups else 0.0,
                    "evictions"       : self._evictions,
                    "expirations"     : self._expirations,
                    "memory_usage_mb" : round(total_bytes / (1024 * 1024), 4),
                    "ttl_seconds"     : self.ttl_seconds,
                   }

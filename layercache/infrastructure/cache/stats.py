"""
Cache Statistics

Counters shared by the remote wrapper (errors) and the cache manager
(hits, misses). Local-layer evictions are read from LocalCache when a
snapshot is taken.
"""

from dataclasses import dataclass
from typing import Any

from layercache.core.config.constants import CacheTier


@dataclass
class CacheStats:
    """
    Mutable hit/miss/error counters.

    hits + misses equals the number of lookups served (get calls plus one
    per key in mget). Reset only by CacheManager.flush().
    """

    l1_hits: int = 0
    l2_hits: int = 0
    misses: int = 0
    errors: int = 0

    @property
    def hits(self) -> int:
        return self.l1_hits + self.l2_hits

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups served from either layer, 0.0 when none yet."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def record_lookup(self, tier: CacheTier) -> None:
        if tier == CacheTier.L1:
            self.l1_hits += 1
        elif tier == CacheTier.L2:
            self.l2_hits += 1
        else:
            self.misses += 1

    def record_error(self) -> None:
        self.errors += 1

    def reset(self) -> None:
        self.l1_hits = 0
        self.l2_hits = 0
        self.misses = 0
        self.errors = 0

    def snapshot(self, evictions: int = 0) -> dict[str, Any]:
        """Copy of the counters; later operations do not change the returned dict."""
        total = self.hits + self.misses
        return {
            "hits": self.hits,
            "misses": self.misses,
            "errors": self.errors,
            "evictions": evictions,
            "hit_rate": round(self.hit_rate, 4),
            "l1_hits": self.l1_hits,
            "l2_hits": self.l2_hits,
            "total_requests": total,
        }

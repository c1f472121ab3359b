"""
Provider Lookup Cache

In-memory TTL cache for collaborator lookups (brand rules, approved
indication, guidelines, vision).
Key = (lookup kind, brand_id). TTL = MLRCLEAR_PROVIDER_CACHE_TTL.

Prevents repeated rules-service / disk reads for the same brand.
Thread-safe via asyncio lock. Failed lookups are never cached, so a
recovered provider is picked up on the next call.

Usage:
    from mlrclear.cache import CachingBrandRuleProvider
    rules = CachingBrandRuleProvider(JsonFileProvider("/etc/mlrclear/brands"))
    await rules.fetch_guidelines("ofev")   # disk
    await rules.fetch_guidelines("ofev")   # cache
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional

from mlrclear.config import settings
from mlrclear.models import BrandGuidelines, BrandRules, BrandVision
from mlrclear.providers import BrandRuleProvider, GuidelineProvider

_MISSING = object()


class ProviderCache:
    """Thread-safe in-memory cache with TTL eviction."""

    def __init__(self, ttl_seconds: Optional[float] = None, max_entries: int = 500):
        self._cache: dict[tuple[str, str], tuple[float, Any]] = {}
        self._ttl = settings.PROVIDER_CACHE_TTL if ttl_seconds is None else ttl_seconds
        self._max_entries = max_entries
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0

    async def get(self, kind: str, brand_id: str) -> Any:
        """Return the cached value, or _MISSING if absent or expired."""
        key = (kind, brand_id)
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return _MISSING

            ts, value = entry
            if time.monotonic() - ts > self._ttl:
                del self._cache[key]
                self._misses += 1
                return _MISSING

            self._hits += 1
            return value

    async def put(self, kind: str, brand_id: str, value: Any) -> None:
        """Store a value. Evicts oldest if over max."""
        async with self._lock:
            if len(self._cache) >= self._max_entries:
                oldest_key = min(self._cache, key=lambda k: self._cache[k][0])
                del self._cache[oldest_key]

            self._cache[(kind, brand_id)] = (time.monotonic(), value)

    async def invalidate(self, brand_id: str) -> None:
        """Drop every cached lookup for a brand."""
        async with self._lock:
            for key in [k for k in self._cache if k[1] == brand_id]:
                del self._cache[key]

    async def get_or_fetch(
        self, kind: str, brand_id: str, fetch: Callable[[], Awaitable[Any]],
    ) -> Any:
        value = await self.get(kind, brand_id)
        if value is _MISSING:
            value = await fetch()
            await self.put(kind, brand_id, value)
        return value

    @property
    def stats(self) -> dict:
        """Cache hit/miss statistics."""
        total = self._hits + self._misses
        return {
            "entries": len(self._cache),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total, 3) if total > 0 else 0.0,
        }


class CachingBrandRuleProvider(BrandRuleProvider):
    """Wraps a BrandRuleProvider with a ProviderCache."""

    def __init__(self, inner: BrandRuleProvider, cache: Optional[ProviderCache] = None):
        self.inner = inner
        self.cache = cache or ProviderCache()

    async def fetch_guidelines(self, brand_id: str) -> BrandRules:
        return await self.cache.get_or_fetch(
            "rules", brand_id, lambda: self.inner.fetch_guidelines(brand_id),
        )

    async def fetch_approved_indication(self, brand_id: str) -> str:
        return await self.cache.get_or_fetch(
            "indication", brand_id, lambda: self.inner.fetch_approved_indication(brand_id),
        )


class CachingGuidelineProvider(GuidelineProvider):
    """Wraps a GuidelineProvider with a ProviderCache."""

    def __init__(self, inner: GuidelineProvider, cache: Optional[ProviderCache] = None):
        self.inner = inner
        self.cache = cache or ProviderCache()

    async def fetch_brand_guidelines(self, brand_id: str) -> BrandGuidelines:
        return await self.cache.get_or_fetch(
            "guidelines", brand_id, lambda: self.inner.fetch_brand_guidelines(brand_id),
        )

    async def fetch_brand_vision(self, brand_id: str) -> BrandVision:
        return await self.cache.get_or_fetch(
            "vision", brand_id, lambda: self.inner.fetch_brand_vision(brand_id),
        )

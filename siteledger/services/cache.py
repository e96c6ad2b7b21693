"""Read-through cache for computed reports.

Statements and totals are derived from many rows and are read far more often
than the underlying rows change. They are cached per organization and every
write to that organization drops its entries. The cache sits behind
:class:`ReportCache` so a multi-instance deployment can use Redis, and tests or
single-shot jobs can switch caching off.
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

import redis.asyncio as redis
from pydantic import BaseModel

if TYPE_CHECKING:
    import uuid
    from collections.abc import Awaitable, Callable

    from siteledger.config import Settings

logger = logging.getLogger(__name__)

_PREFIX = "report"

ReportT = TypeVar("ReportT", bound=BaseModel)


def report_key(organization_id: uuid.UUID, kind: str, *parts: object) -> str:
    """Build a cache key scoped to one organization."""
    suffix = ":".join("-" if p is None else str(p) for p in parts)
    return f"{_PREFIX}:{organization_id}:{kind}:{suffix}"


@runtime_checkable
class ReportCache(Protocol):
    """Storage for computed reports, keyed by :func:`report_key`."""

    async def get(self, key: str) -> dict[str, Any] | None: ...

    async def set(self, key: str, value: dict[str, Any]) -> None: ...

    async def invalidate_organization(self, organization_id: uuid.UUID) -> None: ...


class NullReportCache:
    """Caches nothing."""

    async def get(self, key: str) -> dict[str, Any] | None:
        return None

    async def set(self, key: str, value: dict[str, Any]) -> None:
        return None

    async def invalidate_organization(self, organization_id: uuid.UUID) -> None:
        return None


class InMemoryReportCache:
    """Process-local cache with a fixed time-to-live."""

    def __init__(self, ttl_seconds: int = 300) -> None:
        self._ttl = ttl_seconds
        self._entries: dict[str, tuple[float, dict[str, Any]]] = {}

    async def get(self, key: str) -> dict[str, Any] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at < time.monotonic():
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: dict[str, Any]) -> None:
        self._entries[key] = (time.monotonic() + self._ttl, value)

    async def invalidate_organization(self, organization_id: uuid.UUID) -> None:
        prefix = f"{_PREFIX}:{organization_id}:"
        for key in [k for k in self._entries if k.startswith(prefix)]:
            del self._entries[key]


class RedisReportCache:
    """Redis-backed cache shared by every API instance."""

    def __init__(self, redis_url: str, ttl_seconds: int = 300) -> None:
        self._client = redis.from_url(redis_url, encoding="utf-8", decode_responses=True)
        self._ttl = ttl_seconds

    async def get(self, key: str) -> dict[str, Any] | None:
        raw = await self._client.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: dict[str, Any]) -> None:
        await self._client.setex(key, self._ttl, json.dumps(value))

    async def invalidate_organization(self, organization_id: uuid.UUID) -> None:
        keys = [key async for key in self._client.scan_iter(match=f"{_PREFIX}:{organization_id}:*")]
        if keys:
            await self._client.delete(*keys)


_report_cache: ReportCache = InMemoryReportCache()


def get_report_cache() -> ReportCache:
    return _report_cache


def set_report_cache(cache: ReportCache) -> None:
    """Override the cache (for testing or production wiring)."""
    global _report_cache
    _report_cache = cache


def configure_report_cache(settings: Settings) -> None:
    """Pick the cache implementation from settings."""
    if settings.redis_url:
        set_report_cache(RedisReportCache(settings.redis_url, settings.report_cache_ttl_seconds))
    else:
        set_report_cache(InMemoryReportCache(settings.report_cache_ttl_seconds))


async def cached_report(
    key: str,
    response_type: type[ReportT],
    compute: Callable[[], Awaitable[ReportT]],
) -> ReportT:
    """Return the cached report for ``key``, computing and storing it on a miss.

    Cache failures fall back to computing the report.
    """
    try:
        hit = await _report_cache.get(key)
    except Exception:
        logger.warning("Report cache read failed for %s", key, exc_info=True)
        hit = None
    if hit is not None:
        return response_type.model_validate(hit)

    report = await compute()
    try:
        await _report_cache.set(key, report.model_dump(mode="json"))
    except Exception:
        logger.warning("Report cache write failed for %s", key, exc_info=True)
    return report


async def invalidate_reports(organization_id: uuid.UUID) -> None:
    """Drop every cached report of an organization. Call after each committed write."""
    try:
        await _report_cache.invalidate_organization(organization_id)
    except Exception:
        logger.exception("Report cache invalidation failed for organization %s", organization_id)

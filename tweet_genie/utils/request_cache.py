"""Response cache for metric requests with in-flight de-duplication.

One `RequestCache` is built per process and handed to whatever issues
requests. Concurrent callers asking for the same key share a single fetch;
successes are cached for `ttl` seconds and failures leave a short-lived
error marker (`error_ttl`) that pollers check before retrying.
"""
import asyncio
import inspect
import json
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable

_log = logging.getLogger(__name__)

DEFAULT_TTL = 30.0
DEFAULT_ERROR_TTL = 5.0


def _error_key(key: str) -> str:
    return f"{key}::error"


def _normalize_ttl(ttl: Any, fallback: float) -> float:
    if isinstance(ttl, (int, float)) and not isinstance(ttl, bool) and math.isfinite(ttl) and ttl > 0:
        return float(ttl)
    return fallback


def _dumps(value: Any) -> str:
    return json.dumps(value or {}, separators=(",", ":"), default=str)


def create_request_cache_key(
    scope: str = "default",
    url: str = "",
    params: dict[str, Any] | None = None,
    extra: dict[str, Any] | None = None,
) -> str:
    """Build the `scope:url:params:extra` signature used as a cache key."""
    return f"{scope}:{url}:{_dumps(params)}:{_dumps(extra)}"


@dataclass
class _Entry:
    value: Any
    expires_at: float


class RequestCache:
    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        error_ttl: float = DEFAULT_ERROR_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = _normalize_ttl(ttl, DEFAULT_TTL)
        self.error_ttl = _normalize_ttl(error_ttl, DEFAULT_ERROR_TTL)
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._inflight: dict[str, asyncio.Task] = {}

    def get(self, key: str) -> Any:
        """Return the cached value, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        self._entries[key] = _Entry(value, self._clock() + _normalize_ttl(ttl, self.ttl))

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)
        self._entries.pop(_error_key(key), None)
        self._inflight.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> None:
        for key in [k for k in self._entries if k.startswith(prefix)]:
            del self._entries[key]
        for key in [k for k in self._inflight if k.startswith(prefix)]:
            del self._inflight[key]

    def has_recent_error(self, key: str) -> bool:
        marker = self.get(_error_key(key))
        return bool(isinstance(marker, dict) and marker.get("error"))

    def is_inflight(self, key: str) -> bool:
        return key in self._inflight

    async def get_or_fetch(
        self,
        key: str,
        fetcher: Callable[[], Any],
        ttl: float | None = None,
        error_ttl: float | None = None,
        bypass: bool = False,
    ) -> Any:
        """Serve `key` from cache, join a pending fetch, or start a new one.

        Every waiter on a shared fetch receives its result or its exception.
        Cancelling one waiter leaves the shared fetch running for the others.
        """
        if not key:
            return await self._call(fetcher)

        if not bypass:
            cached = self.get(key)
            if cached is not None:
                _log.debug("cache hit %s", key)
                return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(key, fetcher, ttl, error_ttl))
            self._inflight[key] = task
        else:
            _log.debug("joining in-flight request %s", key)
        return await asyncio.shield(task)

    @staticmethod
    async def _call(fetcher: Callable[[], Any]) -> Any:
        result = fetcher()
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _fetch(self, key: str, fetcher: Callable[[], Any], ttl: float | None, error_ttl: float | None) -> Any:
        task = asyncio.current_task()
        try:
            result = await self._call(fetcher)
        except Exception as exc:
            self.set(_error_key(key), {"error": True}, _normalize_ttl(error_ttl, self.error_ttl))
            _log.warning("request %s failed: %s", key, exc)
            raise
        else:
            # A fetch invalidated while in flight must not repopulate the cache.
            if self._inflight.get(key) is task:
                self.set(key, result, ttl)
            return result
        finally:
            if self._inflight.get(key) is task:
                del self._inflight[key]

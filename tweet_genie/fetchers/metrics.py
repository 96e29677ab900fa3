"""Client for the analytics REST API that supplies raw metric snapshots.

Responses go through a shared `RequestCache`, so dashboard refreshes and
concurrent page loads for the same window hit the backend once.
"""
import asyncio
import inspect
import logging
import math
import os
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import httpx
from pydantic import ValidationError

from tweet_genie.analytics.dashboard import DEFAULT_DAYS, FREE_DAYS, build_dashboard, parse_days
from tweet_genie.analytics.numbers import to_number
from tweet_genie.analytics.policy import DEFAULT_POLICY, AnalyticsPolicy
from tweet_genie.models import AnalyticsDashboard, MetricsSnapshot, SyncOutcome, SyncStatus
from tweet_genie.utils.request_cache import RequestCache, create_request_cache_key

_log = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:3002"
CACHE_SCOPE = "analytics"
OVERVIEW_PATH = "/api/analytics/overview"
ENGAGEMENT_PATH = "/api/analytics/engagement"
AUDIENCE_PATH = "/api/analytics/audience"
SYNC_PATH = "/api/analytics/sync"
SYNC_STATUS_PATH = "/api/analytics/sync-status"
SYNC_TIMEOUT = 120.0
RECONNECT_CODE = "TWITTER_RECONNECT_REQUIRED"


class MetricsSourceError(RuntimeError):
    """The analytics API could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ReconnectRequiredError(MetricsSourceError):
    """The backend lost access to the Twitter account; the user must reconnect."""


class SyncRefusedError(MetricsSourceError):
    """A sync was not started.

    `reason` is one of "pro_required", "disconnected", "cooldown",
    "in_progress" or "rate_limit".
    """

    def __init__(self, reason: str, message: str, status_code: int | None = None,
                 wait_minutes: int | None = None, sync_status: SyncStatus | None = None) -> None:
        super().__init__(message, status_code)
        self.reason = reason
        self.wait_minutes = wait_minutes
        self.sync_status = sync_status


def _unwrap(payload: Any) -> dict[str, Any]:
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, dict) and data:
            return data
        return payload
    return {}


def _needs_reconnect(payload: dict[str, Any]) -> bool:
    return payload.get("code") == RECONNECT_CODE or payload.get("reconnect") is True


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        _log.warning("ignoring non-numeric %s=%r", name, os.getenv(name))
        return default


def _utc(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def _parse_status(raw: Any) -> SyncStatus | None:
    if not isinstance(raw, dict):
        return None
    try:
        return SyncStatus.model_validate(raw)
    except ValidationError:
        _log.warning("ignoring malformed sync status: %s", raw)
        return None


def effective_days(snapshot: MetricsSnapshot, requested: Any) -> int:
    """Free plans are limited to the last 7 days whatever was requested."""
    if snapshot.plan.get("pro") is False:
        return FREE_DAYS
    return parse_days(requested)


class MetricsClient:
    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        cache: RequestCache | None = None,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.cache = cache if cache is not None else RequestCache()
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._clock = clock

    @classmethod
    def from_env(cls) -> "MetricsClient":
        """Build a client from TWEET_GENIE_API_URL / TWEET_GENIE_API_TOKEN and the cache TTL vars."""
        cache = RequestCache(
            ttl=_float_env("ANALYTICS_CACHE_TTL", 30.0),
            error_ttl=_float_env("ANALYTICS_ERROR_TTL", 5.0),
        )
        return cls(
            base_url=os.getenv("TWEET_GENIE_API_URL", DEFAULT_API_URL),
            cache=cache,
            token=os.getenv("TWEET_GENIE_API_TOKEN") or None,
        )

    # ── Raw endpoints ────────────────────────────────────────────────────────

    def cache_key(self, path: str, days: int) -> str:
        return create_request_cache_key(CACHE_SCOPE, path, {"days": days})

    async def _send(self, method: str, path: str, timeout: float | None = None,
                    **kwargs: Any) -> tuple[httpx.Response, dict[str, Any]]:
        """Issue one request; returns the response and its JSON object body ({} if none)."""
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=timeout or self.timeout, headers=headers, transport=self._transport
            ) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise MetricsSourceError(f"{method} {path} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        return response, payload if isinstance(payload, dict) else {}

    @staticmethod
    def _raise_for_status(response: httpx.Response, payload: dict[str, Any]) -> None:
        if not response.is_error:
            return
        if _needs_reconnect(payload):
            raise ReconnectRequiredError(
                "Twitter is disconnected. Please reconnect your account in Settings.",
                status_code=response.status_code,
            )
        message = payload.get("error") or f"Request failed with status {response.status_code}"
        raise MetricsSourceError(str(message), status_code=response.status_code)

    async def _request(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        response, payload = await self._send("GET", path, params=params)
        self._raise_for_status(response, payload)
        return _unwrap(payload)

    async def _get(self, path: str, days: int, bypass: bool = False) -> dict[str, Any]:
        params = {"days": days}
        return await self.cache.get_or_fetch(
            self.cache_key(path, days),
            lambda: self._request(path, params),
            bypass=bypass,
        )

    async def get_overview(self, days: int, bypass: bool = False) -> dict[str, Any]:
        return await self._get(OVERVIEW_PATH, days, bypass)

    async def get_engagement(self, days: int, bypass: bool = False) -> dict[str, Any]:
        return await self._get(ENGAGEMENT_PATH, days, bypass)

    async def get_audience(self, days: int, bypass: bool = False) -> dict[str, Any]:
        return await self._get(AUDIENCE_PATH, days, bypass)

    # ── Snapshot assembly ────────────────────────────────────────────────────

    async def fetch_snapshot(self, days: Any = DEFAULT_DAYS, bypass: bool = False) -> MetricsSnapshot:
        """Assemble overview, engagement and audience payloads into one snapshot.

        Free plans get the 7-day overview totals and tweets only. Engagement
        and audience are fetched concurrently; if either fails its sections
        are left empty and a warning is recorded instead of failing the whole
        snapshot. A payload that does not fit the snapshot shape is reported
        as a `MetricsSourceError`.
        """
        days = parse_days(days)
        overview = await self.get_overview(days, bypass)
        plan = overview.get("plan") or {}

        if plan.get("pro") is False:
            if days != FREE_DAYS:
                overview = await self.get_overview(FREE_DAYS, bypass)
            return self._validate(
                overview=overview.get("overview") or {},
                tweets=overview.get("tweets") or [],
                growth={"current": {}, "previous": {}},
                plan=plan,
                warnings=list(dict.fromkeys(str(w) for w in overview.get("warnings") or [])),
                disconnected=bool(overview.get("disconnected")),
            )

        warnings = [str(w) for w in overview.get("warnings") or []]
        sections: dict[str, dict[str, Any]] = {"engagement": {}, "audience": {}}
        results = await asyncio.gather(
            self.get_engagement(days, bypass),
            self.get_audience(days, bypass),
            return_exceptions=True,
        )
        for name, result in zip(sections, results):
            if isinstance(result, Exception):
                _log.warning("%s analytics unavailable for %sd window: %s", name, days, result)
                warnings.append(f"{name} data unavailable")
            elif isinstance(result, BaseException):
                raise result
            else:
                sections[name] = result
                warnings.extend(str(w) for w in result.get("warnings") or [])

        engagement_payload, audience_payload = sections["engagement"], sections["audience"]
        return self._validate(
            overview=overview.get("overview") or {},
            growth=overview.get("growth") or {"current": {}, "previous": {}},
            daily_metrics=overview.get("daily_metrics") or [],
            hourly_engagement=overview.get("hourly_engagement") or [],
            content_type_metrics=overview.get("content_type_metrics") or [],
            tweets=overview.get("tweets") or [],
            engagement_patterns=engagement_payload.get("engagement_patterns") or [],
            optimal_times=engagement_payload.get("optimal_times") or [],
            content_insights=engagement_payload.get("content_insights") or [],
            reach_metrics=audience_payload.get("reach_metrics") or [],
            engagement_distribution=audience_payload.get("engagement_distribution") or [],
            plan=plan,
            warnings=list(dict.fromkeys(warnings)),
            disconnected=any(
                bool(payload.get("disconnected")) for payload in (overview, engagement_payload, audience_payload)
            ),
        )

    @staticmethod
    def _validate(**sections: Any) -> MetricsSnapshot:
        try:
            return MetricsSnapshot(**sections)
        except ValidationError as exc:
            fields = ", ".join(sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")}))
            raise MetricsSourceError(f"Malformed analytics payload ({fields or 'snapshot'})") from exc

    def has_recent_error(self, days: Any) -> bool:
        return self.cache.has_recent_error(self.cache_key(OVERVIEW_PATH, parse_days(days)))

    def invalidate_cache(self) -> None:
        self.cache.invalidate_prefix(f"{CACHE_SCOPE}:")

    # ── Sync ─────────────────────────────────────────────────────────────────

    async def sync_status(self) -> SyncStatus:
        response, payload = await self._send("GET", SYNC_STATUS_PATH)
        self._raise_for_status(response, payload)
        return _parse_status(_unwrap(payload).get("syncStatus")) or SyncStatus()

    def _wait_minutes(self, status: SyncStatus | None) -> int:
        if status is None or status.next_allowed_at is None:
            return 0
        remaining = (_utc(status.next_allowed_at) - self._clock()).total_seconds()
        return max(1, math.ceil(remaining / 60)) if remaining > 0 else 0

    async def sync(self, days: Any = DEFAULT_DAYS) -> SyncOutcome:
        """Ask the backend to pull fresh tweet metrics from Twitter.

        Refused up front on free plans, while the account is disconnected and
        during the backend's cooldown window. A completed sync drops every
        cached analytics response so the next snapshot is fresh.
        """
        days = parse_days(days)
        overview = await self.get_overview(days)
        if (overview.get("plan") or {}).get("pro") is False:
            raise SyncRefusedError("pro_required", "Sync Latest is available on Pro.", status_code=403)
        if overview.get("disconnected"):
            raise SyncRefusedError(
                "disconnected",
                "Twitter is disconnected. Please reconnect your account in Settings before syncing.",
                status_code=409,
            )

        status = await self.sync_status()
        wait = self._wait_minutes(status)
        if wait:
            raise SyncRefusedError(
                "cooldown", f"Sync cooldown active. Please wait about {wait} minutes.",
                status_code=429, wait_minutes=wait, sync_status=status,
            )

        response, payload = await self._send("POST", SYNC_PATH, timeout=SYNC_TIMEOUT, json={"days": days})
        payload = _unwrap(payload)
        status = _parse_status(payload.get("syncStatus")) or status

        kind = payload.get("type")
        if kind == "sync_cooldown" or payload.get("cooldown"):
            wait = int(to_number(payload.get("waitMinutes"), 1)) or 1
            raise SyncRefusedError(
                "cooldown", f"Sync cooldown active. Please wait about {wait} minutes.",
                status_code=response.status_code, wait_minutes=wait, sync_status=status,
            )
        if response.status_code == 409 and not _needs_reconnect(payload):
            raise SyncRefusedError(
                "in_progress", "A sync is already running for this account. Please wait for it to finish.",
                status_code=409, sync_status=status,
            )
        if response.status_code == 429:
            raise SyncRefusedError(
                "rate_limit", "Twitter rate limit reached. Please try again later.",
                status_code=429, sync_status=status,
            )
        self._raise_for_status(response, payload)

        stats = payload.get("stats") or {}
        outcome = SyncOutcome(
            success=bool(payload.get("success")),
            run_id=str(payload["runId"]) if payload.get("runId") is not None else None,
            updated=int(to_number(stats.get("metrics_updated", payload.get("updated_count")))),
            errors=int(to_number(stats.get("errors"))),
            processed=int(to_number(stats.get("total_processed"))),
            rate_limited=bool(payload.get("rateLimited")),
            reset_time=str(payload["resetTime"]) if payload.get("resetTime") else None,
            disconnected=bool(payload.get("disconnected")),
            sync_status=status,
        )
        if outcome.success:
            _log.info("sync updated %d tweets", outcome.updated)
            self.invalidate_cache()
        return outcome


# ── Auto-refresh ─────────────────────────────────────────────────────────────


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


class DashboardRefresher:
    """Periodically rebuild the dashboard while someone is looking at it.

    Cycles are skipped when `is_visible()` is false or the last overview
    request failed within the error TTL. The loop stops once the account
    is disconnected.
    """

    def __init__(
        self,
        client: MetricsClient,
        on_update: Callable[[AnalyticsDashboard], Any],
        days: Any = DEFAULT_DAYS,
        interval: Optional[float] = None,
        is_visible: Callable[[], bool] = lambda: True,
        on_error: Optional[Callable[[MetricsSourceError], Any]] = None,
        policy: AnalyticsPolicy = DEFAULT_POLICY,
    ) -> None:
        self.client = client
        self.on_update = on_update
        self.on_error = on_error
        self.days = parse_days(days)
        self.interval = interval if interval is not None else _float_env("ANALYTICS_REFRESH_SECONDS", 300.0)
        self.is_visible = is_visible
        self.policy = policy
        self._stop = asyncio.Event()

    @property
    def running(self) -> bool:
        return not self._stop.is_set()

    async def refresh_once(self) -> Optional[AnalyticsDashboard]:
        if not self.is_visible():
            return None
        if self.client.has_recent_error(self.days):
            _log.debug("skipping refresh for %sd window: recent error", self.days)
            return None
        try:
            snapshot = await self.client.fetch_snapshot(self.days)
        except MetricsSourceError as exc:
            _log.warning("dashboard refresh failed: %s", exc)
            if isinstance(exc, ReconnectRequiredError):
                self.stop()
            if self.on_error is not None:
                await _maybe_await(self.on_error(exc))
            return None

        dashboard = build_dashboard(snapshot, effective_days(snapshot, self.days), self.policy)
        if snapshot.disconnected:
            _log.info("account disconnected; stopping auto-refresh")
            self.stop()
        await _maybe_await(self.on_update(dashboard))
        return dashboard

    async def run(self) -> None:
        while self.running:
            await self.refresh_once()
            if not self.running:
                break
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

    def stop(self) -> None:
        self._stop.set()

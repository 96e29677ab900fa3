"""FastAPI server exposing the analytics dashboard as JSON and SSE endpoints."""
import asyncio
import json
import logging
import os
from typing import AsyncGenerator

from dotenv import load_dotenv

load_dotenv()

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sse_starlette.sse import EventSourceResponse

from tweet_genie.analytics.dashboard import DEFAULT_DAYS, build_dashboard
from tweet_genie.analytics.policy import DEFAULT_POLICY, AnalyticsPolicy, load_policy
from tweet_genie.fetchers.metrics import (
    DashboardRefresher,
    MetricsClient,
    MetricsSourceError,
    ReconnectRequiredError,
    SyncRefusedError,
    effective_days,
)
from tweet_genie.models import AnalyticsDashboard, MetricsSnapshot

_log = logging.getLogger(__name__)

app = FastAPI(title="tweet-genie analytics API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# ── Shared collaborators ─────────────────────────────────────────────────────
# One client (and so one request cache) per process.

_metrics_client: MetricsClient | None = None
_policy: AnalyticsPolicy | None = None


def get_metrics_client() -> MetricsClient:
    global _metrics_client
    if _metrics_client is None:
        _metrics_client = MetricsClient.from_env()
    return _metrics_client


def get_policy() -> AnalyticsPolicy:
    """Thresholds from ANALYTICS_POLICY_PATH when set, otherwise the defaults."""
    global _policy
    if _policy is None:
        path = os.getenv("ANALYTICS_POLICY_PATH")
        _policy = load_policy(path) if path else DEFAULT_POLICY
    return _policy


def _dump(dashboard: AnalyticsDashboard) -> dict:
    return dashboard.model_dump(by_alias=True, mode="json")


_SYNC_REFUSAL_STATUS = {
    "pro_required": 403,
    "disconnected": 409,
    "in_progress": 409,
    "cooldown": 429,
    "rate_limit": 429,
}


def _error_payload(exc: MetricsSourceError) -> str:
    return json.dumps({"error": str(exc), "reconnect": isinstance(exc, ReconnectRequiredError)})


# ── Endpoints ────────────────────────────────────────────────────────────────


@app.get("/api/health")
def health():
    return {"status": "ok"}


@app.post("/api/analytics/report")
def report(
    snapshot: MetricsSnapshot,
    days: int = DEFAULT_DAYS,
    policy: AnalyticsPolicy = Depends(get_policy),
):
    """Compute the dashboard for a snapshot supplied by the caller."""
    return _dump(build_dashboard(snapshot, effective_days(snapshot, days), policy))


@app.get("/api/analytics/dashboard")
async def dashboard(
    days: int = DEFAULT_DAYS,
    refresh: bool = False,
    client: MetricsClient = Depends(get_metrics_client),
    policy: AnalyticsPolicy = Depends(get_policy),
):
    try:
        snapshot = await client.fetch_snapshot(days, bypass=refresh)
    except ReconnectRequiredError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except MetricsSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    return _dump(build_dashboard(snapshot, effective_days(snapshot, days), policy))


async def dashboard_events(
    client: MetricsClient,
    days: int = DEFAULT_DAYS,
    policy: AnalyticsPolicy = DEFAULT_POLICY,
    interval: float | None = None,
) -> AsyncGenerator[dict, None]:
    """SSE events from a refresher loop; ends when the loop stops or dies."""
    queue: asyncio.Queue = asyncio.Queue()
    refresher = DashboardRefresher(
        client,
        on_update=lambda d: queue.put_nowait(("dashboard", json.dumps(_dump(d)))),
        on_error=lambda exc: queue.put_nowait(("error", _error_payload(exc))),
        days=days,
        interval=interval,
        policy=policy,
    )
    task = asyncio.create_task(refresher.run())
    getter: asyncio.Future | None = None
    try:
        while True:
            getter = asyncio.ensure_future(queue.get())
            await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
            if getter.done():
                event, data = getter.result()
                yield {"event": event, "data": data}
                continue

            getter.cancel()
            while not queue.empty():
                event, data = queue.get_nowait()
                yield {"event": event, "data": data}
            exc = None if task.cancelled() else task.exception()
            if exc is not None:
                _log.error("dashboard refresher crashed: %s", exc)
                yield {"event": "error", "data": json.dumps({"error": str(exc), "reconnect": False})}
            break
    finally:
        if getter is not None:
            getter.cancel()
        refresher.stop()
        task.cancel()


@app.get("/api/analytics/stream")
async def stream(
    days: int = DEFAULT_DAYS,
    client: MetricsClient = Depends(get_metrics_client),
    policy: AnalyticsPolicy = Depends(get_policy),
):
    """Stream SSE `dashboard` events on every refresh, `error` events on failure."""
    return EventSourceResponse(dashboard_events(client, days, policy))


@app.get("/api/analytics/sync-status")
async def sync_status(client: MetricsClient = Depends(get_metrics_client)):
    try:
        status = await client.sync_status()
    except MetricsSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    return {"syncStatus": status.model_dump(by_alias=True, mode="json")}


@app.post("/api/analytics/sync")
async def sync(days: int = DEFAULT_DAYS, client: MetricsClient = Depends(get_metrics_client)):
    """Pull fresh metrics from Twitter, then drop cached analytics."""
    try:
        outcome = await client.sync(days)
    except SyncRefusedError as exc:
        raise HTTPException(
            status_code=_SYNC_REFUSAL_STATUS.get(exc.reason, 409),
            detail={"type": exc.reason, "error": str(exc), "waitMinutes": exc.wait_minutes},
        )
    except ReconnectRequiredError as exc:
        raise HTTPException(status_code=409, detail={"type": "reconnect_required", "error": str(exc)})
    except MetricsSourceError as exc:
        raise HTTPException(status_code=502, detail={"type": "sync_failed", "error": str(exc)})
    return outcome.model_dump(by_alias=True, mode="json")


@app.post("/api/analytics/cache/invalidate")
def invalidate_cache(client: MetricsClient = Depends(get_metrics_client)):
    client.invalidate_cache()
    return {"status": "ok"}

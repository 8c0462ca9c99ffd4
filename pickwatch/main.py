"""FastAPI application — JSON surface the dashboard frontend polls.

The coordinator starts polling when the app starts and is torn down when
it stops. Every read endpoint answers from the cache; only
``/api/refresh`` and ``/api/scan/trigger`` reach the backend.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from starlette.requests import Request

from pickwatch.config import settings
from pickwatch.services.backend_client import ActorProvider
from pickwatch.services.sync_coordinator import (
    BREAKING_NEWS,
    SCAN_METADATA,
    TOP_PICKS,
    SyncCoordinator,
)
from pickwatch.utils.clock import relative_label
from pickwatch.utils.logger import logger
from pickwatch.utils.market_hours import market_status, now_ist


# ── Models ──────────────────────────────────────────────────────────
class SyncConfigRequest(BaseModel):
    backend_url: str | None = None
    backend_timeout_seconds: float | None = None
    poll_interval_ms: int | None = None
    stale_after_ms: int | None = None


router = APIRouter()


# ── Helpers ─────────────────────────────────────────────────────────
def _coordinator(request: Request) -> SyncCoordinator:
    return request.app.state.coordinator


def _resource_payload(coordinator: SyncCoordinator, key: str, data: object) -> dict:
    """Cache metadata for one resource plus its (possibly default) data."""
    snap = coordinator.read(key)
    last_updated = "Never"
    if snap.last_fetched_at is not None:
        last_updated = relative_label(int(snap.last_fetched_at * 1_000_000))
    return {
        "status": snap.status.value,
        "last_fetched_at": snap.last_fetched_at,
        "last_updated": last_updated,
        "age_ms": snap.age_ms,
        "is_stale": snap.is_stale,
        "last_error": snap.last_error,
        "data": data,
    }


# ══════════════════════════════════════════════════════════════════════
# READ ROUTES
# ══════════════════════════════════════════════════════════════════════


@router.get("/api/health")
async def health(request: Request) -> dict:
    """Health check including actor, poller and exchange session state."""
    status = _coordinator(request).get_status()
    return {
        "api": "ok",
        "actor_available": status["actor_available"],
        "scheduler": status["scheduler"],
        "resources": status["resources"],
        "market": market_status(now_ist()),
    }


@router.get("/api/picks")
async def get_top_picks(request: Request) -> dict:
    coordinator = _coordinator(request)
    picks = [p.model_dump(by_alias=True) for p in coordinator.top_picks()]
    return _resource_payload(coordinator, TOP_PICKS, picks)


@router.get("/api/picks/all")
async def get_all_picks(request: Request) -> dict:
    """Every pick the backend holds. Uncached."""
    picks = await _coordinator(request).all_picks()
    return {"count": len(picks), "data": [p.model_dump(by_alias=True) for p in picks]}


@router.get("/api/news")
async def get_breaking_news(request: Request) -> dict:
    coordinator = _coordinator(request)
    news = [n.model_dump(by_alias=True) for n in coordinator.breaking_news()]
    return _resource_payload(coordinator, BREAKING_NEWS, news)


@router.get("/api/scan/metadata")
async def get_scan_metadata(request: Request) -> dict:
    coordinator = _coordinator(request)
    meta = coordinator.scan_metadata().model_dump(by_alias=True)
    return _resource_payload(coordinator, SCAN_METADATA, meta)


@router.get("/api/scan/view")
async def get_scan_view(request: Request) -> dict:
    """Derived scan-engine state (countdown, freshness tier, banner flag)."""
    return _coordinator(request).scan_view().model_dump()


@router.get("/api/market/status")
async def get_market_status() -> dict:
    """Current exchange session status (pre-market/open/closed, countdown)."""
    return market_status(now_ist())


# ══════════════════════════════════════════════════════════════════════
# ACTIONS
# ══════════════════════════════════════════════════════════════════════


@router.post("/api/refresh")
async def refresh_all(
    request: Request,
    wait: bool = Query(default=False),
) -> dict:
    """Refetch every resource now. ``wait=true`` returns after all fetches land."""
    coordinator = _coordinator(request)
    issued = coordinator.refresh_all()
    if wait:
        await coordinator.scheduler.wait_idle()
    return {"status": "refreshing" if not wait else "refreshed", "issued": len(issued)}


@router.post("/api/scan/trigger")
async def trigger_scan(request: Request) -> dict:
    """Kick off a manual backend scan."""
    result = await _coordinator(request).trigger_scan()
    if not result.ok:
        raise HTTPException(status_code=502, detail=result.error)
    return result.model_dump()


@router.post("/api/admin/clear")
async def clear_all_data(request: Request) -> dict:
    result = await _coordinator(request).clear_all_data()
    if not result.ok:
        raise HTTPException(status_code=502, detail=result.error)
    return result.model_dump()


# ══════════════════════════════════════════════════════════════════════
# SYNC CONFIG
# ══════════════════════════════════════════════════════════════════════


@router.get("/api/sync-config")
async def get_sync_config() -> dict:
    return settings.get_sync_config()


@router.put("/api/sync-config")
async def update_sync_config(req: SyncConfigRequest) -> dict:
    """Persist sync settings. Cadence changes apply on next restart."""
    updates = req.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No settings provided")
    saved = settings.update_sync_config(updates)
    logger.info("[API] Sync config updated: %s", sorted(updates))
    return {"status": "saved", "config": saved}


# ══════════════════════════════════════════════════════════════════════
# APP FACTORY
# ══════════════════════════════════════════════════════════════════════


def create_app(coordinator: SyncCoordinator | None = None) -> FastAPI:
    """Build the API around a coordinator (a settings-driven one by default)."""
    coordinator = coordinator or SyncCoordinator(ActorProvider.from_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        result = coordinator.start()
        logger.info("[Boot] Sync coordinator started: %s", result)
        yield
        coordinator.stop()
        await coordinator.actors.aclose()
        logger.info("[Boot] Sync coordinator stopped")

    app = FastAPI(
        title="Pickwatch",
        description="Cached, auto-refreshing view of the stock-pick scan backend",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.coordinator = coordinator
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run("pickwatch.main:app", host=settings.HOST, port=settings.PORT)

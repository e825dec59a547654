import asyncio
import logging
import time
from contextlib import asynccontextmanager, suppress
from typing import Any

from fastapi import APIRouter, Body, FastAPI, HTTPException, Query, Request

from status_api.api_schemas import (
    CacheClearedResponse,
    CacheResponse,
    CheckMultipleRequest,
    CheckMultipleResponse,
    CheckResponse,
    ErrorResponse,
    HealthResponse,
)
from status_api.cache import ResultCache
from status_api.checks.http_check import HttpProber
from status_api.config import settings
from status_api.orchestrator import CheckRequestError, Prober, StatusChecker, summarize

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


async def purge_loop(cache: ResultCache, interval_s: float) -> None:
    while True:
        await asyncio.sleep(interval_s)
        removed = cache.purge_expired()
        if removed:
            logger.debug("Purged %s expired cache entries", removed)


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = asyncio.create_task(
        purge_loop(app.state.cache, settings.CACHE_PURGE_INTERVAL_S)
    )
    logger.info("Status API ready, cache ttl=%sms", app.state.cache.ttl_ms)
    try:
        yield
    finally:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        app.state.cache.clear()
        logger.info("Status API stopped")


def create_app(cache: ResultCache | None = None, prober: Prober | None = None) -> FastAPI:
    app = FastAPI(
        title="Status API",
        version="1.0.0",
        description=(
            "URL liveness checks: probes targets over HTTP(S), reports status "
            "code and latency, and caches results for a short window."
        ),
        lifespan=lifespan,
    )
    app.state.cache = cache if cache is not None else ResultCache()
    app.state.prober = prober if prober is not None else HttpProber()
    app.state.checker = StatusChecker(app.state.cache, app.state.prober)
    app.state.started_at = time.monotonic()

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response

    app.include_router(router)
    return app


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["system"],
    summary="Health Check",
    description="Liveness endpoint with process uptime.",
)
async def health(request: Request):
    return {"ok": 1, "up": round(time.monotonic() - request.app.state.started_at, 3)}


@router.get(
    "/check",
    response_model=CheckResponse,
    responses={400: {"model": ErrorResponse}},
    tags=["check"],
    summary="Check One URL",
    description="Returns the cached result when fresh, otherwise probes the URL.",
)
async def check(
    request: Request,
    url: str | None = Query(default=None, description="URL or bare host to check"),
):
    if not url:
        raise HTTPException(status_code=400, detail="Missing url")

    outcome = await request.app.state.checker.check_one(url)
    return outcome.to_dict()


@router.post(
    "/check-multiple",
    response_model=CheckMultipleResponse,
    responses={400: {"model": ErrorResponse}},
    tags=["check"],
    summary="Check Many URLs",
    description="Checks URLs in order, at most ten probes in flight at a time.",
    openapi_extra={
        "requestBody": {
            "content": {
                "application/json": {"schema": CheckMultipleRequest.model_json_schema()}
            }
        }
    },
)
async def check_multiple(request: Request, payload: Any = Body(default=None)):
    urls = payload.get("urls") if isinstance(payload, dict) else None
    try:
        outcomes = await request.app.state.checker.check_many(urls)
    except CheckRequestError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid urls: {exc}") from exc

    return {
        "results": [o.to_dict() for o in outcomes],
        "summary": summarize(outcomes),
    }


@router.get(
    "/cache",
    response_model=CacheResponse,
    tags=["cache"],
    summary="Cache Snapshot",
    description="Diagnostic view of cached results, stale entries included.",
)
async def cache_snapshot(request: Request):
    cache = request.app.state.cache
    return {"size": len(cache), "ttl": cache.ttl_ms, "entries": cache.snapshot()}


@router.delete(
    "/cache",
    response_model=CacheClearedResponse,
    tags=["cache"],
    summary="Clear Cache",
)
async def cache_clear(request: Request):
    request.app.state.cache.clear()
    logger.info("Cache cleared")
    return {"cleared": 1}


app = create_app()

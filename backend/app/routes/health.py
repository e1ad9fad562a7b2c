"""
RecipeBox Backend - Health Check Route
========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Pings the store and the cache, and reports the repository's cache
       counters so degraded-mode operation is visible to operators.

Status levels:
    - healthy:   store and cache reachable (HTTP 200)
    - degraded:  cache down or circuit open; list reads fall back to the store (HTTP 200)
    - unhealthy: store down, nothing can be served (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app import __version__
from app.dependencies import get_recipe_repository
from app.schemas.recipe import CacheStatsResponse, HealthResponse
from app.services.recipe_repository import RecipeRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Store unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(
    repository: RecipeRepository = Depends(get_recipe_repository),
):
    """
    Check the store, the cache and the repository's degraded-mode counters.

    A cache outage never makes the service unhealthy: the repository
    keeps serving from the store.
    """
    db_status = "connected"
    cache_status = "available"
    overall = "healthy"

    # ── Check Store ───────────────────────────────────────────────────────
    if not await repository.store.ping():
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: recipe store unreachable")

    # ── Check Cache ───────────────────────────────────────────────────────
    breaker = getattr(repository.cache, "circuit_breaker", None)
    if breaker is not None and breaker.state == breaker.OPEN:
        cache_status = "circuit_open"
    elif not await repository.cache.ping():
        cache_status = "unavailable"
        logger.warning("Health check: cache unreachable")

    if cache_status != "available" and overall == "healthy":
        overall = "degraded"

    stats = repository.stats
    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        cache=cache_status,
        cache_stats=CacheStatsResponse(
            hits=stats.hits,
            misses=stats.misses,
            degraded_reads=stats.degraded_reads,
            write_failures=stats.write_failures,
            pending_invalidation=repository.pending_invalidation,
        ),
        uptime_seconds=round(time.time() - _start_time, 2),
    )

    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body

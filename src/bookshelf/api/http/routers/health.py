"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from src.bookshelf.api.http.app_data import ApplicationDependencies
from src.bookshelf.api.http.deps import get_app_dependencies
from src.bookshelf.runtime.context import get_config

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health() -> dict[str, str]:
    """Liveness check: 200 as long as the process is serving requests."""
    return {"status": "healthy", "service": "bookshelf"}


@router.get("/ready", response_model=None)
def readiness(
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
) -> dict[str, Any] | JSONResponse:
    """Readiness check across the service dependencies.

    Returns 503 when the database is down. Cache and event bus failures only
    degrade the service: reads fall back to the store and publishing is
    best-effort.
    """
    config = get_config()
    checks: dict[str, Any] = {}
    all_healthy = True

    db_healthy = app_deps.database_service.health_check()
    checks["database"] = {
        "status": "healthy" if db_healthy else "unhealthy",
        "type": "sqlite" if config.database.is_sqlite else "postgresql",
        "pool": app_deps.database_service.get_pool_status(),
    }
    if not db_healthy:
        all_healthy = False

    cache_healthy = app_deps.book_cache.health_check()
    checks["cache"] = {
        "status": "healthy" if cache_healthy else "degraded",
        "type": "redis" if app_deps.redis_service.is_enabled else "in-memory",
    }
    if app_deps.redis_service.is_enabled:
        checks["cache"]["url"] = app_deps.redis_service.url
        info = app_deps.redis_service.get_info()
        if info:
            checks["cache"]["info"] = info

    if config.kafka.enabled:
        bus_healthy = app_deps.event_publisher.health_check()
        checks["event_bus"] = {
            "status": "healthy" if bus_healthy else "degraded",
            "bootstrap_servers": config.kafka.bootstrap_servers,
            "topic": config.kafka.topic,
        }
    else:
        checks["event_bus"] = {
            "status": "disabled",
            "note": "Change events are recorded in memory",
        }

    consumer = app_deps.event_consumer
    checks["consumer"] = {
        "status": consumer.state.value if consumer is not None else "disabled",
    }

    response = {
        "status": "ready" if all_healthy else "not_ready",
        "environment": config.app.environment,
        "checks": checks,
    }
    if not all_healthy:
        return JSONResponse(status_code=503, content=response)
    return response

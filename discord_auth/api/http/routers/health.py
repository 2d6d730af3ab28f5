"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from discord_auth.api.http.app_data import ApplicationDependencies
from discord_auth.core.storage.session_storage import RedisSessionStorage
from discord_auth.runtime.context import get_config

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict[str, str]:
    """Liveness probe: 200 OK as long as the process is running."""
    return {"status": "healthy", "service": "discord-auth"}


@router.get("/ready", response_model=None)
async def readiness(request: Request) -> dict[str, Any] | JSONResponse:
    """Readiness probe.

    Returns 503 when the account store database is unreachable. Session
    storage is reported but never fails the probe.
    """
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    config = get_config()

    db_healthy = app_deps.database_service.health_check()
    storage = app_deps.session_storage
    checks = {
        "database": {
            "status": "healthy" if db_healthy else "unhealthy",
            "type": "postgresql" if config.database.url.startswith("postgresql") else "sqlite",
        },
        "session_storage": {
            "status": "healthy" if storage.is_available() else "degraded",
            "type": "redis" if isinstance(storage, RedisSessionStorage) else "in-memory",
        },
        "discord": {"configured": config.discord.is_configured},
    }

    response = {
        "status": "ready" if db_healthy else "not_ready",
        "environment": config.app.environment,
        "checks": checks,
    }
    if not db_healthy:
        return JSONResponse(status_code=503, content=response)
    return response

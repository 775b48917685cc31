"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running
and dependencies (database, Redis) are reachable. Redis only backs rate
limiting, so a missing Redis degrades the status but nothing else.
"""

from fastapi import APIRouter, Request
from sqlalchemy import text

from notekeeper import __version__

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    redis = request.app.state.redis
    if redis is None:
        checks["redis"] = "unavailable"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as e:
            checks["redis"] = f"error: {e}"

    status = "healthy" if all(
        v == "ok" for k, v in checks.items() if k != "version"
    ) else "degraded"

    return {"status": status, **checks}

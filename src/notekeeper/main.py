"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (schema, Redis, engine).
Middleware, CORS, exception handlers and routers all registered here.

Everything request handlers need (settings, engine, session factory,
Redis client) is built here from one Settings object and hung on
app.state. Tests build their own app with their own Settings.
"""

from contextlib import asynccontextmanager
from typing import Optional

import redis.asyncio as aioredis
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from notekeeper import __version__
from notekeeper.api import api_router
from notekeeper.config import Settings, get_settings
from notekeeper.db.engine import build_engine, build_session_factory, create_schema
from notekeeper.errors import Internal, NotekeeperError
from notekeeper.log import configure_logging
from notekeeper.middleware.access_log import AccessLogMiddleware
from notekeeper.middleware.rate_limit import RateLimitMiddleware
from notekeeper.middleware.request_id import RequestIdMiddleware
from notekeeper.middleware.security import SecurityHeadersMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: FastAPI lifespan replaces on_event("startup") / on_event("shutdown").
    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(
        "notekeeper.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    await create_schema(app.state.engine)

    try:
        client = aioredis.from_url(
            settings.redis_url, encoding="utf-8", decode_responses=True
        )
        await client.ping()
        app.state.redis = client
        logger.info("notekeeper.redis_connected", url=settings.redis_url)
    except (RedisError, OSError) as e:
        # Redis is optional — only rate limiting depends on it
        logger.warning("notekeeper.redis_unavailable", error=str(e))

    yield

    logger.info("notekeeper.shutdown")
    if app.state.redis is not None:
        await app.state.redis.aclose()
        app.state.redis = None
    await app.state.engine.dispose()


# ─── Error rendering ─────────────────────────────────────
# Every error leaves the API as {"message": "..."}.


async def _notekeeper_error(request: Request, exc: NotekeeperError) -> JSONResponse:
    if isinstance(exc, Internal):
        logger.error("request.internal_error", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"message": Internal.default_message})
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(
        status_code=400, content={"message": "; ".join(parts) or "Invalid input"}
    )


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("request.storage_error", path=request.url.path)
    return JSONResponse(status_code=500, content={"message": Internal.default_message})


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request.unhandled_error", path=request.url.path)
    return JSONResponse(status_code=500, content={"message": Internal.default_message})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Notekeeper",
        description="Multi-tenant notes with role-based access and admin moderation",
        version=__version__,
        lifespan=lifespan,
    )

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.redis = None

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → AccessLog → Security → RateLimit → CORS → handler

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(SecurityHeadersMiddleware, settings=settings)
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(NotekeeperError, _notekeeper_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(SQLAlchemyError, _storage_error)
    app.add_exception_handler(Exception, _unhandled_error)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: notekeeper.main:app)
app = create_app()

"""
FastAPI Application Entry Point

Satvamirtham Delivery API: orders, riders, and the accounts behind them.
The push service runs as a mock in development and as Firebase Cloud
Messaging in staging/production.

Endpoints:
    - /api/auth/*: Customer registration and login
    - /api/users/*: Customer account administration
    - /api/orders/*: Order lifecycle and rider assignment
    - /api/riders/*: Rider profiles and availability
    - /api/rider/auth/*: Rider registration, login, device token
    - GET /health: System health check

Version: 2.0.0
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Optional

import redis
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from delivery_app.core.config import PushDispatchMode, Settings, get_settings, setup_logging
from delivery_app.database import RecordStore, utcnow
from delivery_app.errors import DeliveryError
from delivery_app.routes import ROUTERS
from delivery_app.schemas import HealthResponse
from delivery_app.services.push import create_push_service

logger = logging.getLogger(__name__)


# =============================================================================
# HEALTH PROBES
# =============================================================================

def _ping_redis(url: str) -> None:
    client = redis.Redis.from_url(url, socket_timeout=2)
    try:
        client.ping()
    finally:
        client.close()


async def _check_database(store: RecordStore) -> str:
    try:
        await store.ping()
    except DeliveryError as e:
        logger.error(f"Database health check failed: {e.detail}")
        return f"unhealthy: {e.message}"
    return "healthy"


async def _check_redis(settings: Settings) -> str:
    # Redis is only on the request path when pushes go through Celery
    if settings.push_dispatch != PushDispatchMode.CELERY:
        return "disabled"
    try:
        await asyncio.to_thread(_ping_redis, settings.redis_url)
    except (redis.RedisError, OSError) as e:
        logger.error(f"Redis health check failed: {e}")
        return f"unhealthy: {e}"
    return "healthy"


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Configuration to run with (defaults to cached settings)
    """
    settings = settings or get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info("=" * 60)
        logger.info(f"🚀 Starting {settings.app_name}")
        logger.info(f"   Version: {settings.app_version}")
        logger.info(f"   Environment: {settings.env_mode.value}")
        logger.info(f"   Debug: {settings.debug}")
        logger.info("=" * 60)

        store = RecordStore(settings.database_url, echo=settings.database_echo)
        await store.create_schema()
        logger.info("✅ Record store initialized")

        push_service = create_push_service(settings)
        logger.info(f"✅ Push Service: {push_service.provider_name} ({settings.push_dispatch.value})")

        if settings.is_development:
            logger.info("   Push alerts are logged, not delivered")
        elif settings.use_real_services:
            missing = settings.validate_production_config()
            if missing:
                logger.warning(f"⚠️ Missing production config: {missing}")

        app.state.settings = settings
        app.state.store = store
        app.state.push_service = push_service

        logger.info("✅ Application ready!")

        yield

        # Shutdown
        logger.info("Shutting down...")
        await store.close()
        logger.info("✅ Cleanup complete")

    app = FastAPI(
        title=settings.app_name,
        description="Order lifecycle, rider assignment and rider accounts for a food delivery service.",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)"
        )
        return response

    for router in ROUTERS:
        app.include_router(router)

    # =========================================================================
    # ROOT & HEALTH ENDPOINTS
    # =========================================================================

    @app.get("/", tags=["Root"])
    async def root() -> dict[str, Any]:
        """API root with navigation links."""
        return {
            "success": True,
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "environment": settings.env_mode.value,
            "documentation": "/docs",
            "health": "/health",
        }

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request) -> HealthResponse:
        """Verify all system components are operational."""
        db_status = await _check_database(request.app.state.store)
        redis_status = await _check_redis(settings)

        push_service = request.app.state.push_service
        push_status = "healthy" if await push_service.health_check() else "unhealthy"

        overall = "operational" if all(
            s in ("healthy", "disabled") for s in (db_status, redis_status, push_status)
        ) else "degraded"

        return HealthResponse(
            status=overall,
            database=db_status,
            redis=redis_status,
            push_service=push_status,
            timestamp=utcnow(),
        )

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.exception_handler(DeliveryError)
    async def delivery_error_handler(request: Request, exc: DeliveryError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.message} ({exc.detail})")
        else:
            logger.info(f"{request.method} {request.url.path}: {exc.message}")

        content: dict[str, Any] = {"success": False, "message": exc.message}
        if exc.detail is not None:
            content["detail"] = jsonable_encoder(exc.detail)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "message": "Invalid request",
                "detail": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={"success": False, "message": "Route not found", "path": request.url.path},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception: {exc}")

        content: dict[str, Any] = {"success": False, "message": "Internal server error"}
        if settings.debug:
            content["detail"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run("delivery_app.main:app", host=_settings.api_host, port=_settings.api_port)

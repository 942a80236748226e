"""Signet ASGI application: lifespan, middleware stack and v1 routes."""

from __future__ import annotations

import time

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware.exception_handlers import register_exception_handlers
from api.middleware.rate_limiter import RateLimitMiddleware, get_rate_limiter
from api.middleware.request_context import RequestContextMiddleware
from api.middleware.request_limits import RequestSizeLimitMiddleware
from api.middleware.security_headers import SecurityHeadersMiddleware
from api.routes.v1 import router as v1_router
from api.services.notification_transport import create_notification_transport
from core.constants import get_settings
from utils.db_utils import check_pool_health, create_database_pool, graceful_pool_close
from utils.logger import configure_uvicorn_logging, logger

settings = get_settings()

if settings.debug:
    logger.info(
        f"Starting Signet ({settings.app_env}): app_url={settings.app_url}, "
        f"db_pool=[{settings.db_pool_min_size},{settings.db_pool_max_size}], "
        f"notification_transport={settings.notification_transport}"
    )

# Module level so every uvicorn worker picks it up
configure_uvicorn_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the pool and the notification transport; drain both on shutdown.

    Startup aborts if the database is unreachable or the configured
    transport is unknown, before any request is served.
    """
    app.state.started_at = time.monotonic()

    pool = await create_database_pool(settings)
    health = await check_pool_health(pool)
    if not health["healthy"]:
        logger.error("Database health check failed during startup")
        await graceful_pool_close(pool, timeout=settings.shutdown_timeout)
        raise RuntimeError("Database connection failed")
    app.state.db_pool = pool

    app.state.notification_transport = create_notification_transport(settings)
    logger.info(f"Notification transport: {settings.notification_transport}")

    limiter = get_rate_limiter()
    await limiter.start()
    app.state.rate_limiter = limiter

    try:
        yield
    finally:
        logger.info("Shutting down")
        await limiter.stop()
        await graceful_pool_close(pool, timeout=settings.shutdown_timeout)


app = FastAPI(
    title="Signet API",
    description=(
        "Prepare documents with signer fields, issue one signing link per signer, "
        "email the links and collect the submitted values.\n\n"
        "Owner endpoints take a JWT bearer token from the identity provider. "
        "`/api/v1/sign/{token}` is public: the token itself is the credential."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Health", "description": "Liveness and readiness checks"},
        {"name": "Documents", "description": "Documents and their signer fields"},
        {"name": "Contacts", "description": "Signer email addresses"},
        {"name": "Signing Links", "description": "Issue, list and email signing links"},
        {"name": "Signing", "description": "Public signing page, addressed by token"},
    ],
    openapi_url="/api/v1/openapi.json",
    docs_url="/api/v1/docs",
    redoc_url="/api/v1/redoc",
)

register_exception_handlers(app)

# Starlette runs middleware in reverse registration order: the rate limiter
# sees a request first and request context sees it last.
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_methods_list,
    allow_headers=settings.cors_headers_list,
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(RateLimitMiddleware)

app.include_router(v1_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        reload_dirs=["src"],
        log_config=None,
    )

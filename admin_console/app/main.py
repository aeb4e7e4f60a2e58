"""
FastAPI Application Entry Point.

This is the main application file for the Order Fulfillment Admin Console.
"""

from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from admin_console.app.core.config import settings
from admin_console.app.api.v1.router import router as api_v1_router
from admin_console.app.core.mutation_guard import ping_redis
from admin_console.app.core.observability import ObservabilityMiddleware, configure_logging
from admin_console.app.db.session import engine, Base
from admin_console.app.services.commerce_client import (
    CommerceApiClient,
    close_commerce_client,
    get_commerce_client,
)
from admin_console.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from admin_console.app.models.audit_log import AuditLog


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging and creates the audit tables on startup.
    2. Closes the shared commerce API client on shutdown.
    """
    configure_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_commerce_client()
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Operator console for the order fulfillment status workflow",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check(client: CommerceApiClient = Depends(get_commerce_client)):
    """
    Health check endpoint.

    Returns:
        dict: Status, Redis reachability and the commerce API circuit state
    """
    redis_ok = await ping_redis()
    return {
        "status": "healthy" if redis_ok else "degraded",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": redis_ok,
        "commerce_api_circuit": client.circuit_breaker.state,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to the Order Fulfillment Admin Console API",
        "docs": "/docs",
        "health": "/health",
    }

"""
Observability Middleware.

Tags every request with a correlation ID and the acting operator, and makes
both available to log records emitted while the request is handled.
"""

import time
import uuid
import logging
from contextvars import ContextVar
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from admin_console.app.core.config import settings

logger = logging.getLogger("admin_console")

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")
operator_var: ContextVar[str] = ContextVar("operator", default="-")


def log_context(**fields) -> dict:
    """`extra` payload for a log call: request context plus the given fields."""
    return {
        "correlation_id": correlation_id_var.get(),
        "operator": operator_var.get(),
        **fields,
    }


def configure_logging(level: str = None) -> None:
    """Attach a stream handler to the project logger (idempotent)."""
    logger.setLevel((level or settings.log_level).upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        logger.addHandler(handler)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or uuid.uuid4().hex
        operator = request.headers.get("X-Operator") or "admin"

        cid_token = correlation_id_var.set(correlation_id)
        operator_token = operator_var.set(operator)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            correlation_id_var.reset(cid_token)
            operator_var.reset(operator_token)

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Process-Time"] = str(duration_ms)

        status_code = response.status_code
        level = logging.ERROR if status_code >= 500 else logging.WARNING if status_code >= 400 else logging.INFO
        logger.log(
            level,
            "%s %s -> %s (%.2f ms)",
            request.method, request.url.path, status_code, duration_ms,
            extra={
                "correlation_id": correlation_id,
                "operator": operator,
                "status_code": status_code,
                "duration_ms": duration_ms,
            },
        )
        return response

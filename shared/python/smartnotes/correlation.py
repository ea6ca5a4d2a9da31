"""Per-request correlation id and access logging middleware."""

from __future__ import annotations

import logging
import time
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from smartnotes.logging import correlation_id_var

CORRELATION_HEADER = "x-correlation-id"

logger = logging.getLogger(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Bind the caller's correlation id (or a fresh one) for the request's log lines."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        corr_id = request.headers.get(CORRELATION_HEADER) or str(uuid4())
        token = correlation_id_var.set(corr_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[CORRELATION_HEADER] = corr_id
            logger.info(
                "request handled",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                },
            )
            return response
        finally:
            correlation_id_var.reset(token)

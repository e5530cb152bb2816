"""FastAPI middleware components."""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"
RESPONSE_TIME_HEADER = "X-Response-Time"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Correlate everything a request does under one id.

    Reuses an inbound ``X-Request-ID`` or mints a UUID4, exposes it as
    ``request.state.request_id``, binds it into the structlog context and
    echoes it in the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Access log with latency, also reported in ``X-Response-Time``."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        started = time.perf_counter()
        route = {"method": request.method, "path": request.url.path}

        logger.info("request_started", **route)
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info(
            "request_completed",
            **route,
            status_code=response.status_code,
            duration_ms=round(elapsed_ms, 2),
        )
        response.headers[RESPONSE_TIME_HEADER] = f"{elapsed_ms:.2f}ms"
        return response

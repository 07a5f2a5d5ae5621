"""Request context middleware: request id propagation and per-request telemetry."""

from __future__ import annotations

from time import perf_counter
from typing import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from project_utility.context import ContextBridge
from project_utility.telemetry import emit as telemetry_emit

REQUEST_ID_HEADER = "x-request-id"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Adopt or mint the request id, echo it back, and emit one `http.request` event per call."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = ContextBridge.set_request_id(request.headers.get(REQUEST_ID_HEADER))
        # Shared through the scope so handlers running outside this context see the same id.
        request.state.request_id = request_id
        started = perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            telemetry_emit(
                "http.request",
                level="warning" if status_code >= 500 else "info",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                payload={
                    "status_code": status_code,
                    "latency_ms": round((perf_counter() - started) * 1000, 3),
                },
            )


__all__ = ["REQUEST_ID_HEADER", "RequestContextMiddleware"]

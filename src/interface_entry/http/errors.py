from __future__ import annotations

"""HTTP exception handlers producing standard API envelopes."""

from typing import Any, Mapping, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from foundational_service.contracts.errors import AgentPipelineError
from interface_entry.http.middleware import REQUEST_ID_HEADER
from interface_entry.http.responses import ApiError, failure


def _extract_error(detail: Any, default_code: str = "UNKNOWN_ERROR") -> ApiError:
    if isinstance(detail, Mapping):
        code = str(detail.get("code") or default_code)
        message = str(detail.get("message") or detail.get("detail") or "An error occurred")
        return ApiError(code=code, message=message)
    if isinstance(detail, str):
        return ApiError(code=default_code, message=detail)
    return ApiError(code=default_code, message=str(detail))


def _envelope(status_code: int, error: ApiError, *, request_id: Optional[str] = None) -> JSONResponse:
    payload = failure(error, request_id=request_id)
    response = JSONResponse(status_code=status_code, content=payload.model_dump(by_alias=True))
    if request_id:
        response.headers[REQUEST_ID_HEADER] = request_id
    return response


async def pipeline_exception_handler(request: Request, exc: AgentPipelineError) -> JSONResponse:
    return _envelope(
        exc.http_status,
        ApiError(code=exc.code, message=exc.message, detail=exc.detail),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _envelope(exc.status_code, _extract_error(exc.detail, default_code="HTTP_ERROR"))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return _envelope(
        status.HTTP_400_BAD_REQUEST,
        ApiError(code="INVALID_ARGUMENT", message=message),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Runs in the server error middleware, outside the request context.
    request_id = getattr(request.state, "request_id", None) or request.headers.get(REQUEST_ID_HEADER)
    return _envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ApiError(code="INTERNAL_ERROR", message="Unexpected server error"),
        request_id=request_id,
    )


__all__ = [
    "http_exception_handler",
    "pipeline_exception_handler",
    "unhandled_exception_handler",
    "validation_exception_handler",
]

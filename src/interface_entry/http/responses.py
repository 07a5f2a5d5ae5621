from __future__ import annotations

"""API envelope shared by every route: `{data, meta{requestId}, errors[{code, message, detail}]}`."""

from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from project_utility.context import ContextBridge

T = TypeVar("T")


class ApiMeta(BaseModel):
    request_id: str = Field(alias="requestId")

    model_config = {"populate_by_name": True}


class ApiError(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ApiResponse(BaseModel, Generic[T]):
    data: Optional[T]
    meta: ApiMeta
    errors: List[ApiError] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


def current_meta() -> ApiMeta:
    return ApiMeta(request_id=ContextBridge.request_id())


def ok(data: T) -> ApiResponse[T]:
    return ApiResponse(data=data, meta=current_meta())


def failure(error: ApiError, *, request_id: Optional[str] = None) -> ApiResponse[Any]:
    meta = ApiMeta(request_id=request_id) if request_id else current_meta()
    return ApiResponse[Any](data=None, meta=meta, errors=[error])


__all__ = ["ApiError", "ApiMeta", "ApiResponse", "current_meta", "failure", "ok"]

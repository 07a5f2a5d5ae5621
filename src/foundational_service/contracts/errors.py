"""Error taxonomy surfaced by the agent response pipeline.

Each error carries a stable `code` the interface layer maps onto a transport status. Nothing in
the pipeline recovers from these; they propagate to the caller.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "AgentPipelineError",
    "InternalError",
    "InvalidArgumentError",
    "NotFoundError",
    "PreconditionFailedError",
]


class AgentPipelineError(Exception):
    code: str = "INTERNAL"
    http_status: int = 500

    def __init__(self, message: str, *, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} ({self.detail})"
        return self.message


class InvalidArgumentError(AgentPipelineError):
    code = "INVALID_ARGUMENT"
    http_status = 400


class PreconditionFailedError(AgentPipelineError):
    code = "FAILED_PRECONDITION"
    http_status = 412


class NotFoundError(AgentPipelineError):
    code = "NOT_FOUND"
    http_status = 404


class InternalError(AgentPipelineError):
    code = "INTERNAL"
    http_status = 500

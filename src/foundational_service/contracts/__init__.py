"""Contracts shared between the provider integrations and the business pipeline."""

from __future__ import annotations

from foundational_service.contracts.agent_output import (
    AgentMessageSchema,
    AgentResponseSchema,
    FreeTextOutput,
    NextActionSchema,
    Phase,
    ProviderKind,
    RawOutput,
    StructuredOutput,
)
from foundational_service.contracts.errors import (
    AgentPipelineError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    PreconditionFailedError,
)

__all__ = [
    "AgentMessageSchema",
    "AgentPipelineError",
    "AgentResponseSchema",
    "FreeTextOutput",
    "InternalError",
    "InvalidArgumentError",
    "NextActionSchema",
    "NotFoundError",
    "Phase",
    "PreconditionFailedError",
    "ProviderKind",
    "RawOutput",
    "StructuredOutput",
]

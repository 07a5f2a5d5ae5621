"""Model backend output contracts.

`AgentResponseSchema` is the schema handed to the structured backend. `FreeTextOutput` and
`StructuredOutput` are the two tagged shapes a provider adapter returns; downstream code matches on
`kind` instead of duplicating the pipeline per backend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, Field

__all__ = [
    "AgentMessageSchema",
    "AgentResponseSchema",
    "FreeTextOutput",
    "NextActionSchema",
    "Phase",
    "ProviderKind",
    "RawOutput",
    "StructuredOutput",
]


class Phase(str, Enum):
    """Ordered conversation stages an agent message can belong to."""

    INITIAL_CONTACT = "INITIAL_CONTACT"
    DISCOVERY = "DISCOVERY"
    QUALIFICATION = "QUALIFICATION"
    CONNECTION = "CONNECTION"
    POSITIONING = "POSITIONING"
    CONVERSION = "CONVERSION"

    @classmethod
    def parse(cls, value: Any) -> Optional["Phase"]:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                return None
        return None


class ProviderKind(str, Enum):
    FREE_TEXT = "free_text"
    STRUCTURED = "structured"


class AgentMessageSchema(BaseModel):
    text: str = Field(..., min_length=1)
    phase: Phase
    responseDelaySeconds: int = Field(..., ge=5, le=60)
    approvalRequired: bool
    confidenceScore: float = Field(..., ge=0, le=1)


class NextActionSchema(BaseModel):
    shouldOfferSchedulingLink: bool
    notes: str


class AgentResponseSchema(BaseModel):
    analysis: str = Field(..., min_length=1)
    messages: list[AgentMessageSchema] = Field(..., min_length=1, max_length=4)
    nextAction: NextActionSchema


@dataclass(frozen=True, slots=True)
class FreeTextOutput:
    text: str
    model: str = ""
    kind: Literal["free_text"] = field(default="free_text", init=False)


@dataclass(frozen=True, slots=True)
class StructuredOutput:
    analysis: str
    messages: Sequence[Mapping[str, Any]]
    next_action: Optional[Mapping[str, Any]] = None
    model: str = ""
    kind: Literal["structured"] = field(default="structured", init=False)

    @classmethod
    def from_schema(cls, parsed: AgentResponseSchema, *, model: str = "") -> "StructuredOutput":
        payload = parsed.model_dump(mode="json")
        return cls(
            analysis=payload["analysis"],
            messages=tuple(payload["messages"]),
            next_action=payload["nextAction"],
            model=model,
        )


RawOutput = Union[FreeTextOutput, StructuredOutput]

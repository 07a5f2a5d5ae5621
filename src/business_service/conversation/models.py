from __future__ import annotations

"""Domain models for conversations, transcript entries and generation batches."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence, Tuple
from uuid import uuid4

from foundational_service.contracts.agent_output import Phase
from project_utility.clock import ensure_utc, utc_now

__all__ = [
    "Conversation",
    "ConversationHistory",
    "GenerationMetadata",
    "GenerationResult",
    "SanitizedMessage",
    "ScheduledMessage",
    "SegmentedMessage",
    "TranscriptEntry",
    "new_id",
]


def new_id() -> str:
    return uuid4().hex


def _ensure_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))


@dataclass(slots=True)
class Conversation:
    """Conversation document. Summary fields belong to the external summary trigger."""

    conversation_id: str
    display_name: str
    provider: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    last_message: Optional[str] = None
    unread: bool = False
    total_messages: int = 0

    def to_document(self) -> dict[str, Any]:
        return {
            "conversation_id": self.conversation_id,
            "display_name": self.display_name,
            "provider": self.provider,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Conversation":
        return cls(
            conversation_id=str(doc["conversation_id"]),
            display_name=str(doc.get("display_name") or ""),
            provider=doc.get("provider") or None,
            created_at=_ensure_datetime(doc.get("created_at") or utc_now()),
            updated_at=_ensure_datetime(doc.get("updated_at") or utc_now()),
            last_message=doc.get("last_message"),
            unread=bool(doc.get("unread", False)),
            total_messages=int(doc.get("total_messages", 0) or 0),
        )


@dataclass(frozen=True, slots=True)
class GenerationMetadata:
    response_delay_seconds: int
    respond_at_timestamp: str
    approval_required: bool
    confidence_score: float
    phase: Optional[str]
    model: str
    batch_id: str
    batch_index: int
    analysis: Optional[str] = None
    next_action: Optional[Mapping[str, Any]] = None

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "response_delay_seconds": self.response_delay_seconds,
            "respond_at_timestamp": self.respond_at_timestamp,
            "approval_required": self.approval_required,
            "confidence_score": self.confidence_score,
            "phase": self.phase,
            "model": self.model,
            "batch_id": self.batch_id,
            "batch_index": self.batch_index,
        }
        if self.analysis is not None:
            document["analysis"] = self.analysis
        if self.next_action is not None:
            document["next_action"] = dict(self.next_action)
        return document

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> Optional["GenerationMetadata"]:
        if "respond_at_timestamp" not in doc:
            return None
        return cls(
            response_delay_seconds=int(doc["response_delay_seconds"]),
            respond_at_timestamp=str(doc["respond_at_timestamp"]),
            approval_required=bool(doc.get("approval_required", False)),
            confidence_score=float(doc.get("confidence_score", 0.5)),
            phase=doc.get("phase"),
            model=str(doc.get("model") or ""),
            batch_id=str(doc.get("batch_id") or ""),
            batch_index=int(doc.get("batch_index", 0)),
            analysis=doc.get("analysis"),
            next_action=doc.get("next_action"),
        )


@dataclass(frozen=True, slots=True)
class TranscriptEntry:
    entry_id: str
    conversation_id: str
    sender: str
    text: str
    timestamp: str
    generation: Optional[GenerationMetadata] = None

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "entry_id": self.entry_id,
            "conversation_id": self.conversation_id,
            "sender": self.sender,
            "text": self.text,
            "timestamp": self.timestamp,
        }
        if self.generation is not None:
            document.update(self.generation.to_document())
        return document

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "TranscriptEntry":
        return cls(
            entry_id=str(doc.get("entry_id") or doc.get("_id") or ""),
            conversation_id=str(doc["conversation_id"]),
            sender=str(doc.get("sender") or ""),
            text=str(doc.get("text") or ""),
            timestamp=str(doc.get("timestamp") or ""),
            generation=GenerationMetadata.from_document(doc),
        )


@dataclass(frozen=True, slots=True)
class ConversationHistory:
    conversation: Conversation
    entries: Tuple[TranscriptEntry, ...]

    @property
    def next_message_index(self) -> int:
        return len(self.entries) + 1


@dataclass(frozen=True, slots=True)
class SegmentedMessage:
    """One message as parsed out of a backend output; fields other than text may be absent."""

    text: str
    phase: Any = None
    delay_seconds: Any = None
    approval_required: Any = None
    confidence_score: Any = None


@dataclass(frozen=True, slots=True)
class SanitizedMessage:
    text: str
    delay_seconds: int
    confidence_score: float
    approval_required: bool
    phase: Optional[Phase] = None


@dataclass(frozen=True, slots=True)
class ScheduledMessage:
    message: SanitizedMessage
    cumulative_delay_seconds: int
    respond_at: datetime


@dataclass(frozen=True, slots=True)
class GenerationResult:
    message: str
    all_messages: Sequence[str]
    conversation_id: str
    timestamp: str
    provider: str
    model: str
    analysis: Optional[str] = None
    next_action: Optional[Mapping[str, Any]] = None

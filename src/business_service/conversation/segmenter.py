from __future__ import annotations

"""Normalize both backend output shapes into an ordered list of segmented messages."""

import re
from typing import Any, List, Mapping

from business_service.conversation.models import SegmentedMessage
from foundational_service.contracts.agent_output import FreeTextOutput, RawOutput, StructuredOutput
from foundational_service.contracts.errors import InternalError

__all__ = [
    "MESSAGE_SEPARATOR",
    "ResponseSegmenter",
    "split_free_text",
]

RESPONSE_BLOCK = re.compile(r"<response>(.*?)</response>", re.DOTALL)
MESSAGE_SEPARATOR = "|||"


def split_free_text(text: str) -> List[str]:
    """Pieces of the first `<response>` block, or the whole trimmed text when there is none."""

    match = RESPONSE_BLOCK.search(text)
    if match is None:
        whole = text.strip()
        return [whole] if whole else []
    pieces = (piece.strip() for piece in match.group(1).split(MESSAGE_SEPARATOR))
    return [piece for piece in pieces if piece]


def _from_schema_message(message: Mapping[str, Any]) -> SegmentedMessage:
    return SegmentedMessage(
        text=str(message.get("text") or ""),
        phase=message.get("phase"),
        delay_seconds=message.get("responseDelaySeconds"),
        approval_required=message.get("approvalRequired"),
        confidence_score=message.get("confidenceScore"),
    )


class ResponseSegmenter:
    def __init__(self, fallback_message: str) -> None:
        if not fallback_message.strip():
            raise ValueError("fallback message must not be blank")
        self._fallback_message = fallback_message.strip()

    def segment(self, raw: RawOutput) -> List[SegmentedMessage]:
        if isinstance(raw, FreeTextOutput):
            return self._segment_free_text(raw)
        if isinstance(raw, StructuredOutput):
            return self._segment_structured(raw)
        raise InternalError(f"unsupported backend output: {type(raw).__name__}")

    def _segment_free_text(self, raw: FreeTextOutput) -> List[SegmentedMessage]:
        pieces = split_free_text(raw.text)
        if not pieces:
            pieces = [self._fallback_message]
        return [SegmentedMessage(text=piece) for piece in pieces]

    def _segment_structured(self, raw: StructuredOutput) -> List[SegmentedMessage]:
        if not raw.messages:
            raise InternalError("Model did not return any messages.")
        return [_from_schema_message(message) for message in raw.messages]

from __future__ import annotations

"""Clamp, validate and default the fields of segmented messages."""

import math
from typing import Any, Iterable, List, Optional

from business_service.conversation.models import SanitizedMessage, SegmentedMessage
from foundational_service.contracts.agent_output import Phase

__all__ = [
    "DEFAULT_CONFIDENCE",
    "DEFAULT_DELAY_SECONDS",
    "MAX_DELAY_SECONDS",
    "MIN_DELAY_SECONDS",
    "clamp_delay",
    "coerce_approval",
    "normalize_confidence",
    "sanitize_message",
    "sanitize_messages",
]

MIN_DELAY_SECONDS = 5
MAX_DELAY_SECONDS = 60
DEFAULT_DELAY_SECONDS = 10
DEFAULT_CONFIDENCE = 0.5

_TRUTHY = {"true", "yes", "y", "1"}


def _as_float(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def clamp_delay(value: Any) -> int:
    number = _as_float(value)
    if not math.isfinite(number):
        return DEFAULT_DELAY_SECONDS
    # half-up rounding, not banker's rounding
    rounded = math.floor(number + 0.5)
    return max(MIN_DELAY_SECONDS, min(MAX_DELAY_SECONDS, rounded))


def normalize_confidence(value: Any) -> float:
    number = _as_float(value)
    if not math.isfinite(number):
        return DEFAULT_CONFIDENCE
    return max(0.0, min(1.0, round(number, 2)))


def coerce_approval(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def sanitize_message(message: SegmentedMessage) -> Optional[SanitizedMessage]:
    """Return the cleaned message, or None when its text is blank."""

    text = (message.text or "").strip()
    if not text:
        return None
    return SanitizedMessage(
        text=text,
        delay_seconds=clamp_delay(message.delay_seconds),
        confidence_score=normalize_confidence(message.confidence_score),
        approval_required=coerce_approval(message.approval_required),
        phase=Phase.parse(message.phase),
    )


def sanitize_messages(messages: Iterable[SegmentedMessage]) -> List[SanitizedMessage]:
    sanitized = (sanitize_message(message) for message in messages)
    return [message for message in sanitized if message is not None]

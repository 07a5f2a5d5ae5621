from __future__ import annotations

import math

import pytest

from business_service.conversation.models import SegmentedMessage
from business_service.conversation.sanitizer import (
    clamp_delay,
    coerce_approval,
    normalize_confidence,
    sanitize_message,
    sanitize_messages,
)
from foundational_service.contracts.agent_output import Phase


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (3, 5),
        (5, 5),
        (12.4, 12),
        (12.5, 13),
        (59.5, 60),
        (120, 60),
        (-4, 5),
        ("30", 30),
        (None, 10),
        ("soon", 10),
        (math.nan, 10),
        (math.inf, 10),
        (True, 10),
    ],
)
def test_clamp_delay(raw, expected) -> None:
    assert clamp_delay(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (0.876, 0.88),
        (0.5, 0.5),
        (1.7, 1.0),
        (-0.2, 0.0),
        (None, 0.5),
        ("high", 0.5),
        (math.nan, 0.5),
    ],
)
def test_normalize_confidence(raw, expected) -> None:
    assert normalize_confidence(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (True, True),
        (False, False),
        (None, False),
        ("yes", True),
        ("TRUE", True),
        ("no", False),
        ("", False),
        (1, True),
        (0, False),
    ],
)
def test_coerce_approval(raw, expected) -> None:
    assert coerce_approval(raw) is expected


def test_free_text_message_gets_defaults() -> None:
    sanitized = sanitize_message(SegmentedMessage(text="  Hey!  "))
    assert sanitized is not None
    assert sanitized.text == "Hey!"
    assert sanitized.delay_seconds == 10
    assert sanitized.confidence_score == 0.5
    assert sanitized.approval_required is False
    assert sanitized.phase is None


def test_unknown_phase_becomes_absent() -> None:
    sanitized = sanitize_message(SegmentedMessage(text="Hi", phase="SMALL_TALK"))
    assert sanitized is not None
    assert sanitized.phase is None


def test_known_phase_is_kept() -> None:
    sanitized = sanitize_message(SegmentedMessage(text="Hi", phase="CONVERSION"))
    assert sanitized is not None
    assert sanitized.phase is Phase.CONVERSION


def test_blank_messages_are_dropped_and_order_kept() -> None:
    messages = [
        SegmentedMessage(text="first"),
        SegmentedMessage(text="   "),
        SegmentedMessage(text="second", delay_seconds=7),
    ]
    sanitized = sanitize_messages(messages)
    assert [message.text for message in sanitized] == ["first", "second"]
    assert sanitized[1].delay_seconds == 7


def test_every_sanitized_value_is_in_range() -> None:
    messages = [
        SegmentedMessage(text="a", delay_seconds=-10, confidence_score=4),
        SegmentedMessage(text="b", delay_seconds=1000, confidence_score=-1),
        SegmentedMessage(text="c", delay_seconds="bogus", confidence_score="bogus"),
    ]
    for message in sanitize_messages(messages):
        assert 5 <= message.delay_seconds <= 60
        assert 0.0 <= message.confidence_score <= 1.0

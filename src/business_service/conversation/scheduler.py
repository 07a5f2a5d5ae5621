from __future__ import annotations

"""Stagger a batch of messages so they read as human-paced."""

from datetime import datetime
from typing import List, Sequence

from business_service.conversation.models import SanitizedMessage, ScheduledMessage
from project_utility.clock import add_seconds, ensure_utc

__all__ = ["schedule_messages"]


def schedule_messages(messages: Sequence[SanitizedMessage], now: datetime) -> List[ScheduledMessage]:
    """
    Assign each message `now + cumulative delay`.

    `now` is snapshotted once by the caller at batch start so the schedule stays internally
    consistent no matter how long persistence takes. Delays are at least 5 seconds, so the
    resulting timestamps strictly increase.
    """

    start = ensure_utc(now)
    cumulative = 0
    scheduled: List[ScheduledMessage] = []
    for message in messages:
        cumulative += message.delay_seconds
        scheduled.append(
            ScheduledMessage(
                message=message,
                cumulative_delay_seconds=cumulative,
                respond_at=add_seconds(start, cumulative),
            )
        )
    return scheduled

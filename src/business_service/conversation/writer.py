from __future__ import annotations

"""Sequential, in-order persistence of a scheduled generation batch."""

import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional, Sequence

from business_service.conversation.models import (
    GenerationMetadata,
    ScheduledMessage,
    TranscriptEntry,
    new_id,
)
from business_service.conversation.repository import AsyncTranscriptRepository
from project_utility.clock import Clock, utc_iso, utc_now
from project_utility.context import ContextBridge

__all__ = ["TranscriptWriter"]

log = logging.getLogger("business_service.conversation.writer")


class TranscriptWriter:
    """
    Append a batch one entry at a time, awaiting each insert before issuing the next.

    The store does not order concurrent inserts, so sequential awaits are what makes read order
    match generation order. A failure mid-batch leaves earlier entries in place and propagates.
    """

    def __init__(
        self,
        repository: AsyncTranscriptRepository,
        *,
        agent_identity: str,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._agent_identity = agent_identity
        self._clock = clock

    async def write_batch(
        self,
        conversation_id: str,
        scheduled: Sequence[ScheduledMessage],
        *,
        model: str,
        batch_id: Optional[str] = None,
        analysis: Optional[str] = None,
        next_action: Optional[Mapping[str, Any]] = None,
    ) -> List[str]:
        batch = batch_id or new_id()
        texts: List[str] = []
        last_written: Optional[datetime] = None
        for index, item in enumerate(scheduled):
            written_at = self._clock()
            if last_written is not None and written_at < last_written:
                written_at = last_written
            last_written = written_at
            message = item.message
            entry = TranscriptEntry(
                entry_id=new_id(),
                conversation_id=conversation_id,
                sender=self._agent_identity,
                text=message.text,
                timestamp=utc_iso(written_at),
                generation=GenerationMetadata(
                    response_delay_seconds=message.delay_seconds,
                    respond_at_timestamp=utc_iso(item.respond_at),
                    approval_required=message.approval_required,
                    confidence_score=message.confidence_score,
                    phase=message.phase.value if message.phase is not None else None,
                    model=model,
                    batch_id=batch,
                    batch_index=index,
                    analysis=analysis,
                    next_action=next_action,
                ),
            )
            await self._repository.append_entry(entry)
            log.debug(
                "transcript.entry.appended",
                extra=ContextBridge.log_extra(batch_id=batch, batch_index=index),
            )
            texts.append(message.text)
        return texts

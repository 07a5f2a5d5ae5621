from __future__ import annotations

"""Conversation creation and counterpart turns; everything outside the generation pipeline."""

import logging
from typing import Optional, Tuple

from business_service.conversation.models import Conversation, TranscriptEntry, new_id
from business_service.conversation.persona import DEFAULT_PERSONA, Persona
from business_service.conversation.repository import AsyncTranscriptRepository
from foundational_service.contracts.agent_output import ProviderKind
from foundational_service.contracts.errors import InvalidArgumentError, NotFoundError
from project_utility.clock import Clock, utc_iso, utc_now
from project_utility.context import ContextBridge

__all__ = ["ConversationLifecycleService"]

log = logging.getLogger("business_service.conversation.lifecycle")


class ConversationLifecycleService:
    def __init__(
        self,
        repository: AsyncTranscriptRepository,
        *,
        persona: Persona = DEFAULT_PERSONA,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._persona = persona
        self._clock = clock

    async def create_conversation(
        self,
        display_name: str,
        *,
        provider: Optional[str] = None,
    ) -> Tuple[Conversation, Tuple[TranscriptEntry, ...]]:
        """Create the conversation document, then write the persona's seed entries in order."""

        name = (display_name or "").strip()
        if not name:
            raise InvalidArgumentError("Display name is required.")
        provider_value: Optional[str] = None
        if provider:
            try:
                provider_value = ProviderKind(provider.strip().lower()).value
            except ValueError as exc:
                raise InvalidArgumentError(f"Unknown provider '{provider}'.") from exc

        now = self._clock()
        conversation = Conversation(
            conversation_id=new_id(),
            display_name=name,
            provider=provider_value,
            created_at=now,
            updated_at=now,
        )
        await self._repository.create_conversation(conversation)
        seeds = []
        for text in self._persona.seed_messages(name):
            entry = TranscriptEntry(
                entry_id=new_id(),
                conversation_id=conversation.conversation_id,
                sender=self._persona.agent_identity,
                text=text,
                timestamp=utc_iso(self._clock()),
            )
            await self._repository.append_entry(entry)
            seeds.append(entry)
        log.info(
            "conversation.created",
            extra=ContextBridge.log_extra(
                conversation_id=conversation.conversation_id,
                message_count=len(seeds),
            ),
        )
        return conversation, tuple(seeds)

    async def append_counterpart_message(self, conversation_id: str, text: str) -> TranscriptEntry:
        body = (text or "").strip()
        if not body:
            raise InvalidArgumentError("Message text is required.")
        conversation = await self._require_conversation(conversation_id)
        entry = TranscriptEntry(
            entry_id=new_id(),
            conversation_id=conversation.conversation_id,
            sender=conversation.display_name,
            text=body,
            timestamp=utc_iso(self._clock()),
        )
        return await self._repository.append_entry(entry)

    async def list_transcript(self, conversation_id: str) -> Tuple[Conversation, Tuple[TranscriptEntry, ...]]:
        conversation = await self._require_conversation(conversation_id)
        entries = await self._repository.list_entries(conversation.conversation_id)
        return conversation, tuple(entries)

    async def _require_conversation(self, conversation_id: str) -> Conversation:
        if not conversation_id or not conversation_id.strip():
            raise InvalidArgumentError("Chat ID is required.")
        conversation = await self._repository.get_conversation(conversation_id.strip())
        if conversation is None:
            raise NotFoundError("Chat not found.")
        return conversation

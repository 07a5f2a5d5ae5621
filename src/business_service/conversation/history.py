from __future__ import annotations

"""Read side of the pipeline: ordered transcript plus the conversation attributes it needs."""

import logging

from business_service.conversation.models import ConversationHistory
from business_service.conversation.repository import AsyncTranscriptRepository
from foundational_service.contracts.errors import NotFoundError
from project_utility.context import ContextBridge

__all__ = ["DEFAULT_DISPLAY_NAME", "HistoryLoader"]

log = logging.getLogger("business_service.conversation.history")

DEFAULT_DISPLAY_NAME = "Friend"


class HistoryLoader:
    def __init__(self, repository: AsyncTranscriptRepository) -> None:
        self._repository = repository

    async def load(self, conversation_id: str) -> ConversationHistory:
        entries = await self._repository.list_entries(conversation_id)
        if not entries:
            raise NotFoundError("No messages found for this chat.")
        conversation = await self._repository.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError("Chat not found.")
        if not conversation.display_name.strip():
            conversation.display_name = DEFAULT_DISPLAY_NAME
        log.debug(
            "history.loaded",
            extra=ContextBridge.log_extra(message_count=len(entries)),
        )
        return ConversationHistory(conversation=conversation, entries=tuple(entries))

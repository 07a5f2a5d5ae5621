from __future__ import annotations

"""Mongo-backed storage for conversations and their append-only transcripts."""

import asyncio
from typing import Optional, Protocol, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING

from business_service.conversation.models import Conversation, TranscriptEntry

__all__ = [
    "AsyncMongoTranscriptRepository",
    "AsyncTranscriptRepository",
]


class AsyncTranscriptRepository(Protocol):
    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        ...

    async def create_conversation(self, conversation: Conversation) -> Conversation:
        ...

    async def list_entries(self, conversation_id: str) -> Tuple[TranscriptEntry, ...]:
        ...

    async def append_entry(self, entry: TranscriptEntry) -> TranscriptEntry:
        ...


class AsyncMongoTranscriptRepository:
    """
    Motor-based repository.

    Entries are only ever inserted. Reads sort by `timestamp` and fall back to `_id` (driver
    generated ObjectIds increase with insertion order) so entries sharing a millisecond keep the
    order they were written in.
    """

    def __init__(
        self,
        conversations: AsyncIOMotorCollection,
        entries: AsyncIOMotorCollection,
    ) -> None:
        self._conversations = conversations
        self._entries = entries
        self._index_lock = asyncio.Lock()
        self._indexes_created = False

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        await self._ensure_indexes()
        doc = await self._conversations.find_one({"conversation_id": conversation_id})
        if doc is None:
            return None
        return Conversation.from_document(doc)

    async def create_conversation(self, conversation: Conversation) -> Conversation:
        await self._ensure_indexes()
        await self._conversations.insert_one(conversation.to_document())
        return conversation

    async def list_entries(self, conversation_id: str) -> Tuple[TranscriptEntry, ...]:
        await self._ensure_indexes()
        cursor = self._entries.find({"conversation_id": conversation_id}).sort(
            [("timestamp", ASCENDING), ("_id", ASCENDING)]
        )
        entries = [TranscriptEntry.from_document(doc) async for doc in cursor]
        return tuple(entries)

    async def append_entry(self, entry: TranscriptEntry) -> TranscriptEntry:
        await self._ensure_indexes()
        await self._entries.insert_one(entry.to_document())
        return entry

    async def _ensure_indexes(self) -> None:
        if self._indexes_created:
            return
        async with self._index_lock:
            if self._indexes_created:
                return
            await self._conversations.create_index(
                [("conversation_id", ASCENDING)],
                unique=True,
                name="uniq_conversation_id",
            )
            await self._entries.create_index(
                [("entry_id", ASCENDING)],
                unique=True,
                name="uniq_entry_id",
            )
            await self._entries.create_index(
                [("conversation_id", ASCENDING), ("timestamp", ASCENDING)],
                name="conversation_timestamp_idx",
            )
            self._indexes_created = True

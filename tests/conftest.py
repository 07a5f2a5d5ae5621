from __future__ import annotations

import dataclasses
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from business_service.conversation.models import Conversation, TranscriptEntry  # noqa: E402
from foundational_service.contracts.agent_output import ProviderKind, RawOutput  # noqa: E402
from project_utility.context import ContextBridge  # noqa: E402
from project_utility.secrets import ProviderCredential  # noqa: E402

BASE_TIME = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class StepClock:
    """Deterministic clock advancing by `step` on every call."""

    def __init__(self, start: datetime = BASE_TIME, step: timedelta = timedelta(milliseconds=250)) -> None:
        self.current = start
        self.step = step
        self.calls: List[datetime] = []

    def __call__(self) -> datetime:
        value = self.current
        self.calls.append(value)
        self.current = self.current + self.step
        return value


class InMemoryTranscriptRepository:
    def __init__(self) -> None:
        self.conversations: Dict[str, Conversation] = {}
        self.entries: List[TranscriptEntry] = []
        self.append_calls = 0
        self.read_calls = 0
        self.fail_on_append: Optional[int] = None

    def add_conversation(self, conversation_id: str, display_name: str, provider: Optional[str] = None) -> Conversation:
        conversation = Conversation(
            conversation_id=conversation_id,
            display_name=display_name,
            provider=provider,
            created_at=BASE_TIME,
            updated_at=BASE_TIME,
        )
        self.conversations[conversation_id] = conversation
        return conversation

    def add_entry(self, conversation_id: str, sender: str, text: str, timestamp: str) -> TranscriptEntry:
        entry = TranscriptEntry(
            entry_id=f"seed-{len(self.entries)}",
            conversation_id=conversation_id,
            sender=sender,
            text=text,
            timestamp=timestamp,
        )
        self.entries.append(entry)
        return entry

    def entries_for(self, conversation_id: str) -> List[TranscriptEntry]:
        matched = [entry for entry in self.entries if entry.conversation_id == conversation_id]
        return sorted(matched, key=lambda entry: entry.timestamp)

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        self.read_calls += 1
        conversation = self.conversations.get(conversation_id)
        if conversation is None:
            return None
        return dataclasses.replace(conversation)

    async def create_conversation(self, conversation: Conversation) -> Conversation:
        self.conversations[conversation.conversation_id] = conversation
        return conversation

    async def list_entries(self, conversation_id: str) -> Tuple[TranscriptEntry, ...]:
        self.read_calls += 1
        return tuple(self.entries_for(conversation_id))

    async def append_entry(self, entry: TranscriptEntry) -> TranscriptEntry:
        self.append_calls += 1
        if self.fail_on_append is not None and self.append_calls == self.fail_on_append:
            raise RuntimeError("write rejected by store")
        self.entries.append(entry)
        return entry


class FakeProvider:
    def __init__(
        self,
        kind: ProviderKind,
        output: Optional[RawOutput] = None,
        *,
        error: Optional[Exception] = None,
        model: str = "fake-model",
        credential_name: str = "OPENAI_API_KEY",
    ) -> None:
        self.kind = kind
        self.model = model
        self.credential_name = credential_name
        self.output = output
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        credential: Optional[ProviderCredential],
    ) -> RawOutput:
        self.calls.append(
            {"system_prompt": system_prompt, "user_prompt": user_prompt, "credential": credential}
        )
        if self.error is not None:
            raise self.error
        assert self.output is not None
        return self.output


@pytest.fixture()
def repository() -> InMemoryTranscriptRepository:
    return InMemoryTranscriptRepository()


@pytest.fixture()
def clock() -> StepClock:
    return StepClock()


@pytest.fixture(autouse=True)
def _reset_context() -> None:
    ContextBridge.clear()


@pytest.fixture()
def make_provider():
    return FakeProvider


@pytest.fixture()
def make_clock():
    return StepClock

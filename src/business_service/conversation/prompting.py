from __future__ import annotations

"""Prompt assembly for both backend variants. Pure functions; history is never truncated."""

import json
from dataclasses import dataclass
from typing import Sequence

from business_service.conversation.models import TranscriptEntry
from business_service.conversation.persona import Persona
from foundational_service.contracts.agent_output import ProviderKind

__all__ = [
    "PromptAssembler",
    "PromptPair",
    "render_transcript",
]


@dataclass(frozen=True, slots=True)
class PromptPair:
    system_prompt: str
    user_prompt: str


def _render_lines(entries: Sequence[TranscriptEntry]) -> str:
    blocks = [
        f"user: {entry.sender}\nmessage: {entry.text}\ntimestamp: {entry.timestamp}"
        for entry in entries
    ]
    return "\n\n".join(blocks)


def _render_json(entries: Sequence[TranscriptEntry], agent_identity: str) -> str:
    history = [
        {
            "role": "agent" if entry.sender == agent_identity else "prospect",
            "sender": entry.sender,
            "message": entry.text,
            "timestamp": entry.timestamp,
        }
        for entry in entries
    ]
    return json.dumps(history, indent=2, ensure_ascii=False)


def render_transcript(
    entries: Sequence[TranscriptEntry],
    kind: ProviderKind,
    *,
    agent_identity: str,
) -> str:
    """Free-text backends read sender/message/timestamp lines; structured ones read a JSON array."""

    if kind is ProviderKind.STRUCTURED:
        return _render_json(entries, agent_identity)
    return _render_lines(entries)


class PromptAssembler:
    def __init__(self, persona: Persona, kind: ProviderKind) -> None:
        self._persona = persona
        self._kind = kind

    @property
    def kind(self) -> ProviderKind:
        return self._kind

    def render(self, entries: Sequence[TranscriptEntry]) -> str:
        return render_transcript(entries, self._kind, agent_identity=self._persona.agent_identity)

    def assemble(self, display_name: str, next_message_index: int, transcript_text: str) -> PromptPair:
        if self._kind is ProviderKind.STRUCTURED:
            system_prompt = self._persona.structured_system_prompt
            template = self._persona.structured_message_template
        else:
            system_prompt = self._persona.free_text_system_prompt
            template = self._persona.free_text_message_template
        user_prompt = template.substitute(
            prospect_name=display_name,
            message_number=next_message_index,
            conversation_history=transcript_text,
        )
        return PromptPair(system_prompt=system_prompt, user_prompt=user_prompt)

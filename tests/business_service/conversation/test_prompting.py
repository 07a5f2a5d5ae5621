from __future__ import annotations

import json

from business_service.conversation.models import TranscriptEntry
from business_service.conversation.persona import DEFAULT_PERSONA
from business_service.conversation.prompting import PromptAssembler, render_transcript
from foundational_service.contracts.agent_output import ProviderKind


def _entries() -> tuple[TranscriptEntry, ...]:
    return (
        TranscriptEntry(
            entry_id="1",
            conversation_id="c1",
            sender="Dr. Accordo",
            text="Thanks for the follow Sam 👊🏽",
            timestamp="2025-01-01T12:00:00.000Z",
        ),
        TranscriptEntry(
            entry_id="2",
            conversation_id="c1",
            sender="Sam",
            text="My lower back has been killing me",
            timestamp="2025-01-01T12:05:00.000Z",
        ),
    )


def test_free_text_transcript_uses_labelled_blocks() -> None:
    rendered = render_transcript(_entries(), ProviderKind.FREE_TEXT, agent_identity="Dr. Accordo")
    assert rendered == (
        "user: Dr. Accordo\nmessage: Thanks for the follow Sam 👊🏽\ntimestamp: 2025-01-01T12:00:00.000Z"
        "\n\n"
        "user: Sam\nmessage: My lower back has been killing me\ntimestamp: 2025-01-01T12:05:00.000Z"
    )


def test_structured_transcript_is_json_with_roles() -> None:
    rendered = render_transcript(_entries(), ProviderKind.STRUCTURED, agent_identity="Dr. Accordo")
    history = json.loads(rendered)
    assert [item["role"] for item in history] == ["agent", "prospect"]
    assert history[1]["message"] == "My lower back has been killing me"
    assert "👊🏽" in rendered


def test_free_text_prompt_pair() -> None:
    assembler = PromptAssembler(DEFAULT_PERSONA, ProviderKind.FREE_TEXT)
    prompt = assembler.assemble("Sam", 3, assembler.render(_entries()))
    assert prompt.system_prompt == DEFAULT_PERSONA.free_text_system_prompt
    assert "<prospect_name>Sam</prospect_name>" in prompt.user_prompt
    assert "<message_number>3</message_number>" in prompt.user_prompt
    assert "message: My lower back has been killing me" in prompt.user_prompt
    assert "|||" in prompt.system_prompt


def test_structured_prompt_pair() -> None:
    assembler = PromptAssembler(DEFAULT_PERSONA, ProviderKind.STRUCTURED)
    prompt = assembler.assemble("Sam", 3, assembler.render(_entries()))
    assert prompt.system_prompt == DEFAULT_PERSONA.structured_system_prompt
    assert "Prospect name: Sam" in prompt.user_prompt
    assert "Next message number: 3" in prompt.user_prompt
    assert '"role": "prospect"' in prompt.user_prompt


def test_history_is_not_truncated() -> None:
    entries = tuple(
        TranscriptEntry(
            entry_id=str(index),
            conversation_id="c1",
            sender="Sam",
            text=f"message {index}",
            timestamp=f"2025-01-01T12:{index:02d}:00.000Z",
        )
        for index in range(50)
    )
    rendered = render_transcript(entries, ProviderKind.FREE_TEXT, agent_identity="Dr. Accordo")
    assert "message 0" in rendered
    assert "message 49" in rendered


def test_seed_messages_use_display_name() -> None:
    assert DEFAULT_PERSONA.seed_messages("Sam") == (
        "Thanks for the follow Sam 👊🏽",
        "Are you here for the content or do you have questions about Chiro care?",
    )


def test_with_identity_keeps_templates() -> None:
    persona = DEFAULT_PERSONA.with_identity("Dr. Test")
    assert persona.agent_identity == "Dr. Test"
    assert persona.fallback_message == DEFAULT_PERSONA.fallback_message

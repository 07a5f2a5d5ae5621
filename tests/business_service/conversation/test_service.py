from __future__ import annotations

from datetime import timedelta

import pytest

from business_service.conversation.config import AgentPipelineConfig
from business_service.conversation.service import AgentResponseService, resolve_provider_kind
from foundational_service.contracts.agent_output import FreeTextOutput, ProviderKind, StructuredOutput
from foundational_service.contracts.errors import (
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    PreconditionFailedError,
)
from project_utility.clock import parse_iso
from project_utility.secrets import CredentialResolver

API_KEY = "sk-test-0123456789abcdef"


def _seed_transcript(repository, conversation_id: str = "c1", provider=None) -> None:
    repository.add_conversation(conversation_id, "Sam", provider=provider)
    repository.add_entry(conversation_id, "Dr. Accordo", "Thanks for the follow Sam 👊🏽", "2025-01-01T11:00:00.000Z")
    repository.add_entry(
        conversation_id,
        "Dr. Accordo",
        "Are you here for the content or do you have questions about Chiro care?",
        "2025-01-01T11:00:01.000Z",
    )
    repository.add_entry(conversation_id, "Sam", "Kind of both? Do you take insurance?", "2025-01-01T11:30:00.000Z")


def _service(repository, clock, providers, *, environ=None, config=None) -> AgentResponseService:
    return AgentResponseService(
        repository,
        {provider.kind: provider for provider in providers},
        config=config or AgentPipelineConfig(),
        credentials=CredentialResolver(environ if environ is not None else {"OPENAI_API_KEY": API_KEY}),
        clock=clock,
    )


def _generated(repository, conversation_id: str = "c1"):
    return [entry for entry in repository.entries_for(conversation_id) if entry.generation is not None]


@pytest.mark.asyncio
async def test_free_text_reply_is_split_scheduled_and_persisted(repository, clock, make_provider) -> None:
    _seed_transcript(repository)
    provider = make_provider(
        ProviderKind.FREE_TEXT,
        FreeTextOutput(text="<response>Great question|||Both|||Which insurance carrier do you have?</response>"),
        model="gpt-4.1",
    )
    service = _service(repository, clock, [provider])

    result = await service.respond_to("c1")

    generated = _generated(repository)
    assert [entry.text for entry in generated] == ["Great question", "Both", "Which insurance carrier do you have?"]
    respond_at = [entry.generation.respond_at_timestamp for entry in generated]
    assert respond_at == sorted(respond_at)
    assert len(set(respond_at)) == 3
    assert [entry.generation.batch_index for entry in generated] == [0, 1, 2]
    assert all(entry.generation.response_delay_seconds == 10 for entry in generated)
    assert all(entry.generation.model == "gpt-4.1" for entry in generated)
    assert result.message == "Great question"
    assert list(result.all_messages) == ["Great question", "Both", "Which insurance carrier do you have?"]
    assert result.conversation_id == "c1"
    assert result.provider == "free_text"


@pytest.mark.asyncio
async def test_prompt_carries_full_history_and_credential(repository, clock, make_provider) -> None:
    _seed_transcript(repository)
    provider = make_provider(ProviderKind.FREE_TEXT, FreeTextOutput(text="<response>Yes we do!</response>"))
    service = _service(repository, clock, [provider])

    await service.respond_to("c1")

    (call,) = provider.calls
    assert "<message_number>4</message_number>" in call["user_prompt"]
    assert "message: Kind of both? Do you take insurance?" in call["user_prompt"]
    assert call["credential"].value == API_KEY


@pytest.mark.asyncio
async def test_empty_transcript_is_not_found_and_writes_nothing(repository, clock, make_provider) -> None:
    repository.add_conversation("c1", "Sam")
    provider = make_provider(ProviderKind.FREE_TEXT, FreeTextOutput(text="<response>hi</response>"))
    service = _service(repository, clock, [provider])

    with pytest.raises(NotFoundError):
        await service.respond_to("c1")

    assert repository.append_calls == 0
    assert provider.calls == []


@pytest.mark.asyncio
async def test_missing_credential_fails_before_model_call(repository, clock, make_provider) -> None:
    _seed_transcript(repository)
    provider = make_provider(ProviderKind.FREE_TEXT, FreeTextOutput(text="<response>hi</response>"))
    service = _service(repository, clock, [provider], environ={})

    with pytest.raises(PreconditionFailedError):
        await service.respond_to("c1")

    assert provider.calls == []
    assert repository.append_calls == 0


@pytest.mark.asyncio
async def test_missing_credential_is_checked_before_store_reads(repository, clock, make_provider) -> None:
    provider = make_provider(ProviderKind.FREE_TEXT, FreeTextOutput(text="<response>hi</response>"))
    service = _service(repository, clock, [provider], environ={})

    with pytest.raises(PreconditionFailedError):
        await service.respond_to("missing-chat")

    assert repository.read_calls == 0
    assert provider.calls == []


@pytest.mark.asyncio
async def test_each_backend_credential_is_required(repository, clock, make_provider) -> None:
    _seed_transcript(repository)
    free_text = make_provider(ProviderKind.FREE_TEXT, FreeTextOutput(text="<response>hi</response>"))
    structured = make_provider(
        ProviderKind.STRUCTURED,
        StructuredOutput(analysis="none", messages=()),
        credential_name="ANTHROPIC_API_KEY",
    )
    service = _service(repository, clock, [free_text, structured])

    with pytest.raises(PreconditionFailedError, match="ANTHROPIC_API_KEY"):
        await service.respond_to("c1")

    assert repository.read_calls == 0
    assert free_text.calls == []


@pytest.mark.asyncio
async def test_encrypted_credential_without_key_is_precondition_failure(repository, clock, make_provider) -> None:
    _seed_transcript(repository)
    provider = make_provider(ProviderKind.FREE_TEXT, FreeTextOutput(text="<response>hi</response>"))
    service = _service(repository, clock, [provider], environ={"OPENAI_API_KEY_ENCRYPTED": "gAAAA-token"})

    with pytest.raises(PreconditionFailedError):
        await service.respond_to("c1")

    assert provider.calls == []


@pytest.mark.asyncio
async def test_structured_delays_drive_respond_at(repository, clock, make_provider) -> None:
    _seed_transcript(repository, provider="structured")
    raw = StructuredOutput(
        analysis="Asked about insurance; qualify next.",
        messages=(
            {
                "text": "Yes we take most major plans",
                "phase": "QUALIFICATION",
                "responseDelaySeconds": 5,
                "approvalRequired": False,
                "confidenceScore": 0.92,
            },
            {
                "text": "Which carrier are you with?",
                "phase": "QUALIFICATION",
                "responseDelaySeconds": 60,
                "approvalRequired": True,
                "confidenceScore": 0.81,
            },
        ),
        next_action={"shouldOfferSchedulingLink": False, "notes": "confirm carrier"},
        model="gpt-5",
    )
    provider = make_provider(ProviderKind.STRUCTURED, raw, model="gpt-5")
    service = _service(repository, clock, [provider])

    result = await service.respond_to("c1")

    first, second = _generated(repository)
    batch_start = clock.calls[0]
    assert parse_iso(first.generation.respond_at_timestamp) - batch_start == timedelta(seconds=5)
    assert parse_iso(second.generation.respond_at_timestamp) - parse_iso(first.generation.respond_at_timestamp) == timedelta(seconds=60)
    assert first.generation.phase == "QUALIFICATION"
    assert second.generation.approval_required is True
    assert first.generation.analysis == "Asked about insurance; qualify next."
    assert result.provider == "structured"
    assert result.next_action == {"shouldOfferSchedulingLink": False, "notes": "confirm carrier"}
    assert provider.calls[0]["user_prompt"].startswith("Prospect name: Sam")


@pytest.mark.asyncio
async def test_structured_empty_messages_is_internal_error(repository, clock, make_provider) -> None:
    _seed_transcript(repository, provider="structured")
    provider = make_provider(ProviderKind.STRUCTURED, StructuredOutput(analysis="none", messages=()))
    service = _service(repository, clock, [provider])

    with pytest.raises(InternalError):
        await service.respond_to("c1")

    assert repository.append_calls == 0


@pytest.mark.asyncio
async def test_empty_free_text_uses_fallback(repository, clock, make_provider) -> None:
    _seed_transcript(repository)
    provider = make_provider(ProviderKind.FREE_TEXT, FreeTextOutput(text="   "))
    service = _service(repository, clock, [provider])

    result = await service.respond_to("c1")

    assert list(result.all_messages) == [
        "I understand. Let me know if you have any questions about chiropractic care!"
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("conversation_id", [None, "", "   ", 42])
async def test_blank_conversation_id_is_invalid(repository, clock, make_provider, conversation_id) -> None:
    provider = make_provider(ProviderKind.FREE_TEXT, FreeTextOutput(text="hi"))
    service = _service(repository, clock, [provider])

    with pytest.raises(InvalidArgumentError):
        await service.respond_to(conversation_id)


@pytest.mark.asyncio
async def test_unexpected_errors_are_wrapped(repository, clock, make_provider) -> None:
    _seed_transcript(repository)
    provider = make_provider(ProviderKind.FREE_TEXT, error=ConnectionError("socket closed"))
    service = _service(repository, clock, [provider])

    with pytest.raises(InternalError) as excinfo:
        await service.respond_to("c1")

    assert excinfo.value.message == "Failed to get agent response"
    assert excinfo.value.detail == "socket closed"


@pytest.mark.asyncio
async def test_partial_batch_is_not_rolled_back(repository, clock, make_provider) -> None:
    _seed_transcript(repository)
    repository.fail_on_append = 2
    provider = make_provider(ProviderKind.FREE_TEXT, FreeTextOutput(text="<response>a|||b|||c</response>"))
    service = _service(repository, clock, [provider])

    with pytest.raises(InternalError):
        await service.respond_to("c1")

    assert [entry.text for entry in _generated(repository)] == ["a"]


@pytest.mark.asyncio
async def test_unconfigured_provider_is_precondition_failure(repository, clock, make_provider) -> None:
    _seed_transcript(repository, provider="structured")
    provider = make_provider(ProviderKind.FREE_TEXT, FreeTextOutput(text="hi"))
    service = _service(repository, clock, [provider])

    with pytest.raises(PreconditionFailedError):
        await service.respond_to("c1")


@pytest.mark.asyncio
async def test_agent_identity_from_config_is_the_sender(repository, clock, make_provider) -> None:
    _seed_transcript(repository)
    provider = make_provider(ProviderKind.FREE_TEXT, FreeTextOutput(text="<response>hi</response>"))
    service = _service(repository, clock, [provider], config=AgentPipelineConfig(agent_identity="Dr. Test"))

    await service.respond_to("c1")

    assert [entry.sender for entry in _generated(repository)] == ["Dr. Test"]


def test_resolve_provider_kind_falls_back_to_default() -> None:
    assert resolve_provider_kind(None, ProviderKind.FREE_TEXT) is ProviderKind.FREE_TEXT
    assert resolve_provider_kind("Structured", ProviderKind.FREE_TEXT) is ProviderKind.STRUCTURED
    assert resolve_provider_kind("anthropic", ProviderKind.STRUCTURED) is ProviderKind.STRUCTURED

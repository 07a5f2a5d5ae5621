from __future__ import annotations

"""FastAPI routes for conversations and agent responses."""

from typing import Iterable, List

from fastapi import APIRouter, Depends, status as http_status

from business_service.conversation import (
    AgentResponseService,
    Conversation,
    ConversationLifecycleService,
    TranscriptEntry,
)
from interface_entry.http.conversations.dto import (
    AgentRespondPayload,
    AgentRespondResponse,
    ConversationCreatedResponse,
    ConversationCreatePayload,
    ConversationResponse,
    MessagePayload,
    TranscriptEntryResponse,
    TranscriptResponse,
)
from interface_entry.http.dependencies import get_agent_response_service, get_lifecycle_service
from interface_entry.http.responses import ApiResponse, ok
from project_utility.clock import utc_iso

agent_router = APIRouter(prefix="/api/agent", tags=["agent"])
conversation_router = APIRouter(prefix="/api/conversations", tags=["conversations"])


@agent_router.post("/respond", response_model=ApiResponse[AgentRespondResponse])
async def respond(
    payload: AgentRespondPayload,
    service: AgentResponseService = Depends(get_agent_response_service),
) -> ApiResponse[AgentRespondResponse]:
    result = await service.respond_to(payload.conversationId)
    data = AgentRespondResponse(
        message=result.message,
        allMessages=list(result.all_messages),
        conversationId=result.conversation_id,
        timestamp=result.timestamp,
        provider=result.provider,
        model=result.model,
        analysis=result.analysis,
        nextAction=dict(result.next_action) if result.next_action is not None else None,
    )
    return ok(data)


@conversation_router.post(
    "",
    response_model=ApiResponse[ConversationCreatedResponse],
    status_code=http_status.HTTP_201_CREATED,
)
async def create_conversation(
    payload: ConversationCreatePayload,
    service: ConversationLifecycleService = Depends(get_lifecycle_service),
) -> ApiResponse[ConversationCreatedResponse]:
    conversation, seeds = await service.create_conversation(payload.displayName, provider=payload.provider)
    data = ConversationCreatedResponse(
        conversation=_conversation_response(conversation),
        messages=_entry_responses(seeds),
    )
    return ok(data)


@conversation_router.post(
    "/{conversation_id}/messages",
    response_model=ApiResponse[TranscriptEntryResponse],
    status_code=http_status.HTTP_201_CREATED,
)
async def append_message(
    conversation_id: str,
    payload: MessagePayload,
    service: ConversationLifecycleService = Depends(get_lifecycle_service),
) -> ApiResponse[TranscriptEntryResponse]:
    entry = await service.append_counterpart_message(conversation_id, payload.text)
    return ok(_entry_response(entry))


@conversation_router.get("/{conversation_id}/messages", response_model=ApiResponse[TranscriptResponse])
async def list_messages(
    conversation_id: str,
    service: ConversationLifecycleService = Depends(get_lifecycle_service),
) -> ApiResponse[TranscriptResponse]:
    conversation, entries = await service.list_transcript(conversation_id)
    data = TranscriptResponse(
        conversation=_conversation_response(conversation),
        messages=_entry_responses(entries),
    )
    return ok(data)


def _conversation_response(conversation: Conversation) -> ConversationResponse:
    return ConversationResponse(
        id=conversation.conversation_id,
        displayName=conversation.display_name,
        provider=conversation.provider,
        createdAt=utc_iso(conversation.created_at),
        updatedAt=utc_iso(conversation.updated_at),
    )


def _entry_responses(entries: Iterable[TranscriptEntry]) -> List[TranscriptEntryResponse]:
    return [_entry_response(entry) for entry in entries]


def _entry_response(entry: TranscriptEntry) -> TranscriptEntryResponse:
    response = TranscriptEntryResponse(
        id=entry.entry_id,
        sender=entry.sender,
        text=entry.text,
        timestamp=entry.timestamp,
    )
    generation = entry.generation
    if generation is None:
        return response
    return response.model_copy(
        update={
            "responseDelaySeconds": generation.response_delay_seconds,
            "respondAtTimestamp": generation.respond_at_timestamp,
            "approvalRequired": generation.approval_required,
            "confidenceScore": generation.confidence_score,
            "phase": generation.phase,
            "model": generation.model,
            "batchId": generation.batch_id,
            "batchIndex": generation.batch_index,
        }
    )

from __future__ import annotations

"""Pydantic DTOs for conversation and agent response endpoints."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class AgentRespondPayload(BaseModel):
    # Blank or missing ids are rejected by the service so the error shape stays INVALID_ARGUMENT.
    conversationId: Optional[str] = None


class AgentRespondResponse(BaseModel):
    message: str
    allMessages: List[str]
    conversationId: str
    timestamp: str
    provider: str
    model: str
    analysis: Optional[str] = None
    nextAction: Optional[Dict[str, Any]] = None


class ConversationCreatePayload(BaseModel):
    displayName: str = Field(..., max_length=256)
    provider: Optional[str] = None


class MessagePayload(BaseModel):
    text: str


class TranscriptEntryResponse(BaseModel):
    id: str
    sender: str
    text: str
    timestamp: str
    responseDelaySeconds: Optional[int] = None
    respondAtTimestamp: Optional[str] = None
    approvalRequired: Optional[bool] = None
    confidenceScore: Optional[float] = None
    phase: Optional[str] = None
    model: Optional[str] = None
    batchId: Optional[str] = None
    batchIndex: Optional[int] = None


class ConversationResponse(BaseModel):
    id: str
    displayName: str
    provider: Optional[str] = None
    createdAt: str
    updatedAt: str


class ConversationCreatedResponse(BaseModel):
    conversation: ConversationResponse
    messages: List[TranscriptEntryResponse]


class TranscriptResponse(BaseModel):
    conversation: ConversationResponse
    messages: List[TranscriptEntryResponse]

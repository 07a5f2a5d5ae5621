from __future__ import annotations

"""Conversation domain: the agent response pipeline and conversation lifecycle."""

from business_service.conversation.config import AgentPipelineConfig, load_default_pipeline_config
from business_service.conversation.lifecycle import ConversationLifecycleService
from business_service.conversation.models import (
    Conversation,
    ConversationHistory,
    GenerationResult,
    TranscriptEntry,
)
from business_service.conversation.persona import DEFAULT_PERSONA, Persona
from business_service.conversation.repository import (
    AsyncMongoTranscriptRepository,
    AsyncTranscriptRepository,
)
from business_service.conversation.service import AgentResponseService

__all__ = [
    "AgentPipelineConfig",
    "AgentResponseService",
    "AsyncMongoTranscriptRepository",
    "AsyncTranscriptRepository",
    "Conversation",
    "ConversationHistory",
    "ConversationLifecycleService",
    "DEFAULT_PERSONA",
    "GenerationResult",
    "Persona",
    "TranscriptEntry",
    "load_default_pipeline_config",
]

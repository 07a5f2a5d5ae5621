from __future__ import annotations

"""Business service layer entrypoints."""

from business_service.conversation import AgentResponseService, ConversationLifecycleService

__all__ = [
    "AgentResponseService",
    "ConversationLifecycleService",
]

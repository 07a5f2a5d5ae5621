"""Model backend integrations managed by the foundational service layer."""

from __future__ import annotations

from foundational_service.integrations.anthropic_bridge import AnthropicFreeTextProvider
from foundational_service.integrations.openai_bridge import (
    OpenAIFreeTextProvider,
    OpenAIStructuredProvider,
    ProviderAdapter,
)

__all__ = [
    "AnthropicFreeTextProvider",
    "OpenAIFreeTextProvider",
    "OpenAIStructuredProvider",
    "ProviderAdapter",
]

from __future__ import annotations

"""Agent response pipeline configuration helpers."""

import os
from dataclasses import dataclass
from typing import Optional

from foundational_service.contracts.agent_output import ProviderKind

__all__ = [
    "AgentPipelineConfig",
    "DEFAULT_AGENT_IDENTITY",
    "load_default_pipeline_config",
]

DEFAULT_AGENT_IDENTITY = "Dr. Accordo"
DEFAULT_FREE_TEXT_MODEL = "gpt-4.1"
DEFAULT_STRUCTURED_MODEL = "gpt-5"
DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-20250514"
FREE_TEXT_BACKENDS = ("openai", "anthropic")


@dataclass(slots=True)
class AgentPipelineConfig:
    agent_identity: str = DEFAULT_AGENT_IDENTITY
    default_provider: ProviderKind = ProviderKind.FREE_TEXT
    free_text_backend: str = "openai"
    free_text_model: str = DEFAULT_FREE_TEXT_MODEL
    free_text_temperature: float = 1.0
    free_text_max_output_tokens: int = 20000
    structured_model: str = DEFAULT_STRUCTURED_MODEL
    structured_temperature: Optional[float] = None
    credential_name: str = "OPENAI_API_KEY"
    anthropic_model: str = DEFAULT_ANTHROPIC_MODEL
    anthropic_credential_name: str = "ANTHROPIC_API_KEY"
    secret_key_env: str = "AGENT_SECRET_KEY"


def load_default_pipeline_config() -> AgentPipelineConfig:
    """Load defaults from environment to allow operator override."""

    provider_raw = os.getenv("AGENT_DEFAULT_PROVIDER", ProviderKind.FREE_TEXT.value).strip().lower()
    provider = ProviderKind.STRUCTURED if provider_raw == ProviderKind.STRUCTURED.value else ProviderKind.FREE_TEXT
    temperature = _coerce_float(os.getenv("AGENT_FREE_TEXT_TEMPERATURE"))
    max_tokens = _coerce_int(os.getenv("AGENT_FREE_TEXT_MAX_OUTPUT_TOKENS"))
    backend = os.getenv("AGENT_FREE_TEXT_BACKEND", "openai").strip().lower()
    return AgentPipelineConfig(
        agent_identity=os.getenv("AGENT_IDENTITY", DEFAULT_AGENT_IDENTITY),
        default_provider=provider,
        free_text_backend=backend if backend in FREE_TEXT_BACKENDS else "openai",
        free_text_model=os.getenv("AGENT_FREE_TEXT_MODEL", DEFAULT_FREE_TEXT_MODEL),
        free_text_temperature=1.0 if temperature is None else temperature,
        free_text_max_output_tokens=max_tokens if max_tokens and max_tokens > 0 else 20000,
        structured_model=os.getenv("AGENT_STRUCTURED_MODEL", DEFAULT_STRUCTURED_MODEL),
        structured_temperature=_coerce_float(os.getenv("AGENT_STRUCTURED_TEMPERATURE")),
        credential_name=os.getenv("AGENT_CREDENTIAL_NAME", "OPENAI_API_KEY"),
        anthropic_model=os.getenv("AGENT_ANTHROPIC_MODEL", DEFAULT_ANTHROPIC_MODEL),
        anthropic_credential_name=os.getenv("AGENT_ANTHROPIC_CREDENTIAL_NAME", "ANTHROPIC_API_KEY"),
        secret_key_env=os.getenv("AGENT_SECRET_KEY_ENV", "AGENT_SECRET_KEY"),
    )


def _coerce_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _coerce_int(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError:
        return None

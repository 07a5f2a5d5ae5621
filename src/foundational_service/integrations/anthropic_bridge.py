"""Anthropic Messages API adapter for the free-text backend."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from foundational_service.contracts.agent_output import FreeTextOutput, ProviderKind
from foundational_service.contracts.errors import InternalError
from foundational_service.integrations.openai_bridge import require_credential
from project_utility.context import ContextBridge
from project_utility.secrets import ProviderCredential

__all__ = [
    "ANTHROPIC_API_VERSION",
    "ANTHROPIC_MESSAGES_URL",
    "AnthropicFreeTextProvider",
    "DEFAULT_ANTHROPIC_CREDENTIAL_NAME",
]

log = logging.getLogger("foundational_service.integrations.anthropic_bridge")

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_API_VERSION = "2023-06-01"
DEFAULT_ANTHROPIC_CREDENTIAL_NAME = "ANTHROPIC_API_KEY"
DEFAULT_TIMEOUT = 120.0


class AnthropicFreeTextProvider:
    """Single-turn Messages call; the system prompt goes in `system`, the turn prompt as one user message."""

    kind = ProviderKind.FREE_TEXT

    def __init__(
        self,
        *,
        model: str,
        temperature: float = 1.0,
        max_tokens: int = 20000,
        credential_name: str = DEFAULT_ANTHROPIC_CREDENTIAL_NAME,
        url: str = ANTHROPIC_MESSAGES_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.credential_name = credential_name
        self._url = url
        self._timeout = timeout
        self._transport = transport

    def build_payload(self, system_prompt: str, user_prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        }

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        credential: Optional[ProviderCredential],
    ) -> FreeTextOutput:
        api_key = require_credential(credential, self.credential_name)
        headers = {
            "content-type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_API_VERSION,
        }
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    self._url,
                    json=self.build_payload(system_prompt, user_prompt),
                    headers=headers,
                )
            except httpx.RequestError as exc:
                raise InternalError("Failed to reach AI service.", detail=str(exc)) from exc

        if response.status_code >= 400:
            raise InternalError(
                f"AI service returned HTTP {response.status_code}.",
                detail=_error_message(response),
            )
        data = response.json()
        blocks = data.get("content") or []
        if not blocks:
            raise InternalError("No response from AI service.")
        log.info(
            "anthropic.response.received",
            extra=ContextBridge.log_extra(
                provider=self.kind.value,
                model=data.get("model") or self.model,
                response_id=data.get("id"),
                **_usage_payload(data.get("usage")),
            ),
        )
        text = "".join(block.get("text", "") for block in blocks if block.get("type") == "text")
        return FreeTextOutput(text=text, model=data.get("model") or self.model)


def _usage_payload(usage: Optional[Mapping[str, Any]]) -> Dict[str, int]:
    if not usage:
        return {}
    input_tokens = int(usage.get("input_tokens") or 0)
    output_tokens = int(usage.get("output_tokens") or 0)
    return {
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "total_tokens": input_tokens + output_tokens,
    }


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:500]
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return response.text[:500]

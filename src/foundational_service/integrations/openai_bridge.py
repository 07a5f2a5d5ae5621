"""OpenAI Responses API adapters for agent response generation."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Protocol

from openai import AsyncOpenAI

from foundational_service.contracts.agent_output import (
    AgentResponseSchema,
    FreeTextOutput,
    ProviderKind,
    RawOutput,
    StructuredOutput,
)
from foundational_service.contracts.errors import InternalError, PreconditionFailedError
from project_utility.context import ContextBridge
from project_utility.secrets import ProviderCredential

__all__ = [
    "ClientFactory",
    "DEFAULT_CREDENTIAL_NAME",
    "OpenAIFreeTextProvider",
    "OpenAIStructuredProvider",
    "ProviderAdapter",
    "require_credential",
]

log = logging.getLogger("foundational_service.integrations.openai_bridge")

DEFAULT_CREDENTIAL_NAME = "OPENAI_API_KEY"

ClientFactory = Callable[[str], AsyncOpenAI]


def _default_client_factory(api_key: str) -> AsyncOpenAI:
    # Retries belong to whoever invokes the pipeline, not to the SDK.
    return AsyncOpenAI(api_key=api_key, max_retries=0)


class ProviderAdapter(Protocol):
    kind: ProviderKind
    model: str
    credential_name: str

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        credential: Optional[ProviderCredential],
    ) -> RawOutput:
        ...


def require_credential(credential: Optional[ProviderCredential], name: str) -> str:
    if credential is None or not credential.value.strip():
        raise PreconditionFailedError(f"{name} not configured in environment variables.")
    return credential.value


def _usage_payload(response: Any) -> Dict[str, int]:
    usage = getattr(response, "usage", None)
    if usage is None:
        return {}
    return {
        "input_tokens": getattr(usage, "input_tokens", 0) or 0,
        "output_tokens": getattr(usage, "output_tokens", 0) or 0,
        "total_tokens": getattr(usage, "total_tokens", 0) or 0,
    }


class _OpenAIProviderBase:
    kind: ProviderKind
    credential_name: str

    def __init__(
        self,
        *,
        model: str,
        credential_name: str = DEFAULT_CREDENTIAL_NAME,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.model = model
        self.credential_name = credential_name
        self._client_factory = client_factory or _default_client_factory

    def _log_completion(self, response: Any) -> None:
        log.info(
            "openai.response.received",
            extra=ContextBridge.log_extra(
                provider=self.kind.value,
                model=self.model,
                response_id=getattr(response, "id", None),
                **_usage_payload(response),
            ),
        )


class OpenAIFreeTextProvider(_OpenAIProviderBase):
    """Raw completion: returns whatever text the model produced."""

    kind = ProviderKind.FREE_TEXT

    def __init__(
        self,
        *,
        model: str,
        temperature: float = 1.0,
        max_output_tokens: int = 20000,
        credential_name: str = DEFAULT_CREDENTIAL_NAME,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        super().__init__(model=model, credential_name=credential_name, client_factory=client_factory)
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        credential: Optional[ProviderCredential],
    ) -> FreeTextOutput:
        api_key = require_credential(credential, self.credential_name)
        client = self._client_factory(api_key)
        try:
            response = await client.responses.create(
                model=self.model,
                instructions=system_prompt,
                input=user_prompt,
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
            )
        finally:
            await client.close()

        if not getattr(response, "output", None):
            raise InternalError("No response from AI service.")
        self._log_completion(response)
        text = getattr(response, "output_text", None)
        if text is None:
            # Responses API may expose output list when not using convenience property.
            text = "".join(
                getattr(part, "text", "")
                for item in response.output
                for part in (getattr(item, "content", None) or ())
            )
        return FreeTextOutput(text=text or "", model=self.model)


class OpenAIStructuredProvider(_OpenAIProviderBase):
    """Schema-constrained generation; fails closed when no parsed object comes back."""

    kind = ProviderKind.STRUCTURED

    def __init__(
        self,
        *,
        model: str,
        temperature: Optional[float] = None,
        credential_name: str = DEFAULT_CREDENTIAL_NAME,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        super().__init__(model=model, credential_name=credential_name, client_factory=client_factory)
        self.temperature = temperature

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        credential: Optional[ProviderCredential],
    ) -> StructuredOutput:
        api_key = require_credential(credential, self.credential_name)
        options: Dict[str, Any] = {}
        if self.temperature is not None:
            options["temperature"] = self.temperature
        client = self._client_factory(api_key)
        try:
            response = await client.responses.parse(
                model=self.model,
                instructions=system_prompt,
                input=user_prompt,
                text_format=AgentResponseSchema,
                **options,
            )
        finally:
            await client.close()

        parsed = getattr(response, "output_parsed", None)
        if parsed is None:
            raise InternalError("No structured output from model.")
        self._log_completion(response)
        if not isinstance(parsed, AgentResponseSchema):
            parsed = AgentResponseSchema.model_validate(parsed)
        return StructuredOutput.from_schema(parsed, model=self.model)

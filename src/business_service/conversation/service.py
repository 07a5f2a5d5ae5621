from __future__ import annotations

"""Agent response pipeline: one conversational turn in, an ordered and scheduled batch out."""

import logging
from time import perf_counter
from typing import Any, Dict, Mapping, Optional

from business_service.conversation.config import AgentPipelineConfig
from business_service.conversation.history import HistoryLoader
from business_service.conversation.models import GenerationResult, new_id
from business_service.conversation.persona import DEFAULT_PERSONA, Persona
from business_service.conversation.prompting import PromptAssembler
from business_service.conversation.repository import AsyncTranscriptRepository
from business_service.conversation.sanitizer import sanitize_messages
from business_service.conversation.scheduler import schedule_messages
from business_service.conversation.segmenter import ResponseSegmenter
from business_service.conversation.writer import TranscriptWriter
from foundational_service.contracts.agent_output import ProviderKind, StructuredOutput
from foundational_service.contracts.errors import (
    AgentPipelineError,
    InternalError,
    InvalidArgumentError,
    PreconditionFailedError,
)
from foundational_service.integrations.openai_bridge import ProviderAdapter
from project_utility.clock import Clock, utc_iso, utc_now
from project_utility.context import ContextBridge
from project_utility.secrets import CredentialResolver, ProviderCredential
from project_utility.telemetry import emit as telemetry_emit

__all__ = ["AgentResponseService", "resolve_provider_kind"]

log = logging.getLogger("business_service.conversation.service")


def resolve_provider_kind(value: Optional[str], default: ProviderKind) -> ProviderKind:
    if not value:
        return default
    try:
        return ProviderKind(str(value).strip().lower())
    except ValueError:
        log.warning(
            "conversation.provider.unknown",
            extra=ContextBridge.log_extra(provider=value),
        )
        return default


class AgentResponseService:
    """
    Run history load → prompt → model → segment → sanitize → schedule → persist for one request.

    Nothing is retried and nothing is rolled back. Any stage failure aborts the remaining stages;
    unclassified exceptions surface as `InternalError` with the original message kept as detail.
    """

    def __init__(
        self,
        repository: AsyncTranscriptRepository,
        providers: Mapping[ProviderKind, ProviderAdapter],
        *,
        config: AgentPipelineConfig,
        persona: Persona = DEFAULT_PERSONA,
        credentials: Optional[CredentialResolver] = None,
        clock: Clock = utc_now,
    ) -> None:
        self._providers = dict(providers)
        self._config = config
        self._persona = persona.with_identity(config.agent_identity)
        self._credentials = credentials or CredentialResolver(secret_key_env=config.secret_key_env)
        self._clock = clock
        self._history = HistoryLoader(repository)
        self._segmenter = ResponseSegmenter(self._persona.fallback_message)
        self._writer = TranscriptWriter(
            repository,
            agent_identity=self._persona.agent_identity,
            clock=clock,
        )

    async def respond_to(self, conversation_id: Any) -> GenerationResult:
        if not isinstance(conversation_id, str) or not conversation_id.strip():
            raise InvalidArgumentError("Chat ID is required.")
        conversation_id = conversation_id.strip()
        token = ContextBridge.bind_conversation(conversation_id)
        started = perf_counter()
        try:
            result = await self._run(conversation_id)
        except AgentPipelineError as exc:
            self._report_failure(exc, started)
            raise
        except Exception as exc:
            log.exception(
                "agent.respond.unexpected_error",
                extra=ContextBridge.log_extra(error=str(exc)),
            )
            wrapped = InternalError("Failed to get agent response", detail=str(exc))
            self._report_failure(wrapped, started)
            raise wrapped from exc
        else:
            telemetry_emit(
                "agent.respond.completed",
                request_id=ContextBridge.request_id(),
                conversation_id=conversation_id,
                payload={
                    "provider": result.provider,
                    "model": result.model,
                    "message_count": len(result.all_messages),
                    "latency_ms": round((perf_counter() - started) * 1000, 3),
                },
            )
            return result
        finally:
            ContextBridge.release_conversation(token)

    async def _run(self, conversation_id: str) -> GenerationResult:
        # Every configured backend's credential must resolve before the store is read.
        credentials = self._resolve_credentials()
        history = await self._history.load(conversation_id)
        kind = resolve_provider_kind(history.conversation.provider, self._config.default_provider)
        adapter = self._providers.get(kind)
        if adapter is None:
            raise PreconditionFailedError(f"No model backend configured for provider '{kind.value}'.")
        credential = credentials[adapter.credential_name]

        assembler = PromptAssembler(self._persona, kind)
        prompt = assembler.assemble(
            history.conversation.display_name,
            history.next_message_index,
            assembler.render(history.entries),
        )
        raw = await adapter.generate(prompt.system_prompt, prompt.user_prompt, credential=credential)

        segmented = self._segmenter.segment(raw)
        sanitized = sanitize_messages(segmented)
        if not sanitized:
            raise InternalError("Model did not return any usable messages.")

        scheduled = schedule_messages(sanitized, self._clock())
        model = raw.model or adapter.model
        analysis = raw.analysis if isinstance(raw, StructuredOutput) else None
        next_action = raw.next_action if isinstance(raw, StructuredOutput) else None
        texts = await self._writer.write_batch(
            conversation_id,
            scheduled,
            model=model,
            batch_id=new_id(),
            analysis=analysis,
            next_action=next_action,
        )
        log.info(
            "agent.respond.persisted",
            extra=ContextBridge.log_extra(provider=kind.value, model=model, message_count=len(texts)),
        )
        return GenerationResult(
            message=texts[0],
            all_messages=tuple(texts),
            conversation_id=conversation_id,
            timestamp=utc_iso(self._clock()),
            provider=kind.value,
            model=model,
            analysis=analysis,
            next_action=next_action,
        )

    def _resolve_credentials(self) -> Dict[str, ProviderCredential]:
        names = sorted({adapter.credential_name for adapter in self._providers.values()})
        return {name: self._resolve_credential(name) for name in names}

    def _resolve_credential(self, name: str) -> ProviderCredential:
        try:
            credential = self._credentials.resolve(name)
        except (RuntimeError, ValueError) as exc:
            raise PreconditionFailedError(f"{name} could not be resolved.", detail=str(exc)) from exc
        if credential is None:
            log.error("agent.credential.missing", extra=ContextBridge.log_extra(credential=name))
            raise PreconditionFailedError(f"{name} not configured in environment variables.")
        return credential

    def _report_failure(self, exc: AgentPipelineError, started: float) -> None:
        level = logging.ERROR if isinstance(exc, InternalError) else logging.WARNING
        log.log(
            level,
            "agent.respond.failed",
            extra=ContextBridge.log_extra(error=str(exc)),
        )
        telemetry_emit(
            "agent.respond.failed",
            level="error" if level == logging.ERROR else "warning",
            request_id=ContextBridge.request_id(),
            conversation_id=ContextBridge.conversation_id(),
            payload={
                "code": exc.code,
                "error": str(exc),
                "latency_ms": round((perf_counter() - started) * 1000, 3),
            },
            sensitive=["error"],
        )

from __future__ import annotations

"""FastAPI dependency graph for the conversation and agent endpoints."""

from functools import lru_cache
from typing import Dict

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from business_service.conversation import (
    DEFAULT_PERSONA,
    AgentPipelineConfig,
    AgentResponseService,
    AsyncMongoTranscriptRepository,
    AsyncTranscriptRepository,
    ConversationLifecycleService,
    load_default_pipeline_config,
)
from foundational_service.contracts.agent_output import ProviderKind
from foundational_service.integrations.anthropic_bridge import AnthropicFreeTextProvider
from foundational_service.integrations.openai_bridge import (
    OpenAIFreeTextProvider,
    OpenAIStructuredProvider,
    ProviderAdapter,
)
from project_utility.secrets import CredentialResolver

CONVERSATION_COLLECTION = "conversations"
TRANSCRIPT_COLLECTION = "transcript_entries"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    mongodb_uri: str = Field(..., alias="MONGODB_URI")
    mongodb_database: str = Field(..., alias="MONGODB_DATABASE")
    app_env: str = Field(default="development", alias="APP_ENV")
    port: int = Field(default=8000, alias="PORT")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return application settings loaded from environment / .env."""

    return AppSettings()  # type: ignore[call-arg]


@lru_cache(maxsize=1)
def get_mongo_client() -> AsyncIOMotorClient:
    """Return a cached AsyncIOMotorClient."""

    settings = get_settings()
    return AsyncIOMotorClient(settings.mongodb_uri, tz_aware=True)


async def get_mongo_database(
    client: AsyncIOMotorClient = Depends(get_mongo_client),
) -> AsyncIOMotorDatabase:
    settings = get_settings()
    return client[settings.mongodb_database]


async def get_transcript_repository(
    database: AsyncIOMotorDatabase = Depends(get_mongo_database),
) -> AsyncTranscriptRepository:
    return AsyncMongoTranscriptRepository(
        database[CONVERSATION_COLLECTION],
        database[TRANSCRIPT_COLLECTION],
    )


@lru_cache(maxsize=1)
def get_pipeline_config() -> AgentPipelineConfig:
    return load_default_pipeline_config()


def build_providers(config: AgentPipelineConfig) -> Dict[ProviderKind, ProviderAdapter]:
    """Instantiate one adapter per provider kind; clients are created per request inside them."""

    free_text: ProviderAdapter
    if config.free_text_backend == "anthropic":
        free_text = AnthropicFreeTextProvider(
            model=config.anthropic_model,
            temperature=config.free_text_temperature,
            max_tokens=config.free_text_max_output_tokens,
            credential_name=config.anthropic_credential_name,
        )
    else:
        free_text = OpenAIFreeTextProvider(
            model=config.free_text_model,
            temperature=config.free_text_temperature,
            max_output_tokens=config.free_text_max_output_tokens,
            credential_name=config.credential_name,
        )
    return {
        ProviderKind.FREE_TEXT: free_text,
        ProviderKind.STRUCTURED: OpenAIStructuredProvider(
            model=config.structured_model,
            temperature=config.structured_temperature,
            credential_name=config.credential_name,
        ),
    }


async def get_agent_response_service(
    repository: AsyncTranscriptRepository = Depends(get_transcript_repository),
    config: AgentPipelineConfig = Depends(get_pipeline_config),
) -> AgentResponseService:
    return AgentResponseService(
        repository,
        build_providers(config),
        config=config,
        credentials=CredentialResolver(secret_key_env=config.secret_key_env),
    )


async def get_lifecycle_service(
    repository: AsyncTranscriptRepository = Depends(get_transcript_repository),
    config: AgentPipelineConfig = Depends(get_pipeline_config),
) -> ConversationLifecycleService:
    return ConversationLifecycleService(
        repository,
        persona=DEFAULT_PERSONA.with_identity(config.agent_identity),
    )


__all__ = [
    "AppSettings",
    "build_providers",
    "get_agent_response_service",
    "get_lifecycle_service",
    "get_mongo_client",
    "get_mongo_database",
    "get_pipeline_config",
    "get_settings",
    "get_transcript_repository",
]

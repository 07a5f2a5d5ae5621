from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from dotenv import load_dotenv  # type: ignore[import]
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from starlette.middleware.cors import CORSMiddleware

from foundational_service.contracts.errors import AgentPipelineError
from interface_entry.bootstrap.health_routes import register_health_routes
from interface_entry.http.conversations import get_router as get_conversation_router
from interface_entry.http.dependencies import get_mongo_client
from interface_entry.http.errors import (
    http_exception_handler,
    pipeline_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from interface_entry.http.middleware import RequestContextMiddleware
from project_utility.config.paths import get_repo_root
from project_utility.logging import configure_logging

REPO_ROOT = get_repo_root()

load_dotenv(dotenv_path=str(REPO_ROOT / ".env"))

log = logging.getLogger("interface_entry.app")


@asynccontextmanager
async def application_lifespan(app: FastAPI) -> AsyncIterator[None]:
    log.info("startup.complete", extra={"app_env": os.getenv("APP_ENV", "development")})
    try:
        yield
    finally:
        # Only close a client that a request actually created.
        if get_mongo_client.cache_info().currsize:
            get_mongo_client().close()
            get_mongo_client.cache_clear()
        log.info("shutdown.complete")


def configure_application(app: FastAPI) -> FastAPI:
    configure_logging()
    app.add_exception_handler(AgentPipelineError, pipeline_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(get_conversation_router())
    register_health_routes(app, app_env=os.getenv("APP_ENV", "development"))
    return app


__all__ = ["application_lifespan", "configure_application"]

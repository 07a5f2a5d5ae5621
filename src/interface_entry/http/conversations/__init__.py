from __future__ import annotations

"""HTTP routers exposing conversation and agent response APIs."""

from fastapi import APIRouter

from interface_entry.http.conversations.routes import agent_router, conversation_router

__all__ = ["get_router"]


def get_router() -> APIRouter:
    router = APIRouter()
    router.include_router(agent_router)
    router.include_router(conversation_router)
    return router

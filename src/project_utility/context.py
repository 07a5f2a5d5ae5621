"""
Context utilities for request and conversation id propagation across async boundaries.
"""

from __future__ import annotations

import contextvars
import uuid
from dataclasses import dataclass
from typing import Dict, Optional

_request_id: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")
_conversation_id: contextvars.ContextVar[str] = contextvars.ContextVar("conversation_id", default="")


@dataclass(slots=True)
class ContextBridge:
    """ContextVar-backed helper that guarantees a request identifier is always available."""

    @staticmethod
    def request_id() -> str:
        rid = _request_id.get()
        if not rid:
            rid = ContextBridge.set_request_id()
        return rid

    @staticmethod
    def set_request_id(value: Optional[str] = None) -> str:
        rid = value or uuid.uuid4().hex
        _request_id.set(rid)
        return rid

    @staticmethod
    def conversation_id() -> str:
        return _conversation_id.get()

    @staticmethod
    def bind_conversation(value: str) -> contextvars.Token[str]:
        return _conversation_id.set(value)

    @staticmethod
    def release_conversation(token: contextvars.Token[str]) -> None:
        _conversation_id.reset(token)

    @staticmethod
    def log_extra(**fields: object) -> Dict[str, object]:
        """Build a logging `extra` mapping carrying the active identifiers."""

        extra: Dict[str, object] = {"request_id": ContextBridge.request_id()}
        convo = _conversation_id.get()
        if convo:
            extra["conversation_id"] = convo
        extra.update(fields)
        return extra

    @staticmethod
    def clear() -> None:
        _request_id.set("")
        _conversation_id.set("")


__all__ = ["ContextBridge"]

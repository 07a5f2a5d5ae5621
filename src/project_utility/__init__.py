"""
Project utility layer: infrastructure primitives shared across the agent service.

Depends only on the standard library and vetted third-party libraries (Rich, structlog,
cryptography) so higher layers can import helpers without pulling in business logic.
"""

from __future__ import annotations

from .clock import ensure_utc, parse_iso, utc_iso, utc_now
from .context import ContextBridge
from .logging import configure_logging
from .secrets import CredentialResolver, ProviderCredential, mask_secret

__all__ = [
    "ContextBridge",
    "CredentialResolver",
    "ProviderCredential",
    "configure_logging",
    "ensure_utc",
    "mask_secret",
    "parse_iso",
    "utc_iso",
    "utc_now",
]

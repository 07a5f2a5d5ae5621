"""Foundational service layer: error contracts, output schemas and model backend adapters."""

from __future__ import annotations

__all__ = [
    "contracts",
    "integrations",
]

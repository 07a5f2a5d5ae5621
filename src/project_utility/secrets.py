from __future__ import annotations

"""Request-time credential resolution with optional Fernet-encrypted values."""

import base64
import os
from dataclasses import dataclass
from functools import lru_cache
from hashlib import sha256
from typing import Mapping, Optional

from cryptography.fernet import Fernet, InvalidToken

__all__ = [
    "CredentialResolver",
    "ProviderCredential",
    "SecretBox",
    "get_secret_box",
    "mask_secret",
]

ENCRYPTED_SUFFIX = "_ENCRYPTED"


class SecretBox:
    """Lightweight wrapper over Fernet for symmetric secret management."""

    def __init__(self, key_material: str) -> None:
        self._fernet = Fernet(self._derive_key(key_material))

    @staticmethod
    def _derive_key(raw: str) -> bytes:
        """Accept a Fernet key as-is, otherwise derive one from the raw text."""

        try:
            decoded = base64.urlsafe_b64decode(raw.encode("utf-8"))
        except ValueError:
            decoded = b""
        if len(decoded) == 32:
            return base64.urlsafe_b64encode(decoded)
        return base64.urlsafe_b64encode(sha256(raw.encode("utf-8")).digest())

    def encrypt(self, value: str) -> str:
        return self._fernet.encrypt(value.encode("utf-8")).decode("utf-8")

    def decrypt(self, token: str) -> str:
        try:
            decrypted = self._fernet.decrypt(token.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError("invalid secret token") from exc
        return decrypted.decode("utf-8")


@lru_cache(maxsize=4)
def get_secret_box(key_material: str) -> SecretBox:
    return SecretBox(key_material)


def mask_secret(value: Optional[str], *, head: int = 6, tail: int = 4) -> str:
    if not value:
        return ""
    if len(value) <= head + tail:
        return "*" * len(value)
    return f"{value[:head]}****{value[-tail:]}"


@dataclass(frozen=True, slots=True)
class ProviderCredential:
    name: str
    value: str

    def __repr__(self) -> str:
        return f"ProviderCredential(name={self.name!r}, value={mask_secret(self.value)!r})"

    __str__ = __repr__


class CredentialResolver:
    """
    Look up a named credential when a request needs it.

    The environment mapping is consulted on every call so secrets provisioned after process start
    are picked up. `NAME` wins over `NAME_ENCRYPTED`; the encrypted form is decrypted with the key
    stored under `secret_key_env`.
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        *,
        secret_key_env: str = "AGENT_SECRET_KEY",
    ) -> None:
        self._environ = environ
        self._secret_key_env = secret_key_env

    def _source(self) -> Mapping[str, str]:
        return self._environ if self._environ is not None else os.environ

    def resolve(self, name: str) -> Optional[ProviderCredential]:
        source = self._source()
        plain = (source.get(name) or "").strip()
        if plain:
            return ProviderCredential(name=name, value=plain)
        encrypted = (source.get(f"{name}{ENCRYPTED_SUFFIX}") or "").strip()
        if not encrypted:
            return None
        key_material = (source.get(self._secret_key_env) or "").strip()
        if not key_material:
            raise RuntimeError(
                f"credential '{name}' is encrypted but '{self._secret_key_env}' is not set"
            )
        value = get_secret_box(key_material).decrypt(encrypted).strip()
        if not value:
            return None
        return ProviderCredential(name=name, value=value)

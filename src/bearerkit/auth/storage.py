"""Credential persistence.

The client persists its two token strings through a ``CredentialStore``.
Production code plugs in a secure key-value store (OS keychain, secrets
manager); ``InMemoryCredentialStore`` is used by default and in tests.
"""

from __future__ import annotations

import logging
from typing import Protocol

from bearerkit.auth.models.tokens import Credentials, Token

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"


class CredentialStore(Protocol):
    """Key-value secret store for token strings."""

    def get(self, name: str) -> str | None: ...

    def set(self, name: str, value: str) -> None: ...

    def delete(self, name: str) -> None: ...


class InMemoryCredentialStore:
    """Credential store that keeps secrets in a dict for the process lifetime."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._secrets: dict[str, str] = dict(initial or {})

    def get(self, name: str) -> str | None:
        return self._secrets.get(name)

    def set(self, name: str, value: str) -> None:
        self._secrets[name] = value

    def delete(self, name: str) -> None:
        self._secrets.pop(name, None)

    def __contains__(self, name: str) -> bool:
        return name in self._secrets


def load_credentials(store: CredentialStore) -> Credentials:
    """Load the stored credential pair.

    The refresh token expiry is not persisted, so it loads as 0.
    """
    return Credentials(
        access=Token.from_jwt(store.get(ACCESS_TOKEN_KEY) or ""),
        refresh=Token(value=store.get(REFRESH_TOKEN_KEY) or "", expires_at=0),
    )


def save_credentials(store: CredentialStore, credentials: Credentials) -> None:
    """Persist both token strings, access token first."""
    store.set(ACCESS_TOKEN_KEY, credentials.access.value)
    store.set(REFRESH_TOKEN_KEY, credentials.refresh.value)
    logger.debug("Persisted credentials")


def clear_credentials(store: CredentialStore) -> None:
    store.delete(ACCESS_TOKEN_KEY)
    store.delete(REFRESH_TOKEN_KEY)
    logger.debug("Cleared stored credentials")

"""Credential store port and an in-memory implementation."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol


class CredentialKey(StrEnum):
    ACCESS_TOKEN = "access_token"
    REFRESH_TOKEN = "refresh_token"
    TENANT_ID = "tenant_id"
    AUTH_USER = "auth_user"
    SELECTED_TENANT = "selected_tenant"


class CredentialStore(Protocol):
    """Scoped async key-value store for secrets and tenant context.

    Implementations return ``None`` for absent keys and raise
    ``CredentialStoreError`` when the backing storage fails.
    """

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class InMemoryCredentialStore:
    """Dict-backed store. Process-local; contents are lost on exit."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._values)

"""Credential injection and single-flight token refresh."""

from leave_client.auth.coordinator import RefreshCoordinator
from leave_client.auth.injector import CredentialInjector
from leave_client.auth.state import RefreshState
from leave_client.auth.store import CredentialKey, CredentialStore, InMemoryCredentialStore
from leave_client.auth.tokens import TokenPair

__all__ = [
    "CredentialInjector",
    "CredentialKey",
    "CredentialStore",
    "InMemoryCredentialStore",
    "RefreshCoordinator",
    "RefreshState",
    "TokenPair",
]

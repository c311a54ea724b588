"""Client library for the leave and work-from-home tracking API."""

from leave_client.auth.store import CredentialKey, InMemoryCredentialStore
from leave_client.http.client import ApiClient
from leave_client.notifications import EventBus, SessionEvent
from leave_client.session import SessionManager
from leave_client.tenant import TenantManager

__all__ = [
    "ApiClient",
    "CredentialKey",
    "EventBus",
    "InMemoryCredentialStore",
    "SessionEvent",
    "SessionManager",
    "TenantManager",
]

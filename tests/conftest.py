"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from fakes import BASE_URL, EventRecorder, FakeBackend

from leave_client.auth.store import CredentialKey, InMemoryCredentialStore
from leave_client.config import Settings
from leave_client.http.client import ApiClient
from leave_client.notifications import EventBus


@pytest.fixture()
def settings() -> Settings:
    return Settings(api_base_url=BASE_URL, _env_file=None)  # type: ignore[call-arg]


@pytest.fixture()
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore(
        {
            CredentialKey.ACCESS_TOKEN: "T1",
            CredentialKey.REFRESH_TOKEN: "R1",
            CredentialKey.TENANT_ID: "acme",
        }
    )


@pytest.fixture()
def bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def recorder(bus: EventBus) -> EventRecorder:
    return EventRecorder(bus)


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
async def api(
    store: InMemoryCredentialStore,
    bus: EventBus,
    backend: FakeBackend,
    settings: Settings,
) -> AsyncIterator[ApiClient]:
    client = ApiClient.from_settings(
        store, bus, settings=settings, transport=backend.transport()
    )
    yield client
    await client.aclose()

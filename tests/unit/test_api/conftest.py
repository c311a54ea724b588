"""Fixtures for endpoint wrapper tests."""

from collections.abc import AsyncIterator

import httpx
import pytest
from fakes import ScriptedServer

from leave_client.auth.store import InMemoryCredentialStore
from leave_client.config import Settings
from leave_client.http.client import ApiClient


@pytest.fixture()
def server() -> ScriptedServer:
    return ScriptedServer()


@pytest.fixture()
async def client(
    store: InMemoryCredentialStore, settings: Settings, server: ScriptedServer
) -> AsyncIterator[ApiClient]:
    api = ApiClient.from_settings(
        store, settings=settings, transport=httpx.MockTransport(server.handler)
    )
    yield api
    await api.aclose()

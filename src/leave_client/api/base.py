"""Shared helpers for endpoint wrappers."""

from typing import Any

import httpx

from leave_client.http.client import ApiClient


def body(response: httpx.Response) -> Any:
    """Decoded JSON body, or ``None`` for an empty response."""
    if not response.content:
        return None
    return response.json()


def unwrap_data(response: httpx.Response) -> Any:
    """Return ``body["data"]`` from the backend's ``{"data": ...}`` envelope."""
    payload = body(response)
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


class EndpointGroup:
    """Base for a group of endpoints sharing one ``ApiClient``."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    @property
    def client(self) -> ApiClient:
        return self._client

"""Authenticated API client: the request pipeline composition root."""

from __future__ import annotations

from collections.abc import Mapping
from types import TracebackType
from typing import Any

import httpx
import structlog

from leave_client.auth.coordinator import RefreshCoordinator
from leave_client.auth.injector import CredentialInjector
from leave_client.auth.state import RefreshState
from leave_client.auth.store import CredentialStore
from leave_client.config import Settings, get_settings
from leave_client.errors import PipelineError
from leave_client.http.descriptor import (
    AUTHORIZATION,
    PendingRequest,
    RequestDescriptor,
)
from leave_client.http.dispatcher import RequestDispatcher
from leave_client.notifications import EventBus, NotificationChannel

logger = structlog.get_logger()


class ApiClient:
    """Sends requests through credential injection and 401 recovery.

    Pipeline per request:
    inject credentials -> dispatch -> on 401 refresh (single-flight) ->
    replay once with the new token.

    Usage::

        async with ApiClient.from_settings(store, bus) as api:
            response = await api.get("/leaves/mine")
    """

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        injector: CredentialInjector,
        coordinator: RefreshCoordinator,
    ) -> None:
        self._dispatcher = dispatcher
        self._injector = injector
        self._coordinator = coordinator

    @classmethod
    def from_settings(
        cls,
        store: CredentialStore,
        notifications: NotificationChannel | None = None,
        *,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        state: RefreshState | None = None,
    ) -> ApiClient:
        """Build the full pipeline around one shared ``RefreshState``."""
        if settings is None:
            settings = get_settings()

        dispatcher = RequestDispatcher(
            settings.api_base_url,
            timeout=settings.request_timeout,
            transport=transport,
        )
        injector = CredentialInjector(store, tenant_header=settings.tenant_header)
        coordinator = RefreshCoordinator(
            store,
            dispatcher,
            notifications if notifications is not None else EventBus(),
            state if state is not None else RefreshState(),
            refresh_path=settings.refresh_path,
        )
        return cls(dispatcher, injector, coordinator)

    @property
    def raw(self) -> RequestDispatcher:
        """Dispatcher without injection or refresh handling."""
        return self._dispatcher

    def clear_session_header(self) -> None:
        """Drop the shared default bearer set by the last token refresh."""
        self._dispatcher.remove_default_header(AUTHORIZATION)

    @property
    def refresh_state(self) -> RefreshState:
        return self._coordinator.state

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
        skip_refresh: bool = False,
    ) -> httpx.Response:
        """Send a request through the full pipeline.

        Args:
            method: HTTP method.
            path: Path relative to the API base URL.
            params: Query parameters.
            json: JSON body.
            headers: Extra headers; injected credentials take precedence.
            skip_refresh: Surface a 401 as-is instead of refreshing.

        Raises:
            APIStatusError: Non-2xx response that could not be recovered.
            RefreshError: The session could not be renewed.
            TransportError: Network-level failure.
        """
        descriptor = RequestDescriptor(
            method, path, headers=headers or {}, params=params, json=json
        )
        pending = PendingRequest(descriptor, skip_refresh=skip_refresh)
        prepared = await self._injector.inject(pending.descriptor)
        if prepared.header(AUTHORIZATION) is None:
            # Store holds no token; drop any bearer left by an earlier refresh.
            self.clear_session_header()
        return await self._send(pending.with_descriptor(prepared))

    async def _send(self, pending: PendingRequest) -> httpx.Response:
        try:
            return await self._dispatcher.send(pending.descriptor)
        except PipelineError as exc:
            replay = await self._coordinator.recover(pending, exc)

        logger.debug(
            "request_replay",
            method=replay.descriptor.method,
            path=replay.descriptor.path,
        )
        # A replayed request is never eligible again, so this recursion
        # ends after one level.
        return await self._send(replay)

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", path, **kwargs)

    async def aclose(self) -> None:
        await self._dispatcher.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

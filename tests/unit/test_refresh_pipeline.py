"""End-to-end tests for 401 recovery through ApiClient."""

import asyncio
import json

import httpx
import pytest
from fakes import EventRecorder, FakeBackend, wait_until

from leave_client.auth.store import CredentialKey, InMemoryCredentialStore
from leave_client.errors import (
    APIStatusError,
    RefreshFailedError,
    RefreshTokenMissingError,
    RequestTimeoutError,
    TransportError,
)
from leave_client.http.client import ApiClient
from leave_client.notifications import SessionEvent

ROUTES = ("/leaves/a", "/leaves/b", "/leaves/c")


async def _fire_while_refresh_held(
    api: ApiClient, backend: FakeBackend, routes: tuple[str, ...] = ROUTES
) -> list[httpx.Response | BaseException]:
    """Send requests concurrently, keeping the refresh call open until all queue."""
    backend.refresh_gate.clear()
    tasks = [asyncio.create_task(api.get(route)) for route in routes]
    await wait_until(lambda: len(api.refresh_state.waiters) == len(routes) - 1)
    backend.refresh_gate.set()
    return await asyncio.gather(*tasks, return_exceptions=True)


class TestHappyPath:
    """Single requests through the pipeline."""

    async def test_valid_token_passes_through(
        self, api: ApiClient, backend: FakeBackend, recorder: EventRecorder
    ) -> None:
        """A valid token needs no refresh."""
        backend.valid_tokens = {"T1"}
        response = await api.get("/leaves/mine")

        assert response.status_code == 200
        assert backend.refresh_calls == []
        assert recorder.events == []

    async def test_single_401_refreshes_and_replays(
        self,
        api: ApiClient,
        backend: FakeBackend,
        store: InMemoryCredentialStore,
    ) -> None:
        """One 401 triggers one refresh and one replay."""
        backend.valid_tokens = set()  # T1 expired
        response = await api.get("/leaves/mine")

        assert response.status_code == 200
        assert response.json()["data"]["token"] == "T2"
        assert len(backend.refresh_calls) == 1
        assert [r.headers["Authorization"] for r in backend.calls_to("/leaves/mine")] == [
            "Bearer T1",
            "Bearer T2",
        ]
        assert await store.get(CredentialKey.ACCESS_TOKEN) == "T2"
        assert await store.get(CredentialKey.REFRESH_TOKEN) == "R2"

    async def test_replay_keeps_tenant_header(
        self, api: ApiClient, backend: FakeBackend
    ) -> None:
        """The replay still carries the tenant header."""
        backend.valid_tokens = set()
        response = await api.get("/leaves/mine")

        assert response.json()["data"]["tenant"] == "acme"

    async def test_refresh_call_is_bare(self, api: ApiClient, backend: FakeBackend) -> None:
        """Refresh request carries no credentials and is sent once."""
        backend.valid_tokens = set()
        await api.get("/leaves/mine")

        (refresh,) = backend.refresh_calls
        assert refresh.method == "POST"
        assert "Authorization" not in refresh.headers
        assert "x-tenant-id" not in refresh.headers
        assert json.loads(refresh.content) == {"refreshToken": "R1"}

    async def test_default_header_updated(self, api: ApiClient, backend: FakeBackend) -> None:
        """The dispatcher default bearer follows the refresh."""
        backend.valid_tokens = set()
        await api.get("/leaves/mine")

        assert api.raw.default_headers["Authorization"] == "Bearer T2"

    async def test_state_cleared_after_cycle(
        self, api: ApiClient, backend: FakeBackend
    ) -> None:
        """Refresh state is idle after a cycle."""
        backend.valid_tokens = set()
        await api.get("/leaves/mine")

        assert api.refresh_state.in_progress is False
        assert api.refresh_state.waiters == []

    async def test_later_expiry_starts_new_cycle(
        self, api: ApiClient, backend: FakeBackend, recorder: EventRecorder
    ) -> None:
        """A later expiry runs a fresh cycle."""
        backend.valid_tokens = set()
        await api.get("/leaves/mine")

        backend.next_tokens = ("T3", "R3")
        backend.valid_tokens = set()  # T2 expired too
        response = await api.get("/leaves/mine")

        assert response.json()["data"]["token"] == "T3"
        assert len(backend.refresh_calls) == 2
        assert recorder.of(SessionEvent.TOKEN_REFRESHED) == [
            {"token": "T2"},
            {"token": "T3"},
        ]


class TestSingleFlight:
    """At most one refresh runs, however many requests fail."""

    async def test_concurrent_401s_share_one_refresh(
        self,
        api: ApiClient,
        backend: FakeBackend,
        recorder: EventRecorder,
    ) -> None:
        """A, B, C all get 401; one refresh; all replay with T2."""
        backend.valid_tokens = set()
        results = await _fire_while_refresh_held(api, backend)

        assert all(isinstance(r, httpx.Response) for r in results)
        assert [r.json()["data"]["route"] for r in results] == list(ROUTES)
        assert len(backend.refresh_calls) == 1
        for route in ROUTES:
            first, replay = backend.calls_to(route)
            assert first.headers["Authorization"] == "Bearer T1"
            assert replay.headers["Authorization"] == "Bearer T2"
        assert recorder.of(SessionEvent.TOKEN_REFRESHED) == [{"token": "T2"}]
        assert recorder.of(SessionEvent.UNAUTHORIZED) == []

    async def test_failed_refresh_rejects_whole_batch(
        self,
        api: ApiClient,
        backend: FakeBackend,
        recorder: EventRecorder,
    ) -> None:
        """A failed refresh fails every queued request, none replayed."""
        backend.valid_tokens = set()
        backend.refresh_status = 401
        results = await _fire_while_refresh_held(api, backend)

        assert all(isinstance(r, RefreshFailedError) for r in results)
        assert len(backend.refresh_calls) == 1
        # No replays after a failed refresh
        for route in ROUTES:
            assert len(backend.calls_to(route)) == 1
        assert recorder.of(SessionEvent.UNAUTHORIZED) == [{}]
        assert recorder.of(SessionEvent.TOKEN_REFRESHED) == []
        assert api.refresh_state.in_progress is False

    async def test_waiters_resolved_in_enqueue_order(
        self, api: ApiClient, backend: FakeBackend
    ) -> None:
        """Waiters settle first-in, first-out."""
        backend.valid_tokens = set()
        backend.refresh_gate.clear()
        tasks = [asyncio.create_task(api.get(route)) for route in ROUTES]
        await wait_until(lambda: len(api.refresh_state.waiters) == 2)
        waiters = list(api.refresh_state.waiters)

        resolved: list[int] = []
        for index, waiter in enumerate(waiters):
            waiter.add_done_callback(lambda _f, i=index: resolved.append(i))
        backend.refresh_gate.set()
        await asyncio.gather(*tasks)

        assert resolved == [0, 1]


class TestNoInfiniteLoop:
    """A replay never triggers another refresh."""

    async def test_replay_401_is_surfaced(
        self,
        api: ApiClient,
        backend: FakeBackend,
        recorder: EventRecorder,
    ) -> None:
        """E's replay gets 401 again: E fails, no second refresh."""
        backend.valid_tokens = set()
        backend.always_unauthorized.add("/leaves/e")

        with pytest.raises(APIStatusError) as exc_info:
            await api.get("/leaves/e")

        assert exc_info.value.status_code == 401
        assert len(backend.refresh_calls) == 1
        assert len(backend.calls_to("/leaves/e")) == 2
        assert recorder.of(SessionEvent.TOKEN_REFRESHED) == [{"token": "T2"}]

    async def test_skip_refresh_surfaces_first_401(
        self, api: ApiClient, backend: FakeBackend
    ) -> None:
        """skip_refresh surfaces the 401 without refreshing."""
        backend.valid_tokens = set()

        with pytest.raises(APIStatusError):
            await api.post("/auth/logout", skip_refresh=True)

        assert backend.refresh_calls == []


class TestRefreshFailures:
    """Refresh failures surface as RefreshError."""

    async def test_missing_refresh_token(
        self,
        api: ApiClient,
        backend: FakeBackend,
        store: InMemoryCredentialStore,
        recorder: EventRecorder,
    ) -> None:
        """D gets 401 with no refresh token stored: no refresh call."""
        await store.delete(CredentialKey.REFRESH_TOKEN)
        backend.valid_tokens = set()

        with pytest.raises(RefreshTokenMissingError):
            await api.get("/leaves/d")

        assert backend.refresh_calls == []
        assert recorder.of(SessionEvent.UNAUTHORIZED) == [{}]
        assert recorder.of(SessionEvent.TOKEN_REFRESHED) == []

    async def test_refresh_server_error(
        self, api: ApiClient, backend: FakeBackend, recorder: EventRecorder
    ) -> None:
        """A 5xx from refresh is a RefreshFailedError."""
        backend.valid_tokens = set()
        backend.refresh_status = 500

        with pytest.raises(RefreshFailedError) as exc_info:
            await api.get("/leaves/mine")

        assert isinstance(exc_info.value.__cause__, APIStatusError)
        assert recorder.of(SessionEvent.UNAUTHORIZED) == [{}]

    async def test_malformed_refresh_body(
        self,
        api: ApiClient,
        backend: FakeBackend,
        store: InMemoryCredentialStore,
    ) -> None:
        """A body missing a token is rejected and nothing is stored."""
        backend.valid_tokens = set()
        backend.refresh_body = {"data": {"accessToken": "T2"}}

        with pytest.raises(RefreshFailedError, match="malformed"):
            await api.get("/leaves/mine")

        assert await store.get(CredentialKey.ACCESS_TOKEN) == "T1"

    async def test_refresh_timeout_is_refresh_failure(
        self,
        store: InMemoryCredentialStore,
        bus,
        settings,
        recorder: EventRecorder,
    ) -> None:
        """A timed-out refresh is a RefreshFailedError."""
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/auth/refresh-token"):
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(401, json={"error": "Unauthorized"})

        async with ApiClient.from_settings(
            store, bus, settings=settings, transport=httpx.MockTransport(handler)
        ) as api:
            with pytest.raises(RefreshFailedError) as exc_info:
                await api.get("/leaves/mine")

        assert isinstance(exc_info.value.__cause__, RequestTimeoutError)
        assert recorder.of(SessionEvent.UNAUTHORIZED) == [{}]


class TestPassThrough:
    """Failures other than 401 pass through untouched."""

    @pytest.mark.parametrize("status", [400, 403, 404, 500])
    async def test_other_statuses_untouched(
        self, api: ApiClient, backend: FakeBackend, status: int
    ) -> None:
        """Non-401 errors pass through untouched."""
        backend.responses["/leaves/x"] = httpx.Response(status, json={"error": "nope"})

        with pytest.raises(APIStatusError) as exc_info:
            await api.get("/leaves/x")

        assert exc_info.value.status_code == status
        assert backend.refresh_calls == []

    async def test_transport_error_not_refreshed(
        self, store: InMemoryCredentialStore, bus, settings
    ) -> None:
        """Network failures never start a refresh."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        async with ApiClient.from_settings(
            store, bus, settings=settings, transport=httpx.MockTransport(handler)
        ) as api:
            with pytest.raises(TransportError):
                await api.get("/leaves/mine")

            assert api.refresh_state.in_progress is False

"""Post-receive hook: single-flight token refresh and replay.

When a request fails with 401 for the first time:

1. The request is marked retried, so its replay can never start a refresh.
2. If a refresh cycle is already running, the request queues behind it.
3. Otherwise it starts the cycle: ``in_progress`` is set before the first
   await, then the refresh token is read and ``POST /auth/refresh-token``
   is sent on the bare dispatcher path (no injection, no 401 handling).
4. The cycle settles once. On success the new tokens are persisted, the
   shared default header is updated, ``token_refreshed`` is emitted and
   every waiter gets the new access token. On failure ``unauthorized`` is
   emitted and every waiter gets the refresh error.
5. Each participant replays its own request with the new bearer token.
"""

from __future__ import annotations

import structlog

from leave_client.auth.state import RefreshState
from leave_client.auth.store import CredentialKey, CredentialStore
from leave_client.auth.tokens import TokenPair
from leave_client.errors import (
    APIStatusError,
    RefreshError,
    RefreshFailedError,
    RefreshTokenMissingError,
    TransportError,
)
from leave_client.http.descriptor import AUTHORIZATION, PendingRequest, RequestDescriptor
from leave_client.http.dispatcher import RequestDispatcher
from leave_client.notifications import NotificationChannel, SessionEvent

logger = structlog.get_logger()

REFRESH_PATH = "/auth/refresh-token"


class RefreshCoordinator:
    """Classifies failed responses and runs the refresh-and-replay protocol."""

    def __init__(
        self,
        store: CredentialStore,
        dispatcher: RequestDispatcher,
        notifications: NotificationChannel,
        state: RefreshState,
        refresh_path: str = REFRESH_PATH,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._notifications = notifications
        self._state = state
        self._refresh_path = refresh_path

    @property
    def state(self) -> RefreshState:
        return self._state

    def is_eligible(self, pending: PendingRequest, error: Exception) -> bool:
        """401 on a request that has not been replayed yet."""
        return (
            isinstance(error, APIStatusError)
            and error.is_unauthorized
            and not pending.retried
            and not pending.skip_refresh
        )

    async def recover(self, pending: PendingRequest, error: Exception) -> PendingRequest:
        """Return the request to replay, carrying a fresh bearer token.

        Raises:
            Exception: ``error`` itself when the failure is not eligible.
            RefreshError: The refresh cycle this request joined failed.
        """
        if not self.is_eligible(pending, error):
            raise error

        pending = pending.mark_retried()
        descriptor = pending.descriptor
        logger.info(
            "auth_failure_detected",
            method=descriptor.method,
            path=descriptor.path,
            refresh_in_progress=self._state.in_progress,
        )
        token = await self.acquire_token()
        return pending.for_replay(token)

    async def acquire_token(self) -> str:
        """Join the running refresh cycle or start a new one."""
        if self._state.in_progress:
            waiter = self._state.enqueue()
            logger.debug("refresh_waiter_enqueued", queued=len(self._state.waiters))
            return await waiter

        # No await between the check above and this assignment.
        self._state.in_progress = True
        return await self._run_cycle()

    async def _run_cycle(self) -> str:
        settled = False
        try:
            try:
                tokens = await self._request_tokens()
                await self._persist(tokens)
            except RefreshError as exc:
                error: RefreshError = exc
            except Exception as exc:
                error = RefreshFailedError(type(exc).__name__, exc)
            else:
                token = tokens.access_token
                self._dispatcher.set_default_header(AUTHORIZATION, f"Bearer {token}")
                await self._notifications.emit(
                    SessionEvent.TOKEN_REFRESHED, {"token": token}
                )
                count = self._state.settle(token=token)
                settled = True
                logger.info("token_refresh_succeeded", waiters=count)
                return token

            self._dispatcher.remove_default_header(AUTHORIZATION)
            await self._notifications.emit(SessionEvent.UNAUTHORIZED, {})
            count = self._state.settle(error=error)
            settled = True
            logger.warning(
                "token_refresh_failed",
                reason=str(error),
                error_type=type(error).__name__,
                waiters=count,
            )
            raise error
        finally:
            if not settled:
                # Cancelled, or the notification channel raised mid-settlement.
                self._state.settle(error=RefreshFailedError("refresh cycle aborted"))

    async def _request_tokens(self) -> TokenPair:
        refresh_token = await self._store.get(CredentialKey.REFRESH_TOKEN)
        if not refresh_token:
            raise RefreshTokenMissingError()

        descriptor = RequestDescriptor(
            "POST",
            self._refresh_path,
            json={"refreshToken": refresh_token},
        )
        try:
            response = await self._dispatcher.send(descriptor, bare=True)
        except APIStatusError as exc:
            raise RefreshFailedError(f"status {exc.status_code}", exc) from exc
        except TransportError as exc:
            raise RefreshFailedError(type(exc).__name__, exc) from exc

        try:
            return TokenPair.from_body(response.json())
        except ValueError as exc:
            raise RefreshFailedError("malformed refresh response", exc) from exc

    async def _persist(self, tokens: TokenPair) -> None:
        await self._store.set(CredentialKey.ACCESS_TOKEN, tokens.access_token)
        await self._store.set(CredentialKey.REFRESH_TOKEN, tokens.refresh_token)

"""Session owner: reacts to pipeline notifications.

``SessionManager`` is the usual single listener on the notification
channel. ``token_refreshed`` updates the in-memory token; ``unauthorized``
clears every stored credential and drops back to a signed-out state.
"""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import ValidationError

from leave_client.api.auth import AuthAPI
from leave_client.api.schemas import User
from leave_client.auth.store import CredentialKey, CredentialStore
from leave_client.errors import PipelineError
from leave_client.notifications import NotificationChannel, SessionEvent, Unsubscribe

logger = structlog.get_logger()

SESSION_KEYS = (
    CredentialKey.ACCESS_TOKEN,
    CredentialKey.REFRESH_TOKEN,
    CredentialKey.AUTH_USER,
)


class SessionManager:
    """In-memory view of the signed-in user, backed by the credential store."""

    def __init__(
        self,
        store: CredentialStore,
        notifications: NotificationChannel,
        auth_api: AuthAPI,
    ) -> None:
        self._store = store
        self._auth_api = auth_api
        self.user: User | None = None
        self.token: str | None = None
        self._signing_out = False
        self._unsubscribe: list[Unsubscribe] = [
            notifications.subscribe(SessionEvent.TOKEN_REFRESHED, self._on_token_refreshed),
            notifications.subscribe(SessionEvent.UNAUTHORIZED, self._on_unauthorized),
        ]

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.user is not None

    async def load(self) -> bool:
        """Restore the session from the store. Returns True if signed in."""
        token = await self._store.get(CredentialKey.ACCESS_TOKEN)
        raw_user = await self._store.get(CredentialKey.AUTH_USER)
        if not (token and raw_user):
            return False
        try:
            user = User.model_validate_json(raw_user)
        except ValidationError:
            logger.warning("stored_user_invalid")
            return False
        self.token, self.user = token, user
        return True

    async def sign_in(self, access_token: str, refresh_token: str, user: User) -> None:
        await self._store.set(CredentialKey.ACCESS_TOKEN, access_token)
        await self._store.set(CredentialKey.REFRESH_TOKEN, refresh_token)
        await self._store.set(CredentialKey.AUTH_USER, user.model_dump_json())
        self.token, self.user = access_token, user
        logger.info("session_signed_in", user_id=user.id)

    async def sign_out(self, *, notify_server: bool = True) -> None:
        """Clear the session.

        Args:
            notify_server: Call ``POST /auth/logout`` first. Its failure is
                logged and does not stop local cleanup.
        """
        if self._signing_out:
            return
        self._signing_out = True
        try:
            if notify_server:
                try:
                    await self._auth_api.logout(skip_refresh=True)
                except PipelineError as exc:
                    logger.warning("logout_request_failed", error=str(exc))
        finally:
            for key in SESSION_KEYS:
                await self._store.delete(key)
            self._auth_api.client.clear_session_header()
            self.token, self.user = None, None
            self._signing_out = False
            logger.info("session_signed_out", notified_server=notify_server)

    def close(self) -> None:
        """Stop listening to the notification channel."""
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe.clear()

    def _on_token_refreshed(self, payload: dict[str, Any]) -> None:
        self.token = payload.get("token")

    async def _on_unauthorized(self, payload: dict[str, Any]) -> None:
        # The refresh already failed; a logout call would only 401 again.
        await self.sign_out(notify_server=False)

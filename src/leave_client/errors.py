"""Domain-specific exceptions for the leave-tracker client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx

DEFAULT_ERROR_MESSAGE = "Something went wrong"


class PipelineError(Exception):
    """Base class for every error surfaced by the request pipeline."""


class TransportError(PipelineError):
    """The request never produced an HTTP response (network, DNS, TLS)."""

    def __init__(self, method: str, path: str, cause: Exception) -> None:
        self.method = method
        self.path = path
        super().__init__(f"{method} {path} failed: {cause}")
        self.__cause__ = cause


class RequestTimeoutError(TransportError):
    """The transport gave up waiting for the server."""


class APIStatusError(PipelineError):
    """The server answered with a non-2xx status.

    Attributes:
        status_code: HTTP status of the response.
        response: The raw httpx response, body already read.
    """

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.status_code = response.status_code
        try:
            request = response.request
        except RuntimeError:
            # Response built without a request (tests, hand-made responses)
            super().__init__(f"HTTP {self.status_code}")
        else:
            super().__init__(
                f"{request.method} {request.url.path} returned {self.status_code}"
            )

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401

    @property
    def payload(self) -> dict[str, Any]:
        """Decoded JSON error body, or an empty dict if there is none."""
        try:
            body = self.response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    @property
    def detail(self) -> str:
        """User-facing message the backend put in the error body.

        Lookup order: first validation detail, ``error``, ``message``.
        """
        return self.detail_or(DEFAULT_ERROR_MESSAGE)

    def detail_or(self, default: str) -> str:
        body = self.payload
        details = body.get("details")
        if isinstance(details, list) and details:
            first = details[0]
            if isinstance(first, dict) and first.get("message"):
                return str(first["message"])
        for key in ("error", "message"):
            if body.get(key):
                return str(body[key])
        return default


class RefreshError(PipelineError):
    """The session could not be renewed; every queued request fails with it."""


class RefreshTokenMissingError(RefreshError):
    """No refresh token is stored, so no refresh call was attempted."""

    def __init__(self) -> None:
        super().__init__("No refresh token stored")


class RefreshFailedError(RefreshError):
    """The refresh call failed or returned an unusable body."""

    def __init__(self, reason: str, cause: BaseException | None = None) -> None:
        self.reason = reason
        super().__init__(f"Token refresh failed: {reason}")
        self.__cause__ = cause


class CredentialStoreError(Exception):
    """Raised by credential store implementations on read/write failure."""

    def __init__(self, operation: str, key: str, cause: Exception | None = None) -> None:
        self.operation = operation
        self.key = key
        super().__init__(f"Credential store {operation} failed for '{key}'")
        self.__cause__ = cause

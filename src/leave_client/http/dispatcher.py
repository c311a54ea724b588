"""Async HTTP dispatcher wrapping httpx."""

from __future__ import annotations

from types import TracebackType

import httpx
import structlog

from leave_client.errors import APIStatusError, RequestTimeoutError, TransportError
from leave_client.http.descriptor import RequestDescriptor

logger = structlog.get_logger()

DEFAULT_HEADERS: dict[str, str] = {"Content-Type": "application/json"}


class RequestDispatcher:
    """Sends fully-prepared descriptors over an ``httpx.AsyncClient``.

    No business logic lives here. Every descriptor is sent as-is, merged
    over the shared default headers unless ``bare=True``.

    Usage::

        async with RequestDispatcher("http://localhost:4000/api/v1") as d:
            response = await d.send(RequestDescriptor("GET", "/leaves/mine"))
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        default_headers: dict[str, str] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._default_headers: dict[str, str] = dict(
            DEFAULT_HEADERS if default_headers is None else default_headers
        )
        # Shared defaults live on the dispatcher, not the httpx client,
        # so bare sends can leave them out.
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )

    @property
    def default_headers(self) -> dict[str, str]:
        return dict(self._default_headers)

    def set_default_header(self, name: str, value: str) -> None:
        self.remove_default_header(name)
        self._default_headers[name] = value

    def remove_default_header(self, name: str) -> None:
        lowered = name.lower()
        for key in [k for k in self._default_headers if k.lower() == lowered]:
            del self._default_headers[key]

    async def send(
        self,
        descriptor: RequestDescriptor,
        *,
        bare: bool = False,
    ) -> httpx.Response:
        """Send one request and return its 2xx response.

        Args:
            descriptor: The request to send.
            bare: Skip the shared default headers.

        Raises:
            APIStatusError: The server answered with a non-2xx status.
            RequestTimeoutError: The transport timed out.
            TransportError: Any other network-level failure.
        """
        headers = httpx.Headers() if bare else httpx.Headers(self._default_headers)
        for name, value in descriptor.headers.items():
            headers[name] = value

        try:
            response = await self._client.request(
                descriptor.method,
                descriptor.path,
                headers=headers,
                params=descriptor.params,
                json=descriptor.json,
            )
        except httpx.TimeoutException as exc:
            logger.warning(
                "http_timeout", method=descriptor.method, path=descriptor.path
            )
            raise RequestTimeoutError(descriptor.method, descriptor.path, exc) from exc
        except httpx.TransportError as exc:
            logger.warning(
                "http_transport_error",
                method=descriptor.method,
                path=descriptor.path,
                error=str(exc),
            )
            raise TransportError(descriptor.method, descriptor.path, exc) from exc

        logger.debug(
            "http_response",
            method=descriptor.method,
            path=descriptor.path,
            status_code=response.status_code,
        )
        if not response.is_success:
            raise APIStatusError(response)
        return response

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> RequestDispatcher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

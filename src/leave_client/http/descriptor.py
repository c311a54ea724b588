"""Immutable request descriptors threaded through the pipeline."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

AUTHORIZATION = "Authorization"


def _frozen(headers: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(dict(headers or {}))


@dataclass(frozen=True)
class RequestDescriptor:
    """Everything the dispatcher needs to send one HTTP request.

    ``path`` is relative to the configured API base URL. Header names
    are matched case-insensitively when replaced.
    """

    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, Any] | None = None
    json: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", _frozen(self.headers))

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def with_header(self, name: str, value: str) -> RequestDescriptor:
        """Return a copy with ``name`` set, replacing any differently-cased entry."""
        lowered = name.lower()
        headers = {k: v for k, v in self.headers.items() if k.lower() != lowered}
        headers[name] = value
        return replace(self, headers=headers)

    def without_header(self, name: str) -> RequestDescriptor:
        lowered = name.lower()
        headers = {k: v for k, v in self.headers.items() if k.lower() != lowered}
        return replace(self, headers=headers)

    def with_bearer(self, token: str) -> RequestDescriptor:
        return self.with_header(AUTHORIZATION, f"Bearer {token}")


@dataclass(frozen=True)
class PendingRequest:
    """A descriptor plus its replay state.

    ``retried`` flips once, when the request is replayed after a token
    refresh. A replayed request is never eligible for another refresh.
    ``skip_refresh`` opts the request out of refresh handling entirely.
    """

    descriptor: RequestDescriptor
    retried: bool = False
    skip_refresh: bool = False

    def with_descriptor(self, descriptor: RequestDescriptor) -> PendingRequest:
        return replace(self, descriptor=descriptor)

    def mark_retried(self) -> PendingRequest:
        return replace(self, retried=True)

    def for_replay(self, token: str) -> PendingRequest:
        return replace(self, descriptor=self.descriptor.with_bearer(token), retried=True)

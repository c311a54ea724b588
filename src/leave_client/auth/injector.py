"""Pre-send hook: attach credentials and tenant context."""

from __future__ import annotations

import structlog

from leave_client.auth.store import CredentialKey, CredentialStore
from leave_client.http.descriptor import RequestDescriptor

logger = structlog.get_logger()

TENANT_HEADER = "x-tenant-id"


class CredentialInjector:
    """Adds ``Authorization`` and the tenant header to outgoing requests.

    Both values are read from the credential store on every call. A missing
    value means the header is left off. Store failures are logged and
    treated as missing: a broken store must not block the request.
    """

    def __init__(
        self,
        store: CredentialStore,
        tenant_header: str = TENANT_HEADER,
    ) -> None:
        self._store = store
        self._tenant_header = tenant_header

    async def inject(self, descriptor: RequestDescriptor) -> RequestDescriptor:
        token = await self._read(CredentialKey.ACCESS_TOKEN, descriptor)
        tenant_id = await self._read(CredentialKey.TENANT_ID, descriptor)

        if token:
            descriptor = descriptor.with_bearer(token)
        if tenant_id:
            descriptor = descriptor.with_header(self._tenant_header, tenant_id)
        return descriptor

    async def _read(self, key: CredentialKey, descriptor: RequestDescriptor) -> str | None:
        try:
            return await self._store.get(key)
        except Exception:
            logger.warning(
                "credential_read_failed",
                key=str(key),
                method=descriptor.method,
                path=descriptor.path,
                exc_info=True,
            )
            return None

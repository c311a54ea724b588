"""Selected-tenant persistence.

The tenant id is written under its own key so the credential injector can
read it without decoding the full tenant record.
"""

from __future__ import annotations

import structlog
from pydantic import ValidationError

from leave_client.api.schemas import Tenant
from leave_client.auth.store import CredentialKey, CredentialStore

logger = structlog.get_logger()


class TenantManager:
    """Loads, selects and clears the current tenant.

    Storage failures are logged, not raised: tenant context is best-effort
    and the in-memory selection stays usable.
    """

    def __init__(self, store: CredentialStore) -> None:
        self._store = store
        self.current: Tenant | None = None

    async def load(self) -> Tenant | None:
        try:
            raw = await self._store.get(CredentialKey.SELECTED_TENANT)
        except Exception:
            logger.exception("tenant_load_failed")
            return None
        if not raw:
            return None
        try:
            self.current = Tenant.model_validate_json(raw)
        except ValidationError:
            logger.warning("tenant_record_invalid")
            return None
        return self.current

    async def set_tenant(self, tenant: Tenant) -> None:
        self.current = tenant
        try:
            await self._store.set(
                CredentialKey.SELECTED_TENANT, tenant.model_dump_json(by_alias=True)
            )
            await self._store.set(CredentialKey.TENANT_ID, tenant.id)
        except Exception:
            logger.exception("tenant_store_failed", tenant_id=tenant.id)
            return
        logger.info("tenant_selected", tenant_id=tenant.id, slug=tenant.slug)

    async def clear_tenant(self) -> None:
        self.current = None
        try:
            await self._store.delete(CredentialKey.SELECTED_TENANT)
            await self._store.delete(CredentialKey.TENANT_ID)
        except Exception:
            logger.exception("tenant_clear_failed")

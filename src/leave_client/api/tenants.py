"""Tenant lookup and registration endpoints."""

from leave_client.api.base import EndpointGroup, unwrap_data
from leave_client.api.schemas import DEFAULT_THEME, Tenant, ThemeConfig


def normalize_slug(slug: str) -> str:
    return slug.strip().lower()


class TenantAPI(EndpointGroup):
    async def search(self, slug: str) -> Tenant:
        response = await self._client.get(
            "/tenants/search", params={"slug": normalize_slug(slug)}
        )
        return Tenant.model_validate(unwrap_data(response))

    async def create(
        self,
        name: str,
        slug: str,
        theme: ThemeConfig | None = None,
    ) -> Tenant:
        payload = {
            "name": name.strip(),
            "slug": normalize_slug(slug),
            "themeConfig": (theme or DEFAULT_THEME).to_wire(),
        }
        response = await self._client.post("/tenants", json=payload)
        return Tenant.model_validate(unwrap_data(response))

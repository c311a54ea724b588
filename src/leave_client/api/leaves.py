"""Leave and work-from-home request endpoints.

Leave payloads are passed through as plain dicts; the backend owns
their validation.
"""

from typing import Any

from leave_client.api.base import EndpointGroup, body
from leave_client.api.schemas import LeaveStatusUpdate


class LeaveAPI(EndpointGroup):
    async def apply(self, payload: dict[str, Any]) -> Any:
        response = await self._client.post("/leaves", json=payload)
        return body(response)

    async def mine(self) -> Any:
        response = await self._client.get("/leaves/mine")
        return body(response)

    async def get(self, leave_id: str) -> Any:
        response = await self._client.get(f"/leaves/{leave_id}")
        return body(response)

    async def cancel(self, leave_id: str) -> Any:
        response = await self._client.patch(f"/leaves/{leave_id}/cancel")
        return body(response)

    async def list_all(self, status: str | None = None) -> Any:
        """Every leave in the tenant (admin view), optionally by status."""
        params = {"status": status} if status else None
        response = await self._client.get("/leaves", params=params)
        return body(response)

    async def update_status(self, leave_id: str, update: LeaveStatusUpdate) -> Any:
        response = await self._client.patch(
            f"/leaves/{leave_id}/status", json=update.to_wire()
        )
        return body(response)

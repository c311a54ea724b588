"""Auth and employee-account endpoints."""

from typing import Any

import structlog

from leave_client.api.base import EndpointGroup, body, unwrap_data
from leave_client.api.schemas import (
    ChangePasswordRequest,
    CreateEmployeeRequest,
    LoginRequest,
    LoginResult,
)
from leave_client.http.descriptor import RequestDescriptor

logger = structlog.get_logger()


class AuthAPI(EndpointGroup):
    async def login(self, payload: LoginRequest) -> LoginResult:
        """Exchange credentials for a token pair.

        Sent bare on the raw dispatcher. There is no session yet, so a 401
        means bad credentials and a bearer left from an earlier session
        must not be sent.
        """
        response = await self._client.raw.send(
            RequestDescriptor("POST", "/auth/login", json=payload.to_wire()),
            bare=True,
        )
        result = LoginResult.model_validate(unwrap_data(response))
        logger.info("login_succeeded", employee_id=result.employee.id)
        return result

    async def logout(self, *, skip_refresh: bool = False) -> Any:
        response = await self._client.post("/auth/logout", skip_refresh=skip_refresh)
        return body(response)

    async def forgot_password(self, email: str) -> Any:
        response = await self._client.post(
            "/auth/forgot-password", json={"email": email}
        )
        return body(response)

    async def change_password(self, payload: ChangePasswordRequest) -> Any:
        response = await self._client.post(
            "/auth/change-password", json=payload.to_wire()
        )
        return body(response)

    async def create_employee(self, payload: CreateEmployeeRequest) -> Any:
        response = await self._client.post(
            "/auth/create-employee", json=payload.to_wire()
        )
        return body(response)

    async def check_tenant_admin(self, tenant_id: str) -> Any:
        """Whether the tenant already has an admin account."""
        response = await self._client.get(f"/auth/tenant/{tenant_id}/has-admin")
        return unwrap_data(response)

    async def register_first_admin(self, payload: dict[str, Any]) -> Any:
        response = await self._client.post(
            "/auth/tenant/register-admin", json=payload
        )
        return body(response)

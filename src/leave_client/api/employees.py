"""Employee administration endpoints."""

from typing import Any

from leave_client.api.base import EndpointGroup, body, unwrap_data
from leave_client.api.schemas import Employee, UpdateEmployeeRequest


class EmployeeAPI(EndpointGroup):
    async def get_all(self) -> list[Employee]:
        response = await self._client.get("/auth/employees")
        return [Employee.model_validate(item) for item in unwrap_data(response) or []]

    async def update(self, employee_id: str, payload: UpdateEmployeeRequest) -> Employee:
        response = await self._client.patch(
            f"/auth/update-employee/{employee_id}", json=payload.to_wire()
        )
        return Employee.model_validate(unwrap_data(response))

    async def leaves(self, employee_id: str) -> Any:
        response = await self._client.get(f"/leaves/employee/{employee_id}")
        return body(response)

    async def logs(self, employee_id: str) -> Any:
        response = await self._client.get(f"/leaves/employee/{employee_id}/logs")
        return body(response)

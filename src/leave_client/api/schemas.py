"""Pydantic models for the backend's auth, tenant and employee payloads.

Wire names are camelCase; Python attributes are snake_case. Unknown
fields are ignored so backend additions do not break the client.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

EmployeeRole = Literal["EMPLOYEE", "ADMIN", "HR_ADMIN"]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# --- Auth ---


class LoginRequest(_WireModel):
    email: str
    password: str
    tenant_id: str | None = None


class ChangePasswordRequest(_WireModel):
    old_password: str
    new_password: str


class User(_WireModel):
    """Signed-in user profile kept by the session."""

    id: str
    email: str
    display_name: str
    role: str


class Employee(_WireModel):
    id: str = Field(alias="_id")
    display_name: str
    email: str
    role: str
    department: str | None = None
    remaining_leave: float | None = None
    total_leave: float | None = None
    total_wfh_taken: float | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def to_user(self) -> User:
        return User(
            id=self.id,
            email=self.email,
            display_name=self.display_name,
            role=self.role,
        )


class LoginResult(_WireModel):
    access_token: str
    refresh_token: str
    employee: Employee


class CreateEmployeeRequest(_WireModel):
    display_name: str
    email: str
    role: EmployeeRole
    department: str
    total_leave: float
    remaining_leave: float
    password: str


class UpdateEmployeeRequest(_WireModel):
    display_name: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = None
    department: str | None = None
    remaining_leave: float | None = None
    total_leave: float | None = None


# --- Tenants ---


class ThemeConfig(_WireModel):
    primary_color: str | None = None
    secondary_color: str | None = None
    accent_color: str | None = None
    font_family: str | None = None
    logo_url: str | None = None


DEFAULT_THEME = ThemeConfig(
    primary_color="#3b82f6",
    secondary_color="#10b981",
    accent_color="#f59e0b",
    font_family="Inter",
)


class Tenant(_WireModel):
    id: str
    name: str
    slug: str
    theme_config: ThemeConfig | None = None


# --- Leaves ---


class LeaveStatusUpdate(_WireModel):
    status: str
    approver_id: str
    approver_role: str = "ADMIN"
    message: str | None = None

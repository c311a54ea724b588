"""Thin wrappers over the backend's business endpoints."""

from leave_client.api.auth import AuthAPI
from leave_client.api.employees import EmployeeAPI
from leave_client.api.leaves import LeaveAPI
from leave_client.api.tenants import TenantAPI

__all__ = ["AuthAPI", "EmployeeAPI", "LeaveAPI", "TenantAPI"]

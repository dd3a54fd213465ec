from __future__ import annotations

from pydantic import BaseModel


class PrivilegeOut(BaseModel):
    privilegeName: str
    serviceId: str


class UserRolesOut(BaseModel):
    """Response of `getRoles`. `missingPrivileges` is omitted (not empty) for CEP admins."""

    isSuperAdmin: bool
    isCepAdmin: bool
    missingPrivileges: list[PrivilegeOut] | None = None


class CatalogPrivilegeOut(PrivilegeOut):
    serviceName: str | None = None
    description: str | None = None


class PrivilegeCatalogOut(BaseModel):
    privileges: list[CatalogPrivilegeOut]


class ErrorBody(BaseModel):
    status: str
    code: str
    message: str
    details: dict | None = None


class ErrorOut(BaseModel):
    error: ErrorBody

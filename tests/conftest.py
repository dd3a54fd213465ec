"""
Pytest fixtures for the test suite.

Role-check tests run against ``FakeDirectory``, an in-memory stand-in for the
Directory API that records every call, so tests can assert both the decision
and which upstream reads were issued.
"""
from __future__ import annotations

import threading

import pytest

from app.cep import Privilege, load_privilege_catalog
from app.errors import UpstreamError
from app.google_auth import DirectoryUser, Role, RoleAssignment


def make_role(role_id: str, privileges, name: str | None = None) -> Role:
    """Build a Role from Privilege values and/or raw privilege dicts."""
    raw = []
    for p in privileges:
        raw.append(p.to_dict() if isinstance(p, Privilege) else p)
    return Role(role_id=role_id, role_name=name or f"role-{role_id}", privileges=tuple(raw))


class FakeDirectory:
    def __init__(
        self,
        *,
        admins: set[str] | None = None,
        assignments: dict[str, list[str]] | None = None,
        roles: dict[str, Role] | None = None,
        failing_roles: set[str] | None = None,
        fail_user_lookup: bool = False,
    ) -> None:
        self.admins = admins or set()
        self.assignments = assignments or {}
        self.roles = roles or {}
        self.failing_roles = failing_roles or set()
        self.fail_user_lookup = fail_user_lookup
        self.calls: list[tuple] = []
        self._lock = threading.Lock()

    def _record(self, *call) -> None:
        with self._lock:
            self.calls.append(call)

    def get_user(self, user_key: str) -> DirectoryUser:
        self._record("get_user", user_key)
        if self.fail_user_lookup:
            raise UpstreamError("Directory resource not found", operation="users.get", status=404)
        return DirectoryUser(user_key=user_key, is_admin=user_key in self.admins)

    def list_role_assignments(self, user_key: str, customer_id: str) -> list[RoleAssignment]:
        self._record("list_role_assignments", user_key, customer_id)
        return [RoleAssignment(user_key=user_key, role_id=r) for r in self.assignments.get(user_key, [])]

    def get_role(self, customer_id: str, role_id: str) -> Role:
        self._record("get_role", customer_id, role_id)
        if role_id in self.failing_roles or role_id not in self.roles:
            raise UpstreamError("Insufficient permissions to access the directory", operation="roles.get", status=403)
        return self.roles[role_id]

    def calls_named(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]


@pytest.fixture(scope="session")
def catalog():
    """The bundled required-privilege catalog."""
    return load_privilege_catalog()


@pytest.fixture
def fake_directory_cls():
    return FakeDirectory


@pytest.fixture(name="make_role")
def make_role_fixture():
    return make_role

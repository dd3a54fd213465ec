"""
CEP admin decision.

Given the caller's verified email, decide which tier they fall in:

1. no email                     -> AuthenticationError
2. directory ``isAdmin``        -> super admin (and therefore CEP admin); stop here
3. no role assignments          -> not a CEP admin, whole catalog missing
4. otherwise                    -> fetch every assigned role (concurrently),
                                   union their privileges, diff against the catalog

Any directory failure aborts the evaluation with ``InternalError``; a partial
answer is never returned.
"""

from __future__ import annotations

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass
import logging
from typing import Iterable, Protocol

from app.errors import AuthenticationError, InternalError, UpstreamError
from app.google_auth.directory_client import DirectoryUser, Role, RoleAssignment

from .aggregator import aggregate_privileges
from .privileges import Privilege, PrivilegeCatalog

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


class Directory(Protocol):
    def get_user(self, user_key: str) -> DirectoryUser: ...

    def list_role_assignments(self, user_key: str, customer_id: str) -> list[RoleAssignment]: ...

    def get_role(self, customer_id: str, role_id: str) -> Role: ...


@dataclass(frozen=True)
class AuthorizationResult:
    is_super_admin: bool
    is_cep_admin: bool
    missing_privileges: tuple[Privilege, ...] | None = None

    def __post_init__(self) -> None:
        if self.is_super_admin and not self.is_cep_admin:
            raise ValueError("a super admin is always a CEP admin")
        if self.is_cep_admin and self.missing_privileges is not None:
            raise ValueError("missing_privileges must be absent for a CEP admin")
        if not self.is_cep_admin and not self.missing_privileges:
            raise ValueError("a non-CEP admin must have missing privileges")

    def to_dict(self) -> dict[str, object]:
        """JSON shape of ``getRoles``; ``missingPrivileges`` only when present."""
        body: dict[str, object] = {
            "isSuperAdmin": self.is_super_admin,
            "isCepAdmin": self.is_cep_admin,
        }
        if self.missing_privileges is not None:
            body["missingPrivileges"] = [p.to_dict() for p in self.missing_privileges]
        return body


def missing_privileges(catalog: Iterable[Privilege], held: frozenset[Privilege] | set[Privilege]) -> tuple[Privilege, ...]:
    """Catalog entries not in ``held``, in catalog order."""
    return tuple(p for p in catalog if p not in held)


def _distinct_role_ids(assignments: Iterable[RoleAssignment]) -> list[str]:
    # The same role can be assigned at several org-unit scopes.
    seen: dict[str, None] = {}
    for assignment in assignments:
        seen.setdefault(assignment.role_id, None)
    return list(seen)


class CepAdminEvaluator:
    """
    Stateless between calls; one instance can serve concurrent requests.

    Usage:
        evaluator = CepAdminEvaluator(directory, catalog, customer_id="my_customer")
        result = evaluator.evaluate("admin@example.com")
    """

    def __init__(
        self,
        directory: Directory,
        catalog: PrivilegeCatalog,
        customer_id: str = "my_customer",
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self._directory = directory
        self._catalog = catalog
        self._customer_id = customer_id
        self._max_workers = max(1, max_workers)

    def evaluate(self, email: str | None) -> AuthorizationResult:
        if not email:
            logger.error("User is not authenticated")
            raise AuthenticationError("Caller identity is required")

        try:
            result = self._evaluate(email)
        except UpstreamError as e:
            logger.error(
                "Directory error checking admin roles email=%s operation=%s status=%s",
                email,
                e.operation,
                e.http_status,
            )
            raise InternalError("Unable to determine admin roles", cause=e) from e

        logger.info(
            "Determined roles email=%s isSuperAdmin=%s isCepAdmin=%s missing=%d",
            email,
            result.is_super_admin,
            result.is_cep_admin,
            len(result.missing_privileges or ()),
        )
        return result

    def _evaluate(self, email: str) -> AuthorizationResult:
        user = self._directory.get_user(email)
        if user.is_admin:
            return AuthorizationResult(is_super_admin=True, is_cep_admin=True)

        assignments = self._directory.list_role_assignments(email, self._customer_id)
        if not assignments:
            logger.debug("No role assignments email=%s", email)
            return AuthorizationResult(
                is_super_admin=False,
                is_cep_admin=False,
                missing_privileges=self._catalog.privileges,
            )

        roles = self._fetch_roles(_distinct_role_ids(assignments))
        held = aggregate_privileges(roles)
        missing = missing_privileges(self._catalog, held)
        logger.debug("email=%s roles=%d held=%d missing=%d", email, len(roles), len(held), len(missing))

        if not missing:
            return AuthorizationResult(is_super_admin=False, is_cep_admin=True)
        return AuthorizationResult(is_super_admin=False, is_cep_admin=False, missing_privileges=missing)

    def _fetch_roles(self, role_ids: list[str]) -> list[Role]:
        """Fetch all roles in parallel; the first failure cancels the rest and is raised."""
        if len(role_ids) == 1:
            return [self._directory.get_role(self._customer_id, role_ids[0])]

        executor = ThreadPoolExecutor(max_workers=min(self._max_workers, len(role_ids)))
        try:
            futures = [executor.submit(self._directory.get_role, self._customer_id, role_id) for role_id in role_ids]
            done, _pending = wait(futures, return_when=FIRST_EXCEPTION)
            for future in done:
                error = future.exception()
                if error is not None:
                    raise error
            return [future.result() for future in futures]
        finally:
            executor.shutdown(wait=True, cancel_futures=True)


def evaluate_cep_admin(
    email: str | None,
    directory: Directory,
    catalog: PrivilegeCatalog,
    customer_id: str = "my_customer",
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> AuthorizationResult:
    """Convenience wrapper around ``CepAdminEvaluator.evaluate``."""
    return CepAdminEvaluator(directory, catalog, customer_id, max_workers).evaluate(email)

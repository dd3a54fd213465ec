"""Union of privileges across a user's roles."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from app.google_auth.directory_client import Role

from .privileges import Privilege

logger = logging.getLogger(__name__)


def _to_privilege(entry: Mapping[str, Any]) -> Privilege | None:
    name = entry.get("privilegeName")
    service_id = entry.get("serviceId")
    if not isinstance(name, str) or not isinstance(service_id, str) or not name or not service_id:
        return None
    return Privilege(privilege_name=name, service_id=service_id)


def aggregate_privileges(roles: Iterable[Role]) -> frozenset[Privilege]:
    """
    Collect every (privilegeName, serviceId) pair granted by ``roles``.

    Entries missing either field are skipped: they cannot satisfy a requirement.
    No roles -> empty set.
    """

    held: set[Privilege] = set()
    for role in roles:
        for entry in role.privileges:
            privilege = _to_privilege(entry)
            if privilege is None:
                logger.debug("Skipping malformed privilege in role=%s: %r", role.role_id, entry)
                continue
            held.add(privilege)
    return frozenset(held)

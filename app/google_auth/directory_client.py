"""
Read-only client for the Google Admin SDK Directory API.

Three calls are needed to decide whether someone is a CEP admin:

    GET /users/{userKey}                                   -> isAdmin
    GET /customer/{customer}/roleassignments?userKey=...   -> items[].roleId (paged)
    GET /customer/{customer}/roles/{roleId}                -> rolePrivileges[]

Every failure (HTTP error, network error, unreadable body, credential failure)
raises ``UpstreamError`` so callers can tell "failed" apart from "empty". Nothing
is retried or cached here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Protocol
from urllib.parse import quote

import requests

from app.errors import UpstreamError

logger = logging.getLogger(__name__)

DIRECTORY_BASE = "https://admin.googleapis.com/admin/directory/v1"

_STATUS_MESSAGES = {
    401: "Directory API rejected the service credential",
    403: "Insufficient permissions to access the directory",
    404: "Directory resource not found",
    409: "Directory quota limit reached",
    429: "Too many requests to the directory",
}


def _status_message(status: int) -> str:
    if status >= 500:
        return "Directory service temporarily unavailable"
    return _STATUS_MESSAGES.get(status, f"Directory request failed with status {status}")


@dataclass(frozen=True)
class DirectoryUser:
    user_key: str
    is_admin: bool


@dataclass(frozen=True)
class RoleAssignment:
    user_key: str
    role_id: str


@dataclass(frozen=True)
class Role:
    """A directory role; ``privileges`` are the raw ``rolePrivileges`` entries."""

    role_id: str
    role_name: str | None
    privileges: tuple[Mapping[str, Any], ...]


class TokenSource(Protocol):
    def token(self) -> str: ...


class DirectoryClient:
    """
    Thin wrapper over the three Directory API reads.

    ``credentials`` is anything with a ``token()`` method returning an OAuth2
    access token (normally ``ServiceAccountCredentials``).
    """

    def __init__(self, credentials: TokenSource, *, base_url: str = DIRECTORY_BASE, timeout: float = 10.0) -> None:
        self._credentials = credentials
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def _get(self, operation: str, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        token = self._credentials.token()
        headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
        url = f"{self._base_url}{path}"
        try:
            resp = requests.get(url, headers=headers, params=params, timeout=self._timeout)
        except requests.RequestException as e:
            logger.warning("Directory %s request failed: %s", operation, type(e).__name__)
            raise UpstreamError("Directory service unreachable", operation=operation) from e

        if resp.status_code != 200:
            logger.warning("Directory %s returned status=%s", operation, resp.status_code)
            raise UpstreamError(_status_message(resp.status_code), operation=operation, status=resp.status_code)

        try:
            body = resp.json()
        except ValueError as e:
            raise UpstreamError("Directory returned an unreadable body", operation=operation, status=200) from e
        if not isinstance(body, dict):
            raise UpstreamError("Directory returned an unexpected body", operation=operation, status=200)
        return body

    @staticmethod
    def _list_field(body: Mapping[str, Any], field: str, operation: str) -> list[Any]:
        value = body.get(field)
        if value is None:
            return []
        if not isinstance(value, list):
            logger.warning("Directory %s returned a non-list %s", operation, field)
            raise UpstreamError("Directory returned an unexpected body", operation=operation, status=200)
        return value

    def get_user(self, user_key: str) -> DirectoryUser:
        body = self._get("users.get", f"/users/{quote(user_key, safe='')}")
        return DirectoryUser(user_key=user_key, is_admin=body.get("isAdmin") is True)

    def list_role_assignments(self, user_key: str, customer_id: str) -> list[RoleAssignment]:
        """
        All assignments for ``user_key``; follows ``nextPageToken``. Empty list when none.

        A page token seen twice would page forever, so it is treated as a bad reply.
        """
        operation = "roleAssignments.list"
        path = f"/customer/{quote(customer_id, safe='')}/roleassignments"
        params = {"userKey": user_key}
        assignments: list[RoleAssignment] = []
        seen_tokens: set[str] = set()

        while True:
            body = self._get(operation, path, params)
            for item in self._list_field(body, "items", operation):
                if not isinstance(item, Mapping):
                    raise UpstreamError("Directory returned an unexpected body", operation=operation, status=200)
                role_id = item.get("roleId")
                if role_id is None:
                    continue
                assignments.append(RoleAssignment(user_key=user_key, role_id=str(role_id)))

            page_token = body.get("nextPageToken")
            if not page_token:
                break
            if not isinstance(page_token, str) or page_token in seen_tokens:
                logger.warning("Directory %s returned a bad page token after %d pages", operation, len(seen_tokens) + 1)
                raise UpstreamError("Directory returned an invalid page token", operation=operation, status=200)
            seen_tokens.add(page_token)
            params = {"userKey": user_key, "pageToken": page_token}

        return assignments

    def get_role(self, customer_id: str, role_id: str) -> Role:
        path = f"/customer/{quote(customer_id, safe='')}/roles/{quote(str(role_id), safe='')}"
        body = self._get("roles.get", path)
        raw = self._list_field(body, "rolePrivileges", "roles.get")
        return Role(
            role_id=str(body.get("roleId", role_id)),
            role_name=body.get("roleName"),
            privileges=tuple(p for p in raw if isinstance(p, Mapping)),
        )

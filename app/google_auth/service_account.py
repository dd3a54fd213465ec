"""
Service account access tokens for the Admin SDK Directory API.

Background for newcomers:
    The Directory API only accepts OAuth2 access tokens. A service account
    gets one with the JWT-bearer grant: it signs a short-lived JWT assertion
    with its private key (from the JSON key file) and posts it to Google's
    token endpoint. To read Workspace users and roles the service account must
    act on behalf of a Workspace admin (``sub`` claim), which requires
    domain-wide delegation to be granted for the read-only scopes below in the
    Admin console.

Only the two read-only scopes are ever requested.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jwt
import requests

from app.errors import UpstreamError

from .config import GoogleAuthConfig

logger = logging.getLogger(__name__)

DIRECTORY_SCOPES = (
    "https://www.googleapis.com/auth/admin.directory.user.readonly",
    "https://www.googleapis.com/auth/admin.directory.rolemanagement.readonly",
)
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_LIFETIME_SECONDS = 3600


@dataclass(frozen=True)
class ServiceAccountKey:
    client_email: str
    private_key: str
    token_uri: str = DEFAULT_TOKEN_URI
    private_key_id: str | None = None

    @classmethod
    def from_file(cls, path: str | Path) -> ServiceAccountKey:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ServiceAccountKey:
        if raw.get("type", "service_account") != "service_account":
            raise ValueError("credentials file is not a service account key")
        email = raw.get("client_email")
        key = raw.get("private_key")
        if not email or not key:
            raise ValueError("service account key requires client_email and private_key")
        return cls(
            client_email=str(email),
            private_key=str(key),
            token_uri=str(raw.get("token_uri") or DEFAULT_TOKEN_URI),
            private_key_id=raw.get("private_key_id"),
        )


def build_assertion(key: ServiceAccountKey, subject: str | None, scopes: tuple[str, ...], now: int | None = None) -> str:
    """Sign the JWT-bearer assertion exchanged for an access token."""
    issued_at = int(time.time()) if now is None else now
    claims: dict[str, Any] = {
        "iss": key.client_email,
        "scope": " ".join(scopes),
        "aud": key.token_uri,
        "iat": issued_at,
        "exp": issued_at + ASSERTION_LIFETIME_SECONDS,
    }
    if subject:
        claims["sub"] = subject
    headers = {"kid": key.private_key_id} if key.private_key_id else None
    return jwt.encode(claims, key.private_key, algorithm="RS256", headers=headers)


def _request_access_token(key: ServiceAccountKey, subject: str | None, timeout: float) -> tuple[str, int]:
    """Returns (access_token, expires_in_seconds)."""
    data = {
        "grant_type": JWT_BEARER_GRANT,
        "assertion": build_assertion(key, subject, DIRECTORY_SCOPES),
    }
    try:
        resp = requests.post(key.token_uri, data=data, timeout=timeout)
    except requests.RequestException as e:
        raise UpstreamError("Token endpoint unreachable", operation="token", status=None) from e
    if resp.status_code != 200:
        # Body may echo the assertion's claims; keep it out of logs.
        logger.warning("Service account token request failed status=%s", resp.status_code)
        raise UpstreamError("Service account token request rejected", operation="token", status=resp.status_code)
    try:
        body = resp.json()
    except ValueError as e:
        raise UpstreamError("Invalid token response", operation="token", status=resp.status_code) from e
    if not isinstance(body, dict):
        raise UpstreamError("Invalid token response", operation="token", status=resp.status_code)
    access_token = body.get("access_token")
    if not access_token or not isinstance(access_token, str):
        raise UpstreamError("No access_token in token response", operation="token", status=resp.status_code)
    try:
        expires_in = int(body.get("expires_in", 3600))
    except (TypeError, ValueError) as e:
        raise UpstreamError("Invalid expires_in in token response", operation="token", status=resp.status_code) from e
    return access_token, expires_in


class ServiceAccountCredentials:
    """
    Caches the Directory API access token until shortly before it expires.

    Shared by all requests (and by the concurrent role fetches inside one request),
    hence the lock.
    """

    def __init__(self, key: ServiceAccountKey, subject: str | None = None, timeout: float = 10.0) -> None:
        self._key = key
        self._subject = subject
        self._timeout = timeout
        self._token: str | None = None
        self._expires_at: float = 0.0
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: GoogleAuthConfig, timeout: float = 10.0) -> ServiceAccountCredentials:
        if not config.credentials_path:
            raise ValueError("GOOGLE_APPLICATION_CREDENTIALS required for Directory API access")
        key = ServiceAccountKey.from_file(config.credentials_path)
        return cls(key, subject=config.delegated_admin, timeout=timeout)

    @property
    def service_account_email(self) -> str:
        return self._key.client_email

    def token(self) -> str:
        with self._lock:
            now = time.monotonic()
            if self._token and now < self._expires_at:
                return self._token
            self._token, expires_in = _request_access_token(self._key, self._subject, self._timeout)
            # Refresh 5 min early (tokens are usually valid ~1 hour)
            self._expires_at = now + max(expires_in - 300, 60)
            logger.debug("Directory access token refreshed for %s", self._key.client_email)
            return self._token

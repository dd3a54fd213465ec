"""Configuration from environment variables. No hardcoded secrets."""

from __future__ import annotations

import os
from dataclasses import dataclass

# Firebase signs ID tokens with the securetoken service account; its public keys are
# published as a JWKS document.
FIREBASE_JWKS_URI = "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"
FIREBASE_ISSUER_PREFIX = "https://securetoken.google.com/"


def _getenv(key: str, default: str | None = None) -> str | None:
    return os.environ.get(key, default)


def _getenv_int(key: str, default: int) -> int:
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class GoogleAuthConfig:
    """
    Firebase / Google Workspace configuration from environment.

    Required (for caller validation):
        FIREBASE_PROJECT_ID: Firebase project id; used as audience and issuer suffix.
            Falls back to GOOGLE_CLOUD_PROJECT when unset.

    For Directory API calls:
        GOOGLE_APPLICATION_CREDENTIALS: Path to the service account JSON key.
        DIRECTORY_DELEGATED_ADMIN: Optional; Workspace admin the service account
            impersonates (domain-wide delegation).

    Optional:
        CLOCK_SKEW_SECONDS: Seconds of tolerance for exp/iat (default 120).
        JWKS_CACHE_TTL_SECONDS: How long to cache the signing keys (default 3600).
    """

    project_id: str
    clock_skew_seconds: int
    jwks_cache_ttl_seconds: int
    credentials_path: str | None
    delegated_admin: str | None

    @property
    def expected_audience(self) -> str:
        return self.project_id

    @property
    def issuer(self) -> str:
        return f"{FIREBASE_ISSUER_PREFIX}{self.project_id}"

    @property
    def jwks_uri(self) -> str:
        return FIREBASE_JWKS_URI

    @classmethod
    def from_environ(cls) -> GoogleAuthConfig:
        project = _strip_or_none(_getenv("FIREBASE_PROJECT_ID")) or _strip_or_none(_getenv("GOOGLE_CLOUD_PROJECT"))
        if not project:
            raise _config_error("FIREBASE_PROJECT_ID (or GOOGLE_CLOUD_PROJECT) must be set")
        return cls(
            project_id=project,
            clock_skew_seconds=_getenv_int("CLOCK_SKEW_SECONDS", 120),
            jwks_cache_ttl_seconds=_getenv_int("JWKS_CACHE_TTL_SECONDS", 3600),
            credentials_path=_strip_or_none(_getenv("GOOGLE_APPLICATION_CREDENTIALS")),
            delegated_admin=_strip_or_none(_getenv("DIRECTORY_DELEGATED_ADMIN")),
        )


def _strip_or_none(s: str | None) -> str | None:
    if s is None:
        return None
    t = s.strip()
    return t if t else None


def _config_error(msg: str) -> Exception:
    return ValueError(msg)

"""
Signing-key cache for Firebase ID tokens.

Firebase signs ID tokens with keys that rotate every few hours. Google publishes
the current keys as a JWKS document and advertises how long it may be cached via
``Cache-Control: max-age``. We honour that header when present and fall back to
the configured TTL otherwise. An unknown ``kid`` forces one refresh before the
token is rejected, at most once per ``MIN_FORCED_REFRESH_SECONDS``.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from typing import Any

import requests
from jwt import PyJWK

logger = logging.getLogger(__name__)

_MAX_AGE_RE = re.compile(r"max-age=(\d+)")

MIN_FORCED_REFRESH_SECONDS = 30.0


def _max_age(headers: Any) -> int | None:
    cache_control = headers.get("Cache-Control") if headers else None
    if not isinstance(cache_control, str):
        return None
    match = _MAX_AGE_RE.search(cache_control)
    return int(match.group(1)) if match else None


class JWKSCache:
    """In-memory JWKS cache keyed by expiry; safe to share between request threads."""

    def __init__(
        self,
        jwks_uri: str,
        ttl_seconds: int,
        min_forced_refresh_seconds: float = MIN_FORCED_REFRESH_SECONDS,
    ) -> None:
        self._uri = jwks_uri
        self._ttl = ttl_seconds
        self._min_forced_refresh = min_forced_refresh_seconds
        self._keys: dict[str, dict[str, Any]] = {}
        self._expires_at: float = 0.0
        self._last_forced_refresh: float | None = None
        self._lock = threading.Lock()

    def _refresh(self) -> None:
        resp = requests.get(self._uri, timeout=10)
        resp.raise_for_status()
        body = resp.json()
        self._keys = {k["kid"]: k for k in body.get("keys") or [] if k.get("kid")}
        ttl = _max_age(resp.headers)
        self._expires_at = time.monotonic() + (ttl if ttl is not None else self._ttl)
        logger.debug("JWKS refreshed uri=%s keys=%d", self._uri, len(self._keys))

    def _may_force_refresh(self) -> bool:
        now = time.monotonic()
        if self._last_forced_refresh is not None and now - self._last_forced_refresh < self._min_forced_refresh:
            return False
        self._last_forced_refresh = now
        return True

    def get_signing_key(self, kid: str) -> PyJWK | None:
        """Return the JWK for ``kid``, refreshing on a miss when allowed; None if still unknown."""
        with self._lock:
            if not self._keys or time.monotonic() >= self._expires_at:
                self._refresh()
            key = self._keys.get(kid)
            if key is None and self._may_force_refresh():
                logger.info("kid not in cached JWKS; refreshing for possible key rotation")
                self._refresh()
                key = self._keys.get(kid)
        return PyJWK.from_dict(key) if key is not None else None

"""
Validate a Firebase-issued ID token and extract the caller identity.

Background for newcomers:
    The admin console signs users in with Firebase Authentication (Google
    provider) and sends ``Authorization: Bearer <ID token>`` to this API. The
    ID token is a JWT signed by Google. Before trusting the email inside it we
    must:

    1. Verify the **signature** against Google's published keys (RS256).
    2. Check the **issuer** is ``https://securetoken.google.com/<project>``.
    3. Check the **audience** is our Firebase project id.
    4. Check it hasn't **expired** (``exp``) and was issued in the past (``iat``).

    Only then is the ``email`` claim handed to the role check.
"""

from __future__ import annotations

import logging
from typing import Any

import jwt
import requests

from .config import GoogleAuthConfig
from .context import CallerIdentity
from .jwks_cache import JWKSCache

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when token validation fails. Do not log the token."""

    pass


def _get_kid(token: str) -> str | None:
    """Read ``kid`` from the JWT header without validating the token."""
    try:
        header = jwt.get_unverified_header(token)
        return header.get("kid") if isinstance(header, dict) else None
    except jwt.PyJWTError:
        return None


def _extract_identity(payload: dict[str, Any]) -> CallerIdentity:
    """
    Build a ``CallerIdentity`` from a validated ID token payload.

    Firebase puts the uid in both ``user_id`` and ``sub``. ``email`` is present for
    Google sign-in; ``email_verified`` is a bool claim.
    """

    uid = payload.get("user_id") or payload.get("sub") or ""

    email = payload.get("email")
    email = str(email).strip() if email else None

    name = payload.get("name")
    return CallerIdentity(
        uid=str(uid),
        email=email or None,
        email_verified=payload.get("email_verified") is True,
        name=str(name) if name is not None else None,
    )


class FirebaseTokenValidator:
    """
    Validates Firebase ID tokens and extracts the caller identity.

    Holds a ``JWKSCache`` so one instance should be reused across requests.
    """

    def __init__(self, config: GoogleAuthConfig | None = None) -> None:
        self._config = config or GoogleAuthConfig.from_environ()
        self._jwks = JWKSCache(
            self._config.jwks_uri,
            self._config.jwks_cache_ttl_seconds,
        )

    def validate_and_extract(self, token: str) -> CallerIdentity:
        """
        Validate the ID token and return the caller identity.

        Raises ValidationError if signature, issuer, audience or lifetime checks fail,
        or if the token has no subject.
        """
        kid = _get_kid(token)
        if not kid:
            logger.debug("Token missing or invalid kid")
            raise ValidationError("Invalid token: missing key id")

        try:
            signing_key = self._jwks.get_signing_key(kid)
        except requests.RequestException as e:
            logger.warning("Could not fetch signing keys: %s", type(e).__name__)
            raise ValidationError("Signing keys unavailable") from e
        if signing_key is None:
            logger.debug("No signing key found for kid")
            raise ValidationError("Invalid token: unknown signing key")

        try:
            payload = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self._config.expected_audience,
                issuer=self._config.issuer,
                leeway=self._config.clock_skew_seconds,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            logger.info("Token expired")
            raise ValidationError("Token expired") from e
        except jwt.InvalidIssuerError as e:
            logger.info("Token invalid issuer")
            raise ValidationError("Invalid token: issuer") from e
        except jwt.InvalidAudienceError as e:
            logger.info("Token invalid audience")
            raise ValidationError("Invalid token: audience") from e
        except jwt.InvalidTokenError as e:
            logger.info("Token invalid: %s", type(e).__name__)
            raise ValidationError("Invalid token") from e

        return _extract_identity(payload)

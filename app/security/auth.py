from __future__ import annotations

import logging

from fastapi import Request

from app.errors import AuthenticationError
from app.google_auth import CallerIdentity, FirebaseTokenValidator, ValidationError

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer"


def extract_bearer_token(request: Request) -> str:
    """
    Read the Firebase ID token from `Authorization: Bearer <token>`.

    Missing, malformed or empty headers all mean the caller is unauthenticated.
    """

    raw = request.headers.get(AUTHORIZATION_HEADER)
    if not raw:
        logger.info("Missing Authorization header path=%s method=%s", request.url.path, request.method)
        raise AuthenticationError("Authentication required")

    scheme, _, token = raw.partition(" ")
    if scheme.lower() != BEARER_PREFIX.lower():
        logger.warning("Invalid Authorization header format path=%s method=%s", request.url.path, request.method)
        raise AuthenticationError(f"Invalid {AUTHORIZATION_HEADER}. Expected '{BEARER_PREFIX} <token>'.")

    token = token.strip()
    if not token:
        logger.warning("Empty bearer token path=%s method=%s", request.url.path, request.method)
        raise AuthenticationError(f"Invalid {AUTHORIZATION_HEADER}. Missing token after '{BEARER_PREFIX}'.")
    return token


def authenticate(token: str, validator: FirebaseTokenValidator) -> CallerIdentity:
    """Validate the token; the caller must come with a verified email to be looked up."""
    try:
        identity = validator.validate_and_extract(token)
    except ValidationError as exc:
        raise AuthenticationError(str(exc)) from exc

    if not identity.email:
        logger.warning("Token for uid=%s carries no email", identity.uid)
        raise AuthenticationError("Token does not carry an email address")
    # The email becomes the directory userKey; only a verified one may be used.
    if not identity.email_verified:
        logger.warning("Token for uid=%s carries an unverified email", identity.uid)
        raise AuthenticationError("Email address not verified")
    return identity

"""Verified caller identity produced after validating a Firebase ID token."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CallerIdentity:
    """
    Who is calling ``getRoles``.

    Only ``email`` takes part in the role check; it is the directory ``userKey``.
    """

    uid: str
    """Firebase user id (``user_id`` / ``sub`` claim)."""

    email: str | None
    """Email asserted by the identity provider; None when the token carries none."""

    email_verified: bool = False

    name: str | None = None
    """Display name; for logs only."""

"""
Error taxonomy for the CEP admin role check.

Every error the service surfaces to a caller derives from ``CepAdminError``.
The exception handler registered in ``app.main`` turns these into the JSON
error body returned by ``POST /getRoles``:

    {"error": {"status": "INTERNAL", "code": "internal", "message": "...", "details": {...}}}

Callers must treat any error as "unable to determine role", never as a
denial.
"""

from __future__ import annotations

from typing import Any


class CepAdminError(Exception):
    status_code: int = 500
    code: str = "internal"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    @property
    def status(self) -> str:
        return self.code.upper()

    def details(self) -> dict[str, Any] | None:
        return None


class AuthenticationError(CepAdminError):
    """Caller identity could not be established. Terminal, never retried."""

    status_code = 401
    code = "unauthenticated"


class UpstreamError(CepAdminError):
    """A Directory API call (or the credential exchange behind it) failed."""

    status_code = 500
    code = "internal"

    def __init__(self, message: str, *, operation: str, status: int | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.http_status = status

    def details(self) -> dict[str, Any]:
        return {"operation": self.operation, "status": self.http_status, "message": self.message}


class InternalError(CepAdminError):
    """Wraps an upstream failure; keeps the original cause for diagnostics."""

    status_code = 500
    code = "internal"

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause

    def details(self) -> dict[str, Any] | None:
        if self.cause is None:
            return None
        if isinstance(self.cause, UpstreamError):
            return {"cause": self.cause.details()}
        return {"cause": {"type": type(self.cause).__name__, "message": str(self.cause)}}

"""
Google identity and directory access.

- Validate Firebase ID tokens and extract the caller's email (``FirebaseTokenValidator``).
- Mint Directory API access tokens from a service account key (``ServiceAccountCredentials``).
- Read users, role assignments and roles from the Admin SDK (``DirectoryClient``).

Apart from ``app.errors`` this package has no dependency on other app packages.
"""

from .config import GoogleAuthConfig
from .context import CallerIdentity
from .directory_client import DirectoryClient, DirectoryUser, Role, RoleAssignment
from .service_account import DIRECTORY_SCOPES, ServiceAccountCredentials, ServiceAccountKey
from .validator import FirebaseTokenValidator, ValidationError

__all__ = [
    "GoogleAuthConfig",
    "CallerIdentity",
    "DirectoryClient",
    "DirectoryUser",
    "Role",
    "RoleAssignment",
    "DIRECTORY_SCOPES",
    "ServiceAccountCredentials",
    "ServiceAccountKey",
    "FirebaseTokenValidator",
    "ValidationError",
]

"""Domain Services for user management.

- Credential Validator: field rules for registration, creation and updates
- User Authentication: registration, login, logout, refresh and profile
- Token Issuer: opaque bearer tokens, one live token per user
- User Management: listing and CRUD with audit records
"""

from .validation import CredentialValidator, ValidationMode, ValidationResult
from .auth.token import TokenIssuer
from .auth.user_authentication import AuthenticatedSession, UserAuthenticationService
from .user_management import UserManagementService

__all__ = [
    "CredentialValidator",
    "ValidationMode",
    "ValidationResult",
    "TokenIssuer",
    "AuthenticatedSession",
    "UserAuthenticationService",
    "UserManagementService",
]

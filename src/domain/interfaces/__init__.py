"""Domain Interfaces for dependency inversion.

Services depend on these contracts; the infrastructure layer provides the
SQL-backed repositories and the structured-log audit trail.
"""

# Repository interfaces
from .repositories import IAccessTokenRepository, IUserRepository

# Service interfaces
from .services import IAuditTrail

__all__ = [
    # Repository interfaces
    "IUserRepository",
    "IAccessTokenRepository",

    # Service interfaces
    "IAuditTrail",
]

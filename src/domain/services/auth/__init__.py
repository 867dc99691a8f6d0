from .token import TokenIssuer
from .user_authentication import AuthenticatedSession, UserAuthenticationService

__all__ = [
    "UserAuthenticationService",
    "AuthenticatedSession",
    "TokenIssuer",
]

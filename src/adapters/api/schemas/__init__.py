"""Request and response models shared by the API routers."""

from .auth import AuthData, LoginRequest
from .user import Location, UserOut, UserPayload

__all__ = ["AuthData", "LoginRequest", "Location", "UserOut", "UserPayload"]

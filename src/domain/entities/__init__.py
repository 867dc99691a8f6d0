"""Export domain entities for use across the application.

Importing this package registers both tables on `SQLModel.metadata`.
"""

from .access_token import AccessToken
from .user import Role, User

__all__ = ["User", "Role", "AccessToken"]

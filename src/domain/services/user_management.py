"""User CRUD use cases."""

from typing import Any, Mapping, Optional

from structlog import get_logger

from src.core.exceptions import UserNotFoundError
from src.domain.entities.user import User
from src.domain.events.audit_events import AuditAction, ChangeRecord
from src.domain.interfaces.repositories import IUserRepository
from src.domain.interfaces.services import IAuditTrail
from src.domain.services.auth.user_authentication import build_user, user_snapshot
from src.domain.services.validation import CredentialValidator, ValidationMode
from src.domain.value_objects.pagination import Page, PageRequest, SortSpec, UserFilters
from src.utils.security import hash_password

logger = get_logger(__name__)


class UserManagementService:
    """Lists, reads, creates, updates and deletes users.

    Every mutation is validated first and reported to the audit trail after
    it commits, with before/after values of the changed fields.
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        validator: CredentialValidator,
        audit: IAuditTrail,
    ):
        self.user_repository = user_repository
        self.validator = validator
        self.audit = audit

    async def list(
        self,
        filters: UserFilters,
        sort: SortSpec,
        page: PageRequest,
    ) -> Page[User]:
        result = await self.user_repository.list(filters, sort, page)
        logger.info(
            "users_listed",
            total=result.total,
            per_page=page.per_page,
            current_page=page.page,
            role=int(filters.role) if filters.role is not None else None,
            search=filters.search,
            sort_by=sort.column,
            sort_order=sort.direction,
        )
        return result

    async def get(self, user_id: int) -> User:
        """Return the user with `user_id`.

        Raises:
            UserNotFoundError: If no such user exists.
        """
        user = await self.user_repository.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    async def create(self, payload: Mapping[str, Any], actor_id: Optional[int] = None) -> User:
        """Create a user without signing them in.

        Raises:
            ValidationError: If any field rule fails.
            DuplicateEmailError: If a concurrent request took the email.
        """
        data = (await self.validator.validate(payload, ValidationMode.CREATE)).raise_for_errors()
        user = await self.user_repository.save(build_user(data))

        self.audit.record(
            ChangeRecord.diff(
                AuditAction.CREATED,
                user.id,
                before={},
                after=user_snapshot(user),
                fields=list(data),
                actor_id=actor_id,
            )
        )
        return user

    async def update(
        self, user_id: int, payload: Mapping[str, Any], actor_id: Optional[int] = None
    ) -> User:
        """Apply the supplied fields of `payload` to the user.

        Raises:
            UserNotFoundError: If no such user exists.
            ValidationError: If a supplied field breaks a rule.
        """
        user = await self.get(user_id)
        result = await self.validator.validate(
            payload, ValidationMode.UPDATE, target_user_id=user.id
        )
        data = result.raise_for_errors()

        before = user_snapshot(user)
        for name, value in data.items():
            if name == "password":
                value = hash_password(value)
            elif name == "role":
                value = int(value)
            setattr(user, name, value)
        user.touch()

        user = await self.user_repository.save(user)
        self.audit.record(
            ChangeRecord.diff(
                AuditAction.UPDATED,
                user.id,
                before=before,
                after=user_snapshot(user),
                fields=list(data),
                actor_id=actor_id,
            )
        )
        return user

    async def delete(self, user_id: int, actor_id: Optional[int] = None) -> None:
        """Hard-delete the user.

        Raises:
            UserNotFoundError: If no such user exists, including when it was
                already deleted by an earlier request.
        """
        user = await self.get(user_id)
        snapshot = user_snapshot(user)
        await self.user_repository.delete(user)

        self.audit.record(
            ChangeRecord.diff(
                AuditAction.DELETED,
                user_id,
                before=snapshot,
                after={},
                fields=list(snapshot),
                actor_id=actor_id,
            )
        )

"""Field-level validation of user payloads.

`CredentialValidator` checks registration, create and update payloads and
returns every violated rule per field instead of stopping at the first one.
A successful result carries a new, normalized payload (typed values, the
canonical email) that services persist as is; the submitted mapping is never
modified.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional
from zoneinfo import available_timezones

from structlog import get_logger

from src.core.exceptions import ValidationError
from src.domain.entities.user import Role
from src.domain.interfaces.repositories import IUserRepository
from src.domain.value_objects.email import INVALID_EMAIL, is_valid_email, normalize_email

logger = get_logger(__name__)

NAME_PATTERN = re.compile(r"^[a-zA-Z\s\-'.]+$")
PASSWORD_SYMBOLS = "@$!%*?&"
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]")
PASSWORD_MIN_LENGTH = 8
MAX_STRING_LENGTH = 255
EARLIEST_BIRTH_DATE = date(1900, 1, 1)

USER_FIELDS = (
    "first_name",
    "last_name",
    "role",
    "email",
    "password",
    "latitude",
    "longitude",
    "date_of_birth",
    "timezone",
)

ATTRIBUTE_NAMES = {
    "first_name": "first name",
    "last_name": "last name",
    "date_of_birth": "date of birth",
}

MESSAGES = {
    "first_name.regex": "The first name may only contain letters, spaces, hyphens, apostrophes, and periods.",
    "last_name.regex": "The last name may only contain letters, spaces, hyphens, apostrophes, and periods.",
    "role.in": "The selected role is invalid. Must be 1 (Admin), 2 (Supervisor), or 3 (Agent).",
    "email.email": "The email must be a valid email address.",
    "email.unique": "The email has already been taken.",
    "password.regex": (
        "The password must contain at least one uppercase letter, one lowercase letter, "
        "one digit, and one special character."
    ),
    "latitude.between": "The latitude must be between -90 and 90 degrees.",
    "longitude.between": "The longitude must be between -180 and 180 degrees.",
    "date_of_birth.before": "The date of birth must be before today.",
    "date_of_birth.after": "The date of birth must be after 1900-01-01.",
    "timezone.timezone": "The timezone must be a valid timezone identifier.",
}

DEFAULT_MESSAGES = {
    "required": "The {attribute} field is required.",
    "string": "The {attribute} field must be a string.",
    "max": "The {attribute} field must not be greater than {max} characters.",
    "min": "The {attribute} field must be at least {min} characters.",
    "integer": "The {attribute} field must be an integer.",
    "numeric": "The {attribute} field must be a number.",
    "date": "The {attribute} field must be a valid date.",
}


class ValidationMode(str, Enum):
    """CREATE requires every field; UPDATE checks only the supplied ones."""

    CREATE = "create"
    UPDATE = "update"


@dataclass(frozen=True)
class ValidationResult:
    """Either a normalized payload (`ok`) or field-keyed error messages."""

    data: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> Dict[str, Any]:
        """Return the normalized payload or raise `ValidationError`."""
        if self.errors:
            raise ValidationError(self.errors)
        return self.data


@lru_cache(maxsize=1)
def known_timezones() -> FrozenSet[str]:
    return frozenset(available_timezones())


def message(field_name: str, rule: str, **params: Any) -> str:
    """Return the custom message for `field_name.rule` or the default wording."""
    custom = MESSAGES.get(f"{field_name}.{rule}")
    if custom:
        return custom
    attribute = ATTRIBUTE_NAMES.get(field_name, field_name)
    return DEFAULT_MESSAGES[rule].format(attribute=attribute, **params)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_integer(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r"\s*[+-]?\d+\s*", value):
        return int(value)
    return None


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            return None
    return None


class CredentialValidator:
    """Validates user payloads and produces field-keyed errors.

    Validation has no side effects. The only store access is the read-only
    email uniqueness pre-check; the store's unique constraint remains the final
    authority when two requests race for the same address.

    Attributes:
        user_repository: Used for the uniqueness lookup.
        check_deliverability: Require the email domain to resolve in DNS.
        today: Returns the reference date for birth-date checks.
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        check_deliverability: bool = False,
        today: Callable[[], date] = date.today,
    ):
        self.user_repository = user_repository
        self.check_deliverability = check_deliverability
        self.today = today

    async def validate(
        self,
        payload: Mapping[str, Any],
        mode: ValidationMode = ValidationMode.CREATE,
        target_user_id: Optional[int] = None,
    ) -> ValidationResult:
        """Check `payload` against every user field rule.

        Args:
            payload: Submitted fields. Unknown keys are ignored.
            mode: CREATE requires all fields, UPDATE only checks supplied ones.
            target_user_id: The user being updated, who may keep their email.

        Returns:
            ValidationResult: normalized data, or every violated rule per field.
        """
        errors: Dict[str, List[str]] = {}
        data: Dict[str, Any] = {}

        for name in USER_FIELDS:
            if name not in payload and mode is ValidationMode.UPDATE:
                continue
            value = payload.get(name)
            if _is_blank(value):
                errors[name] = [message(name, "required")]
                continue

            checker = getattr(self, f"_check_{name}", None) or self._check_name
            field_errors: List[str] = []
            normalized = checker(name, value, field_errors)
            if name == "email" and not field_errors:
                await self._check_email_unique(normalized, target_user_id, field_errors)

            if field_errors:
                errors[name] = field_errors
            else:
                data[name] = normalized

        if errors:
            logger.info("payload_validation_failed", mode=mode.value, fields=sorted(errors))
            return ValidationResult(errors=errors)
        return ValidationResult(data=data)

    def validate_login(self, payload: Mapping[str, Any]) -> ValidationResult:
        """Check that a login payload carries a string email and password.

        The email is only checked for presence and type here; an address that
        matches no user fails later with the uniform credentials message.
        """
        errors: Dict[str, List[str]] = {}
        data: Dict[str, Any] = {}
        for name in ("email", "password"):
            value = payload.get(name)
            if _is_blank(value):
                errors[name] = [message(name, "required")]
            elif not isinstance(value, str):
                errors[name] = [message(name, "string")]
            else:
                data[name] = value
        if errors:
            return ValidationResult(errors=errors)
        return ValidationResult(data=data)

    # ------------------------------------------------------------------
    # Field rules
    # ------------------------------------------------------------------

    def _check_name(self, name: str, value: Any, errors: List[str]) -> Optional[str]:
        if not isinstance(value, str):
            errors.append(message(name, "string"))
            return None
        if len(value) > MAX_STRING_LENGTH:
            errors.append(message(name, "max", max=MAX_STRING_LENGTH))
        if not NAME_PATTERN.match(value):
            errors.append(message(name, "regex"))
        return value

    def _check_role(self, name: str, value: Any, errors: List[str]) -> Optional[Role]:
        role = _as_integer(value)
        if role is None:
            errors.append(message(name, "integer"))
            errors.append(message(name, "in"))
            return None
        if role not in Role.values():
            errors.append(message(name, "in"))
            return None
        return Role(role)

    def _check_email(self, name: str, value: Any, errors: List[str]) -> Optional[str]:
        if not isinstance(value, str):
            errors.append(message(name, "string"))
            return None
        email = normalize_email(value)
        if email == INVALID_EMAIL or (
            self.check_deliverability
            and not is_valid_email(email, check_deliverability=True)
        ):
            errors.append(message(name, "email"))
        if len(email) > MAX_STRING_LENGTH:
            errors.append(message(name, "max", max=MAX_STRING_LENGTH))
        return email

    async def _check_email_unique(
        self, email: str, target_user_id: Optional[int], errors: List[str]
    ) -> None:
        existing = await self.user_repository.get_by_email(email)
        if existing is not None and existing.id != target_user_id:
            errors.append(message("email", "unique"))

    def _check_password(self, name: str, value: Any, errors: List[str]) -> Optional[str]:
        if not isinstance(value, str):
            errors.append(message(name, "string"))
            return None
        if len(value) < PASSWORD_MIN_LENGTH:
            errors.append(message(name, "min", min=PASSWORD_MIN_LENGTH))
        if not PASSWORD_PATTERN.match(value):
            errors.append(message(name, "regex"))
        return value

    def _check_latitude(self, name: str, value: Any, errors: List[str]) -> Optional[float]:
        return self._check_between(name, value, -90.0, 90.0, errors)

    def _check_longitude(self, name: str, value: Any, errors: List[str]) -> Optional[float]:
        return self._check_between(name, value, -180.0, 180.0, errors)

    def _check_between(
        self, name: str, value: Any, low: float, high: float, errors: List[str]
    ) -> Optional[float]:
        number = _as_number(value)
        if number is None:
            errors.append(message(name, "numeric"))
            errors.append(message(name, "between"))
            return None
        if not low <= number <= high:
            errors.append(message(name, "between"))
        return number

    def _check_date_of_birth(self, name: str, value: Any, errors: List[str]) -> Optional[date]:
        born = _as_date(value)
        if born is None:
            errors.append(message(name, "date"))
            errors.append(message(name, "before"))
            errors.append(message(name, "after"))
            return None
        if born >= self.today():
            errors.append(message(name, "before"))
        if born <= EARLIEST_BIRTH_DATE:
            errors.append(message(name, "after"))
        return born

    def _check_timezone(self, name: str, value: Any, errors: List[str]) -> Optional[str]:
        if not isinstance(value, str):
            errors.append(message(name, "string"))
            errors.append(message(name, "timezone"))
            return None
        if value not in known_timezones():
            errors.append(message(name, "timezone"))
        return value

"""Audit change records.

A `ChangeRecord` describes one mutation of a user as field-level before/after
values. Services build one after every successful mutation and hand it to the
audit trail; password values never enter a record.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

REDACTED = "[REDACTED]"
SENSITIVE_FIELDS = frozenset({"password"})


class AuditAction(str, Enum):
    CREATED = "created"
    REGISTERED = "registered"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True)
class FieldChange:
    before: Any
    after: Any


@dataclass(frozen=True)
class ChangeRecord:
    """A single audited mutation.

    Attributes:
        action: What happened to the entity.
        entity_id: Primary key of the affected user.
        changes: Field name to before/after values; sensitive values redacted.
        actor_id: Authenticated user who performed the change, if any.
        occurred_at: When the change was committed.
    """

    action: AuditAction
    entity_id: int
    changes: Dict[str, FieldChange] = field(default_factory=dict)
    actor_id: Optional[int] = None
    entity: str = "user"
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def changed_fields(self) -> List[str]:
        return list(self.changes)

    def before(self) -> Dict[str, Any]:
        return {name: change.before for name, change in self.changes.items()}

    def after(self) -> Dict[str, Any]:
        return {name: change.after for name, change in self.changes.items()}

    @classmethod
    def diff(
        cls,
        action: AuditAction,
        entity_id: int,
        before: Mapping[str, Any],
        after: Mapping[str, Any],
        fields: Iterable[str],
        actor_id: Optional[int] = None,
    ) -> "ChangeRecord":
        """Build a record for `fields`, redacting sensitive values."""
        changes = {}
        for name in fields:
            if name in SENSITIVE_FIELDS:
                changes[name] = FieldChange(REDACTED, REDACTED)
            else:
                changes[name] = FieldChange(before.get(name), after.get(name))
        return cls(action=action, entity_id=entity_id, changes=changes, actor_id=actor_id)

"""Audit trail backed by the structured application log."""

from typing import Any, Dict

import structlog

from src.domain.events.audit_events import AuditAction, ChangeRecord
from src.domain.interfaces.services import IAuditTrail

logger = structlog.get_logger("userdesk.audit")

_EVENTS = {
    AuditAction.CREATED: "user_created",
    AuditAction.REGISTERED: "user_registered",
    AuditAction.UPDATED: "user_updated",
    AuditAction.DELETED: "user_deleted",
}


class StructlogAuditTrail(IAuditTrail):
    """Writes each change record as one structured log event.

    Deletions are logged at warning level so they stand out in log search.
    A failure to write the record is logged and never propagates into the
    request that caused the change, since the change is already committed.
    """

    def record(self, change: ChangeRecord) -> None:
        try:
            fields: Dict[str, Any] = {
                "entity": change.entity,
                "entity_id": change.entity_id,
                "actor_id": change.actor_id,
                "occurred_at": change.occurred_at.isoformat(),
            }
            if change.action is AuditAction.UPDATED:
                fields["updated_fields"] = change.changed_fields
                fields["original_data"] = change.before()
                fields["new_data"] = change.after()
                logger.info(_EVENTS[change.action], **fields)
            elif change.action is AuditAction.DELETED:
                fields["deleted_user_data"] = change.before()
                logger.warning(_EVENTS[change.action], **fields)
            else:
                fields["fields"] = change.changed_fields
                fields["values"] = change.after()
                logger.info(_EVENTS[change.action], **fields)
        except Exception as exc:
            logger.error(
                "audit_record_failed",
                action=getattr(change, "action", None),
                entity_id=getattr(change, "entity_id", None),
                error=str(exc),
            )

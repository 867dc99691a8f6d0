"""Domain Events.

Audit events describe a change to a user record: who made it, which fields
moved and their values on either side, with secrets already redacted.
"""

from .audit_events import REDACTED, SENSITIVE_FIELDS, AuditAction, ChangeRecord, FieldChange

__all__ = [
    "REDACTED",
    "SENSITIVE_FIELDS",
    "AuditAction",
    "ChangeRecord",
    "FieldChange",
]

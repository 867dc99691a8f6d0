"""Infrastructure Services.

Concrete implementations of domain service interfaces that deal with
technical concerns. The audit trail writes change records through structlog.
"""

from .audit import StructlogAuditTrail

__all__ = ["StructlogAuditTrail"]

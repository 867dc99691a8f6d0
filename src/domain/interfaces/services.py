"""Service interfaces for domain services.

These interfaces define contracts for collaborators the domain services call
out to, enabling dependency inversion and better testability.
"""

from abc import ABC, abstractmethod

from src.domain.events.audit_events import ChangeRecord


class IAuditTrail(ABC):
    """Receives one `ChangeRecord` after every committed user mutation."""

    @abstractmethod
    def record(self, change: ChangeRecord) -> None:
        """Report a change. Must not raise into the calling service."""
        raise NotImplementedError

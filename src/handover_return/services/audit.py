"""Audit trail for session transitions and condition overrides."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from handover_return.domain.sessions import SessionRecord


class AuditRepository(Protocol):
    """Persistence interface for audit events."""

    def create_event(  # noqa: PLR0913
        self,
        actor_id: UUID | None,
        entity_type: str,
        entity_id: UUID,
        event_type: str,
        before: dict[str, object] | None,
        after: dict[str, object] | None,
    ) -> None:
        """Create an audit event row."""


@dataclass
class AuditService:
    """Service for recording audit events kept for dispute review."""

    repository: AuditRepository

    def record_event(  # noqa: PLR0913
        self,
        actor_id: UUID | None,
        entity_type: str,
        entity_id: UUID,
        event_type: str,
        before: dict[str, object] | None,
        after: dict[str, object] | None,
    ) -> None:
        """Persist an audit event."""
        self.repository.create_event(
            actor_id=actor_id,
            entity_type=entity_type,
            entity_id=entity_id,
            event_type=event_type,
            before=before,
            after=after,
        )

    def record_transition(
        self,
        actor_id: UUID | None,
        before: SessionRecord,
        after: SessionRecord,
        event_type: str,
    ) -> None:
        """Persist a status change of a session."""
        self.record_event(
            actor_id=actor_id,
            entity_type=f"{after.kind}_session",
            entity_id=after.id,
            event_type=event_type,
            before={"status": before.status, "version": before.version},
            after={"status": after.status, "version": after.version},
        )

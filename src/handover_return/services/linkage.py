"""Cross-reference rules between return and handover sessions."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from handover_return.domain.errors import LinkageViolation
from handover_return.domain.sessions import (
    CANCELLED,
    COMPLETED,
    HANDOVER,
    SessionRecord,
)


class LinkedSessionLookup(Protocol):
    """Read access needed to check linkage."""

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id, if present."""

    def list_returns_for_handover(
        self, handover_session_id: UUID
    ) -> list[SessionRecord]:
        """Return all return sessions linked to a handover session."""


@dataclass
class SessionLinkageManager:
    """Checks that a new return session may link to a handover session."""

    sessions: LinkedSessionLookup

    def resolve_handover_for_return(
        self, booking_id: UUID, handover_session_id: UUID | None
    ) -> SessionRecord:
        """Return the handover session a new return session may link to."""
        if handover_session_id is None:
            raise LinkageViolation("A return session must link a handover session")
        handover = self.sessions.get_session(handover_session_id)
        if handover is None or handover.kind != HANDOVER:
            raise LinkageViolation(
                f"Handover session {handover_session_id} does not exist"
            )
        if handover.booking_id != booking_id:
            raise LinkageViolation(
                "Return session must belong to the same booking as its handover"
            )
        if handover.status != COMPLETED:
            raise LinkageViolation(
                f"Handover session {handover.id} is {handover.status}, not completed"
            )
        live = [
            session
            for session in self.sessions.list_returns_for_handover(handover.id)
            if session.status != CANCELLED
        ]
        if live:
            raise LinkageViolation(
                f"Handover session {handover.id} already has return session "
                f"{live[0].id}"
            )
        return handover

    def linked_handover(self, return_session: SessionRecord) -> SessionRecord:
        """Return the handover session a stored return session points to."""
        handover_id = return_session.linked_handover_session_id
        handover = self.sessions.get_session(handover_id) if handover_id else None
        if handover is None or handover.booking_id != return_session.booking_id:
            raise LinkageViolation(
                f"Return session {return_session.id} has no valid handover link"
            )
        return handover

"""Supabase-backed session repository.

The `rental_sessions` table carries a partial unique index so that a handover
has at most one live return session:

    create unique index rental_sessions_live_return
        on rental_sessions (linked_handover_session_id)
        where kind = 'return' and status <> 'cancelled';
"""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client, PostgrestAPIError

from handover_return.adapters.supabase_rows import (
    optional_str,
    parse_datetime,
    parse_uuid,
)
from handover_return.domain.conditions import (
    comparison_from_dict,
    comparison_to_dict,
    condition_from_dict,
    condition_to_dict,
)
from handover_return.domain.errors import LinkageViolation, NotFound, StaleVersion
from handover_return.domain.sessions import (
    ACTIVE_STATUSES,
    RETURN,
    SessionRecord,
    location_from_dict,
    location_to_dict,
)
from handover_return.services.sessions import SessionRepository

_TABLE = "rental_sessions"
_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for handover and return sessions."""

    client: Client

    def create_session(self, session: SessionRecord) -> SessionRecord:
        """Insert a session row and return it."""
        try:
            response = self.client.table(_TABLE).insert(_to_row(session)).execute()
        except PostgrestAPIError as exc:
            if exc.code == _UNIQUE_VIOLATION and session.kind == RETURN:
                raise LinkageViolation(
                    f"Handover session {session.linked_handover_session_id} "
                    "already has a live return session"
                ) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create session")
        return _parse_row(response.data[0])

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id, if present."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def list_for_user(
        self, user_id: UUID, kind: str, offset: int, limit: int
    ) -> tuple[list[SessionRecord], int]:
        """Return a page of sessions where the user is renter or owner."""
        response = (
            self.client.table(_TABLE)
            .select("*", count="exact")
            .eq("kind", kind)
            .or_(f"renter_id.eq.{user_id},owner_id.eq.{user_id}")
            .order("scheduled_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        rows = response.data or []
        total = response.count if response.count is not None else len(rows)
        return [_parse_row(row) for row in rows], total

    def list_returns_for_handover(
        self, handover_session_id: UUID
    ) -> list[SessionRecord]:
        """Return all return sessions linked to a handover session."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("kind", RETURN)
            .eq("linked_handover_session_id", str(handover_session_id))
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def code_in_use(self, code: str) -> bool:
        """Return True when an active session holds the code."""
        response = (
            self.client.table(_TABLE)
            .select("id")
            .eq("verification_code", code)
            .in_("status", sorted(ACTIVE_STATUSES))
            .limit(1)
            .execute()
        )
        return bool(response.data)

    def save_session(
        self, session: SessionRecord, expected_version: int
    ) -> SessionRecord:
        """Conditionally update a session on its stored version."""
        row = _to_row(session)
        row.pop("id")
        response = (
            self.client.table(_TABLE)
            .update(row)
            .eq("id", str(session.id))
            .eq("version", expected_version)
            .execute()
        )
        if response.data:
            return _parse_row(response.data[0])
        current = self.get_session(session.id)
        if current is None:
            raise NotFound("Session", session.id)
        raise StaleVersion(expected=expected_version, actual=current.version)


def _to_row(session: SessionRecord) -> dict[str, object]:
    return {
        "id": str(session.id),
        "kind": session.kind,
        "booking_id": str(session.booking_id),
        "product_id": str(session.product_id),
        "renter_id": str(session.renter_id),
        "owner_id": str(session.owner_id),
        "status": session.status,
        "verification_code": session.verification_code,
        "scheduled_at": session.scheduled_at.isoformat(),
        "estimated_duration_minutes": session.estimated_duration_minutes,
        "location_json": location_to_dict(session.location),
        "method": session.method,
        "notes": session.notes,
        "linked_handover_session_id": optional_str(
            session.linked_handover_session_id
        ),
        "condition_json": condition_to_dict(session.condition_record)
        if session.condition_record
        else None,
        "comparison_json": comparison_to_dict(session.condition_comparison)
        if session.condition_comparison
        else None,
        "completed_at": optional_str(session.completed_at),
        "disputed_by": optional_str(session.disputed_by),
        "dispute_reason": session.dispute_reason,
        "resolution_note": session.resolution_note,
        "created_at": session.created_at.isoformat(),
        "updated_at": session.updated_at.isoformat(),
        "version": session.version,
    }


def _parse_row(row: dict[str, object]) -> SessionRecord:
    condition = row.get("condition_json")
    comparison = row.get("comparison_json")
    return SessionRecord(
        id=UUID(str(row["id"])),
        kind=str(row["kind"]),
        booking_id=UUID(str(row["booking_id"])),
        product_id=UUID(str(row["product_id"])),
        renter_id=UUID(str(row["renter_id"])),
        owner_id=UUID(str(row["owner_id"])),
        status=str(row["status"]),
        verification_code=row.get("verification_code"),
        scheduled_at=parse_datetime(row["scheduled_at"]),
        estimated_duration_minutes=row.get("estimated_duration_minutes"),
        location=location_from_dict(row.get("location_json") or {}),
        created_at=parse_datetime(row["created_at"]),
        updated_at=parse_datetime(row["updated_at"]),
        version=int(row.get("version", 1)),
        method=str(row.get("method") or "meetup"),
        notes=row.get("notes"),
        linked_handover_session_id=parse_uuid(row.get("linked_handover_session_id")),
        condition_record=condition_from_dict(condition) if condition else None,
        condition_comparison=comparison_from_dict(comparison) if comparison else None,
        completed_at=parse_datetime(row.get("completed_at")),
        disputed_by=parse_uuid(row.get("disputed_by")),
        dispute_reason=row.get("dispute_reason"),
        resolution_note=row.get("resolution_note"),
    )

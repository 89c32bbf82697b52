"""Supabase repository for audit events."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from handover_return.adapters.supabase_rows import optional_str
from handover_return.services.audit import AuditRepository


@dataclass
class SupabaseAuditRepository(AuditRepository):
    """Supabase-backed audit repository."""

    client: Client

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
        self.client.table("audit_events").insert(
            {
                "actor_id": optional_str(actor_id),
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "event_type": event_type,
                "before_json": before,
                "after_json": after,
            }
        ).execute()

"""Supabase repository for session statistics."""

from dataclasses import dataclass

from supabase import Client

from handover_return.adapters.supabase_rows import parse_datetime
from handover_return.domain.stats import SessionStatsRow
from handover_return.services.stats import StatsRepository


@dataclass
class SupabaseStatsRepository(StatsRepository):
    """Supabase implementation for stats queries."""

    client: Client

    def list_session_rows(self) -> list[SessionStatsRow]:
        """Return kind, status and timing columns for all sessions."""
        response = (
            self.client.table("rental_sessions")
            .select("kind, status, scheduled_at, completed_at")
            .execute()
        )
        return [
            SessionStatsRow(
                kind=str(row["kind"]),
                status=str(row["status"]),
                scheduled_at=parse_datetime(row["scheduled_at"]),
                completed_at=parse_datetime(row.get("completed_at")),
            )
            for row in response.data or []
        ]

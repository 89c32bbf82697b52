"""Statistics service for handover and return sessions."""

from dataclasses import dataclass
from typing import Protocol

from handover_return.domain.sessions import (
    CANCELLED,
    COMPLETED,
    DISPUTED,
    HANDOVER,
    RETURN,
)
from handover_return.domain.stats import HandoverReturnStats, SessionStatsRow


class StatsRepository(Protocol):
    """Read interface over stored sessions."""

    def list_session_rows(self) -> list[SessionStatsRow]:
        """Return kind, status and timing for every session."""


@dataclass
class StatsService:
    """Read-only rollups over the session store."""

    repository: StatsRepository

    def get_stats(self) -> HandoverReturnStats:
        """Return counts, rates and average durations."""
        rows = self.repository.list_session_rows()
        handovers = [row for row in rows if row.kind == HANDOVER]
        returns = [row for row in rows if row.kind == RETURN]
        completed = _count(rows, COMPLETED)
        disputed = _count(rows, DISPUTED)
        closed = completed + disputed + _count(rows, CANCELLED)
        return HandoverReturnStats(
            total_handovers=len(handovers),
            total_returns=len(returns),
            completed_handovers=_count(handovers, COMPLETED),
            completed_returns=_count(returns, COMPLETED),
            disputed_sessions=disputed,
            average_handover_minutes=_average_minutes(handovers),
            average_return_minutes=_average_minutes(returns),
            success_rate=_percentage(completed, closed),
            dispute_rate=_percentage(disputed, closed),
        )


def _count(rows: list[SessionStatsRow], status: str) -> int:
    return sum(1 for row in rows if row.status == status)


def _average_minutes(rows: list[SessionStatsRow]) -> float:
    durations = [
        (row.completed_at - row.scheduled_at).total_seconds() / 60
        for row in rows
        if row.status == COMPLETED and row.completed_at is not None
    ]
    if not durations:
        return 0.0
    return round(sum(durations) / len(durations), 1)


def _percentage(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return round(part / whole * 100, 1)

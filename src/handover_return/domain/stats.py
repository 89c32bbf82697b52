"""Domain models for statistics."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SessionStatsRow:
    """Summary data for a session used in rollups."""

    kind: str
    status: str
    scheduled_at: datetime
    completed_at: datetime | None


@dataclass(frozen=True)
class HandoverReturnStats:
    """Rollup over all stored sessions."""

    total_handovers: int
    total_returns: int
    completed_handovers: int
    completed_returns: int
    disputed_sessions: int
    average_handover_minutes: float
    average_return_minutes: float
    success_rate: float
    dispute_rate: float

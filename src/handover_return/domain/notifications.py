"""Domain models for scheduled notifications."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

CHANNELS = ("email", "sms", "push")


@dataclass(frozen=True)
class NotificationRecord:
    """Represents a durable, time-triggered reminder."""

    id: UUID
    booking_id: UUID
    user_id: UUID
    type: str
    channel: str
    scheduled_at: datetime
    payload: dict[str, object]
    created_at: datetime
    is_read: bool = False
    read_at: datetime | None = None
    dispatched_at: datetime | None = None

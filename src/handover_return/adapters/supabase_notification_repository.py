"""Supabase-backed notification repository."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from supabase import Client

from handover_return.adapters.supabase_rows import parse_datetime
from handover_return.domain.notifications import NotificationRecord
from handover_return.services.notifications import NotificationRepository

_TABLE = "notifications"
_COLUMNS = (
    "id, booking_id, user_id, type, channel, scheduled_at, payload_json, "
    "is_read, read_at, dispatched_at, created_at"
)


@dataclass
class SupabaseNotificationRepository(NotificationRepository):
    """Supabase implementation for scheduled notifications."""

    client: Client

    def create_notification(
        self, notification: NotificationRecord
    ) -> NotificationRecord:
        """Insert a notification row and return it."""
        response = (
            self.client.table(_TABLE)
            .insert(
                {
                    "id": str(notification.id),
                    "booking_id": str(notification.booking_id),
                    "user_id": str(notification.user_id),
                    "type": notification.type,
                    "channel": notification.channel,
                    "scheduled_at": notification.scheduled_at.isoformat(),
                    "payload_json": notification.payload,
                    "is_read": notification.is_read,
                    "created_at": notification.created_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create notification")
        return _parse_row(response.data[0])

    def get_notification(self, notification_id: UUID) -> NotificationRecord | None:
        """Return a notification by id, if present."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("id", str(notification_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def list_for_booking(
        self, booking_id: UUID, user_id: UUID, offset: int, limit: int
    ) -> tuple[list[NotificationRecord], int]:
        """Return a page of a user's notifications for a booking."""
        query = (
            self.client.table(_TABLE)
            .select(_COLUMNS, count="exact")
            .eq("booking_id", str(booking_id))
            .eq("user_id", str(user_id))
        )
        return _fetch_page(query, offset, limit)

    def list_for_user(
        self, user_id: UUID, offset: int, limit: int
    ) -> tuple[list[NotificationRecord], int]:
        """Return a page of a user's notifications."""
        query = (
            self.client.table(_TABLE)
            .select(_COLUMNS, count="exact")
            .eq("user_id", str(user_id))
        )
        return _fetch_page(query, offset, limit)

    def list_due(
        self, before: datetime, offset: int, limit: int
    ) -> tuple[list[NotificationRecord], int]:
        """Return a page of undispatched notifications due by a time."""
        query = (
            self.client.table(_TABLE)
            .select(_COLUMNS, count="exact")
            .lte("scheduled_at", before.isoformat())
            .is_("dispatched_at", "null")
        )
        return _fetch_page(query, offset, limit)

    def mark_read(self, notification_id: UUID, read_at: datetime) -> None:
        """Mark a notification as read."""
        self.client.table(_TABLE).update(
            {"is_read": True, "read_at": read_at.isoformat()}
        ).eq("id", str(notification_id)).eq("is_read", False).execute()

    def mark_all_read(self, user_id: UUID, read_at: datetime) -> int:
        """Mark all unread notifications of a user as read."""
        response = (
            self.client.table(_TABLE)
            .update({"is_read": True, "read_at": read_at.isoformat()})
            .eq("user_id", str(user_id))
            .eq("is_read", False)
            .execute()
        )
        return len(response.data or [])

    def mark_dispatched(self, notification_id: UUID, dispatched_at: datetime) -> None:
        """Record that a notification was delivered."""
        self.client.table(_TABLE).update(
            {"dispatched_at": dispatched_at.isoformat()}
        ).eq("id", str(notification_id)).is_("dispatched_at", "null").execute()


def _parse_row(row: dict[str, object]) -> NotificationRecord:
    payload = row.get("payload_json")
    return NotificationRecord(
        id=UUID(str(row["id"])),
        booking_id=UUID(str(row["booking_id"])),
        user_id=UUID(str(row["user_id"])),
        type=str(row["type"]),
        channel=str(row.get("channel") or "push"),
        scheduled_at=parse_datetime(row["scheduled_at"]),
        payload=payload if isinstance(payload, dict) else {},
        created_at=parse_datetime(row["created_at"]),
        is_read=bool(row.get("is_read", False)),
        read_at=parse_datetime(row.get("read_at")),
        dispatched_at=parse_datetime(row.get("dispatched_at")),
    )


def _fetch_page(
    query: Any, offset: int, limit: int
) -> tuple[list[NotificationRecord], int]:
    response = (
        query.order("scheduled_at", desc=False)
        .range(offset, offset + limit - 1)
        .execute()
    )
    rows = response.data or []
    total = response.count if response.count is not None else len(rows)
    return [_parse_row(row) for row in rows], total

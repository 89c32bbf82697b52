"""Durable, time-triggered reminders tied to bookings."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol
from uuid import UUID, uuid4

from handover_return.adapters.booking_client import BookingClient
from handover_return.domain.errors import NotFound, Unauthorized, ValidationError
from handover_return.domain.notifications import CHANNELS, NotificationRecord
from handover_return.domain.pagination import Page
from handover_return.domain.sessions import BookingInfo, SessionRecord
from handover_return.services.validation import page_bounds, require_future, utc_now

_logger = logging.getLogger(__name__)

_MAX_TYPE_LENGTH = 64


class NotificationRepository(Protocol):
    """Persistence interface for scheduled notifications."""

    def create_notification(
        self, notification: NotificationRecord
    ) -> NotificationRecord:
        """Store a notification and return it."""

    def get_notification(self, notification_id: UUID) -> NotificationRecord | None:
        """Return a notification by id, if present."""

    def list_for_booking(
        self, booking_id: UUID, user_id: UUID, offset: int, limit: int
    ) -> tuple[list[NotificationRecord], int]:
        """Return a page of a user's notifications for a booking and the total."""

    def list_for_user(
        self, user_id: UUID, offset: int, limit: int
    ) -> tuple[list[NotificationRecord], int]:
        """Return a page of a user's notifications and the total count."""

    def list_due(
        self, before: datetime, offset: int, limit: int
    ) -> tuple[list[NotificationRecord], int]:
        """Return a page of undispatched notifications due by a time."""

    def mark_read(self, notification_id: UUID, read_at: datetime) -> None:
        """Mark a notification as read."""

    def mark_all_read(self, user_id: UUID, read_at: datetime) -> int:
        """Mark all unread notifications of a user as read."""

    def mark_dispatched(self, notification_id: UUID, dispatched_at: datetime) -> None:
        """Record that the dispatcher delivered a notification."""


@dataclass
class NotificationScheduler:
    """Schedules reminders and exposes them to an external dispatcher."""

    repository: NotificationRepository
    booking_client: BookingClient
    max_page_size: int = 100

    async def schedule(  # noqa: PLR0913
        self,
        caller_id: UUID,
        booking_id: UUID,
        notification_type: str,
        scheduled_at: datetime,
        payload: dict[str, object] | None = None,
    ) -> NotificationRecord:
        """Schedule a reminder for the calling counterparty of a booking."""
        when = require_future("scheduled_at", scheduled_at)
        await self._require_booking_party(caller_id, booking_id)
        record = _build_notification(
            booking_id=booking_id,
            user_id=caller_id,
            notification_type=notification_type,
            scheduled_at=when,
            payload=payload or {},
        )
        created = self.repository.create_notification(record)
        _logger.info(
            "Notification scheduled: id=%s booking=%s type=%s at=%s",
            created.id,
            booking_id,
            created.type,
            created.scheduled_at.isoformat(),
        )
        return created

    def schedule_session_reminders(
        self, session: SessionRecord, lead: timedelta
    ) -> list[NotificationRecord]:
        """Schedule one reminder per counterparty ahead of a session."""
        remind_at = session.scheduled_at - lead
        if lead <= timedelta(0) or remind_at <= utc_now():
            return []
        created = []
        for user_id in (session.renter_id, session.owner_id):
            record = _build_notification(
                booking_id=session.booking_id,
                user_id=user_id,
                notification_type=session.kind,
                scheduled_at=remind_at,
                payload={
                    "channel": "push",
                    "session_id": str(session.id),
                    "note": f"Upcoming {session.kind} at {session.location.address}",
                },
            )
            created.append(self.repository.create_notification(record))
        return created

    async def list_for_booking(
        self, caller_id: UUID, booking_id: UUID, page: int = 1, limit: int = 20
    ) -> Page[NotificationRecord]:
        """Return a page of the caller's notifications for a booking."""
        page, limit = page_bounds(page, limit, self.max_page_size)
        await self._require_booking_party(caller_id, booking_id)
        items, total = self.repository.list_for_booking(
            booking_id, caller_id, (page - 1) * limit, limit
        )
        return Page(items=items, total=total, page=page, limit=limit)

    def list_for_user(
        self, caller_id: UUID, user_id: UUID, page: int = 1, limit: int = 20
    ) -> Page[NotificationRecord]:
        """Return a page of the calling user's notifications."""
        if caller_id != user_id:
            raise Unauthorized("Notifications can only be listed by their owner")
        page, limit = page_bounds(page, limit, self.max_page_size)
        items, total = self.repository.list_for_user(
            user_id, (page - 1) * limit, limit
        )
        return Page(items=items, total=total, page=page, limit=limit)

    def mark_read(self, caller_id: UUID, notification_id: UUID) -> NotificationRecord:
        """Mark a notification as read; repeated calls are no-ops."""
        notification = self._get_owned(caller_id, notification_id)
        if notification.is_read:
            return notification
        self.repository.mark_read(notification_id, utc_now())
        return self._get(notification_id)

    def mark_all_read_for_user(self, caller_id: UUID, user_id: UUID) -> int:
        """Mark every unread notification of the caller as read."""
        if caller_id != user_id:
            raise Unauthorized("Notifications can only be updated by their owner")
        return self.repository.mark_all_read(user_id, utc_now())

    def due_notifications(
        self, before: datetime, page: int = 1, limit: int | None = None
    ) -> Page[NotificationRecord]:
        """Return a page of undispatched notifications with scheduled_at <= before."""
        if before.tzinfo is None:
            raise ValidationError("before", "before must include a timezone offset")
        page, limit = page_bounds(page, limit or self.max_page_size, self.max_page_size)
        items, total = self.repository.list_due(before, (page - 1) * limit, limit)
        return Page(
            items=[item for item in items if item.scheduled_at <= before],
            total=total,
            page=page,
            limit=limit,
        )

    def mark_dispatched(self, notification_id: UUID) -> NotificationRecord:
        """Record delivery by the dispatcher; repeated calls are no-ops."""
        notification = self._get(notification_id)
        if notification.dispatched_at is not None:
            return notification
        self.repository.mark_dispatched(notification_id, utc_now())
        return self._get(notification_id)

    def _get(self, notification_id: UUID) -> NotificationRecord:
        notification = self.repository.get_notification(notification_id)
        if notification is None:
            raise NotFound("Notification", notification_id)
        return notification

    def _get_owned(self, caller_id: UUID, notification_id: UUID) -> NotificationRecord:
        notification = self._get(notification_id)
        if notification.user_id != caller_id:
            raise Unauthorized("Notification belongs to another user")
        return notification

    async def _require_booking_party(
        self, caller_id: UUID, booking_id: UUID
    ) -> BookingInfo:
        booking = await self.booking_client.get_booking(booking_id)
        if booking is None:
            raise NotFound("Booking", booking_id)
        if not booking.is_party(caller_id):
            raise Unauthorized("Caller is not a party to this booking")
        return booking


def _build_notification(
    booking_id: UUID,
    user_id: UUID,
    notification_type: str,
    scheduled_at: datetime,
    payload: dict[str, object],
) -> NotificationRecord:
    cleaned_type = (notification_type or "").strip().lower()
    if not cleaned_type or len(cleaned_type) > _MAX_TYPE_LENGTH:
        raise ValidationError("type", "type is required")
    channel = str(payload.get("channel") or "push").lower()
    if channel not in CHANNELS:
        raise ValidationError(
            "channel", f"channel must be one of {', '.join(CHANNELS)}"
        )
    return NotificationRecord(
        id=uuid4(),
        booking_id=booking_id,
        user_id=user_id,
        type=cleaned_type,
        channel=channel,
        scheduled_at=scheduled_at,
        payload={**payload, "channel": channel},
        created_at=utc_now(),
    )

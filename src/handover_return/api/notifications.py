"""Reminder notification endpoints for counterparties."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Query, Request, status

from handover_return.api.auth import require_caller
from handover_return.api.models import ScheduleNotificationRequest
from handover_return.api.serializers import (
    envelope,
    page_envelope,
    serialize_notification,
)

if TYPE_CHECKING:
    from handover_return.containers import AppContainer

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post("/schedule", status_code=status.HTTP_201_CREATED)
async def schedule_notification(
    payload: ScheduleNotificationRequest,
    request: Request,
    caller_id: UUID = Depends(require_caller),
) -> dict[str, object]:
    """Schedule a reminder for the caller."""
    container: AppContainer = request.app.state.container
    notification = await container.notification_scheduler.schedule(
        caller_id,
        payload.booking_id,
        payload.type,
        payload.scheduled_at,
        payload.payload,
    )
    return envelope(serialize_notification(notification), "Notification scheduled")


@router.get("")
async def booking_notifications(  # noqa: PLR0913
    request: Request,
    caller_id: UUID = Depends(require_caller),
    booking_id: UUID = Query(alias="bookingId"),
    page: int = 1,
    limit: int | None = None,
) -> dict[str, object]:
    """Return a page of the caller's notifications for a booking."""
    container: AppContainer = request.app.state.container
    result = await container.notification_scheduler.list_for_booking(
        caller_id,
        booking_id,
        page=page,
        limit=limit or container.settings.default_page_size,
    )
    return page_envelope(
        result, [serialize_notification(item) for item in result.items]
    )


@router.get("/user/{user_id}")
async def user_notifications(
    user_id: UUID,
    request: Request,
    caller_id: UUID = Depends(require_caller),
    page: int = 1,
    limit: int | None = None,
) -> dict[str, object]:
    """Return a page of the caller's notifications."""
    container: AppContainer = request.app.state.container
    result = container.notification_scheduler.list_for_user(
        caller_id,
        user_id,
        page=page,
        limit=limit or container.settings.default_page_size,
    )
    return page_envelope(
        result, [serialize_notification(item) for item in result.items]
    )


@router.patch("/{notification_id}/read")
async def mark_notification_read(
    notification_id: UUID,
    request: Request,
    caller_id: UUID = Depends(require_caller),
) -> dict[str, object]:
    """Mark one notification as read."""
    container: AppContainer = request.app.state.container
    notification = container.notification_scheduler.mark_read(
        caller_id, notification_id
    )
    return envelope(serialize_notification(notification), "Notification read")


@router.patch("/user/{user_id}/read-all")
async def mark_all_notifications_read(
    user_id: UUID, request: Request, caller_id: UUID = Depends(require_caller)
) -> dict[str, object]:
    """Mark every notification of the caller as read."""
    container: AppContainer = request.app.state.container
    updated = container.notification_scheduler.mark_all_read_for_user(
        caller_id, user_id
    )
    return envelope({"updated": updated}, "All notifications marked as read")

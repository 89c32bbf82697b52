"""Messaging endpoints scoped to bookings and sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Query, Request, status

from handover_return.api.auth import require_caller
from handover_return.api.models import SendMessageRequest
from handover_return.api.serializers import (
    envelope,
    page_envelope,
    serialize_message,
)
from handover_return.domain.errors import Unauthorized
from handover_return.domain.messages import MessageScope

if TYPE_CHECKING:
    from handover_return.containers import AppContainer

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def send_message(
    payload: SendMessageRequest,
    request: Request,
    caller_id: UUID = Depends(require_caller),
) -> dict[str, object]:
    """Send a message as the calling counterparty."""
    if payload.sender_id is not None and payload.sender_id != caller_id:
        raise Unauthorized("senderId must match the caller")
    container: AppContainer = request.app.state.container
    message = await container.messaging_service.send(
        caller_id,
        payload.scope(),
        payload.content,
        message_type=payload.message_type,
        sender_type=payload.sender_type,
        attachments=payload.attachment_records(),
    )
    return envelope(serialize_message(message), "Message sent")


@router.get("")
async def list_messages(  # noqa: PLR0913
    request: Request,
    caller_id: UUID = Depends(require_caller),
    booking_id: UUID | None = Query(default=None, alias="bookingId"),
    handover_session_id: UUID | None = Query(
        default=None, alias="handoverSessionId"
    ),
    return_session_id: UUID | None = Query(default=None, alias="returnSessionId"),
    page: int = 1,
    limit: int = 50,
) -> dict[str, object]:
    """Return messages of one scope in the order they were sent."""
    container: AppContainer = request.app.state.container
    result = await container.messaging_service.list_by_scope(
        caller_id,
        MessageScope(
            booking_id=booking_id,
            handover_session_id=handover_session_id,
            return_session_id=return_session_id,
        ),
        page=page,
        limit=limit,
    )
    return page_envelope(
        result, [serialize_message(message) for message in result.items]
    )


@router.patch("/{message_id}/read")
async def mark_message_read(
    message_id: UUID, request: Request, caller_id: UUID = Depends(require_caller)
) -> dict[str, object]:
    """Mark a message as read."""
    container: AppContainer = request.app.state.container
    message = await container.messaging_service.mark_read(caller_id, message_id)
    return envelope(serialize_message(message), "Message marked as read")

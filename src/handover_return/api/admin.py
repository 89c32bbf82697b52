"""Operator endpoints with simple token auth."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from handover_return.api.models import ResolveDisputeRequest
from handover_return.api.serializers import (
    envelope,
    page_envelope,
    serialize_notification,
    serialize_session,
    serialize_stats,
)
from handover_return.services.validation import utc_now

if TYPE_CHECKING:
    from handover_return.containers import AppContainer


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/stats")
async def session_stats(request: Request) -> dict[str, object]:
    """Return aggregate handover and return statistics."""
    container: AppContainer = request.app.state.container
    return envelope(serialize_stats(container.stats_service.get_stats()))


@router.get("/dispatcher/notifications/due")
async def due_notifications(
    request: Request,
    before: datetime | None = None,
    page: int = 1,
    limit: int | None = None,
) -> dict[str, object]:
    """Return a page of undispatched notifications due at or before a moment."""
    container: AppContainer = request.app.state.container
    due = container.notification_scheduler.due_notifications(
        before or utc_now(), page=page, limit=limit
    )
    return page_envelope(due, [serialize_notification(item) for item in due.items])


@router.post("/dispatcher/notifications/{notification_id}/dispatched")
async def mark_dispatched(
    notification_id: UUID, request: Request
) -> dict[str, object]:
    """Record that the dispatcher delivered a notification."""
    container: AppContainer = request.app.state.container
    notification = container.notification_scheduler.mark_dispatched(notification_id)
    return envelope(serialize_notification(notification), "Notification dispatched")


@router.post("/arbitration/sessions/{session_id}/resolve")
async def resolve_dispute(
    session_id: UUID, payload: ResolveDisputeRequest, request: Request
) -> dict[str, object]:
    """Close a disputed session with an arbitration outcome."""
    container: AppContainer = request.app.state.container
    session = container.session_service.resolve_dispute(
        session_id, payload.outcome, payload.version, payload.note
    )
    return envelope(serialize_session(session), "Dispute resolved")

"""Response payload builders."""

from handover_return.domain.conditions import (
    ConditionComparison,
    ConditionRecord,
)
from handover_return.domain.messages import MessageRecord
from handover_return.domain.notifications import NotificationRecord
from handover_return.domain.pagination import Page
from handover_return.domain.sessions import PhotoRecord, SessionRecord
from handover_return.domain.stats import HandoverReturnStats


def envelope(
    data: object, message: str = "OK", meta: dict[str, int] | None = None
) -> dict[str, object]:
    """Wrap data in the standard success envelope."""
    body: dict[str, object] = {"success": True, "message": message, "data": data}
    if meta is not None:
        body["meta"] = meta
    return body


def page_envelope(page: Page, items: list[object], message: str = "OK") -> dict:
    return envelope(items, message, meta=page.meta())


def serialize_session(
    session: SessionRecord,
    photos: list[PhotoRecord] | None = None,
    include_code: bool = False,
) -> dict[str, object]:
    """Serialize a session for one of its counterparties."""
    data: dict[str, object] = {
        "id": str(session.id),
        "kind": session.kind,
        "bookingId": str(session.booking_id),
        "productId": str(session.product_id),
        "renterId": str(session.renter_id),
        "ownerId": str(session.owner_id),
        "status": session.status,
        "method": session.method,
        "scheduledAt": session.scheduled_at.isoformat(),
        "estimatedDurationMinutes": session.estimated_duration_minutes,
        "location": {
            "address": session.location.address,
            "city": session.location.city,
            "country": session.location.country,
            "latitude": session.location.latitude,
            "longitude": session.location.longitude,
        },
        "notes": session.notes,
        "version": session.version,
        "createdAt": session.created_at.isoformat(),
        "updatedAt": session.updated_at.isoformat(),
        "completedAt": session.completed_at.isoformat()
        if session.completed_at
        else None,
        "disputedBy": str(session.disputed_by) if session.disputed_by else None,
        "disputeReason": session.dispute_reason,
        "resolutionNote": session.resolution_note,
    }
    if session.linked_handover_session_id:
        data["linkedHandoverSessionId"] = str(session.linked_handover_session_id)
    if session.condition_record:
        data["conditionRecord"] = _serialize_condition(session.condition_record)
    if session.condition_comparison:
        data["conditionComparison"] = _serialize_comparison(
            session.condition_comparison
        )
    if photos is not None:
        data["photos"] = [serialize_photo(photo) for photo in photos]
    if include_code:
        data["verificationCode"] = session.verification_code
    return data


def serialize_photo(photo: PhotoRecord) -> dict[str, object]:
    return {
        "id": str(photo.id),
        "sessionId": str(photo.session_id),
        "url": photo.url,
        "category": photo.category,
        "caption": photo.caption,
        "uploadedAt": photo.uploaded_at.isoformat(),
    }


def serialize_message(message: MessageRecord) -> dict[str, object]:
    return {
        "id": str(message.id),
        "seq": message.seq,
        "bookingId": _opt(message.scope.booking_id),
        "handoverSessionId": _opt(message.scope.handover_session_id),
        "returnSessionId": _opt(message.scope.return_session_id),
        "senderId": str(message.sender_id),
        "senderType": message.sender_type,
        "content": message.content,
        "messageType": message.message_type,
        "attachments": [
            {"type": item.type, "url": item.url} for item in message.attachments
        ],
        "isRead": message.is_read,
        "sentAt": message.sent_at.isoformat(),
        "readAt": message.read_at.isoformat() if message.read_at else None,
    }


def serialize_notification(notification: NotificationRecord) -> dict[str, object]:
    return {
        "id": str(notification.id),
        "bookingId": str(notification.booking_id),
        "userId": str(notification.user_id),
        "type": notification.type,
        "channel": notification.channel,
        "scheduledAt": notification.scheduled_at.isoformat(),
        "payload": notification.payload,
        "isRead": notification.is_read,
        "createdAt": notification.created_at.isoformat(),
        "readAt": _opt_time(notification.read_at),
        "dispatchedAt": _opt_time(notification.dispatched_at),
    }


def serialize_stats(stats: HandoverReturnStats) -> dict[str, object]:
    return {
        "totalHandovers": stats.total_handovers,
        "totalReturns": stats.total_returns,
        "completedHandovers": stats.completed_handovers,
        "completedReturns": stats.completed_returns,
        "disputedSessions": stats.disputed_sessions,
        "averageHandoverTime": stats.average_handover_minutes,
        "averageReturnTime": stats.average_return_minutes,
        "successRate": stats.success_rate,
        "disputeRate": stats.dispute_rate,
    }


def _serialize_condition(record: ConditionRecord) -> dict[str, object]:
    return {
        "overallCondition": record.overall_condition,
        "cleanliness": record.cleanliness,
        "damageNotes": record.damage_notes,
        "photoRefs": [str(ref) for ref in record.photo_refs],
    }


def _serialize_comparison(comparison: ConditionComparison) -> dict[str, object]:
    return {
        "overallConditionChange": comparison.overall_condition_change,
        "cleanlinessChange": comparison.cleanliness_change,
        "computedOverallConditionChange": (
            comparison.computed_overall_condition_change
        ),
        "computedCleanlinessChange": comparison.computed_cleanliness_change,
        "overridden": comparison.overridden,
        "assessedCondition": _serialize_condition(comparison.assessed_condition),
        "damageNotes": comparison.damage_notes,
        "photoRefs": [str(ref) for ref in comparison.photo_refs],
    }


def _opt(value: object) -> str | None:
    return str(value) if value is not None else None


def _opt_time(value) -> str | None:  # type: ignore[no-untyped-def]
    return value.isoformat() if value is not None else None

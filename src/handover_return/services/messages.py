"""Append-only conversations between the two counterparties."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol
from uuid import UUID

from handover_return.adapters.booking_client import BookingClient
from handover_return.config import parse_dispute_policy
from handover_return.domain.errors import (
    InvalidTransition,
    NotFound,
    Unauthorized,
    ValidationError,
)
from handover_return.domain.messages import (
    MESSAGE_TYPES,
    SENDER_TYPES,
    Attachment,
    MessageRecord,
    MessageScope,
)
from handover_return.domain.pagination import Page
from handover_return.domain.sessions import (
    ACTIVE_STATUSES,
    DISPUTED,
    HANDOVER,
    RETURN,
    SessionRecord,
)
from handover_return.services.validation import page_bounds, utc_now

_logger = logging.getLogger(__name__)

ATTACHMENT_TYPES = ("image", "file", "video", "audio")


class MessageRepository(Protocol):
    """Persistence interface for session messages."""

    def create_message(  # noqa: PLR0913
        self,
        scope: MessageScope,
        sender_id: UUID,
        sender_type: str,
        content: str,
        message_type: str,
        attachments: tuple[Attachment, ...],
        sent_at: datetime,
    ) -> MessageRecord:
        """Append a message and return it with its sequence number."""

    def get_message(self, message_id: UUID) -> MessageRecord | None:
        """Return a message by id, if present."""

    def list_by_scope(
        self, scope: MessageScope, offset: int, limit: int
    ) -> tuple[list[MessageRecord], int]:
        """Return messages matching every key of the scope, by sequence."""

    def mark_read(self, message_id: UUID, read_at: datetime) -> None:
        """Mark a message as read."""


class SessionLookup(Protocol):
    """Read access to sessions needed for message scoping."""

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id, if present."""


@dataclass
class MessagingService:
    """Sends, lists and acknowledges scoped messages."""

    repository: MessageRepository
    sessions: SessionLookup
    booking_client: BookingClient
    max_length: int = 2000
    dispute_policy: str = "disputing_party"
    max_page_size: int = 100

    def __post_init__(self) -> None:
        self.dispute_policy = parse_dispute_policy(self.dispute_policy)

    async def send(  # noqa: PLR0913
        self,
        caller_id: UUID,
        scope: MessageScope,
        content: str,
        message_type: str = "text",
        sender_type: str | None = None,
        attachments: tuple[Attachment, ...] = (),
    ) -> MessageRecord:
        """Append a message from the caller to a booking or session scope."""
        text = (content or "").strip()
        if not text:
            raise ValidationError("content", "content is required")
        if len(text) > self.max_length:
            raise ValidationError(
                "content", f"content must be at most {self.max_length} characters"
            )
        if message_type not in MESSAGE_TYPES:
            raise ValidationError(
                "message_type",
                f"message_type must be one of {', '.join(MESSAGE_TYPES)}",
            )
        for attachment in attachments:
            if attachment.type not in ATTACHMENT_TYPES or not attachment.url.strip():
                raise ValidationError(
                    "attachments", "Attachment type or url is invalid"
                )

        resolved_scope, role, session = await self._resolve(caller_id, scope)
        if session is not None:
            self._check_open(session, caller_id)
        if sender_type is not None and sender_type != role:
            raise ValidationError("sender_type", f"Caller is the {role}")

        message = self.repository.create_message(
            scope=resolved_scope,
            sender_id=caller_id,
            sender_type=role,
            content=text,
            message_type=message_type,
            attachments=tuple(attachments),
            sent_at=utc_now(),
        )
        _logger.info(
            "Message sent: id=%s seq=%s booking=%s session=%s",
            message.id,
            message.seq,
            resolved_scope.booking_id,
            resolved_scope.session_id,
        )
        return message

    async def list_by_scope(
        self, caller_id: UUID, scope: MessageScope, page: int = 1, limit: int = 50
    ) -> Page[MessageRecord]:
        """Return messages of a scope in ascending sequence order."""
        page, limit = page_bounds(page, limit, self.max_page_size)
        await self._resolve(caller_id, scope)
        items, total = self.repository.list_by_scope(scope, (page - 1) * limit, limit)
        return Page(
            items=sorted(items, key=lambda message: message.seq),
            total=total,
            page=page,
            limit=limit,
        )

    async def mark_read(self, caller_id: UUID, message_id: UUID) -> MessageRecord:
        """Mark a message as read; repeated calls are no-ops."""
        message = self.repository.get_message(message_id)
        if message is None:
            raise NotFound("Message", message_id)
        await self._resolve(caller_id, message.scope)
        if message.is_read:
            return message
        self.repository.mark_read(message_id, utc_now())
        updated = self.repository.get_message(message_id)
        if updated is None:
            raise NotFound("Message", message_id)
        return updated

    async def _resolve(
        self, caller_id: UUID, scope: MessageScope
    ) -> tuple[MessageScope, str, SessionRecord | None]:
        if scope.is_empty():
            raise ValidationError(
                "scope", "bookingId, handoverSessionId or returnSessionId is required"
            )
        if scope.handover_session_id and scope.return_session_id:
            raise ValidationError(
                "scope", "A message is scoped to one session, not both kinds"
            )
        if scope.session_id is not None:
            kind = HANDOVER if scope.handover_session_id else RETURN
            session = self.sessions.get_session(scope.session_id)
            if session is None or session.kind != kind:
                raise NotFound(f"{kind.capitalize()} session", scope.session_id)
            if scope.booking_id is not None and scope.booking_id != session.booking_id:
                raise ValidationError(
                    "booking_id", "Session does not belong to the given booking"
                )
            role = session.party_role(caller_id)
            if role is None:
                raise Unauthorized("Caller is not a party to this session")
            return replace(scope, booking_id=session.booking_id), role, session

        booking = await self.booking_client.get_booking(scope.booking_id)
        if booking is None:
            raise NotFound("Booking", scope.booking_id)
        if caller_id == booking.renter_id:
            return scope, SENDER_TYPES[0], None
        if caller_id == booking.owner_id:
            return scope, SENDER_TYPES[1], None
        raise Unauthorized("Caller is not a party to this booking")

    def _check_open(self, session: SessionRecord, caller_id: UUID) -> None:
        if session.status in ACTIVE_STATUSES:
            return
        if session.status == DISPUTED:
            if self.dispute_policy == "both_parties":
                return
            if (
                self.dispute_policy == "disputing_party"
                and session.disputed_by == caller_id
            ):
                return
        raise InvalidTransition(session.status, "send a message on")

"""Supabase-backed message repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from handover_return.adapters.supabase_rows import (
    optional_str,
    parse_datetime,
    parse_uuid,
)
from handover_return.domain.messages import Attachment, MessageRecord, MessageScope
from handover_return.services.messages import MessageRepository

_TABLE = "session_messages"
_COLUMNS = (
    "id, seq, booking_id, handover_session_id, return_session_id, sender_id, "
    "sender_type, content, message_type, attachments_json, is_read, sent_at, read_at"
)


@dataclass
class SupabaseMessageRepository(MessageRepository):
    """Supabase implementation for append-only messages.

    The ``seq`` column is a database-assigned bigserial, so ordering within a
    scope never depends on client clocks.
    """

    client: Client

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
        """Insert a message row and return it."""
        response = (
            self.client.table(_TABLE)
            .insert(
                {
                    "booking_id": optional_str(scope.booking_id),
                    "handover_session_id": optional_str(scope.handover_session_id),
                    "return_session_id": optional_str(scope.return_session_id),
                    "sender_id": str(sender_id),
                    "sender_type": sender_type,
                    "content": content,
                    "message_type": message_type,
                    "attachments_json": [
                        {"type": item.type, "url": item.url} for item in attachments
                    ],
                    "is_read": False,
                    "sent_at": sent_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create message")
        return _parse_row(response.data[0])

    def get_message(self, message_id: UUID) -> MessageRecord | None:
        """Return a message by id, if present."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("id", str(message_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def list_by_scope(
        self, scope: MessageScope, offset: int, limit: int
    ) -> tuple[list[MessageRecord], int]:
        """Return messages matching the scope ordered by sequence."""
        query = self.client.table(_TABLE).select(_COLUMNS, count="exact")
        for column, value in (
            ("booking_id", scope.booking_id),
            ("handover_session_id", scope.handover_session_id),
            ("return_session_id", scope.return_session_id),
        ):
            if value is not None:
                query = query.eq(column, str(value))
        response = (
            query.order("seq", desc=False).range(offset, offset + limit - 1).execute()
        )
        rows = response.data or []
        total = response.count if response.count is not None else len(rows)
        return [_parse_row(row) for row in rows], total

    def mark_read(self, message_id: UUID, read_at: datetime) -> None:
        """Mark a message as read."""
        self.client.table(_TABLE).update(
            {"is_read": True, "read_at": read_at.isoformat()}
        ).eq("id", str(message_id)).eq("is_read", False).execute()


def _parse_row(row: dict[str, object]) -> MessageRecord:
    attachments = row.get("attachments_json") or []
    return MessageRecord(
        id=UUID(str(row["id"])),
        seq=int(row["seq"]),
        scope=MessageScope(
            booking_id=parse_uuid(row.get("booking_id")),
            handover_session_id=parse_uuid(row.get("handover_session_id")),
            return_session_id=parse_uuid(row.get("return_session_id")),
        ),
        sender_id=UUID(str(row["sender_id"])),
        sender_type=str(row["sender_type"]),
        content=str(row["content"]),
        message_type=str(row.get("message_type") or "text"),
        sent_at=parse_datetime(row["sent_at"]),
        attachments=tuple(
            Attachment(type=str(item.get("type")), url=str(item.get("url")))
            for item in attachments
            if isinstance(item, dict)
        ),
        is_read=bool(row.get("is_read", False)),
        read_at=parse_datetime(row.get("read_at")),
    )

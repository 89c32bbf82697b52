"""Domain models for session-scoped messaging."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

MESSAGE_TYPES = ("text", "image", "voice", "video", "location", "file")
SENDER_TYPES = ("renter", "owner")


@dataclass(frozen=True)
class MessageScope:
    """Key a conversation is attached to."""

    booking_id: UUID | None = None
    handover_session_id: UUID | None = None
    return_session_id: UUID | None = None

    @property
    def session_id(self) -> UUID | None:
        return self.handover_session_id or self.return_session_id

    def is_empty(self) -> bool:
        return self.booking_id is None and self.session_id is None


@dataclass(frozen=True)
class Attachment:
    """Reference to an externally stored file."""

    type: str
    url: str


@dataclass(frozen=True)
class MessageRecord:
    """Represents a stored, immutable message."""

    id: UUID
    seq: int
    scope: MessageScope
    sender_id: UUID
    sender_type: str
    content: str
    message_type: str
    sent_at: datetime
    attachments: tuple[Attachment, ...] = field(default_factory=tuple)
    is_read: bool = False
    read_at: datetime | None = None

"""Domain models for handover and return sessions."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from handover_return.domain.conditions import ConditionComparison, ConditionRecord

HANDOVER = "handover"
RETURN = "return"
SESSION_KINDS = (HANDOVER, RETURN)

PENDING = "pending"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"
CANCELLED = "cancelled"
DISPUTED = "disputed"

ACTIVE_STATUSES = frozenset({PENDING, IN_PROGRESS})
TERMINAL_STATUSES = frozenset({COMPLETED, CANCELLED, DISPUTED})

HANDOVER_METHODS = ("pickup", "delivery", "meetup")

PHOTO_CATEGORIES = {
    HANDOVER: frozenset({"overall", "damage", "accessories", "documentation"}),
    RETURN: frozenset({"overall", "damage", "accessories", "comparison"}),
}


@dataclass(frozen=True)
class Location:
    """Where the handover or return takes place."""

    address: str
    city: str | None = None
    country: str | None = None
    latitude: float | None = None
    longitude: float | None = None


@dataclass(frozen=True)
class SessionRecord:
    """Represents a persisted handover or return session."""

    id: UUID
    kind: str
    booking_id: UUID
    product_id: UUID
    renter_id: UUID
    owner_id: UUID
    status: str
    verification_code: str | None
    scheduled_at: datetime
    estimated_duration_minutes: int | None
    location: Location
    created_at: datetime
    updated_at: datetime
    version: int = 1
    method: str = "meetup"
    notes: str | None = None
    linked_handover_session_id: UUID | None = None
    condition_record: ConditionRecord | None = None
    condition_comparison: ConditionComparison | None = None
    completed_at: datetime | None = None
    disputed_by: UUID | None = None
    dispute_reason: str | None = None
    resolution_note: str | None = None

    def is_counterparty(self, user_id: UUID) -> bool:
        """Return True when the user is the renter or the owner."""
        return user_id in (self.renter_id, self.owner_id)

    def party_role(self, user_id: UUID) -> str | None:
        """Return "renter" or "owner" for a counterparty, else None."""
        if user_id == self.renter_id:
            return "renter"
        if user_id == self.owner_id:
            return "owner"
        return None


@dataclass(frozen=True)
class NewSession:
    """Caller-supplied fields for creating a session."""

    booking_id: UUID
    product_id: UUID
    renter_id: UUID
    owner_id: UUID
    scheduled_at: datetime
    location: Location
    method: str = "meetup"
    notes: str | None = None
    estimated_duration_minutes: int | None = None
    linked_handover_session_id: UUID | None = None


@dataclass(frozen=True)
class SessionUpdate:
    """Bounded set of fields a counterparty may edit."""

    scheduled_at: datetime | None = None
    location: Location | None = None
    notes: str | None = None
    estimated_duration_minutes: int | None = None


@dataclass(frozen=True)
class PhotoRecord:
    """Evidence image metadata attached to a session."""

    id: UUID
    session_id: UUID
    url: str
    category: str
    caption: str | None
    uploaded_at: datetime


@dataclass(frozen=True)
class BookingInfo:
    """Booking details resolved from the booking service."""

    id: UUID
    product_id: UUID
    renter_id: UUID
    owner_id: UUID
    status: str

    def is_party(self, user_id: UUID) -> bool:
        """Return True when the user is the renter or the owner."""
        return user_id in (self.renter_id, self.owner_id)


def location_to_dict(location: Location) -> dict[str, object]:
    """Serialize a location to JSON-compatible data."""
    return {
        "address": location.address,
        "city": location.city,
        "country": location.country,
        "latitude": location.latitude,
        "longitude": location.longitude,
    }


def location_from_dict(data: dict[str, object]) -> Location:
    """Parse a location from stored JSON data."""
    latitude = data.get("latitude")
    longitude = data.get("longitude")
    return Location(
        address=str(data.get("address") or ""),
        city=data.get("city"),
        country=data.get("country"),
        latitude=float(latitude) if latitude is not None else None,
        longitude=float(longitude) if longitude is not None else None,
    )

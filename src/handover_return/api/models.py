"""Pydantic models for request payloads.

Clients send camelCase keys; a few legacy names from older clients are
accepted as aliases and mapped onto one canonical field here.
"""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from handover_return.domain.conditions import ConditionOverride, ConditionRecord
from handover_return.domain.messages import Attachment, MessageScope
from handover_return.domain.sessions import Location, NewSession, SessionUpdate


class ApiModel(BaseModel):
    """Base model accepting camelCase or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LocationPayload(ApiModel):
    """Handover or return location."""

    address: str
    city: str | None = None
    country: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    def to_domain(self) -> Location:
        return Location(
            address=self.address,
            city=self.city,
            country=self.country,
            latitude=self.latitude,
            longitude=self.longitude,
        )


class CreateSessionRequest(ApiModel):
    """Payload for creating a handover or return session."""

    booking_id: UUID
    product_id: UUID
    renter_id: UUID
    owner_id: UUID
    scheduled_at: datetime = Field(
        validation_alias=AliasChoices(
            "scheduledAt", "scheduledDateTime", "scheduled_at"
        )
    )
    location: LocationPayload
    method: str = Field(
        default="meetup",
        validation_alias=AliasChoices("method", "handoverType", "returnType"),
    )
    notes: str | None = Field(
        default=None,
        validation_alias=AliasChoices("notes", "handoverNotes", "returnNotes"),
    )
    estimated_duration_minutes: int | None = None
    linked_handover_session_id: UUID | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "linkedHandoverSessionId",
            "handoverSessionId",
            "linked_handover_session_id",
        ),
    )

    def to_domain(self) -> NewSession:
        return NewSession(
            booking_id=self.booking_id,
            product_id=self.product_id,
            renter_id=self.renter_id,
            owner_id=self.owner_id,
            scheduled_at=self.scheduled_at,
            location=self.location.to_domain(),
            method=self.method,
            notes=self.notes,
            estimated_duration_minutes=self.estimated_duration_minutes,
            linked_handover_session_id=self.linked_handover_session_id,
        )


class VersionedRequest(ApiModel):
    """Any mutation carries the version the caller last observed."""

    version: int


class UpdateSessionRequest(VersionedRequest):
    """Bounded session edit; other fields are rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    scheduled_at: datetime | None = None
    location: LocationPayload | None = None
    notes: str | None = None
    estimated_duration_minutes: int | None = None

    def to_domain(self) -> SessionUpdate:
        return SessionUpdate(
            scheduled_at=self.scheduled_at,
            location=self.location.to_domain() if self.location else None,
            notes=self.notes,
            estimated_duration_minutes=self.estimated_duration_minutes,
        )


class DisputeRequest(VersionedRequest):
    """Payload for flagging a dispute."""

    reason: str | None = None


class ConditionPayload(ApiModel):
    """Assessed item condition."""

    overall_condition: str
    cleanliness: str
    damage_notes: str = ""
    photo_refs: list[UUID] = Field(default_factory=list)

    def to_domain(self) -> ConditionRecord:
        return ConditionRecord(
            overall_condition=self.overall_condition,
            cleanliness=self.cleanliness,
            damage_notes=self.damage_notes,
            photo_refs=tuple(self.photo_refs),
        )


class ConditionOverridePayload(ApiModel):
    """Manual change values entered by a counterparty."""

    overall_condition_change: str | None = None
    cleanliness_change: str | None = None

    def to_domain(self) -> ConditionOverride:
        return ConditionOverride(
            overall_condition_change=self.overall_condition_change,
            cleanliness_change=self.cleanliness_change,
        )


class CompleteSessionRequest(VersionedRequest):
    """Payload for completing a session."""

    verification_code: str
    condition: ConditionPayload | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "conditionRecord", "conditionAssessment", "condition"
        ),
    )
    override: ConditionOverridePayload | None = None


class AddPhotoRequest(VersionedRequest):
    """Metadata for an image already stored by the photo service."""

    url: str = Field(validation_alias=AliasChoices("url", "photoUrl"))
    category: str
    caption: str | None = None


class VerifyCodeRequest(ApiModel):
    """Candidate verification code."""

    code: str


class AttachmentPayload(ApiModel):
    """Attachment reference on a message."""

    type: str
    url: str


class SendMessageRequest(ApiModel):
    """Payload for sending a message."""

    booking_id: UUID | None = None
    handover_session_id: UUID | None = None
    return_session_id: UUID | None = None
    sender_id: UUID | None = None
    sender_type: str | None = None
    content: str = Field(validation_alias=AliasChoices("content", "message"))
    message_type: str = "text"
    attachments: list[AttachmentPayload] = Field(default_factory=list)

    def scope(self) -> MessageScope:
        return MessageScope(
            booking_id=self.booking_id,
            handover_session_id=self.handover_session_id,
            return_session_id=self.return_session_id,
        )

    def attachment_records(self) -> tuple[Attachment, ...]:
        return tuple(
            Attachment(type=item.type, url=item.url) for item in self.attachments
        )


class ScheduleNotificationRequest(ApiModel):
    """Payload for scheduling a reminder."""

    booking_id: UUID
    type: str
    scheduled_at: datetime
    payload: dict[str, object] = Field(default_factory=dict)


class ResolveDisputeRequest(VersionedRequest):
    """Arbitration outcome for a disputed session."""

    outcome: str
    note: str | None = None

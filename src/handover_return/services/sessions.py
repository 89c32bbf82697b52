"""Session state machine for handover and return sessions."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Protocol
from uuid import UUID, uuid4

from handover_return.adapters.booking_client import BookingClient
from handover_return.domain.conditions import ConditionOverride, ConditionRecord
from handover_return.domain.errors import (
    InvalidTransition,
    NotFound,
    StaleVersion,
    Unauthorized,
    ValidationError,
)
from handover_return.domain.pagination import Page
from handover_return.domain.sessions import (
    ACTIVE_STATUSES,
    CANCELLED,
    COMPLETED,
    DISPUTED,
    HANDOVER,
    HANDOVER_METHODS,
    IN_PROGRESS,
    PENDING,
    PHOTO_CATEGORIES,
    RETURN,
    SESSION_KINDS,
    Location,
    NewSession,
    PhotoRecord,
    SessionRecord,
    SessionUpdate,
)
from handover_return.services.audit import AuditService
from handover_return.services.conditions import ConditionAssessmentEngine
from handover_return.services.linkage import SessionLinkageManager
from handover_return.services.notifications import NotificationScheduler
from handover_return.services.validation import (
    page_bounds,
    require_future,
    require_text,
    utc_now,
)
from handover_return.services.verification import VerificationCodeIssuer

_logger = logging.getLogger(__name__)

_DISPUTE_OUTCOMES = (COMPLETED, CANCELLED)


class SessionRepository(Protocol):
    """Persistence interface for handover and return sessions."""

    def create_session(self, session: SessionRecord) -> SessionRecord:
        """Store a new session and return it.

        Raises LinkageViolation when a return session would become the second
        non-cancelled return linked to the same handover session.
        """

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id, if present."""

    def list_for_user(
        self, user_id: UUID, kind: str, offset: int, limit: int
    ) -> tuple[list[SessionRecord], int]:
        """Return a page of a user's sessions and the total count."""

    def list_returns_for_handover(
        self, handover_session_id: UUID
    ) -> list[SessionRecord]:
        """Return all return sessions linked to a handover session."""

    def code_in_use(self, code: str) -> bool:
        """Return True when an active session holds the code."""

    def save_session(
        self, session: SessionRecord, expected_version: int
    ) -> SessionRecord:
        """Replace a session if its stored version matches, else StaleVersion."""


class PhotoRepository(Protocol):
    """Persistence interface for photo evidence metadata."""

    def create_photo(self, photo: PhotoRecord) -> PhotoRecord:
        """Store photo metadata and return it."""

    def list_photos(self, session_id: UUID) -> list[PhotoRecord]:
        """Return photos of a session in upload order."""


@dataclass
class SessionService:
    """Owns the lifecycle of handover and return sessions."""

    session_repository: SessionRepository
    photo_repository: PhotoRepository
    booking_client: BookingClient
    verification: VerificationCodeIssuer
    conditions: ConditionAssessmentEngine
    linkage: SessionLinkageManager
    notifications: NotificationScheduler
    audit_service: AuditService
    reminder_lead: timedelta = timedelta(minutes=60)
    max_page_size: int = 100

    async def create_session(
        self, caller_id: UUID, kind: str, draft: NewSession
    ) -> SessionRecord:
        """Create a pending session for a booking."""
        if kind not in SESSION_KINDS:
            raise ValidationError("kind", f"Unknown session kind: {kind}")
        booking = await self.booking_client.get_booking(draft.booking_id)
        if booking is None:
            raise NotFound("Booking", draft.booking_id)
        if not booking.is_party(caller_id):
            raise Unauthorized("Caller is not a party to this booking")
        for field_name, supplied, expected in (
            ("product_id", draft.product_id, booking.product_id),
            ("renter_id", draft.renter_id, booking.renter_id),
            ("owner_id", draft.owner_id, booking.owner_id),
        ):
            if supplied != expected:
                raise ValidationError(
                    field_name, f"{field_name} does not match the booking"
                )
        scheduled_at = require_future("scheduled_at", draft.scheduled_at)
        location = _validated_location(draft.location)
        if draft.method not in HANDOVER_METHODS:
            raise ValidationError(
                "method", f"method must be one of {', '.join(HANDOVER_METHODS)}"
            )
        _check_duration(draft.estimated_duration_minutes)

        linked_id = None
        if kind == RETURN:
            handover = self.linkage.resolve_handover_for_return(
                draft.booking_id, draft.linked_handover_session_id
            )
            linked_id = handover.id
        elif draft.linked_handover_session_id is not None:
            raise ValidationError(
                "linked_handover_session_id",
                "Only return sessions link to a handover session",
            )

        now = utc_now()
        session = SessionRecord(
            id=uuid4(),
            kind=kind,
            booking_id=draft.booking_id,
            product_id=draft.product_id,
            renter_id=draft.renter_id,
            owner_id=draft.owner_id,
            status=PENDING,
            verification_code=self.verification.issue(),
            scheduled_at=scheduled_at,
            estimated_duration_minutes=draft.estimated_duration_minutes,
            location=location,
            created_at=now,
            updated_at=now,
            method=draft.method,
            notes=draft.notes,
            linked_handover_session_id=linked_id,
        )
        created = self.session_repository.create_session(session)
        self.audit_service.record_event(
            actor_id=caller_id,
            entity_type=f"{kind}_session",
            entity_id=created.id,
            event_type="created",
            before=None,
            after={"status": created.status, "version": created.version},
        )
        self.notifications.schedule_session_reminders(created, self.reminder_lead)
        _logger.info(
            "Session created: id=%s kind=%s booking=%s",
            created.id,
            kind,
            created.booking_id,
        )
        return created

    def get_session(
        self, caller_id: UUID, session_id: UUID, kind: str | None = None
    ) -> SessionRecord:
        """Return a session visible to one of its counterparties."""
        session = self._load(session_id, kind)
        if not session.is_counterparty(caller_id):
            raise Unauthorized("Caller is not a party to this session")
        return session

    def list_sessions(  # noqa: PLR0913
        self,
        caller_id: UUID,
        user_id: UUID,
        kind: str,
        page: int = 1,
        limit: int = 20,
    ) -> Page[SessionRecord]:
        """Return a page of sessions in which the user is a counterparty."""
        if caller_id != user_id:
            raise Unauthorized("Sessions can only be listed for the caller")
        page, limit = page_bounds(page, limit, self.max_page_size)
        items, total = self.session_repository.list_for_user(
            user_id, kind, (page - 1) * limit, limit
        )
        return Page(items=items, total=total, page=page, limit=limit)

    def update_session(  # noqa: PLR0913
        self,
        caller_id: UUID,
        session_id: UUID,
        kind: str,
        version: int,
        changes: SessionUpdate,
    ) -> SessionRecord:
        """Apply a bounded edit to a pending or in-progress session."""
        session = self.get_session(caller_id, session_id, kind)
        _require_status(session, ACTIVE_STATUSES, "update")
        _check_version(session, version)
        fields: dict[str, object] = {}
        if changes.scheduled_at is not None:
            fields["scheduled_at"] = require_future(
                "scheduled_at", changes.scheduled_at
            )
        if changes.location is not None:
            fields["location"] = _validated_location(changes.location)
        if changes.notes is not None:
            fields["notes"] = changes.notes
        if changes.estimated_duration_minutes is not None:
            _check_duration(changes.estimated_duration_minutes)
            fields["estimated_duration_minutes"] = changes.estimated_duration_minutes
        if not fields:
            raise ValidationError("body", "No updatable fields supplied")
        return self._write(session, version, caller_id, "updated", **fields)

    def begin(
        self, caller_id: UUID, session_id: UUID, kind: str, version: int
    ) -> SessionRecord:
        """Move a pending session to in_progress; repeat calls are no-ops."""
        session = self.get_session(caller_id, session_id, kind)
        if session.status == IN_PROGRESS:
            return session
        _require_status(session, {PENDING}, "begin")
        _check_version(session, version)
        return self._write(session, version, caller_id, "begun", status=IN_PROGRESS)

    def complete(  # noqa: PLR0913
        self,
        caller_id: UUID,
        session_id: UUID,
        kind: str,
        version: int,
        verification_code: str,
        condition: ConditionRecord | None,
        override: ConditionOverride | None = None,
    ) -> SessionRecord:
        """Complete an in-progress session with its code and condition."""
        session = self.get_session(caller_id, session_id, kind)
        _require_status(session, {IN_PROGRESS}, "complete")
        _check_version(session, version)
        if not self.verification.validate(session.verification_code, verification_code):
            raise ValidationError("verification_code", "Verification code is invalid")
        if condition is None:
            raise ValidationError("condition_record", "A condition record is required")
        photos = self.photo_repository.list_photos(session.id)
        photo_ids = {photo.id for photo in photos}
        self.conditions.validate_record(condition, photo_ids)

        now = utc_now()
        if session.kind == HANDOVER:
            if override is not None:
                raise ValidationError(
                    "override", "Overrides apply to return sessions only"
                )
            record = self.conditions.record_handover_condition(session, condition)
            completed = self._write(
                session,
                version,
                caller_id,
                "completed",
                status=COMPLETED,
                condition_record=record,
                verification_code=None,
                completed_at=now,
            )
            return completed

        handover = self.linkage.linked_handover(session)
        computed = self.conditions.compute_return_comparison(handover, condition)
        comparison = self.conditions.apply_override(computed, override)
        completed = self._write(
            session,
            version,
            caller_id,
            "completed",
            status=COMPLETED,
            condition_comparison=comparison,
            verification_code=None,
            completed_at=now,
        )
        if comparison.overridden:
            self.conditions.record_override(completed, caller_id, comparison)
        return completed

    def cancel(
        self, caller_id: UUID, session_id: UUID, kind: str, version: int
    ) -> SessionRecord:
        """Cancel a session that has not been completed."""
        session = self.get_session(caller_id, session_id, kind)
        _require_status(session, ACTIVE_STATUSES, "cancel")
        _check_version(session, version)
        return self._write(
            session,
            version,
            caller_id,
            "cancelled",
            status=CANCELLED,
            verification_code=None,
        )

    def dispute(  # noqa: PLR0913
        self,
        caller_id: UUID,
        session_id: UUID,
        kind: str,
        version: int,
        reason: str | None = None,
    ) -> SessionRecord:
        """Flag an in-progress session as disputed by the caller."""
        session = self.get_session(caller_id, session_id, kind)
        _require_status(session, {IN_PROGRESS}, "dispute")
        _check_version(session, version)
        disputed = self._write(
            session,
            version,
            caller_id,
            "disputed",
            status=DISPUTED,
            verification_code=None,
            disputed_by=caller_id,
            dispute_reason=(reason or "").strip() or None,
        )
        _logger.warning(
            "Session disputed: id=%s kind=%s by=%s", session.id, session.kind, caller_id
        )
        return disputed

    def resolve_dispute(
        self, session_id: UUID, outcome: str, version: int, note: str | None = None
    ) -> SessionRecord:
        """Apply an arbitration outcome to a disputed session."""
        if outcome not in _DISPUTE_OUTCOMES:
            raise ValidationError(
                "outcome", f"outcome must be one of {', '.join(_DISPUTE_OUTCOMES)}"
            )
        session = self._load(session_id, None)
        _require_status(session, {DISPUTED}, f"resolve to {outcome}")
        _check_version(session, version)
        fields: dict[str, object] = {"status": outcome}
        if outcome == COMPLETED:
            fields["completed_at"] = utc_now()
        if note and note.strip():
            fields["resolution_note"] = note.strip()
        return self._write(session, version, None, f"arbitrated_{outcome}", **fields)

    def add_photo(  # noqa: PLR0913
        self,
        caller_id: UUID,
        session_id: UUID,
        kind: str,
        version: int,
        url: str,
        category: str,
        caption: str | None = None,
    ) -> tuple[SessionRecord, PhotoRecord]:
        """Attach evidence photo metadata to an active session."""
        session = self.get_session(caller_id, session_id, kind)
        _require_status(session, ACTIVE_STATUSES, "add a photo to")
        _check_version(session, version)
        allowed = PHOTO_CATEGORIES[session.kind]
        if category not in allowed:
            raise ValidationError(
                "category", f"category must be one of {', '.join(sorted(allowed))}"
            )
        photo_url = require_text("url", url)
        photo = PhotoRecord(
            id=uuid4(),
            session_id=session.id,
            url=photo_url,
            category=category,
            caption=caption,
            uploaded_at=utc_now(),
        )
        # Claim the version first so a stale request never stores a photo.
        touched = self._save(session, version)
        created = self.photo_repository.create_photo(photo)
        self.audit_service.record_transition(caller_id, session, touched, "photo_added")
        return touched, created

    def get_session_detail(
        self, caller_id: UUID, session_id: UUID, kind: str
    ) -> tuple[SessionRecord, list[PhotoRecord]]:
        """Return a session together with all of its evidence photos."""
        session = self.get_session(caller_id, session_id, kind)
        return session, self.photo_repository.list_photos(session.id)

    def list_photos(  # noqa: PLR0913
        self,
        caller_id: UUID,
        session_id: UUID,
        kind: str,
        page: int = 1,
        limit: int = 20,
    ) -> Page[PhotoRecord]:
        """Return a page of evidence photos of a session in upload order."""
        page, limit = page_bounds(page, limit, self.max_page_size)
        session = self.get_session(caller_id, session_id, kind)
        photos = self.photo_repository.list_photos(session.id)
        offset = (page - 1) * limit
        return Page(
            items=photos[offset : offset + limit],
            total=len(photos),
            page=page,
            limit=limit,
        )

    def regenerate_code(
        self, caller_id: UUID, session_id: UUID, kind: str, version: int
    ) -> SessionRecord:
        """Replace the verification code of an active session."""
        session = self.get_session(caller_id, session_id, kind)
        _require_status(session, ACTIVE_STATUSES, "regenerate the code of")
        _check_version(session, version)
        return self._write(
            session,
            version,
            caller_id,
            "code_regenerated",
            verification_code=self.verification.issue(),
        )

    def verify_code(
        self, caller_id: UUID, session_id: UUID, kind: str, candidate: object
    ) -> bool:
        """Check a code without consuming it."""
        session = self.get_session(caller_id, session_id, kind)
        return self.verification.validate(session.verification_code, candidate)

    def _load(self, session_id: UUID, kind: str | None) -> SessionRecord:
        session = self.session_repository.get_session(session_id)
        if session is None or (kind is not None and session.kind != kind):
            raise NotFound(f"{(kind or 'session').capitalize()} session", session_id)
        return session

    def _write(
        self,
        session: SessionRecord,
        version: int,
        actor_id: UUID | None,
        event_type: str,
        **fields: object,
    ) -> SessionRecord:
        saved = self._save(session, version, **fields)
        self.audit_service.record_transition(actor_id, session, saved, event_type)
        return saved

    def _save(
        self, session: SessionRecord, version: int, **fields: object
    ) -> SessionRecord:
        updated = replace(
            session,
            version=session.version + 1,
            updated_at=_next_stamp(session.updated_at),
            **fields,
        )
        saved = self.session_repository.save_session(updated, expected_version=version)
        if saved.status != session.status:
            _logger.info(
                "Session transition: id=%s kind=%s %s->%s",
                saved.id,
                saved.kind,
                session.status,
                saved.status,
            )
        return saved


def _require_status(session: SessionRecord, allowed: set[str], attempted: str) -> None:
    if session.status not in allowed:
        raise InvalidTransition(session.status, attempted)


def _check_version(session: SessionRecord, version: int) -> None:
    if session.version != version:
        raise StaleVersion(expected=version, actual=session.version)


def _validated_location(location: Location) -> Location:
    address = require_text("location.address", location.address)
    for name, value, bound in (
        ("location.latitude", location.latitude, 90),
        ("location.longitude", location.longitude, 180),
    ):
        if value is not None and not -bound <= value <= bound:
            raise ValidationError(name, f"{name} is out of range")
    return replace(location, address=address)


def _check_duration(minutes: int | None) -> None:
    if minutes is not None and minutes <= 0:
        raise ValidationError(
            "estimated_duration_minutes", "estimated_duration_minutes must be positive"
        )


def _next_stamp(previous: datetime) -> datetime:
    now = utc_now()
    if now <= previous:
        return previous + timedelta(microseconds=1)
    return now

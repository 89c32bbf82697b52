"""Tests for scoped messaging."""

import asyncio
from dataclasses import replace
from uuid import uuid4

import pytest

from handover_return.domain.errors import (
    InvalidTransition,
    NotFound,
    Unauthorized,
    ValidationError,
)
from handover_return.domain.messages import Attachment, MessageScope
from handover_return.domain.sessions import HANDOVER
from handover_return.services.messages import MessagingService
from tests.conftest import completed_handover, draft_for, in_hours


def _session(container, booking):  # type: ignore[no-untyped-def]
    service = container.session_service
    session = asyncio.run(
        service.create_session(booking.owner_id, HANDOVER, draft_for(booking))
    )
    return service.begin(booking.owner_id, session.id, HANDOVER, session.version)


def _disputed(container, booking):  # type: ignore[no-untyped-def]
    started = _session(container, booking)
    return container.session_service.dispute(
        booking.renter_id, started.id, HANDOVER, started.version, "Missing charger"
    )


def test_booking_messages_are_listed_in_send_order(container, booking_client) -> None:
    booking = booking_client.add_booking()
    messaging = container.messaging_service
    scope = MessageScope(booking_id=booking.id)

    first = asyncio.run(messaging.send(booking.renter_id, scope, "On my way"))
    second = asyncio.run(messaging.send(booking.owner_id, scope, "See you soon"))
    page = asyncio.run(messaging.list_by_scope(booking.owner_id, scope))

    assert first.sender_type == "renter"
    assert second.sender_type == "owner"
    assert [message.id for message in page.items] == [first.id, second.id]
    assert first.seq < second.seq
    assert page.total == 2


def test_session_messages_follow_sequence_despite_clock_skew(
    container, booking_client, monkeypatch
) -> None:
    booking = booking_client.add_booking()
    session = _session(container, booking)
    messaging = container.messaging_service
    scope = MessageScope(handover_session_id=session.id)
    clock = iter([in_hours(1), in_hours(-1), in_hours(-2)])
    monkeypatch.setattr(
        "handover_return.services.messages.utc_now", lambda: next(clock)
    )

    sent = [
        asyncio.run(messaging.send(user_id, scope, text))
        for user_id, text in (
            (booking.renter_id, "Arrived"),
            (booking.owner_id, "Coming down"),
            (booking.renter_id, "Thanks"),
        )
    ]
    page = asyncio.run(messaging.list_by_scope(booking.owner_id, scope))

    assert sent[1].sent_at < sent[0].sent_at
    assert [message.id for message in page.items] == [item.id for item in sent]
    assert [message.seq for message in page.items] == sorted(
        message.seq for message in page.items
    )


def test_session_message_fills_booking_id(container, booking_client) -> None:
    booking = booking_client.add_booking()
    session = _session(container, booking)
    messaging = container.messaging_service

    message = asyncio.run(
        messaging.send(
            booking.renter_id,
            MessageScope(handover_session_id=session.id),
            "At the door",
            message_type="image",
            attachments=(Attachment(type="image", url="https://cdn.test/door.jpg"),),
        )
    )
    by_booking = asyncio.run(
        messaging.list_by_scope(booking.owner_id, MessageScope(booking_id=booking.id))
    )

    assert message.scope.booking_id == booking.id
    assert [item.id for item in by_booking.items] == [message.id]


def test_outsider_cannot_send(container, booking_client) -> None:
    booking = booking_client.add_booking()

    with pytest.raises(Unauthorized):
        asyncio.run(
            container.messaging_service.send(
                uuid4(), MessageScope(booking_id=booking.id), "Hello"
            )
        )


@pytest.mark.parametrize("content", ["", "   ", "x" * 2001])
def test_content_is_validated(container, booking_client, content: str) -> None:
    booking = booking_client.add_booking()

    with pytest.raises(ValidationError) as exc_info:
        asyncio.run(
            container.messaging_service.send(
                booking.renter_id, MessageScope(booking_id=booking.id), content
            )
        )

    assert exc_info.value.field == "content"


def test_sender_type_must_match_role(container, booking_client) -> None:
    booking = booking_client.add_booking()

    with pytest.raises(ValidationError):
        asyncio.run(
            container.messaging_service.send(
                booking.renter_id,
                MessageScope(booking_id=booking.id),
                "Hello",
                sender_type="owner",
            )
        )


def test_scope_is_required(container, booking_client) -> None:
    booking = booking_client.add_booking()

    with pytest.raises(ValidationError):
        asyncio.run(
            container.messaging_service.send(booking.renter_id, MessageScope(), "Hi")
        )


def test_unknown_session_scope_is_not_found(container, booking_client) -> None:
    booking = booking_client.add_booking()

    with pytest.raises(NotFound):
        asyncio.run(
            container.messaging_service.send(
                booking.renter_id, MessageScope(return_session_id=uuid4()), "Hi"
            )
        )


def test_completed_session_is_closed_for_messages(container, booking_client) -> None:
    booking = booking_client.add_booking()
    handover = asyncio.run(
        completed_handover(container.session_service, booking)
    )

    with pytest.raises(InvalidTransition):
        asyncio.run(
            container.messaging_service.send(
                booking.renter_id,
                MessageScope(handover_session_id=handover.id),
                "Thanks!",
            )
        )


def test_disputing_party_keeps_messaging(container, booking_client) -> None:
    booking = booking_client.add_booking()
    disputed = _disputed(container, booking)
    scope = MessageScope(handover_session_id=disputed.id)

    message = asyncio.run(
        container.messaging_service.send(booking.renter_id, scope, "Photos attached")
    )

    assert message.sender_type == "renter"
    with pytest.raises(InvalidTransition):
        asyncio.run(
            container.messaging_service.send(booking.owner_id, scope, "It was there")
        )


@pytest.mark.parametrize(
    ("policy", "owner_allowed", "renter_allowed"),
    [("both_parties", True, True), ("closed", False, False)],
)
def test_dispute_messaging_policies(
    container, booking_client, policy: str, owner_allowed: bool, renter_allowed: bool
) -> None:
    booking = booking_client.add_booking()
    disputed = _disputed(container, booking)
    messaging: MessagingService = replace(
        container.messaging_service, dispute_policy=policy
    )
    scope = MessageScope(handover_session_id=disputed.id)

    for user_id, allowed in (
        (booking.owner_id, owner_allowed),
        (booking.renter_id, renter_allowed),
    ):
        if allowed:
            asyncio.run(messaging.send(user_id, scope, "Update"))
        else:
            with pytest.raises(InvalidTransition):
                asyncio.run(messaging.send(user_id, scope, "Update"))


def test_unknown_policy_is_rejected(container) -> None:
    with pytest.raises(ValueError):
        replace(container.messaging_service, dispute_policy="everyone")


def test_mark_read_is_idempotent(container, booking_client) -> None:
    booking = booking_client.add_booking()
    messaging = container.messaging_service
    sent = asyncio.run(
        messaging.send(booking.renter_id, MessageScope(booking_id=booking.id), "Hi")
    )

    first = asyncio.run(messaging.mark_read(booking.owner_id, sent.id))
    second = asyncio.run(messaging.mark_read(booking.owner_id, sent.id))

    assert first.is_read is True
    assert second.read_at == first.read_at


def test_list_by_scope_validates_page_size(container, booking_client) -> None:
    booking = booking_client.add_booking()

    with pytest.raises(ValidationError):
        asyncio.run(
            container.messaging_service.list_by_scope(
                booking.renter_id, MessageScope(booking_id=booking.id), limit=0
            )
        )

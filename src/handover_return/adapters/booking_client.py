"""Booking service API client."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

import httpx

from handover_return.domain.sessions import BookingInfo


class BookingClient(Protocol):
    """Interface for resolving bookings owned by the booking service."""

    async def get_booking(self, booking_id: UUID) -> BookingInfo | None:
        """Return booking parties and status, or None if unknown."""


@dataclass
class HttpxBookingClient(BookingClient):
    """HTTPX-backed booking service client."""

    base_url: str
    http_client: httpx.AsyncClient
    token: str | None = None

    @classmethod
    def create(cls, base_url: str, token: str | None = None) -> "HttpxBookingClient":
        """Create a booking client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            token=token,
        )

    async def get_booking(self, booking_id: UUID) -> BookingInfo | None:
        """Fetch a booking by id."""
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        response = await self.http_client.get(
            f"{self.base_url}/bookings/{booking_id}",
            headers=headers,
            timeout=15,
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        payload = response.json()
        data = payload.get("data", payload) if isinstance(payload, dict) else {}
        return _parse_booking(data)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _parse_booking(data: dict[str, object]) -> BookingInfo:
    return BookingInfo(
        id=_required_uuid(data, "id", "id"),
        product_id=_required_uuid(data, "product_id", "productId"),
        renter_id=_required_uuid(data, "renter_id", "renterId"),
        owner_id=_required_uuid(data, "owner_id", "ownerId"),
        status=str(data.get("status", "unknown")),
    )


def _required_uuid(data: dict[str, object], snake: str, camel: str) -> UUID:
    raw = data.get(snake) or data.get(camel)
    try:
        return UUID(str(raw))
    except ValueError as exc:
        raise RuntimeError(
            f"Booking service returned a malformed booking: bad {camel}={raw!r}"
        ) from exc

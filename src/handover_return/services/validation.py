"""Shared input checks for service operations."""

from datetime import UTC, datetime

from handover_return.domain.errors import ValidationError


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def require_future(field: str, value: datetime) -> datetime:
    """Return the timestamp in UTC, rejecting naive or past values."""
    if value.tzinfo is None:
        raise ValidationError(field, f"{field} must include a timezone offset")
    if value <= utc_now():
        raise ValidationError(field, f"{field} must be in the future")
    return value.astimezone(UTC)


def require_text(field: str, value: str | None) -> str:
    """Return stripped text, rejecting empty values."""
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(field, f"{field} is required")
    return cleaned


def page_bounds(page: int, limit: int, max_limit: int) -> tuple[int, int]:
    """Validate pagination parameters and return (page, limit)."""
    if page < 1:
        raise ValidationError("page", "page must be 1 or greater")
    if limit < 1 or limit > max_limit:
        raise ValidationError("limit", f"limit must be between 1 and {max_limit}")
    return page, limit

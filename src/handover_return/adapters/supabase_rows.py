"""Helpers for converting Supabase rows."""

from datetime import datetime
from uuid import UUID


def parse_datetime(raw: object) -> datetime | None:
    """Parse an ISO timestamp returned by PostgREST."""
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None


def parse_uuid(raw: object) -> UUID | None:
    """Parse an optional UUID column."""
    if raw is None or raw == "":
        return None
    return UUID(str(raw))


def optional_str(value: object) -> str | None:
    """Serialize an optional id or timestamp for a row payload."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)

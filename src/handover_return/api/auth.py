"""Caller identity dependency."""

from uuid import UUID

from fastapi import Header, HTTPException, status


async def require_caller(x_user_id: str | None = Header(default=None)) -> UUID:
    """Return the authenticated caller id forwarded by the gateway."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    try:
        return UUID(x_user_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED) from exc

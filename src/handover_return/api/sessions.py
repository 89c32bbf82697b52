"""Handover and return session endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Query, Request, status

from handover_return.api.auth import require_caller
from handover_return.api.models import (
    AddPhotoRequest,
    CompleteSessionRequest,
    CreateSessionRequest,
    DisputeRequest,
    UpdateSessionRequest,
    VerifyCodeRequest,
    VersionedRequest,
)
from handover_return.api.serializers import (
    envelope,
    page_envelope,
    serialize_photo,
    serialize_session,
)
from handover_return.domain.sessions import HANDOVER, RETURN

if TYPE_CHECKING:
    from handover_return.containers import AppContainer
    from handover_return.services.sessions import SessionService


def _service(request: Request) -> SessionService:
    container: AppContainer = request.app.state.container
    return container.session_service


def build_session_router(kind: str) -> APIRouter:  # noqa: PLR0915
    """Create the router for one session kind."""
    label = kind.capitalize()
    router = APIRouter(prefix=f"/{kind}-sessions", tags=[f"{kind}-sessions"])

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create_session(
        payload: CreateSessionRequest,
        request: Request,
        caller_id: UUID = Depends(require_caller),
    ) -> dict[str, object]:
        """Create a pending session for a booking."""
        session = await _service(request).create_session(
            caller_id, kind, payload.to_domain()
        )
        return envelope(
            serialize_session(session, photos=[], include_code=True),
            f"{label} session created",
        )

    @router.get("")
    async def list_sessions(
        request: Request,
        caller_id: UUID = Depends(require_caller),
        user_id: UUID | None = Query(default=None, alias="userId"),
        page: int = 1,
        limit: int | None = None,
    ) -> dict[str, object]:
        """Return a page of the caller's sessions, newest first."""
        container: AppContainer = request.app.state.container
        result = container.session_service.list_sessions(
            caller_id,
            user_id or caller_id,
            kind,
            page=page,
            limit=limit or container.settings.default_page_size,
        )
        return page_envelope(
            result, [serialize_session(session) for session in result.items]
        )

    @router.get("/{session_id}")
    async def get_session(
        session_id: UUID, request: Request, caller_id: UUID = Depends(require_caller)
    ) -> dict[str, object]:
        """Return a session with its photos and verification code."""
        session, photos = _service(request).get_session_detail(
            caller_id, session_id, kind
        )
        return envelope(serialize_session(session, photos=photos, include_code=True))

    @router.patch("/{session_id}")
    async def update_session(
        session_id: UUID,
        payload: UpdateSessionRequest,
        request: Request,
        caller_id: UUID = Depends(require_caller),
    ) -> dict[str, object]:
        """Edit schedule, location or notes of an open session."""
        session = _service(request).update_session(
            caller_id, session_id, kind, payload.version, payload.to_domain()
        )
        return envelope(serialize_session(session), f"{label} session updated")

    @router.post("/{session_id}/begin")
    async def begin_session(
        session_id: UUID,
        payload: VersionedRequest,
        request: Request,
        caller_id: UUID = Depends(require_caller),
    ) -> dict[str, object]:
        """Start a pending session."""
        session = _service(request).begin(
            caller_id, session_id, kind, payload.version
        )
        return envelope(serialize_session(session), f"{label} session started")

    @router.post("/{session_id}/complete")
    async def complete_session(
        session_id: UUID,
        payload: CompleteSessionRequest,
        request: Request,
        caller_id: UUID = Depends(require_caller),
    ) -> dict[str, object]:
        """Complete a session with its verification code and condition."""
        session = _service(request).complete(
            caller_id,
            session_id,
            kind,
            payload.version,
            payload.verification_code,
            payload.condition.to_domain() if payload.condition else None,
            payload.override.to_domain() if payload.override else None,
        )
        return envelope(serialize_session(session), f"{label} session completed")

    @router.post("/{session_id}/cancel")
    async def cancel_session(
        session_id: UUID,
        payload: VersionedRequest,
        request: Request,
        caller_id: UUID = Depends(require_caller),
    ) -> dict[str, object]:
        """Cancel a session that has not finished."""
        session = _service(request).cancel(
            caller_id, session_id, kind, payload.version
        )
        return envelope(serialize_session(session), f"{label} session cancelled")

    @router.post("/{session_id}/dispute")
    async def dispute_session(
        session_id: UUID,
        payload: DisputeRequest,
        request: Request,
        caller_id: UUID = Depends(require_caller),
    ) -> dict[str, object]:
        """Flag an in-progress session as disputed."""
        session = _service(request).dispute(
            caller_id, session_id, kind, payload.version, payload.reason
        )
        return envelope(serialize_session(session), f"{label} session disputed")

    @router.post("/{session_id}/generate-code")
    async def generate_code(
        session_id: UUID,
        payload: VersionedRequest,
        request: Request,
        caller_id: UUID = Depends(require_caller),
    ) -> dict[str, object]:
        """Replace the verification code of an open session."""
        session = _service(request).regenerate_code(
            caller_id, session_id, kind, payload.version
        )
        return envelope(
            {
                "verificationCode": session.verification_code,
                "version": session.version,
            },
            "Verification code generated",
        )

    @router.post("/{session_id}/verify-code")
    async def verify_code(
        session_id: UUID,
        payload: VerifyCodeRequest,
        request: Request,
        caller_id: UUID = Depends(require_caller),
    ) -> dict[str, object]:
        """Check a verification code without completing the session."""
        valid = _service(request).verify_code(caller_id, session_id, kind, payload.code)
        return envelope(
            {"valid": valid},
            "Verification code is valid" if valid else "Verification code is invalid",
        )

    @router.post("/{session_id}/photos", status_code=status.HTTP_201_CREATED)
    async def add_photo(
        session_id: UUID,
        payload: AddPhotoRequest,
        request: Request,
        caller_id: UUID = Depends(require_caller),
    ) -> dict[str, object]:
        """Attach evidence photo metadata to a session."""
        session, photo = _service(request).add_photo(
            caller_id,
            session_id,
            kind,
            payload.version,
            payload.url,
            payload.category,
            payload.caption,
        )
        return envelope(
            {"photo": serialize_photo(photo), "version": session.version},
            "Photo added",
        )

    @router.get("/{session_id}/photos")
    async def list_photos(
        session_id: UUID,
        request: Request,
        caller_id: UUID = Depends(require_caller),
        page: int = 1,
        limit: int | None = None,
    ) -> dict[str, object]:
        """Return a page of evidence photos of a session."""
        container: AppContainer = request.app.state.container
        result = container.session_service.list_photos(
            caller_id,
            session_id,
            kind,
            page=page,
            limit=limit or container.settings.default_page_size,
        )
        return page_envelope(result, [serialize_photo(photo) for photo in result.items])

    return router


handover_router = build_session_router(HANDOVER)
return_router = build_session_router(RETURN)

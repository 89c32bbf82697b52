"""Client-facing error kinds raised by the handover/return core."""

from uuid import UUID


class HandoverError(Exception):
    """Base class for errors surfaced to API callers."""

    kind = "HandoverError"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def details(self) -> dict[str, object]:
        """Return structured details for the error response."""
        return {}


class ValidationError(HandoverError):
    """Malformed or missing required input."""

    kind = "ValidationError"
    status_code = 400

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field

    def details(self) -> dict[str, object]:
        return {"field": self.field}


class InvalidTransition(HandoverError):
    """An operation was attempted from a state that does not allow it."""

    kind = "InvalidTransition"
    status_code = 409

    def __init__(self, current: str, attempted: str) -> None:
        super().__init__(f"Cannot {attempted} a session that is {current}")
        self.current = current
        self.attempted = attempted

    def details(self) -> dict[str, object]:
        return {"current": self.current, "attempted": self.attempted}


class LinkageViolation(HandoverError):
    """A return session does not line up with its handover session."""

    kind = "LinkageViolation"
    status_code = 400


class MissingHandoverCondition(HandoverError):
    """The linked handover session has no stored condition record."""

    kind = "MissingHandoverCondition"
    status_code = 409

    def __init__(self, handover_session_id: UUID) -> None:
        super().__init__(
            f"Handover session {handover_session_id} has no condition record"
        )
        self.handover_session_id = handover_session_id

    def details(self) -> dict[str, object]:
        return {"handover_session_id": str(self.handover_session_id)}


class StaleVersion(HandoverError):
    """The stored version changed since the caller read it."""

    kind = "StaleVersion"
    status_code = 409

    def __init__(self, expected: int, actual: int | None = None) -> None:
        super().__init__("Session was modified by another request; refetch it")
        self.expected = expected
        self.actual = actual

    def details(self) -> dict[str, object]:
        return {"expected_version": self.expected, "current_version": self.actual}


class Unauthorized(HandoverError):
    """The caller is not allowed to act on the target entity."""

    kind = "Unauthorized"
    status_code = 403


class NotFound(HandoverError):
    """An entity with the given id does not exist."""

    kind = "NotFound"
    status_code = 404

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id

    def details(self) -> dict[str, object]:
        return {"entity": self.entity, "id": str(self.entity_id)}

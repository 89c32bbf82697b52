"""Condition assessment at handover and comparison at return."""

import logging
from dataclasses import dataclass, replace
from uuid import UUID

from handover_return.domain.conditions import (
    CLEANLINESS_CHANGES,
    CLEANLINESS_LEVELS,
    OVERALL_CHANGES,
    OVERALL_CONDITIONS,
    ConditionComparison,
    ConditionOverride,
    ConditionRecord,
    compare_cleanliness,
    compare_overall,
)
from handover_return.domain.errors import (
    InvalidTransition,
    MissingHandoverCondition,
    ValidationError,
)
from handover_return.domain.sessions import HANDOVER, IN_PROGRESS, SessionRecord
from handover_return.services.audit import AuditService

_logger = logging.getLogger(__name__)


@dataclass
class ConditionAssessmentEngine:
    """Validates condition records and derives return comparisons."""

    audit_service: AuditService

    def validate_record(
        self, record: ConditionRecord, session_photo_ids: set[UUID]
    ) -> None:
        """Reject records with unknown scale values or foreign photos."""
        if record.overall_condition not in OVERALL_CONDITIONS:
            raise ValidationError(
                "overall_condition",
                f"overall_condition must be one of {', '.join(OVERALL_CONDITIONS)}",
            )
        if record.cleanliness not in CLEANLINESS_LEVELS:
            raise ValidationError(
                "cleanliness",
                f"cleanliness must be one of {', '.join(CLEANLINESS_LEVELS)}",
            )
        unknown = [ref for ref in record.photo_refs if ref not in session_photo_ids]
        if unknown:
            raise ValidationError(
                "photo_refs",
                f"Photos do not belong to this session: "
                f"{', '.join(str(ref) for ref in unknown)}",
            )

    def record_handover_condition(
        self, session: SessionRecord, record: ConditionRecord
    ) -> ConditionRecord:
        """Return the record to store on a handover session being completed."""
        if session.kind != HANDOVER:
            raise ValidationError(
                "condition_record", "Only handover sessions hold a condition record"
            )
        if session.status != IN_PROGRESS:
            raise InvalidTransition(session.status, "record condition for")
        if session.condition_record is not None:
            raise InvalidTransition(session.status, "re-record condition for")
        return record

    def compute_return_comparison(
        self, handover: SessionRecord, assessed: ConditionRecord
    ) -> ConditionComparison:
        """Derive the comparison against the stored handover condition."""
        baseline = handover.condition_record
        if baseline is None:
            raise MissingHandoverCondition(handover.id)
        overall = compare_overall(
            baseline.overall_condition, assessed.overall_condition
        )
        cleanliness = compare_cleanliness(baseline.cleanliness, assessed.cleanliness)
        return ConditionComparison(
            overall_condition_change=overall,
            cleanliness_change=cleanliness,
            computed_overall_condition_change=overall,
            computed_cleanliness_change=cleanliness,
            assessed_condition=assessed,
            damage_notes=assessed.damage_notes,
            photo_refs=assessed.photo_refs,
        )

    def apply_override(
        self,
        computed: ConditionComparison,
        override: ConditionOverride | None,
    ) -> ConditionComparison:
        """Merge a manual override into the computed comparison.

        The computed values are always kept alongside the stored ones; the
        result is flagged as overridden only when the two disagree.
        """
        if override is None:
            return computed
        overall = (
            override.overall_condition_change or computed.overall_condition_change
        )
        cleanliness = override.cleanliness_change or computed.cleanliness_change
        if overall not in OVERALL_CHANGES:
            raise ValidationError(
                "overall_condition_change",
                f"overall_condition_change must be one of "
                f"{', '.join(OVERALL_CHANGES)}",
            )
        if cleanliness not in CLEANLINESS_CHANGES:
            raise ValidationError(
                "cleanliness_change",
                f"cleanliness_change must be one of {', '.join(CLEANLINESS_CHANGES)}",
            )
        diverges = (
            overall != computed.computed_overall_condition_change
            or cleanliness != computed.computed_cleanliness_change
        )
        return replace(
            computed,
            overall_condition_change=overall,
            cleanliness_change=cleanliness,
            overridden=diverges,
        )

    def record_override(
        self, session: SessionRecord, actor_id: UUID, comparison: ConditionComparison
    ) -> None:
        """Log and audit a stored comparison that diverges from the computed one."""
        _logger.warning(
            "Condition override diverges: session=%s overall=%s->%s "
            "cleanliness=%s->%s",
            session.id,
            comparison.computed_overall_condition_change,
            comparison.overall_condition_change,
            comparison.computed_cleanliness_change,
            comparison.cleanliness_change,
        )
        self.audit_service.record_event(
            actor_id=actor_id,
            entity_type="return_session",
            entity_id=session.id,
            event_type="condition_override",
            before={
                "overall_condition_change": (
                    comparison.computed_overall_condition_change
                ),
                "cleanliness_change": comparison.computed_cleanliness_change,
            },
            after={
                "overall_condition_change": comparison.overall_condition_change,
                "cleanliness_change": comparison.cleanliness_change,
            },
        )

"""Condition scales and the pure comparison rules between them."""

from dataclasses import dataclass, field
from uuid import UUID

# Best to worst.
OVERALL_CONDITIONS = ("excellent", "good", "fair", "poor", "damaged")
CLEANLINESS_LEVELS = ("very_clean", "clean", "acceptable", "dirty", "very_dirty")

IMPROVED = "improved"
NO_CHANGE = "no_change"
SLIGHTLY_WORSE = "slightly_worse"
SIGNIFICANTLY_WORSE = "significantly_worse"
DAMAGED = "damaged"
MUCH_WORSE = "much_worse"

OVERALL_CHANGES = (IMPROVED, NO_CHANGE, SLIGHTLY_WORSE, SIGNIFICANTLY_WORSE, DAMAGED)
CLEANLINESS_CHANGES = (
    IMPROVED,
    NO_CHANGE,
    SLIGHTLY_WORSE,
    SIGNIFICANTLY_WORSE,
    MUCH_WORSE,
)


@dataclass(frozen=True)
class ConditionRecord:
    """Snapshot of an item's physical state."""

    overall_condition: str
    cleanliness: str
    damage_notes: str = ""
    photo_refs: tuple[UUID, ...] = ()


@dataclass(frozen=True)
class ConditionOverride:
    """Human-entered change values that replace the computed ones."""

    overall_condition_change: str | None = None
    cleanliness_change: str | None = None


@dataclass(frozen=True)
class ConditionComparison:
    """Stored delta between handover and return condition."""

    overall_condition_change: str
    cleanliness_change: str
    computed_overall_condition_change: str
    computed_cleanliness_change: str
    assessed_condition: ConditionRecord
    damage_notes: str = ""
    photo_refs: tuple[UUID, ...] = field(default_factory=tuple)
    overridden: bool = False


def compare_overall(handover: str, returned: str) -> str:
    """Return the overall-condition change from handover to return."""
    return _compare(OVERALL_CONDITIONS, handover, returned, floor=DAMAGED)


def compare_cleanliness(handover: str, returned: str) -> str:
    """Return the cleanliness change from handover to return."""
    return _compare(CLEANLINESS_LEVELS, handover, returned, floor=MUCH_WORSE)


def _compare(scale: tuple[str, ...], handover: str, returned: str, floor: str) -> str:
    before = scale.index(handover)
    after = scale.index(returned)
    if after == len(scale) - 1:
        return floor
    drop = after - before
    if drop < 0:
        return IMPROVED
    if drop == 0:
        return NO_CHANGE
    if drop == 1:
        return SLIGHTLY_WORSE
    return SIGNIFICANTLY_WORSE


def condition_to_dict(record: ConditionRecord) -> dict[str, object]:
    """Serialize a condition record to JSON-compatible data."""
    return {
        "overall_condition": record.overall_condition,
        "cleanliness": record.cleanliness,
        "damage_notes": record.damage_notes,
        "photo_refs": [str(ref) for ref in record.photo_refs],
    }


def condition_from_dict(data: dict[str, object]) -> ConditionRecord:
    """Parse a condition record from stored JSON data."""
    refs = data.get("photo_refs") or []
    return ConditionRecord(
        overall_condition=str(data["overall_condition"]),
        cleanliness=str(data["cleanliness"]),
        damage_notes=str(data.get("damage_notes") or ""),
        photo_refs=tuple(UUID(str(ref)) for ref in refs),
    )


def comparison_to_dict(comparison: ConditionComparison) -> dict[str, object]:
    """Serialize a condition comparison to JSON-compatible data."""
    return {
        "overall_condition_change": comparison.overall_condition_change,
        "cleanliness_change": comparison.cleanliness_change,
        "computed_overall_condition_change": (
            comparison.computed_overall_condition_change
        ),
        "computed_cleanliness_change": comparison.computed_cleanliness_change,
        "assessed_condition": condition_to_dict(comparison.assessed_condition),
        "damage_notes": comparison.damage_notes,
        "photo_refs": [str(ref) for ref in comparison.photo_refs],
        "overridden": comparison.overridden,
    }


def comparison_from_dict(data: dict[str, object]) -> ConditionComparison:
    """Parse a condition comparison from stored JSON data."""
    refs = data.get("photo_refs") or []
    return ConditionComparison(
        overall_condition_change=str(data["overall_condition_change"]),
        cleanliness_change=str(data["cleanliness_change"]),
        computed_overall_condition_change=str(
            data.get("computed_overall_condition_change")
            or data["overall_condition_change"]
        ),
        computed_cleanliness_change=str(
            data.get("computed_cleanliness_change") or data["cleanliness_change"]
        ),
        assessed_condition=condition_from_dict(data["assessed_condition"]),
        damage_notes=str(data.get("damage_notes") or ""),
        photo_refs=tuple(UUID(str(ref)) for ref in refs),
        overridden=bool(data.get("overridden", False)),
    )

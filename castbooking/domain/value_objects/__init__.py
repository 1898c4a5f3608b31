"""Value Objects del dominio de reservas."""

from castbooking.domain.value_objects.money import Money
from castbooking.domain.value_objects.time_range import (
    TimeRange,
    ensure_utc,
    intervals_overlap,
    overlap_predicate,
)
from castbooking.domain.value_objects.validation_result import (
    CONFLICT_ERROR,
    ConflictSummary,
    ValidationResult,
)

__all__ = [
    "Money",
    "TimeRange",
    "ensure_utc",
    "intervals_overlap",
    "overlap_predicate",
    "CONFLICT_ERROR",
    "ConflictSummary",
    "ValidationResult",
]

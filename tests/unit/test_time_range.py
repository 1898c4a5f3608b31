from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from castbooking.domain.errors import InvalidTimeRangeError
from castbooking.domain.value_objects.money import Money
from castbooking.domain.value_objects.time_range import TimeRange, ensure_utc, intervals_overlap
from castbooking.domain.value_objects.validation_result import (
    CONFLICT_ERROR,
    ConflictSummary,
    ValidationResult,
)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 1, 15, hour, minute, tzinfo=timezone.utc)


class TestIntervalsOverlap:
    """Intervalos semiabiertos [start, end)."""

    def test_new_slot_starts_inside_existing(self):
        assert intervals_overlap(at(10), at(11), at(10, 30), at(11, 30))

    def test_new_slot_ends_inside_existing(self):
        assert intervals_overlap(at(10), at(11), at(9, 30), at(10, 30))

    def test_new_slot_contains_existing(self):
        assert intervals_overlap(at(10), at(11), at(9), at(12))

    def test_existing_contains_new_slot(self):
        assert intervals_overlap(at(9), at(12), at(10), at(11))

    def test_identical_slots_overlap(self):
        assert intervals_overlap(at(10), at(11), at(10), at(11))

    def test_adjacent_slots_do_not_overlap(self):
        assert not intervals_overlap(at(10), at(11), at(11), at(12))
        assert not intervals_overlap(at(11), at(12), at(10), at(11))

    def test_disjoint_slots_do_not_overlap(self):
        assert not intervals_overlap(at(9), at(10), at(14), at(15))

    def test_symmetric(self):
        pairs = [
            (at(10), at(11), at(10, 30), at(12)),
            (at(10), at(11), at(11), at(12)),
            (at(9), at(17), at(12), at(13)),
        ]
        for a_start, a_end, b_start, b_end in pairs:
            assert intervals_overlap(a_start, a_end, b_start, b_end) == intervals_overlap(
                b_start, b_end, a_start, a_end
            )

    def test_empty_or_inverted_interval_never_overlaps(self):
        assert not intervals_overlap(at(10), at(10), at(9), at(12))
        assert not intervals_overlap(at(11), at(10), at(9), at(12))


class TestTimeRange:
    def test_rejects_start_not_before_end(self):
        with pytest.raises(InvalidTimeRangeError):
            TimeRange(start=at(11), end=at(10))
        with pytest.raises(InvalidTimeRangeError):
            TimeRange(start=at(10), end=at(10))

    def test_naive_datetimes_are_treated_as_utc(self):
        slot = TimeRange(start=datetime(2024, 1, 15, 10, 0), end=datetime(2024, 1, 15, 11, 0))
        assert slot.start == at(10)
        assert slot.start.tzinfo is not None

    def test_offsets_are_normalized_to_utc(self):
        jst = timezone(timedelta(hours=9))
        assert ensure_utc(datetime(2024, 1, 15, 19, 0, tzinfo=jst)) == at(10)

    def test_contains_is_half_open(self):
        slot = TimeRange(start=at(10), end=at(11))
        assert slot.contains(at(10))
        assert not slot.contains(at(11))

    def test_shifted_back(self):
        slot = TimeRange(start=at(10), end=at(11))
        assert slot.shifted_back(timedelta(hours=24)) == at(10) - timedelta(days=1)
        assert slot.duration == timedelta(hours=1)


class TestValidationResult:
    def test_conflicted_carries_the_fixed_error(self):
        summary = ConflictSummary(id="res_1", start_time=at(10), end_time=at(11))
        result = ValidationResult.conflicted([summary])
        assert not result.is_valid
        assert result.errors == [CONFLICT_ERROR]
        assert result.conflicts == [summary]

    def test_missing_references_has_no_conflicts(self):
        result = ValidationResult.missing_references(["Customer not found"])
        assert not result.is_valid
        assert not result.has_conflicts

    def test_summary_to_dict_uses_camel_case(self):
        summary = ConflictSummary(id="res_1", start_time=at(10), end_time=at(11))
        assert summary.to_dict() == {
            "id": "res_1",
            "startTime": "2024-01-15T10:00:00+00:00",
            "endTime": "2024-01-15T11:00:00+00:00",
        }


class TestMoney:
    def test_zero_decimal_currency_keeps_whole_units(self):
        assert Money(Decimal("8000"), "jpy").to_minor_units() == 8000
        assert str(Money(Decimal("8000"), "JPY")) == "8000 JPY"

    def test_two_decimal_currency_uses_cents(self):
        assert Money(Decimal("12.34"), "USD").to_minor_units() == 1234
        assert Money.from_minor_units(1234, "usd").amount == Decimal("12.34")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            Money(Decimal("-1"), "JPY")

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from castbooking.application.dtos.reservation_dto import CreateReservationData
from castbooking.domain.entities.outbox_event import OutboxEventType
from castbooking.domain.entities.reservation import ReservationStatus
from castbooking.domain.errors import (
    AvailabilityCheckUnavailableError,
    InvalidTimeRangeError,
    ReservationConflictError,
    ReservationValidationError,
)
from castbooking.domain.value_objects.validation_result import CONFLICT_ERROR
from tests.conftest import SLOT_END, SLOT_START, build_stack


def make_data(start=SLOT_START, end=SLOT_END, **overrides) -> CreateReservationData:
    values = {
        "customer_id": "cust-1",
        "staff_id": "cast-1",
        "course_id": "course-60",
        "start_time": start,
        "end_time": end,
    }
    values.update(overrides)
    return CreateReservationData(**values)


class TestCreateReservation:
    async def test_creates_confirmed_reservation_with_modification_window(self, stack):
        reservation = await stack.create.execute(make_data())

        assert reservation.status == ReservationStatus.CONFIRMED
        assert reservation.modifiable_until == datetime(2024, 1, 14, 10, 0, tzinfo=timezone.utc)
        assert reservation.created_at == stack.clock.now()
        assert reservation.id in stack.reservations.reservations

    async def test_price_comes_from_course_unless_given(self, stack):
        listed = await stack.create.execute(make_data())
        explicit = await stack.create.execute(
            make_data(
                start=SLOT_END,
                end=SLOT_END + timedelta(hours=1),
                price=Decimal("5000"),
            )
        )

        assert listed.price == Decimal("8000")
        assert explicit.price == Decimal("5000")

    async def test_overlap_is_rejected_with_conflicts(self, stack):
        first = await stack.create.execute(make_data())

        with pytest.raises(ReservationConflictError) as exc_info:
            await stack.create.execute(
                make_data(
                    start=SLOT_START + timedelta(minutes=30),
                    end=SLOT_END + timedelta(minutes=30),
                )
            )

        assert exc_info.value.errors == [CONFLICT_ERROR]
        assert [c.id for c in exc_info.value.conflicts] == [first.id]
        assert len(stack.reservations.reservations) == 1

    async def test_back_to_back_slots_are_allowed(self, stack):
        await stack.create.execute(make_data())
        second = await stack.create.execute(
            make_data(start=SLOT_END, end=SLOT_END + timedelta(hours=1))
        )

        assert second.status == ReservationStatus.CONFIRMED

    async def test_same_slot_with_other_staff_is_allowed(self, stack):
        await stack.create.execute(make_data())
        other = await stack.create.execute(make_data(staff_id="cast-2"))

        assert other.staff_id == "cast-2"

    async def test_cancelled_reservation_frees_the_slot(self, stack):
        first = await stack.create.execute(make_data())
        await stack.cancel.execute(first.id)

        again = await stack.create.execute(make_data())

        assert again.id != first.id

    async def test_unknown_customer_is_a_validation_error(self, stack):
        with pytest.raises(ReservationValidationError) as exc_info:
            await stack.create.execute(make_data(customer_id="ghost"))

        assert not isinstance(exc_info.value, ReservationConflictError)
        assert exc_info.value.errors == ["Customer not found"]
        assert stack.reservations.reservations == {}

    async def test_inverted_range_is_rejected(self, stack):
        with pytest.raises(InvalidTimeRangeError):
            await stack.create.execute(make_data(start=SLOT_END, end=SLOT_START))

    async def test_confirmation_is_queued_in_outbox(self, stack):
        reservation = await stack.create.execute(make_data())

        events = list(stack.outbox.events.values())
        assert len(events) == 1
        assert events[0].event_type == OutboxEventType.RESERVATION_CONFIRMED.value
        assert events[0].aggregate_id == reservation.id
        assert events[0].payload["staff_name"] == "Yui"

    async def test_pending_status_skips_notification(self, stack):
        reservation = await stack.create.execute(
            make_data(), status=ReservationStatus.PENDING, notify=False
        )

        assert reservation.status == ReservationStatus.PENDING
        assert stack.outbox.events == {}

    async def test_notification_failure_does_not_undo_the_write(self, stack, monkeypatch):
        monkeypatch.setattr(
            stack.outbox, "enqueue", AsyncMock(side_effect=RuntimeError("outbox unavailable"))
        )

        reservation = await stack.create.execute(make_data())

        assert reservation.status == ReservationStatus.CONFIRMED
        assert reservation.id in stack.reservations.reservations

    async def test_fail_closed_lookup_error_rejects(self, clock, monkeypatch):
        stack = build_stack(clock, failure_mode="closed")
        monkeypatch.setattr(
            stack.reservations, "find_overlapping", AsyncMock(side_effect=ConnectionError("down"))
        )

        with pytest.raises(AvailabilityCheckUnavailableError):
            await stack.create.execute(make_data())
        assert stack.reservations.reservations == {}

    async def test_fail_open_lookup_error_allows(self, stack, monkeypatch):
        monkeypatch.setattr(
            stack.reservations, "find_overlapping", AsyncMock(side_effect=ConnectionError("down"))
        )

        reservation = await stack.create.execute(make_data())

        assert reservation.status == ReservationStatus.CONFIRMED


@pytest.mark.concurrency
class TestConcurrentCreates:
    async def test_only_one_of_two_overlapping_requests_wins(self, stack):
        results = await asyncio.gather(
            stack.create.execute(make_data()),
            stack.create.execute(
                make_data(start=SLOT_START + timedelta(minutes=15), end=SLOT_END)
            ),
            return_exceptions=True,
        )

        created = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, ReservationConflictError)]
        assert len(created) == 1
        assert len(rejected) == 1
        assert len(stack.reservations.reservations) == 1

    async def test_many_identical_requests_yield_one_reservation(self, stack):
        results = await asyncio.gather(
            *(stack.create.execute(make_data()) for _ in range(5)),
            return_exceptions=True,
        )

        assert sum(not isinstance(r, Exception) for r in results) == 1
        assert len(stack.reservations.reservations) == 1

    async def test_different_staff_do_not_block_each_other(self, stack):
        results = await asyncio.gather(
            stack.create.execute(make_data(staff_id="cast-1")),
            stack.create.execute(make_data(staff_id="cast-2")),
        )

        assert {r.staff_id for r in results} == {"cast-1", "cast-2"}

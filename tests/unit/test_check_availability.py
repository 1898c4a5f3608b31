from datetime import date, datetime, timedelta, timezone

import pytest

from castbooking.application.dtos.reservation_dto import CreateReservationData
from castbooking.application.use_cases.check_availability import parse_hhmm
from castbooking.application.use_cases.list_reservations import ListReservationsUseCase, day_bounds
from castbooking.domain.errors import StaffNotFoundError
from tests.conftest import SLOT_END, SLOT_START

DAY = date(2024, 1, 15)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 1, 15, hour, minute, tzinfo=timezone.utc)


async def book(stack, start, end, staff_id="cast-1"):
    return await stack.create.execute(
        CreateReservationData(
            customer_id="cust-1",
            staff_id=staff_id,
            course_id="course-60",
            start_time=start,
            end_time=end,
        )
    )


class TestCheck:
    async def test_free_slot(self, stack):
        result = await stack.availability.check("cast-1", SLOT_START, SLOT_END)

        assert result.available
        assert result.conflicts == []

    async def test_busy_slot_lists_conflicts(self, stack):
        existing = await book(stack, SLOT_START, SLOT_END)

        result = await stack.availability.check(
            "cast-1", SLOT_START + timedelta(minutes=30), SLOT_END + timedelta(minutes=30)
        )

        assert not result.available
        assert [c.id for c in result.conflicts] == [existing.id]

    async def test_check_many_answers_per_staff(self, stack):
        await book(stack, SLOT_START, SLOT_END, staff_id="cast-1")

        results = await stack.availability.check_many(["cast-1", "cast-2"], SLOT_START, SLOT_END)

        assert not results["cast-1"].available
        assert results["cast-2"].available


class TestFreeSlots:
    async def test_whole_working_day_when_empty(self, stack):
        slots = await stack.availability.free_slots("cast-1", DAY, 60)

        assert [(s.start_time, s.end_time) for s in slots] == [(at(9), at(18))]

    async def test_gaps_between_reservations(self, stack):
        await book(stack, at(10), at(11))
        await book(stack, at(13), at(14, 30))

        slots = await stack.availability.free_slots("cast-1", DAY, 60)

        assert [(s.start_time, s.end_time) for s in slots] == [
            (at(9), at(10)),
            (at(11), at(13)),
            (at(14, 30), at(18)),
        ]

    async def test_gaps_shorter_than_duration_are_skipped(self, stack):
        await book(stack, at(9, 30), at(11))

        slots = await stack.availability.free_slots("cast-1", DAY, 60)

        assert [(s.start_time, s.end_time) for s in slots] == [(at(11), at(18))]

    async def test_cancelled_reservations_do_not_block(self, stack):
        reservation = await book(stack, at(10), at(11))
        await stack.cancel.execute(reservation.id)

        slots = await stack.availability.free_slots("cast-1", DAY, 60)

        assert [(s.start_time, s.end_time) for s in slots] == [(at(9), at(18))]

    async def test_unknown_staff(self, stack):
        with pytest.raises(StaffNotFoundError):
            await stack.availability.free_slots("ghost", DAY, 60)

    async def test_duration_must_be_positive(self, stack):
        with pytest.raises(ValueError):
            await stack.availability.free_slots("cast-1", DAY, 0)


class TestListReservations:
    async def test_filters_by_day_and_staff_sorted_by_start(self, stack):
        late = await book(stack, at(15), at(16))
        early = await book(stack, at(10), at(11))
        await book(stack, at(10), at(11), staff_id="cast-2")
        await book(stack, at(10) + timedelta(days=1), at(11) + timedelta(days=1))
        use_case = ListReservationsUseCase(stack.reservations, timezone_name="UTC")

        found = await use_case.execute(day=DAY, staff_id="cast-1")

        assert [r.id for r in found] == [early.id, late.id]

    def test_day_bounds_in_business_timezone(self):
        start, end = day_bounds(DAY, "Asia/Tokyo")

        assert start == datetime(2024, 1, 14, 15, 0, tzinfo=timezone.utc)
        assert end == datetime(2024, 1, 15, 15, 0, tzinfo=timezone.utc)

    def test_parse_hhmm(self):
        assert parse_hhmm("09:30").hour == 9
        assert parse_hhmm("09:30").minute == 30

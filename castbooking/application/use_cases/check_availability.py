import asyncio
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from castbooking.application.dtos.reservation_dto import AvailabilityResult, TimeSlot
from castbooking.application.interfaces.reference_repos import StaffRepo
from castbooking.application.interfaces.reservation_repo import ReservationRepo
from castbooking.application.use_cases.conflict_gateway import ConflictGateway
from castbooking.application.use_cases.list_reservations import day_bounds
from castbooking.domain.errors import StaffNotFoundError
from castbooking.domain.value_objects.time_range import TimeRange
from castbooking.domain.value_objects.validation_result import ConflictSummary


def parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


class CheckAvailabilityUseCase:
    """Conflict checks for one or many staff members and free-slot search for a day."""

    def __init__(
        self,
        conflict_gateway: ConflictGateway,
        reservation_repo: ReservationRepo,
        staff_repo: StaffRepo,
        working_hours_start: str = "09:00",
        working_hours_end: str = "18:00",
        timezone_name: str = "UTC",
    ) -> None:
        self._conflict_gateway = conflict_gateway
        self._reservation_repo = reservation_repo
        self._staff_repo = staff_repo
        self._work_start = parse_hhmm(working_hours_start)
        self._work_end = parse_hhmm(working_hours_end)
        self._timezone_name = timezone_name

    async def check(self, staff_id: str, start_time: datetime, end_time: datetime) -> AvailabilityResult:
        slot = TimeRange(start=start_time, end=end_time)
        conflicts = await self._conflict_gateway.find_conflicts(staff_id, slot.start, slot.end)
        return AvailabilityResult(
            staff_id=staff_id,
            available=not conflicts,
            conflicts=[
                ConflictSummary(id=r.id, start_time=r.start_time, end_time=r.end_time)
                for r in conflicts
            ],
        )

    async def check_many(
        self, staff_ids: list[str], start_time: datetime, end_time: datetime
    ) -> dict[str, AvailabilityResult]:
        results = await asyncio.gather(
            *(self.check(staff_id, start_time, end_time) for staff_id in staff_ids)
        )
        return {result.staff_id: result for result in results}

    async def free_slots(self, staff_id: str, day: date, duration_minutes: int) -> list[TimeSlot]:
        if duration_minutes <= 0:
            raise ValueError("duration must be a positive number of minutes")
        if await self._staff_repo.find_by_id(staff_id) is None:
            raise StaffNotFoundError(staff_id)

        tz = ZoneInfo(self._timezone_name)
        work_start = datetime.combine(day, self._work_start, tzinfo=tz).astimezone(timezone.utc)
        work_end = datetime.combine(day, self._work_end, tzinfo=tz).astimezone(timezone.utc)
        day_start, day_end = day_bounds(day, self._timezone_name)

        reservations = await self._reservation_repo.list_reservations(
            start_from=day_start, start_to=day_end, staff_id=staff_id
        )
        busy = sorted(
            (r for r in reservations if r.blocks_schedule), key=lambda r: r.start_time
        )

        needed = timedelta(minutes=duration_minutes)
        slots: list[TimeSlot] = []
        cursor = work_start
        for reservation in busy:
            gap_end = min(reservation.start_time, work_end)
            if gap_end - cursor >= needed:
                slots.append(TimeSlot(start_time=cursor, end_time=gap_end))
            cursor = max(cursor, reservation.end_time)
        if work_end - cursor >= needed:
            slots.append(TimeSlot(start_time=cursor, end_time=work_end))
        return slots

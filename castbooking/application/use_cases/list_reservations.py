from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from castbooking.application.interfaces.reservation_repo import ReservationRepo
from castbooking.domain.entities.reservation import Reservation


def day_bounds(day: date, timezone_name: str) -> tuple[datetime, datetime]:
    """UTC bounds of a calendar day in the business timezone."""
    tz = ZoneInfo(timezone_name)
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


class ListReservationsUseCase:
    """Lists reservations ordered by start time, optionally for one day and one staff member."""

    def __init__(self, reservation_repo: ReservationRepo, timezone_name: str = "UTC") -> None:
        self._reservation_repo = reservation_repo
        self._timezone_name = timezone_name

    async def execute(self, day: date | None = None, staff_id: str | None = None) -> list[Reservation]:
        start_from = start_to = None
        if day is not None:
            start_from, start_to = day_bounds(day, self._timezone_name)
        reservations = await self._reservation_repo.list_reservations(
            start_from=start_from,
            start_to=start_to,
            staff_id=staff_id,
        )
        return sorted(reservations, key=lambda r: r.start_time)

from datetime import datetime
from typing import Sequence

from castbooking.domain.entities.reservation import Reservation


class ReservationRepo:
    async def get_by_id(self, reservation_id: str) -> Reservation | None:
        raise NotImplementedError

    async def create(self, reservation: Reservation) -> Reservation:
        raise NotImplementedError

    async def save(self, reservation: Reservation, expected_lock_version: int | None = None) -> None:
        raise NotImplementedError

    async def lock_staff(self, staff_id: str) -> None:
        """Serializes writers booking the same staff until the transaction ends."""
        raise NotImplementedError

    async def find_overlapping(
        self,
        staff_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_reservation_id: str | None = None,
    ) -> Sequence[Reservation]:
        raise NotImplementedError

    async def list_reservations(
        self,
        start_from: datetime | None = None,
        start_to: datetime | None = None,
        staff_id: str | None = None,
    ) -> Sequence[Reservation]:
        raise NotImplementedError

from dataclasses import replace
from typing import Sequence

from castbooking.application.interfaces.reservation_repo import ReservationRepo
from castbooking.domain.entities.reservation import Reservation
from castbooking.domain.errors import ReservationConcurrencyError
from castbooking.domain.value_objects.time_range import intervals_overlap
from castbooking.infrastructure.in_memory.transaction_manager import InMemoryTransactionManager


class InMemoryReservationRepo(ReservationRepo):
    def __init__(self, transaction_manager: InMemoryTransactionManager) -> None:
        self._transaction_manager = transaction_manager
        self.reservations: dict[str, Reservation] = {}

    async def get_by_id(self, reservation_id: str) -> Reservation | None:
        stored = self.reservations.get(reservation_id)
        return replace(stored) if stored else None

    async def create(self, reservation: Reservation) -> Reservation:
        if reservation.id in self.reservations:
            raise ValueError(f"Reservation {reservation.id} already exists")
        self.reservations[reservation.id] = replace(reservation)
        return reservation

    async def save(self, reservation: Reservation, expected_lock_version: int | None = None) -> None:
        stored = self.reservations.get(reservation.id)
        if stored is None:
            raise ReservationConcurrencyError(reservation.id)
        if expected_lock_version is not None and stored.lock_version != expected_lock_version:
            raise ReservationConcurrencyError(reservation.id)
        self.reservations[reservation.id] = replace(reservation)

    async def lock_staff(self, staff_id: str) -> None:
        await self._transaction_manager.acquire(f"staff:{staff_id}")

    async def find_overlapping(
        self,
        staff_id,
        start_time,
        end_time,
        exclude_reservation_id=None,
    ) -> Sequence[Reservation]:
        found = [
            replace(r)
            for r in self.reservations.values()
            if r.staff_id == staff_id
            and r.blocks_schedule
            and r.id != exclude_reservation_id
            and intervals_overlap(r.start_time, r.end_time, start_time, end_time)
        ]
        return sorted(found, key=lambda r: r.start_time)

    async def list_reservations(
        self,
        start_from=None,
        start_to=None,
        staff_id=None,
    ) -> Sequence[Reservation]:
        found = [
            replace(r)
            for r in self.reservations.values()
            if (start_from is None or r.start_time >= start_from)
            and (start_to is None or r.start_time < start_to)
            and (not staff_id or r.staff_id == staff_id)
        ]
        return sorted(found, key=lambda r: r.start_time)

from castbooking.application.interfaces.reservation_repo import ReservationRepo
from castbooking.domain.entities.reservation import Reservation
from castbooking.domain.errors import ReservationNotFoundError


class GetReservationUseCase:
    def __init__(self, reservation_repo: ReservationRepo) -> None:
        self._reservation_repo = reservation_repo

    async def execute(self, reservation_id: str) -> Reservation:
        reservation = await self._reservation_repo.get_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        return reservation

import logging

from castbooking.application.interfaces.clock import Clock
from castbooking.application.interfaces.reservation_repo import ReservationRepo
from castbooking.application.interfaces.transaction_manager import TransactionManager
from castbooking.application.use_cases.reservation_notifier import ReservationNotifier
from castbooking.domain.entities.reservation import Reservation, ReservationStatus
from castbooking.domain.errors import InvalidReservationStatusError, ReservationNotFoundError


class CancelReservationUseCase:
    """Cancels a reservation without touching payments. Cancelling twice is a no-op."""

    def __init__(
        self,
        reservation_repo: ReservationRepo,
        transaction_manager: TransactionManager,
        notifier: ReservationNotifier,
        clock: Clock,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._transaction_manager = transaction_manager
        self._notifier = notifier
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    async def execute(self, reservation_id: str) -> Reservation:
        async with self._transaction_manager.start():
            reservation = await self._reservation_repo.get_by_id(reservation_id)
            if reservation is None:
                raise ReservationNotFoundError(reservation_id)
            if reservation.status == ReservationStatus.CANCELLED:
                return reservation
            if reservation.status == ReservationStatus.COMPLETED:
                raise InvalidReservationStatusError(
                    current_status=reservation.status.value,
                    expected_status=[ReservationStatus.PENDING.value, ReservationStatus.CONFIRMED.value],
                    operation="cancel",
                )
            expected_version = reservation.lock_version
            reservation.cancel()
            reservation.updated_at = self._clock.now()
            await self._reservation_repo.save(reservation, expected_lock_version=expected_version)

        self._logger.info("Reservation cancelled", extra={"reservation_id": reservation_id})
        await self._notifier.notify_cancelled(reservation)
        return reservation

import logging
from datetime import timedelta

from castbooking.application.dtos.reservation_dto import (
    CreateReservationData,
    RescheduleReservationData,
)
from castbooking.application.interfaces.clock import Clock
from castbooking.application.interfaces.reservation_repo import ReservationRepo
from castbooking.application.interfaces.transaction_manager import TransactionManager
from castbooking.application.use_cases.create_reservation import (
    RetryPolicy,
    raise_for_result,
    run_once,
)
from castbooking.application.use_cases.validate_reservation import ReservationValidator
from castbooking.domain.entities.reservation import (
    BLOCKING_STATUSES,
    DEFAULT_MODIFICATION_WINDOW,
    Reservation,
)
from castbooking.domain.errors import (
    InvalidReservationStatusError,
    ReservationNotFoundError,
    ReservationNotModifiableError,
)
from castbooking.domain.value_objects.time_range import TimeRange


class RescheduleReservationUseCase:
    """
    Moves a pending or confirmed reservation to a new slot.

    Allowed only until ``modifiable_until``. The reservation is excluded from
    its own conflict check, so shifting within its current slot is fine.
    """

    def __init__(
        self,
        reservation_repo: ReservationRepo,
        validator: ReservationValidator,
        transaction_manager: TransactionManager,
        clock: Clock,
        modification_window: timedelta = DEFAULT_MODIFICATION_WINDOW,
        retry_policy: RetryPolicy = run_once,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._validator = validator
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._modification_window = modification_window
        self._retry_policy = retry_policy
        self._logger = logging.getLogger(__name__)

    async def execute(self, reservation_id: str, data: RescheduleReservationData) -> Reservation:
        new_range = TimeRange(start=data.start_time, end=data.end_time)

        async def _write() -> Reservation:
            async with self._transaction_manager.start():
                reservation = await self._reservation_repo.get_by_id(reservation_id)
                if reservation is None:
                    raise ReservationNotFoundError(reservation_id)
                if reservation.status not in BLOCKING_STATUSES:
                    raise InvalidReservationStatusError(
                        current_status=reservation.status.value,
                        expected_status=[s.value for s in BLOCKING_STATUSES],
                        operation="reschedule",
                    )
                now = self._clock.now()
                if not reservation.is_modifiable_at(now):
                    raise ReservationNotModifiableError(
                        reservation_id,
                        reservation.modifiable_until.isoformat()
                        if reservation.modifiable_until
                        else None,
                    )

                staff_id = data.staff_id or reservation.staff_id
                await self._reservation_repo.lock_staff(staff_id)
                result = await self._validator.validate(
                    CreateReservationData(
                        customer_id=reservation.customer_id,
                        staff_id=staff_id,
                        course_id=reservation.course_id,
                        start_time=new_range.start,
                        end_time=new_range.end,
                    ),
                    exclude_reservation_id=reservation.id,
                )
                raise_for_result(result)

                expected_version = reservation.lock_version
                reservation.reschedule(
                    new_range.start,
                    new_range.end,
                    window=self._modification_window,
                    staff_id=staff_id,
                )
                if data.notes is not None:
                    reservation.notes = data.notes
                reservation.updated_at = now
                await self._reservation_repo.save(
                    reservation, expected_lock_version=expected_version
                )
                return reservation

        reservation = await self._retry_policy(_write)
        self._logger.info(
            "Reservation rescheduled",
            extra={
                "reservation_id": reservation.id,
                "staff_id": reservation.staff_id,
                "start_time": reservation.start_time.isoformat(),
            },
        )
        return reservation

import logging
from datetime import timedelta
from typing import Awaitable, Callable, TypeVar

from castbooking.application.dtos.reservation_dto import CreateReservationData
from castbooking.application.interfaces.clock import Clock
from castbooking.application.interfaces.pricing import PricingStrategy
from castbooking.application.interfaces.reservation_repo import ReservationRepo
from castbooking.application.interfaces.transaction_manager import TransactionManager
from castbooking.application.use_cases.reservation_notifier import ReservationNotifier
from castbooking.application.use_cases.validate_reservation import ReservationValidator
from castbooking.domain.entities.reservation import (
    DEFAULT_MODIFICATION_WINDOW,
    Reservation,
    ReservationStatus,
)
from castbooking.domain.errors import ReservationConflictError, ReservationValidationError
from castbooking.domain.value_objects.time_range import TimeRange
from castbooking.domain.value_objects.validation_result import ValidationResult

T = TypeVar("T")
RetryPolicy = Callable[[Callable[[], Awaitable[T]]], Awaitable[T]]


async def run_once(func: Callable[[], Awaitable[T]]) -> T:
    return await func()


def raise_for_result(result: ValidationResult) -> None:
    if result.is_valid:
        return
    if result.has_conflicts:
        raise ReservationConflictError(result.errors, result.conflicts)
    raise ReservationValidationError(result.errors)


class CreateReservationUseCase:
    """
    Persists a new reservation after re-validating it under the staff lock.

    Lock, validation and insert share one transaction, so two concurrent
    requests for overlapping slots of the same staff member cannot both pass.
    """

    def __init__(
        self,
        reservation_repo: ReservationRepo,
        validator: ReservationValidator,
        pricing: PricingStrategy,
        transaction_manager: TransactionManager,
        notifier: ReservationNotifier,
        clock: Clock,
        modification_window: timedelta = DEFAULT_MODIFICATION_WINDOW,
        retry_policy: RetryPolicy = run_once,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._validator = validator
        self._pricing = pricing
        self._transaction_manager = transaction_manager
        self._notifier = notifier
        self._clock = clock
        self._modification_window = modification_window
        self._retry_policy = retry_policy
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        data: CreateReservationData,
        status: ReservationStatus = ReservationStatus.CONFIRMED,
        notify: bool = True,
    ) -> Reservation:
        time_range = TimeRange(start=data.start_time, end=data.end_time)

        async def _write() -> Reservation:
            async with self._transaction_manager.start():
                await self._reservation_repo.lock_staff(data.staff_id)
                result = await self._validator.validate(data)
                if not result.is_valid:
                    self._logger.info(
                        "Reservation rejected",
                        extra={
                            "staff_id": data.staff_id,
                            "customer_id": data.customer_id,
                            "errors": result.errors,
                            "conflict_count": len(result.conflicts),
                        },
                    )
                    raise_for_result(result)

                now = self._clock.now()
                reservation = Reservation(
                    customer_id=data.customer_id,
                    staff_id=data.staff_id,
                    course_id=data.course_id,
                    start_time=time_range.start,
                    end_time=time_range.end,
                    status=status,
                    price=await self._pricing.price_for(data),
                    notes=data.notes,
                    created_at=now,
                    updated_at=now,
                )
                reservation.compute_modifiable_until(self._modification_window)
                return await self._reservation_repo.create(reservation)

        reservation = await self._retry_policy(_write)
        self._logger.info(
            "Reservation created",
            extra={
                "reservation_id": reservation.id,
                "staff_id": reservation.staff_id,
                "status": reservation.status.value,
                "start_time": reservation.start_time.isoformat(),
            },
        )

        if notify and reservation.status == ReservationStatus.CONFIRMED:
            await self._notifier.notify_confirmed(reservation)
        return reservation

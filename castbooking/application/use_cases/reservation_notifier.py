import asyncio
import logging
from decimal import Decimal
from zoneinfo import ZoneInfo

from castbooking.application.interfaces.notification_dispatcher import (
    NotificationDispatcher,
    ReservationCancellationData,
    ReservationConfirmationData,
)
from castbooking.application.interfaces.reference_repos import CourseRepo, CustomerRepo, StaffRepo
from castbooking.domain.entities.reservation import Reservation
from castbooking.domain.value_objects.money import Money


class ReservationNotifier:
    """
    Builds notification payloads for a reservation and hands them to the dispatcher.

    Every public method is best-effort: failures are logged and swallowed so a
    reservation write is never undone by a notification problem.
    """

    def __init__(
        self,
        customer_repo: CustomerRepo,
        staff_repo: StaffRepo,
        course_repo: CourseRepo,
        dispatcher: NotificationDispatcher,
        location: str = "",
        timezone_name: str = "UTC",
    ) -> None:
        self._customer_repo = customer_repo
        self._staff_repo = staff_repo
        self._course_repo = course_repo
        self._dispatcher = dispatcher
        self._location = location
        self._tz = ZoneInfo(timezone_name)
        self._logger = logging.getLogger(__name__)

    async def notify_confirmed(self, reservation: Reservation) -> bool:
        try:
            data = await self.build_confirmation(reservation)
            await self._dispatcher.send_reservation_confirmation(data)
        except Exception as exc:
            self._logger.warning(
                "Failed to dispatch reservation confirmation",
                exc_info=exc,
                extra={"reservation_id": reservation.id},
            )
            return False
        return True

    async def notify_cancelled(
        self, reservation: Reservation, refund_amount: Decimal | None = None
    ) -> bool:
        try:
            customer, staff = await asyncio.gather(
                self._customer_repo.find_by_id(reservation.customer_id),
                self._staff_repo.find_by_id(reservation.staff_id),
            )
            local_start = reservation.start_time.astimezone(self._tz)
            data = ReservationCancellationData(
                reservation_id=reservation.id,
                customer_name=customer.name if customer else "",
                customer_email=customer.email if customer else None,
                staff_name=staff.name if staff else "",
                reservation_date=local_start.strftime("%Y-%m-%d"),
                reservation_time=local_start.strftime("%H:%M"),
                refund_amount=(
                    str(Money(refund_amount, reservation.currency_code))
                    if refund_amount is not None
                    else None
                ),
            )
            await self._dispatcher.send_reservation_cancellation(data)
        except Exception as exc:
            self._logger.warning(
                "Failed to dispatch reservation cancellation",
                exc_info=exc,
                extra={"reservation_id": reservation.id},
            )
            return False
        return True

    async def build_confirmation(self, reservation: Reservation) -> ReservationConfirmationData:
        customer, staff, course = await asyncio.gather(
            self._customer_repo.find_by_id(reservation.customer_id),
            self._staff_repo.find_by_id(reservation.staff_id),
            self._course_repo.find_by_id(reservation.course_id),
        )
        local_start = reservation.start_time.astimezone(self._tz)
        return ReservationConfirmationData(
            customer_name=customer.name if customer else "",
            customer_email=customer.email if customer else None,
            customer_phone=customer.phone if customer else None,
            staff_name=staff.name if staff else "",
            service_name=course.name if course else "",
            reservation_date=local_start.strftime("%Y-%m-%d"),
            reservation_time=local_start.strftime("%H:%M"),
            location=(staff.location if staff and staff.location else self._location),
            total_price=str(reservation.total_price),
            reservation_id=reservation.id,
        )

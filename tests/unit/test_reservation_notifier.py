from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

from castbooking.application.use_cases.reservation_notifier import ReservationNotifier
from castbooking.domain.entities.reservation import Reservation
from tests.conftest import SLOT_END, SLOT_START


def make_reservation(staff_id="cast-1") -> Reservation:
    return Reservation(
        id="res_0000000000000001",
        customer_id="cust-1",
        staff_id=staff_id,
        course_id="course-60",
        start_time=SLOT_START,
        end_time=SLOT_END,
        price=Decimal("8000"),
    )


def make_notifier(stack, dispatcher) -> ReservationNotifier:
    return ReservationNotifier(
        customer_repo=stack.customers,
        staff_repo=stack.staff,
        course_repo=stack.courses,
        dispatcher=dispatcher,
        location="Ginza Store",
        timezone_name="Asia/Tokyo",
    )


class TestReservationNotifier:
    async def test_confirmation_uses_business_timezone(self, stack):
        data = await stack.notifier.build_confirmation(make_reservation())

        # 10:00 UTC is 19:00 in Tokyo
        assert data.reservation_date == "2024-01-15"
        assert data.reservation_time == "19:00"
        assert data.customer_name == "Hanako Sato"
        assert data.service_name == "Standard 60"
        assert data.total_price == "8000 JPY"

    async def test_date_rolls_over_in_business_timezone(self, stack):
        reservation = make_reservation()
        reservation.start_time = datetime(2024, 1, 15, 16, 30, tzinfo=timezone.utc)
        reservation.end_time = datetime(2024, 1, 15, 17, 30, tzinfo=timezone.utc)

        data = await stack.notifier.build_confirmation(reservation)

        assert data.reservation_date == "2024-01-16"
        assert data.reservation_time == "01:30"

    async def test_location_prefers_staff_then_store(self, stack):
        with_location = await stack.notifier.build_confirmation(make_reservation("cast-1"))
        without_location = await stack.notifier.build_confirmation(make_reservation("cast-2"))

        assert with_location.location == "Shibuya"
        assert without_location.location == "Ginza Store"

    async def test_confirmation_dispatch_failure_is_swallowed(self, stack, caplog):
        dispatcher = AsyncMock()
        dispatcher.send_reservation_confirmation.side_effect = RuntimeError("queue down")
        notifier = make_notifier(stack, dispatcher)

        sent = await notifier.notify_confirmed(make_reservation())

        assert sent is False
        assert "Failed to dispatch reservation confirmation" in caplog.text

    async def test_cancellation_carries_refund(self, stack):
        dispatcher = AsyncMock()
        notifier = make_notifier(stack, dispatcher)

        sent = await notifier.notify_cancelled(make_reservation(), refund_amount=Decimal("3000"))

        assert sent is True
        data = dispatcher.send_reservation_cancellation.await_args.args[0]
        assert data.refund_amount == "3000 JPY"
        assert data.reservation_time == "19:00"
        assert data.staff_name == "Yui"

    async def test_cancellation_without_refund(self, stack):
        dispatcher = AsyncMock()
        notifier = make_notifier(stack, dispatcher)

        await notifier.notify_cancelled(make_reservation())

        data = dispatcher.send_reservation_cancellation.await_args.args[0]
        assert data.refund_amount is None

    async def test_missing_references_leave_blank_names(self, stack):
        reservation = make_reservation()
        reservation.customer_id = "ghost"

        data = await stack.notifier.build_confirmation(reservation)

        assert data.customer_name == ""
        assert data.customer_email is None

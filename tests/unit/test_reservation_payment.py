from datetime import timedelta
from decimal import Decimal

import pytest

from castbooking.application.dtos.payment_dto import CreateReservationWithPaymentData
from castbooking.domain.entities.outbox_event import OutboxEventType
from castbooking.domain.entities.payment import (
    PaymentMethod,
    PaymentProviderName,
    PaymentTransactionStatus,
    RefundResult,
)
from castbooking.domain.entities.reservation import ReservationPaymentStatus, ReservationStatus
from castbooking.domain.errors import (
    InvalidReservationStatusError,
    PaymentIntentNotFoundError,
    ReservationNotFoundError,
)
from tests.conftest import SLOT_END, SLOT_START


def paid_booking(**overrides) -> CreateReservationWithPaymentData:
    values = {
        "customer_id": "cust-1",
        "staff_id": "cast-1",
        "course_id": "course-60",
        "start_time": SLOT_START,
        "end_time": SLOT_END,
    }
    values.update(overrides)
    return CreateReservationWithPaymentData(**values)


def event_types(stack) -> list[str]:
    return [e.event_type for e in stack.outbox.events.values()]


class TestCreateWithPayment:
    async def test_successful_charge_confirms_and_marks_paid(self, stack):
        result = await stack.reservation_payments.create_reservation_with_payment(paid_booking())

        assert result.success
        assert result.reservation.status == ReservationStatus.CONFIRMED
        assert result.reservation.payment_status == ReservationPaymentStatus.PAID
        assert result.transaction.amount == Decimal("8000")
        stored = stack.reservations.reservations[result.reservation.id]
        assert stored.status == ReservationStatus.CONFIRMED
        assert event_types(stack) == [OutboxEventType.RESERVATION_CONFIRMED.value]

    async def test_declined_card_cancels_reservation(self, stack):
        stack.card_provider.decline_reason = "Card declined"

        result = await stack.reservation_payments.create_reservation_with_payment(paid_booking())

        assert not result.success
        assert result.error == "Payment failed: Card declined"
        stored = stack.reservations.reservations[result.reservation.id]
        assert stored.status == ReservationStatus.CANCELLED
        assert stored.payment_status == ReservationPaymentStatus.FAILED
        assert stack.outbox.events == {}

    async def test_declined_reservation_releases_the_slot(self, stack):
        stack.card_provider.decline_reason = "Card declined"
        await stack.reservation_payments.create_reservation_with_payment(paid_booking())
        stack.card_provider.decline_reason = None

        retry = await stack.reservation_payments.create_reservation_with_payment(paid_booking())

        assert retry.success

    async def test_conflict_returns_failure_without_charging(self, stack):
        await stack.reservation_payments.create_reservation_with_payment(paid_booking())

        result = await stack.reservation_payments.create_reservation_with_payment(
            paid_booking(start_time=SLOT_START + timedelta(minutes=30), end_time=SLOT_END + timedelta(minutes=30))
        )

        assert not result.success
        assert result.reservation is None
        assert len(result.conflicts) == 1
        assert len(stack.payments_repo.transactions) == 1

    async def test_validation_failure_is_reported(self, stack):
        result = await stack.reservation_payments.create_reservation_with_payment(
            paid_booking(customer_id="ghost")
        )

        assert not result.success
        assert result.error == "Customer not found"
        assert result.conflicts == []

    async def test_amount_below_minimum_fails_the_payment(self, stack):
        result = await stack.reservation_payments.create_reservation_with_payment(
            paid_booking(amount=Decimal("50"))
        )

        assert not result.success
        assert result.error.startswith("Payment failed: Payment validation failed")
        assert result.reservation.status == ReservationStatus.CANCELLED

    async def test_manual_provider_accepts_cash(self, stack):
        result = await stack.reservation_payments.create_reservation_with_payment(
            paid_booking(
                payment_method=PaymentMethod.CASH.value,
                payment_provider=PaymentProviderName.MANUAL.value,
            )
        )

        assert result.success
        assert result.transaction.provider == "manual"

    async def test_card_provider_rejects_cash(self, stack):
        result = await stack.reservation_payments.create_reservation_with_payment(
            paid_booking(payment_method=PaymentMethod.CASH.value)
        )

        assert not result.success
        assert "not supported by stripe" in result.error


    async def test_reservation_cancelled_during_charge_is_refunded(self, stack, monkeypatch):
        charge = stack.card_provider.process_payment

        async def cancel_then_charge(request):
            await stack.cancel.execute(request.reservation_id)
            return await charge(request)

        monkeypatch.setattr(stack.card_provider, "process_payment", cancel_then_charge)

        result = await stack.reservation_payments.create_reservation_with_payment(paid_booking())

        assert not result.success
        assert result.error == "Reservation is no longer available; payment refunded"
        stored = stack.reservations.reservations[result.reservation.id]
        assert stored.status == ReservationStatus.CANCELLED
        assert stored.payment_status == ReservationPaymentStatus.REFUNDED
        [transaction] = stack.payments_repo.transactions.values()
        assert transaction.refund_amount == Decimal("8000")
        assert transaction.status == PaymentTransactionStatus.REFUNDED
        assert OutboxEventType.RESERVATION_CONFIRMED.value not in event_types(stack)

    async def test_failed_compensating_refund_is_reported(self, stack, monkeypatch):
        charge = stack.card_provider.process_payment
        stack.card_provider.refund_error = "Refunds disabled"

        async def cancel_then_charge(request):
            await stack.cancel.execute(request.reservation_id)
            return await charge(request)

        monkeypatch.setattr(stack.card_provider, "process_payment", cancel_then_charge)

        result = await stack.reservation_payments.create_reservation_with_payment(paid_booking())

        assert not result.success
        assert result.error == (
            "Reservation is no longer available and the refund failed: Refunds disabled"
        )
        assert result.reservation.status == ReservationStatus.CANCELLED
        [transaction] = stack.payments_repo.transactions.values()
        assert transaction.refund_amount is None

    async def test_concurrent_edit_of_pending_reservation_still_settles(self, stack, monkeypatch):
        charge = stack.card_provider.process_payment

        async def touch_then_charge(request):
            stored = stack.reservations.reservations[request.reservation_id]
            stored.notes = "edited while charging"
            stored.lock_version += 1
            return await charge(request)

        monkeypatch.setattr(stack.card_provider, "process_payment", touch_then_charge)

        result = await stack.reservation_payments.create_reservation_with_payment(paid_booking())

        assert result.success
        stored = stack.reservations.reservations[result.reservation.id]
        assert stored.status == ReservationStatus.CONFIRMED
        assert stored.payment_status == ReservationPaymentStatus.PAID
        assert stored.notes == "edited while charging"


class TestPaymentIntentFlow:
    async def test_intent_keeps_reservation_pending_until_confirmed(self, stack):
        created = await stack.reservation_payments.create_reservation_with_payment_intent(
            paid_booking()
        )

        assert created.success
        assert created.reservation.status == ReservationStatus.PENDING
        assert created.payment_intent.client_secret.startswith("pi_stub_")

        confirmed = await stack.reservation_payments.confirm_payment_intent(
            created.payment_intent.id
        )

        assert confirmed.success
        assert confirmed.reservation.status == ReservationStatus.CONFIRMED
        assert confirmed.reservation.payment_status == ReservationPaymentStatus.PAID
        assert event_types(stack) == [OutboxEventType.RESERVATION_CONFIRMED.value]

    async def test_pending_intent_blocks_the_slot(self, stack):
        await stack.reservation_payments.create_reservation_with_payment_intent(paid_booking())

        result = await stack.availability.check("cast-1", SLOT_START, SLOT_END)

        assert not result.available

    async def test_declined_confirmation_cancels(self, stack):
        created = await stack.reservation_payments.create_reservation_with_payment_intent(
            paid_booking()
        )
        stack.card_provider.decline_reason = "Insufficient funds"

        result = await stack.reservation_payments.confirm_payment_intent(created.payment_intent.id)

        assert not result.success
        assert result.error == "Payment failed: Insufficient funds"
        assert result.reservation.status == ReservationStatus.CANCELLED

    async def test_unknown_intent(self, stack):
        with pytest.raises(PaymentIntentNotFoundError):
            await stack.reservation_payments.confirm_payment_intent("pi_missing")


class TestCancelWithRefund:
    async def test_full_refund(self, stack):
        paid = await stack.reservation_payments.create_reservation_with_payment(paid_booking())

        result = await stack.reservation_payments.cancel_reservation_with_refund(
            paid.reservation.id
        )

        assert result.success
        assert result.refund_amount == Decimal("8000")
        assert result.reservation.status == ReservationStatus.CANCELLED
        assert result.reservation.payment_status == ReservationPaymentStatus.REFUNDED
        cancellation = list(stack.outbox.events.values())[-1]
        assert cancellation.event_type == OutboxEventType.RESERVATION_CANCELLED.value
        assert cancellation.payload["refund_amount"] == "8000 JPY"

    async def test_partial_refund(self, stack):
        paid = await stack.reservation_payments.create_reservation_with_payment(paid_booking())

        result = await stack.reservation_payments.cancel_reservation_with_refund(
            paid.reservation.id, refund_amount=Decimal("3000")
        )

        assert result.success
        assert result.reservation.payment_status == ReservationPaymentStatus.PARTIALLY_REFUNDED
        transaction = stack.payments_repo.transactions[paid.transaction.id]
        assert transaction.refund_amount == Decimal("3000")

    async def test_refund_above_paid_amount_is_rejected(self, stack):
        paid = await stack.reservation_payments.create_reservation_with_payment(paid_booking())

        result = await stack.reservation_payments.cancel_reservation_with_refund(
            paid.reservation.id, refund_amount=Decimal("9000")
        )

        assert not result.success
        assert result.error == "Refund amount must be greater than 0 and at most 8000"
        assert stack.reservations.reservations[paid.reservation.id].status == ReservationStatus.CONFIRMED

    async def test_no_payment_to_refund(self, stack):
        reservation = await stack.create.execute(paid_booking())

        result = await stack.reservation_payments.cancel_reservation_with_refund(reservation.id)

        assert not result.success
        assert result.error == f"No completed payment found for reservation {reservation.id}"

    async def test_provider_refund_failure_keeps_reservation(self, stack):
        paid = await stack.reservation_payments.create_reservation_with_payment(paid_booking())
        stack.card_provider.refund_error = "Charge already refunded"

        result = await stack.reservation_payments.cancel_reservation_with_refund(
            paid.reservation.id
        )

        assert not result.success
        assert result.error == "Refund failed: Charge already refunded"
        assert stack.reservations.reservations[paid.reservation.id].status == ReservationStatus.CONFIRMED

    async def test_unknown_reservation(self, stack):
        with pytest.raises(ReservationNotFoundError):
            await stack.reservation_payments.cancel_reservation_with_refund("res_missing")

    async def test_completed_reservation_is_not_refunded(self, stack):
        paid = await stack.reservation_payments.create_reservation_with_payment(paid_booking())
        stack.reservations.reservations[paid.reservation.id].status = ReservationStatus.COMPLETED

        with pytest.raises(InvalidReservationStatusError):
            await stack.reservation_payments.cancel_reservation_with_refund(paid.reservation.id)

        assert stack.payments_repo.transactions[paid.transaction.id].refund_amount is None
        stored = stack.reservations.reservations[paid.reservation.id]
        assert stored.status == ReservationStatus.COMPLETED
        assert stored.payment_status == ReservationPaymentStatus.PAID

    async def test_payment_status_follows_the_amount_the_provider_refunded(
        self, stack, monkeypatch
    ):
        paid = await stack.reservation_payments.create_reservation_with_payment(paid_booking())

        async def short_refund(request):
            return RefundResult(success=True, refund_amount=request.amount - Decimal("1000"))

        monkeypatch.setattr(stack.card_provider, "refund_payment", short_refund)

        result = await stack.reservation_payments.cancel_reservation_with_refund(
            paid.reservation.id
        )

        assert result.success
        assert result.refund_amount == Decimal("7000")
        assert result.reservation.payment_status == ReservationPaymentStatus.PARTIALLY_REFUNDED
        assert stack.payments_repo.transactions[paid.transaction.id].refund_amount == Decimal("7000")

    async def test_remainder_can_be_refunded_after_cancellation(self, stack):
        paid = await stack.reservation_payments.create_reservation_with_payment(paid_booking())
        await stack.reservation_payments.cancel_reservation_with_refund(
            paid.reservation.id, refund_amount=Decimal("3000")
        )

        result = await stack.reservation_payments.cancel_reservation_with_refund(
            paid.reservation.id
        )

        assert result.success
        assert result.refund_amount == Decimal("5000")
        assert result.reservation.status == ReservationStatus.CANCELLED
        assert result.reservation.payment_status == ReservationPaymentStatus.REFUNDED


class TestReservationWithPayments:
    async def test_lists_payment_history(self, stack):
        paid = await stack.reservation_payments.create_reservation_with_payment(paid_booking())

        found = await stack.reservation_payments.get_reservation_with_payments(paid.reservation.id)

        assert found.reservation.id == paid.reservation.id
        assert [tx.id for tx in found.payments] == [paid.transaction.id]

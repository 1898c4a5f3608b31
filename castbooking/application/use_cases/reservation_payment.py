import logging
from decimal import Decimal
from typing import Callable

from castbooking.application.dtos.payment_dto import (
    CreateReservationWithPaymentData,
    ReservationWithPaymentResult,
    ReservationWithPayments,
)
from castbooking.application.dtos.reservation_dto import CancelReservationResult
from castbooking.application.interfaces.clock import Clock
from castbooking.application.interfaces.payment_gateway import PaymentGateway
from castbooking.application.interfaces.reservation_repo import ReservationRepo
from castbooking.application.interfaces.transaction_manager import TransactionManager
from castbooking.application.use_cases.create_reservation import CreateReservationUseCase
from castbooking.application.use_cases.reservation_notifier import ReservationNotifier
from castbooking.domain.entities.payment import (
    PaymentIntent,
    PaymentTransaction,
    PaymentTransactionStatus,
    ProcessPaymentRequest,
    ProcessPaymentResult,
    RefundRequest,
    RefundResult,
)
from castbooking.domain.entities.reservation import (
    Reservation,
    ReservationPaymentStatus,
    ReservationStatus,
)
from castbooking.domain.errors import (
    InvalidReservationStatusError,
    PaymentError,
    PaymentIntentNotFoundError,
    ReservationConcurrencyError,
    ReservationConflictError,
    ReservationNotFoundError,
    ReservationValidationError,
)

# One reload-and-retry after a concurrent change to the reservation
SAVE_ATTEMPTS = 2

UNAVAILABLE_REFUNDED = "Reservation is no longer available; payment refunded"


def _confirm_paid(reservation: Reservation) -> None:
    reservation.confirm()
    reservation.mark_paid()


def _cancel_unpaid(reservation: Reservation) -> None:
    reservation.cancel()
    reservation.mark_payment_failed()


class ReservationPaymentService:
    """
    Couples reservation creation with charging and refunding.

    The reservation is persisted as ``pending`` (not ``confirmed``) while the
    charge is outstanding, so the slot is held but the booking is not
    reported as confirmed before the money is taken. It becomes ``confirmed``
    and ``PAID`` once the payment succeeds; a failed charge cancels it and
    marks its payment ``FAILED``. The end states are those of persisting it
    ``confirmed`` first and cancelling on a failed charge.

    If the reservation stops being ``pending`` while the charge is in flight
    (cancelled concurrently), the charge is refunded instead of leaving a
    paid but unbooked payment behind.
    """

    def __init__(
        self,
        create_reservation: CreateReservationUseCase,
        reservation_repo: ReservationRepo,
        payments: PaymentGateway,
        notifier: ReservationNotifier,
        transaction_manager: TransactionManager,
        clock: Clock,
    ) -> None:
        self._create_reservation = create_reservation
        self._reservation_repo = reservation_repo
        self._payments = payments
        self._notifier = notifier
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    async def create_reservation_with_payment(
        self, data: CreateReservationWithPaymentData
    ) -> ReservationWithPaymentResult:
        created = await self._create_pending(data)
        if isinstance(created, ReservationWithPaymentResult):
            return created
        reservation = created

        request = self._build_request(reservation, data)
        try:
            result = await self._payments.process_payment(request)
        except Exception as exc:
            self._logger.error(
                "Payment provider call failed",
                exc_info=exc,
                extra={"reservation_id": reservation.id, "provider": data.payment_provider},
            )
            result = ProcessPaymentResult(success=False, error=str(exc))

        if not result.success:
            return await self._fail_payment(reservation, result.error, result)
        return await self._finish_paid(reservation, result)

    async def create_reservation_with_payment_intent(
        self, data: CreateReservationWithPaymentData
    ) -> ReservationWithPaymentResult:
        created = await self._create_pending(data)
        if isinstance(created, ReservationWithPaymentResult):
            return created
        reservation = created

        try:
            intent = await self._payments.create_payment_intent(
                self._build_request(reservation, data)
            )
        except Exception as exc:
            self._logger.error(
                "Payment intent creation failed",
                exc_info=exc,
                extra={"reservation_id": reservation.id, "provider": data.payment_provider},
            )
            return await self._fail_payment(reservation, str(exc))

        self._logger.info(
            "Payment intent created for reservation",
            extra={"reservation_id": reservation.id, "payment_intent_id": intent.id},
        )
        return ReservationWithPaymentResult(
            success=True, reservation=reservation, payment_intent=intent
        )

    async def confirm_payment_intent(self, intent_id: str) -> ReservationWithPaymentResult:
        intent = await self._get_intent(intent_id)
        reservation = await self._load(intent.reservation_id or "")
        if reservation.status != ReservationStatus.PENDING:
            raise InvalidReservationStatusError(
                current_status=reservation.status.value,
                expected_status=ReservationStatus.PENDING.value,
                operation="confirm payment",
            )

        try:
            result = await self._payments.confirm_payment_intent(intent_id)
        except Exception as exc:
            self._logger.error(
                "Payment intent confirmation failed",
                exc_info=exc,
                extra={"reservation_id": reservation.id, "payment_intent_id": intent_id},
            )
            result = ProcessPaymentResult(success=False, error=str(exc))

        if not result.success:
            return await self._fail_payment(reservation, result.error, result)
        return await self._finish_paid(reservation, result, payment_intent=intent)

    async def settle_confirmed_intent(self, intent_id: str) -> ReservationWithPaymentResult:
        """
        Settles an intent the customer confirmed directly with the provider
        (e.g. after 3-D Secure), as reported by the provider's webhook.

        Replays are no-ops.
        """
        intent = await self._get_intent(intent_id)
        reservation = await self._load(intent.reservation_id or "")
        if intent.status == PaymentTransactionStatus.COMPLETED:
            return ReservationWithPaymentResult(
                success=True, reservation=reservation, payment_intent=intent
            )

        result = await self._payments.record_intent_succeeded(intent_id)
        return await self._finish_paid(reservation, result, payment_intent=intent)

    async def fail_intent(
        self,
        intent_id: str,
        reason: str,
        status: PaymentTransactionStatus = PaymentTransactionStatus.FAILED,
    ) -> ReservationWithPaymentResult:
        """Cancels the pending reservation of an intent the provider reported as failed."""
        intent = await self._get_intent(intent_id)
        if intent.status == PaymentTransactionStatus.COMPLETED:
            self._logger.warning(
                "Ignoring failure for a settled payment intent",
                extra={"payment_intent_id": intent_id, "reason": reason},
            )
            return ReservationWithPaymentResult(
                success=True,
                reservation=await self._load(intent.reservation_id or ""),
                payment_intent=intent,
            )

        intent = await self._payments.record_intent_failed(intent_id, reason, status=status)
        reservation = await self._load(intent.reservation_id or "")
        result = await self._fail_payment(reservation, reason)
        result.payment_intent = intent
        return result

    async def record_provider_refund(
        self, provider_payment_id: str, refunded_total: Decimal
    ) -> Reservation | None:
        """Syncs a refund issued at the provider onto the reservation's payment status."""
        transaction = await self._payments.record_provider_refund(
            provider_payment_id, refunded_total
        )
        if transaction is None:
            return None

        reservation = await self._load(transaction.reservation_id)
        expected_version = reservation.lock_version
        previous_status = reservation.payment_status
        reservation.mark_refunded(transaction.refund_amount or Decimal("0"), transaction.amount)
        if reservation.payment_status == previous_status:
            return reservation
        reservation.updated_at = self._clock.now()
        async with self._transaction_manager.start():
            await self._reservation_repo.save(reservation, expected_lock_version=expected_version)
        self._logger.info(
            "Provider refund applied to reservation",
            extra={
                "reservation_id": reservation.id,
                "payment_status": reservation.payment_status.value,
            },
        )
        return reservation

    async def cancel_reservation_with_refund(
        self, reservation_id: str, refund_amount: Decimal | None = None
    ) -> CancelReservationResult:
        reservation = await self._load(reservation_id)
        if reservation.status == ReservationStatus.COMPLETED:
            raise InvalidReservationStatusError(
                current_status=reservation.status.value,
                expected_status=[
                    ReservationStatus.PENDING.value,
                    ReservationStatus.CONFIRMED.value,
                    ReservationStatus.CANCELLED.value,
                ],
                operation="cancel with refund",
            )

        history = await self._payments.get_payment_history_by_reservation(reservation_id)
        paid = next((tx for tx in history if tx.is_completed), None)
        if paid is None:
            return CancelReservationResult(
                success=False,
                reservation=reservation,
                error=f"No completed payment found for reservation {reservation_id}",
            )

        refundable = paid.refundable_amount
        amount = refundable if refund_amount is None else Decimal(refund_amount)
        if amount <= 0 or amount > refundable:
            return CancelReservationResult(
                success=False,
                reservation=reservation,
                error=f"Refund amount must be greater than 0 and at most {refundable}",
            )

        refund = await self._refund(paid, amount, reason="reservation_cancelled")
        if not refund.success:
            return CancelReservationResult(
                success=False,
                reservation=reservation,
                error=f"Refund failed: {refund.error or 'Unknown error'}",
            )

        if refund.transaction and refund.transaction.refund_amount is not None:
            refunded_total = refund.transaction.refund_amount
        else:
            refunded_total = (paid.refund_amount or Decimal("0")) + refund.refund_amount
        expected_version = reservation.lock_version
        if reservation.status != ReservationStatus.CANCELLED:
            reservation.cancel()
        reservation.mark_refunded(refunded_total, paid.amount)
        reservation.updated_at = self._clock.now()
        async with self._transaction_manager.start():
            await self._reservation_repo.save(reservation, expected_lock_version=expected_version)

        self._logger.info(
            "Reservation cancelled with refund",
            extra={
                "reservation_id": reservation_id,
                "refund_amount": str(refund.refund_amount),
                "payment_status": reservation.payment_status.value,
            },
        )
        await self._notifier.notify_cancelled(reservation, refund_amount=refund.refund_amount)
        return CancelReservationResult(
            success=True, reservation=reservation, refund_amount=refund.refund_amount
        )

    async def get_reservation_with_payments(self, reservation_id: str) -> ReservationWithPayments:
        reservation = await self._load(reservation_id)
        payments = await self._payments.get_payment_history_by_reservation(reservation_id)
        return ReservationWithPayments(reservation=reservation, payments=list(payments))

    async def _create_pending(
        self, data: CreateReservationWithPaymentData
    ) -> Reservation | ReservationWithPaymentResult:
        try:
            return await self._create_reservation.execute(
                data, status=ReservationStatus.PENDING, notify=False
            )
        except ReservationConflictError as exc:
            return ReservationWithPaymentResult(
                success=False, error=exc.message, conflicts=exc.conflicts
            )
        except ReservationValidationError as exc:
            return ReservationWithPaymentResult(success=False, error=exc.message)

    def _build_request(
        self, reservation: Reservation, data: CreateReservationWithPaymentData
    ) -> ProcessPaymentRequest:
        return ProcessPaymentRequest(
            reservation_id=reservation.id,
            customer_id=reservation.customer_id,
            amount=data.amount if data.amount is not None else reservation.price,
            currency=reservation.currency_code,
            payment_method=data.payment_method,
            provider=data.payment_provider,
            metadata={
                "reservation_id": reservation.id,
                "staff_id": reservation.staff_id,
                "course_id": reservation.course_id,
            },
        )

    async def _update_while_pending(
        self, reservation: Reservation, apply: Callable[[Reservation], None]
    ) -> Reservation | None:
        """
        Applies ``apply`` and saves, as long as the reservation is ``pending``.

        A concurrent change reloads the reservation before trying again.
        Returns ``None`` once the reservation is no longer pending.
        """
        for _ in range(SAVE_ATTEMPTS):
            if reservation.status != ReservationStatus.PENDING:
                return None
            expected_version = reservation.lock_version
            apply(reservation)
            reservation.updated_at = self._clock.now()
            try:
                async with self._transaction_manager.start():
                    await self._reservation_repo.save(
                        reservation, expected_lock_version=expected_version
                    )
                return reservation
            except ReservationConcurrencyError:
                self._logger.warning(
                    "Reservation changed while its payment was in flight",
                    extra={"reservation_id": reservation.id},
                )
                reservation = await self._load(reservation.id)
        return None

    async def _finish_paid(
        self,
        reservation: Reservation,
        result: ProcessPaymentResult,
        payment_intent: PaymentIntent | None = None,
    ) -> ReservationWithPaymentResult:
        settled = await self._update_while_pending(reservation, _confirm_paid)
        if settled is None:
            current = await self._load(reservation.id)
            if (
                payment_intent is not None
                and current.status == ReservationStatus.CONFIRMED
                and current.payment_status == ReservationPaymentStatus.PAID
            ):
                # Settled by the provider webhook for the same intent
                return ReservationWithPaymentResult(
                    success=True,
                    reservation=current,
                    transaction=result.transaction,
                    payment_intent=payment_intent,
                )
            return await self._refund_unbooked(current, result.transaction, payment_intent)

        self._logger.info(
            "Reservation paid",
            extra={
                "reservation_id": settled.id,
                "transaction_id": result.transaction.id if result.transaction else None,
            },
        )
        await self._notifier.notify_confirmed(settled)
        return ReservationWithPaymentResult(
            success=True,
            reservation=settled,
            transaction=result.transaction,
            payment_intent=payment_intent,
        )

    async def _refund_unbooked(
        self,
        reservation: Reservation,
        transaction: PaymentTransaction | None,
        payment_intent: PaymentIntent | None = None,
    ) -> ReservationWithPaymentResult:
        reservation_id = reservation.id
        self._logger.warning(
            "Charged reservation is no longer pending, refunding",
            extra={
                "reservation_id": reservation_id,
                "status": reservation.status.value,
                "transaction_id": transaction.id if transaction else None,
            },
        )
        if transaction is None:
            return ReservationWithPaymentResult(
                success=False,
                reservation=reservation,
                payment_intent=payment_intent,
                error="Reservation is no longer available",
            )

        refund = await self._refund(transaction, transaction.amount, reason="reservation_unavailable")
        if not refund.success:
            self._logger.error(
                "Compensating refund failed",
                extra={
                    "reservation_id": reservation_id,
                    "transaction_id": transaction.id,
                    "error": refund.error,
                },
            )
            return ReservationWithPaymentResult(
                success=False,
                reservation=reservation,
                transaction=transaction,
                payment_intent=payment_intent,
                error=(
                    "Reservation is no longer available and the refund failed: "
                    f"{refund.error or 'Unknown error'}"
                ),
            )

        expected_version = reservation.lock_version
        if reservation.blocks_schedule:
            reservation.cancel()
        reservation.mark_refunded(refund.refund_amount, transaction.amount)
        reservation.updated_at = self._clock.now()
        async with self._transaction_manager.start():
            await self._reservation_repo.save(reservation, expected_lock_version=expected_version)
        return ReservationWithPaymentResult(
            success=False,
            reservation=reservation,
            transaction=refund.transaction or transaction,
            payment_intent=payment_intent,
            error=UNAVAILABLE_REFUNDED,
        )

    async def _refund(
        self, transaction: PaymentTransaction, amount: Decimal, reason: str
    ) -> RefundResult:
        try:
            return await self._payments.refund_payment(
                RefundRequest(
                    transaction_id=transaction.id,
                    amount=amount,
                    reason=reason,
                    provider_payment_id=transaction.provider_payment_id,
                    metadata={"reservation_id": transaction.reservation_id},
                )
            )
        except Exception as exc:
            self._logger.error(
                "Refund call failed",
                exc_info=exc,
                extra={
                    "reservation_id": transaction.reservation_id,
                    "transaction_id": transaction.id,
                },
            )
            return RefundResult(success=False, error=str(exc))

    async def _fail_payment(
        self,
        reservation: Reservation,
        reason: str | None,
        result: ProcessPaymentResult | None = None,
    ) -> ReservationWithPaymentResult:
        error = PaymentError(reason or "Unknown error")
        cancelled = await self._update_while_pending(reservation, _cancel_unpaid)
        if cancelled is None:
            cancelled = await self._load(reservation.id)

        self._logger.warning(
            "Payment failed, reservation cancelled",
            extra={
                "reservation_id": reservation.id,
                "reason": error.reason,
                "status": cancelled.status.value,
            },
        )
        return ReservationWithPaymentResult(
            success=False,
            reservation=cancelled,
            transaction=result.transaction if result else None,
            error=error.message,
        )

    async def _get_intent(self, intent_id: str) -> PaymentIntent:
        intent = await self._payments.get_payment_intent(intent_id)
        if intent is None:
            raise PaymentIntentNotFoundError(intent_id)
        return intent

    async def _load(self, reservation_id: str) -> Reservation:
        reservation = await self._reservation_repo.get_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        return reservation

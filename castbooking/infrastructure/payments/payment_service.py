import logging
import time
from dataclasses import replace
from decimal import Decimal
from typing import Mapping, Sequence
from uuid import uuid4

from castbooking.application.interfaces.clock import Clock
from castbooking.application.interfaces.payment_gateway import PaymentGateway
from castbooking.application.interfaces.payment_provider import PaymentProvider
from castbooking.application.interfaces.payment_repo import PaymentRepo
from castbooking.application.interfaces.transaction_manager import TransactionManager
from castbooking.domain.entities.payment import (
    PaymentIntent,
    PaymentTransaction,
    PaymentTransactionStatus,
    ProcessPaymentRequest,
    ProcessPaymentResult,
    RefundRequest,
    RefundResult,
)
from castbooking.domain.errors import (
    PaymentIntentNotFoundError,
    PaymentProviderNotFoundError,
    PaymentTransactionNotFoundError,
    PaymentValidationError,
)
from castbooking.infrastructure.payments.validators import (
    sanitize_metadata,
    validate_payment_request,
)

logger = logging.getLogger(__name__)


class PaymentService(PaymentGateway):
    """
    Payment collaborator: routes requests to the configured providers and
    records transactions and intents.

    Declines come back as unsuccessful results; configuration problems
    (unknown provider, unknown intent or transaction) raise domain errors.
    """

    def __init__(
        self,
        providers: Mapping[str, PaymentProvider],
        payment_repo: PaymentRepo,
        transaction_manager: TransactionManager,
        clock: Clock,
        currency: str = "jpy",
    ) -> None:
        self._providers = dict(providers)
        self._payment_repo = payment_repo
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._currency = currency

    @property
    def provider_names(self) -> list[str]:
        return sorted(self._providers)

    async def process_payment(self, request: ProcessPaymentRequest) -> ProcessPaymentResult:
        started = time.monotonic()
        errors = validate_payment_request(request, self._currency)
        if errors:
            error = PaymentValidationError(errors).message
            logger.error(error, extra={"validation_errors": errors})
            return ProcessPaymentResult(success=False, error=error)

        provider = self._get_provider(request.provider)
        if request.payment_method not in provider.supported_methods:
            error = f"Payment method {request.payment_method} is not supported by {provider.name}"
            logger.warning(error, extra={"provider": provider.name})
            return ProcessPaymentResult(success=False, error=error)

        sanitized = replace(request, metadata=sanitize_metadata(request.metadata))
        logger.info(
            "Starting payment processing",
            extra={
                "provider": request.provider,
                "amount": str(request.amount),
                "customer_id": request.customer_id,
                "reservation_id": request.reservation_id,
            },
        )

        try:
            result = await provider.process_payment(sanitized)
        except Exception as exc:
            logger.error(
                "Payment processing error",
                exc_info=exc,
                extra={
                    "provider": request.provider,
                    "amount": str(request.amount),
                    "duration_ms": int((time.monotonic() - started) * 1000),
                },
            )
            raise

        if result.success and result.transaction:
            async with self._transaction_manager.start():
                await self._payment_repo.save_transaction(result.transaction)
            logger.info(
                "Payment processed successfully",
                extra={
                    "provider": request.provider,
                    "transaction_id": result.transaction.id,
                    "duration_ms": int((time.monotonic() - started) * 1000),
                },
            )
        else:
            logger.warning(
                "Payment processing failed",
                extra={
                    "provider": request.provider,
                    "amount": str(request.amount),
                    "error": result.error,
                    "duration_ms": int((time.monotonic() - started) * 1000),
                },
            )
        return result

    async def create_payment_intent(self, request: ProcessPaymentRequest) -> PaymentIntent:
        errors = validate_payment_request(request, self._currency)
        if errors:
            raise PaymentValidationError(errors)
        provider = self._get_provider(request.provider)
        intent = await provider.create_payment_intent(
            replace(request, metadata=sanitize_metadata(request.metadata))
        )
        async with self._transaction_manager.start():
            await self._payment_repo.save_intent(intent)
        logger.info(
            "Payment intent created",
            extra={"payment_intent_id": intent.id, "provider": intent.provider},
        )
        return intent

    async def confirm_payment_intent(self, intent_id: str) -> ProcessPaymentResult:
        intent = await self._payment_repo.get_intent(intent_id)
        if intent is None:
            raise PaymentIntentNotFoundError(intent_id)
        provider = self._get_provider(intent.provider)

        result = await provider.confirm_payment_intent(intent)
        async with self._transaction_manager.start():
            if result.success and result.transaction:
                await self._payment_repo.save_transaction(result.transaction)
                await self._payment_repo.update_intent(
                    intent_id, status=PaymentTransactionStatus.COMPLETED
                )
            else:
                await self._payment_repo.update_intent(
                    intent_id,
                    status=PaymentTransactionStatus.FAILED,
                    error_message=result.error,
                )
        return result

    async def get_payment_intent(self, intent_id: str) -> PaymentIntent | None:
        return await self._payment_repo.get_intent(intent_id)

    async def get_payment_intent_by_provider_id(self, provider_id: str) -> PaymentIntent | None:
        return await self._payment_repo.get_intent_by_provider_id(provider_id)

    async def record_intent_succeeded(self, intent_id: str) -> ProcessPaymentResult:
        intent = await self._payment_repo.get_intent(intent_id)
        if intent is None:
            raise PaymentIntentNotFoundError(intent_id)

        if intent.status == PaymentTransactionStatus.COMPLETED:
            history = await self._payment_repo.list_by_reservation(intent.reservation_id or "")
            existing = next((tx for tx in history if tx.payment_intent_id == intent.id), None)
            return ProcessPaymentResult(success=True, transaction=existing)

        now = self._clock.now()
        transaction = PaymentTransaction(
            id=f"txn_{uuid4().hex[:24]}",
            reservation_id=intent.reservation_id or "",
            customer_id=intent.customer_id or "",
            amount=intent.amount,
            currency=intent.currency,
            provider=intent.provider,
            payment_method=intent.payment_method,
            status=PaymentTransactionStatus.COMPLETED,
            payment_intent_id=intent.id,
            provider_payment_id=intent.provider_id,
            metadata=dict(intent.metadata),
            processed_at=now,
            created_at=now,
        )
        async with self._transaction_manager.start():
            await self._payment_repo.save_transaction(transaction)
            await self._payment_repo.update_intent(
                intent_id, status=PaymentTransactionStatus.COMPLETED
            )
        logger.info(
            "Payment intent settled by provider",
            extra={"payment_intent_id": intent.id, "transaction_id": transaction.id},
        )
        return ProcessPaymentResult(success=True, transaction=transaction)

    async def record_intent_failed(
        self,
        intent_id: str,
        error: str | None,
        status: PaymentTransactionStatus = PaymentTransactionStatus.FAILED,
    ) -> PaymentIntent:
        async with self._transaction_manager.start():
            intent = await self._payment_repo.update_intent(
                intent_id, status=status, error_message=error
            )
        logger.warning(
            "Payment intent did not complete",
            extra={"payment_intent_id": intent_id, "status": status.value, "error": error},
        )
        return intent

    async def record_provider_refund(
        self, provider_payment_id: str, refunded_total: Decimal
    ) -> PaymentTransaction | None:
        transaction = await self._payment_repo.get_transaction_by_provider_payment_id(
            provider_payment_id
        )
        if transaction is None:
            logger.warning(
                "Refund reported for an unknown payment",
                extra={"provider_payment_id": provider_payment_id},
            )
            return None
        if refunded_total <= (transaction.refund_amount or Decimal("0")):
            return transaction

        async with self._transaction_manager.start():
            updated = await self._payment_repo.update_transaction(
                transaction.id,
                status=(
                    PaymentTransactionStatus.REFUNDED
                    if refunded_total >= transaction.amount
                    else transaction.status
                ),
                refund_amount=refunded_total,
                refunded_at=self._clock.now(),
            )
        logger.info(
            "Provider refund recorded",
            extra={"transaction_id": transaction.id, "refund_amount": str(refunded_total)},
        )
        return updated

    async def get_payment_history_by_reservation(
        self, reservation_id: str
    ) -> Sequence[PaymentTransaction]:
        return await self._payment_repo.list_by_reservation(reservation_id)

    async def refund_payment(self, request: RefundRequest) -> RefundResult:
        logger.info(
            "Starting refund processing",
            extra={
                "transaction_id": request.transaction_id,
                "amount": str(request.amount),
                "reason": request.reason,
            },
        )
        transaction = await self._payment_repo.get_transaction(request.transaction_id)
        if transaction is None:
            raise PaymentTransactionNotFoundError(request.transaction_id)

        provider = self._get_provider(transaction.provider)
        provider_request = replace(
            request,
            provider_payment_id=(
                transaction.provider_payment_id
                or transaction.payment_intent_id
                or transaction.id
            ),
            metadata=sanitize_metadata(
                {**transaction.metadata, **request.metadata, "currency": transaction.currency}
            ),
        )
        result = await provider.refund_payment(provider_request)
        if not result.success:
            logger.warning(
                "Refund processing failed",
                extra={"transaction_id": transaction.id, "error": result.error},
            )
            return result

        refunded_total = (transaction.refund_amount or Decimal("0")) + result.refund_amount
        async with self._transaction_manager.start():
            updated = await self._payment_repo.update_transaction(
                transaction.id,
                status=(
                    PaymentTransactionStatus.REFUNDED
                    if refunded_total >= transaction.amount
                    else transaction.status
                ),
                refund_amount=refunded_total,
                refunded_at=self._clock.now(),
            )
        logger.info(
            "Refund processed successfully",
            extra={"transaction_id": transaction.id, "refund_amount": str(result.refund_amount)},
        )
        return RefundResult(success=True, refund_amount=result.refund_amount, transaction=updated)

    def _get_provider(self, name: str) -> PaymentProvider:
        provider = self._providers.get(name)
        if provider is None:
            logger.error("Payment provider not configured", extra={"provider": name})
            raise PaymentProviderNotFoundError(name)
        return provider

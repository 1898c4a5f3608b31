import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import stripe

from castbooking.application.interfaces.payment_provider import PaymentProvider
from castbooking.domain.entities.payment import (
    PaymentIntent,
    PaymentMethod,
    PaymentProviderName,
    PaymentTransaction,
    PaymentTransactionStatus,
    ProcessPaymentRequest,
    ProcessPaymentResult,
    RefundRequest,
    RefundResult,
)
from castbooking.domain.value_objects.money import Money
from castbooking.infrastructure.circuit_breaker import CircuitBreakerError, stripe_breaker

logger = logging.getLogger(__name__)

STRIPE_STATUS_MAP = {
    "succeeded": PaymentTransactionStatus.COMPLETED,
    "processing": PaymentTransactionStatus.PROCESSING,
    "requires_payment_method": PaymentTransactionStatus.PENDING,
    "requires_confirmation": PaymentTransactionStatus.PENDING,
    "requires_action": PaymentTransactionStatus.PENDING,
    "requires_capture": PaymentTransactionStatus.PENDING,
    "canceled": PaymentTransactionStatus.CANCELLED,
}


def map_stripe_status(stripe_status: str) -> PaymentTransactionStatus:
    return STRIPE_STATUS_MAP.get(stripe_status, PaymentTransactionStatus.FAILED)


class StripePaymentProvider(PaymentProvider):
    """
    Card payments through the Stripe SDK.

    The SDK is synchronous; calls run in a worker thread behind the
    ``stripe_breaker`` circuit breaker.
    """

    name = PaymentProviderName.STRIPE.value
    supported_methods = (PaymentMethod.CARD.value,)

    def __init__(self, api_key: str, timeout_seconds: float = 10.0) -> None:
        if not api_key:
            raise ValueError("Stripe secret key is required")
        stripe.api_key = api_key
        stripe.max_network_retries = 2
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout_seconds)

    async def _call(self, func, **params):
        try:
            return await asyncio.to_thread(stripe_breaker.call, func, **params)
        except CircuitBreakerError as e:
            logger.error(
                "Stripe circuit breaker is open - service unavailable",
                extra={"circuit_state": str(e)},
            )
            raise

    async def process_payment(self, request: ProcessPaymentRequest) -> ProcessPaymentResult:
        money = Money(request.amount, request.currency)
        try:
            intent = await self._call(
                stripe.PaymentIntent.create,
                amount=money.to_minor_units(),
                currency=request.currency.lower(),
                confirm=True,
                automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
                metadata={
                    "reservation_id": request.reservation_id,
                    "customer_id": request.customer_id,
                    **request.metadata,
                },
            )
        except stripe.StripeError as e:
            logger.warning(
                "Stripe payment declined or failed",
                extra={"reservation_id": request.reservation_id, "error": str(e)},
            )
            return ProcessPaymentResult(success=False, error=e.user_message or str(e))

        status = map_stripe_status(intent.status)
        if status != PaymentTransactionStatus.COMPLETED:
            return ProcessPaymentResult(
                success=False, error=f"Payment not completed (status: {intent.status})"
            )

        now = datetime.now(timezone.utc)
        return ProcessPaymentResult(
            success=True,
            transaction=PaymentTransaction(
                id=f"txn_{uuid4().hex[:24]}",
                reservation_id=request.reservation_id,
                customer_id=request.customer_id,
                amount=Decimal(request.amount),
                currency=request.currency,
                provider=self.name,
                payment_method=request.payment_method,
                status=status,
                payment_intent_id=intent.id,
                provider_payment_id=intent.id,
                metadata=dict(request.metadata),
                processed_at=now,
                created_at=now,
            ),
        )

    async def create_payment_intent(self, request: ProcessPaymentRequest) -> PaymentIntent:
        money = Money(request.amount, request.currency)
        stripe_intent = await self._call(
            stripe.PaymentIntent.create,
            amount=money.to_minor_units(),
            currency=request.currency.lower(),
            metadata={
                "reservation_id": request.reservation_id,
                "customer_id": request.customer_id,
                **request.metadata,
            },
        )
        return PaymentIntent(
            id=f"pi_{uuid4().hex[:24]}",
            provider_id=stripe_intent.id,
            provider=self.name,
            amount=Decimal(request.amount),
            currency=request.currency,
            status=map_stripe_status(stripe_intent.status),
            payment_method=request.payment_method,
            reservation_id=request.reservation_id,
            customer_id=request.customer_id,
            client_secret=stripe_intent.client_secret,
            metadata=dict(request.metadata),
            created_at=datetime.now(timezone.utc),
        )

    async def confirm_payment_intent(self, intent: PaymentIntent) -> ProcessPaymentResult:
        try:
            confirmed = await self._call(stripe.PaymentIntent.confirm, intent=intent.provider_id)
        except stripe.StripeError as e:
            logger.warning(
                "Stripe payment intent confirmation failed",
                extra={"payment_intent_id": intent.id, "error": str(e)},
            )
            return ProcessPaymentResult(success=False, error=e.user_message or str(e))

        status = map_stripe_status(confirmed.status)
        if status != PaymentTransactionStatus.COMPLETED:
            return ProcessPaymentResult(
                success=False, error=f"Payment not completed (status: {confirmed.status})"
            )
        now = datetime.now(timezone.utc)
        return ProcessPaymentResult(
            success=True,
            transaction=PaymentTransaction(
                id=f"txn_{uuid4().hex[:24]}",
                reservation_id=intent.reservation_id or "",
                customer_id=intent.customer_id or "",
                amount=intent.amount,
                currency=intent.currency,
                provider=self.name,
                payment_method=intent.payment_method,
                status=status,
                payment_intent_id=intent.id,
                provider_payment_id=confirmed.id,
                metadata=dict(intent.metadata),
                processed_at=now,
                created_at=now,
            ),
        )

    async def refund_payment(self, request: RefundRequest) -> RefundResult:
        currency = request.metadata.get("currency", "jpy")
        try:
            refund = await self._call(
                stripe.Refund.create,
                payment_intent=request.provider_payment_id or request.transaction_id,
                amount=Money(request.amount, currency).to_minor_units(),
                reason="requested_by_customer",
            )
        except stripe.StripeError as e:
            logger.warning(
                "Stripe refund failed",
                extra={"transaction_id": request.transaction_id, "error": str(e)},
            )
            return RefundResult(success=False, error=e.user_message or str(e))

        return RefundResult(
            success=True,
            refund_amount=Money.from_minor_units(refund.amount, refund.currency).amount,
        )

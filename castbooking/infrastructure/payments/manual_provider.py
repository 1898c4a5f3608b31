from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

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


class ManualPaymentProvider(PaymentProvider):
    """Offline payments (cash, bank transfer, card terminal): bookkeeping only."""

    name = PaymentProviderName.MANUAL.value
    supported_methods = tuple(m.value for m in PaymentMethod)

    def _transaction(
        self,
        request: ProcessPaymentRequest,
        payment_intent_id: str | None = None,
    ) -> PaymentTransaction:
        now = datetime.now(timezone.utc)
        return PaymentTransaction(
            id=f"txn_{uuid4().hex[:24]}",
            reservation_id=request.reservation_id,
            customer_id=request.customer_id,
            amount=Decimal(request.amount),
            currency=request.currency,
            provider=self.name,
            payment_method=request.payment_method,
            status=PaymentTransactionStatus.COMPLETED,
            payment_intent_id=payment_intent_id,
            metadata=dict(request.metadata),
            processed_at=now,
            created_at=now,
        )

    async def process_payment(self, request: ProcessPaymentRequest) -> ProcessPaymentResult:
        return ProcessPaymentResult(success=True, transaction=self._transaction(request))

    async def create_payment_intent(self, request: ProcessPaymentRequest) -> PaymentIntent:
        return PaymentIntent(
            id=f"pi_{uuid4().hex[:24]}",
            provider_id=f"manual_intent_{uuid4().hex[:16]}",
            provider=self.name,
            amount=Decimal(request.amount),
            currency=request.currency,
            status=PaymentTransactionStatus.PENDING,
            payment_method=request.payment_method,
            reservation_id=request.reservation_id,
            customer_id=request.customer_id,
            metadata=dict(request.metadata),
            created_at=datetime.now(timezone.utc),
        )

    async def confirm_payment_intent(self, intent: PaymentIntent) -> ProcessPaymentResult:
        request = ProcessPaymentRequest(
            reservation_id=intent.reservation_id or "",
            customer_id=intent.customer_id or "",
            amount=intent.amount,
            currency=intent.currency,
            payment_method=intent.payment_method,
            provider=self.name,
            metadata=dict(intent.metadata),
        )
        return ProcessPaymentResult(
            success=True, transaction=self._transaction(request, payment_intent_id=intent.id)
        )

    async def refund_payment(self, request: RefundRequest) -> RefundResult:
        return RefundResult(success=True, refund_amount=Decimal(request.amount))

"""Interface PaymentGateway - Puerto del colaborador de pagos consumido por las reservas."""

from decimal import Decimal
from typing import Sequence

from castbooking.domain.entities.payment import (
    PaymentIntent,
    PaymentTransaction,
    PaymentTransactionStatus,
    ProcessPaymentRequest,
    ProcessPaymentResult,
    RefundRequest,
    RefundResult,
)


class PaymentGateway:
    async def process_payment(self, request: ProcessPaymentRequest) -> ProcessPaymentResult:
        raise NotImplementedError

    async def create_payment_intent(self, request: ProcessPaymentRequest) -> PaymentIntent:
        raise NotImplementedError

    async def confirm_payment_intent(self, intent_id: str) -> ProcessPaymentResult:
        raise NotImplementedError

    async def get_payment_intent(self, intent_id: str) -> PaymentIntent | None:
        raise NotImplementedError

    async def get_payment_history_by_reservation(
        self, reservation_id: str
    ) -> Sequence[PaymentTransaction]:
        raise NotImplementedError

    async def refund_payment(self, request: RefundRequest) -> RefundResult:
        raise NotImplementedError

    async def get_payment_intent_by_provider_id(self, provider_id: str) -> PaymentIntent | None:
        raise NotImplementedError

    async def record_intent_succeeded(self, intent_id: str) -> ProcessPaymentResult:
        """Records a payment the client confirmed directly with the provider."""
        raise NotImplementedError

    async def record_intent_failed(
        self,
        intent_id: str,
        error: str | None,
        status: PaymentTransactionStatus = PaymentTransactionStatus.FAILED,
    ) -> PaymentIntent:
        raise NotImplementedError

    async def record_provider_refund(
        self, provider_payment_id: str, refunded_total: Decimal
    ) -> PaymentTransaction | None:
        """Syncs a refund issued at the provider; ``None`` when the payment is unknown."""
        raise NotImplementedError

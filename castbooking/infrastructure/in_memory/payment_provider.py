from decimal import Decimal

from castbooking.domain.entities.payment import (
    PaymentIntent,
    PaymentMethod,
    PaymentProviderName,
    ProcessPaymentRequest,
    ProcessPaymentResult,
    RefundRequest,
    RefundResult,
)
from castbooking.infrastructure.payments.manual_provider import ManualPaymentProvider


class StubCardPaymentProvider(ManualPaymentProvider):
    """
    Stands in for Stripe when no secret key is configured.

    Set ``decline_reason`` to simulate a declined card and
    ``refund_error`` to simulate a failed refund.
    """

    name = PaymentProviderName.STRIPE.value
    supported_methods = (PaymentMethod.CARD.value,)

    def __init__(self) -> None:
        self.decline_reason: str | None = None
        self.refund_error: str | None = None

    async def process_payment(self, request: ProcessPaymentRequest) -> ProcessPaymentResult:
        if self.decline_reason:
            return ProcessPaymentResult(success=False, error=self.decline_reason)
        return await super().process_payment(request)

    async def create_payment_intent(self, request: ProcessPaymentRequest) -> PaymentIntent:
        intent = await super().create_payment_intent(request)
        intent.provider_id = intent.provider_id.replace("manual_intent_", "pi_stub_")
        intent.client_secret = f"{intent.provider_id}_secret"
        return intent

    async def confirm_payment_intent(self, intent: PaymentIntent) -> ProcessPaymentResult:
        if self.decline_reason:
            return ProcessPaymentResult(success=False, error=self.decline_reason)
        return await super().confirm_payment_intent(intent)

    async def refund_payment(self, request: RefundRequest) -> RefundResult:
        if self.refund_error:
            return RefundResult(success=False, refund_amount=Decimal("0"), error=self.refund_error)
        return await super().refund_payment(request)

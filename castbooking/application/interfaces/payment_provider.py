"""Interface PaymentProvider - Puerto para proveedores de pago (Stripe, manual)."""

from castbooking.domain.entities.payment import (
    PaymentIntent,
    ProcessPaymentRequest,
    ProcessPaymentResult,
    RefundRequest,
    RefundResult,
)


class PaymentProvider:
    """
    Contrato que implementa cada proveedor de pagos.

    Los cobros rechazados se reportan como ``ProcessPaymentResult(success=False)``;
    las excepciones quedan reservadas para fallas de comunicación.
    """

    name: str = ""
    supported_methods: tuple[str, ...] = ()

    async def process_payment(self, request: ProcessPaymentRequest) -> ProcessPaymentResult:
        raise NotImplementedError

    async def create_payment_intent(self, request: ProcessPaymentRequest) -> PaymentIntent:
        raise NotImplementedError

    async def confirm_payment_intent(self, intent: PaymentIntent) -> ProcessPaymentResult:
        raise NotImplementedError

    async def refund_payment(self, request: RefundRequest) -> RefundResult:
        raise NotImplementedError

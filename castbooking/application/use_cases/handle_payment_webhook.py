import logging

from pydantic import ValidationError

from castbooking.api.schemas.reservations import PaymentWebhookEnvelope
from castbooking.application.interfaces.payment_gateway import PaymentGateway
from castbooking.application.interfaces.payment_webhook import PaymentWebhookParser
from castbooking.application.use_cases.reservation_payment import ReservationPaymentService
from castbooking.domain.entities.payment import PaymentIntent, PaymentTransactionStatus
from castbooking.domain.errors import PaymentIntentNotFoundError, PaymentWebhookError
from castbooking.domain.value_objects.money import Money


class HandleStripeWebhookUseCase:
    """
    Applies Stripe payment events to reservations.

    Handled events:
      - ``payment_intent.succeeded``: settles the intent and confirms the reservation
      - ``payment_intent.payment_failed`` / ``payment_intent.canceled``: cancels it
      - ``charge.refunded``: syncs refunds issued from the Stripe dashboard

    Replays are harmless: every handler checks the current payment state
    before changing it. Other event types are acknowledged and ignored.
    """

    def __init__(
        self,
        payments: PaymentGateway,
        reservation_payments: ReservationPaymentService,
        parser: PaymentWebhookParser | None,
    ) -> None:
        self._payments = payments
        self._reservation_payments = reservation_payments
        self._parser = parser
        self._logger = logging.getLogger(__name__)
        self._handlers = {
            "payment_intent.succeeded": self._on_intent_succeeded,
            "payment_intent.payment_failed": self._on_intent_failed,
            "payment_intent.canceled": self._on_intent_canceled,
            "charge.refunded": self._on_charge_refunded,
        }

    async def execute(self, raw_body: bytes, signature: str | None) -> None:
        if self._parser is None:
            raise RuntimeError("STRIPE_WEBHOOK_SECRET is not configured")
        if not raw_body:
            raise PaymentWebhookError("Empty webhook body")
        try:
            event = PaymentWebhookEnvelope.model_validate(
                self._parser.parse_event(raw_body, signature)
            )
        except ValidationError as exc:
            raise PaymentWebhookError("Invalid event payload") from exc
        except ValueError as exc:
            raise PaymentWebhookError(str(exc)) from exc

        data_obj = event.data.get("object")
        if not event.type or not isinstance(data_obj, dict) or not data_obj.get("id"):
            raise PaymentWebhookError("Invalid event payload")

        handler = self._handlers.get(event.type)
        if handler is None:
            self._logger.info(
                "Unhandled webhook event type",
                extra={"stripe_event_id": event.id, "event_type": event.type},
            )
            return
        await handler(data_obj)
        self._logger.info(
            "Stripe webhook processed",
            extra={
                "stripe_event_id": event.id,
                "event_type": event.type,
                "provider_object_id": data_obj["id"],
            },
        )

    async def _on_intent_succeeded(self, data_obj: dict) -> None:
        intent = await self._find_intent(data_obj["id"])
        await self._reservation_payments.settle_confirmed_intent(intent.id)

    async def _on_intent_failed(self, data_obj: dict) -> None:
        intent = await self._find_intent(data_obj["id"])
        last_error = data_obj.get("last_payment_error") or {}
        reason = last_error.get("message") or "Payment intent failed"
        await self._reservation_payments.fail_intent(intent.id, reason)

    async def _on_intent_canceled(self, data_obj: dict) -> None:
        intent = await self._find_intent(data_obj["id"])
        reason = data_obj.get("cancellation_reason") or "Payment intent canceled"
        await self._reservation_payments.fail_intent(
            intent.id, reason, status=PaymentTransactionStatus.CANCELLED
        )

    async def _on_charge_refunded(self, data_obj: dict) -> None:
        provider_payment_id = data_obj.get("payment_intent")
        currency = data_obj.get("currency")
        if not provider_payment_id or not currency:
            raise PaymentWebhookError("Invalid event payload")
        refunded = Money.from_minor_units(int(data_obj.get("amount_refunded") or 0), currency)
        reservation = await self._reservation_payments.record_provider_refund(
            provider_payment_id, refunded.amount
        )
        if reservation is None:
            self._logger.warning(
                "Refund webhook for an unknown payment ignored",
                extra={"provider_payment_id": provider_payment_id},
            )

    async def _find_intent(self, provider_id: str) -> PaymentIntent:
        intent = await self._payments.get_payment_intent_by_provider_id(provider_id)
        if intent is None:
            raise PaymentIntentNotFoundError(provider_id)
        return intent

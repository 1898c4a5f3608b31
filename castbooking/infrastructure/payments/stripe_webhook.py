import stripe

from castbooking.application.interfaces.payment_webhook import PaymentWebhookParser


class StripeWebhookParser(PaymentWebhookParser):
    def __init__(self, webhook_secret: str) -> None:
        self._webhook_secret = webhook_secret

    def parse_event(self, payload: bytes, signature_header: str | None) -> dict:
        if not signature_header:
            raise ValueError("Missing Stripe-Signature header")
        try:
            event = stripe.Webhook.construct_event(
                payload=payload.decode(),
                sig_header=signature_header,
                secret=self._webhook_secret,
            )
        except stripe.SignatureVerificationError as exc:
            raise ValueError("Invalid Stripe signature") from exc
        except ValueError as exc:
            raise ValueError("Invalid Stripe webhook payload") from exc
        return event.to_dict() if hasattr(event, "to_dict") else dict(event)

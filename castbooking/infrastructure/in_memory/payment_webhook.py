import json

from castbooking.application.interfaces.payment_webhook import PaymentWebhookParser


class UnsignedWebhookParser(PaymentWebhookParser):
    """Accepts unsigned JSON events, for local runs without a webhook secret."""

    def parse_event(self, payload: bytes, signature_header: str | None) -> dict:
        if not payload:
            raise ValueError("Empty webhook payload")
        try:
            event = json.loads(payload.decode() or "{}")
        except json.JSONDecodeError as exc:
            raise ValueError("Invalid webhook payload") from exc
        if not isinstance(event, dict):
            raise ValueError("Invalid webhook payload")
        return event

"""Interface PaymentWebhookParser - Verifica y decodifica eventos del proveedor de pagos."""


class PaymentWebhookParser:
    def parse_event(self, payload: bytes, signature_header: str | None) -> dict:
        """Returns the event as a dict; raises ``ValueError`` for unverifiable payloads."""
        raise NotImplementedError

from typing import Any, Sequence

from castbooking.domain.entities.payment import PaymentIntent, PaymentTransaction


class PaymentRepo:
    async def save_transaction(self, transaction: PaymentTransaction) -> None:
        raise NotImplementedError

    async def get_transaction(self, transaction_id: str) -> PaymentTransaction | None:
        raise NotImplementedError

    async def get_transaction_by_provider_payment_id(
        self, provider_payment_id: str
    ) -> PaymentTransaction | None:
        raise NotImplementedError

    async def update_transaction(self, transaction_id: str, **changes: Any) -> PaymentTransaction:
        raise NotImplementedError

    async def list_by_reservation(self, reservation_id: str) -> Sequence[PaymentTransaction]:
        """Newest first."""
        raise NotImplementedError

    async def save_intent(self, intent: PaymentIntent) -> None:
        raise NotImplementedError

    async def get_intent(self, intent_id: str) -> PaymentIntent | None:
        raise NotImplementedError

    async def get_intent_by_provider_id(self, provider_id: str) -> PaymentIntent | None:
        raise NotImplementedError

    async def update_intent(self, intent_id: str, **changes: Any) -> PaymentIntent:
        raise NotImplementedError

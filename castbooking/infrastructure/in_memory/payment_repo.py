from dataclasses import replace
from typing import Any, Sequence

from castbooking.application.interfaces.payment_repo import PaymentRepo
from castbooking.domain.entities.payment import PaymentIntent, PaymentTransaction
from castbooking.domain.errors import PaymentIntentNotFoundError, PaymentTransactionNotFoundError


class InMemoryPaymentRepo(PaymentRepo):
    def __init__(self) -> None:
        self.transactions: dict[str, PaymentTransaction] = {}
        self.intents: dict[str, PaymentIntent] = {}

    async def save_transaction(self, transaction: PaymentTransaction) -> None:
        self.transactions[transaction.id] = replace(transaction)

    async def get_transaction(self, transaction_id: str) -> PaymentTransaction | None:
        stored = self.transactions.get(transaction_id)
        return replace(stored) if stored else None

    async def get_transaction_by_provider_payment_id(
        self, provider_payment_id: str
    ) -> PaymentTransaction | None:
        for tx in reversed(list(self.transactions.values())):
            if tx.provider_payment_id == provider_payment_id:
                return replace(tx)
        return None

    async def update_transaction(self, transaction_id: str, **changes: Any) -> PaymentTransaction:
        stored = self.transactions.get(transaction_id)
        if stored is None:
            raise PaymentTransactionNotFoundError(transaction_id)
        updated = replace(stored, **changes)
        self.transactions[transaction_id] = updated
        return replace(updated)

    async def list_by_reservation(self, reservation_id: str) -> Sequence[PaymentTransaction]:
        # Insertion order stands in for created_at when timestamps tie
        found = [
            replace(tx)
            for tx in reversed(list(self.transactions.values()))
            if tx.reservation_id == reservation_id
        ]
        return found

    async def save_intent(self, intent: PaymentIntent) -> None:
        self.intents[intent.id] = replace(intent)

    async def get_intent(self, intent_id: str) -> PaymentIntent | None:
        stored = self.intents.get(intent_id)
        return replace(stored) if stored else None

    async def get_intent_by_provider_id(self, provider_id: str) -> PaymentIntent | None:
        stored = next((i for i in self.intents.values() if i.provider_id == provider_id), None)
        return replace(stored) if stored else None

    async def update_intent(self, intent_id: str, **changes: Any) -> PaymentIntent:
        stored = self.intents.get(intent_id)
        if stored is None:
            raise PaymentIntentNotFoundError(intent_id)
        updated = replace(stored, **changes)
        self.intents[intent_id] = updated
        return replace(updated)

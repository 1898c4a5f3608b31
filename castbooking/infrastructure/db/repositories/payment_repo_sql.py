from decimal import Decimal
from typing import Any, Mapping, Sequence

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from castbooking.application.interfaces.payment_repo import PaymentRepo
from castbooking.domain.entities.payment import (
    PaymentIntent,
    PaymentTransaction,
    PaymentTransactionStatus,
)
from castbooking.domain.errors import PaymentIntentNotFoundError, PaymentTransactionNotFoundError
from castbooking.infrastructure.db.tables import payment_intents, payment_transactions


def _column_values(changes: dict[str, Any]) -> dict[str, Any]:
    values = dict(changes)
    if "metadata" in values:
        values["metadata_json"] = values.pop("metadata")
    if isinstance(values.get("status"), PaymentTransactionStatus):
        values["status"] = values["status"].value
    return values


def _transaction_from_row(row: Mapping[str, Any]) -> PaymentTransaction:
    return PaymentTransaction(
        id=row["id"],
        reservation_id=row["reservation_id"],
        customer_id=row["customer_id"],
        amount=Decimal(row["amount"]),
        currency=row["currency"],
        provider=row["provider"],
        payment_method=row["payment_method"],
        status=PaymentTransactionStatus(row["status"]),
        payment_intent_id=row["payment_intent_id"],
        provider_payment_id=row["provider_payment_id"],
        metadata=row["metadata_json"] or {},
        error_message=row["error_message"],
        processed_at=row["processed_at"],
        refunded_at=row["refunded_at"],
        refund_amount=Decimal(row["refund_amount"]) if row["refund_amount"] is not None else None,
        created_at=row["created_at"],
    )


def _intent_from_row(row: Mapping[str, Any]) -> PaymentIntent:
    return PaymentIntent(
        id=row["id"],
        provider_id=row["provider_id"],
        provider=row["provider"],
        amount=Decimal(row["amount"]),
        currency=row["currency"],
        status=PaymentTransactionStatus(row["status"]),
        payment_method=row["payment_method"],
        reservation_id=row["reservation_id"],
        customer_id=row["customer_id"],
        client_secret=row["client_secret"],
        metadata=row["metadata_json"] or {},
        error_message=row["error_message"],
        created_at=row["created_at"],
    )


class PaymentRepoSQL(PaymentRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save_transaction(self, transaction: PaymentTransaction) -> None:
        stmt = insert(payment_transactions).values(
            id=transaction.id,
            reservation_id=transaction.reservation_id,
            customer_id=transaction.customer_id,
            amount=transaction.amount,
            currency=transaction.currency,
            provider=transaction.provider,
            payment_method=transaction.payment_method,
            status=transaction.status.value,
            payment_intent_id=transaction.payment_intent_id,
            provider_payment_id=transaction.provider_payment_id,
            metadata_json=transaction.metadata,
            error_message=transaction.error_message,
            processed_at=transaction.processed_at,
            refunded_at=transaction.refunded_at,
            refund_amount=transaction.refund_amount,
            created_at=transaction.created_at,
        )
        await self._session.execute(stmt)

    async def get_transaction(self, transaction_id: str) -> PaymentTransaction | None:
        stmt = select(payment_transactions).where(payment_transactions.c.id == transaction_id)
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return _transaction_from_row(row) if row else None

    async def get_transaction_by_provider_payment_id(
        self, provider_payment_id: str
    ) -> PaymentTransaction | None:
        stmt = (
            select(payment_transactions)
            .where(payment_transactions.c.provider_payment_id == provider_payment_id)
            .order_by(payment_transactions.c.created_at.desc())
        )
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return _transaction_from_row(row) if row else None

    async def update_transaction(self, transaction_id: str, **changes: Any) -> PaymentTransaction:
        stmt = (
            update(payment_transactions)
            .where(payment_transactions.c.id == transaction_id)
            .values(**_column_values(changes))
        )
        await self._session.execute(stmt)
        transaction = await self.get_transaction(transaction_id)
        if transaction is None:
            raise PaymentTransactionNotFoundError(transaction_id)
        return transaction

    async def list_by_reservation(self, reservation_id: str) -> Sequence[PaymentTransaction]:
        stmt = (
            select(payment_transactions)
            .where(payment_transactions.c.reservation_id == reservation_id)
            .order_by(payment_transactions.c.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [_transaction_from_row(row) for row in result.mappings().all()]

    async def save_intent(self, intent: PaymentIntent) -> None:
        stmt = insert(payment_intents).values(
            id=intent.id,
            provider_id=intent.provider_id,
            provider=intent.provider,
            amount=intent.amount,
            currency=intent.currency,
            status=intent.status.value,
            payment_method=intent.payment_method,
            reservation_id=intent.reservation_id,
            customer_id=intent.customer_id,
            client_secret=intent.client_secret,
            metadata_json=intent.metadata,
            error_message=intent.error_message,
            created_at=intent.created_at,
        )
        await self._session.execute(stmt)

    async def get_intent(self, intent_id: str) -> PaymentIntent | None:
        stmt = select(payment_intents).where(payment_intents.c.id == intent_id)
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return _intent_from_row(row) if row else None

    async def get_intent_by_provider_id(self, provider_id: str) -> PaymentIntent | None:
        stmt = select(payment_intents).where(payment_intents.c.provider_id == provider_id)
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return _intent_from_row(row) if row else None

    async def update_intent(self, intent_id: str, **changes: Any) -> PaymentIntent:
        stmt = (
            update(payment_intents)
            .where(payment_intents.c.id == intent_id)
            .values(**_column_values(changes))
        )
        await self._session.execute(stmt)
        intent = await self.get_intent(intent_id)
        if intent is None:
            raise PaymentIntentNotFoundError(intent_id)
        return intent

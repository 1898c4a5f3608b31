import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Sequence

from sqlalchemy import insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from castbooking.application.interfaces.outbox_repo import OutboxRepo
from castbooking.domain.entities.outbox_event import OutboxEvent, OutboxStatus
from castbooking.infrastructure.db.tables import outbox_events

logger = logging.getLogger(__name__)


def _from_row(row: Mapping[str, Any]) -> OutboxEvent:
    return OutboxEvent(
        id=row["id"],
        event_type=row["event_type"],
        aggregate_type=row["aggregate_type"],
        aggregate_id=row["aggregate_id"],
        payload=row["payload"] or {},
        status=OutboxStatus(row["status"]),
        attempts=row["attempts"] or 0,
        next_attempt_at=row["next_attempt_at"],
        last_error=row["last_error"],
        locked_by=row["locked_by"],
        lock_expires_at=row["lock_expires_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class OutboxRepoSQL(OutboxRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def enqueue(
        self,
        event_type: str,
        aggregate_type: str,
        aggregate_id: str,
        payload: dict[str, Any],
    ) -> OutboxEvent:
        now = datetime.now(timezone.utc)
        stmt = insert(outbox_events).values(
            event_type=event_type,
            aggregate_type=aggregate_type,
            aggregate_id=aggregate_id,
            payload=payload,
            status=OutboxStatus.NEW.value,
            attempts=0,
            next_attempt_at=now,
            created_at=now,
            updated_at=now,
        )
        result = await self._session.execute(stmt)
        event_id = result.inserted_primary_key[0]
        return OutboxEvent(
            id=event_id,
            event_type=event_type,
            aggregate_type=aggregate_type,
            aggregate_id=aggregate_id,
            payload=payload,
            status=OutboxStatus.NEW,
            attempts=0,
            next_attempt_at=now,
            created_at=now,
            updated_at=now,
        )

    async def get_by_id(self, event_id: int) -> OutboxEvent | None:
        stmt = select(outbox_events).where(outbox_events.c.id == event_id)
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return _from_row(row) if row else None

    async def claim_ready(
        self,
        limit: int,
        locked_by: str,
        now: datetime,
        lock_ttl_seconds: int = 300,
    ) -> Sequence[OutboxEvent]:
        candidates = (
            select(outbox_events.c.id)
            .where(
                outbox_events.c.status.in_((OutboxStatus.NEW.value, OutboxStatus.RETRY.value)),
                or_(
                    outbox_events.c.next_attempt_at.is_(None),
                    outbox_events.c.next_attempt_at <= now,
                ),
                or_(
                    outbox_events.c.lock_expires_at.is_(None),
                    outbox_events.c.lock_expires_at <= now,
                ),
            )
            .order_by(outbox_events.c.id)
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        ids = list((await self._session.execute(candidates)).scalars().all())
        if not ids:
            return []

        await self._session.execute(
            update(outbox_events)
            .where(outbox_events.c.id.in_(ids))
            .values(
                status=OutboxStatus.PROCESSING.value,
                locked_by=locked_by,
                lock_expires_at=now + timedelta(seconds=lock_ttl_seconds),
                updated_at=now,
            )
        )
        result = await self._session.execute(
            select(outbox_events).where(outbox_events.c.id.in_(ids)).order_by(outbox_events.c.id)
        )
        return [_from_row(row) for row in result.mappings().all()]

    async def mark_done(self, event_id: int) -> None:
        stmt = (
            update(outbox_events)
            .where(outbox_events.c.id == event_id)
            .values(
                status=OutboxStatus.DONE.value,
                locked_by=None,
                lock_expires_at=None,
                updated_at=datetime.now(timezone.utc),
            )
        )
        await self._session.execute(stmt)

    async def mark_retry(
        self,
        event_id: int,
        attempts: int,
        next_attempt_at: datetime,
        error_message: str | None,
    ) -> None:
        stmt = (
            update(outbox_events)
            .where(outbox_events.c.id == event_id)
            .values(
                status=OutboxStatus.RETRY.value,
                attempts=attempts,
                next_attempt_at=next_attempt_at,
                last_error=error_message,
                locked_by=None,
                lock_expires_at=None,
                updated_at=datetime.now(timezone.utc),
            )
        )
        await self._session.execute(stmt)

    async def mark_failed(
        self,
        event_id: int,
        attempts: int,
        error_message: str | None,
    ) -> None:
        stmt = (
            update(outbox_events)
            .where(outbox_events.c.id == event_id)
            .values(
                status=OutboxStatus.FAILED.value,
                attempts=attempts,
                last_error=error_message,
                locked_by=None,
                lock_expires_at=None,
                updated_at=datetime.now(timezone.utc),
            )
        )
        await self._session.execute(stmt)
        logger.warning(
            "Outbox event failed permanently",
            extra={"event_id": event_id, "attempts": attempts, "error": error_message},
        )

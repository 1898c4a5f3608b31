from datetime import datetime, timezone
from typing import Any, Sequence

from castbooking.application.interfaces.outbox_repo import OutboxRepo
from castbooking.domain.entities.outbox_event import OutboxEvent, OutboxStatus


class InMemoryOutboxRepo(OutboxRepo):
    def __init__(self) -> None:
        self.events: dict[int, OutboxEvent] = {}
        self._next_id = 1

    async def enqueue(
        self,
        event_type: str,
        aggregate_type: str,
        aggregate_id: str,
        payload: dict[str, Any],
    ) -> OutboxEvent:
        now = datetime.now(timezone.utc)
        event = OutboxEvent(
            id=self._next_id,
            event_type=event_type,
            aggregate_type=aggregate_type,
            aggregate_id=aggregate_id,
            payload=dict(payload),
            status=OutboxStatus.NEW,
            next_attempt_at=now,
            created_at=now,
            updated_at=now,
        )
        self.events[event.id] = event
        self._next_id += 1
        return event

    async def get_by_id(self, event_id: int) -> OutboxEvent | None:
        return self.events.get(event_id)

    async def claim_ready(
        self,
        limit: int,
        locked_by: str,
        now: datetime,
        lock_ttl_seconds: int = 300,
    ) -> Sequence[OutboxEvent]:
        claimed = []
        for event in sorted(self.events.values(), key=lambda e: e.id):
            if len(claimed) >= limit:
                break
            if event.is_ready(now):
                event.claim(locked_by, now, lock_ttl_seconds)
                claimed.append(event)
        return claimed

    async def mark_done(self, event_id: int) -> None:
        event = self.events.get(event_id)
        if event:
            event.mark_done()

    async def mark_retry(
        self,
        event_id: int,
        attempts: int,
        next_attempt_at: datetime,
        error_message: str | None,
    ) -> None:
        event = self.events.get(event_id)
        if event:
            event.mark_retry(attempts, next_attempt_at, error_message)

    async def mark_failed(
        self,
        event_id: int,
        attempts: int,
        error_message: str | None,
    ) -> None:
        event = self.events.get(event_id)
        if event:
            event.mark_failed(attempts, error_message)

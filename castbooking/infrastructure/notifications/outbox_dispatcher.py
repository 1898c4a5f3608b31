import logging

from castbooking.application.interfaces.notification_dispatcher import (
    NotificationDispatcher,
    ReservationCancellationData,
    ReservationConfirmationData,
)
from castbooking.application.interfaces.outbox_repo import OutboxRepo
from castbooking.application.interfaces.transaction_manager import TransactionManager
from castbooking.domain.entities.outbox_event import OutboxEventType

logger = logging.getLogger(__name__)


class OutboxNotificationDispatcher(NotificationDispatcher):
    """
    Queues notifications in the outbox instead of sending them inline.

    Delivery and retries happen in ``NotificationOutboxWorker``.
    """

    def __init__(self, outbox_repo: OutboxRepo, transaction_manager: TransactionManager) -> None:
        self._outbox_repo = outbox_repo
        self._transaction_manager = transaction_manager

    async def send_reservation_confirmation(self, data: ReservationConfirmationData) -> None:
        await self._enqueue(OutboxEventType.RESERVATION_CONFIRMED, data.reservation_id, data.to_payload())

    async def send_reservation_cancellation(self, data: ReservationCancellationData) -> None:
        await self._enqueue(OutboxEventType.RESERVATION_CANCELLED, data.reservation_id, data.to_payload())

    async def _enqueue(self, event_type: OutboxEventType, reservation_id: str, payload: dict) -> None:
        async with self._transaction_manager.start():
            event = await self._outbox_repo.enqueue(
                event_type=event_type.value,
                aggregate_type="reservation",
                aggregate_id=reservation_id,
                payload=payload,
            )
        logger.info(
            "Notification queued",
            extra={
                "event_id": event.id,
                "event_type": event_type.value,
                "reservation_id": reservation_id,
            },
        )

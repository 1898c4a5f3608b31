import logging

from castbooking.application.interfaces.notification_dispatcher import NotificationSender
from castbooking.domain.entities.outbox_event import OutboxEvent, OutboxEventType

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT_TYPES = (
    OutboxEventType.RESERVATION_CONFIRMED.value,
    OutboxEventType.RESERVATION_CANCELLED.value,
)


class DeliverNotificationUseCase:
    """Outbox handler: hands a notification event to the sender."""

    def __init__(self, sender: NotificationSender) -> None:
        self._sender = sender

    async def __call__(self, event: OutboxEvent) -> None:
        event_type = (
            event.event_type.value
            if isinstance(event.event_type, OutboxEventType)
            else str(event.event_type)
        )
        if not event.payload.get("reservation_id"):
            raise ValueError(f"Missing reservation_id in payload of event {event.id}")
        await self._sender.send(event_type, event.payload)
        logger.info(
            "Notification delivered",
            extra={
                "event_id": event.id,
                "event_type": event_type,
                "reservation_id": event.payload["reservation_id"],
            },
        )

import logging
from typing import Any

import httpx

from castbooking.application.interfaces.notification_dispatcher import NotificationSender

logger = logging.getLogger(__name__)


class LoggingNotificationSender(NotificationSender):
    """Default sender: records the notification in the application log."""

    async def send(self, event_type: str, payload: dict[str, Any]) -> None:
        logger.info(
            "Notification sent",
            extra={
                "event_type": event_type,
                "reservation_id": payload.get("reservation_id"),
                "customer_email": payload.get("customer_email"),
            },
        )


class WebhookNotificationSender(NotificationSender):
    """
    Posts notifications to an external delivery service (email/LINE bridge).

    Non-2xx responses and transport errors raise, so the outbox worker retries.
    """

    def __init__(self, url: str, timeout_seconds: float = 5.0) -> None:
        self._url = url
        self._timeout = timeout_seconds

    async def send(self, event_type: str, payload: dict[str, Any]) -> None:
        body = {"type": event_type, "data": payload}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._url, json=body)
        except httpx.TimeoutException:
            logger.warning(
                "Notification webhook timeout",
                extra={"event_type": event_type, "timeout": self._timeout},
            )
            raise
        except httpx.HTTPError as exc:
            logger.error(
                "Notification webhook HTTP error",
                exc_info=exc,
                extra={"event_type": event_type},
            )
            raise

        if not 200 <= response.status_code < 300:
            raise RuntimeError(
                f"Notification webhook returned {response.status_code}: {response.text}"
            )

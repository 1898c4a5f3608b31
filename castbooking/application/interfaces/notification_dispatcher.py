"""Interface NotificationDispatcher - Puerto para notificaciones de reservas."""

from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class ReservationConfirmationData:
    """Datos que recibe la plantilla de confirmación."""

    customer_name: str
    customer_email: str | None
    customer_phone: str | None
    staff_name: str
    service_name: str
    reservation_date: str
    reservation_time: str
    location: str
    total_price: str
    reservation_id: str

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ReservationCancellationData:
    """Datos que recibe la plantilla de cancelación."""

    reservation_id: str
    customer_name: str
    customer_email: str | None
    staff_name: str
    reservation_date: str
    reservation_time: str
    refund_amount: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


class NotificationDispatcher:
    """
    Puerto de salida para notificaciones.

    Las llamadas son best-effort: quien las invoca captura y registra
    cualquier excepción, nunca la propaga al usuario.
    """

    async def send_reservation_confirmation(self, data: ReservationConfirmationData) -> None:
        raise NotImplementedError

    async def send_reservation_cancellation(self, data: ReservationCancellationData) -> None:
        raise NotImplementedError


class NotificationSender:
    """Entrega efectiva (email/LINE/webhook); implementación externa."""

    async def send(self, event_type: str, payload: dict[str, Any]) -> None:
        raise NotImplementedError

"""Entidad Reservation - Agregado raíz del dominio."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from castbooking.domain.value_objects.money import Money
from castbooking.domain.value_objects.time_range import TimeRange

DEFAULT_MODIFICATION_WINDOW = timedelta(hours=24)


class ReservationStatus(str, Enum):
    """Estados posibles de una reserva."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Solo estos estados ocupan el horario del cast
BLOCKING_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.PENDING)


class ReservationPaymentStatus(str, Enum):
    """Estados de pago de una reserva."""

    UNPAID = "UNPAID"
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"


def generate_reservation_id() -> str:
    return f"res_{uuid4().hex[:16]}"


@dataclass
class Reservation:
    """
    Entidad principal del dominio - Agregado Raíz.

    Representa un bloque de tiempo reservado de un cast para un cliente.
    Solo se modifica mediante operaciones validadas de creación,
    reprogramación y cancelación.
    """

    # Identificadores
    id: str = field(default_factory=generate_reservation_id)

    # Referencias externas
    customer_id: str = ""
    staff_id: str = ""
    course_id: str = ""

    # Horario [start_time, end_time)
    start_time: datetime | None = None
    end_time: datetime | None = None

    # Estados
    status: ReservationStatus = ReservationStatus.PENDING
    payment_status: ReservationPaymentStatus = ReservationPaymentStatus.UNPAID

    # Financieros
    price: Decimal = Decimal("0")
    currency_code: str = "JPY"

    notes: str | None = None

    # Derivado: start_time - ventana de modificación
    modifiable_until: datetime | None = None

    # Control de concurrencia
    lock_version: int = 0

    # Timestamps
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # === Propiedades calculadas ===

    @property
    def time_range(self) -> TimeRange:
        """Retorna el horario como Value Object."""
        return TimeRange(start=self.start_time, end=self.end_time)

    @property
    def total_price(self) -> Money:
        return Money(amount=self.price, currency_code=self.currency_code)

    @property
    def blocks_schedule(self) -> bool:
        """Verifica si la reserva ocupa el horario del cast."""
        return self.status in BLOCKING_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in (ReservationStatus.CANCELLED, ReservationStatus.COMPLETED)

    def is_modifiable_at(self, now: datetime) -> bool:
        """Verifica si el cliente todavía puede cambiar la reserva."""
        if self.is_terminal:
            return False
        return self.modifiable_until is None or now <= self.modifiable_until

    # === Métodos de negocio ===

    def compute_modifiable_until(
        self, window: timedelta = DEFAULT_MODIFICATION_WINDOW
    ) -> datetime:
        """Recalcula el límite de modificación a partir del inicio."""
        self.modifiable_until = self.time_range.shifted_back(window)
        return self.modifiable_until

    def reschedule(
        self,
        start_time: datetime,
        end_time: datetime,
        window: timedelta = DEFAULT_MODIFICATION_WINDOW,
        staff_id: str | None = None,
    ) -> None:
        """Mueve la reserva a un nuevo horario (y opcionalmente a otro cast)."""
        new_range = TimeRange(start=start_time, end=end_time)
        self.start_time = new_range.start
        self.end_time = new_range.end
        if staff_id:
            self.staff_id = staff_id
        self.compute_modifiable_until(window)
        self.lock_version += 1

    def confirm(self) -> None:
        self.status = ReservationStatus.CONFIRMED
        self.lock_version += 1

    def cancel(self) -> None:
        """Cancela la reserva, liberando el horario del cast."""
        self.status = ReservationStatus.CANCELLED
        self.lock_version += 1

    def mark_paid(self) -> None:
        self.payment_status = ReservationPaymentStatus.PAID
        self.lock_version += 1

    def mark_refunded(self, refunded_total: Decimal, paid_amount: Decimal) -> None:
        self.payment_status = (
            ReservationPaymentStatus.REFUNDED
            if refunded_total >= paid_amount
            else ReservationPaymentStatus.PARTIALLY_REFUNDED
        )
        self.lock_version += 1

    def mark_payment_failed(self) -> None:
        self.payment_status = ReservationPaymentStatus.FAILED
        self.lock_version += 1

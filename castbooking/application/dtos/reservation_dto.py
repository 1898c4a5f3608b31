"""DTOs para reservas."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from castbooking.domain.entities.reservation import Reservation
from castbooking.domain.value_objects.validation_result import ConflictSummary


@dataclass
class CreateReservationData:
    """Datos de entrada para crear una reserva."""

    customer_id: str
    staff_id: str
    course_id: str
    start_time: datetime
    end_time: datetime
    notes: str | None = None
    # None = la estrategia de precios decide
    price: Decimal | None = None


@dataclass
class RescheduleReservationData:
    """Cambio de horario (y opcionalmente de cast) de una reserva existente."""

    start_time: datetime
    end_time: datetime
    staff_id: str | None = None
    notes: str | None = None


@dataclass
class AvailabilityResult:
    """Resultado de consultar disponibilidad de un cast."""

    staff_id: str
    available: bool
    conflicts: list[ConflictSummary] = field(default_factory=list)


@dataclass
class TimeSlot:
    """Hueco libre dentro del horario laboral."""

    start_time: datetime
    end_time: datetime


@dataclass
class CancelReservationResult:
    """Resultado de cancelar una reserva con reembolso."""

    success: bool
    reservation: Reservation | None = None
    refund_amount: Decimal | None = None
    error: str | None = None

"""DTOs para el flujo reserva + pago."""

from dataclasses import dataclass, field
from decimal import Decimal

from castbooking.application.dtos.reservation_dto import CreateReservationData
from castbooking.domain.entities.payment import (
    PaymentIntent,
    PaymentMethod,
    PaymentProviderName,
    PaymentTransaction,
)
from castbooking.domain.entities.reservation import Reservation
from castbooking.domain.value_objects.validation_result import ConflictSummary


@dataclass
class CreateReservationWithPaymentData(CreateReservationData):
    """Reserva + datos de cobro. Si ``amount`` es None se cobra el precio de la reserva."""

    amount: Decimal | None = None
    payment_method: str = PaymentMethod.CARD.value
    payment_provider: str = PaymentProviderName.STRIPE.value


@dataclass
class ReservationWithPaymentResult:
    success: bool
    reservation: Reservation | None = None
    transaction: PaymentTransaction | None = None
    payment_intent: PaymentIntent | None = None
    error: str | None = None
    conflicts: list[ConflictSummary] = field(default_factory=list)


@dataclass
class ReservationWithPayments:
    reservation: Reservation
    payments: list[PaymentTransaction] = field(default_factory=list)

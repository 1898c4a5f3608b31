"""Entidades del dominio de reservas."""

from castbooking.domain.entities.outbox_event import OutboxEvent, OutboxEventType, OutboxStatus
from castbooking.domain.entities.payment import (
    PaymentIntent,
    PaymentMethod,
    PaymentProviderName,
    PaymentTransaction,
    PaymentTransactionStatus,
    ProcessPaymentRequest,
    ProcessPaymentResult,
    RefundRequest,
    RefundResult,
)
from castbooking.domain.entities.references import Course, Customer, Staff
from castbooking.domain.entities.reservation import (
    BLOCKING_STATUSES,
    Reservation,
    ReservationPaymentStatus,
    ReservationStatus,
    generate_reservation_id,
)

__all__ = [
    # Reservation
    "Reservation",
    "ReservationStatus",
    "ReservationPaymentStatus",
    "BLOCKING_STATUSES",
    "generate_reservation_id",
    # References
    "Customer",
    "Staff",
    "Course",
    # Payment
    "PaymentIntent",
    "PaymentMethod",
    "PaymentProviderName",
    "PaymentTransaction",
    "PaymentTransactionStatus",
    "ProcessPaymentRequest",
    "ProcessPaymentResult",
    "RefundRequest",
    "RefundResult",
    # OutboxEvent
    "OutboxEvent",
    "OutboxEventType",
    "OutboxStatus",
]

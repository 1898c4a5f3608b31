"""
Capa de Dominio - Reservas de casts.

Esta capa contiene la lógica de negocio pura, sin dependencias de frameworks.
Incluye entidades, value objects y excepciones de dominio.

Estructura:
- entities/: Entidades del dominio (Reservation, PaymentTransaction, etc.)
- value_objects/: Objetos de valor inmutables (TimeRange, Money, ValidationResult)
- errors.py: Excepciones específicas del dominio
"""

from castbooking.domain.entities import (
    BLOCKING_STATUSES,
    Course,
    Customer,
    OutboxEvent,
    OutboxEventType,
    OutboxStatus,
    PaymentIntent,
    PaymentTransaction,
    PaymentTransactionStatus,
    Reservation,
    ReservationPaymentStatus,
    ReservationStatus,
    Staff,
)
from castbooking.domain.errors import (
    AvailabilityCheckUnavailableError,
    CustomerNotFoundError,
    DomainError,
    InvalidReservationStatusError,
    InvalidTimeRangeError,
    PaymentError,
    PaymentIntentNotFoundError,
    PaymentProviderNotFoundError,
    PaymentTransactionNotFoundError,
    PaymentValidationError,
    ReservationConcurrencyError,
    ReservationConflictError,
    ReservationNotFoundError,
    ReservationNotModifiableError,
    ReservationValidationError,
    StaffNotFoundError,
)
from castbooking.domain.value_objects import (
    CONFLICT_ERROR,
    ConflictSummary,
    Money,
    TimeRange,
    ValidationResult,
    intervals_overlap,
)

__all__ = [
    # Entities
    "Reservation",
    "ReservationStatus",
    "ReservationPaymentStatus",
    "BLOCKING_STATUSES",
    "Customer",
    "Staff",
    "Course",
    "PaymentIntent",
    "PaymentTransaction",
    "PaymentTransactionStatus",
    "OutboxEvent",
    "OutboxEventType",
    "OutboxStatus",
    # Value Objects
    "CONFLICT_ERROR",
    "ConflictSummary",
    "Money",
    "TimeRange",
    "ValidationResult",
    "intervals_overlap",
    # Errors
    "DomainError",
    "CustomerNotFoundError",
    "StaffNotFoundError",
    "ReservationNotFoundError",
    "ReservationValidationError",
    "ReservationConflictError",
    "ReservationConcurrencyError",
    "ReservationNotModifiableError",
    "InvalidReservationStatusError",
    "InvalidTimeRangeError",
    "AvailabilityCheckUnavailableError",
    "PaymentError",
    "PaymentValidationError",
    "PaymentProviderNotFoundError",
    "PaymentIntentNotFoundError",
    "PaymentTransactionNotFoundError",
]

"""DTOs (Data Transfer Objects) de la capa de aplicación."""

from castbooking.application.dtos.payment_dto import (
    CreateReservationWithPaymentData,
    ReservationWithPaymentResult,
    ReservationWithPayments,
)
from castbooking.application.dtos.reservation_dto import (
    AvailabilityResult,
    CancelReservationResult,
    CreateReservationData,
    RescheduleReservationData,
    TimeSlot,
)

__all__ = [
    # Reservation DTOs
    "CreateReservationData",
    "RescheduleReservationData",
    "AvailabilityResult",
    "TimeSlot",
    "CancelReservationResult",
    # Payment DTOs
    "CreateReservationWithPaymentData",
    "ReservationWithPaymentResult",
    "ReservationWithPayments",
]

"""Puertos (interfaces) de la capa de aplicación."""

from castbooking.application.interfaces.clock import Clock, FakeClock, SystemClock
from castbooking.application.interfaces.notification_dispatcher import (
    NotificationDispatcher,
    NotificationSender,
    ReservationCancellationData,
    ReservationConfirmationData,
)
from castbooking.application.interfaces.outbox_repo import OutboxRepo
from castbooking.application.interfaces.payment_gateway import PaymentGateway
from castbooking.application.interfaces.payment_provider import PaymentProvider
from castbooking.application.interfaces.payment_repo import PaymentRepo
from castbooking.application.interfaces.pricing import PricingStrategy
from castbooking.application.interfaces.reference_repos import CourseRepo, CustomerRepo, StaffRepo
from castbooking.application.interfaces.reservation_repo import ReservationRepo
from castbooking.application.interfaces.transaction_manager import TransactionManager

__all__ = [
    "Clock",
    "SystemClock",
    "FakeClock",
    "CustomerRepo",
    "StaffRepo",
    "CourseRepo",
    "ReservationRepo",
    "PaymentRepo",
    "PaymentProvider",
    "PaymentGateway",
    "PricingStrategy",
    "OutboxRepo",
    "NotificationDispatcher",
    "NotificationSender",
    "ReservationConfirmationData",
    "ReservationCancellationData",
    "TransactionManager",
]

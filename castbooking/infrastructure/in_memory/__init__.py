"""Implementaciones in-memory para desarrollo y testing."""

from castbooking.infrastructure.in_memory.outbox_repo import InMemoryOutboxRepo
from castbooking.infrastructure.in_memory.payment_repo import InMemoryPaymentRepo
from castbooking.infrastructure.in_memory.reference_repos import (
    InMemoryCourseRepo,
    InMemoryCustomerRepo,
    InMemoryStaffRepo,
)
from castbooking.infrastructure.in_memory.reservation_repo import InMemoryReservationRepo
from castbooking.infrastructure.in_memory.transaction_manager import InMemoryTransactionManager

__all__ = [
    # Repositories
    "InMemoryReservationRepo",
    "InMemoryCustomerRepo",
    "InMemoryStaffRepo",
    "InMemoryCourseRepo",
    "InMemoryPaymentRepo",
    "InMemoryOutboxRepo",
    # Infrastructure
    "InMemoryTransactionManager",
]

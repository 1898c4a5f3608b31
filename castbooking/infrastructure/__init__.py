"""
Capa de Infraestructura - Reservas de casts.

Esta capa contiene las implementaciones concretas de los puertos (interfaces).
Incluye adaptadores para bases de datos, proveedores de pago y notificaciones.

Estructura:
- db/: Repositorios SQL y configuración de base de datos
- payments/: Proveedores de pago (Stripe, manual) y servicio de pagos
- notifications/: Dispatcher al outbox y senders de notificaciones
- in_memory/: Implementaciones in-memory para desarrollo y testing
- messaging/: Worker del outbox
- services/: Servicios de infraestructura (pricing)
"""

# Database
from castbooking.infrastructure.db.repositories.outbox_repo_sql import OutboxRepoSQL
from castbooking.infrastructure.db.repositories.payment_repo_sql import PaymentRepoSQL
from castbooking.infrastructure.db.repositories.reference_repo_sql import (
    CourseRepoSQL,
    CustomerRepoSQL,
    StaffRepoSQL,
)
from castbooking.infrastructure.db.repositories.reservation_repo_sql import ReservationRepoSQL
from castbooking.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager

# In-Memory (for testing)
from castbooking.infrastructure.in_memory import (
    InMemoryCourseRepo,
    InMemoryCustomerRepo,
    InMemoryOutboxRepo,
    InMemoryPaymentRepo,
    InMemoryReservationRepo,
    InMemoryStaffRepo,
    InMemoryTransactionManager,
)

# Messaging
from castbooking.infrastructure.messaging.outbox_worker import NotificationOutboxWorker

# Payments
from castbooking.infrastructure.payments.manual_provider import ManualPaymentProvider
from castbooking.infrastructure.payments.payment_service import PaymentService
from castbooking.infrastructure.payments.stripe_provider import StripePaymentProvider

# Services
from castbooking.infrastructure.services.pricing import CoursePricingStrategy

__all__ = [
    # Database - Repositories SQL
    "ReservationRepoSQL",
    "CustomerRepoSQL",
    "StaffRepoSQL",
    "CourseRepoSQL",
    "PaymentRepoSQL",
    "OutboxRepoSQL",
    "SQLAlchemyTransactionManager",
    # In-Memory Implementations
    "InMemoryReservationRepo",
    "InMemoryCustomerRepo",
    "InMemoryStaffRepo",
    "InMemoryCourseRepo",
    "InMemoryPaymentRepo",
    "InMemoryOutboxRepo",
    "InMemoryTransactionManager",
    # Messaging
    "NotificationOutboxWorker",
    # Payments
    "PaymentService",
    "StripePaymentProvider",
    "ManualPaymentProvider",
    # Services
    "CoursePricingStrategy",
]

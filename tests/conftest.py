"""
Pytest configuration and shared fixtures.

Este módulo provee fixtures reutilizables para:
- Reloj fijo y stack in-memory completo (repos, casos de uso, outbox)
- Base de datos SQLite temporal (aiosqlite) para tests de integración
- Cliente HTTP de prueba (FastAPI TestClient) sobre el modo in-memory
- Datos de prueba (clientes, casts, cursos)
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from castbooking.application.interfaces.clock import FakeClock
from castbooking.application.use_cases.cancel_reservation import CancelReservationUseCase
from castbooking.application.use_cases.check_availability import CheckAvailabilityUseCase
from castbooking.application.use_cases.conflict_gateway import ConflictGateway
from castbooking.application.use_cases.create_reservation import CreateReservationUseCase
from castbooking.application.use_cases.reschedule_reservation import RescheduleReservationUseCase
from castbooking.application.use_cases.reservation_notifier import ReservationNotifier
from castbooking.application.use_cases.reservation_payment import ReservationPaymentService
from castbooking.application.use_cases.validate_reservation import ReservationValidator
from castbooking.domain.entities.payment import PaymentProviderName
from castbooking.domain.entities.references import Course, Customer, Staff
from castbooking.infrastructure.circuit_breaker import stripe_breaker
from castbooking.infrastructure.db.tables import metadata
from castbooking.infrastructure.in_memory import (
    InMemoryCourseRepo,
    InMemoryCustomerRepo,
    InMemoryOutboxRepo,
    InMemoryPaymentRepo,
    InMemoryReservationRepo,
    InMemoryStaffRepo,
    InMemoryTransactionManager,
)
from castbooking.infrastructure.in_memory.payment_provider import StubCardPaymentProvider
from castbooking.infrastructure.notifications.outbox_dispatcher import OutboxNotificationDispatcher
from castbooking.infrastructure.payments.manual_provider import ManualPaymentProvider
from castbooking.infrastructure.payments.payment_service import PaymentService
from castbooking.infrastructure.services.pricing import CoursePricingStrategy

# ============================================================================
# DATOS DE PRUEBA
# ============================================================================

NOW = datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)
SLOT_START = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
SLOT_END = SLOT_START + timedelta(hours=1)

CUSTOMER = Customer(id="cust-1", name="Hanako Sato", email="hanako@example.com", phone="090-0000-0000")
STAFF_YUI = Staff(id="cast-1", name="Yui", location="Shibuya")
STAFF_MIO = Staff(id="cast-2", name="Mio")
COURSE = Course(id="course-60", name="Standard 60", duration_minutes=60, price=Decimal("8000"))


def seed_references(customer_repo, staff_repo, course_repo) -> None:
    customer_repo.add(CUSTOMER)
    staff_repo.add(STAFF_YUI)
    staff_repo.add(STAFF_MIO)
    course_repo.add(COURSE)


def build_stack(clock: FakeClock, failure_mode: str = "open") -> SimpleNamespace:
    """Wires every use case over in-memory adapters, the way the API does."""
    tx = InMemoryTransactionManager()
    stack = SimpleNamespace(
        clock=clock,
        tx=tx,
        reservations=InMemoryReservationRepo(tx),
        customers=InMemoryCustomerRepo(),
        staff=InMemoryStaffRepo(),
        courses=InMemoryCourseRepo(),
        payments_repo=InMemoryPaymentRepo(),
        outbox=InMemoryOutboxRepo(),
        card_provider=StubCardPaymentProvider(),
    )
    seed_references(stack.customers, stack.staff, stack.courses)

    stack.conflict_gateway = ConflictGateway(stack.reservations, failure_mode=failure_mode)
    stack.validator = ReservationValidator(stack.customers, stack.staff, stack.conflict_gateway)
    stack.notifier = ReservationNotifier(
        customer_repo=stack.customers,
        staff_repo=stack.staff,
        course_repo=stack.courses,
        dispatcher=OutboxNotificationDispatcher(stack.outbox, tx),
        location="Ginza Store",
        timezone_name="Asia/Tokyo",
    )
    stack.payment_service = PaymentService(
        providers={
            PaymentProviderName.STRIPE.value: stack.card_provider,
            PaymentProviderName.MANUAL.value: ManualPaymentProvider(),
        },
        payment_repo=stack.payments_repo,
        transaction_manager=tx,
        clock=clock,
        currency="jpy",
    )
    stack.create = CreateReservationUseCase(
        reservation_repo=stack.reservations,
        validator=stack.validator,
        pricing=CoursePricingStrategy(stack.courses),
        transaction_manager=tx,
        notifier=stack.notifier,
        clock=clock,
    )
    stack.reschedule = RescheduleReservationUseCase(
        reservation_repo=stack.reservations,
        validator=stack.validator,
        transaction_manager=tx,
        clock=clock,
    )
    stack.cancel = CancelReservationUseCase(
        reservation_repo=stack.reservations,
        transaction_manager=tx,
        notifier=stack.notifier,
        clock=clock,
    )
    stack.availability = CheckAvailabilityUseCase(
        conflict_gateway=stack.conflict_gateway,
        reservation_repo=stack.reservations,
        staff_repo=stack.staff,
        working_hours_start="09:00",
        working_hours_end="18:00",
        timezone_name="UTC",
    )
    stack.reservation_payments = ReservationPaymentService(
        create_reservation=stack.create,
        reservation_repo=stack.reservations,
        payments=stack.payment_service,
        notifier=stack.notifier,
        transaction_manager=tx,
        clock=clock,
    )
    return stack


# ============================================================================
# FIXTURES DE DOMINIO / CASOS DE USO
# ============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def stack(clock: FakeClock) -> SimpleNamespace:
    return build_stack(clock)


# ============================================================================
# FIXTURES DE BASE DE DATOS
# ============================================================================

@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """SQLite en archivo temporal: varias sesiones ven los mismos datos."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


# ============================================================================
# FIXTURES DE CLIENTE HTTP
# ============================================================================

@pytest.fixture
def api_bundle():
    """Bundle in-memory de la API, limpio y con datos de referencia."""
    from castbooking.api.dependencies import _in_memory_bundle

    _in_memory_bundle.cache_clear()
    bundle = _in_memory_bundle()
    seed_references(bundle["customer_repo"], bundle["staff_repo"], bundle["course_repo"])
    yield bundle
    _in_memory_bundle.cache_clear()


@pytest.fixture
def client(api_bundle) -> Generator[TestClient, None, None]:
    from castbooking.main import app

    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# HOOKS DE PYTEST
# ============================================================================

@pytest.fixture(autouse=True)
def reset_circuit_breakers():
    """
    Reset circuit breakers antes de cada test.
    Evita que tests fallen por breakers abiertos de tests anteriores.
    """
    stripe_breaker.close()
    yield
    stripe_breaker.close()

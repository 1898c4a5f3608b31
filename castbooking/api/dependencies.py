import logging
from datetime import timedelta
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from castbooking.api.deps import AsyncSessionLocal
from castbooking.application.interfaces.clock import SystemClock
from castbooking.application.interfaces.notification_dispatcher import NotificationSender
from castbooking.application.interfaces.payment_provider import PaymentProvider
from castbooking.application.interfaces.payment_webhook import PaymentWebhookParser
from castbooking.application.use_cases.cancel_reservation import CancelReservationUseCase
from castbooking.application.use_cases.check_availability import CheckAvailabilityUseCase
from castbooking.application.use_cases.conflict_gateway import ConflictGateway
from castbooking.application.use_cases.create_reservation import CreateReservationUseCase, run_once
from castbooking.application.use_cases.get_reservation import GetReservationUseCase
from castbooking.application.use_cases.handle_payment_webhook import HandleStripeWebhookUseCase
from castbooking.application.use_cases.list_reservations import ListReservationsUseCase
from castbooking.application.use_cases.process_notifications import (
    NOTIFICATION_EVENT_TYPES,
    DeliverNotificationUseCase,
)
from castbooking.application.use_cases.reschedule_reservation import RescheduleReservationUseCase
from castbooking.application.use_cases.reservation_notifier import ReservationNotifier
from castbooking.application.use_cases.reservation_payment import ReservationPaymentService
from castbooking.application.use_cases.validate_reservation import ReservationValidator
from castbooking.config import Settings, get_settings
from castbooking.domain.entities.payment import PaymentProviderName
from castbooking.infrastructure.db.repositories.outbox_repo_sql import OutboxRepoSQL
from castbooking.infrastructure.db.repositories.payment_repo_sql import PaymentRepoSQL
from castbooking.infrastructure.db.repositories.reference_repo_sql import (
    CourseRepoSQL,
    CustomerRepoSQL,
    StaffRepoSQL,
)
from castbooking.infrastructure.db.repositories.reservation_repo_sql import ReservationRepoSQL
from castbooking.infrastructure.db.retry import retry_on_deadlock
from castbooking.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager
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
from castbooking.infrastructure.in_memory.payment_webhook import UnsignedWebhookParser
from castbooking.infrastructure.messaging.outbox_worker import NotificationOutboxWorker
from castbooking.infrastructure.notifications.outbox_dispatcher import OutboxNotificationDispatcher
from castbooking.infrastructure.notifications.senders import (
    LoggingNotificationSender,
    WebhookNotificationSender,
)
from castbooking.infrastructure.payments.manual_provider import ManualPaymentProvider
from castbooking.infrastructure.payments.payment_service import PaymentService
from castbooking.infrastructure.payments.stripe_provider import StripePaymentProvider
from castbooking.infrastructure.payments.stripe_webhook import StripeWebhookParser
from castbooking.infrastructure.services.pricing import CoursePricingStrategy

logger = logging.getLogger(__name__)


async def get_session(settings: Settings = Depends(get_settings)) -> AsyncSession | None:
    if settings.use_in_memory:
        yield None
        return
    async with AsyncSessionLocal() as session:
        yield session


def _card_provider(settings: Settings) -> PaymentProvider:
    if settings.stripe_api_key:
        return StripePaymentProvider(
            api_key=settings.stripe_api_key,
            timeout_seconds=settings.stripe_timeout_seconds,
        )
    logger.warning("STRIPE_SECRET_KEY not set, card payments use the stub provider")
    return StubCardPaymentProvider()


def _webhook_parser(settings: Settings) -> PaymentWebhookParser | None:
    if settings.stripe_webhook_secret:
        return StripeWebhookParser(settings.stripe_webhook_secret)
    if not settings.stripe_api_key:
        logger.warning("STRIPE_WEBHOOK_SECRET not set, accepting unsigned webhook events")
        return UnsignedWebhookParser()
    # A live Stripe key never accepts unsigned events
    logger.error("STRIPE_WEBHOOK_SECRET not set, Stripe webhooks are rejected")
    return None


def _notification_sender(settings: Settings) -> NotificationSender:
    if settings.notification_webhook_url:
        return WebhookNotificationSender(
            url=settings.notification_webhook_url,
            timeout_seconds=settings.notification_timeout_seconds,
        )
    return LoggingNotificationSender()


@lru_cache(maxsize=1)
def _in_memory_bundle():
    settings = get_settings()
    tx_manager = InMemoryTransactionManager()
    return {
        "reservation_repo": InMemoryReservationRepo(tx_manager),
        "customer_repo": InMemoryCustomerRepo(),
        "staff_repo": InMemoryStaffRepo(),
        "course_repo": InMemoryCourseRepo(),
        "payment_repo": InMemoryPaymentRepo(),
        "outbox_repo": InMemoryOutboxRepo(),
        "tx_manager": tx_manager,
        "providers": {
            PaymentProviderName.STRIPE.value: _card_provider(settings),
            PaymentProviderName.MANUAL.value: ManualPaymentProvider(),
        },
        "sender": _notification_sender(settings),
        "webhook_parser": _webhook_parser(settings),
        "clock": SystemClock(),
    }


def _build_use_cases(settings: Settings, bundle: dict, retry_policy=run_once) -> dict:
    clock = bundle["clock"]
    tx_manager = bundle["tx_manager"]
    reservation_repo = bundle["reservation_repo"]
    modification_window = timedelta(hours=settings.modification_window_hours)

    conflict_gateway = ConflictGateway(
        reservation_repo, failure_mode=settings.conflict_check_failure_mode
    )
    validator = ReservationValidator(
        customer_repo=bundle["customer_repo"],
        staff_repo=bundle["staff_repo"],
        conflict_gateway=conflict_gateway,
    )
    notifier = ReservationNotifier(
        customer_repo=bundle["customer_repo"],
        staff_repo=bundle["staff_repo"],
        course_repo=bundle["course_repo"],
        dispatcher=OutboxNotificationDispatcher(bundle["outbox_repo"], tx_manager),
        location=settings.store_location,
        timezone_name=settings.business_timezone,
    )
    payments = PaymentService(
        providers=bundle["providers"],
        payment_repo=bundle["payment_repo"],
        transaction_manager=tx_manager,
        clock=clock,
        currency=settings.currency,
    )
    create_reservation = CreateReservationUseCase(
        reservation_repo=reservation_repo,
        validator=validator,
        pricing=CoursePricingStrategy(bundle["course_repo"]),
        transaction_manager=tx_manager,
        notifier=notifier,
        clock=clock,
        modification_window=modification_window,
        retry_policy=retry_policy,
    )

    worker = NotificationOutboxWorker(
        outbox_repo=bundle["outbox_repo"],
        transaction_manager=tx_manager,
        clock=clock,
        batch_size=settings.outbox_batch_size,
        max_retries=settings.outbox_max_retries,
    )
    deliver = DeliverNotificationUseCase(bundle["sender"])
    for event_type in NOTIFICATION_EVENT_TYPES:
        worker.register_handler(event_type, deliver)

    reservation_payments = ReservationPaymentService(
        create_reservation=create_reservation,
        reservation_repo=reservation_repo,
        payments=payments,
        notifier=notifier,
        transaction_manager=tx_manager,
        clock=clock,
    )

    return {
        "create_reservation": create_reservation,
        "get_reservation": GetReservationUseCase(reservation_repo),
        "list_reservations": ListReservationsUseCase(
            reservation_repo, timezone_name=settings.business_timezone
        ),
        "reschedule_reservation": RescheduleReservationUseCase(
            reservation_repo=reservation_repo,
            validator=validator,
            transaction_manager=tx_manager,
            clock=clock,
            modification_window=modification_window,
            retry_policy=retry_policy,
        ),
        "cancel_reservation": CancelReservationUseCase(
            reservation_repo=reservation_repo,
            transaction_manager=tx_manager,
            notifier=notifier,
            clock=clock,
        ),
        "check_availability": CheckAvailabilityUseCase(
            conflict_gateway=conflict_gateway,
            reservation_repo=reservation_repo,
            staff_repo=bundle["staff_repo"],
            working_hours_start=settings.working_hours_start,
            working_hours_end=settings.working_hours_end,
            timezone_name=settings.business_timezone,
        ),
        "reservation_payments": reservation_payments,
        "handle_payment_webhook": HandleStripeWebhookUseCase(
            payments=payments,
            reservation_payments=reservation_payments,
            parser=bundle["webhook_parser"],
        ),
        "notification_worker": worker,
    }


def get_use_cases(
    settings: Settings = Depends(get_settings),
    session: AsyncSession | None = Depends(get_session),
):
    if settings.use_in_memory:
        return _build_use_cases(settings, _in_memory_bundle())

    if not session:
        raise RuntimeError("DB session not available")

    bundle = {
        "reservation_repo": ReservationRepoSQL(session),
        "customer_repo": CustomerRepoSQL(AsyncSessionLocal),
        "staff_repo": StaffRepoSQL(AsyncSessionLocal),
        "course_repo": CourseRepoSQL(AsyncSessionLocal),
        "payment_repo": PaymentRepoSQL(session),
        "outbox_repo": OutboxRepoSQL(session),
        "tx_manager": SQLAlchemyTransactionManager(session),
        "providers": {
            PaymentProviderName.STRIPE.value: _card_provider(settings),
            PaymentProviderName.MANUAL.value: ManualPaymentProvider(),
        },
        "sender": _notification_sender(settings),
        "webhook_parser": _webhook_parser(settings),
        "clock": SystemClock(),
    }
    return _build_use_cases(settings, bundle, retry_policy=retry_on_deadlock)

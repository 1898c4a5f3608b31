import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from castbooking.api.deps import engine
from castbooking.api.routers.availability import router as availability_router
from castbooking.api.routers.health import router as health_router
from castbooking.api.routers.payments import router as payments_router
from castbooking.api.routers.reservations import router as reservations_router
from castbooking.api.routers.worker import router as worker_router
from castbooking.api.schemas.reservations import ConflictResponse
from castbooking.config import get_settings
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
    PaymentWebhookError,
    ReservationConcurrencyError,
    ReservationConflictError,
    ReservationNotFoundError,
    ReservationNotModifiableError,
    ReservationValidationError,
    StaffNotFoundError,
)
from castbooking.infrastructure.db.tables import metadata

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ReservationValidationError: status.HTTP_400_BAD_REQUEST,
    CustomerNotFoundError: status.HTTP_400_BAD_REQUEST,
    InvalidTimeRangeError: status.HTTP_400_BAD_REQUEST,
    ReservationNotModifiableError: status.HTTP_400_BAD_REQUEST,
    InvalidReservationStatusError: status.HTTP_400_BAD_REQUEST,
    PaymentValidationError: status.HTTP_400_BAD_REQUEST,
    PaymentWebhookError: status.HTTP_400_BAD_REQUEST,
    PaymentProviderNotFoundError: status.HTTP_400_BAD_REQUEST,
    PaymentError: status.HTTP_402_PAYMENT_REQUIRED,
    ReservationNotFoundError: status.HTTP_404_NOT_FOUND,
    StaffNotFoundError: status.HTTP_404_NOT_FOUND,
    PaymentIntentNotFoundError: status.HTTP_404_NOT_FOUND,
    PaymentTransactionNotFoundError: status.HTTP_404_NOT_FOUND,
    ReservationConcurrencyError: status.HTTP_409_CONFLICT,
    AvailabilityCheckUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    # Initialize DB tables (for dev/demo purposes)
    if not settings.use_in_memory:
        async with engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
    yield
    # Cleanup
    await engine.dispose()


app = FastAPI(
    title="Cast Reservations API",
    version="0.1.0",
    lifespan=lifespan
)


async def domain_error_handler(request: Request, exc: DomainError):
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    content = {"error": exc.message, "code": exc.code}
    if isinstance(exc, ReservationValidationError):
        content["errors"] = exc.errors
    logger.warning(
        "Request rejected",
        extra={"path": request.url.path, "code": exc.code, "status_code": status_code},
    )
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(ReservationConflictError)
async def reservation_conflict_handler(request: Request, exc: ReservationConflictError):
    logger.info(
        "Reservation conflict",
        extra={"path": request.url.path, "conflicts": len(exc.conflicts)},
    )
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "error": exc.message,
            "code": exc.code,
            "conflicts": [
                ConflictResponse.from_summary(c).model_dump(mode="json", by_alias=True)
                for c in exc.conflicts
            ],
        },
    )


app.add_exception_handler(DomainError, domain_error_handler)


# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler to prevent stack trace exposure to clients.
    All unhandled exceptions are logged internally and return a generic error message.
    """
    error_id = str(uuid.uuid4())

    logger.error(
        "Unhandled exception occurred",
        exc_info=exc,
        extra={
            "error_id": error_id,
            "path": request.url.path,
            "method": request.method,
            "client_host": request.client.host if request.client else None,
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "message": "An unexpected error occurred. Please contact support with the error_id if the issue persists."
        }
    )


app.include_router(health_router, tags=["Health"])
app.include_router(reservations_router, prefix="/api/v1", tags=["Reservations"])
app.include_router(payments_router, prefix="/api/v1", tags=["Payments"])
app.include_router(availability_router, prefix="/api/v1", tags=["Availability"])
app.include_router(worker_router, prefix="/api/v1", tags=["Worker"])

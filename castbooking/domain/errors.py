"""Excepciones de dominio para el sistema de reservas de casts."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from castbooking.domain.value_objects.validation_result import ConflictSummary


class DomainError(Exception):
    """Clase base para todos los errores de dominio."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


# === Errores de referencias externas ===


class CustomerNotFoundError(DomainError):
    """El cliente referenciado no existe."""

    def __init__(self, customer_id: str):
        super().__init__(message="Customer not found", code="CUSTOMER_NOT_FOUND")
        self.customer_id = customer_id


class StaffNotFoundError(DomainError):
    """El cast referenciado no existe."""

    def __init__(self, staff_id: str):
        super().__init__(message="Staff not found", code="STAFF_NOT_FOUND")
        self.staff_id = staff_id


# === Errores de Reserva ===


class ReservationNotFoundError(DomainError):
    """La reserva no existe."""

    def __init__(self, reservation_id: str):
        super().__init__(
            message=f"Reservation not found: {reservation_id}",
            code="RESERVATION_NOT_FOUND",
        )
        self.reservation_id = reservation_id


class ReservationValidationError(DomainError):
    """
    La validación de la reserva falló.

    El mensaje une todos los errores reportados por el validador.
    """

    def __init__(self, errors: list[str], code: str = "RESERVATION_INVALID"):
        super().__init__(message="; ".join(errors), code=code)
        self.errors = list(errors)


class ReservationConflictError(ReservationValidationError):
    """El horario solicitado se superpone con reservas existentes del cast."""

    def __init__(self, errors: list[str], conflicts: list["ConflictSummary"]):
        super().__init__(errors=errors, code="RESERVATION_CONFLICT")
        self.conflicts = list(conflicts)


class ReservationNotModifiableError(DomainError):
    """La ventana de modificación de la reserva ya cerró."""

    def __init__(self, reservation_id: str, modifiable_until: str | None):
        super().__init__(
            message=f"Reservation {reservation_id} can no longer be modified "
            f"(modifiable until {modifiable_until})",
            code="RESERVATION_NOT_MODIFIABLE",
        )
        self.reservation_id = reservation_id
        self.modifiable_until = modifiable_until


class ReservationConcurrencyError(DomainError):
    """Otra operación modificó la reserva al mismo tiempo (lock optimista)."""

    def __init__(self, reservation_id: str):
        super().__init__(
            message=f"Reservation {reservation_id} was modified concurrently",
            code="RESERVATION_CONCURRENT_MODIFICATION",
        )
        self.reservation_id = reservation_id


class InvalidReservationStatusError(DomainError):
    """El estado de la reserva no permite la operación."""

    def __init__(self, current_status: str, expected_status: str | list[str], operation: str):
        expected = expected_status if isinstance(expected_status, str) else ", ".join(expected_status)
        super().__init__(
            message=f"Cannot {operation}: current status '{current_status}', expected '{expected}'",
            code="INVALID_RESERVATION_STATUS",
        )
        self.current_status = current_status
        self.expected_status = expected_status
        self.operation = operation


class InvalidTimeRangeError(DomainError):
    """Rango horario inválido (inicio debe ser anterior al fin)."""

    def __init__(self, message: str):
        super().__init__(message=message, code="INVALID_TIME_RANGE")


# === Errores de infraestructura ===


class AvailabilityCheckUnavailableError(DomainError):
    """No se pudo consultar la disponibilidad del cast (modo fail-closed)."""

    def __init__(self, staff_id: str):
        super().__init__(
            message=f"Availability check unavailable for staff {staff_id}",
            code="AVAILABILITY_CHECK_UNAVAILABLE",
        )
        self.staff_id = staff_id


# === Errores de Pago ===


class PaymentError(DomainError):
    """El proveedor de pagos rechazó o no pudo procesar el cobro."""

    def __init__(self, reason: str):
        super().__init__(message=f"Payment failed: {reason}", code="PAYMENT_FAILED")
        self.reason = reason


class PaymentValidationError(DomainError):
    """La solicitud de pago no es válida."""

    def __init__(self, errors: list[str]):
        super().__init__(
            message=f"Payment validation failed: {', '.join(errors)}",
            code="PAYMENT_VALIDATION_ERROR",
        )
        self.errors = list(errors)


class PaymentProviderNotFoundError(DomainError):
    """El proveedor de pagos no está configurado."""

    def __init__(self, provider: str):
        super().__init__(
            message=f"Payment provider not configured: {provider}",
            code="PAYMENT_PROVIDER_NOT_FOUND",
        )
        self.provider = provider


class PaymentIntentNotFoundError(DomainError):
    """El payment intent no existe."""

    def __init__(self, intent_id: str):
        super().__init__(
            message=f"Payment intent {intent_id} not found",
            code="PAYMENT_INTENT_NOT_FOUND",
        )
        self.intent_id = intent_id


class PaymentTransactionNotFoundError(DomainError):
    """La transacción de pago no existe."""

    def __init__(self, transaction_id: str):
        super().__init__(
            message=f"Transaction {transaction_id} not found",
            code="PAYMENT_TRANSACTION_NOT_FOUND",
        )
        self.transaction_id = transaction_id


class PaymentWebhookError(DomainError):
    """El evento enviado por el proveedor de pagos no es válido."""

    def __init__(self, reason: str):
        super().__init__(message=reason, code="INVALID_PAYMENT_WEBHOOK")
        self.reason = reason

"""Entidades de pago - transacciones e intents del colaborador de pagos."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any


class PaymentTransactionStatus(str, Enum):
    """Estados posibles de una transacción de pago."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    """Métodos de pago aceptados."""

    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"


class PaymentProviderName(str, Enum):
    """Proveedores de pago soportados."""

    STRIPE = "stripe"
    MANUAL = "manual"


@dataclass
class ProcessPaymentRequest:
    """Solicitud de cobro para una reserva."""

    reservation_id: str
    customer_id: str
    amount: Decimal
    currency: str
    payment_method: str
    provider: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class PaymentTransaction:
    """
    Transacción de pago registrada por el colaborador de pagos.

    El núcleo solo usa id, status, amount y refund_amount para decidir
    la compensación.
    """

    id: str
    reservation_id: str
    customer_id: str
    amount: Decimal
    currency: str
    provider: str
    payment_method: str
    status: PaymentTransactionStatus
    payment_intent_id: str | None = None
    provider_payment_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    error_message: str | None = None
    processed_at: datetime | None = None
    refunded_at: datetime | None = None
    refund_amount: Decimal | None = None
    created_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == PaymentTransactionStatus.COMPLETED

    @property
    def refundable_amount(self) -> Decimal:
        """Monto que todavía puede reembolsarse."""
        return self.amount - (self.refund_amount or Decimal("0"))


@dataclass
class PaymentIntent:
    """Pago preparado en el proveedor, pendiente de confirmación del cliente."""

    id: str
    provider_id: str
    provider: str
    amount: Decimal
    currency: str
    status: PaymentTransactionStatus
    payment_method: str
    reservation_id: str | None = None
    customer_id: str | None = None
    client_secret: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    error_message: str | None = None
    created_at: datetime | None = None


@dataclass
class ProcessPaymentResult:
    success: bool
    transaction: PaymentTransaction | None = None
    error: str | None = None


@dataclass
class RefundRequest:
    transaction_id: str
    amount: Decimal
    reason: str = "reservation_cancelled"
    provider_payment_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class RefundResult:
    success: bool
    refund_amount: Decimal = Decimal("0")
    transaction: PaymentTransaction | None = None
    error: str | None = None

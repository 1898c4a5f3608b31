from datetime import date as date_type
from datetime import datetime
from typing import Any
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, condecimal
from pydantic.alias_generators import to_camel

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
from castbooking.domain.entities.payment import (
    PaymentIntent,
    PaymentMethod,
    PaymentProviderName,
    PaymentTransaction,
)
from castbooking.domain.entities.reservation import Reservation
from castbooking.domain.value_objects.validation_result import ConflictSummary

Money = condecimal(max_digits=12, decimal_places=2, ge=0)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_encoders={Decimal: lambda v: format(v, "f")},
    )


# === Requests ===


class CreateReservationRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    customer_id: str
    staff_id: str
    service_id: str
    start_time: datetime
    end_time: datetime
    notes: str | None = None
    price: Money | None = None

    def to_data(self) -> CreateReservationData:
        return CreateReservationData(
            customer_id=self.customer_id,
            staff_id=self.staff_id,
            course_id=self.service_id,
            start_time=self.start_time,
            end_time=self.end_time,
            notes=self.notes,
            price=self.price,
        )


class CreateReservationWithPaymentRequest(CreateReservationRequest):
    amount: Money | None = None
    payment_method: PaymentMethod = PaymentMethod.CARD
    payment_provider: PaymentProviderName = PaymentProviderName.STRIPE
    use_payment_intent: bool = False

    def to_data(self) -> CreateReservationWithPaymentData:
        return CreateReservationWithPaymentData(
            customer_id=self.customer_id,
            staff_id=self.staff_id,
            course_id=self.service_id,
            start_time=self.start_time,
            end_time=self.end_time,
            notes=self.notes,
            price=self.price,
            amount=self.amount,
            payment_method=self.payment_method.value,
            payment_provider=self.payment_provider.value,
        )


class RescheduleReservationRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    start_time: datetime
    end_time: datetime
    staff_id: str | None = None
    notes: str | None = None

    def to_data(self) -> RescheduleReservationData:
        return RescheduleReservationData(
            start_time=self.start_time,
            end_time=self.end_time,
            staff_id=self.staff_id,
            notes=self.notes,
        )


class RefundReservationRequest(CamelModel):
    refund_amount: Money | None = None


# === Responses ===


class ConflictResponse(CamelModel):
    id: str
    start_time: datetime
    end_time: datetime

    @classmethod
    def from_summary(cls, summary: ConflictSummary) -> "ConflictResponse":
        return cls(id=summary.id, start_time=summary.start_time, end_time=summary.end_time)


class ReservationResponse(CamelModel):
    id: str
    customer_id: str
    staff_id: str
    service_id: str
    start_time: datetime
    end_time: datetime
    status: str
    payment_status: str
    price: Decimal
    currency_code: str
    notes: str | None = None
    modifiable_until: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, reservation: Reservation) -> "ReservationResponse":
        return cls(
            id=reservation.id,
            customer_id=reservation.customer_id,
            staff_id=reservation.staff_id,
            service_id=reservation.course_id,
            start_time=reservation.start_time,
            end_time=reservation.end_time,
            status=reservation.status.value,
            payment_status=reservation.payment_status.value,
            price=reservation.price,
            currency_code=reservation.currency_code,
            notes=reservation.notes,
            modifiable_until=reservation.modifiable_until,
            created_at=reservation.created_at,
            updated_at=reservation.updated_at,
        )


class PaymentTransactionResponse(CamelModel):
    id: str
    amount: Decimal
    currency: str
    provider: str
    payment_method: str
    status: str
    payment_intent_id: str | None = None
    refund_amount: Decimal | None = None
    processed_at: datetime | None = None
    refunded_at: datetime | None = None
    error_message: str | None = None

    @classmethod
    def from_entity(cls, tx: PaymentTransaction) -> "PaymentTransactionResponse":
        return cls(
            id=tx.id,
            amount=tx.amount,
            currency=tx.currency,
            provider=tx.provider,
            payment_method=tx.payment_method,
            status=tx.status.value,
            payment_intent_id=tx.payment_intent_id,
            refund_amount=tx.refund_amount,
            processed_at=tx.processed_at,
            refunded_at=tx.refunded_at,
            error_message=tx.error_message,
        )


class PaymentIntentResponse(CamelModel):
    id: str
    provider: str
    amount: Decimal
    currency: str
    status: str
    client_secret: str | None = None

    @classmethod
    def from_entity(cls, intent: PaymentIntent) -> "PaymentIntentResponse":
        return cls(
            id=intent.id,
            provider=intent.provider,
            amount=intent.amount,
            currency=intent.currency,
            status=intent.status.value,
            client_secret=intent.client_secret,
        )


class ReservationWithPaymentResponse(CamelModel):
    success: bool
    reservation: ReservationResponse | None = None
    transaction: PaymentTransactionResponse | None = None
    payment_intent: PaymentIntentResponse | None = None
    error: str | None = None
    conflicts: list[ConflictResponse] = []

    @classmethod
    def from_result(cls, result: ReservationWithPaymentResult) -> "ReservationWithPaymentResponse":
        return cls(
            success=result.success,
            reservation=(
                ReservationResponse.from_entity(result.reservation) if result.reservation else None
            ),
            transaction=(
                PaymentTransactionResponse.from_entity(result.transaction)
                if result.transaction
                else None
            ),
            payment_intent=(
                PaymentIntentResponse.from_entity(result.payment_intent)
                if result.payment_intent
                else None
            ),
            error=result.error,
            conflicts=[ConflictResponse.from_summary(c) for c in result.conflicts],
        )


class ReservationPaymentsResponse(CamelModel):
    reservation: ReservationResponse
    payments: list[PaymentTransactionResponse]

    @classmethod
    def from_result(cls, result: ReservationWithPayments) -> "ReservationPaymentsResponse":
        return cls(
            reservation=ReservationResponse.from_entity(result.reservation),
            payments=[PaymentTransactionResponse.from_entity(tx) for tx in result.payments],
        )


class CancelReservationResponse(CamelModel):
    success: bool
    reservation: ReservationResponse | None = None
    refund_amount: Decimal | None = None
    error: str | None = None

    @classmethod
    def from_result(cls, result: CancelReservationResult) -> "CancelReservationResponse":
        return cls(
            success=result.success,
            reservation=(
                ReservationResponse.from_entity(result.reservation) if result.reservation else None
            ),
            refund_amount=result.refund_amount,
            error=result.error,
        )


class AvailabilityResponse(CamelModel):
    available: bool
    conflicts: list[ConflictResponse]

    @classmethod
    def from_result(cls, result: AvailabilityResult) -> "AvailabilityResponse":
        return cls(
            available=result.available,
            conflicts=[ConflictResponse.from_summary(c) for c in result.conflicts],
        )


class TimeSlotResponse(CamelModel):
    start_time: datetime
    end_time: datetime

    @classmethod
    def from_slot(cls, slot: TimeSlot) -> "TimeSlotResponse":
        return cls(start_time=slot.start_time, end_time=slot.end_time)


class AvailableSlotsResponse(CamelModel):
    staff_id: str
    date: date_type
    duration: int
    available_slots: list[TimeSlotResponse]


class ProcessNotificationsResponse(CamelModel):
    processed: int


class PaymentWebhookEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    type: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    livemode: bool | None = None
    created: int | None = None

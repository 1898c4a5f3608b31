from datetime import date as date_type

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from castbooking.api.dependencies import get_use_cases
from castbooking.api.schemas.reservations import (
    CancelReservationResponse,
    CreateReservationRequest,
    CreateReservationWithPaymentRequest,
    RefundReservationRequest,
    ReservationPaymentsResponse,
    ReservationResponse,
    ReservationWithPaymentResponse,
    RescheduleReservationRequest,
)

router = APIRouter()


@router.post(
    "/reservations",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_reservation(
    payload: CreateReservationRequest,
    use_cases=Depends(get_use_cases),
) -> ReservationResponse:
    reservation = await use_cases["create_reservation"].execute(payload.to_data())
    return ReservationResponse.from_entity(reservation)


@router.get("/reservations", response_model=list[ReservationResponse])
async def list_reservations(
    day: date_type | None = Query(default=None, alias="date"),
    staff_id: str | None = Query(default=None, alias="staffId"),
    use_cases=Depends(get_use_cases),
) -> list[ReservationResponse]:
    reservations = await use_cases["list_reservations"].execute(day=day, staff_id=staff_id)
    return [ReservationResponse.from_entity(r) for r in reservations]


@router.post(
    "/reservations/payments",
    response_model=ReservationWithPaymentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={402: {"model": ReservationWithPaymentResponse}},
)
async def create_reservation_with_payment(
    payload: CreateReservationWithPaymentRequest,
    use_cases=Depends(get_use_cases),
):
    service = use_cases["reservation_payments"]
    if payload.use_payment_intent:
        result = await service.create_reservation_with_payment_intent(payload.to_data())
    else:
        result = await service.create_reservation_with_payment(payload.to_data())

    body = ReservationWithPaymentResponse.from_result(result)
    if result.success:
        return body
    if result.conflicts:
        status_code = status.HTTP_409_CONFLICT
    elif result.reservation is not None:
        status_code = status.HTTP_402_PAYMENT_REQUIRED
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True),
    )


@router.get("/reservations/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: str,
    use_cases=Depends(get_use_cases),
) -> ReservationResponse:
    reservation = await use_cases["get_reservation"].execute(reservation_id)
    return ReservationResponse.from_entity(reservation)


@router.patch("/reservations/{reservation_id}", response_model=ReservationResponse)
async def reschedule_reservation(
    reservation_id: str,
    payload: RescheduleReservationRequest,
    use_cases=Depends(get_use_cases),
) -> ReservationResponse:
    reservation = await use_cases["reschedule_reservation"].execute(
        reservation_id, payload.to_data()
    )
    return ReservationResponse.from_entity(reservation)


@router.post("/reservations/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_reservation(
    reservation_id: str,
    use_cases=Depends(get_use_cases),
) -> ReservationResponse:
    reservation = await use_cases["cancel_reservation"].execute(reservation_id)
    return ReservationResponse.from_entity(reservation)


@router.get(
    "/reservations/{reservation_id}/payments",
    response_model=ReservationPaymentsResponse,
)
async def get_reservation_payments(
    reservation_id: str,
    use_cases=Depends(get_use_cases),
) -> ReservationPaymentsResponse:
    result = await use_cases["reservation_payments"].get_reservation_with_payments(reservation_id)
    return ReservationPaymentsResponse.from_result(result)


@router.post(
    "/reservations/{reservation_id}/refund",
    response_model=CancelReservationResponse,
    responses={400: {"model": CancelReservationResponse}},
)
async def refund_reservation(
    reservation_id: str,
    payload: RefundReservationRequest | None = None,
    use_cases=Depends(get_use_cases),
):
    refund_amount = payload.refund_amount if payload else None
    result = await use_cases["reservation_payments"].cancel_reservation_with_refund(
        reservation_id, refund_amount=refund_amount
    )
    body = CancelReservationResponse.from_result(result)
    if result.success:
        return body
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=body.model_dump(mode="json", by_alias=True),
    )

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from castbooking.api.dependencies import get_use_cases
from castbooking.api.schemas.reservations import ReservationWithPaymentResponse

router = APIRouter()


@router.post(
    "/payments/intents/{intent_id}/confirm",
    response_model=ReservationWithPaymentResponse,
    responses={402: {"model": ReservationWithPaymentResponse}},
)
async def confirm_payment_intent(
    intent_id: str,
    use_cases=Depends(get_use_cases),
):
    result = await use_cases["reservation_payments"].confirm_payment_intent(intent_id)
    body = ReservationWithPaymentResponse.from_result(result)
    if result.success:
        return body
    return JSONResponse(
        status_code=status.HTTP_402_PAYMENT_REQUIRED,
        content=body.model_dump(mode="json", by_alias=True),
    )


@router.post("/payments/webhook", status_code=status.HTTP_200_OK)
async def stripe_webhook(
    request: Request,
    use_cases=Depends(get_use_cases),
) -> dict:
    raw_body = await request.body()
    signature = request.headers.get("Stripe-Signature")
    await use_cases["handle_payment_webhook"].execute(raw_body=raw_body, signature=signature)
    return {"received": True}

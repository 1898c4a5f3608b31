from typing import Annotated

from fastapi import APIRouter, Depends, status

from castbooking.api.dependencies import get_use_cases
from castbooking.api.schemas.reservations import ProcessNotificationsResponse

router = APIRouter()


@router.post(
    "/workers/notifications/process",
    response_model=ProcessNotificationsResponse,
    status_code=status.HTTP_200_OK,
)
async def process_notifications(
    use_cases: Annotated[dict, Depends(get_use_cases)],
) -> ProcessNotificationsResponse:
    """Claims one batch of pending notification events and delivers it."""
    processed = await use_cases["notification_worker"].process_batch()
    return ProcessNotificationsResponse(processed=processed)

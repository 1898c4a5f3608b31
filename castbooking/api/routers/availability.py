from datetime import date as date_type
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from castbooking.api.dependencies import get_use_cases
from castbooking.api.schemas.reservations import (
    AvailabilityResponse,
    AvailableSlotsResponse,
    TimeSlotResponse,
)

router = APIRouter()


@router.get(
    "/availability/check",
    response_model=AvailabilityResponse | dict[str, AvailabilityResponse],
)
async def check_availability(
    start_time: datetime = Query(alias="startTime"),
    end_time: datetime = Query(alias="endTime"),
    staff_id: str | None = Query(default=None, alias="staffId"),
    staff_ids: str | None = Query(default=None, alias="staffIds"),
    use_cases=Depends(get_use_cases),
):
    """
    Single cast: ``staffId``. Several casts: ``staffIds=a,b,c``, answered
    as a map keyed by cast id.
    """
    checker = use_cases["check_availability"]
    if staff_ids:
        ids = [value.strip() for value in staff_ids.split(",") if value.strip()]
        results = await checker.check_many(ids, start_time, end_time)
        return {key: AvailabilityResponse.from_result(value) for key, value in results.items()}
    if not staff_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="staffId or staffIds is required",
        )
    result = await checker.check(staff_id, start_time, end_time)
    return AvailabilityResponse.from_result(result)


@router.get("/availability/slots", response_model=AvailableSlotsResponse)
async def available_slots(
    staff_id: str = Query(alias="staffId"),
    day: date_type = Query(alias="date"),
    duration: int = Query(default=60, gt=0),
    use_cases=Depends(get_use_cases),
) -> AvailableSlotsResponse:
    slots = await use_cases["check_availability"].free_slots(staff_id, day, duration)
    return AvailableSlotsResponse(
        staff_id=staff_id,
        date=day,
        duration=duration,
        available_slots=[TimeSlotResponse.from_slot(slot) for slot in slots],
    )

import logging
from datetime import datetime
from typing import Literal

from castbooking.application.interfaces.reservation_repo import ReservationRepo
from castbooking.domain.entities.reservation import Reservation
from castbooking.domain.errors import AvailabilityCheckUnavailableError
from castbooking.domain.value_objects.time_range import ensure_utc

FailureMode = Literal["open", "closed"]


class ConflictGateway:
    """
    Finds existing reservations of a staff member that overlap a proposed slot.

    Only pending and confirmed reservations are candidates; the repository
    applies the same three-case overlap predicate as ``intervals_overlap``.

    A lookup failure is handled per ``failure_mode``:
      - "open": logged and treated as "no conflicts".
      - "closed": raised as ``AvailabilityCheckUnavailableError``.
    """

    def __init__(self, reservation_repo: ReservationRepo, failure_mode: FailureMode = "open") -> None:
        if failure_mode not in ("open", "closed"):
            raise ValueError(f"Unknown conflict check failure mode: {failure_mode}")
        self._reservation_repo = reservation_repo
        self._failure_mode = failure_mode
        self._logger = logging.getLogger(__name__)

    @property
    def failure_mode(self) -> FailureMode:
        return self._failure_mode

    async def find_conflicts(
        self,
        staff_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_reservation_id: str | None = None,
    ) -> list[Reservation]:
        start_time = ensure_utc(start_time)
        end_time = ensure_utc(end_time)
        try:
            found = await self._reservation_repo.find_overlapping(
                staff_id=staff_id,
                start_time=start_time,
                end_time=end_time,
                exclude_reservation_id=exclude_reservation_id,
            )
        except Exception as exc:
            if self._failure_mode == "closed":
                self._logger.error(
                    "Conflict lookup failed, rejecting request",
                    exc_info=exc,
                    extra={"staff_id": staff_id, "failure_mode": self._failure_mode},
                )
                raise AvailabilityCheckUnavailableError(staff_id) from exc
            self._logger.error(
                "Conflict lookup failed, assuming availability",
                exc_info=exc,
                extra={"staff_id": staff_id, "failure_mode": self._failure_mode},
            )
            return []

        conflicts = [r for r in found if r.blocks_schedule]
        if conflicts:
            self._logger.info(
                "Conflicting reservations found",
                extra={"staff_id": staff_id, "conflict_count": len(conflicts)},
            )
        return conflicts

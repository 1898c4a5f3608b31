import asyncio
import logging

from castbooking.application.dtos.reservation_dto import CreateReservationData
from castbooking.application.interfaces.reference_repos import CustomerRepo, StaffRepo
from castbooking.application.use_cases.conflict_gateway import ConflictGateway
from castbooking.domain.errors import CustomerNotFoundError, StaffNotFoundError
from castbooking.domain.value_objects.validation_result import ConflictSummary, ValidationResult


class ReservationValidator:
    """
    Decides whether a proposed reservation may be created.

    Existence errors pre-empt the conflict check: when the customer or the
    staff member is unknown the conflict gateway is never called.
    """

    def __init__(
        self,
        customer_repo: CustomerRepo,
        staff_repo: StaffRepo,
        conflict_gateway: ConflictGateway,
    ) -> None:
        self._customer_repo = customer_repo
        self._staff_repo = staff_repo
        self._conflict_gateway = conflict_gateway
        self._logger = logging.getLogger(__name__)

    async def validate(
        self,
        data: CreateReservationData,
        exclude_reservation_id: str | None = None,
    ) -> ValidationResult:
        customer, staff = await asyncio.gather(
            self._customer_repo.find_by_id(data.customer_id),
            self._staff_repo.find_by_id(data.staff_id),
        )

        errors: list[str] = []
        if customer is None:
            errors.append(CustomerNotFoundError(data.customer_id).message)
        if staff is None:
            errors.append(StaffNotFoundError(data.staff_id).message)
        if errors:
            self._logger.info(
                "Reservation references not found",
                extra={
                    "customer_id": data.customer_id,
                    "staff_id": data.staff_id,
                    "errors": errors,
                },
            )
            return ValidationResult.missing_references(errors)

        conflicts = await self._conflict_gateway.find_conflicts(
            staff_id=data.staff_id,
            start_time=data.start_time,
            end_time=data.end_time,
            exclude_reservation_id=exclude_reservation_id,
        )
        if conflicts:
            return ValidationResult.conflicted(
                [
                    ConflictSummary(id=r.id, start_time=r.start_time, end_time=r.end_time)
                    for r in conflicts
                ]
            )
        return ValidationResult.ok()

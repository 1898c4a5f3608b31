from decimal import Decimal
from typing import Any, Mapping, Sequence

from sqlalchemy import and_, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from castbooking.application.interfaces.reservation_repo import ReservationRepo
from castbooking.domain.entities.reservation import (
    BLOCKING_STATUSES,
    Reservation,
    ReservationPaymentStatus,
    ReservationStatus,
)
from castbooking.domain.errors import ReservationConcurrencyError, ReservationConflictError
from castbooking.domain.value_objects.time_range import overlap_predicate
from castbooking.domain.value_objects.validation_result import CONFLICT_ERROR
from castbooking.infrastructure.db.tables import casts, reservations


def overlap_clause(start, end):
    """SQL form of the half-open overlap predicate against ``reservations``."""
    return overlap_predicate(
        reservations.c.start_time,
        reservations.c.end_time,
        start,
        end,
        all_of=and_,
        any_of=or_,
    )


def _to_row(reservation: Reservation) -> dict[str, Any]:
    return {
        "id": reservation.id,
        "customer_id": reservation.customer_id,
        "staff_id": reservation.staff_id,
        "course_id": reservation.course_id,
        "start_time": reservation.start_time,
        "end_time": reservation.end_time,
        "status": reservation.status.value,
        "payment_status": reservation.payment_status.value,
        "price": reservation.price,
        "currency_code": reservation.currency_code,
        "notes": reservation.notes,
        "modifiable_until": reservation.modifiable_until,
        "lock_version": reservation.lock_version,
        "created_at": reservation.created_at,
        "updated_at": reservation.updated_at,
    }


def _from_row(row: Mapping[str, Any]) -> Reservation:
    return Reservation(
        id=row["id"],
        customer_id=row["customer_id"],
        staff_id=row["staff_id"],
        course_id=row["course_id"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        status=ReservationStatus(row["status"]),
        payment_status=ReservationPaymentStatus(row["payment_status"]),
        price=Decimal(row["price"]),
        currency_code=row["currency_code"],
        notes=row["notes"],
        modifiable_until=row["modifiable_until"],
        lock_version=row["lock_version"] or 0,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class ReservationRepoSQL(ReservationRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, reservation_id: str) -> Reservation | None:
        stmt = select(reservations).where(reservations.c.id == reservation_id).limit(1)
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return _from_row(row) if row else None

    async def create(self, reservation: Reservation) -> Reservation:
        try:
            await self._session.execute(insert(reservations).values(_to_row(reservation)))
        except IntegrityError as exc:
            # Overlap rejected by a storage constraint (e.g. an exclusion constraint)
            raise ReservationConflictError([CONFLICT_ERROR], []) from exc
        return reservation

    async def save(self, reservation: Reservation, expected_lock_version: int | None = None) -> None:
        where_clause = [reservations.c.id == reservation.id]
        if expected_lock_version is not None:
            where_clause.append(reservations.c.lock_version == expected_lock_version)
        values = _to_row(reservation)
        values.pop("id")
        values.pop("created_at")
        stmt = update(reservations).where(*where_clause).values(**values)
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise ReservationConcurrencyError(reservation.id)

    async def lock_staff(self, staff_id: str) -> None:
        stmt = select(casts.c.id).where(casts.c.id == staff_id).with_for_update()
        await self._session.execute(stmt)

    async def find_overlapping(
        self,
        staff_id,
        start_time,
        end_time,
        exclude_reservation_id=None,
    ) -> Sequence[Reservation]:
        where_clause = [
            reservations.c.staff_id == staff_id,
            reservations.c.status.in_([s.value for s in BLOCKING_STATUSES]),
            overlap_clause(start_time, end_time),
        ]
        if exclude_reservation_id:
            where_clause.append(reservations.c.id != exclude_reservation_id)
        stmt = select(reservations).where(*where_clause).order_by(reservations.c.start_time)
        result = await self._session.execute(stmt)
        return [_from_row(row) for row in result.mappings().all()]

    async def list_reservations(
        self,
        start_from=None,
        start_to=None,
        staff_id=None,
    ) -> Sequence[Reservation]:
        where_clause = []
        if start_from is not None:
            where_clause.append(reservations.c.start_time >= start_from)
        if start_to is not None:
            where_clause.append(reservations.c.start_time < start_to)
        if staff_id:
            where_clause.append(reservations.c.staff_id == staff_id)
        stmt = select(reservations).where(*where_clause).order_by(reservations.c.start_time)
        result = await self._session.execute(stmt)
        return [_from_row(row) for row in result.mappings().all()]

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from castbooking.application.interfaces.reference_repos import CourseRepo, CustomerRepo, StaffRepo
from castbooking.domain.entities.references import Course, Customer, Staff
from castbooking.infrastructure.db.tables import casts, courses, customers


class _SessionPerCallRepo:
    """Opens a short-lived session per lookup so lookups can run concurrently."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    async def _fetch_one(self, stmt):
        async with self._session_maker() as session:
            result = await session.execute(stmt)
            return result.mappings().first()


class CustomerRepoSQL(_SessionPerCallRepo, CustomerRepo):
    async def find_by_id(self, customer_id: str) -> Customer | None:
        row = await self._fetch_one(select(customers).where(customers.c.id == customer_id))
        if not row:
            return None
        return Customer(id=row["id"], name=row["name"], email=row["email"], phone=row["phone"])


class StaffRepoSQL(_SessionPerCallRepo, StaffRepo):
    async def find_by_id(self, staff_id: str) -> Staff | None:
        row = await self._fetch_one(select(casts).where(casts.c.id == staff_id))
        if not row:
            return None
        return Staff(id=row["id"], name=row["name"], location=row["location"])


class CourseRepoSQL(_SessionPerCallRepo, CourseRepo):
    async def find_by_id(self, course_id: str) -> Course | None:
        row = await self._fetch_one(select(courses).where(courses.c.id == course_id))
        if not row:
            return None
        return Course(
            id=row["id"],
            name=row["name"],
            duration_minutes=row["duration_minutes"],
            price=Decimal(row["price"]),
        )

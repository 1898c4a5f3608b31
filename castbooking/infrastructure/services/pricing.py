"""Estrategias de precio para reservas."""

from decimal import Decimal

from castbooking.application.dtos.reservation_dto import CreateReservationData
from castbooking.application.interfaces.pricing import PricingStrategy
from castbooking.application.interfaces.reference_repos import CourseRepo


class CoursePricingStrategy(PricingStrategy):
    """
    Precio explícito de la solicitud; si no hay, el precio de lista del curso;
    si el curso no existe, 0 (el precio se resuelve aguas abajo).
    """

    def __init__(self, course_repo: CourseRepo) -> None:
        self._course_repo = course_repo

    async def price_for(self, data: CreateReservationData) -> Decimal:
        if data.price is not None:
            return Decimal(data.price)
        course = await self._course_repo.find_by_id(data.course_id)
        if course is None:
            return Decimal("0")
        return course.price

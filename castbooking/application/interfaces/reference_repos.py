"""Puertos de lectura para entidades externas (clientes, casts, cursos)."""

from castbooking.domain.entities.references import Course, Customer, Staff


class CustomerRepo:
    async def find_by_id(self, customer_id: str) -> Customer | None:
        raise NotImplementedError


class StaffRepo:
    async def find_by_id(self, staff_id: str) -> Staff | None:
        raise NotImplementedError


class CourseRepo:
    async def find_by_id(self, course_id: str) -> Course | None:
        raise NotImplementedError

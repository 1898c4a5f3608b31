"""Servicios de infraestructura."""

from castbooking.infrastructure.services.pricing import CoursePricingStrategy

__all__ = [
    "CoursePricingStrategy",
]

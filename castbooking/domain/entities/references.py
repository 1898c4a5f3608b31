"""Entidades de referencia (solo lectura para el núcleo de reservas)."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Customer:
    """Cliente que reserva. Su ciclo de vida vive en otro módulo."""

    id: str
    name: str
    email: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class Staff:
    """Cast cuyo tiempo se reserva."""

    id: str
    name: str
    location: str | None = None


@dataclass(frozen=True)
class Course:
    """Servicio/curso reservado, con su duración y precio de lista."""

    id: str
    name: str
    duration_minutes: int = 60
    price: Decimal = Decimal("0")

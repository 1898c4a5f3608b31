"""Value Object TimeRange - intervalo semiabierto [start, end) de una reserva."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from castbooking.domain.errors import InvalidTimeRangeError


def _all(*conditions: bool) -> bool:
    return all(conditions)


def _any(*conditions: bool) -> bool:
    return any(conditions)


def overlap_predicate(
    existing_start: Any,
    existing_end: Any,
    start: Any,
    end: Any,
    all_of: Callable[..., Any] = _all,
    any_of: Callable[..., Any] = _any,
) -> Any:
    """
    Construye el predicado de superposición en sus tres casos.

    Funciona tanto con datetimes (retorna bool) como con columnas de
    SQLAlchemy pasando ``and_`` / ``or_`` (retorna una cláusula), de modo que
    la consulta y el filtrado en memoria comparten la misma definición.

    Casos:
        1. El nuevo intervalo empieza dentro del existente.
        2. El nuevo intervalo termina dentro del existente.
        3. El nuevo intervalo contiene por completo al existente.

    El fin es exclusivo: intervalos que solo se tocan no se superponen.
    """
    return any_of(
        all_of(existing_start <= start, existing_end > start),
        all_of(existing_start < end, existing_end >= end),
        all_of(existing_start >= start, existing_end <= end),
    )


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """
    Indica si [a_start, a_end) y [b_start, b_end) se intersectan.

    Función pura y total: intervalos vacíos o invertidos nunca se superponen.
    """
    if a_start >= a_end or b_start >= b_end:
        return False
    return overlap_predicate(a_start, a_end, b_start, b_end)


def ensure_utc(value: datetime) -> datetime:
    """Normaliza un datetime a UTC (los naive se asumen en UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class TimeRange:
    """
    Value Object inmutable que representa el horario de una reserva.

    Attributes:
        start: Inicio (incluido).
        end: Fin (excluido).
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", ensure_utc(self.start))
        object.__setattr__(self, "end", ensure_utc(self.end))
        if self.start >= self.end:
            raise InvalidTimeRangeError(
                f"start must be before end: {self.start.isoformat()} >= {self.end.isoformat()}"
            )

    @property
    def duration(self) -> timedelta:
        """Retorna la duración del rango."""
        return self.end - self.start

    def overlaps_with(self, other: "TimeRange") -> bool:
        """Verifica si este rango se superpone con otro."""
        return intervals_overlap(self.start, self.end, other.start, other.end)

    def contains(self, dt: datetime) -> bool:
        """Verifica si un instante está dentro del rango semiabierto."""
        return self.start <= ensure_utc(dt) < self.end

    def shifted_back(self, delta: timedelta) -> datetime:
        """Retorna el instante ``start - delta``."""
        return self.start - delta

    def __str__(self) -> str:
        return f"{self.start.isoformat()} -> {self.end.isoformat()}"

"""Value Object ValidationResult - resultado de validar una reserva."""

from dataclasses import dataclass, field
from datetime import datetime

CONFLICT_ERROR = "Time slot conflict detected"


@dataclass(frozen=True)
class ConflictSummary:
    """Reserva existente que se superpone, recortada a id y horario."""

    id: str
    start_time: datetime
    end_time: datetime

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat(),
        }


@dataclass(frozen=True)
class ValidationResult:
    """
    Resultado transitorio de la validación; nunca se persiste.

    Attributes:
        is_valid: True si la reserva puede crearse.
        errors: Razones legibles del rechazo.
        conflicts: Reservas superpuestas (solo en el camino de conflicto).
    """

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    conflicts: list[ConflictSummary] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(is_valid=True)

    @classmethod
    def missing_references(cls, errors: list[str]) -> "ValidationResult":
        return cls(is_valid=False, errors=list(errors))

    @classmethod
    def conflicted(cls, conflicts: list[ConflictSummary]) -> "ValidationResult":
        return cls(is_valid=False, errors=[CONFLICT_ERROR], conflicts=list(conflicts))

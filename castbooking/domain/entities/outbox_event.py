"""Entidad OutboxEvent - representa un evento en el patrón Outbox."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any


class OutboxStatus(str, Enum):
    """Estados de un evento en el outbox."""

    NEW = "NEW"
    PROCESSING = "PROCESSING"
    DONE = "DONE"
    FAILED = "FAILED"
    RETRY = "RETRY"


class OutboxEventType(str, Enum):
    """Tipos de eventos del outbox."""

    RESERVATION_CONFIRMED = "RESERVATION_CONFIRMED"
    RESERVATION_CANCELLED = "RESERVATION_CANCELLED"


@dataclass
class OutboxEvent:
    """
    Entidad que representa un evento en el patrón Transactional Outbox.

    Desacopla las notificaciones de la escritura de la reserva: el evento
    queda encolado y un worker lo entrega con reintentos.
    """

    # Identificadores
    id: int | None = None

    # Tipo de evento
    event_type: OutboxEventType | str = OutboxEventType.RESERVATION_CONFIRMED

    # Agregado asociado
    aggregate_type: str = "reservation"
    aggregate_id: str | None = None

    # Payload del evento (JSON)
    payload: dict[str, Any] = field(default_factory=dict)

    # Estado
    status: OutboxStatus = OutboxStatus.NEW

    # Reintentos
    attempts: int = 0
    next_attempt_at: datetime | None = None
    last_error: str | None = None

    # Locking para procesamiento distribuido
    locked_by: str | None = None
    lock_expires_at: datetime | None = None

    # Timestamps
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # === Propiedades ===

    def is_ready(self, now: datetime) -> bool:
        """Verifica si el evento puede ser reclamado en ``now``."""
        if self.status not in (OutboxStatus.NEW, OutboxStatus.RETRY):
            return False
        if self.next_attempt_at and now < self.next_attempt_at:
            return False
        if self.locked_by and self.lock_expires_at and now < self.lock_expires_at:
            return False
        return True

    @property
    def is_final(self) -> bool:
        """Verifica si el evento está en un estado final."""
        return self.status in (OutboxStatus.DONE, OutboxStatus.FAILED)

    # === Métodos de negocio ===

    def claim(self, worker_id: str, now: datetime, lock_duration_seconds: int = 300) -> None:
        """Reclama el evento para procesamiento."""
        self.locked_by = worker_id
        self.lock_expires_at = now + timedelta(seconds=lock_duration_seconds)
        self.status = OutboxStatus.PROCESSING
        self.updated_at = now

    def release_lock(self) -> None:
        """Libera el lock del evento."""
        self.locked_by = None
        self.lock_expires_at = None

    def mark_done(self) -> None:
        """Marca el evento como procesado exitosamente."""
        self.status = OutboxStatus.DONE
        self.release_lock()

    def mark_retry(self, attempts: int, next_attempt_at: datetime, error: str | None) -> None:
        """Programa un reintento."""
        self.status = OutboxStatus.RETRY
        self.attempts = attempts
        self.next_attempt_at = next_attempt_at
        self.last_error = error
        self.release_lock()

    def mark_failed(self, attempts: int, error: str | None) -> None:
        """Marca el evento como fallido permanentemente."""
        self.status = OutboxStatus.FAILED
        self.attempts = attempts
        self.last_error = error
        self.release_lock()

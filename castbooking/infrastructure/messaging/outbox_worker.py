"""Worker para entregar notificaciones encoladas en el outbox."""

import asyncio
import logging
from datetime import timedelta
from typing import Awaitable, Callable
from uuid import uuid4

from castbooking.application.interfaces.clock import Clock
from castbooking.application.interfaces.outbox_repo import OutboxRepo
from castbooking.application.interfaces.transaction_manager import TransactionManager
from castbooking.domain.entities.outbox_event import OutboxEvent, OutboxEventType

logger = logging.getLogger(__name__)

EventHandler = Callable[[OutboxEvent], Awaitable[None]]


def backoff_seconds(attempts: int) -> int:
    """30s, 60s, 120s, 240s, ..."""
    return 30 * (2 ** (attempts - 1))


class NotificationOutboxWorker:
    """
    Worker que procesa eventos del outbox de forma asíncrona.

    Características:
    - Polling configurable
    - Backoff exponencial en reintentos
    - Locking para evitar procesamiento duplicado
    - Graceful shutdown
    """

    def __init__(
        self,
        outbox_repo: OutboxRepo,
        transaction_manager: TransactionManager,
        clock: Clock,
        worker_id: str | None = None,
        poll_interval_seconds: float = 5.0,
        batch_size: int = 10,
        lock_duration_seconds: int = 300,
        max_retries: int = 5,
    ) -> None:
        """
        Inicializa el worker.

        Args:
            outbox_repo: Repositorio de eventos outbox.
            transaction_manager: Delimita cada cambio de estado del evento.
            clock: Servicio de reloj.
            worker_id: Identificador único del worker (auto-generado si no se provee).
            poll_interval_seconds: Intervalo entre polls en segundos.
            batch_size: Número máximo de eventos a procesar por ciclo.
            lock_duration_seconds: Duración del lock en segundos.
            max_retries: Intentos antes de marcar el evento como FAILED.
        """
        self._outbox_repo = outbox_repo
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._worker_id = worker_id or f"worker-{uuid4().hex[:8]}"
        self._poll_interval = poll_interval_seconds
        self._batch_size = batch_size
        self._lock_duration = lock_duration_seconds
        self._max_retries = max_retries
        self._running = False
        self._handlers: dict[str, EventHandler] = {}

    @property
    def worker_id(self) -> str:
        return self._worker_id

    @property
    def is_running(self) -> bool:
        return self._running

    def register_handler(self, event_type: str, handler: EventHandler) -> None:
        self._handlers[event_type] = handler
        logger.info("Outbox handler registered", extra={"event_type": event_type})

    async def start(self) -> None:
        """Inicia el worker en modo polling."""
        self._running = True
        logger.info("Outbox worker started", extra={"worker_id": self._worker_id})

        while self._running:
            try:
                processed = await self.process_batch()
                if processed == 0:
                    await asyncio.sleep(self._poll_interval)
            except Exception:
                logger.exception("Outbox worker cycle failed", extra={"worker_id": self._worker_id})
                await asyncio.sleep(self._poll_interval)

    async def stop(self) -> None:
        """Detiene el worker de forma graceful."""
        self._running = False
        logger.info("Outbox worker stopped", extra={"worker_id": self._worker_id})

    async def process_batch(self) -> int:
        """
        Reclama y procesa un batch de eventos listos.

        Returns:
            Número de eventos entregados exitosamente.
        """
        async with self._transaction_manager.start():
            events = await self._outbox_repo.claim_ready(
                limit=self._batch_size,
                locked_by=self._worker_id,
                now=self._clock.now(),
                lock_ttl_seconds=self._lock_duration,
            )

        processed = 0
        for event in events:
            if await self._process_event(event):
                processed += 1
        return processed

    async def _process_event(self, event: OutboxEvent) -> bool:
        event_type = (
            event.event_type.value
            if isinstance(event.event_type, OutboxEventType)
            else str(event.event_type)
        )
        handler = self._handlers.get(event_type)
        if handler is None:
            logger.warning(
                "No handler for outbox event", extra={"event_id": event.id, "event_type": event_type}
            )
            async with self._transaction_manager.start():
                await self._outbox_repo.mark_done(event.id)
            return True

        try:
            await handler(event)
        except Exception as exc:
            logger.exception(
                "Outbox handler failed", extra={"event_id": event.id, "event_type": event_type}
            )
            await self._handle_failure(event, str(exc))
            return False

        async with self._transaction_manager.start():
            await self._outbox_repo.mark_done(event.id)
        return True

    async def _handle_failure(self, event: OutboxEvent, error: str) -> None:
        attempts = event.attempts + 1

        async with self._transaction_manager.start():
            if attempts >= self._max_retries:
                logger.error(
                    "Outbox event exceeded max retries",
                    extra={"event_id": event.id, "max_retries": self._max_retries},
                )
                await self._outbox_repo.mark_failed(event.id, attempts=attempts, error_message=error)
                return

            next_attempt = self._clock.now() + timedelta(seconds=backoff_seconds(attempts))
            logger.info(
                "Outbox event retry scheduled",
                extra={
                    "event_id": event.id,
                    "attempt": attempts,
                    "max_retries": self._max_retries,
                    "next_attempt_at": next_attempt.isoformat(),
                },
            )
            await self._outbox_repo.mark_retry(
                event.id,
                attempts=attempts,
                next_attempt_at=next_attempt,
                error_message=error,
            )

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar

from castbooking.application.interfaces.transaction_manager import TransactionManager


class InMemoryTransactionManager(TransactionManager):
    """
    Transaction scope for the in-memory store.

    Holds named ``asyncio.Lock`` objects acquired inside ``start()`` until the
    outermost scope exits, mirroring ``SELECT ... FOR UPDATE`` row locks.
    Writes are not rolled back.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._held: ContextVar[list[asyncio.Lock] | None] = ContextVar(
            f"held_locks_{id(self)}", default=None
        )

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        if self._held.get() is not None:
            yield
            return

        held: list[asyncio.Lock] = []
        token = self._held.set(held)
        try:
            yield
        finally:
            self._held.reset(token)
            for lock in reversed(held):
                lock.release()

    async def acquire(self, key: str) -> None:
        held = self._held.get()
        if held is None:
            raise RuntimeError(f"Lock {key!r} requested outside a transaction")
        lock = self._locks.setdefault(key, asyncio.Lock())
        if lock in held:
            return
        await lock.acquire()
        held.append(lock)

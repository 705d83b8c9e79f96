"""Per-entity write locks.

Enforces the single-writer rule: the "read current state → append event
→ recompute status" sequence for one entity never interleaves with
another write to the same entity. Writes to different entities proceed
independently.
"""

import asyncio
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from uuid import UUID

from herbtrace.errors import BusyError
from herbtrace.observability.logging import get_logger
from herbtrace.observability.metrics import LOCK_TIMEOUTS, LOCK_WAIT

logger = get_logger(__name__)


class EntityLockManager:
    """In-process mutual exclusion keyed by entity id.

    Acquisition waits at most ``timeout`` seconds and then raises
    BusyError, which callers may retry with backoff. Locks are not
    reentrant: a holder must not acquire the same key again.
    """

    def __init__(self, timeout: float = 5.0) -> None:
        """Initialize the lock manager.

        Args:
            timeout: Default maximum wait in seconds
        """
        self._timeout = timeout
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def acquire(
        self,
        entity_id: UUID | str,
        timeout: float | None = None,
    ) -> AsyncGenerator[None, None]:
        """Hold the write lock for an entity.

        Usage:
            async with locks.acquire(lot.id):
                ...  # read, append, project

        Raises:
            BusyError: If the lock was not acquired within the timeout
        """
        key = str(entity_id)
        lock = self._lock_for(key)
        wait = self._timeout if timeout is None else timeout

        self._holders[key] = self._holders.get(key, 0) + 1
        started = time.perf_counter()
        try:
            await asyncio.wait_for(lock.acquire(), timeout=wait)
        except TimeoutError as exc:
            self._release_interest(key)
            LOCK_TIMEOUTS.inc()
            logger.warning("entity_lock_timeout", entity_id=key, timeout=wait)
            raise BusyError(
                f"Entity {key} is busy; retry later", entity_id=key, cause=exc
            ) from exc
        except BaseException:
            self._release_interest(key)
            raise
        LOCK_WAIT.observe(time.perf_counter() - started)

        try:
            yield
        finally:
            lock.release()
            self._release_interest(key)

    def _release_interest(self, key: str) -> None:
        """Drop a waiter/holder; forget the lock once nobody needs it."""
        remaining = self._holders.get(key, 1) - 1
        if remaining <= 0:
            self._holders.pop(key, None)
            self._locks.pop(key, None)
        else:
            self._holders[key] = remaining

    def is_locked(self, entity_id: UUID | str) -> bool:
        """Check if an entity's lock is currently held."""
        lock = self._locks.get(str(entity_id))
        return lock is not None and lock.locked()

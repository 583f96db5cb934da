"""Per-property mutual exclusion for the reservation critical section."""

from contextlib import contextmanager
from typing import Iterator
from uuid import UUID
import logging
import threading
import weakref

from apps.bookings.domain.errors import LockTimeout

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 5.0


class PropertyLockRegistry:
    """
    One lock per property id

    Reservations of different properties never wait on each other; two
    reservations of the same property run one after the other. Waiting is
    bounded by `timeout` seconds.

    Locks are held weakly: once no thread holds or waits on a property's
    lock it is dropped, so the registry only grows with contention, not
    with the catalogue.
    """

    def __init__(self, timeout: float = DEFAULT_LOCK_TIMEOUT):
        if timeout <= 0:
            raise ValueError("Lock timeout must be positive")
        self.timeout = timeout
        self._locks: weakref.WeakValueDictionary[UUID, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._guard = threading.Lock()

    def _lock_for(self, property_id: UUID) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(property_id)
            if lock is None:
                lock = self._locks[property_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, property_id: UUID) -> Iterator[None]:
        """
        Enter the critical section for a property

        Raises:
            LockTimeout: If the lock is not acquired within `timeout`
        """
        lock = self._lock_for(property_id)
        if not lock.acquire(timeout=self.timeout):
            logger.warning(f"Lock timeout for property {property_id} after {self.timeout}s")
            raise LockTimeout(property_id, self.timeout)
        try:
            yield
        finally:
            lock.release()

    def __len__(self) -> int:
        """Locks currently referenced by a holder or waiter"""
        with self._guard:
            return len(self._locks)

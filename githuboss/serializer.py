"""
Per-repository commit serialization.

GitHub rejects a contents commit with HTTP 409 when the branch moved while
the commit was being composed, so at most one write per (owner, repo, branch)
may be in flight. Writers queue on a FIFO-fair lock per branch.
"""

import threading
import time
from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager

from githuboss.exceptions import LockInterruptedError
from githuboss.logging import get_logger
from githuboss.types.contents import RepositoryTarget

logger = get_logger("serializer")

# How often a waiter with a cancel event checks it
_CANCEL_POLL_SECONDS = 0.05


class FairLock:
    """
    A reentrant mutual-exclusion lock granted in arrival order.

    Unlike ``threading.RLock`` the waiting threads are served strictly FIFO,
    so a busy branch cannot starve an individual writer.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._queue: deque[object] = deque()
        self._owner: int | None = None
        self._depth = 0

    def acquire(
        self,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        """
        Block until the lock is granted to the calling thread.

        Args:
            timeout: Maximum seconds to wait (None waits forever)
            cancel: Event that abandons the wait when set

        Raises:
            LockInterruptedError: If ``cancel`` is set or ``timeout`` expires first
        """
        me = threading.get_ident()
        with self._cond:
            if self._owner == me:
                self._depth += 1
                return

            ticket = object()
            self._queue.append(ticket)
            deadline = None if timeout is None else time.monotonic() + timeout
            try:
                while self._owner is not None or self._queue[0] is not ticket:
                    if cancel is not None and cancel.is_set():
                        raise LockInterruptedError("cancelled while waiting for the repository write lock")
                    wait = None
                    if deadline is not None:
                        wait = deadline - time.monotonic()
                        if wait <= 0:
                            raise LockInterruptedError(
                                f"timed out after {timeout}s waiting for the repository write lock"
                            )
                    if cancel is not None:
                        wait = _CANCEL_POLL_SECONDS if wait is None else min(wait, _CANCEL_POLL_SECONDS)
                    self._cond.wait(wait)
            except BaseException:
                self._queue.remove(ticket)
                self._cond.notify_all()
                raise

            self._queue.popleft()
            self._owner = me
            self._depth = 1

    def release(self) -> None:
        """
        Release one level of ownership.

        Raises:
            RuntimeError: If the calling thread does not hold the lock
        """
        with self._cond:
            if self._owner != threading.get_ident():
                raise RuntimeError("cannot release a lock held by another thread")
            self._depth -= 1
            if self._depth == 0:
                self._owner = None
                self._cond.notify_all()

    def locked(self) -> bool:
        with self._cond:
            return self._owner is not None

    @property
    def waiting(self) -> int:
        """Number of threads queued for the lock."""
        with self._cond:
            return len(self._queue)


class CommitSerializer:
    """
    Hands out one FairLock per (owner, repo, branch).

    Locks are created on first use and kept for the serializer's lifetime.
    """

    def __init__(self) -> None:
        self._locks: dict[str, FairLock] = {}
        self._guard = threading.Lock()

    def lock_for(self, target: RepositoryTarget) -> FairLock:
        with self._guard:
            lock = self._locks.get(target.lock_key)
            if lock is None:
                lock = FairLock()
                self._locks[target.lock_key] = lock
            return lock

    @contextmanager
    def with_lock(
        self,
        target: RepositoryTarget,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
    ) -> Iterator[None]:
        """
        Hold the write lock of ``target``'s branch for the duration of a block.

        Example:
            ```python
            with serializer.with_lock(target):
                contents.put(target, key, data, "Upload photo.png")
            ```

        Raises:
            LockInterruptedError: If waiting is cancelled or times out
        """
        lock = self.lock_for(target)
        started = time.monotonic()
        lock.acquire(timeout=timeout, cancel=cancel)
        waited_ms = (time.monotonic() - started) * 1000
        if waited_ms >= 1:
            logger.debug("waited %.0fms for write lock on %s", waited_ms, target.lock_key)
        try:
            yield
        finally:
            lock.release()

    def known_targets(self) -> list[str]:
        with self._guard:
            return sorted(self._locks)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

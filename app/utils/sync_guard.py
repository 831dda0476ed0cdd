import contextlib
import threading
from typing import Iterator
from app.errors import SyncInProgress


class SyncGuard:
    """Single-flight guard: at most one running sync per user in this process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._running = set()

    def try_acquire(self, user_id: int) -> bool:
        with self._lock:
            if user_id in self._running:
                return False
            self._running.add(user_id)
            return True

    def release(self, user_id: int) -> None:
        with self._lock:
            self._running.discard(user_id)

    def is_running(self, user_id: int) -> bool:
        with self._lock:
            return user_id in self._running

    @contextlib.contextmanager
    def hold(self, user_id: int) -> Iterator[None]:
        if not self.try_acquire(user_id):
            raise SyncInProgress()
        try:
            yield
        finally:
            self.release(user_id)


sync_guard = SyncGuard()

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from fastapi import Request

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_ID = "localhost"


@dataclass
class Window:
    count: int
    started_at: float


class CounterStore(Protocol):
    def hit(self, key: str, now: float, window_secs: float) -> int:
        """Count one request for ``key`` and return the count in its window."""

    def prune(self, now: float, window_secs: float) -> int:
        """Drop windows that have expired, returning how many were dropped."""


class InMemoryCounterStore:
    def __init__(self) -> None:
        self._windows: dict[str, Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, now: float, window_secs: float) -> int:
        with self._lock:
            window = self._windows.get(key)
            if window is None:
                self._windows[key] = Window(count=1, started_at=now)
                return 1
            if now - window.started_at > window_secs:
                window.count = 1
                window.started_at = now
                return 1
            window.count += 1
            return window.count

    def prune(self, now: float, window_secs: float) -> int:
        with self._lock:
            expired = [
                key
                for key, window in self._windows.items()
                if now - window.started_at > window_secs
            ]
            for key in expired:
                del self._windows[key]
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)


class RateLimiter:
    """Fixed-window request counter keyed by client."""

    def __init__(
        self,
        store: Optional[CounterStore] = None,
        *,
        limit: int = 50,
        window_secs: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store if store is not None else InMemoryCounterStore()
        self.limit = limit
        self.window_secs = window_secs
        self.clock = clock

    def check(self, client_id: str) -> bool:
        count = self.store.hit(client_id, self.clock(), self.window_secs)
        allowed = count <= self.limit
        if not allowed:
            logger.info(f"rate_limited: client={client_id} count={count}")
        return allowed

    def prune(self) -> int:
        return self.store.prune(self.clock(), self.window_secs)


def client_id_from_request(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    return first or DEFAULT_CLIENT_ID

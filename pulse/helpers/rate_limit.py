import threading
import time
from collections import deque


class SlidingWindowLimiter:
    """
    N events per rolling window, tracked per key (the sender's profile id).

    Process memory only: restarting the server clears it.
    """

    def __init__(self, limit: int, window_seconds: float, clock=time.monotonic):
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be > 0, got {window_seconds}")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def _prune(self, hits: deque, now: float):
        while hits and (now - hits[0]) >= self.window_seconds:
            hits.popleft()

    def _sweep(self, now: float):
        """Forget keys with no hits inside the window; runs at most once per window."""
        if (now - self._last_sweep) < self.window_seconds:
            return
        self._last_sweep = now
        for key in [k for k, hits in self._hits.items() if not hits or (now - hits[-1]) >= self.window_seconds]:
            del self._hits[key]

    def allow(self, key: str) -> bool:
        """Record one event for key; False (and nothing recorded) if the window is full."""
        now = self._clock()
        with self._lock:
            self._sweep(now)
            hits = self._hits.setdefault(key, deque())
            self._prune(hits, now)
            if len(hits) >= self.limit:
                return False
            hits.append(now)
            return True

    def remaining(self, key: str) -> int:
        now = self._clock()
        with self._lock:
            hits = self._hits.get(key)
            if not hits:
                return self.limit
            self._prune(hits, now)
            if not hits:
                self._hits.pop(key, None)
                return self.limit
            return max(0, self.limit - len(hits))

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self):
        with self._lock:
            self._hits.clear()


# --- Friend request limiter ---

# Built lazily from app config on first use; key: sender profile id
_FRIEND_REQUEST_LIMITER = None
_FRIEND_REQUEST_LIMITER_LOCK = threading.Lock()


def get_friend_request_limiter(config) -> SlidingWindowLimiter:
    global _FRIEND_REQUEST_LIMITER
    with _FRIEND_REQUEST_LIMITER_LOCK:
        if _FRIEND_REQUEST_LIMITER is None:
            _FRIEND_REQUEST_LIMITER = SlidingWindowLimiter(
                limit=config.get("FRIEND_REQUEST_RATE_LIMIT", 20),
                window_seconds=config.get("FRIEND_REQUEST_RATE_WINDOW_SECONDS", 3600),
            )
        return _FRIEND_REQUEST_LIMITER


def reset_friend_request_limiter():
    """Drop the limiter (and its history); the next call rebuilds it from config."""
    global _FRIEND_REQUEST_LIMITER
    with _FRIEND_REQUEST_LIMITER_LOCK:
        _FRIEND_REQUEST_LIMITER = None

import threading


class InFlightRegistry:
    """
    Keys with a submission currently in progress, per owner.

    Suppresses double submits (double clicks, retried requests) from one
    user while their previous call for the same key is still running.
    """

    def __init__(self):
        self._held: dict = {}
        self._lock = threading.Lock()

    def claim(self, owner: str, key: str) -> bool:
        with self._lock:
            keys = self._held.setdefault(owner, set())
            if key in keys:
                return False
            keys.add(key)
            return True

    def release(self, owner: str, key: str):
        with self._lock:
            keys = self._held.get(owner)
            if not keys:
                return
            keys.discard(key)
            if not keys:
                self._held.pop(owner, None)

    def is_held(self, owner: str, key: str) -> bool:
        with self._lock:
            return key in self._held.get(owner, ())

    def clear(self):
        with self._lock:
            self._held.clear()


# key: friend's profile id
FRIENDSHIP_LOCKS = InFlightRegistry()

# key: "<to_user_id>:<task_id>" for sends, invite id for accepts
CHALLENGE_LOCKS = InFlightRegistry()

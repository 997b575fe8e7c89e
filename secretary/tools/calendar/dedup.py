"""
Duplicate event guard

Remembers recently created events (title + start minute) for a short window
so a repeated chat message does not book the same event twice.
"""
import time
from datetime import datetime
from typing import Callable, Dict

DUPLICATE_EVENT_ERROR = "Duplicate event"


class RecentEventRegistry:
    """
    Time-windowed set of recently created event keys.

    Args:
        window_minutes: How long a key is remembered; 0 disables the guard
        clock: Monotonic clock in seconds (injectable for tests)
    """

    def __init__(self, window_minutes: int, clock: Callable[[], float] = time.monotonic):
        self.window_seconds = max(window_minutes, 0) * 60
        self._clock = clock
        self._seen: Dict[str, float] = {}

    @property
    def enabled(self) -> bool:
        return self.window_seconds > 0

    @staticmethod
    def key_for(title: str, start: datetime) -> str:
        return f"{title.strip().lower()}|{start.strftime('%Y-%m-%dT%H:%M%z')}"

    def is_duplicate(self, title: str, start: datetime) -> bool:
        if not self.enabled:
            return False
        self._prune()
        return self.key_for(title, start) in self._seen

    def remember(self, title: str, start: datetime) -> None:
        if self.enabled:
            self._seen[self.key_for(title, start)] = self._clock()

    def _prune(self) -> None:
        cutoff = self._clock() - self.window_seconds
        for key in [k for k, seen_at in self._seen.items() if seen_at <= cutoff]:
            del self._seen[key]

    def __len__(self) -> int:
        self._prune()
        return len(self._seen)

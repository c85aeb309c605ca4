import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional


@dataclass
class ProviderState:
    count: int
    reset_at: float
    throttled: bool = False


class ProviderRateLimiter:
    """Per-backend rolling request counter.

    Every read-modify-write happens under one lock so concurrent completion
    calls against the same backend never lose or double an update.
    """

    def __init__(
        self,
        window_seconds: float = 60.0,
        cooldown_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_seconds = window_seconds
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._states: Dict[str, ProviderState] = {}

    def is_limited(self, provider: str, rpm: int) -> bool:
        with self._lock:
            state = self._current(provider)
            if state is None:
                return False
            return state.throttled or state.count >= rpm

    def record_success(self, provider: str) -> int:
        with self._lock:
            state = self._current(provider)
            if state is None:
                state = ProviderState(count=0, reset_at=self._clock() + self.window_seconds)
                self._states[provider] = state
            state.count += 1
            return state.count

    def mark_limited(self, provider: str) -> None:
        with self._lock:
            state = self._current(provider)
            count = state.count if state else 0
            self._states[provider] = ProviderState(
                count=count,
                reset_at=self._clock() + self.cooldown_seconds,
                throttled=True,
            )

    def snapshot(self, provider: str) -> Optional[ProviderState]:
        with self._lock:
            state = self._current(provider)
            return ProviderState(state.count, state.reset_at, state.throttled) if state else None

    def _current(self, provider: str) -> Optional[ProviderState]:
        # caller holds the lock
        state = self._states.get(provider)
        if state is not None and self._clock() >= state.reset_at:
            del self._states[provider]
            return None
        return state

import threading
import time
from collections import defaultdict
from typing import Callable, Dict, List

class LoginRateLimiter:
    """Janela deslizante de tentativas de login erradas por IP"""

    def __init__(self, max_attempts: int = 5, window_minutes: int = 15, clock: Callable[[], float] = time.monotonic):
        self.max_attempts = max_attempts
        self.window_seconds = window_minutes * 60
        self._clock = clock
        self._attempts: Dict[str, List[float]] = defaultdict(list)
        self._lock = threading.Lock()

    def _recent(self, ip: str, now: float) -> List[float]:
        return [t for t in self._attempts.get(ip, []) if now - t < self.window_seconds]

    def is_allowed(self, ip: str) -> bool:
        with self._lock:
            return len(self._recent(ip, self._clock())) < self.max_attempts

    def record_failure(self, ip: str) -> None:
        with self._lock:
            self._attempts[ip].append(self._clock())

    def reset(self, ip: str) -> None:
        with self._lock:
            self._attempts.pop(ip, None)

    def prune(self) -> None:
        """Descarta tentativas fora da janela (rodado pelo scheduler)"""
        with self._lock:
            now = self._clock()
            for ip in list(self._attempts):
                recent = self._recent(ip, now)
                if recent:
                    self._attempts[ip] = recent
                else:
                    del self._attempts[ip]

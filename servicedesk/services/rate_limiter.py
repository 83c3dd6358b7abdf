"""In-memory login throttling."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Deque, Dict, Optional, Tuple
import logging

from servicedesk.config import settings
from servicedesk.core.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

MINUTE = 60
HOUR = 3600


class InMemoryRateLimiter:
    """Sliding-window counter per key, for single-node deployments."""

    def __init__(self, sweep_interval: int = MINUTE) -> None:
        self._lock = threading.Lock()
        self._hits: Dict[str, Deque[float]] = {}
        self._windows: Dict[str, int] = {}
        self._sweep_interval = sweep_interval
        self._last_sweep = time.monotonic()

    def _prune(self, key: str, window_seconds: int, now: float) -> Deque[float]:
        hits = self._hits.setdefault(key, deque())
        self._windows[key] = window_seconds
        cutoff = now - window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        return hits

    def _sweep(self, now: float) -> None:
        # Drop keys whose window has fully expired
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        for key in list(self._hits):
            hits = self._prune(key, self._windows[key], now)
            if not hits:
                del self._hits[key]
                del self._windows[key]

    def __len__(self) -> int:
        return len(self._hits)

    def allow(self, key: str, limit: int, window_seconds: int, now: Optional[float] = None) -> bool:
        now = time.monotonic() if now is None else now
        with self._lock:
            self._sweep(now)
            hits = self._prune(key, window_seconds, now)
            if len(hits) >= limit:
                return False
            hits.append(now)
            return True

    def check_login(self, client_ip: str, email: str) -> None:
        """
        Count one login attempt against the per-minute and per-hour windows.

        Raises:
            RateLimitExceededError: either window is exhausted
        """
        key = f"login:{client_ip}:{email}"
        windows: Tuple[Tuple[str, int, int], ...] = (
            ("minute", settings.LOGIN_RATE_LIMIT_PER_MINUTE, MINUTE),
            ("hour", settings.LOGIN_RATE_LIMIT_PER_HOUR, HOUR),
        )
        for name, limit, seconds in windows:
            if not self.allow(f"{key}:{name}", limit, seconds):
                logger.warning(f"Login rate limit ({name}) exceeded for {email} from {client_ip}")
                raise RateLimitExceededError("Too many login attempts. Please try again later.")

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._windows.clear()


rate_limiter = InMemoryRateLimiter()

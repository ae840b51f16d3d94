"""IP based sliding-window rate limiting for code requests and admin login."""
from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from threading import Lock

from fastapi import Request

from elections.core.config import get_settings
from elections.core.errors import RateLimitError
from elections.obs.audit import log_security_event
from elections.services.location import client_ip, user_agent

_LOOPBACK = {"127.0.0.1", "::1", "localhost"}


class SlidingWindowRateLimiter:
    """Allow ``max_requests`` per client address within ``window_seconds``.

    State is process local, so limits apply per worker.
    """

    def __init__(
        self,
        *,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._request_timestamps: dict[str, list[datetime]] = {}
        self._lock = Lock()

    def _cleanup(self, client_key: str, now: datetime) -> None:
        window_start = now - timedelta(seconds=self.window_seconds)
        self._request_timestamps[client_key] = [
            ts for ts in self._request_timestamps.get(client_key, []) if ts > window_start
        ]

    def hit(self, client_key: str) -> bool:
        """Record a request for ``client_key``; return False when over the limit."""
        now = self._clock()
        with self._lock:
            self._cleanup(client_key, now)
            timestamps = self._request_timestamps[client_key]
            if len(timestamps) >= self.max_requests:
                return False
            timestamps.append(now)
            return True

    def remaining(self, client_key: str) -> int:
        now = self._clock()
        with self._lock:
            self._cleanup(client_key, now)
            return max(0, self.max_requests - len(self._request_timestamps[client_key]))

    def reset(self) -> None:
        with self._lock:
            self._request_timestamps.clear()


_settings = get_settings()
limiter = SlidingWindowRateLimiter(
    max_requests=_settings.rate_limit_max_requests,
    window_seconds=_settings.rate_limit_window_seconds,
)


def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency rejecting callers over the limit with 429."""
    settings = get_settings()
    ip = client_ip(request, trust_forwarded=settings.trust_forwarded_headers)
    if settings.environment == "development" and ip in _LOOPBACK:
        return
    if not limiter.hit(ip):
        log_security_event(
            "RATE_LIMITED", ip_address=ip, user_agent=user_agent(request), path=request.url.path
        )
        raise RateLimitError()


__all__ = ["SlidingWindowRateLimiter", "enforce_rate_limit", "limiter"]

"""In-memory per-client limiter for generation requests."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from threading import Lock

from fastapi import HTTPException, Request, status

from smartnotes.config import get_settings


class GenerationRateLimiter:
    """Fixed one-minute windows keyed by client address.

    Each generation call costs a model request, so the limit is per client
    and per minute. Single-process only.
    """

    def __init__(self) -> None:
        self._counters: dict[tuple[str, str], int] = defaultdict(int)
        self._lock = Lock()

    def hit(self, client_key: str, *, limit: int, now: datetime | None = None) -> bool:
        """Count one request; ``False`` once the client is over ``limit``."""

        moment = now or datetime.now(timezone.utc)
        window = moment.strftime("%Y%m%d%H%M")
        with self._lock:
            for stale_key in [key for key in self._counters if key[1] != window]:
                del self._counters[stale_key]
            self._counters[(client_key, window)] += 1
            return self._counters[(client_key, window)] <= limit

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()


generation_rate_limiter = GenerationRateLimiter()


def rate_limit_dependency(request: Request) -> None:
    settings = get_settings()
    client_key = request.client.host if request.client else "unknown"
    if not generation_rate_limiter.hit(client_key, limit=settings.rate_limit_per_minute):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Rate limit exceeded"
        )

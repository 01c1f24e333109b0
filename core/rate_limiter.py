# core/rate_limiter.py

from collections import defaultdict
from threading import Lock
from typing import Dict, List, Optional, Tuple
import time

from fastapi import HTTPException, Request


class RateLimiter:
    """
    Sliding-window in-memory rate limiter.
    One instance lives on the application context.
    """

    def __init__(self):
        self._store: Dict[str, List[float]] = defaultdict(list)
        self._lock = Lock()

    def check(self, identifier: str, max_requests: int = 10, window_seconds: int = 60) -> Tuple[bool, int]:
        """
        Record a request for `identifier`.

        Returns:
            Tuple of (allowed: bool, remaining: int)
        """
        now = time.time()
        window_start = now - window_seconds

        with self._lock:
            requests = [ts for ts in self._store[identifier] if ts > window_start]

            if len(requests) >= max_requests:
                self._store[identifier] = requests
                return False, 0

            requests.append(now)
            self._store[identifier] = requests
            return True, max_requests - len(requests)


def get_rate_limit_identifier(request: Request, key: Optional[str] = None) -> str:
    """
    Unique identifier for rate limiting.
    Prefers an explicit key (email, user id), otherwise the client IP.
    """
    if key:
        return f"key:{key}"

    client_ip = request.client.host if request.client else "unknown"

    # Check for forwarded IP (common behind proxies)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        client_ip = forwarded_for.split(",")[0].strip()

    return f"ip:{client_ip}"


def require_rate_limit(
    limiter: RateLimiter,
    request: Request,
    key: Optional[str] = None,
    max_requests: int = 10,
    window_seconds: int = 60,
) -> int:
    """
    Raises HTTPException 429 when the limit is exceeded.
    Returns the remaining request count otherwise.
    """
    identifier = get_rate_limit_identifier(request, key)
    allowed, remaining = limiter.check(identifier, max_requests, window_seconds)

    if not allowed:
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Maximum {max_requests} requests per {window_seconds} seconds.",
            headers={
                "X-RateLimit-Limit": str(max_requests),
                "X-RateLimit-Window": str(window_seconds),
                "Retry-After": str(window_seconds),
            },
        )

    return remaining

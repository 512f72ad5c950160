"""Rate limiting for authentication endpoints.

Slows down credential stuffing on login, account farming on signup and
refresh-token hammering. State is in-process; each API instance enforces its
own limits.
"""

import time
from collections import defaultdict
from dataclasses import dataclass
from threading import Lock
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from loguru import logger

from greenreceipt.i18n import Language, get_language, translate


@dataclass
class RateLimitConfig:
    """Configuration for rate limiting."""

    max_requests: int  # Maximum requests allowed
    window_seconds: int  # Time window in seconds
    block_seconds: int  # How long to block after limit exceeded


LOGIN_RATE_LIMIT = RateLimitConfig(max_requests=10, window_seconds=60, block_seconds=300)
SIGNUP_RATE_LIMIT = RateLimitConfig(max_requests=5, window_seconds=60, block_seconds=600)
REFRESH_RATE_LIMIT = RateLimitConfig(max_requests=30, window_seconds=60, block_seconds=60)


class InMemoryRateLimiter:
    """
    In-memory rate limiter using a sliding window.

    Thread-safe; requests are keyed by ``action:identifier``.
    """

    def __init__(self):
        self._requests: dict[str, list[float]] = defaultdict(list)
        self._blocked: dict[str, float] = {}
        self._lock = Lock()

    def _get_key(self, identifier: str, action: str) -> str:
        return f"{action}:{identifier}"

    def _cleanup_old_requests(self, key: str, window_seconds: int, now: float) -> None:
        cutoff = now - window_seconds
        self._requests[key] = [ts for ts in self._requests[key] if ts > cutoff]

    def is_blocked(self, identifier: str, action: str) -> tuple[bool, Optional[int]]:
        """
        Check if an identifier is currently blocked.

        Returns:
            Tuple of (is_blocked, seconds_remaining)
        """
        key = self._get_key(identifier, action)
        with self._lock:
            blocked_until = self._blocked.get(key)
            if blocked_until is not None:
                now = time.time()
                if now < blocked_until:
                    return True, max(1, int(blocked_until - now))
                del self._blocked[key]
        return False, None

    def check_rate_limit(
        self, identifier: str, action: str, config: RateLimitConfig
    ) -> tuple[bool, Optional[int]]:
        """
        Check if a request is allowed and record it.

        Returns:
            Tuple of (is_allowed, retry_after_seconds)
        """
        key = self._get_key(identifier, action)
        now = time.time()

        with self._lock:
            blocked_until = self._blocked.get(key)
            if blocked_until is not None:
                if now < blocked_until:
                    return False, max(1, int(blocked_until - now))
                del self._blocked[key]

            self._cleanup_old_requests(key, config.window_seconds, now)

            if len(self._requests[key]) >= config.max_requests:
                self._blocked[key] = now + config.block_seconds
                logger.warning(
                    f"Rate limit exceeded: action={action}, identifier={identifier}, "
                    f"blocked_for={config.block_seconds}s"
                )
                return False, config.block_seconds

            self._requests[key].append(now)
            return True, None

    def reset(self, identifier: str, action: str) -> None:
        """Forget an identifier's history (e.g. after a successful login)."""
        key = self._get_key(identifier, action)
        with self._lock:
            self._requests.pop(key, None)
            self._blocked.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._requests.clear()
            self._blocked.clear()


_rate_limiter = InMemoryRateLimiter()


def get_rate_limiter() -> InMemoryRateLimiter:
    """Get the global rate limiter instance."""
    return _rate_limiter


def get_client_identifier(request: Request) -> str:
    """
    Identify the client by IP address.

    Honors ``X-Forwarded-For`` / ``X-Real-IP`` when the API sits behind a
    reverse proxy.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


def _enforce(request: Request, action: str, limit: RateLimitConfig, language: Language) -> None:
    identifier = get_client_identifier(request)
    allowed, retry_after = _rate_limiter.check_rate_limit(identifier, action, limit)
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=translate("too_many_requests", language),
            headers={"Retry-After": str(retry_after)},
        )


def check_login_rate_limit(request: Request, language: Language = Depends(get_language)) -> None:
    """Dependency raising 429 once a client exceeds the login limit."""
    _enforce(request, "login", LOGIN_RATE_LIMIT, language)


def check_signup_rate_limit(request: Request, language: Language = Depends(get_language)) -> None:
    """Dependency raising 429 once a client exceeds the signup limit."""
    _enforce(request, "signup", SIGNUP_RATE_LIMIT, language)


def check_refresh_rate_limit(request: Request, language: Language = Depends(get_language)) -> None:
    _enforce(request, "refresh", REFRESH_RATE_LIMIT, language)


def reset_login_rate_limit(request: Request) -> None:
    """Reset login rate limit after successful login."""
    _rate_limiter.reset(get_client_identifier(request), "login")

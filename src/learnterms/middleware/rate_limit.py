"""In-memory sliding window rate limiting, keyed by client IP."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from learnterms.clock import Clock, SystemClock

logger = structlog.get_logger()

# Paths exempt from rate limiting
_EXEMPT_PATHS = frozenset({"/health", "/ready"})

DEFAULT_MAX_REQUESTS = 30
DEFAULT_WINDOW_MS = 60_000


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    retry_after_ms: float
    remaining: int = 0


@dataclass
class _Window:
    window_ms: float
    timestamps: list[float] = field(default_factory=list)


class SlidingWindowRateLimiter:
    """Per-key request timestamps within a sliding window.

    A full sweep over every key runs at most once per ``cleanup_interval_ms``;
    each key keeps the window it was last checked with so the sweep never
    drops timestamps a longer rule still counts. Single event loop only.
    """

    def __init__(self, cleanup_interval_ms: float = 60_000, clock: Clock | None = None) -> None:
        self.cleanup_interval_ms = cleanup_interval_ms
        self._clock = clock or SystemClock()
        self._windows: dict[str, _Window] = {}
        self._last_cleanup_ms = self._clock.now_ms()

    def __len__(self) -> int:
        return len(self._windows)

    def check(
        self,
        key: str,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_ms: float = DEFAULT_WINDOW_MS,
    ) -> RateLimitResult:
        if max_requests < 1 or window_ms <= 0:
            msg = f"rate limit rule needs max_requests >= 1 and window_ms > 0, got ({max_requests}, {window_ms})"
            raise ValueError(msg)

        now = self._clock.now_ms()
        self._cleanup(now)

        cutoff = now - window_ms
        entry = self._windows.get(key)
        timestamps = [t for t in entry.timestamps if t > cutoff] if entry else []

        if len(timestamps) >= max_requests:
            self._windows[key] = _Window(window_ms, timestamps)
            oldest_in_window = timestamps[0]
            return RateLimitResult(allowed=False, retry_after_ms=oldest_in_window + window_ms - now)

        timestamps.append(now)
        self._windows[key] = _Window(window_ms, timestamps)
        return RateLimitResult(allowed=True, retry_after_ms=0, remaining=max_requests - len(timestamps))

    def _cleanup(self, now: float) -> None:
        if now - self._last_cleanup_ms < self.cleanup_interval_ms:
            return
        self._last_cleanup_ms = now

        for key in list(self._windows):
            entry = self._windows[key]
            valid = [t for t in entry.timestamps if t > now - entry.window_ms]
            if valid:
                entry.timestamps = valid
            else:
                del self._windows[key]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Return 429 once a client IP exceeds the rule matching the request path."""

    def __init__(
        self,
        app: Any,  # noqa: ANN401
        limiter: SlidingWindowRateLimiter,
        requests_per_window: int = DEFAULT_MAX_REQUESTS,
        window_ms: int = DEFAULT_WINDOW_MS,
        rules: Mapping[str, tuple[int, int]] | None = None,
    ) -> None:
        super().__init__(app)
        for prefix, (max_requests, rule_window_ms) in {"*": (requests_per_window, window_ms), **(rules or {})}.items():
            if max_requests < 1 or rule_window_ms <= 0:
                msg = f"invalid rate limit rule for {prefix!r}: ({max_requests}, {rule_window_ms})"
                raise ValueError(msg)
        self.limiter = limiter
        self.default_rule = (requests_per_window, window_ms)
        # longest prefix first
        self.rules = sorted((rules or {}).items(), key=lambda item: len(item[0]), reverse=True)

    def _match(self, path: str) -> tuple[str, int, int]:
        for prefix, (max_requests, window_ms) in self.rules:
            if path.startswith(prefix):
                return prefix, max_requests, window_ms
        return "*", *self.default_rule

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Check rate limit, return 429 if exceeded."""
        if request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        rule, max_requests, window_ms = self._match(request.url.path)
        result = self.limiter.check(f"{rule}:{client_ip}", max_requests, window_ms)

        if not result.allowed:
            logger.info("rate_limited", client_ip=client_ip, rule=rule, retry_after_ms=result.retry_after_ms)
            return JSONResponse(
                status_code=429,
                content={
                    "detail": "Too many requests. Try again later.",
                    "retry_after_ms": math.ceil(result.retry_after_ms),
                },
                headers={
                    "Retry-After": str(max(1, math.ceil(result.retry_after_ms / 1000))),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Limit": str(max_requests),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        response.headers["X-RateLimit-Limit"] = str(max_requests)
        return response

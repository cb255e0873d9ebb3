"""Middleware registration."""

from fastapi import FastAPI

from learnterms.config import Settings
from learnterms.middleware.cors import setup_cors
from learnterms.middleware.error_handler import setup_error_handlers
from learnterms.middleware.logging import setup_logging
from learnterms.middleware.rate_limit import RateLimitMiddleware, SlidingWindowRateLimiter
from learnterms.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings, limiter: SlidingWindowRateLimiter | None = None) -> None:
    """Register all middleware in the correct order.

    Starlette executes middleware in reverse-add order (last added = outermost).
    CORS must be outermost so it wraps 429 responses from the rate limiter.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    if settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            limiter=limiter or SlidingWindowRateLimiter(settings.rate_limit_cleanup_interval_ms),
            requests_per_window=settings.rate_limit_requests,
            window_ms=settings.rate_limit_window_ms,
            rules=settings.rate_limit_rules,
        )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)

"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from learnterms.analytics.router import router as analytics_router
from learnterms.analytics.sink import RedisStreamSink
from learnterms.analytics.tracker import QuestionAnsweredTracker, build_question_deduper
from learnterms.config import Settings, get_settings
from learnterms.database import close_db, init_db
from learnterms.health.router import router as health_router
from learnterms.middleware import setup_middleware
from learnterms.middleware.rate_limit import SlidingWindowRateLimiter
from learnterms.ordering.router import router as ordering_router
from learnterms.redis_client import close_redis, get_redis, init_redis

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings: Settings = app.state.settings
    await init_db(settings.database_url, echo=settings.debug)
    await init_redis(settings.redis_url, settings.redis_max_connections)
    logger.info("startup", environment=settings.environment, version=settings.app_version)

    yield

    tracker: QuestionAnsweredTracker | None = app.state.question_tracker
    if tracker is not None:
        await tracker.flush()
    await close_db()
    await close_redis()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    The rate limiter and the answer tracker are built here, once per app, and
    kept on ``app.state``.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="LearnTerms API",
        description="Ordered course content, answer analytics and request throttling for LearnTerms",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    limiter = SlidingWindowRateLimiter(settings.rate_limit_cleanup_interval_ms)
    app.state.rate_limiter = limiter

    app.state.question_tracker = None
    if settings.analytics_enabled:
        deduper = build_question_deduper(
            window_ms=settings.analytics_dedup_window_ms,
            retention_factor=settings.analytics_retention_factor,
            cleanup_interval_ms=settings.analytics_cleanup_interval_ms,
        )
        sink = RedisStreamSink(get_redis, maxlen=settings.analytics_stream_maxlen)
        app.state.question_tracker = QuestionAnsweredTracker(deduper, sink)

    setup_middleware(app, settings, limiter=limiter)
    app.include_router(health_router, tags=["Health"])
    app.include_router(ordering_router)
    app.include_router(analytics_router)

    return app


app = create_app()

"""Liveness, readiness and version endpoints.

None of these paths are rate limited.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from learnterms.config import Settings
from learnterms.database import get_session
from learnterms.redis_client import ping_redis

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


async def _check_database(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except Exception as exc:
        return f"error: {exc}"
    return "ok"


async def _check_redis() -> str:
    try:
        return "ok" if await ping_redis() else "error: no pong"
    except Exception as exc:
        return f"error: {exc}"


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Report each backing service; ``degraded`` unless all of them answer."""
    checks = {"database": await _check_database(db), "redis": await _check_redis()}
    status = "ready" if all(result == "ok" for result in checks.values()) else "degraded"
    return {"status": status, "checks": checks}


@router.get("/version")
async def version(request: Request) -> dict[str, str]:
    settings: Settings = request.app.state.settings
    return {"version": settings.app_version, "environment": settings.environment}

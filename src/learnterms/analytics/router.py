"""Analytics ingestion endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from learnterms.analytics.events import QuestionAnsweredEvent
from learnterms.analytics.tracker import QuestionAnsweredTracker

router = APIRouter(prefix="/api/v1/analytics", tags=["Analytics"])


class CaptureResponse(BaseModel):
    captured: bool


def get_question_tracker(request: Request) -> QuestionAnsweredTracker | None:
    """Tracker built by ``create_app``; None when analytics are disabled."""
    return getattr(request.app.state, "question_tracker", None)


@router.post("/question-answered", response_model=CaptureResponse)
async def question_answered(
    event: QuestionAnsweredEvent,
    tracker: QuestionAnsweredTracker | None = Depends(get_question_tracker),  # noqa: B008
) -> CaptureResponse:
    """Record an answer submission. ``captured`` is False for a recent duplicate."""
    if tracker is None:
        return CaptureResponse(captured=False)
    return CaptureResponse(captured=tracker.capture(event))

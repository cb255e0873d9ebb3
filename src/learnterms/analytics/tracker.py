"""question_answered capture: dedup decision first, then fire-and-forget delivery."""

from __future__ import annotations

import asyncio
import uuid
from typing import Any

import structlog

from learnterms.analytics.dedup import FingerprintDeduper
from learnterms.analytics.events import QUESTION_ANSWERED, QuestionAnsweredEvent
from learnterms.analytics.sink import AnalyticsSink
from learnterms.clock import Clock

logger = structlog.get_logger()


def build_question_deduper(
    window_ms: float = 1500,
    retention_factor: int = 3,
    cleanup_interval_ms: float | None = None,
    clock: Clock | None = None,
) -> FingerprintDeduper:
    return FingerprintDeduper(
        QuestionAnsweredEvent.FINGERPRINT_FIELDS,
        window_ms=window_ms,
        retention_factor=retention_factor,
        cleanup_interval_ms=cleanup_interval_ms,
        clock=clock,
    )


class QuestionAnsweredTracker:
    """Deduplicates answer submissions and forwards the survivors to a sink.

    ``capture`` decides synchronously and returns at once; delivery runs as a
    background task whose failure is logged and never changes the decision.
    Must be called from a running event loop.
    """

    def __init__(self, deduper: FingerprintDeduper, sink: AnalyticsSink) -> None:
        self.deduper = deduper
        self.sink = sink
        self._pending: set[asyncio.Task[None]] = set()

    def capture(self, event: QuestionAnsweredEvent) -> bool:
        if not self.deduper.should_emit(event.model_dump()):
            logger.debug("question_answered_suppressed", question_id=event.question_id)
            return False

        properties: dict[str, Any] = event.to_properties()
        properties["submission_id"] = str(uuid.uuid4())
        properties["client_deduped"] = True

        task = asyncio.get_running_loop().create_task(self._deliver(properties))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return True

    async def _deliver(self, properties: dict[str, Any]) -> None:
        try:
            await self.sink.capture(QUESTION_ANSWERED, properties)
        except Exception:
            logger.warning(
                "analytics_capture_failed",
                event_name=QUESTION_ANSWERED,
                question_id=properties.get("question_id"),
                exc_info=True,
            )

    async def flush(self) -> None:
        """Wait for deliveries still in flight."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._pending)

"""Fingerprint deduplication for analytics events.

An event is reduced to a fingerprint over its identifying fields. A repeat
of a fingerprint within the suppression window is dropped; entries older
than ``retention_factor`` windows are pruned lazily, at most once per
cleanup interval.

The table is process-local and has no locking: callers run on a single
event loop and ``should_emit`` never awaits.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

from learnterms.clock import Clock, SystemClock
from learnterms.errors import ValidationError

_COLLECTION_TYPES = (list, tuple, set, frozenset)


def _canonical(value: Any) -> Any:  # noqa: ANN401
    if isinstance(value, _COLLECTION_TYPES):
        return sorted((str(member) for member in value))
    return value


class FingerprintDeduper:
    """Time-window deduplication keyed by event fingerprint."""

    def __init__(
        self,
        key_fields: Sequence[str],
        window_ms: float = 1500,
        retention_factor: int = 3,
        cleanup_interval_ms: float | None = None,
        clock: Clock | None = None,
    ) -> None:
        if not key_fields:
            msg = "key_fields must not be empty"
            raise ValueError(msg)
        if window_ms <= 0:
            msg = "window_ms must be positive"
            raise ValueError(msg)
        self.key_fields = tuple(sorted(key_fields))
        self.window_ms = window_ms
        self.retention_ms = window_ms * retention_factor
        self.cleanup_interval_ms = window_ms if cleanup_interval_ms is None else cleanup_interval_ms
        self._clock = clock or SystemClock()
        self._last_seen: dict[str, float] = {}
        self._last_prune_ms = self._clock.now_ms()
        self._emitted = 0
        self._suppressed = 0

    def __len__(self) -> int:
        return len(self._last_seen)

    def fingerprint(self, event: Mapping[str, Any]) -> str:
        """Deterministic key over the identifying fields.

        Collection values are sorted by their string form, so enumeration
        order does not matter. Values are JSON-encoded as one array, which
        keeps field boundaries unambiguous.
        """
        values = []
        for name in self.key_fields:
            value = event.get(name)
            if value is None:
                raise ValidationError(f"missing identifying field '{name}'", field=name)
            values.append(_canonical(value))
        return json.dumps(values, separators=(",", ":"), ensure_ascii=False, default=str)

    def should_emit(self, event: Mapping[str, Any]) -> bool:
        """True if the event should be emitted, False if it is a recent duplicate.

        Side effect: an emitted event refreshes its fingerprint's timestamp.
        A suppressed one does not, so a steady stream of repeats is let
        through once per window.
        """
        fingerprint = self.fingerprint(event)
        now = self._clock.now_ms()
        if now - self._last_prune_ms >= self.cleanup_interval_ms:
            self.prune(now)

        last_seen = self._last_seen.get(fingerprint)
        if last_seen is not None and now - last_seen < self.window_ms:
            self._suppressed += 1
            return False

        self._last_seen[fingerprint] = now
        self._emitted += 1
        return True

    def prune(self, now_ms: float) -> int:
        """Drop entries idle for longer than the retention horizon."""
        self._last_prune_ms = now_ms
        stale = [fp for fp, seen in self._last_seen.items() if now_ms - seen > self.retention_ms]
        for fingerprint in stale:
            del self._last_seen[fingerprint]
        return len(stale)

    @property
    def stats(self) -> dict[str, int]:
        return {
            "tracked": len(self._last_seen),
            "emitted": self._emitted,
            "suppressed": self._suppressed,
        }

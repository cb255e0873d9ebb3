"""Shared test fixtures: fake clock, in-memory record store, app client."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Hashable, Sequence
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from learnterms.config import Settings
from learnterms.main import create_app
from learnterms.ordering.reindex import OrderedItem
from learnterms.ordering.router import get_ordering_service
from learnterms.ordering.service import OrderingService


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start_ms: float = 0) -> None:
        self.ms = start_ms

    def now_ms(self) -> float:
        return self.ms

    def set(self, ms: float) -> None:
        self.ms = ms

    def advance(self, ms: float) -> None:
        self.ms += ms


class InMemoryRecordStore:
    """RecordStore over plain dicts that rejects duplicate orders within a group.

    The uniqueness check runs after every patch, like a non-deferred UNIQUE
    constraint would.
    """

    def __init__(self, parent_fields: Sequence[str], records: Sequence[dict[str, Any]] = ()) -> None:
        self.parent_fields = tuple(parent_fields)
        self.records: dict[str, dict[str, Any]] = {r["id"]: dict(r) for r in records}
        self.patches: list[tuple[str, dict[str, Any]]] = []

    def _parent_key(self, record: dict[str, Any]) -> Hashable:
        values = tuple(record[f] for f in self.parent_fields)
        return values[0] if len(values) == 1 else values

    def _item(self, record: dict[str, Any]) -> OrderedItem:
        return OrderedItem(record["id"], self._parent_key(record), record["order"])

    async def get(self, record_id: str) -> OrderedItem | None:
        record = self.records.get(record_id)
        return self._item(record) if record is not None else None

    async def query(self, parent_key: Hashable) -> list[OrderedItem]:
        items = [self._item(r) for r in self.records.values() if self._parent_key(r) == parent_key]
        return sorted(items, key=lambda i: i.order)

    async def patch(self, record_id: str, fields: dict[str, Any]) -> None:
        self.records[record_id].update(fields)
        self.patches.append((record_id, dict(fields)))
        if "order" in fields:
            record = self.records[record_id]
            key = self._parent_key(record)
            clashes = [
                r["id"]
                for r in self.records.values()
                if r["id"] != record_id and self._parent_key(r) == key and r["order"] == record["order"]
            ]
            if clashes:
                msg = f"duplicate order {record['order']} in group {key!r}: {record_id} vs {clashes}"
                raise AssertionError(msg)

    async def increment(self, record_id: str, field: str, delta: int) -> None:
        self.records[record_id][field] = self.records[record_id].get(field, 0) + delta

    async def clone(self, record_id: str, fields: dict[str, Any]) -> None:
        copy = {**self.records[record_id], **fields}
        self.records[copy["id"]] = copy
        await self.patch(copy["id"], {"order": copy["order"]})

    def orders(self, parent_key: Hashable) -> dict[str, int]:
        return {r["id"]: r["order"] for r in self.records.values() if self._parent_key(r) == parent_key}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def class_store() -> InMemoryRecordStore:
    return InMemoryRecordStore(
        ("cohort_id", "semester_id"),
        [
            {"id": "bio101", "cohort_id": "c1", "semester_id": "s1", "order": 0},
            {"id": "chem101", "cohort_id": "c1", "semester_id": "s1", "order": 1},
            {"id": "anat101", "cohort_id": "c1", "semester_id": "s1", "order": 2},
            {"id": "pharm201", "cohort_id": "c1", "semester_id": "s2", "order": 0},
            {"id": "path201", "cohort_id": "c1", "semester_id": "s2", "order": 1},
            {"id": "other", "cohort_id": "c2", "semester_id": "s1", "order": 0},
        ],
    )


@pytest.fixture
def module_store() -> InMemoryRecordStore:
    return InMemoryRecordStore(
        ("class_id",),
        [
            {"id": "m1", "class_id": "bio101", "order": 0, "question_count": 4},
            {"id": "m2", "class_id": "bio101", "order": 1, "question_count": 2},
            {"id": "m3", "class_id": "bio101", "order": 2, "question_count": 0},
        ],
    )


@pytest.fixture
def question_store() -> InMemoryRecordStore:
    return InMemoryRecordStore(
        ("module_id",),
        [
            {"id": "q1", "module_id": "m1", "order": 0},
            {"id": "q2", "module_id": "m1", "order": 1},
            {"id": "q3", "module_id": "m1", "order": 2},
            {"id": "q4", "module_id": "m1", "order": 3},
            {"id": "q5", "module_id": "m2", "order": 0},
            {"id": "q6", "module_id": "m2", "order": 1},
        ],
    )


@pytest.fixture
def ordering_service(
    class_store: InMemoryRecordStore,
    module_store: InMemoryRecordStore,
    question_store: InMemoryRecordStore,
) -> OrderingService:
    return OrderingService(classes=class_store, modules=module_store, questions=question_store)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        log_format="console",
        rate_limit_requests=1000,
        rate_limit_rules={},
    )


@pytest.fixture
def app(settings: Settings, ordering_service: OrderingService) -> FastAPI:
    """Fresh app; ordering runs on the in-memory stores."""
    application = create_app(settings)
    application.dependency_overrides[get_ordering_service] = lambda: ordering_service
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

"""Record stores the ordering service reads groups from and writes updates to."""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from typing import Any, Protocol

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from learnterms.ordering.reindex import OrderedItem


class RecordStore(Protocol):
    async def get(self, record_id: str) -> OrderedItem | None: ...

    async def query(self, parent_key: Hashable) -> list[OrderedItem]: ...

    async def patch(self, record_id: str, fields: dict[str, Any]) -> None: ...

    async def increment(self, record_id: str, field: str, delta: int) -> None: ...

    async def clone(self, record_id: str, fields: dict[str, Any]) -> None: ...


class SqlRecordStore:
    """RecordStore over one ORM model with an integer ``order`` column.

    ``parent_columns`` names the columns that define a group. One column gives
    scalar parent keys, several give tuples. Statements run in the session's
    current transaction; committing is the caller's job.
    """

    def __init__(self, session: AsyncSession, model: Any, parent_columns: Sequence[str]) -> None:  # noqa: ANN401
        if not parent_columns:
            msg = "parent_columns must name at least one column"
            raise ValueError(msg)
        self.session = session
        self.model = model
        self.parent_columns = tuple(parent_columns)

    def _parent_key(self, row: Any) -> Hashable:  # noqa: ANN401
        values = tuple(getattr(row, column) for column in self.parent_columns)
        return values[0] if len(values) == 1 else values

    def _to_item(self, row: Any) -> OrderedItem:  # noqa: ANN401
        return OrderedItem(id=row.id, parent_key=self._parent_key(row), order=row.order)

    async def get(self, record_id: str) -> OrderedItem | None:
        row = await self.session.get(self.model, record_id)
        return self._to_item(row) if row is not None else None

    async def query(self, parent_key: Hashable) -> list[OrderedItem]:
        values = parent_key if len(self.parent_columns) > 1 else (parent_key,)
        if not isinstance(values, tuple) or len(values) != len(self.parent_columns):
            msg = f"parent key {parent_key!r} does not match columns {self.parent_columns}"
            raise ValueError(msg)

        stmt = select(self.model)
        for column, value in zip(self.parent_columns, values):
            stmt = stmt.where(getattr(self.model, column) == value)
        result = await self.session.execute(stmt.order_by(self.model.order))
        return [self._to_item(row) for row in result.scalars().all()]

    async def patch(self, record_id: str, fields: dict[str, Any]) -> None:
        await self.session.execute(
            update(self.model).where(self.model.id == record_id).values(**fields)
        )

    async def increment(self, record_id: str, field: str, delta: int) -> None:
        column = getattr(self.model, field)
        await self.session.execute(
            update(self.model).where(self.model.id == record_id).values({field: column + delta})
        )

    async def clone(self, record_id: str, fields: dict[str, Any]) -> None:
        """Insert a copy of ``record_id`` with ``fields`` overriding its columns."""
        row = await self.session.get(self.model, record_id)
        if row is None:
            msg = f"{self.model.__name__} {record_id} not found"
            raise LookupError(msg)
        values = {column.key: getattr(row, column.key) for column in self.model.__table__.columns}
        values.update(fields)
        self.session.add(self.model(**values))
        await self.session.flush()

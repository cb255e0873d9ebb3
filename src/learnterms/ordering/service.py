"""Ordering service: reorder and move course content while keeping groups dense."""

from __future__ import annotations

import uuid
from collections.abc import Hashable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from learnterms.db.models import Module, Question, SchoolClass
from learnterms.ordering.reindex import OrderedItem, OrderUpdate, apply_updates, compact, next_order, reorder
from learnterms.ordering.store import RecordStore, SqlRecordStore

logger = structlog.get_logger()

# order value a moved record is parked at while its siblings shift
PARKED_ORDER = -1


def _net_updates(group: Sequence[OrderedItem], writes: Sequence[OrderUpdate]) -> list[OrderUpdate]:
    """Collapse a write sequence to one update per record whose order changed."""
    stored = {item.id: item.order for item in group}
    final: dict[str, int] = {}
    for write in writes:
        final[write.id] = write.order
    return [OrderUpdate(item_id, order) for item_id, order in final.items() if stored[item_id] != order]


@dataclass
class ReorderResult:
    found: bool
    updates: list[OrderUpdate] = field(default_factory=list)


@dataclass
class MoveResult:
    moved: int
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


class OrderingService:
    """Reorders classes, modules and questions through their record stores.

    All writes of one call happen in the session's transaction; the caller
    finishes with ``commit()`` (or ``rollback()`` on error).
    """

    def __init__(
        self,
        classes: RecordStore,
        modules: RecordStore,
        questions: RecordStore,
        db: AsyncSession | None = None,
    ) -> None:
        self.classes = classes
        self.modules = modules
        self.questions = questions
        self.db = db

    @classmethod
    def for_session(cls, db: AsyncSession) -> OrderingService:
        return cls(
            classes=SqlRecordStore(db, SchoolClass, ("cohort_id", "semester_id")),
            modules=SqlRecordStore(db, Module, ("class_id",)),
            questions=SqlRecordStore(db, Question, ("module_id",)),
            db=db,
        )

    async def commit(self) -> None:
        if self.db is not None:
            await self.db.commit()

    async def rollback(self) -> None:
        if self.db is not None:
            await self.db.rollback()

    # --- Reordering ---

    async def reorder_class(self, class_id: str, cohort_id: str, new_order: int) -> ReorderResult:
        """Move a class within the classes of its cohort that share its semester."""
        moved = await self.classes.get(class_id)
        # parent key is (cohort_id, semester_id)
        if moved is None or moved.parent_key[0] != cohort_id:  # type: ignore[index]
            return ReorderResult(found=False)
        return await self._reorder(self.classes, moved.parent_key, class_id, new_order, kind="class")

    async def reorder_module(self, module_id: str, class_id: str, new_order: int) -> ReorderResult:
        return await self._reorder(self.modules, class_id, module_id, new_order, kind="module")

    async def reorder_question(self, question_id: str, module_id: str, new_order: int) -> ReorderResult:
        return await self._reorder(self.questions, module_id, question_id, new_order, kind="question")

    async def _reorder(
        self,
        store: RecordStore,
        parent_key: Hashable,
        moved_id: str,
        new_order: int,
        *,
        kind: str,
    ) -> ReorderResult:
        group = await store.query(parent_key)
        if not any(item.id == moved_id for item in group):
            return ReorderResult(found=False)

        # gaps left by deleted rows are closed first; new_order indexes the dense group
        healed = compact(group)
        plan = reorder(apply_updates(group, healed), moved_id, new_order)

        for update in healed:
            await store.patch(update.id, {"order": update.order})
        await self._apply(store, moved_id, plan)

        updates = _net_updates(group, [*healed, *plan])
        if updates:
            logger.info(
                "items_reordered",
                kind=kind,
                item_id=moved_id,
                new_order=new_order,
                updated=len(updates),
            )
        return ReorderResult(found=True, updates=updates)

    async def _apply(self, store: RecordStore, moved_id: str, updates: Sequence[OrderUpdate]) -> None:
        """Write a reorder plan; the moved record is parked first so no write collides."""
        if len(updates) > 1:
            await store.patch(moved_id, {"order": PARKED_ORDER})
        for update in updates:
            await store.patch(update.id, {"order": update.order})

    # --- Moving questions between modules ---

    async def move_questions(
        self,
        source_module_id: str,
        target_module_id: str,
        question_ids: Sequence[str],
    ) -> MoveResult:
        """Append questions to the end of the target module and compact the source."""
        if source_module_id == target_module_id:
            return MoveResult(moved=0)
        if await self.modules.get(target_module_id) is None:
            return MoveResult(moved=0, errors=[f"Target module {target_module_id} not found"])

        target_group = await self.questions.query(target_module_id)
        position = next_order(target_group)
        now = datetime.now(timezone.utc)

        result = MoveResult(moved=0)
        for question_id in question_ids:
            question = await self.questions.get(question_id)
            if question is None:
                result.errors.append(f"Question {question_id} not found")
                continue
            if question.parent_key != source_module_id:
                result.errors.append(f"Question {question_id} not in source module")
                continue
            await self.questions.patch(
                question_id,
                {"module_id": target_module_id, "order": position, "updated_at": now},
            )
            result.moved += 1
            position += 1

        remaining = await self.questions.query(source_module_id)
        for update in compact(remaining):
            await self.questions.patch(update.id, {"order": update.order})

        if result.moved:
            await self.modules.increment(source_module_id, "question_count", -result.moved)
            await self.modules.increment(target_module_id, "question_count", result.moved)

        logger.info(
            "questions_moved",
            source_module_id=source_module_id,
            target_module_id=target_module_id,
            moved=result.moved,
            errors=len(result.errors),
        )
        return result

    # --- Duplicating ---

    async def duplicate_question(self, question_id: str, module_id: str) -> OrderedItem | None:
        """Copy a question to the end of its own module.

        Returns the new question, or ``None`` when ``question_id`` is not a
        question of ``module_id``.
        """
        original = await self.questions.get(question_id)
        if original is None or original.parent_key != module_id:
            return None

        group = await self.questions.query(module_id)
        copy = OrderedItem(id=uuid.uuid4().hex, parent_key=module_id, order=next_order(group))
        await self.questions.clone(
            question_id,
            {"id": copy.id, "order": copy.order, "updated_at": datetime.now(timezone.utc)},
        )
        await self.modules.increment(module_id, "question_count", 1)

        logger.info("question_duplicated", question_id=question_id, copy_id=copy.id, order=copy.order)
        return copy

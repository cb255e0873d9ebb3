"""Ordering API endpoints: list classes, reorder content, move and duplicate questions."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnterms.database import get_session
from learnterms.db.models import SchoolClass
from learnterms.ordering.schemas import (
    ClassListResponse,
    ClassSummaryResponse,
    DuplicateQuestionResponse,
    MoveQuestionsRequest,
    MoveQuestionsResponse,
    OrderUpdateResponse,
    ReorderRequest,
    ReorderResponse,
)
from learnterms.ordering.service import OrderingService, ReorderResult

router = APIRouter(prefix="/api/v1", tags=["Ordering"])


async def get_ordering_service(db: AsyncSession = Depends(get_session)) -> OrderingService:  # noqa: B008
    return OrderingService.for_session(db)


def _reorder_response(result: ReorderResult) -> ReorderResponse:
    return ReorderResponse(
        found=result.found,
        updates=[OrderUpdateResponse(id=u.id, order=u.order) for u in result.updates],
    )


@router.get("/cohorts/{cohort_id}/classes", response_model=ClassListResponse)
async def list_cohort_classes(
    cohort_id: str,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ClassListResponse:
    """Classes of a cohort, by semester then position."""
    result = await db.execute(
        select(SchoolClass)
        .where(SchoolClass.cohort_id == cohort_id)
        .order_by(SchoolClass.semester_id, SchoolClass.order)
    )
    return ClassListResponse(
        classes=[
            ClassSummaryResponse(
                id=c.id,
                name=c.name,
                code=c.code,
                semester_id=c.semester_id,
                order=c.order,
            )
            for c in result.scalars().all()
        ]
    )


@router.patch("/cohorts/{cohort_id}/classes/{class_id}/order", response_model=ReorderResponse)
async def update_class_order(
    cohort_id: str,
    class_id: str,
    body: ReorderRequest,
    svc: OrderingService = Depends(get_ordering_service),  # noqa: B008
) -> ReorderResponse:
    result = await svc.reorder_class(class_id, cohort_id, body.new_order)
    await svc.commit()
    return _reorder_response(result)


@router.patch("/classes/{class_id}/modules/{module_id}/order", response_model=ReorderResponse)
async def update_module_order(
    class_id: str,
    module_id: str,
    body: ReorderRequest,
    svc: OrderingService = Depends(get_ordering_service),  # noqa: B008
) -> ReorderResponse:
    result = await svc.reorder_module(module_id, class_id, body.new_order)
    await svc.commit()
    return _reorder_response(result)


@router.patch("/modules/{module_id}/questions/{question_id}/order", response_model=ReorderResponse)
async def update_question_order(
    module_id: str,
    question_id: str,
    body: ReorderRequest,
    svc: OrderingService = Depends(get_ordering_service),  # noqa: B008
) -> ReorderResponse:
    result = await svc.reorder_question(question_id, module_id, body.new_order)
    await svc.commit()
    return _reorder_response(result)


@router.post("/modules/{module_id}/questions/move", response_model=MoveQuestionsResponse)
async def move_questions(
    module_id: str,
    body: MoveQuestionsRequest,
    svc: OrderingService = Depends(get_ordering_service),  # noqa: B008
) -> MoveQuestionsResponse:
    """Move questions from this module to the end of another one."""
    result = await svc.move_questions(module_id, body.target_module_id, body.question_ids)
    await svc.commit()
    return MoveQuestionsResponse(moved=result.moved, errors=result.errors, success=result.success)


@router.post(
    "/modules/{module_id}/questions/{question_id}/duplicate",
    response_model=DuplicateQuestionResponse,
    status_code=201,
)
async def duplicate_question(
    module_id: str,
    question_id: str,
    svc: OrderingService = Depends(get_ordering_service),  # noqa: B008
) -> DuplicateQuestionResponse:
    """Copy a question to the end of its module."""
    copy = await svc.duplicate_question(question_id, module_id)
    if copy is None:
        raise HTTPException(status_code=404, detail="Question not found")
    await svc.commit()
    return DuplicateQuestionResponse(id=copy.id, module_id=module_id, order=copy.order)

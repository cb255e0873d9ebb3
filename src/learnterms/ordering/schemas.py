"""Pydantic request/response models for ordering endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ReorderRequest(BaseModel):
    new_order: int


class OrderUpdateResponse(BaseModel):
    id: str
    order: int


class ReorderResponse(BaseModel):
    found: bool
    updates: list[OrderUpdateResponse]


class MoveQuestionsRequest(BaseModel):
    target_module_id: str
    question_ids: list[str] = Field(min_length=1, max_length=500)


class MoveQuestionsResponse(BaseModel):
    moved: int
    errors: list[str]
    success: bool


class ClassSummaryResponse(BaseModel):
    id: str
    name: str
    code: str
    semester_id: str
    order: int


class ClassListResponse(BaseModel):
    classes: list[ClassSummaryResponse]


class DuplicateQuestionResponse(BaseModel):
    id: str
    module_id: str
    order: int

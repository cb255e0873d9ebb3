"""Analytics event payloads."""

from __future__ import annotations

from typing import Any, ClassVar, Literal

from pydantic import BaseModel, Field

QUESTION_ANSWERED = "question_answered"


class QuestionAnsweredEvent(BaseModel):
    """A student submitted an answer to a quiz question."""

    question_id: str = Field(min_length=1)
    module_id: str = Field(min_length=1)
    class_id: str = Field(min_length=1)
    question_type: str = Field(min_length=1)
    selected_options: list[str] = Field(default_factory=list)
    eliminated_options: list[str] = Field(default_factory=list)
    is_correct: bool
    submission_source: Literal["button", "keyboard", "mobile"]

    # Fields that identify a repeat submission; submission_source is excluded
    # so a keyboard and a button submit of the same answer count once.
    FINGERPRINT_FIELDS: ClassVar[tuple[str, ...]] = (
        "question_id",
        "module_id",
        "class_id",
        "question_type",
        "is_correct",
        "selected_options",
        "eliminated_options",
    )

    def to_properties(self) -> dict[str, Any]:
        return self.model_dump()

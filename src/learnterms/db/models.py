"""ORM models for the ordered course content.

Each ordered table carries a UNIQUE constraint over its group columns and
``order``; reorder plans are written in an order that never collides with it.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnterms.db.base import Base


# ---------------------------------------------------------------------------
# Schools / cohorts
# ---------------------------------------------------------------------------


class Cohort(Base):
    """A student cohort. Owns the classes shown on its dashboard."""

    __tablename__ = "cohorts"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    school_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    classes: Mapped[list[SchoolClass]] = relationship(
        "SchoolClass", back_populates="cohort", order_by="SchoolClass.order"
    )


class Semester(Base):
    __tablename__ = "semesters"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


class SchoolClass(Base):
    """A class, ordered within its cohort and semester."""

    __tablename__ = "classes"
    __table_args__ = (
        UniqueConstraint("cohort_id", "semester_id", "order", name="uq_class_cohort_semester_order"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    cohort_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("cohorts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    semester_id: Mapped[str] = mapped_column(String(32), ForeignKey("semesters.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    cohort: Mapped[Cohort] = relationship("Cohort", back_populates="classes")
    semester: Mapped[Semester] = relationship("Semester")


class Module(Base):
    """A module (chapter), ordered within its class."""

    __tablename__ = "modules"
    __table_args__ = (UniqueConstraint("class_id", "order", name="uq_module_class_order"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    class_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    emoji: Mapped[str | None] = mapped_column(String(16), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="draft")
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    question_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Question(Base):
    """A quiz question, ordered within its module."""

    __tablename__ = "questions"
    __table_args__ = (UniqueConstraint("module_id", "order", name="uq_question_module_order"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    module_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    stem: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list] = mapped_column(JSONB, nullable=False, server_default="[]")
    correct_answers: Mapped[list] = mapped_column(JSONB, nullable=False, server_default="[]")
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="draft")
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

from __future__ import annotations

import json
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from studykit.db.base import Base
from studykit.models.status import ExamStatus, status_column


class Exam(Base):
    __tablename__ = "exams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(512), nullable=False)
    subject: Mapped[str | None] = mapped_column(String(128), nullable=True)
    difficulty: Mapped[str] = mapped_column(String(32), nullable=False, default="medium")  # easy|medium|hard
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minutes

    status: Mapped[ExamStatus] = mapped_column(status_column(ExamStatus), nullable=False, default=ExamStatus.draft)
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())

    # canonical order: the index space addressed by graded answers
    questions: Mapped[list["ExamQuestion"]] = relationship(
        "ExamQuestion", order_by="ExamQuestion.order", cascade="all, delete-orphan", back_populates="exam"
    )
    attempts: Mapped[list["ExamAttempt"]] = relationship(
        "ExamAttempt", cascade="all, delete-orphan", back_populates="exam"
    )


class ExamQuestion(Base):
    __tablename__ = "exam_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    exam_id: Mapped[int] = mapped_column(ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    options_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    correct_answer_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default="mcq")  # mcq|short_answer|short_essay|...
    order: Mapped[int] = mapped_column(Integer, nullable=False)

    exam: Mapped["Exam"] = relationship("Exam", back_populates="questions")

    @property
    def options(self) -> list[str]:
        return json.loads(self.options_json or "[]")


class ExamAttempt(Base):
    __tablename__ = "exam_attempts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    exam_id: Mapped[int] = mapped_column(ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    answers_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")  # [[question_index, value], ...]
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    time_spent_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    exam: Mapped["Exam"] = relationship("Exam", back_populates="attempts")

    @property
    def answers(self) -> list[list]:
        return json.loads(self.answers_json or "[]")

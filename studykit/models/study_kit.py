from __future__ import annotations

import json
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from studykit.db.base import Base
from studykit.models.status import StudyKitStatus, status_column


class StudyKit(Base):
    __tablename__ = "study_kits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    source_document_id: Mapped[int] = mapped_column(
        ForeignKey("source_documents.id", ondelete="CASCADE"), nullable=False, index=True
    )

    title: Mapped[str] = mapped_column(String(512), nullable=False)
    summary_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    model: Mapped[str] = mapped_column(String(128), nullable=False, default="auto")

    status: Mapped[StudyKitStatus] = mapped_column(
        status_column(StudyKitStatus), nullable=False, default=StudyKitStatus.processing
    )
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())

    flashcards: Mapped[list["Flashcard"]] = relationship(
        "Flashcard", order_by="Flashcard.order", cascade="all, delete-orphan", back_populates="study_kit"
    )
    quiz_questions: Mapped[list["QuizQuestion"]] = relationship(
        "QuizQuestion", order_by="QuizQuestion.order", cascade="all, delete-orphan", back_populates="study_kit"
    )


class Flashcard(Base):
    __tablename__ = "flashcards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    study_kit_id: Mapped[int] = mapped_column(ForeignKey("study_kits.id", ondelete="CASCADE"), nullable=False, index=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False)

    study_kit: Mapped["StudyKit"] = relationship("StudyKit", back_populates="flashcards")


class QuizQuestion(Base):
    __tablename__ = "quiz_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    study_kit_id: Mapped[int] = mapped_column(ForeignKey("study_kits.id", ondelete="CASCADE"), nullable=False, index=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    options_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    correct_answer_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default="mcq")
    order: Mapped[int] = mapped_column(Integer, nullable=False)

    study_kit: Mapped["StudyKit"] = relationship("StudyKit", back_populates="quiz_questions")

    @property
    def options(self) -> list[str]:
        return json.loads(self.options_json or "[]")

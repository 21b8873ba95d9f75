"""
Orchestrated pipeline runs for study kits, exams and assignments.

Every run follows the same shape:
  1. enter the in-flight status and clear previous results
  2. resolve the text of each attached document, one at a time, in attachment order
  3. stop with `error` if there is no text and no free-text fallback
  4. generate through the caller's model selection policy
  5. persist results and enter the terminal success status
  6. any failure in 2-5 records `error` plus a short message, then re-raises
A retry is simply another run; there is no partial resume.
"""
from __future__ import annotations

import json
import os
from collections.abc import Iterable
from typing import Any

import httpx
from sqlalchemy.orm import Session

from studykit.core.errors import NotFoundError, StudyKitError, ValidationError
from studykit.core.logger import get_logger
from studykit.models.assignment import Assignment
from studykit.models.exam import Exam, ExamQuestion
from studykit.models.source_document import SourceDocument
from studykit.models.status import ERROR, IN_FLIGHT, TERMINAL_SUCCESS, transition
from studykit.models.study_kit import Flashcard, QuizQuestion, StudyKit
from studykit.services import generation
from studykit.services.extraction_cache import resolve_content
from studykit.services.llm.providers import ProviderRegistry
from studykit.services.model_settings import policy_for

logger = get_logger(__name__)


def _error_message(e: Exception) -> str:
    msg = e.message if isinstance(e, StudyKitError) else f"{type(e).__name__}: {e}"
    return msg[:1000]


def begin_run(db: Session, entity: Any, **clear: Any) -> None:
    """Step 1: in-flight status, previous result fields reset to the given values."""
    transition(entity, IN_FLIGHT[type(entity.status)])
    for attr, value in clear.items():
        setattr(entity, attr, value)
    entity.error = None
    db.commit()


def finish_run(db: Session, entity: Any) -> None:
    transition(entity, TERMINAL_SUCCESS[type(entity.status)])
    db.commit()


def fail_run(db: Session, entity: Any, e: Exception) -> None:
    db.rollback()
    msg = _error_message(e)
    logger.error(f"{type(entity).__name__} {entity.id} failed: {msg}")
    transition(entity, ERROR[type(entity.status)])
    entity.error = msg
    db.commit()


def label_block(name: str, text: str) -> str:
    return f"\n--- File: {name} ---\n{text}\n"


async def collect_document_text(
    db: Session,
    documents: Iterable[SourceDocument],
    *,
    providers: ProviderRegistry,
    http_client: httpx.AsyncClient | None = None,
) -> str:
    """Extract documents strictly one at a time; blocks are concatenated in the same order."""
    blocks: list[str] = []
    for doc in documents:
        text = await resolve_content(db, doc, providers=providers, http_client=http_client)
        if text and text.strip():
            blocks.append(label_block(doc.name, text))
    return "".join(blocks)


def _get(db: Session, model: type, entity_id: int) -> Any:
    entity = db.query(model).filter(model.id == entity_id).first()
    if not entity:
        raise NotFoundError(f"{model.__name__} not found: {entity_id}")
    return entity


# ----------------------------
# Study kit
# ----------------------------

async def run_study_kit(
    db: Session,
    study_kit_id: int,
    *,
    providers: ProviderRegistry,
    http_client: httpx.AsyncClient | None = None,
) -> StudyKit:
    kit: StudyKit = _get(db, StudyKit, study_kit_id)
    kit.flashcards.clear()
    kit.quiz_questions.clear()
    begin_run(db, kit, summary_text=None)

    try:
        document = _get(db, SourceDocument, kit.source_document_id)
        content = await resolve_content(db, document, providers=providers, http_client=http_client)
        if not content.strip():
            raise ValidationError(f"No content could be extracted from '{document.name}'")

        policy = policy_for(db, kit.owner_id, providers)
        materials = await generation.generate_study_materials(policy, content, model=kit.model)

        kit.summary_text = materials.summary.summary_text
        for i, fc in enumerate(materials.flashcards):
            kit.flashcards.append(Flashcard(question=fc.question, answer=fc.answer, order=i))
        for q in materials.quiz_questions:
            kit.quiz_questions.append(
                QuizQuestion(
                    question=q.question,
                    options_json=json.dumps(q.options, ensure_ascii=False),
                    correct_answer_index=q.correct_answer_index,
                    explanation=q.explanation,
                    type=q.type,
                    order=q.order,
                )
            )
        finish_run(db, kit)
    except Exception as e:
        fail_run(db, kit, e)
        raise

    logger.info(f"study kit {kit.id} ready: {len(kit.flashcards)} flashcards, {len(kit.quiz_questions)} quiz questions")
    return kit


def study_kit_title(document_name: str) -> str:
    root, _ext = os.path.splitext(document_name or "")
    return root or document_name or "Untitled"


# ----------------------------
# Exam
# ----------------------------

async def run_exam_generation(
    db: Session,
    exam_id: int,
    *,
    providers: ProviderRegistry,
    content: str | None = None,
    document_ids: list[int] | None = None,
    count: int = 10,
    types: list[str] | None = None,
    model: str | None = "auto",
    http_client: httpx.AsyncClient | None = None,
) -> Exam:
    exam: Exam = _get(db, Exam, exam_id)
    # previous questions go in the same commit as the status change
    exam.questions.clear()
    begin_run(db, exam, score=None)

    try:
        documents = []
        for doc_id in document_ids or []:
            doc = _get(db, SourceDocument, doc_id)
            if doc.owner_id != exam.owner_id:
                raise NotFoundError(f"SourceDocument not found: {doc_id}")
            documents.append(doc)

        combined = await collect_document_text(db, documents, providers=providers, http_client=http_client)
        notes = (content or "").strip()
        if notes:
            combined = notes + ("\n" + combined if combined.strip() else "")
        if not combined.strip():
            raise ValidationError("No content to generate questions from. Provide text or documents.")

        policy = policy_for(db, exam.owner_id, providers)
        questions = await generation.generate_questions(
            policy, combined, count=count, types=types, difficulty=exam.difficulty, model=model
        )

        for q in questions:
            exam.questions.append(
                ExamQuestion(
                    question=q.question,
                    options_json=json.dumps(q.options, ensure_ascii=False),
                    correct_answer_index=q.correct_answer_index,
                    explanation=q.explanation,
                    type=q.type,
                    order=q.order,
                )
            )
        finish_run(db, exam)
    except Exception as e:
        fail_run(db, exam, e)
        raise

    logger.info(f"exam {exam.id} ready with {len(exam.questions)} question(s)")
    return exam


# ----------------------------
# Assignment
# ----------------------------

async def run_assignment_solution(
    db: Session,
    assignment_id: int,
    *,
    providers: ProviderRegistry,
    model: str | None = "auto",
    http_client: httpx.AsyncClient | None = None,
) -> Assignment:
    assignment: Assignment = _get(db, Assignment, assignment_id)
    begin_run(db, assignment, solution_text=None)

    try:
        combined = await collect_document_text(
            db, assignment.attachments, providers=providers, http_client=http_client
        )
        description = (assignment.description or "").strip()

        # text-only assignments are solved from the description alone
        if not combined.strip() and not description:
            raise ValidationError(
                "No content could be extracted from the uploaded files. "
                "Please add clearer text instructions or upload a different file format."
            )

        policy = policy_for(db, assignment.owner_id, providers)
        solution = await generation.generate_assignment_solution(
            policy, assignment.title, description, combined, model=model
        )
        assignment.solution_text = solution
        finish_run(db, assignment)
    except Exception as e:
        fail_run(db, assignment, e)
        raise

    logger.info(f"assignment {assignment.id} solved ({len(assignment.solution_text or '')} chars)")
    return assignment

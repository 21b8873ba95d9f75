from __future__ import annotations

import json
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Union

from sqlalchemy.orm import Session

from studykit.core.errors import ValidationError
from studykit.core.logger import get_logger
from studykit.models.exam import Exam, ExamAttempt
from studykit.models.status import ExamStatus, transition

logger = get_logger(__name__)

AnswerValue = Union[int, str]

# answered with an option index
CHOICE_TYPES = ("mcq", "true_false", "fill_blanks")
# answered with free text compared against the canonical option
TEXT_TYPES = ("short_answer", "short_essay")


@dataclass
class GradedAnswer:
    question_index: int
    answer: AnswerValue
    correct: bool


@dataclass
class GradeResult:
    score: int
    correct_count: int
    total: int
    graded_answers: list[GradedAnswer] = field(default_factory=list)

    @property
    def answers(self) -> list[list[Any]]:
        """Accepted (question_index, answer) pairs in submission order."""
        return [[g.question_index, g.answer] for g in self.graded_answers]


def _as_index(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _normalize_text(value: str) -> str:
    return value.strip().lower()


def validate_answers(answers: Any, total: int) -> dict[int, AnswerValue]:
    """
    Raw payload -> {question_index: answer}.

    The payload must be a list of [question_index, answer] pairs; anything else is a
    ValidationError. Within a well-formed payload these entries are dropped silently:
      - question_index outside 0..total-1
      - numeric answers that are negative or not integral
      - string answers that are empty after trimming
    A repeated question_index keeps its last answer.
    """
    if not isinstance(answers, (list, tuple)):
        raise ValidationError("Invalid answers payload")

    accepted: dict[int, AnswerValue] = {}
    for entry in answers:
        if not isinstance(entry, (list, tuple)) or len(entry) != 2:
            raise ValidationError("Invalid answers payload")
        raw_index, raw_answer = entry

        index = _as_index(raw_index)
        if index is None:
            raise ValidationError("Invalid answers payload")
        if index < 0 or index >= total:
            continue

        if isinstance(raw_answer, str):
            text = raw_answer.strip()
            if text:
                accepted[index] = text
            continue

        if isinstance(raw_answer, (int, float)) and not isinstance(raw_answer, bool):
            value = _as_index(raw_answer)
            if value is not None and value >= 0:
                accepted[index] = value
            continue

        raise ValidationError("Invalid answers payload")

    return accepted


def is_correct(question: Any, answer: AnswerValue) -> bool:
    qtype = (question.type or "mcq").strip()
    if isinstance(answer, int):
        return qtype in CHOICE_TYPES and answer == question.correct_answer_index

    if qtype in TEXT_TYPES:
        options = list(question.options or [])
        idx = question.correct_answer_index
        canonical = str(options[idx]) if 0 <= idx < len(options) else ""
        return _normalize_text(answer) == _normalize_text(canonical)

    return False


def grade(questions: Sequence[Any], answers: Any) -> GradeResult:
    """
    Score `answers` against `questions`, addressed by position in the canonical order.
    Pure and deterministic. An empty question set scores 0.
    """
    total = len(questions)
    accepted = validate_answers(answers, total)

    graded = [
        GradedAnswer(question_index=i, answer=a, correct=is_correct(questions[i], a))
        for i, a in accepted.items()
    ]
    correct_count = sum(1 for g in graded if g.correct)
    score = math.floor(100 * correct_count / total + 0.5) if total else 0
    return GradeResult(score=score, correct_count=correct_count, total=total, graded_answers=graded)


def normalize_time_spent(value: Any) -> int | None:
    """Elapsed seconds floored and clamped at 0; anything non-numeric is stored as null."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return max(0, math.floor(value))


def submit_attempt(
    db: Session,
    exam: Exam,
    owner_id: str,
    answers: Any,
    time_spent_seconds: Any = None,
) -> tuple[ExamAttempt, GradeResult]:
    """Grade, persist the attempt, and move the exam to `completed` with the new score."""
    if exam.status not in (ExamStatus.ready, ExamStatus.completed):
        raise ValidationError(f"Exam is not ready to be taken (status={exam.status.value})")

    result = grade(exam.questions, answers)

    attempt = ExamAttempt(
        exam_id=exam.id,
        owner_id=owner_id,
        answers_json=json.dumps(result.answers, ensure_ascii=False),
        score=result.score,
        time_spent_seconds=normalize_time_spent(time_spent_seconds),
    )
    db.add(attempt)

    transition(exam, ExamStatus.completed)
    exam.score = result.score
    db.commit()
    db.refresh(attempt)

    logger.info(f"exam {exam.id} graded: {result.correct_count}/{result.total} -> {result.score}")
    return attempt, result

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from studykit.core.config import settings
from studykit.core.logger import get_logger
from studykit.models.exam import Exam
from studykit.services.grading import AnswerValue, is_correct, validate_answers
from studykit.services.llm import prompts
from studykit.services.llm.policy import ModelSelectionPolicy
from studykit.services.timeouts import GENERATION, ceiling_for, with_timeout

logger = get_logger(__name__)

MAX_MISSED_QUESTIONS = 25
NO_FEEDBACK = "No feedback returned."


def _option_text(options: list[Any], index: int) -> str | None:
    return str(options[index]) if 0 <= index < len(options) else None


def build_missed(questions: Sequence[Any], answers: dict[int, AnswerValue]) -> list[dict[str, Any]]:
    """Wrong and unanswered questions, in canonical order, with the canonical answer text."""
    missed: list[dict[str, Any]] = []
    for idx, q in enumerate(questions):
        options = list(q.options or [])
        answer = answers.get(idx)

        if answer is None:
            status = "unanswered"
            answer_text = None
        elif is_correct(q, answer):
            continue
        else:
            status = "wrong"
            answer_text = _option_text(options, answer) if isinstance(answer, int) else answer

        missed.append(
            {
                "index": idx + 1,
                "type": q.type or "mcq",
                "question": q.question,
                "userAnswerText": answer_text,
                "correctAnswerText": _option_text(options, q.correct_answer_index),
                "explanation": q.explanation,
                "status": status,
            }
        )
    return missed


async def generate_exam_feedback(
    policy: ModelSelectionPolicy,
    exam: Exam,
    answers: Any,
    *,
    score: int | None = None,
    time_spent_seconds: int | None = None,
) -> str:
    """
    Personalised study feedback for one graded attempt.

    Uses the configured feedback model (outside the caller's enablement list) and the
    same one-retry fallback as every other chat call.
    """
    accepted = validate_answers(answers or [], len(exam.questions))
    missed = build_missed(exam.questions, accepted)

    shown_score = score if score is not None else exam.score
    user_prompt = prompts.FEEDBACK_USER_TEMPLATE.format(
        title=exam.title,
        subject=exam.subject or "General",
        score=shown_score if shown_score is not None else "N/A",
        time_spent=time_spent_seconds if time_spent_seconds is not None else "N/A",
        missed=json.dumps(missed[:MAX_MISSED_QUESTIONS], indent=2, ensure_ascii=False),
    )

    text = await with_timeout(
        policy.complete_model(
            settings.exam_feedback_model,
            [
                {"role": "system", "content": prompts.FEEDBACK_SYSTEM},
                {"role": "user", "content": user_prompt},
            ],
            temperature=0.2,
            max_tokens=900,
        ),
        ceiling_for(GENERATION),
        stage="feedback",
    )
    logger.info(f"feedback for exam {exam.id}: {len(missed)} missed question(s)")
    return text.strip() or NO_FEEDBACK

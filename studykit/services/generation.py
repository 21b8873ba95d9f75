from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from studykit.core.config import settings
from studykit.core.errors import ParseError, ValidationError
from studykit.core.logger import get_logger
from studykit.services.llm import prompts
from studykit.services.llm.policy import ModelSelectionPolicy
from studykit.services.llm.schemas import parse_flashcards, parse_questions, parse_summary
from studykit.services.timeouts import GENERATION, ceiling_for, with_timeout

logger = get_logger(__name__)

SUMMARY_LENGTHS = ("short", "medium", "long")
QUESTION_TYPES = ("mcq", "true_false", "fill_blanks", "short_answer", "short_essay")
SHORT_TYPES = ("short_answer", "short_essay")

# required option count per question type (None = at least one)
_OPTION_COUNTS: dict[str, int | None] = {
    "mcq": 4,
    "fill_blanks": 4,
    "true_false": 2,
    "short_answer": None,
    "short_essay": None,
}


@dataclass
class SummaryResult:
    summary_text: str
    title: str
    subject: str


@dataclass
class GeneratedFlashcard:
    question: str
    answer: str


@dataclass
class GeneratedQuestion:
    question: str
    options: list[str]
    correct_answer_index: int
    explanation: str
    type: str
    order: int = 0


@dataclass
class StudyMaterials:
    summary: SummaryResult
    flashcards: list[GeneratedFlashcard] = field(default_factory=list)
    quiz_questions: list[GeneratedQuestion] = field(default_factory=list)


def truncate(text: str, max_chars: int | None = None) -> str:
    """Fixed character budget applied to every prompt input."""
    limit = settings.generation_max_chars if max_chars is None else max_chars
    return (text or "")[:limit]


def _json_messages(user_prompt: str) -> list[dict[str, Any]]:
    return [
        {"role": "system", "content": prompts.JSON_SYSTEM},
        {"role": "user", "content": user_prompt},
    ]


async def _complete(policy: ModelSelectionPolicy, model: str | None, messages: list[dict[str, Any]], **kwargs: Any) -> str:
    return await with_timeout(
        policy.complete(model, messages, **kwargs),
        ceiling_for(GENERATION),
        stage="generation",
    )


# ----------------------------
# Summary
# ----------------------------

async def generate_summary(
    policy: ModelSelectionPolicy,
    content: str,
    *,
    length: str = "medium",
    model: str | None = "auto",
) -> SummaryResult:
    if length not in SUMMARY_LENGTHS:
        raise ValidationError(f"Invalid summary length: {length!r} (use one of {', '.join(SUMMARY_LENGTHS)})")

    user_prompt = prompts.SUMMARY_USER_TEMPLATE.format(
        length=length,
        length_instructions=prompts.SUMMARY_LENGTH_INSTRUCTIONS[length],
        content=truncate(content),
    )
    raw = await _complete(
        policy,
        model,
        _json_messages(user_prompt),
        temperature=0.3,
        max_tokens=3000,
        response_format={"type": "json_object"},
    )
    payload = parse_summary(raw)
    return SummaryResult(summary_text=payload.summary, title=payload.title, subject=payload.subject)


# ----------------------------
# Flashcards
# ----------------------------

def fallback_flashcard(content: str) -> GeneratedFlashcard:
    snippet = " ".join((content or "").split())[:300]
    return GeneratedFlashcard(
        question="What are the key concepts covered in this material?",
        answer=snippet or "Review the source material to identify its key concepts.",
    )


async def generate_flashcards(
    policy: ModelSelectionPolicy,
    content: str,
    *,
    count: int = 10,
    model: str | None = "auto",
) -> list[GeneratedFlashcard]:
    """
    Ordered question/answer cards, at most `count`.
    Unparseable output never fails the caller: it degrades to a single generic card.
    """
    if count < 1:
        raise ValidationError("count must be >= 1")

    user_prompt = prompts.FLASHCARDS_USER_TEMPLATE.format(count=count, content=truncate(content))
    raw = await _complete(
        policy,
        model,
        _json_messages(user_prompt),
        temperature=0.2,
        response_format={"type": "json_object"},
    )

    try:
        items = parse_flashcards(raw)
    except ParseError as e:
        logger.warning(f"flashcard output unparseable ({e.message}); using fallback card")
        return [fallback_flashcard(content)]

    if not items:
        logger.warning("flashcard output was an empty list; using fallback card")
        return [fallback_flashcard(content)]

    return [GeneratedFlashcard(question=it.question, answer=it.answer) for it in items[:count]]


# ----------------------------
# Quiz / exam questions
# ----------------------------

def split_question_counts(total: int, types: list[str]) -> list[tuple[str, int]]:
    """
    Even split of `total` across `types`: base = total // n, and the remainder goes
    one-per-type to the first types in request order. Types that get 0 are dropped.
    """
    if not types:
        return []
    base, remainder = divmod(total, len(types))
    out: list[tuple[str, int]] = []
    for i, qtype in enumerate(types):
        n = base + (1 if i < remainder else 0)
        if n > 0:
            out.append((qtype, n))
    return out


def _normalize_types(types: list[str] | None) -> list[str]:
    requested = [t.strip() for t in (types or []) if t and t.strip()] or ["mcq"]
    unknown = [t for t in requested if t not in QUESTION_TYPES]
    if unknown:
        raise ValidationError(f"Unsupported question type(s): {', '.join(unknown)}")
    # keep request order, drop duplicates
    return list(dict.fromkeys(requested))


async def _generate_questions_of_type(
    policy: ModelSelectionPolicy,
    content: str,
    count: int,
    question_type: str,
    difficulty: str,
    model: str | None,
) -> list[GeneratedQuestion]:
    user_prompt = prompts.QUESTIONS_USER_TEMPLATE.format(
        count=count,
        type_label=question_type.replace("_", " "),
        difficulty=difficulty,
        question_type=question_type,
        type_instructions=prompts.QUESTION_TYPE_INSTRUCTIONS[question_type],
        content=content,
    )
    raw = await _complete(
        policy,
        model,
        _json_messages(user_prompt),
        temperature=0.2,
        response_format={"type": "json_object"},
    )
    items = parse_questions(raw)
    if not items:
        raise ParseError(f"Model returned no {question_type} questions")

    expected = _OPTION_COUNTS[question_type]
    out: list[GeneratedQuestion] = []
    for it in items[:count]:
        if expected is not None and len(it.options) != expected:
            raise ParseError(f"{question_type} question has {len(it.options)} options, expected {expected}")
        out.append(
            GeneratedQuestion(
                question=it.question,
                options=list(it.options),
                correct_answer_index=it.correct_answer_index,
                explanation=it.explanation,
                type=question_type,
            )
        )
    return out


async def generate_questions(
    policy: ModelSelectionPolicy,
    content: str,
    *,
    count: int = 5,
    types: list[str] | None = None,
    difficulty: str = "medium",
    model: str | None = "auto",
) -> list[GeneratedQuestion]:
    """
    Generate `count` questions split evenly across `types`. Each type is generated
    independently, the results are concatenated in type order and re-indexed 0..N-1.
    """
    if count < 1:
        raise ValidationError("count must be >= 1")

    qtypes = _normalize_types(types)
    budgeted = truncate(content)

    questions: list[GeneratedQuestion] = []
    for qtype, n in split_question_counts(count, qtypes):
        logger.info(f"generating {n} {qtype} question(s)")
        batch = await _generate_questions_of_type(policy, budgeted, n, qtype, difficulty, model)
        if len(batch) < n:
            logger.warning(f"model returned {len(batch)} of {n} requested {qtype} question(s)")
        questions.extend(batch)

    for i, q in enumerate(questions):
        q.order = i
    return questions


# ----------------------------
# Assignment solution / refinement
# ----------------------------

async def generate_assignment_solution(
    policy: ModelSelectionPolicy,
    title: str,
    instructions: str | None,
    content: str,
    *,
    model: str | None = "auto",
) -> str:
    instructions = (instructions or "").strip()
    if not (content or "").strip() and not instructions:
        raise ValidationError("No content to process. Please add files or description.")

    user_prompt = prompts.ASSIGNMENT_USER_TEMPLATE.format(
        title=title,
        instructions=instructions or "(none)",
        content=truncate(content) if (content or "").strip() else "(no attached files)",
    )
    solution = await _complete(
        policy,
        model,
        [
            {"role": "system", "content": prompts.ASSIGNMENT_SYSTEM},
            {"role": "user", "content": user_prompt},
        ],
        temperature=0.4,
    )
    if not solution.strip():
        raise ParseError("Model returned an empty solution")
    return solution


async def refine_text(policy: ModelSelectionPolicy, content: str, *, model: str | None = "auto") -> str:
    if not (content or "").strip():
        raise ValidationError("Content is required")

    refined = await _complete(
        policy,
        model,
        [
            {"role": "system", "content": prompts.REFINE_SYSTEM},
            {"role": "user", "content": prompts.REFINE_USER_TEMPLATE.format(content=truncate(content, settings.refine_max_chars))},
        ],
        temperature=0.3,
    )
    if not refined.strip():
        raise ParseError("Model returned no refined text")
    return refined


async def generate_study_materials(
    policy: ModelSelectionPolicy,
    content: str,
    *,
    model: str | None = "auto",
    flashcard_count: int = 10,
    quiz_count: int = 5,
    quiz_type: str = "mcq",
    difficulty: str = "medium",
) -> StudyMaterials:
    """Summary, flashcards and a quiz for one study kit, generated one after another."""
    summary = await generate_summary(policy, content, model=model)
    flashcards = await generate_flashcards(policy, content, count=flashcard_count, model=model)
    quiz = await generate_questions(
        policy, content, count=quiz_count, types=[quiz_type], difficulty=difficulty, model=model
    )
    return StudyMaterials(summary=summary, flashcards=flashcards, quiz_questions=quiz)

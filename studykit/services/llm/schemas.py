"""
Strict output schemas for model responses.

Model text is first decoded as JSON (tolerating a markdown fence or leading chatter),
then validated against one of the schemas below. There is no key discovery: a
payload that does not match the declared shape is a ParseError.
"""
from __future__ import annotations

import json
import re
from typing import Annotated, Any, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from studykit.core.errors import ParseError

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def load_json(text: str) -> Any:
    """
    Decode model output as JSON.
    Accepts a bare JSON value, a fenced ```json block, or a JSON value embedded in extra text.
    """
    text = (text or "").strip()
    if not text:
        raise ParseError("Empty response from model")

    m = _FENCE_RE.match(text)
    if m:
        text = m.group(1).strip()

    # Fast path
    try:
        return json.loads(text)
    except ValueError:
        pass

    # Outermost object or array
    for open_ch, close_ch in (("{", "}"), ("[", "]")):
        start = text.find(open_ch)
        end = text.rfind(close_ch)
        if start >= 0 and end > start:
            try:
                return json.loads(text[start : end + 1])
            except ValueError:
                continue

    raise ParseError(f"Model returned non-JSON. First 200 chars: {text[:200]!r}")


def _non_blank(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("must not be blank")
    return v


NonBlankStr = Annotated[str, AfterValidator(_non_blank)]


class SummaryPayload(BaseModel):
    summary: NonBlankStr
    title: str = "Untitled Summary"
    subject: str = "General"

    @field_validator("title", "subject", mode="before")
    @classmethod
    def _default_blank(cls, v: Any, info) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return cls.model_fields[info.field_name].default
        return v


class FlashcardItem(BaseModel):
    question: NonBlankStr
    answer: NonBlankStr


class FlashcardsEnvelope(BaseModel):
    flashcards: list[FlashcardItem]


class QuestionItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: NonBlankStr
    options: list[str] = Field(min_length=1)
    correct_answer_index: int = Field(alias="correctAnswer", ge=0)
    explanation: str = ""
    type: str | None = None

    @field_validator("explanation", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @model_validator(mode="after")
    def _index_in_range(self) -> "QuestionItem":
        if self.correct_answer_index >= len(self.options):
            raise ValueError(
                f"correctAnswer {self.correct_answer_index} out of range for {len(self.options)} options"
            )
        return self


class QuestionsEnvelope(BaseModel):
    questions: list[QuestionItem]


_FLASHCARDS = TypeAdapter(Union[list[FlashcardItem], FlashcardsEnvelope])
_QUESTIONS = TypeAdapter(Union[list[QuestionItem], QuestionsEnvelope])


def parse_summary(text: str) -> SummaryPayload:
    data = load_json(text)
    try:
        return SummaryPayload.model_validate(data)
    except PydanticValidationError as e:
        raise ParseError(f"Summary output did not match schema: {e.error_count()} error(s)") from e


def parse_flashcards(text: str) -> list[FlashcardItem]:
    data = load_json(text)
    try:
        parsed = _FLASHCARDS.validate_python(data)
    except PydanticValidationError as e:
        raise ParseError(f"Flashcard output did not match schema: {e.error_count()} error(s)") from e
    return parsed.flashcards if isinstance(parsed, FlashcardsEnvelope) else parsed


def parse_questions(text: str) -> list[QuestionItem]:
    data = load_json(text)
    try:
        parsed = _QUESTIONS.validate_python(data)
    except PydanticValidationError as e:
        raise ParseError(f"Question output did not match schema: {e.error_count()} error(s)") from e
    return parsed.questions if isinstance(parsed, QuestionsEnvelope) else parsed

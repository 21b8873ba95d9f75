import asyncio
import json

import pytest
from loguru import logger

from conftest import FakeProvider, make_registry, study_assistant
from studykit.core.errors import ParseError, ValidationError
from studykit.services import generation
from studykit.services.llm.catalogue import GROQ
from studykit.services.llm.policy import ModelSelectionPolicy


def _policy(*replies, default=None):
    groq = FakeProvider(GROQ, replies=replies, default=default)
    return ModelSelectionPolicy(make_registry(**{GROQ: groq})), groq


def test_flashcards_from_bare_array_keep_order():
    cards = [{"question": f"Q{i}", "answer": f"A{i}"} for i in range(10)]
    policy, _ = _policy(json.dumps(cards))

    out = asyncio.run(generation.generate_flashcards(policy, "content", count=10))

    assert [c.question for c in out] == [f"Q{i}" for i in range(10)]
    assert [c.answer for c in out] == [f"A{i}" for i in range(10)]


def test_flashcards_envelope_truncated_to_count():
    cards = [{"question": f"Q{i}", "answer": f"A{i}"} for i in range(6)]
    policy, _ = _policy(json.dumps({"flashcards": cards}))

    out = asyncio.run(generation.generate_flashcards(policy, "content", count=4))
    assert len(out) == 4


@pytest.mark.parametrize("reply", ["not json at all", json.dumps({"cards": [{"q": 1}]}), "[]"])
def test_flashcards_fall_back_to_single_card(reply):
    policy, _ = _policy(reply)

    out = asyncio.run(generation.generate_flashcards(policy, "Photosynthesis turns light into sugar."))

    assert len(out) == 1
    assert "Photosynthesis" in out[0].answer


def test_split_question_counts():
    assert generation.split_question_counts(10, ["mcq", "short_answer"]) == [("mcq", 5), ("short_answer", 5)]
    assert generation.split_question_counts(7, ["mcq", "true_false", "short_answer"]) == [
        ("mcq", 3),
        ("true_false", 2),
        ("short_answer", 2),
    ]
    assert generation.split_question_counts(2, ["mcq", "true_false", "short_answer"]) == [
        ("mcq", 1),
        ("true_false", 1),
    ]


def test_mixed_types_are_concatenated_and_reindexed():
    policy, groq = _policy(default=study_assistant)

    out = asyncio.run(
        generation.generate_questions(policy, "content", count=10, types=["mcq", "short_answer"])
    )

    assert [q.type for q in out] == ["mcq"] * 5 + ["short_answer"] * 5
    assert [q.order for q in out] == list(range(10))
    # one call per requested type, in request order
    assert len(groq.calls) == 2


def test_short_batch_is_kept_and_logged():
    items = [
        {"question": f"q{i}?", "options": ["a", "b", "c", "d"], "correctAnswer": 0, "explanation": "", "type": "mcq"}
        for i in range(3)
    ]
    policy, _ = _policy(json.dumps({"questions": items}))
    warnings = []
    sink = logger.add(lambda message: warnings.append(message.record["message"]), level="WARNING")
    try:
        out = asyncio.run(generation.generate_questions(policy, "content", count=5, types=["mcq"]))
    finally:
        logger.remove(sink)

    assert [q.order for q in out] == [0, 1, 2]
    assert warnings == ["model returned 3 of 5 requested mcq question(s)"]


def test_questions_wrong_option_count_is_parse_error():
    bad = {"questions": [{"question": "q?", "options": ["a", "b"], "correctAnswer": 0, "explanation": "x"}]}
    policy, _ = _policy(json.dumps(bad))

    with pytest.raises(ParseError):
        asyncio.run(generation.generate_questions(policy, "content", count=1, types=["mcq"]))


def test_questions_out_of_range_index_is_parse_error():
    bad = [{"question": "q?", "options": ["a", "b", "c", "d"], "correctAnswer": 4, "explanation": ""}]
    policy, _ = _policy(json.dumps(bad))

    with pytest.raises(ParseError):
        asyncio.run(generation.generate_questions(policy, "content", count=1))


def test_unknown_question_type_rejected():
    policy, groq = _policy()
    with pytest.raises(ValidationError):
        asyncio.run(generation.generate_questions(policy, "content", count=3, types=["essay_novel"]))
    assert groq.calls == []


def test_summary_parses_fields_and_defaults():
    policy, groq = _policy("```json\n" + json.dumps({"summary": "S", "title": "", "subject": None}) + "\n```")

    out = asyncio.run(generation.generate_summary(policy, "content", length="short"))

    assert out.summary_text == "S"
    assert out.title == "Untitled Summary"
    assert out.subject == "General"
    assert groq.calls[0]["response_format"] == {"type": "json_object"}


def test_summary_without_summary_field_is_parse_error():
    policy, _ = _policy(json.dumps({"title": "T"}))
    with pytest.raises(ParseError):
        asyncio.run(generation.generate_summary(policy, "content"))


def test_summary_rejects_unknown_length():
    policy, _ = _policy()
    with pytest.raises(ValidationError):
        asyncio.run(generation.generate_summary(policy, "content", length="epic"))


def test_assignment_solution_requires_content_or_instructions():
    policy, groq = _policy()
    with pytest.raises(ValidationError):
        asyncio.run(generation.generate_assignment_solution(policy, "HW1", "  ", ""))
    assert groq.calls == []


def test_assignment_solution_from_instructions_only():
    policy, groq = _policy("The answer is 42.")

    out = asyncio.run(generation.generate_assignment_solution(policy, "HW1", "Explain the meaning of life", ""))

    assert out == "The answer is 42."
    prompt = groq.calls[0]["messages"][-1]["content"]
    assert "Explain the meaning of life" in prompt


def test_prompt_input_is_truncated_to_budget():
    policy, groq = _policy("refined")
    long_text = "x" * 20000

    asyncio.run(generation.refine_text(policy, long_text))

    prompt = groq.calls[0]["messages"][-1]["content"]
    assert "x" * 10000 in prompt
    assert "x" * 10001 not in prompt

import asyncio

import pytest

from studykit.core.errors import ValidationError
from studykit.services.llm.policy import ModelSelectionPolicy
from studykit.services.summaries import MIN_SOURCE_CHARS, create_summary, list_summaries

TEXT = "Photosynthesis converts light energy into chemical energy stored in glucose."


def test_create_summary_persists_generated_fields(db, registry):
    summary = asyncio.run(
        create_summary(db, ModelSelectionPolicy(registry), "u1", TEXT, length="short")
    )

    assert summary.id is not None
    assert summary.title == "Cell Biology"
    assert summary.subject == "Biology"
    assert summary.length == "short"
    assert summary.source_text == TEXT
    assert [s.id for s in list_summaries(db, "u1")] == [summary.id]
    assert list_summaries(db, "someone-else") == []


def test_explicit_title_wins(db, registry):
    summary = asyncio.run(create_summary(db, ModelSelectionPolicy(registry), "u1", TEXT, title="My notes"))
    assert summary.title == "My notes"


def test_short_source_rejected_before_any_call(db, registry):
    with pytest.raises(ValidationError):
        asyncio.run(create_summary(db, ModelSelectionPolicy(registry), "u1", "  " + "x" * (MIN_SOURCE_CHARS - 1) + "  "))
    assert all(p.calls == [] for p in registry.providers.values())

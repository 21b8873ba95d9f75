import json
import os
import re

# must be set before anything under studykit is imported
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"

import pytest  # noqa: E402

from studykit.db.base import Base  # noqa: E402
from studykit.db.session import SessionLocal, engine  # noqa: E402
import studykit.models  # noqa: F401,E402
from studykit.services.llm.catalogue import GEMINI, GROQ, NVIDIA, OPENROUTER  # noqa: E402
from studykit.services.llm.providers import ProviderRegistry  # noqa: E402

_COUNT_RE = re.compile(r"Create (\d+)")
_TYPE_RE = re.compile(r'QUIZ TYPE "(\w+)"')


class FakeProvider:
    """
    Provider double. Replies come from `replies` (in order; an Exception instance is
    raised instead of returned) or, when that list is empty, from `default`.
    """

    def __init__(self, name, replies=None, default=None):
        self.name = name
        self.replies = list(replies or [])
        self.default = default
        self.calls = []
        self.closed = False

    async def chat(self, model_id, messages, **kwargs):
        self.calls.append({"model_id": model_id, "messages": messages, **kwargs})
        if self.replies:
            reply = self.replies.pop(0)
        elif self.default is not None:
            reply = self.default(model_id, messages, **kwargs)
        else:
            raise AssertionError(f"unexpected call to {self.name} ({model_id})")
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def aclose(self):
        self.closed = True


def _user_text(messages):
    content = messages[-1]["content"]
    if isinstance(content, list):
        return " ".join(p.get("text", "") for p in content if p.get("type") == "text")
    return content


def study_assistant(model_id, messages, **kwargs):
    """Well-formed answers for every generation prompt."""
    text = _user_text(messages)

    if "summary of the provided study material" in text:
        return json.dumps({"summary": "Cells are the unit of life.", "title": "Cell Biology", "subject": "Biology"})

    if "flashcards from the following" in text:
        n = int(_COUNT_RE.search(text).group(1))
        return json.dumps({"flashcards": [{"question": f"Q{i}", "answer": f"A{i}"} for i in range(n)]})

    if "quiz questions from the following" in text:
        n = int(_COUNT_RE.search(text).group(1))
        qtype = _TYPE_RE.search(text).group(1)
        if qtype in ("short_answer", "short_essay"):
            items = [
                {"question": f"{qtype} {i}?", "options": [f"answer {i}"], "correctAnswer": 0, "explanation": "", "type": qtype}
                for i in range(n)
            ]
        elif qtype == "true_false":
            items = [
                {"question": f"tf {i}?", "options": ["True", "False"], "correctAnswer": 0, "explanation": "", "type": qtype}
                for i in range(n)
            ]
        else:
            items = [
                {
                    "question": f"{qtype} {i}?",
                    "options": ["a", "b", "c", "d"],
                    "correctAnswer": i % 4,
                    "explanation": "because",
                    "type": qtype,
                }
                for i in range(n)
            ]
        return json.dumps({"questions": items})

    if "academic tutor" in text:
        return "Step 1: read the question. Step 2: answer it."

    if "academic editor" in text:
        return "Refined notes"

    if "exam feedback" in text:
        return "Focus on chapter 2."

    raise AssertionError(f"unrecognised prompt: {text[:80]!r}")


def extracted_text(model_id, messages, **kwargs):
    return "Extracted page text about photosynthesis."


def make_registry(**overrides):
    providers = {
        GROQ: FakeProvider(GROQ, default=study_assistant),
        OPENROUTER: FakeProvider(OPENROUTER, default=study_assistant),
        NVIDIA: FakeProvider(NVIDIA, default=study_assistant),
        GEMINI: FakeProvider(GEMINI, default=extracted_text),
    }
    providers.update(overrides)
    return ProviderRegistry(providers=providers)


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def registry():
    return make_registry()


@pytest.fixture
def wired_registry(registry, monkeypatch):
    """Same fake providers for the API process and the (eager) worker."""
    from studykit.main import app
    from studykit.worker import tasks

    monkeypatch.setattr(app.state, "providers", registry)
    monkeypatch.setattr(tasks, "worker_providers", lambda: registry)
    return registry

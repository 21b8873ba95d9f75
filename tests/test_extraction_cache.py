import asyncio
import json
from dataclasses import replace

import httpx
import pytest

from conftest import FakeProvider, make_registry
from studykit.core.errors import ExternalServiceError, StageTimeoutError, ValidationError
from studykit.models.extracted_content import ExtractedContent
from studykit.models.source_document import SourceDocument
from studykit.models.status import DocumentStatus
from studykit.services import extraction_cache, timeouts
from studykit.services.documents import create_text_document
from studykit.services.llm.catalogue import GEMINI


def _document(db, **kwargs):
    doc = SourceDocument(
        owner_id="u1",
        name=kwargs.pop("name", "lecture.pdf"),
        location_ref=kwargs.pop("location_ref", "https://files.test/lecture.pdf"),
        mime_type=kwargs.pop("mime_type", "application/pdf"),
        **kwargs,
    )
    db.add(doc)
    db.commit()
    return doc


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_cache_hit_makes_no_network_call(db):
    doc = _document(db)
    extraction_cache.upsert_extracted(db, doc.id, "cached text", {"extraction_method": "test"})

    def handler(request):
        raise AssertionError("network must not be touched on a cache hit")

    gemini = FakeProvider(GEMINI)
    text = asyncio.run(
        extraction_cache.resolve_content(
            db, doc, providers=make_registry(**{GEMINI: gemini}), http_client=_client(handler)
        )
    )

    assert text == "cached text"
    assert gemini.calls == []


def test_miss_downloads_extracts_and_caches(db):
    doc = _document(db)
    fetched = []

    def handler(request):
        fetched.append(str(request.url))
        return httpx.Response(200, content=b"%PDF-1.4 fake")

    gemini = FakeProvider(GEMINI, replies=["Page 1\nHeading"])
    registry = make_registry(**{GEMINI: gemini})

    text = asyncio.run(extraction_cache.resolve_content(db, doc, providers=registry, http_client=_client(handler)))

    assert text == "Page 1\nHeading"
    assert fetched == ["https://files.test/lecture.pdf"]
    assert doc.status is DocumentStatus.ready

    row = db.query(ExtractedContent).filter(ExtractedContent.document_id == doc.id).one()
    assert row.extraction_metadata["kind"] == "document"
    assert row.extraction_metadata["mime_type"] == "application/pdf"

    # second call is served from the cache
    again = asyncio.run(extraction_cache.resolve_content(db, doc, providers=registry, http_client=_client(handler)))
    assert again == text
    assert len(fetched) == 1
    assert len(gemini.calls) == 1


def test_download_timeout_marks_error_and_writes_nothing(db, monkeypatch):
    monkeypatch.setattr(timeouts, "settings", replace(timeouts.settings, download_timeout_sec=0.05))
    doc = _document(db)

    async def slow(request):
        await asyncio.sleep(1)
        return httpx.Response(200, content=b"late")

    with pytest.raises(StageTimeoutError):
        asyncio.run(
            extraction_cache.resolve_content(db, doc, providers=make_registry(), http_client=_client(slow))
        )

    db.refresh(doc)
    assert doc.status is DocumentStatus.error
    assert "timed out" in doc.error
    assert db.query(ExtractedContent).count() == 0


def test_client_side_download_timeout_is_stage_timeout(db):
    doc = _document(db)

    def handler(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(StageTimeoutError) as ei:
        asyncio.run(
            extraction_cache.resolve_content(db, doc, providers=make_registry(), http_client=_client(handler))
        )

    assert isinstance(ei.value, TimeoutError)
    assert ei.value.stage.startswith("download of https://files.test/lecture.pdf")
    assert doc.status is DocumentStatus.error


def test_download_http_error_marks_error(db):
    doc = _document(db)

    def handler(request):
        return httpx.Response(403, text="forbidden")

    with pytest.raises(ExternalServiceError):
        asyncio.run(
            extraction_cache.resolve_content(db, doc, providers=make_registry(), http_client=_client(handler))
        )
    assert doc.status is DocumentStatus.error


def test_failed_document_can_be_retried(db):
    doc = _document(db)
    responses = [httpx.Response(500), httpx.Response(200, content=b"ok")]

    def handler(request):
        return responses.pop(0)

    client = _client(handler)
    with pytest.raises(ExternalServiceError):
        asyncio.run(extraction_cache.resolve_content(db, doc, providers=make_registry(), http_client=client))

    text = asyncio.run(extraction_cache.resolve_content(db, doc, providers=make_registry(), http_client=client))
    assert text.startswith("Extracted page text")
    assert doc.status is DocumentStatus.ready
    assert doc.error is None


def test_concurrent_first_extraction_runs_once(db):
    doc = _document(db)

    async def handler(request):
        await asyncio.sleep(0.01)
        return httpx.Response(200, content=b"bytes")

    gemini = FakeProvider(GEMINI, default=lambda *a, **k: "shared text")
    registry = make_registry(**{GEMINI: gemini})

    async def both():
        client = _client(handler)
        return await asyncio.gather(
            extraction_cache.resolve_content(db, doc, providers=registry, http_client=client),
            extraction_cache.resolve_content(db, doc, providers=registry, http_client=client),
        )

    assert asyncio.run(both()) == ["shared text", "shared text"]
    assert len(gemini.calls) == 1
    assert db.query(ExtractedContent).count() == 1


def test_upsert_is_idempotent(db):
    doc = _document(db)

    extraction_cache.upsert_extracted(db, doc.id, "first", {"v": 1})
    row = extraction_cache.upsert_extracted(db, doc.id, "second", {"v": 2})

    assert db.query(ExtractedContent).count() == 1
    assert row.text == "second"
    assert json.loads(row.metadata_json) == {"v": 2}


def test_virtual_text_document_is_ready_and_cached(db):
    doc = create_text_document(db, "u1", "notes.txt", "Plain typed notes")

    assert doc.status is DocumentStatus.ready
    text = asyncio.run(extraction_cache.resolve_content(db, doc, providers=make_registry()))
    assert text == "Plain typed notes"


def test_document_without_location_is_validation_error(db):
    doc = _document(db, location_ref=None)
    with pytest.raises(ValidationError):
        asyncio.run(extraction_cache.resolve_content(db, doc, providers=make_registry()))

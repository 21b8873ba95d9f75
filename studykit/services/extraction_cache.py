from __future__ import annotations

import asyncio
import json
import weakref
from typing import Any

import httpx
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studykit.core.config import settings
from studykit.core.errors import ExternalServiceError, StageTimeoutError, StudyKitError, ValidationError
from studykit.core.logger import get_logger
from studykit.models.extracted_content import ExtractedContent
from studykit.models.source_document import SourceDocument
from studykit.models.status import DocumentStatus, transition
from studykit.services import extractor
from studykit.services.llm.providers import ProviderRegistry
from studykit.services.timeouts import DOWNLOAD, EXTRACTION, ceiling_for, with_timeout

logger = get_logger(__name__)

# One in-flight extraction per document within this process.
_document_locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()


def _lock_for(document_id: int) -> asyncio.Lock:
    lock = _document_locks.get(document_id)
    if lock is None:
        lock = asyncio.Lock()
        _document_locks[document_id] = lock
    return lock


def get_cached(db: Session, document_id: int) -> ExtractedContent | None:
    return db.query(ExtractedContent).filter(ExtractedContent.document_id == document_id).first()


def upsert_extracted(db: Session, document_id: int, text: str, metadata: dict[str, Any] | None) -> ExtractedContent:
    """Idempotent: at most one row per document; a second upsert overwrites the first."""
    metadata_json = json.dumps(metadata or {}, ensure_ascii=False)

    row = get_cached(db, document_id)
    if not row:
        row = ExtractedContent(document_id=document_id, text=text, metadata_json=metadata_json)
        db.add(row)
        try:
            db.commit()
        except IntegrityError:
            # another process inserted first; fall through to update its row
            db.rollback()
            row = get_cached(db, document_id)
            if row is None:
                raise
        else:
            db.refresh(row)
            return row

    row.text = text
    row.metadata_json = metadata_json
    db.commit()
    db.refresh(row)
    return row


async def download_document(url: str, http_client: httpx.AsyncClient | None = None) -> bytes:
    timeout = settings.download_timeout_sec
    try:
        if http_client is not None:
            r = await http_client.get(url, timeout=timeout, follow_redirects=True)
        else:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
                r = await client.get(url)
    except httpx.TimeoutException as e:
        raise StageTimeoutError(f"download of {url}", timeout) from e
    except httpx.HTTPError as e:
        raise ExternalServiceError(f"Download failed: {e}") from e

    if r.status_code >= 400:
        raise ExternalServiceError(f"Failed to download file ({r.status_code})", status_code=r.status_code)
    return r.content


async def resolve_content(
    db: Session,
    document: SourceDocument,
    *,
    providers: ProviderRegistry,
    http_client: httpx.AsyncClient | None = None,
) -> str:
    """
    Get-or-extract the plain text of a document.

    Cache hit: return the stored text, no network access.
    Miss: download -> classify -> extract -> upsert -> document ready.
    On any failure the document is marked `error` and the error propagates.
    """
    cached = get_cached(db, document.id)
    if cached:
        return cached.text

    async with _lock_for(document.id):
        # a concurrent caller may have finished while we waited
        cached = get_cached(db, document.id)
        if cached:
            return cached.text

        if not document.location_ref:
            raise ValidationError(f"Document '{document.name}' has no content to extract")

        transition(document, DocumentStatus.processing)
        document.error = None
        db.commit()

        try:
            data = await with_timeout(
                download_document(document.location_ref, http_client),
                ceiling_for(DOWNLOAD),
                stage=f"download of {document.name}",
            )
            kind = extractor.classify_media_kind(document.mime_type, document.name)
            result = await with_timeout(
                extractor.extract(data, kind, document.mime_type, providers=providers),
                ceiling_for(EXTRACTION),
                stage=f"extraction of {document.name}",
            )
            upsert_extracted(db, document.id, result.text, result.metadata)
        except Exception as e:
            db.rollback()
            msg = e.message if isinstance(e, StudyKitError) else str(e)
            logger.error(f"extraction failed for document {document.id}: {msg}")
            transition(document, DocumentStatus.error)
            document.error = msg
            db.commit()
            raise

        transition(document, DocumentStatus.ready)
        db.commit()
        logger.info(f"extracted document {document.id} ({len(result.text)} chars)")
        return result.text

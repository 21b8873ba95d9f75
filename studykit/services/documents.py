import json
from typing import Any

from sqlalchemy.orm import Session

from studykit.core.errors import NotFoundError, ValidationError
from studykit.models.assignment import Assignment
from studykit.models.extracted_content import ExtractedContent
from studykit.models.source_document import SourceDocument
from studykit.models.status import DocumentStatus, transition


def get_owned(db: Session, model: type, entity_id: int, owner_id: str) -> Any:
    """Row by id, or NotFoundError when it is missing or belongs to someone else."""
    row = db.query(model).filter(model.id == entity_id).first()
    if not row or row.owner_id != owner_id:
        raise NotFoundError(f"{model.__name__} not found: {entity_id}")
    return row


def _check_assignment(db: Session, owner_id: str, assignment_id: int | None) -> None:
    if assignment_id is not None:
        get_owned(db, Assignment, assignment_id, owner_id)


def register_document(
    db: Session,
    owner_id: str,
    name: str,
    location_ref: str | None,
    *,
    mime_type: str | None = None,
    byte_size: int = 0,
    assignment_id: int | None = None,
) -> SourceDocument:
    if not location_ref or not location_ref.strip():
        raise ValidationError("Either url or text is required")
    _check_assignment(db, owner_id, assignment_id)

    doc = SourceDocument(
        owner_id=owner_id,
        name=name.strip(),
        location_ref=location_ref.strip(),
        mime_type=mime_type or "application/pdf",
        byte_size=byte_size,
        assignment_id=assignment_id,
        status=DocumentStatus.uploaded,
    )
    db.add(doc)
    db.commit()
    db.refresh(doc)
    return doc


def create_text_document(
    db: Session,
    owner_id: str,
    name: str,
    text: str,
    *,
    assignment_id: int | None = None,
) -> SourceDocument:
    """Virtual text-only document: its content is known up front, so it is cached and ready at once."""
    if not (text or "").strip():
        raise ValidationError("Document text is empty")
    _check_assignment(db, owner_id, assignment_id)

    doc = SourceDocument(
        owner_id=owner_id,
        name=name.strip(),
        location_ref=None,
        mime_type="text/plain",
        byte_size=len(text.encode("utf-8")),
        assignment_id=assignment_id,
        status=DocumentStatus.uploaded,
    )
    db.add(doc)
    db.flush()

    db.add(
        ExtractedContent(
            document_id=doc.id,
            text=text,
            metadata_json=json.dumps({"extraction_method": "inline-text"}),
        )
    )
    transition(doc, DocumentStatus.ready)
    db.commit()
    db.refresh(doc)
    return doc

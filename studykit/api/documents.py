from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from studykit.api.deps import get_user_id
from studykit.core.errors import StudyKitError
from studykit.db.session import get_db
from studykit.models.source_document import SourceDocument
from studykit.services.documents import create_text_document, register_document

router = APIRouter(prefix="/documents", tags=["documents"])


class DocumentCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    # uploaded file
    url: str | None = None
    mime_type: str | None = None
    byte_size: int = Field(default=0, ge=0)
    # virtual text-only document
    text: str | None = None
    assignment_id: int | None = None


class DocumentResponse(BaseModel):
    ok: bool
    document_id: int
    name: str
    status: str
    mime_type: str
    byte_size: int
    assignment_id: int | None = None
    error: str | None = None
    has_content: bool


def _to_response(doc: SourceDocument) -> DocumentResponse:
    return DocumentResponse(
        ok=True,
        document_id=doc.id,
        name=doc.name,
        status=doc.status.value,
        mime_type=doc.mime_type,
        byte_size=doc.byte_size,
        assignment_id=doc.assignment_id,
        error=doc.error,
        has_content=doc.extracted_content is not None,
    )


@router.post("", response_model=DocumentResponse)
def create_document(
    req: DocumentCreateRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> DocumentResponse:
    try:
        if req.text is not None:
            doc = create_text_document(db, user_id, req.name, req.text, assignment_id=req.assignment_id)
        else:
            doc = register_document(
                db,
                user_id,
                req.name,
                req.url,
                mime_type=req.mime_type,
                byte_size=req.byte_size,
                assignment_id=req.assignment_id,
            )
    except StudyKitError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    db.refresh(doc)
    return _to_response(doc)


@router.get("/{document_id}", response_model=DocumentResponse)
def get_document(
    document_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> DocumentResponse:
    doc = db.query(SourceDocument).filter(SourceDocument.id == document_id).first()
    if not doc or doc.owner_id != user_id:
        raise HTTPException(status_code=404, detail="Document not found")
    return _to_response(doc)

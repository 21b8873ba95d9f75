from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel
from sqlalchemy.orm import Session

from studykit.api.deps import get_providers, get_user_id
from studykit.core.errors import StudyKitError
from studykit.db.session import get_db
from studykit.models.summary import Summary
from studykit.services.generation import refine_text
from studykit.services.llm.providers import ProviderRegistry
from studykit.services.model_settings import policy_for
from studykit.services.summaries import create_summary, list_summaries

router = APIRouter(tags=["summaries"])


class SummaryCreateRequest(BaseModel):
    content: str
    title: str | None = None
    length: str = "medium"
    model: str = "auto"


class RefineRequest(BaseModel):
    content: str
    model: str = "auto"


def _summary_dict(s: Summary) -> dict:
    return {
        "summary_id": s.id,
        "title": s.title,
        "subject": s.subject,
        "length": s.length,
        "summary": s.summary_text,
        "created_at": s.created_at.isoformat() if s.created_at else None,
    }


@router.post("/summaries")
async def create(
    req: SummaryCreateRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    providers: ProviderRegistry = Depends(get_providers),
):
    policy = await run_in_threadpool(policy_for, db, user_id, providers)
    try:
        summary = await create_summary(
            db,
            policy,
            user_id,
            req.content,
            title=req.title,
            length=req.length,
            model=req.model,
        )
    except StudyKitError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)
    return {"ok": True, **_summary_dict(summary)}


@router.get("/summaries")
def list_for_user(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    rows = list_summaries(db, user_id, limit=limit, offset=offset)
    return {"ok": True, "items": [_summary_dict(s) for s in rows], "limit": limit, "offset": offset}


@router.post("/refine")
async def refine(
    req: RefineRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    providers: ProviderRegistry = Depends(get_providers),
):
    policy = await run_in_threadpool(policy_for, db, user_id, providers)
    try:
        refined = await refine_text(policy, req.content, model=req.model)
    except StudyKitError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)
    return {"ok": True, "refined": refined}

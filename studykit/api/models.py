from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from studykit.api.deps import get_providers, get_user_id
from studykit.core.errors import StudyKitError
from studykit.db.session import get_db
from studykit.services.llm.catalogue import AI_MODELS, DEFAULT_MODEL_ID
from studykit.services.llm.providers import ProviderRegistry
from studykit.services.model_settings import get_enabled_models, policy_for, set_enabled_models

router = APIRouter(tags=["models"])


class EnabledModelsRequest(BaseModel):
    enabled_models: list[str]


@router.get("/models")
def list_models(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    providers: ProviderRegistry = Depends(get_providers),
):
    policy = policy_for(db, user_id, providers)
    return {
        "ok": True,
        "default": DEFAULT_MODEL_ID,
        "enabled_models": get_enabled_models(db, user_id) or [],
        "models": [
            {
                "label": m.label,
                "name": m.name,
                "provider": m.provider,
                "category": m.category,
                "description": m.description,
                "is_free": m.is_free,
                "enabled": policy.is_enabled(m.label),
            }
            for m in AI_MODELS
        ],
    }


@router.put("/users/me/models")
def update_enabled_models(
    req: EnabledModelsRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    try:
        enabled = set_enabled_models(db, user_id, req.enabled_models)
    except StudyKitError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)
    return {"ok": True, "enabled_models": enabled}

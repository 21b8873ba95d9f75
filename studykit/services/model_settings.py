from __future__ import annotations

import json

from sqlalchemy.orm import Session

from studykit.core.errors import ValidationError
from studykit.models.user import User
from studykit.services.llm.catalogue import get_model
from studykit.services.llm.policy import ModelSelectionPolicy, parse_enabled_models
from studykit.services.llm.providers import ProviderRegistry


def get_enabled_models(db: Session, user_id: str) -> list[str] | None:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        return None
    return parse_enabled_models(user.enabled_models_json)


def set_enabled_models(db: Session, user_id: str, labels: list[str]) -> list[str]:
    unknown = [label for label in labels if get_model(label) is None]
    if unknown:
        raise ValidationError(f"Unknown model(s): {', '.join(unknown)}")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        user = User(id=user_id)
        db.add(user)

    cleaned = list(dict.fromkeys(labels))
    user.enabled_models_json = json.dumps(cleaned)
    db.commit()
    return cleaned


def policy_for(db: Session, user_id: str, providers: ProviderRegistry) -> ModelSelectionPolicy:
    return ModelSelectionPolicy(providers, get_enabled_models(db, user_id))

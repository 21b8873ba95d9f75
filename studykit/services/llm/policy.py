from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from studykit.core.errors import InvalidModelError
from studykit.core.logger import get_logger
from studykit.services.llm.catalogue import (
    LEGACY_ALIASES,
    SAFE_FALLBACK_MODEL_ID,
    ModelAlias,
    default_model,
    fallback_model,
    get_model,
    text_models,
)
from studykit.services.llm.providers import ProviderRegistry

logger = get_logger(__name__)


def parse_enabled_models(raw: str | None) -> list[str] | None:
    """Stored enablement list -> list of labels, or None when absent/unreadable."""
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(data, list):
        return None
    return [str(x) for x in data if isinstance(x, str) and x.strip()]


class ModelSelectionPolicy:
    """
    Resolves an abstract alias to a catalogue entry and runs chat calls against it.

    enabled_models: a per-user list. When it is None or empty the whole catalogue is
    enabled (default-allow). When non-empty, only listed aliases are selectable and any
    other request resolves to the first enabled text model.
    """

    def __init__(self, providers: ProviderRegistry, enabled_models: Iterable[str] | None = None) -> None:
        self.providers = providers
        self.enabled_models = [m for m in (enabled_models or []) if m]

    def is_enabled(self, label: str) -> bool:
        return not self.enabled_models or label in self.enabled_models

    def selectable(self) -> list[ModelAlias]:
        return [m for m in text_models() if self.is_enabled(m.label)]

    def resolve(self, alias: str | None) -> ModelAlias:
        requested = (alias or "auto").strip() or "auto"
        # "auto" always maps to the designated default, regardless of category
        if requested == "auto":
            return default_model()

        label = LEGACY_ALIASES.get(requested, requested)
        model = get_model(label)
        if model is None or not model.is_text:
            model = default_model()

        if self.is_enabled(model.label):
            return model

        candidates = self.selectable()
        if candidates:
            logger.info(f"model {model.label} not enabled for caller; using {candidates[0].label}")
            return candidates[0]
        return default_model()

    async def complete(
        self,
        alias: str | None,
        messages: list[dict[str, Any]],
        *,
        temperature: float = 0.2,
        max_tokens: int | None = None,
        response_format: dict[str, Any] | None = None,
    ) -> str:
        """Run one chat call; on an invalid-model rejection retry exactly once on the safe fallback."""
        model = self.resolve(alias)
        return await self._complete_with_fallback(
            model, messages, temperature=temperature, max_tokens=max_tokens, response_format=response_format
        )

    async def complete_model(self, label: str, messages: list[dict[str, Any]], **kwargs: Any) -> str:
        """Like `complete`, but for a configured label that bypasses the caller's enablement list."""
        model = get_model(label) or default_model()
        return await self._complete_with_fallback(model, messages, **kwargs)

    async def _complete_with_fallback(self, model: ModelAlias, messages: list[dict[str, Any]], **kwargs: Any) -> str:
        try:
            return await self._call(model, messages, **kwargs)
        except InvalidModelError as e:
            if model.label == SAFE_FALLBACK_MODEL_ID:
                raise
            fallback = fallback_model()
            logger.warning(f"model {model.label} rejected as invalid ({e.message}); retrying once with {fallback.label}")
            return await self._call(fallback, messages, **kwargs)

    async def _call(self, model: ModelAlias, messages: list[dict[str, Any]], **kwargs: Any) -> str:
        provider = self.providers.get(model.provider)
        return await provider.chat(model.model_id, messages, **kwargs)

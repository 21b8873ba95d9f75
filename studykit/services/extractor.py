from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any

from studykit.core.config import settings
from studykit.core.errors import ConfigurationError, ExternalServiceError
from studykit.core.logger import get_logger
from studykit.services.llm.catalogue import GEMINI
from studykit.services.llm.prompts import EXTRACTION_PROMPT
from studykit.services.llm.providers import ProviderRegistry

logger = get_logger(__name__)

DOCUMENT = "document"
SLIDE_DECK = "slide_deck"
IMAGE = "image"

KIND_MIME_TYPES = {
    DOCUMENT: "application/pdf",
    SLIDE_DECK: "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}


@dataclass
class ExtractionResult:
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


def classify_media_kind(mime_type: str | None, filename: str | None) -> str:
    """Declared MIME type / filename -> document | slide_deck | image. Unknown types are treated as documents."""
    mime = (mime_type or "").lower()
    name = (filename or "").lower()
    if "presentation" in mime or name.endswith((".pptx", ".ppt")):
        return SLIDE_DECK
    if mime.startswith("image/"):
        return IMAGE
    return DOCUMENT


def _media_part(data: bytes, mime_type: str) -> dict[str, Any]:
    b64 = base64.b64encode(data).decode("ascii")
    data_url = f"data:{mime_type};base64,{b64}"
    if mime_type.startswith("image/"):
        return {"type": "image_url", "image_url": {"url": data_url}}
    return {"type": "file", "file": {"filename": "upload", "file_data": data_url}}


async def extract(
    data: bytes,
    declared_kind: str,
    mime_type: str | None,
    *,
    providers: ProviderRegistry,
    model: str | None = None,
) -> ExtractionResult:
    """
    Transcribe all visible text from a document, slide deck or image with one multimodal call.
    No retry at this layer.
    """
    kind = (declared_kind or "").lower().replace("-", "_")
    if kind == IMAGE:
        if not mime_type:
            raise ConfigurationError("mime_type is required for image extraction")
        media_type = mime_type
    elif kind in KIND_MIME_TYPES:
        media_type = KIND_MIME_TYPES[kind]
    else:
        raise ConfigurationError(f"Unsupported file type: {declared_kind}")

    model_id = model or settings.extraction_model
    provider = providers.get(GEMINI)

    messages = [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": EXTRACTION_PROMPT},
                _media_part(data, media_type),
            ],
        }
    ]

    logger.info(f"extracting {kind} ({len(data)} bytes) with {model_id}")
    text = await provider.chat(model_id, messages, temperature=0.0)
    if not text.strip():
        raise ExternalServiceError(f"Extraction returned no text for {kind}")

    return ExtractionResult(
        text=text,
        metadata={
            "extraction_method": f"{GEMINI}-vision",
            "model": model_id,
            "mime_type": media_type,
            "kind": kind,
        },
    )

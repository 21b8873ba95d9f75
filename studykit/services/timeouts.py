from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from studykit.core.config import settings
from studykit.core.errors import StageTimeoutError

T = TypeVar("T")

# stage class -> ceiling (seconds)
DOWNLOAD = "download"
EXTRACTION = "extraction"
GENERATION = "generation"


def ceiling_for(stage: str) -> float:
    return {
        DOWNLOAD: settings.download_timeout_sec,
        EXTRACTION: settings.extraction_timeout_sec,
        GENERATION: settings.generation_timeout_sec,
    }[stage]


async def with_timeout(operation: Awaitable[T], ceiling_sec: float, stage: str = "operation") -> T:
    """
    Await `operation` for at most `ceiling_sec`.

    On expiry the pending task is cancelled and StageTimeoutError is raised.
    Cancellation is best-effort: side effects already started upstream are not undone.
    """
    try:
        return await asyncio.wait_for(operation, timeout=ceiling_sec)
    except StageTimeoutError:
        # an inner stage already expired; keep its stage name
        raise
    except asyncio.TimeoutError as e:
        raise StageTimeoutError(stage, ceiling_sec) from e

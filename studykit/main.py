from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.orm import Session

from studykit.api.assignments import router as assignments_router
from studykit.api.documents import router as documents_router
from studykit.api.exams import router as exams_router
from studykit.api.jobs import router as jobs_router
from studykit.api.models import router as models_router
from studykit.api.study_kits import router as study_kits_router
from studykit.api.summaries import router as summaries_router
from studykit.core.config import settings
from studykit.core.logger import get_logger
from studykit.db.session import get_db
from studykit.services.llm.providers import build_providers

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # provider clients are built once per process and passed explicitly to the services
    if getattr(app.state, "providers", None) is None:
        app.state.providers = build_providers(settings)
    logger.info(f"api starting (env={settings.env})")
    yield
    await app.state.providers.aclose()


app = FastAPI(title="StudyKit API", version="0.1.0", lifespan=lifespan)
app.state.providers = None

app.include_router(documents_router)
app.include_router(study_kits_router)
app.include_router(exams_router)
app.include_router(assignments_router)
app.include_router(summaries_router)
app.include_router(models_router)
app.include_router(jobs_router)


class HealthResponse(BaseModel):
    ok: bool
    service: str
    version: str
    db_ok: bool


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    # lightweight DB check
    db_ok = False
    db: Session = next(get_db())
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except Exception as e:
        logger.warning(f"health db check failed: {e}")
    finally:
        db.close()

    return HealthResponse(ok=True, service="api", version=app.version, db_ok=db_ok)

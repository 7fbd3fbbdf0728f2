# services/assessment/app.py
"""FastAPI app for the Assessment Attempt & Grading service:
- POST /assessments/{id}/attempt: start a timed attempt / open homework
- GET  /assessments/{id}/attempt: attempt status and remaining time
- POST /assessments/{id}/submit: grade and persist answers
- GET  /assessments/{id}/submission: graded review
- GET  /admin/assessments/{id}/submissions: staff listing
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from packages.common.config import get_settings
from packages.common.logging import configure_logging
from packages.common.tracing import trace_middleware
from .errors import AssessmentError
from .metrics import mark_rejected
from .repo import get_database
from .routes import router as assessment_router

log = logging.getLogger("assessment.api")

app = FastAPI(title="Assessment Engine", version="1.0.0")
app.middleware("http")(trace_middleware)
app.include_router(assessment_router)


@app.exception_handler(AssessmentError)
async def _assessment_error(request: Request, exc: AssessmentError) -> JSONResponse:
    """Render engine errors as `{"detail", "code"}` with their mapped status."""
    mark_rejected(exc.code)
    if exc.status_code >= 500:
        log.error("assessment failure", extra={"code": exc.code, "path": request.url.path, "reason": str(exc)})
        detail = exc.default_message
    else:
        detail = exc.message
    return JSONResponse(status_code=exc.status_code, content={"detail": detail, "code": exc.code})


@app.exception_handler(Exception)
async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and answer with a generic 500 that leaks no internals."""
    log.exception("unhandled error", extra={"path": request.url.path})
    return JSONResponse(status_code=500, content={"detail": "Internal server error", "code": "internal_error"})


@app.get("/healthz", tags=["system"])
def healthz() -> dict:
    return {"ok": True}


@app.get("/metrics", tags=["system"])
def metrics() -> PlainTextResponse:
    data = generate_latest()
    return PlainTextResponse(data.decode("utf-8"), media_type=CONTENT_TYPE_LATEST)


@app.on_event("startup")
async def _init() -> None:
    """Configure logging and make sure the schema exists."""
    configure_logging(get_settings().LOG_LEVEL)
    await get_database().create_all()


@app.on_event("shutdown")
async def _close() -> None:
    await get_database().dispose()

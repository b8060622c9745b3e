"""FastAPI entrypoint for the exam delivery engine."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from exam_delivery.config import SESSION_SECRET_KEY
from exam_delivery.database import create_db_and_tables
from exam_delivery.errors import AttemptConflictError, ExamEngineError, ValidationError
from exam_delivery.logging_config import configure_logging
from exam_delivery.question_types import build_default_registry
from exam_delivery.routers import attempts as attempts_router_module

logger = logging.getLogger(__name__)

app = FastAPI(title="Exam Delivery Engine")


@app.exception_handler(ExamEngineError)
async def engine_error_handler(request: Request, exc: ExamEngineError):
    """Render engine errors with the same JSON shape as HTTPException."""
    content = {"detail": exc.message}
    if isinstance(exc, ValidationError) and exc.errors:
        content["errors"] = exc.errors
    if isinstance(exc, AttemptConflictError):
        content["retryable"] = exc.retryable
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=content)


# Session middleware for cookie-based authentication; the auth app sets user_id
app.add_middleware(SessionMiddleware, secret_key=SESSION_SECRET_KEY)

# Routers
app.include_router(attempts_router_module.router, prefix="/attempts", tags=["attempts"])


@app.on_event("startup")
def on_startup():
    """Configure logging, initialize the schema and register question types."""
    configure_logging()
    create_db_and_tables()
    app.state.registry = build_default_registry()
    logger.info(
        "Question types registered: %s", ", ".join(app.state.registry.supported_types())
    )

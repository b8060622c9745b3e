"""Shared FastAPI dependencies for database access, authentication and services."""

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from exam_delivery.database import get_session
from exam_delivery.question_types import StrategyRegistry, build_default_registry
from exam_delivery.services.attempt_service import ExamAttemptService


def get_current_user_id(request: Request) -> int:
    """Return the logged-in user's id from the session cookie, or 401."""
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return int(user_id)


def get_registry(request: Request) -> StrategyRegistry:
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        # Startup hook has not run (e.g. app mounted without lifespan events)
        registry = build_default_registry()
        request.app.state.registry = registry
    return registry


def get_attempt_service(
    session: Session = Depends(get_session),
    registry: StrategyRegistry = Depends(get_registry),
) -> ExamAttemptService:
    return ExamAttemptService(session, registry)

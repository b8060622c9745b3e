"""Participant-facing attempt routes: start, sequential delivery, submit and results."""

from fastapi import APIRouter, Depends, Query

from exam_delivery.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from exam_delivery.deps import get_attempt_service, get_current_user_id
from exam_delivery.schemas import (
    AttemptResultsOut,
    MyResultsOut,
    NextQuestionOut,
    StartExamIn,
    StartExamOut,
    SubmitAnswerIn,
    SubmitAnswerOut,
    SubmitExamOut,
)
from exam_delivery.services.attempt_service import ExamAttemptService

router = APIRouter()


@router.post("/start", response_model=StartExamOut)
def start_exam(
    payload: StartExamIn,
    user_id: int = Depends(get_current_user_id),
    service: ExamAttemptService = Depends(get_attempt_service),
):
    """Redeem an access code; resuming an in-progress attempt returns it unchanged."""
    return service.start_exam(payload.access_code, user_id)


# Declared before the /{attempt_id} routes so "me" is not parsed as an id
@router.get("/me/results", response_model=MyResultsOut)
def my_results(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user_id: int = Depends(get_current_user_id),
    service: ExamAttemptService = Depends(get_attempt_service),
):
    return service.get_my_results(user_id, page=page, limit=limit)


@router.get("/{attempt_id}/next-question", response_model=NextQuestionOut)
def next_question(
    attempt_id: int,
    user_id: int = Depends(get_current_user_id),
    service: ExamAttemptService = Depends(get_attempt_service),
):
    return service.get_next_question(attempt_id, user_id)


@router.post("/{attempt_id}/answers", response_model=SubmitAnswerOut)
def submit_answer(
    attempt_id: int,
    payload: SubmitAnswerIn,
    user_id: int = Depends(get_current_user_id),
    service: ExamAttemptService = Depends(get_attempt_service),
):
    return service.submit_answer(attempt_id, payload.question_id, payload.answer, user_id)


@router.post("/{attempt_id}/submit", response_model=SubmitExamOut)
def submit_exam(
    attempt_id: int,
    user_id: int = Depends(get_current_user_id),
    service: ExamAttemptService = Depends(get_attempt_service),
):
    return service.submit_exam(attempt_id, user_id)


@router.get("/{attempt_id}/results", response_model=AttemptResultsOut)
def attempt_results(
    attempt_id: int,
    user_id: int = Depends(get_current_user_id),
    service: ExamAttemptService = Depends(get_attempt_service),
):
    return service.get_attempt_results(attempt_id, user_id)

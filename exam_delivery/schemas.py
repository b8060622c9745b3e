"""Request/response schemas for the attempt operations and question authoring."""

from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel


# --- Question authoring ---


class QuestionCreate(BaseModel):
    """Free-form question input as received from an authoring client."""

    type: str
    question_text: str
    options: Optional[List[str]] = None
    correct_answer: Any = None
    points: Optional[int] = None
    order: Optional[int] = None


class NormalizedQuestion(BaseModel):
    """Canonical question shape ready to be stored."""

    type: str
    question_text: str
    options: List[str]
    correct_answer: Union[str, List[str]]
    points: int
    order: int


class QuestionView(BaseModel):
    """Participant-facing projection of a question. Never carries the answer key."""

    id: int
    type: str
    question_text: str
    options: List[str]
    points: int
    order: int


# --- Attempt operations ---


class StartExamIn(BaseModel):
    access_code: str


class StartExamOut(BaseModel):
    attempt_id: int
    exam_id: int
    title: str
    description: Optional[str] = None
    duration_minutes: int
    total_questions: int
    started_at: datetime
    time_remaining: int


class Progress(BaseModel):
    answered: int
    total: int
    current_index: int
    percentage: int
    remaining: int


class NextQuestionOut(BaseModel):
    question: QuestionView
    progress: Progress
    time_remaining: int


class SubmitAnswerIn(BaseModel):
    question_id: int
    # Shape is checked by the question type strategy, not by pydantic
    answer: Any = None


class AnswerProgress(BaseModel):
    answered: int
    total: int


class SubmitAnswerOut(BaseModel):
    message: str
    time_remaining: int
    progress: AnswerProgress


class SubmitExamOut(BaseModel):
    attempt_id: int
    score: int
    max_score: int
    percentage: int
    passed: bool
    submitted_at: datetime


class AnswerDetail(BaseModel):
    question_id: int
    question_text: str
    user_answer: Union[str, List[str]]
    correct_answer: Union[str, List[str], None]
    is_correct: bool
    points: int
    earned_points: int


class AttemptResultsOut(BaseModel):
    attempt_id: int
    exam_id: int
    status: str
    score: int
    max_score: int
    percentage: int
    passed: bool
    pass_percentage: int
    submitted_at: Optional[datetime] = None
    answers: List[AnswerDetail]


class MyResultItem(BaseModel):
    attempt_id: int
    exam_id: int
    exam_title: str
    status: str
    score: int
    max_score: int
    percentage: int
    passed: bool
    pass_percentage: int
    submitted_at: Optional[datetime] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class MyResultsOut(BaseModel):
    data: List[MyResultItem]
    pagination: Pagination

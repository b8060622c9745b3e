"""SQLModel models for the exam delivery engine."""

from datetime import datetime
from typing import Any, Optional, Union

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel

from exam_delivery.constants import AttemptStatus
from exam_delivery.utils import utcnow


class Exam(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None
    duration_minutes: int
    randomize_questions: bool = Field(default=False)
    pass_percentage: int = Field(default=50)
    # Availability window; ignored when available_anytime is set
    available_anytime: bool = Field(default=True)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Question(SQLModel, table=True):
    """A choice-based question; ``type`` selects the marking strategy."""

    id: Optional[int] = Field(default=None, primary_key=True)
    exam_id: int = Field(foreign_key="exam.id", index=True)
    type: str
    question_text: str
    options: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    # Option text for single-select, list of index tokens for multi-select
    correct_answer: Union[str, list[str], None] = Field(default=None, sa_column=Column(JSON))
    points: int = Field(default=1)
    order: int = Field(default=0)


class ExamParticipant(SQLModel, table=True):
    """Binds a user to an exam through a single-use access code."""

    __table_args__ = (
        UniqueConstraint("access_code", name="uq_participant_access_code"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    exam_id: int = Field(foreign_key="exam.id", index=True)
    user_id: int = Field(index=True)
    email: str
    access_code: str
    is_used: bool = Field(default=False)
    added_at: datetime = Field(default_factory=utcnow)


class ExamAttempt(SQLModel, table=True):
    """Tracks one user's timed run through one exam."""

    __table_args__ = (
        UniqueConstraint("exam_id", "user_id", name="uq_attempt_exam_user"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    exam_id: int = Field(foreign_key="exam.id", index=True)
    participant_id: int = Field(foreign_key="examparticipant.id", index=True)
    user_id: int = Field(index=True)
    status: str = Field(default=AttemptStatus.NOT_STARTED.value, index=True)

    # Positions into the exam's canonical question list, fixed at creation
    question_order: list[int] = Field(default_factory=list, sa_column=Column(JSON))
    current_question_index: int = Field(default=0)
    # Positions within question_order, kept sorted
    answered_questions: list[int] = Field(default_factory=list, sa_column=Column(JSON))
    # question id (str) -> {"answer": ..., "answered_at": iso, "updated_at": iso}
    answers: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    started_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    abandoned_at: Optional[datetime] = None
    time_remaining: int = Field(default=0)  # seconds, snapshot at last write

    score: Optional[int] = None
    max_score: Optional[int] = None
    percentage: Optional[int] = None

    # Optimistic concurrency token, bumped on every versioned write
    version: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

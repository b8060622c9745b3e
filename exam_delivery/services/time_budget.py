"""Remaining-time computation for attempts.

There is no background timer: every call that touches an in-progress attempt
recomputes the remainder from ``started_at`` and the exam duration.
"""

import math
from datetime import datetime
from typing import Callable, Optional

from exam_delivery.models import Exam, ExamAttempt
from exam_delivery.utils import utcnow


def raw_remaining_seconds(
    started_at: Optional[datetime], duration_minutes: Optional[int], now: datetime
) -> int:
    """Unclamped remainder; negative once the budget is overrun."""
    if started_at is None or not duration_minutes:
        return 0
    elapsed = (now - started_at).total_seconds()
    return math.floor(duration_minutes * 60 - elapsed)


def remaining_seconds(
    started_at: Optional[datetime], duration_minutes: Optional[int], now: datetime
) -> int:
    """Remainder shown to participants, never below zero."""
    return max(0, raw_remaining_seconds(started_at, duration_minutes, now))


class TimeBudget:
    """Evaluates an attempt's time budget against an injectable clock.

    Two gates with different tolerance for the exact-zero case:

    * ``is_exhausted``: read paths auto-submit when nothing is left (``<= 0``).
    * ``is_overrun``: final submission is refused only past the end (``< 0``).
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or utcnow

    def now(self) -> datetime:
        return self.clock()

    def raw_remaining(self, attempt: ExamAttempt, exam: Optional[Exam]) -> int:
        duration = exam.duration_minutes if exam else None
        return raw_remaining_seconds(attempt.started_at, duration, self.now())

    def remaining(self, attempt: ExamAttempt, exam: Optional[Exam]) -> int:
        return max(0, self.raw_remaining(attempt, exam))

    def is_exhausted(self, attempt: ExamAttempt, exam: Optional[Exam]) -> bool:
        return self.remaining(attempt, exam) <= 0

    def is_overrun(self, attempt: ExamAttempt, exam: Optional[Exam]) -> bool:
        return self.raw_remaining(attempt, exam) < 0

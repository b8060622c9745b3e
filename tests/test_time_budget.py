from datetime import datetime, timedelta

from exam_delivery.models import Exam, ExamAttempt
from exam_delivery.services.time_budget import (
    TimeBudget,
    raw_remaining_seconds,
    remaining_seconds,
)

STARTED = datetime(2026, 3, 2, 9, 0, 0)


def test_remaining_is_floored():
    now = STARTED + timedelta(seconds=10, milliseconds=400)
    assert raw_remaining_seconds(STARTED, 1, now) == 49


def test_remaining_is_clamped_but_raw_is_not():
    now = STARTED + timedelta(minutes=1, seconds=5)
    assert raw_remaining_seconds(STARTED, 1, now) == -5
    assert remaining_seconds(STARTED, 1, now) == 0


def test_missing_start_or_duration_gives_zero():
    assert raw_remaining_seconds(None, 10, STARTED) == 0
    assert raw_remaining_seconds(STARTED, 0, STARTED) == 0


class TestGates:
    """Exactly zero left is exhausted for reads but not overrun for submit."""

    def _budget(self, elapsed: timedelta) -> TimeBudget:
        return TimeBudget(lambda: STARTED + elapsed)

    def test_before_deadline(self):
        budget = self._budget(timedelta(seconds=59))
        attempt, exam = ExamAttempt(started_at=STARTED), Exam(title="E", duration_minutes=1)
        assert budget.remaining(attempt, exam) == 1
        assert not budget.is_exhausted(attempt, exam)
        assert not budget.is_overrun(attempt, exam)

    def test_at_deadline(self):
        budget = self._budget(timedelta(minutes=1))
        attempt, exam = ExamAttempt(started_at=STARTED), Exam(title="E", duration_minutes=1)
        assert budget.is_exhausted(attempt, exam)
        assert not budget.is_overrun(attempt, exam)

    def test_past_deadline(self):
        budget = self._budget(timedelta(minutes=1, seconds=1))
        attempt, exam = ExamAttempt(started_at=STARTED), Exam(title="E", duration_minutes=1)
        assert budget.is_exhausted(attempt, exam)
        assert budget.is_overrun(attempt, exam)

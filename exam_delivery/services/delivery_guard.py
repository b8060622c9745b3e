"""Strictly sequential question delivery.

Bookkeeping is by position within ``question_order``, not by question id:
``current_question_index`` is the position the participant may answer and
``answered_questions`` the positions already answered.
"""

from exam_delivery.errors import BadRequestError
from exam_delivery.models import ExamAttempt
from exam_delivery.schemas import AnswerProgress, Progress
from exam_delivery.utils import round_half_up


class SequentialDeliveryGuard:
    """One question at a time, in the order fixed at attempt creation."""

    def next_position(self, attempt: ExamAttempt) -> tuple[int, bool]:
        """Position to serve next and whether it advances the attempt.

        Fetching again before answering re-serves the same position.

        Raises:
            BadRequestError: every question is answered, or the current one
                has not been answered yet.
        """
        answered = attempt.answered_questions or []
        current = attempt.current_question_index
        if not answered:
            return 0, False

        last_answered = max(answered)
        next_index = last_answered + 1
        if next_index >= len(attempt.question_order):
            raise BadRequestError("All questions have been answered")

        if current == last_answered:
            return next_index, True
        if current == next_index:
            return current, False

        raise BadRequestError(f"Please answer question {current + 1} before proceeding")

    def ensure_current(self, attempt: ExamAttempt, question_position: int) -> None:
        """Reject answers for any question other than the one being served.

        ``question_position`` is the question's index in the canonical list.
        """
        current = attempt.current_question_index
        order = attempt.question_order or []
        if current >= len(order) or order[current] != question_position:
            raise BadRequestError(
                f"Questions must be answered in order. Please answer question {current + 1} first"
            )

    def progress(self, attempt: ExamAttempt, total: int) -> Progress:
        answered = len(attempt.answered_questions or [])
        return Progress(
            answered=answered,
            total=total,
            current_index=attempt.current_question_index,
            percentage=round_half_up(answered / total * 100) if total else 0,
            remaining=total - answered,
        )

    def answer_progress(self, attempt: ExamAttempt, total: int) -> AnswerProgress:
        return AnswerProgress(answered=len(attempt.answered_questions or []), total=total)

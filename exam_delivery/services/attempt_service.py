"""Exam attempt lifecycle: start, fetch next question, answer, submit, results.

States: not-started -> in-progress -> submitted | expired, and
in-progress -> abandoned through an administrative action. Expiration is
lazy: it is detected when a participant calls back on a stale attempt.
"""

import logging
import random
from datetime import datetime
from typing import Any, Callable, List, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from exam_delivery.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from exam_delivery.constants import SCORED_STATUSES, AttemptStatus, QuestionType
from exam_delivery.errors import (
    BadRequestError,
    ForbiddenError,
    InternalError,
    NotFoundError,
)
from exam_delivery.models import Exam, ExamAttempt, Question
from exam_delivery.question_types import StrategyRegistry
from exam_delivery.repositories import (
    AttemptRepository,
    ExamRepository,
    ParticipantRepository,
    QuestionRepository,
)
from exam_delivery.schemas import (
    AnswerDetail,
    AttemptResultsOut,
    MyResultItem,
    MyResultsOut,
    NextQuestionOut,
    Pagination,
    StartExamOut,
    SubmitAnswerOut,
    SubmitExamOut,
)
from exam_delivery.services.delivery_guard import SequentialDeliveryGuard
from exam_delivery.services.scoring import ScoringEngine
from exam_delivery.services.time_budget import TimeBudget
from exam_delivery.utils import paginate, parse_index_token

logger = logging.getLogger(__name__)

TIME_EXPIRED_MESSAGE = "Exam time has expired. Your exam has been automatically submitted."


class ExamAttemptService:
    """Orchestrates one participant's attempt across its lifecycle.

    Every participant-facing operation takes the authenticated ``user_id``
    and checks attempt ownership before anything else.
    """

    def __init__(
        self,
        session: Session,
        registry: StrategyRegistry,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.exams = ExamRepository(session)
        self.questions = QuestionRepository(session)
        self.participants = ParticipantRepository(session)
        self.attempts = AttemptRepository(session)
        self.session = session
        self.registry = registry
        self.time_budget = TimeBudget(clock)
        self.guard = SequentialDeliveryGuard()
        self.scoring = ScoringEngine(registry)
        self.rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    def start_exam(self, access_code: str, user_id: int) -> StartExamOut:
        """Redeem an access code and open (or resume) the attempt."""
        logger.info("Starting exam for user %s", user_id)

        participant = self.participants.find_by_access_code(access_code)
        if not participant:
            raise NotFoundError("Invalid access code")
        if participant.user_id != user_id:
            raise ForbiddenError("This access code does not belong to you")

        exam = self._get_exam(participant.exam_id)

        existing = self.attempts.find_by_exam_and_user(exam.id, user_id)
        if existing:
            return self._resume(existing, exam)

        if participant.is_used:
            raise BadRequestError("This access code has already been used")

        self._check_availability(exam)

        questions = self.questions.find_by_exam_id(exam.id)
        if not questions:
            raise BadRequestError("Exam has no questions")

        question_order = list(range(len(questions)))
        if exam.randomize_questions:
            self.rng.shuffle(question_order)

        try:
            attempt = self.attempts.create(
                exam_id=exam.id,
                participant_id=participant.id,
                user_id=user_id,
                question_order=question_order,
            )
        except IntegrityError:
            # Another request created the attempt between our lookup and insert
            self.session.rollback()
            existing = self.attempts.find_by_exam_and_user(exam.id, user_id)
            if existing is None:
                raise
            return self._resume(existing, exam)

        self.participants.mark_used(participant.id)
        return self._activate(attempt, exam, len(questions))

    def _activate(self, attempt: ExamAttempt, exam: Exam, total_questions: int) -> StartExamOut:
        """not-started -> in-progress; the clock starts here."""
        now = self.time_budget.now()
        duration_seconds = exam.duration_minutes * 60
        activated = self.attempts.update_by_id(
            attempt.id,
            attempt.version,
            status=AttemptStatus.IN_PROGRESS.value,
            started_at=now,
            time_remaining=duration_seconds,
            last_activity_at=now,
        )
        if activated is None:
            raise InternalError("Failed to start exam attempt")

        logger.info("Exam %s started: attempt %s", exam.id, activated.id)
        return StartExamOut(
            attempt_id=activated.id,
            exam_id=exam.id,
            title=exam.title,
            description=exam.description,
            duration_minutes=exam.duration_minutes,
            total_questions=total_questions,
            started_at=now,
            time_remaining=duration_seconds,
        )

    def _resume(self, attempt: ExamAttempt, exam: Exam) -> StartExamOut:
        if attempt.status == AttemptStatus.ABANDONED.value:
            raise BadRequestError(
                "You cannot resume this exam. The exam session has been abandoned."
            )
        if attempt.status == AttemptStatus.NOT_STARTED.value:
            # Created but never activated; finish the start
            return self._activate(
                attempt, exam, len(self.questions.find_by_exam_id(exam.id))
            )
        if attempt.status != AttemptStatus.IN_PROGRESS.value:
            raise BadRequestError("You have already completed this exam")

        logger.info("Resuming attempt %s", attempt.id)
        return StartExamOut(
            attempt_id=attempt.id,
            exam_id=exam.id,
            title=exam.title,
            description=exam.description,
            duration_minutes=exam.duration_minutes,
            total_questions=len(self.questions.find_by_exam_id(exam.id)),
            started_at=attempt.started_at,
            time_remaining=self.time_budget.remaining(attempt, exam),
        )

    def _check_availability(self, exam: Exam) -> None:
        if exam.available_anytime:
            return
        now = self.time_budget.now()
        if exam.start_time and now < exam.start_time:
            raise BadRequestError("Exam has not started yet")
        if exam.end_time and now > exam.end_time:
            raise BadRequestError("Exam has ended")

    # ------------------------------------------------------------------
    # Sequential delivery
    # ------------------------------------------------------------------

    def get_next_question(self, attempt_id: int, user_id: int) -> NextQuestionOut:
        logger.debug("Getting next question for attempt %s", attempt_id)

        attempt = self._get_owned_attempt(
            attempt_id, user_id, "You do not have permission to access this attempt"
        )
        self._ensure_in_progress(attempt, "fetch questions")

        exam = self._get_exam(attempt.exam_id)
        questions = self.questions.find_by_exam_id(exam.id)
        self._expire_if_exhausted(attempt, exam, questions)

        self.attempts.update_activity(attempt.id, self.time_budget.now())

        position, advanced = self.guard.next_position(attempt)
        if advanced:
            attempt = self.attempts.update_by_id(
                attempt.id, attempt.version, current_question_index=position
            )
            if attempt is None:
                raise InternalError("Failed to advance exam attempt")

        question_index = attempt.question_order[position]
        if question_index >= len(questions):
            raise NotFoundError("Question not found")
        question = questions[question_index]

        view = self.registry.get(question.type).render(question)
        return NextQuestionOut(
            question=view,
            progress=self.guard.progress(attempt, len(questions)),
            time_remaining=self.time_budget.remaining(attempt, exam),
        )

    def submit_answer(
        self, attempt_id: int, question_id: int, answer: Any, user_id: int
    ) -> SubmitAnswerOut:
        logger.debug("Submitting answer for attempt %s question %s", attempt_id, question_id)

        attempt = self._get_owned_attempt(
            attempt_id, user_id, "You do not have permission to submit answers for this attempt"
        )
        self._ensure_in_progress(attempt, "submit answers")

        exam = self._get_exam(attempt.exam_id)
        questions = self.questions.find_by_exam_id(exam.id)
        self._expire_if_exhausted(attempt, exam, questions)

        question = self.questions.find_by_id(question_id)
        if not question:
            raise NotFoundError("Question not found")
        if question.exam_id != attempt.exam_id:
            raise BadRequestError("Question does not belong to this exam")

        strategy = self.registry.get(question.type)
        if not strategy.validate_answer_format(answer):
            raise BadRequestError("Invalid answer format for this question type")

        position = next(i for i, q in enumerate(questions) if q.id == question.id)
        self.guard.ensure_current(attempt, position)

        updated = self.attempts.update_answer(
            attempt, question.id, answer, self.time_budget.now()
        )
        if updated is None:
            raise InternalError("Failed to retrieve updated attempt")

        logger.debug("Answer saved for attempt %s question %s", attempt_id, question_id)
        return SubmitAnswerOut(
            message="Answer saved successfully",
            time_remaining=self.time_budget.remaining(updated, exam),
            progress=self.guard.answer_progress(updated, len(questions)),
        )

    # ------------------------------------------------------------------
    # Submission and expiry
    # ------------------------------------------------------------------

    def submit_exam(self, attempt_id: int, user_id: int) -> SubmitExamOut:
        logger.info("Submitting exam attempt %s", attempt_id)

        attempt = self._get_owned_attempt(
            attempt_id, user_id, "You do not have permission to submit this exam"
        )
        if attempt.status == AttemptStatus.SUBMITTED.value:
            raise BadRequestError("Exam has already been submitted")
        if attempt.status != AttemptStatus.IN_PROGRESS.value:
            raise BadRequestError(f"Cannot submit exam. Status: {attempt.status}")

        exam = self._get_exam(attempt.exam_id)
        questions = self.questions.find_by_exam_id(exam.id)

        if len(attempt.answered_questions or []) != len(questions):
            raise BadRequestError("Please answer all questions before submitting the exam")

        # Only a budget already overrun is refused; exactly zero left still submits
        if self.time_budget.is_overrun(attempt, exam):
            raise BadRequestError("Exam time has expired")

        card = self.scoring.score(questions, attempt.answers or {}, exam.pass_percentage)
        submitted_at = self.time_budget.now()
        updated = self.attempts.update_by_id(
            attempt.id,
            attempt.version,
            status=AttemptStatus.SUBMITTED.value,
            submitted_at=submitted_at,
            score=card.score,
            max_score=card.max_score,
            percentage=card.percentage,
            time_remaining=self.time_budget.remaining(attempt, exam),
        )
        if updated is None:
            raise InternalError("Failed to submit exam")

        logger.info(
            "Exam attempt %s submitted: %s/%s (%s%%)",
            attempt_id,
            card.score,
            card.max_score,
            card.percentage,
        )
        return SubmitExamOut(
            attempt_id=updated.id,
            score=card.score,
            max_score=card.max_score,
            percentage=card.percentage,
            passed=card.passed,
            submitted_at=submitted_at,
        )

    def _expire_if_exhausted(
        self, attempt: ExamAttempt, exam: Exam, questions: List[Question]
    ) -> None:
        """Auto-submit a stale attempt, then refuse the triggering call."""
        if not self.time_budget.is_exhausted(attempt, exam):
            return

        card = self.scoring.score(questions, attempt.answers or {}, exam.pass_percentage)
        updated = self.attempts.update_by_id(
            attempt.id,
            attempt.version,
            status=AttemptStatus.EXPIRED.value,
            submitted_at=self.time_budget.now(),
            score=card.score,
            max_score=card.max_score,
            percentage=card.percentage,
            time_remaining=0,
        )
        if updated is None:
            raise InternalError("Failed to expire exam attempt")

        logger.info("Exam attempt %s auto-submitted due to time expiration", attempt.id)
        raise BadRequestError(TIME_EXPIRED_MESSAGE)

    def abandon_attempt(self, attempt_id: int) -> ExamAttempt:
        """Administrative action: close an in-progress attempt for good."""
        attempt = self.attempts.find_by_id(attempt_id)
        if not attempt:
            raise NotFoundError("Exam attempt not found")
        if attempt.status != AttemptStatus.IN_PROGRESS.value:
            raise BadRequestError(
                f"Only in-progress attempts can be abandoned. Status: {attempt.status}"
            )

        updated = self.attempts.mark_abandoned(attempt, self.time_budget.now())
        if updated is None:
            raise InternalError("Failed to abandon exam attempt")
        logger.info("Exam attempt %s abandoned", attempt_id)
        return updated

    def time_remaining(self, attempt: ExamAttempt) -> int:
        """Recompute the remainder for callers reading attempts directly."""
        return self.time_budget.remaining(attempt, self.exams.find_by_id(attempt.exam_id))

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def get_attempt_results(self, attempt_id: int, user_id: int) -> AttemptResultsOut:
        logger.debug("Getting results for attempt %s", attempt_id)

        attempt = self._get_owned_attempt(
            attempt_id, user_id, "You do not have permission to view these results"
        )
        if attempt.status not in SCORED_STATUSES:
            raise BadRequestError("Exam has not been submitted yet")

        exam = self._get_exam(attempt.exam_id)
        questions = self.questions.find_by_exam_id(exam.id)
        answers = attempt.answers or {}

        details = []
        for question in questions:
            earned = self.scoring.mark(question, answers)
            entry = answers.get(str(question.id))
            details.append(
                AnswerDetail(
                    question_id=question.id,
                    question_text=question.question_text,
                    user_answer=self._display_answer(
                        entry.get("answer") if isinstance(entry, dict) else None, question
                    ),
                    correct_answer=self._display_answer(
                        question.correct_answer, question, is_key=True
                    ),
                    is_correct=earned == question.points,
                    points=question.points,
                    earned_points=earned,
                )
            )

        percentage = attempt.percentage or 0
        return AttemptResultsOut(
            attempt_id=attempt.id,
            exam_id=exam.id,
            status=attempt.status,
            score=attempt.score or 0,
            max_score=attempt.max_score or 0,
            percentage=percentage,
            passed=percentage >= exam.pass_percentage,
            pass_percentage=exam.pass_percentage,
            submitted_at=attempt.submitted_at,
            answers=details,
        )

    def get_my_results(
        self, user_id: int, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> MyResultsOut:
        """Scored attempts of the caller, newest first, one page at a time."""
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        attempts = [
            a for a in self.attempts.find_by_user_id(user_id) if a.status in SCORED_STATUSES
        ]
        logger.debug("Found %s scored attempts for user %s", len(attempts), user_id)

        items = []
        for attempt in attempts:
            exam = self.exams.find_by_id(attempt.exam_id)
            percentage = attempt.percentage or 0
            pass_percentage = exam.pass_percentage if exam else 0
            items.append(
                MyResultItem(
                    attempt_id=attempt.id,
                    exam_id=attempt.exam_id,
                    exam_title=exam.title if exam else "Unknown Exam",
                    status=attempt.status,
                    score=attempt.score or 0,
                    max_score=attempt.max_score or 0,
                    percentage=percentage,
                    passed=percentage >= pass_percentage,
                    pass_percentage=pass_percentage,
                    submitted_at=attempt.submitted_at,
                )
            )

        page_items, meta = paginate(items, page, limit)
        return MyResultsOut(data=page_items, pagination=Pagination(**meta))

    @staticmethod
    def _display_answer(
        value: Any, question: Question, is_key: bool = False
    ) -> Union[str, List[str]]:
        """Option text for index answers, for showing results to people.

        Single-select keys are stored as option text already and are shown
        as-is, even when the text itself looks like a number.
        """
        if value is None or value == "" or value == []:
            return "Not answered"

        options = question.options or []
        if is_key and isinstance(value, str) and value in options:
            return value

        def to_text(token: Any) -> str:
            index = parse_index_token(token.strip() if isinstance(token, str) else token)
            if index is not None and index < len(options):
                return options[index]
            return str(token).strip()

        if isinstance(value, list):
            return [to_text(token) for token in value]
        if question.type == QuestionType.SINGLE_SELECT.value:
            return to_text(value)
        return str(value).strip()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_owned_attempt(self, attempt_id: int, user_id: int, denied: str) -> ExamAttempt:
        attempt = self.attempts.find_by_id(attempt_id)
        if not attempt:
            raise NotFoundError("Exam attempt not found")
        if attempt.user_id != user_id:
            raise ForbiddenError(denied)
        return attempt

    def _ensure_in_progress(self, attempt: ExamAttempt, action: str) -> None:
        if attempt.status != AttemptStatus.IN_PROGRESS.value:
            raise BadRequestError(f"Cannot {action}. Exam attempt status: {attempt.status}")

    def _get_exam(self, exam_id: int) -> Exam:
        exam = self.exams.find_by_id(exam_id)
        if not exam:
            raise NotFoundError("Exam not found")
        return exam

"""Persistence collaborators used by the attempt engine.

Each repository wraps a SQLModel ``Session``. Attempt writes that change
lifecycle or answer state are versioned: they only apply when the stored
``version`` still matches the one the caller read.
"""

import logging
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from exam_delivery.constants import AttemptStatus
from exam_delivery.errors import AttemptConflictError
from exam_delivery.models import Exam, ExamAttempt, ExamParticipant, Question
from exam_delivery.schemas import NormalizedQuestion
from exam_delivery.utils import generate_access_code, normalize_access_code, utcnow

logger = logging.getLogger(__name__)


class ExamRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, exam_id: int) -> Optional[Exam]:
        return self.session.get(Exam, exam_id)


class QuestionRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_by_exam_id(self, exam_id: int) -> List[Question]:
        """Questions in canonical order; stable across calls."""
        stmt = (
            select(Question)
            .where(Question.exam_id == exam_id)
            .order_by(Question.order, Question.id)
        )
        return list(self.session.exec(stmt).all())

    def find_by_id(self, question_id: int) -> Optional[Question]:
        return self.session.get(Question, question_id)

    def add(self, exam_id: int, data: NormalizedQuestion) -> Question:
        question = Question(
            exam_id=exam_id,
            type=data.type,
            question_text=data.question_text,
            options=list(data.options),
            correct_answer=data.correct_answer,
            points=data.points,
            order=data.order,
        )
        self.session.add(question)
        self.session.commit()
        self.session.refresh(question)
        return question


class ParticipantRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_by_access_code(self, access_code: str) -> Optional[ExamParticipant]:
        stmt = select(ExamParticipant).where(
            ExamParticipant.access_code == normalize_access_code(access_code)
        )
        return self.session.exec(stmt).first()

    def mark_used(self, participant_id: int) -> bool:
        participant = self.session.get(ExamParticipant, participant_id)
        if not participant:
            return False
        participant.is_used = True
        self.session.add(participant)
        self.session.commit()
        return True

    def add(
        self,
        exam_id: int,
        user_id: int,
        email: str,
        access_code: Optional[str] = None,
    ) -> ExamParticipant:
        """Register a participant, generating a fresh access code when none is given."""
        code = normalize_access_code(access_code) if access_code else self._unused_code()
        participant = ExamParticipant(
            exam_id=exam_id,
            user_id=user_id,
            email=email.strip().lower(),
            access_code=code,
        )
        self.session.add(participant)
        self.session.commit()
        self.session.refresh(participant)
        return participant

    def _unused_code(self) -> str:
        while True:
            code = generate_access_code()
            if self.find_by_access_code(code) is None:
                return code


class AttemptRepository:
    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        exam_id: int,
        participant_id: int,
        user_id: int,
        question_order: List[int],
    ) -> ExamAttempt:
        attempt = ExamAttempt(
            exam_id=exam_id,
            participant_id=participant_id,
            user_id=user_id,
            question_order=list(question_order),
            status=AttemptStatus.NOT_STARTED.value,
        )
        self.session.add(attempt)
        self.session.commit()
        self.session.refresh(attempt)
        logger.debug("Exam attempt %s created for exam %s", attempt.id, exam_id)
        return attempt

    def find_by_id(self, attempt_id: int) -> Optional[ExamAttempt]:
        # populate_existing: another session may have written since we last read
        return self.session.get(ExamAttempt, attempt_id, populate_existing=True)

    def find_by_exam_and_user(self, exam_id: int, user_id: int) -> Optional[ExamAttempt]:
        stmt = select(ExamAttempt).where(
            (ExamAttempt.exam_id == exam_id) & (ExamAttempt.user_id == user_id)
        )
        return self.session.exec(stmt).first()

    def find_by_user_id(self, user_id: int) -> List[ExamAttempt]:
        """All attempts of a user, newest first."""
        stmt = (
            select(ExamAttempt)
            .where(ExamAttempt.user_id == user_id)
            .order_by(ExamAttempt.created_at.desc(), ExamAttempt.id.desc())
        )
        return list(self.session.exec(stmt).all())

    def update_by_id(
        self, attempt_id: int, expected_version: int, **changes: Any
    ) -> Optional[ExamAttempt]:
        """Compare-and-swap write.

        Returns the refreshed attempt, None if the attempt does not exist.

        Raises:
            AttemptConflictError: the stored version no longer matches.
        """
        values = dict(changes)
        values["version"] = expected_version + 1
        values["updated_at"] = utcnow()
        stmt = (
            update(ExamAttempt)
            .where(
                (ExamAttempt.id == attempt_id)
                & (ExamAttempt.version == expected_version)
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(stmt)
        if result.rowcount == 0:
            self.session.rollback()
            if self.find_by_id(attempt_id) is None:
                return None
            logger.warning(
                "Stale write rejected for attempt %s (expected version %s)",
                attempt_id,
                expected_version,
            )
            raise AttemptConflictError(attempt_id, expected_version)
        self.session.commit()
        return self.find_by_id(attempt_id)

    def update_answer(
        self, attempt: ExamAttempt, question_id: int, answer: Any, now: datetime
    ) -> Optional[ExamAttempt]:
        """Store an answer against the attempt's current position.

        The first ``answered_at`` of a question is kept when it is re-answered.
        """
        answers = dict(attempt.answers or {})
        key = str(question_id)
        previous = answers.get(key) or {}
        answers[key] = {
            "answer": answer,
            "answered_at": previous.get("answered_at") or now.isoformat(),
            "updated_at": now.isoformat(),
        }

        answered = list(attempt.answered_questions or [])
        if attempt.current_question_index not in answered:
            answered.append(attempt.current_question_index)
            answered.sort()

        return self.update_by_id(
            attempt.id,
            attempt.version,
            answers=answers,
            answered_questions=answered,
            last_activity_at=now,
        )

    def update_activity(self, attempt_id: int, now: datetime) -> None:
        """Touch ``last_activity_at``; not versioned."""
        stmt = (
            update(ExamAttempt)
            .where(ExamAttempt.id == attempt_id)
            .values(last_activity_at=now)
            .execution_options(synchronize_session=False)
        )
        self.session.exec(stmt)
        self.session.commit()

    def mark_abandoned(self, attempt: ExamAttempt, now: datetime) -> Optional[ExamAttempt]:
        return self.update_by_id(
            attempt.id,
            attempt.version,
            status=AttemptStatus.ABANDONED.value,
            abandoned_at=now,
        )

import random
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, text

from exam_delivery.models import Exam
from exam_delivery.question_types import build_default_registry
from exam_delivery.repositories import ParticipantRepository
from exam_delivery.schemas import QuestionCreate
from exam_delivery.services.attempt_service import ExamAttemptService
from exam_delivery.services.question_service import add_question

# ============================================================================
# IN-MEMORY DATABASE FOR TESTING
# ============================================================================

# StaticPool so every session shares the same in-memory database
test_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

USER_ID = 101
OTHER_USER_ID = 202
ACCESS_CODE = "ABCD1234"
START_TIME = datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create all tables in the test database once per session."""
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(autouse=True)
def cleanup_db_between_tests():
    """Clean up test data after each test."""
    yield

    # FK-safe order
    with Session(test_engine) as session:
        session.exec(text("DELETE FROM examattempt"))
        session.exec(text("DELETE FROM examparticipant"))
        session.exec(text("DELETE FROM question"))
        session.exec(text("DELETE FROM exam"))
        session.commit()


@pytest.fixture
def session():
    """Provide a database session for tests."""
    with Session(test_engine) as session:
        yield session


# ============================================================================
# ENGINE COLLABORATORS
# ============================================================================


class FakeClock:
    """Callable clock the tests move forward by hand."""

    def __init__(self, start: datetime = START_TIME):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def service(session, registry, clock):
    return ExamAttemptService(session, registry, clock=clock, rng=random.Random(7))


# ============================================================================
# ENTITY FIXTURES
# ============================================================================


@pytest.fixture
def make_exam(session, registry):
    """Factory: an exam with the given questions (QuestionCreate kwargs)."""

    def _make(questions, **exam_fields):
        fields = {"title": "Sample Exam", "duration_minutes": 30}
        fields.update(exam_fields)
        exam = Exam(**fields)
        session.add(exam)
        session.commit()
        session.refresh(exam)
        for order, data in enumerate(questions):
            data = dict(data)
            data.setdefault("order", order)
            add_question(session, registry, exam.id, QuestionCreate(**data))
        return exam

    return _make


@pytest.fixture
def make_participant(session):
    def _make(exam, user_id=USER_ID, access_code=None, email="student@example.com"):
        return ParticipantRepository(session).add(
            exam.id, user_id, email, access_code=access_code
        )

    return _make


SAMPLE_QUESTIONS = [
    {
        "type": "single-select",
        "question_text": "What is the capital of France?",
        "options": ["Berlin", "Paris", "Rome"],
        "correct_answer": "1",
    },
    {
        "type": "single-select",
        "question_text": "What is 2 + 2?",
        "options": ["3", "4", "5"],
        "correct_answer": 1,
    },
    {
        "type": "multi-select",
        "question_text": "Which numbers are prime?",
        "options": ["2", "4", "5", "9"],
        "correct_answer": ["0", "2"],
    },
]


@pytest.fixture
def exam(make_exam):
    """Three one-point questions in canonical order."""
    return make_exam(SAMPLE_QUESTIONS)


@pytest.fixture
def participant(exam, make_participant):
    return make_participant(exam, access_code=ACCESS_CODE)


# ============================================================================
# FASTAPI APP & TEST CLIENT
# ============================================================================


@pytest.fixture
def client():
    """TestClient bound to the in-memory database and a logged-in user."""
    from exam_delivery.database import get_session
    from exam_delivery.deps import get_current_user_id
    from exam_delivery.main import app

    def override_get_session():
        # Must use the same test_engine instance that has tables
        with Session(test_engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_current_user_id] = lambda: USER_ID

    yield TestClient(app)

    app.dependency_overrides.clear()

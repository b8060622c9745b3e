"""Error taxonomy raised by the engine.

Every error carries an HTTP status code so the FastAPI exception handler in
``exam_delivery.main`` can render it without a lookup table.
"""

from typing import Optional


class ExamEngineError(Exception):
    """Base class for all errors surfaced to callers of the engine."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ExamEngineError):
    status_code = 404


class ForbiddenError(ExamEngineError):
    status_code = 403


class BadRequestError(ExamEngineError):
    status_code = 400


class UnsupportedQuestionTypeError(BadRequestError):
    def __init__(self, question_type: str):
        super().__init__(f'Question type "{question_type}" is not supported')
        self.question_type = question_type


class ValidationError(ExamEngineError):
    """Structural problem found while authoring a question.

    ``errors`` maps a field name to a user-friendly message, the same shape
    the form validators use.
    """

    status_code = 422

    def __init__(self, message: str, errors: Optional[dict[str, str]] = None):
        super().__init__(message)
        self.errors = errors or {}


class AttemptConflictError(ExamEngineError):
    """A versioned attempt write lost against a concurrent writer."""

    status_code = 409
    retryable = True

    def __init__(self, attempt_id: int, expected_version: int):
        super().__init__(
            "Exam attempt was modified by another request. Please refresh and try again."
        )
        self.attempt_id = attempt_id
        self.expected_version = expected_version


class InternalError(ExamEngineError):
    status_code = 500

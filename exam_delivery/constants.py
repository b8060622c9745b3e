"""Shared constants: attempt statuses and question type tags."""

from enum import Enum


class AttemptStatus(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    SUBMITTED = "submitted"
    EXPIRED = "expired"
    ABANDONED = "abandoned"


# Attempts whose score fields have been populated
SCORED_STATUSES = {AttemptStatus.SUBMITTED.value, AttemptStatus.EXPIRED.value}


class QuestionType(str, Enum):
    SINGLE_SELECT = "single-select"
    MULTI_SELECT = "multi-select"

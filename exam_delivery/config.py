"""Runtime configuration for the exam delivery engine.

Values are plain module constants; each one can be overridden through an
environment variable so deployments do not need to edit the code.
"""

import os

DATABASE_URL = os.getenv("EXAM_DELIVERY_DATABASE_URL", "sqlite:///./exam_delivery.db")

# echo=False to avoid noisy logs; toggle for debugging
SQL_ECHO = os.getenv("EXAM_DELIVERY_SQL_ECHO", "0") == "1"

SESSION_SECRET_KEY = os.getenv("EXAM_DELIVERY_SESSION_SECRET", "CHANGE_ME_TO_A_RANDOM_SECRET")

LOG_LEVEL = os.getenv("EXAM_DELIVERY_LOG_LEVEL", "INFO")

# Pagination for result listings
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Question authoring constraints
QUESTION_TEXT_MAX_LENGTH = 5000
OPTION_MAX_LENGTH = 1000
MIN_OPTIONS = 2
DEFAULT_POINTS = 1

ACCESS_CODE_LENGTH = 8

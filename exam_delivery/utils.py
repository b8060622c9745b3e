"""Utility functions for sanitization, access codes, index tokens and time."""

import math
import re
import secrets
import string
from datetime import datetime, timezone
from typing import Any, Optional

import bleach

from exam_delivery.config import ACCESS_CODE_LENGTH

_INDEX_TOKEN = re.compile(r"[0-9]+")
_ACCESS_CODE_ALPHABET = string.ascii_uppercase + string.digits


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def sanitize_question_text(text: str) -> str:
    """Sanitize question text to prevent XSS attacks.

    Allows basic formatting tags but removes script/dangerous content.
    """
    allowed_tags = ['b', 'i', 'u', 'em', 'strong', 'p', 'br', 'code', 'pre', 'ul', 'ol', 'li']
    allowed_attributes = {}

    sanitized = bleach.clean(text, tags=allowed_tags, attributes=allowed_attributes, strip=True)
    return sanitized.strip()


def generate_access_code() -> str:
    """Generate a random upper-case access code for a participant."""
    return "".join(secrets.choice(_ACCESS_CODE_ALPHABET) for _ in range(ACCESS_CODE_LENGTH))


def normalize_access_code(code: str) -> str:
    return (code or "").strip().upper()


def parse_index_token(value: Any) -> Optional[int]:
    """Return the option index encoded by ``value``, or None.

    Accepts non-negative ints and canonical decimal strings only: "2" is an
    index, while "02", " 2", "2a", "-1" and booleans are not.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if not isinstance(value, str):
        return None
    if not _INDEX_TOKEN.fullmatch(value):
        return None
    index = int(value)
    if str(index) != value:
        return None
    return index


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def paginate(items: list, page: int, limit: int) -> tuple[list, dict]:
    """Slice ``items`` for the requested page and build the pagination block."""
    total = len(items)
    total_pages = (total + limit - 1) // limit if total > 0 else 1
    page = min(max(page, 1), total_pages)
    start_idx = (page - 1) * limit
    meta = {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }
    return items[start_idx:start_idx + limit], meta

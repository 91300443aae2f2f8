"""Derived field normalization for fetched records.

Remote type and seniority level are computed from free-text title and
location using ordered keyword patterns. The first pattern that matches
wins, so the order of the tables below is part of the behaviour:
"Senior Staff Engineer" is senior because senior is checked before staff.
"""

import re
from typing import Optional

from companypulse.api.schemas import NormalizedFields

# (pattern, value) pairs, checked top to bottom against location + title
REMOTE_PATTERNS = [
    (re.compile(r"remote|anywhere|work from home"), "remote"),
    (re.compile(r"hybrid"), "hybrid"),
]

# (pattern, value) pairs, checked top to bottom against the title only
SENIORITY_PATTERNS = [
    (re.compile(r"intern|co-op"), "intern"),
    (re.compile(r"junior|entry|associate|level 1"), "entry"),
    (re.compile(r"senior|sr\.?|lead|level 4"), "senior"),
    (re.compile(r"staff|principal|level 5"), "staff"),
    (re.compile(r"director|vp|head of|chief"), "executive"),
]

DEFAULT_REMOTE_TYPE = "onsite"
DEFAULT_SENIORITY = "mid"


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs and strip."""
    return re.sub(r"\s+", " ", text).strip()


def clean_text(value: Optional[str]) -> Optional[str]:
    """Whitespace-normalize an optional field, mapping blanks to None."""
    if value is None:
        return None
    cleaned = normalize_whitespace(value)
    return cleaned or None


def detect_remote_type(location: Optional[str] = None, title: Optional[str] = None) -> str:
    """Classify a record as remote, hybrid or onsite."""
    text = " ".join(part for part in (location, title) if part).lower()
    for pattern, remote_type in REMOTE_PATTERNS:
        if pattern.search(text):
            return remote_type
    return DEFAULT_REMOTE_TYPE


def extract_seniority(title: Optional[str] = None) -> str:
    """Infer seniority from a title, defaulting to mid."""
    if not title:
        return DEFAULT_SENIORITY
    text = title.lower()
    for pattern, level in SENIORITY_PATTERNS:
        if pattern.search(text):
            return level
    return DEFAULT_SENIORITY


def normalize_fields(title: Optional[str] = None, location: Optional[str] = None) -> NormalizedFields:
    return NormalizedFields(
        remote_type=detect_remote_type(location, title),
        seniority_level=extract_seniority(title),
    )

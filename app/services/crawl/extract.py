"""Regex helpers for institution detail pages.

Kept free of any parsing/network code so the rules can be checked against
literal strings.
"""

from __future__ import annotations

import re
from typing import List, Pattern

from .base import NO_NUMBER


NUMBER_PATTERN = re.compile(r"№\s?(\d+)")

# Every pattern that matches contributes to the total.
STUDENT_COUNT_PATTERNS: List[Pattern[str]] = [
    re.compile(r"Воспитанников:?\s*(\d+)"),
    re.compile(r"Иностранных граждан:?\s*(-?\d+)"),
    re.compile(r"У нас учатся:?\s*(\d+)\s*воспитанников"),
    re.compile(r"У нас учатся:?\s*(\d+)\s*обучающихся"),
    re.compile(r"У нас учатся:?\s*(\d+)"),
]


def extract_number(short_name: str) -> str:
    m = NUMBER_PATTERN.search(short_name or "")
    return m.group(1) if m else NO_NUMBER


def extract_student_count(text: str) -> int:
    total = 0
    for pattern in STUDENT_COUNT_PATTERNS:
        m = pattern.search(text or "")
        if not m:
            continue
        try:
            total += int(m.group(1))
        except ValueError:
            continue
    return total


def extract_institution_id(url: str) -> str:
    """'https://edu.tatar.ru/kazan/page123.htm' -> 'page123'."""
    last = (url or "").rstrip().rsplit("/", 1)[-1]
    return last.split(".", 1)[0]

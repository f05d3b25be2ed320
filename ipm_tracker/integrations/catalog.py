"""Course catalog ("Course Details" sheet) parsing."""

from __future__ import annotations

import logging
import math
import re
from typing import Dict, List, Sequence, Union

from ..models import COURSE_TYPES, UNKNOWN, Course

log = logging.getLogger(__name__)

# Sheet columns: Sl(0), Name(1), Credit(2), Code(3), Type(4)
NAME_COL = 1
CREDITS_COL = 2
CODE_COL = 3
TYPE_COL = 4


def _cell(row: Sequence[str], idx: int) -> str:
    if idx >= len(row) or row[idx] is None:
        return ""
    return str(row[idx]).strip()


def _clean_text(value: str) -> str:
    return re.sub(r"\s+", " ", (value or "").strip())


def _parse_credits(value: str) -> Union[int, float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    return int(number) if number.is_integer() else number


def _course_type(label: str) -> str:
    lowered = label.lower()
    for known in COURSE_TYPES:
        if lowered == known.lower():
            return known
    return UNKNOWN


def parse_courses(rows: List[Sequence[str]]) -> Dict[str, Course]:
    """Map course code -> ``Course`` from the catalog rows (row 0 is the header)."""
    courses: Dict[str, Course] = {}
    skipped = 0
    for row in rows[1:]:
        code = _cell(row, CODE_COL)
        if not code:
            skipped += 1
            continue

        label = _clean_text(_cell(row, TYPE_COL))
        courses[code] = Course(
            code=code,
            name=_cell(row, NAME_COL),
            credits=_parse_credits(_cell(row, CREDITS_COL)),
            type=_course_type(label),
            type_label=label,
        )

    log.debug("Parsed %d courses (%d rows without a code)", len(courses), skipped)
    return courses

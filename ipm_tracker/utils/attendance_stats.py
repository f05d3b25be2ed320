"""Per-user session filtering and attendance bookkeeping.

The attendance map lives on the client (keyed ``<code>-<session>``); the
functions here only read it.  Unknown courses are shown rather than hidden
so a catalog typo never makes a class disappear from someone's schedule.
"""

from __future__ import annotations

import math
from collections import OrderedDict
from datetime import date as _date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..models import ABSENT, ATTENDANCE_STATUSES, CORE, ELECTIVE, PRESENT, ClassSession, Course, CourseStat, UserProfile
from .sheet_dates import parse_sheet_date

ALLOWED_LEAVE_RATIO = 0.20

STATUS_SAFE = "safe"
STATUS_WARNING = "warning"
STATUS_EXHAUSTED = "exhausted"


def is_visible_to(session: ClassSession, courses: Mapping[str, Course], profile: UserProfile) -> bool:
    course = courses.get(session.course_code)
    if course is None:
        return True
    if course.type == ELECTIVE:
        return session.course_code in profile.electives
    if course.type == CORE:
        if session.section:
            return session.section == profile.section
        return True
    return True


def filter_classes_for_user(
    sessions: Iterable[ClassSession], courses: Mapping[str, Course], profile: UserProfile
) -> List[ClassSession]:
    return [s for s in sessions if is_visible_to(s, courses, profile)]


def sanitize_attendance(raw: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Keep only well-formed ``key -> Present|Absent`` entries."""
    if not isinstance(raw, Mapping):
        return {}
    return {
        str(key): value
        for key, value in raw.items()
        if isinstance(value, str) and value in ATTENDANCE_STATUSES
    }


def calculate_stats(
    sessions: Iterable[ClassSession], attendance: Mapping[str, str]
) -> Dict[str, CourseStat]:
    """Group sessions by course and count marks.

    ``total`` counts every session passed in, past or future.
    """
    stats: Dict[str, CourseStat] = OrderedDict()
    for session in sessions:
        stat = stats.setdefault(session.course_code, CourseStat())
        stat.total += 1

        status = attendance.get(session.attendance_key)
        if status == PRESENT:
            stat.attended += 1
        elif status == ABSENT:
            stat.leaves += 1

    for stat in stats.values():
        stat.allowed_leaves = math.floor(stat.total * ALLOWED_LEAVE_RATIO)
    return stats


def attendance_percentage(stat: CourseStat) -> int:
    if stat.total == 0:
        return 0
    # half-up, so 12.5% shows as 13%
    return int(math.floor(stat.attended / stat.total * 100 + 0.5))


def leave_status(stat: CourseStat) -> str:
    if stat.leaves > stat.allowed_leaves:
        return STATUS_EXHAUSTED
    if stat.allowed_leaves - stat.leaves <= 1:
        return STATUS_WARNING
    return STATUS_SAFE


def course_progress(stats: Mapping[str, CourseStat], courses: Mapping[str, Course]) -> Dict[str, Dict[str, Any]]:
    """Stats enriched with what the dashboard shows per course card."""
    out = {}
    for code, stat in stats.items():
        course = courses.get(code)
        payload = stat.to_dict()
        payload.update(
            {
                "name": course.name if course and course.name else code,
                "type": course.type if course else None,
                "percentage": attendance_percentage(stat),
                "leavesRemaining": stat.allowed_leaves - stat.leaves,
                "status": leave_status(stat),
            }
        )
        out[code] = payload
    return out


def todays_classes(sessions: Iterable[ClassSession], today: _date) -> List[ClassSession]:
    return [s for s in sessions if parse_sheet_date(s.date) == today]


def group_upcoming(sessions: Iterable[ClassSession], today: _date) -> "OrderedDict[str, List[ClassSession]]":
    """Sessions dated today or later, grouped by their sheet date in calendar order."""
    dated = []
    for session in sessions:
        parsed = parse_sheet_date(session.date)
        if parsed is not None and parsed >= today:
            dated.append((parsed, session))

    grouped: "OrderedDict[str, List[ClassSession]]" = OrderedDict()
    for _, session in sorted(dated, key=lambda item: item[0]):
        grouped.setdefault(session.date, []).append(session)
    return grouped

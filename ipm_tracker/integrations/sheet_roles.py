"""Work out which worksheet plays which role in the timetable workbook.

Sheet authors rename and reorder tabs freely, so every role is resolved by
an ordered list of named strategies.  Each strategy is a pure function of
the sheet titles (and, for electives, the course being looked up) that
returns a title or ``None``; the first hit wins and every decision is
written to the discovery log returned to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..models import Course, SheetRoles

log = logging.getLogger(__name__)

Matcher = Callable[[Sequence[str], Any], Optional[str]]


@dataclass(frozen=True)
class Strategy:
    name: str
    match: Matcher


def _contains(keyword: str) -> Matcher:
    def match(titles: Sequence[str], _subject: Any = None) -> Optional[str]:
        for title in titles:
            if keyword in title.lower():
                return title
        return None

    return match


def _position(index: int) -> Matcher:
    def match(titles: Sequence[str], _subject: Any = None) -> Optional[str]:
        return titles[index] if len(titles) > index else None

    return match


def _by_course_name(titles: Sequence[str], course: Course) -> Optional[str]:
    name = course.name.strip().lower()
    if not name:
        return None
    return next((t for t in titles if name in t.lower()), None)


def _by_code_and_list(titles: Sequence[str], course: Course) -> Optional[str]:
    code = course.code.strip().lower()
    if not code:
        return None
    return next((t for t in titles if code in t.lower() and "list" in t.lower()), None)


def _by_code_prefix_and_list(titles: Sequence[str], course: Course) -> Optional[str]:
    if "-" not in course.code:
        return None
    prefix = course.code.split("-", 1)[0].strip().lower()
    if len(prefix) <= 1:
        return None
    return next((t for t in titles if prefix in t.lower() and "list" in t.lower()), None)


CATALOG_STRATEGIES = (
    Strategy("title contains 'details'", _contains("details")),
    Strategy("first sheet", _position(0)),
)

TIMETABLE_STRATEGIES = (
    Strategy("title contains 'time table'", _contains("time table")),
    Strategy("second sheet", _position(1)),
)

SECTION_A_STRATEGIES = (Strategy("title contains 'section a'", _contains("section a")),)

SECTION_B_STRATEGIES = (Strategy("title contains 'section b'", _contains("section b")),)

ELECTIVE_STRATEGIES = (
    Strategy("title contains course name", _by_course_name),
    Strategy("title contains code and 'list'", _by_code_and_list),
    Strategy("title contains code prefix and 'list'", _by_code_prefix_and_list),
)

ELECTIVE_TYPE_MARKERS = ("elective", "compl.")


def resolve(
    role: str,
    strategies: Sequence[Strategy],
    titles: Sequence[str],
    trace: List[str],
    subject: Any = None,
) -> Optional[str]:
    """Apply *strategies* in order and record the outcome in *trace*."""
    for strategy in strategies:
        title = strategy.match(titles, subject)
        if title:
            trace.append(f"{role}: '{title}' ({strategy.name})")
            return title
    trace.append(f"{role}: no matching sheet")
    return None


def is_elective(course: Course) -> bool:
    label = (course.type_label or course.type).lower()
    return any(marker in label for marker in ELECTIVE_TYPE_MARKERS)


def discover_base_roles(titles: Sequence[str]) -> SheetRoles:
    """Resolve the catalog, timetable and section roster sheets."""
    roles = SheetRoles()
    roles.log.append(f"Sheets: {', '.join(titles) if titles else '(none)'}")
    roles.catalog = resolve("catalog", CATALOG_STRATEGIES, titles, roles.log)
    roles.timetable = resolve("timetable", TIMETABLE_STRATEGIES, titles, roles.log)
    roles.section_a = resolve("section A roster", SECTION_A_STRATEGIES, titles, roles.log)
    roles.section_b = resolve("section B roster", SECTION_B_STRATEGIES, titles, roles.log)
    log.debug(
        "Base sheet roles resolved",
        extra={
            "catalog": roles.catalog,
            "timetable": roles.timetable,
            "section_a": roles.section_a,
            "section_b": roles.section_b,
        },
    )
    return roles


def discover_electives(
    titles: Sequence[str], courses: Dict[str, Course], roles: SheetRoles
) -> Dict[str, str]:
    """Attach elective code -> roster title matches to *roles* and return them."""
    for course in courses.values():
        if not is_elective(course):
            continue
        title = resolve(f"elective {course.code}", ELECTIVE_STRATEGIES, titles, roles.log, course)
        if title:
            roles.electives[course.code] = title
        else:
            log.info("No roster sheet found for elective %s (%s)", course.code, course.name)
    return roles.electives


def discover_roles(titles: Sequence[str], courses: Optional[Dict[str, Course]] = None) -> SheetRoles:
    """One-shot discovery when the catalog is already known."""
    roles = discover_base_roles(titles)
    if courses:
        discover_electives(titles, courses, roles)
    return roles

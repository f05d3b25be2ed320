"""Domain records shared by the parsers, the aggregator and the routes.

All records are frozen dataclasses built once per fetch.  ``to_dict``
produces the camelCase payload the dashboard client expects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

CORE = "Core"
ELECTIVE = "Elective"
UNKNOWN = "Unknown"
COURSE_TYPES = (CORE, ELECTIVE, UNKNOWN)

SECTIONS = ("A", "B")
DEFAULT_SECTION = "A"

PRESENT = "Present"
ABSENT = "Absent"
ATTENDANCE_STATUSES = (PRESENT, ABSENT)


@dataclass(frozen=True)
class Course:
    code: str
    name: str
    credits: float
    type: str = UNKNOWN
    type_label: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "credits": self.credits,
            "type": self.type,
        }


@dataclass(frozen=True)
class ClassSession:
    date: str
    time_slot: str
    course_code: str
    session_number: str
    section: Optional[str]
    raw_text: str
    is_cancelled: bool = False

    @property
    def attendance_key(self) -> str:
        return f"{self.course_code}-{self.session_number}"

    @property
    def signature(self) -> str:
        """Key correlating this session with a remote calendar event."""
        return f"{self.date}-{self.time_slot}-{self.course_code}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "timeSlot": self.time_slot,
            "courseCode": self.course_code,
            "sessionNumber": self.session_number,
            "section": self.section,
            "rawText": self.raw_text,
            "isCancelled": self.is_cancelled,
        }


@dataclass(frozen=True)
class UserProfile:
    email: str
    section: str = DEFAULT_SECTION
    electives: FrozenSet[str] = frozenset()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "section": self.section,
            "electives": sorted(self.electives),
        }


@dataclass
class CourseStat:
    total: int = 0
    attended: int = 0
    leaves: int = 0
    allowed_leaves: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "attended": self.attended,
            "leaves": self.leaves,
            "allowedLeaves": self.allowed_leaves,
        }


@dataclass(frozen=True)
class Cell:
    """One timetable grid cell, reduced to what the parser needs."""

    value: Optional[str] = None
    formatted: Optional[str] = None
    struck_through: bool = False

    @property
    def text(self) -> Optional[str]:
        return self.value or self.formatted

    @classmethod
    def from_api(cls, payload: Optional[Dict[str, Any]]) -> "Cell":
        """Build a cell from a Sheets ``CellData`` payload (may be ``None``)."""
        if not payload:
            return cls()
        entered = payload.get("userEnteredValue") or {}
        text_format = (payload.get("effectiveFormat") or {}).get("textFormat") or {}
        return cls(
            value=entered.get("stringValue"),
            formatted=payload.get("formattedValue"),
            struck_through=text_format.get("strikethrough") is True,
        )


@dataclass
class SheetRoles:
    """Outcome of sheet-role discovery plus the trace that produced it."""

    catalog: Optional[str] = None
    timetable: Optional[str] = None
    section_a: Optional[str] = None
    section_b: Optional[str] = None
    electives: Dict[str, str] = field(default_factory=dict)
    log: List[str] = field(default_factory=list)

    def roster_ranges(self) -> List[str]:
        """Roster sheet titles in fetch order: sections first, then electives."""
        ranges = [t for t in (self.section_a, self.section_b) if t]
        for title in self.electives.values():
            if title not in ranges:
                ranges.append(title)
        return ranges

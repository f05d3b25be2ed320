"""Timetable grid -> flat list of ``ClassSession`` records.

Layout of the "Time Table" sheet::

    row 0   title / merge artefact (ignored)
    row 1   header: time-slot labels from column 3 onwards
    row 2+  column 0 date (merged vertically), column 2 section,
            columns 3.. one cell per slot, e.g. "DT 3 A"

A struck-through cell is a cancelled class.  It stays in the output so
the dashboard can show it and the calendar sync can remove its event.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from ..models import SECTIONS, Cell, ClassSession, Course

log = logging.getLogger(__name__)

HEADER_ROW = 1
FIRST_DATA_ROW = 2
DATE_COL = 0
SECTION_COL = 2
FIRST_SLOT_COL = 3

IGNORED_TOKENS = {"lunch", "break"}

TIME_RANGE_RE = re.compile(r"\d{1,2}:\d{2}\s*(?:am|pm|noon)", re.I)
SLOT_PREFIX_RE = re.compile(r"Slot\s*\d+\s*", re.I)


def cells_from_grid_data(grid_data: Optional[Dict[str, Any]]) -> List[List[Cell]]:
    """Normalise a Sheets ``GridData`` payload into rows of ``Cell``."""
    rows = (grid_data or {}).get("rowData") or []
    return [[Cell.from_api(c) for c in (row.get("values") or [])] for row in rows]


def _cell_at(row: Sequence[Cell], idx: int) -> Cell:
    return row[idx] if idx < len(row) else Cell()


def _has_text(cell: Cell) -> bool:
    return bool(cell.text and cell.text.strip())


def clean_slot_label(label: Optional[str], column: int) -> str:
    """'Slot 1\\n09:00 am - 10:15 am' -> '09:00 am - 10:15 am'."""
    clean = label or f"Slot {column - FIRST_SLOT_COL + 1}"
    if TIME_RANGE_RE.search(clean):
        clean = SLOT_PREFIX_RE.sub("", clean, count=1).strip()
        clean = re.sub(r"\s*[\r\n]+\s*", " ", clean).strip()
    return clean


def parse_time_slots(header: Sequence[Cell]) -> List[str]:
    return [clean_slot_label(header[i].text, i) for i in range(FIRST_SLOT_COL, len(header))]


def _normalise_section(value: Optional[str]) -> Optional[str]:
    section = (value or "").strip().upper()
    return section if section in SECTIONS else None


def _resolve_code(candidate: str, courses: Dict[str, Course]) -> Optional[str]:
    if candidate in courses:
        return candidate
    stripped = re.sub(r"[^a-zA-Z0-9]", "", candidate)
    return stripped if stripped in courses else None


def parse_cell(
    cell: Cell,
    date: str,
    time_slot: str,
    row_section: Optional[str],
    courses: Dict[str, Course],
) -> Optional[ClassSession]:
    """Turn one populated slot cell into a session, or ``None`` to discard it."""
    text = cell.text
    if not text or not text.strip():
        return None

    tokens = [t for t in text.split() if t.lower() not in IGNORED_TOKENS]
    if not tokens:
        return None

    code = _resolve_code(tokens[0], courses)
    if code is None:
        return None

    session_number = tokens[1] if len(tokens) > 1 else ""
    section = _normalise_section(tokens[2]) if len(tokens) > 2 else None
    if section is None:
        section = row_section

    return ClassSession(
        date=date,
        time_slot=time_slot,
        course_code=code,
        session_number=session_number,
        section=section,
        raw_text=text,
        is_cancelled=cell.struck_through,
    )


def parse_schedule(rows: Sequence[Sequence[Cell]], courses: Dict[str, Course]) -> List[ClassSession]:
    sessions: List[ClassSession] = []
    log.debug("Timetable grid has %d rows", len(rows))
    if len(rows) < FIRST_DATA_ROW + 1:
        return sessions

    header = rows[HEADER_ROW]
    if not header:
        log.warning("Timetable header row is empty; no time slots available")
        return sessions

    time_slots = parse_time_slots(header)
    log.debug("Time slots: %s", ", ".join(time_slots))

    last_date: Optional[str] = None
    discarded = 0
    for row in rows[FIRST_DATA_ROW:]:
        if not any(_has_text(c) for c in row[DATE_COL + 1 :]):
            continue

        date = _cell_at(row, DATE_COL).text
        if date and date.strip():
            date = date.strip()
            last_date = date
        elif last_date:
            date = last_date
        else:
            continue

        row_section = _normalise_section(_cell_at(row, SECTION_COL).text)

        for offset, slot in enumerate(time_slots):
            cell = _cell_at(row, FIRST_SLOT_COL + offset)
            if not _has_text(cell):
                continue
            session = parse_cell(cell, date, slot, row_section, courses)
            if session is None:
                discarded += 1
                continue
            sessions.append(session)

    log.debug(
        "Parsed %d sessions (%d cells discarded)",
        len(sessions),
        discarded,
        extra={"cancelled": sum(1 for s in sessions if s.is_cancelled)},
    )
    return sessions

"""Date and time helpers for the sheet's free-text date and slot cells."""

from __future__ import annotations

import logging
import re
from datetime import date as _date
from datetime import datetime, time
from typing import Optional, Tuple

import pandas as pd
import pytz

log = logging.getLogger(__name__)

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

CLOCK_RE = re.compile(r"(\d{1,2}):(\d{2})\s*(am|pm|noon)?", re.I)


def get_timezone(tz_name: str):
    try:
        return pytz.timezone(tz_name)
    except Exception:
        log.warning("Invalid timezone '%s'; defaulting to UTC", tz_name)
        return pytz.UTC


def today_in(tz_name: str) -> _date:
    return datetime.now(get_timezone(tz_name)).date()


def _parse_dd_mmm_yyyy(text: str) -> Optional[_date]:
    parts = text.split("-")
    if len(parts) != 3:
        return None
    day, month_str, year = (p.strip() for p in parts)
    month = MONTHS.get(month_str[:3].lower())
    if not (day.isdigit() and year.isdigit() and month):
        return None
    try:
        return _date(int(year), month, int(day))
    except ValueError:
        return None


def parse_sheet_date(text: Optional[str]) -> Optional[_date]:
    """Parse a date cell such as '09-Jan-2026'; ``None`` when unparseable."""
    if not text or not str(text).strip():
        return None
    text = str(text).strip()
    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        parsed = pd.NaT
    if not pd.isna(parsed):
        return parsed.date()
    return _parse_dd_mmm_yyyy(text)


def parse_clock(text: str) -> Optional[time]:
    """'09:00 am' -> 09:00, '01:30 pm' -> 13:30, '12:00 noon' -> 12:00, '14:15' -> 14:15."""
    m = CLOCK_RE.search(text or "")
    if not m:
        return None
    hour = int(m.group(1))
    minute = int(m.group(2))
    suffix = (m.group(3) or "").lower()
    if suffix == "pm" and hour < 12:
        hour += 12
    elif suffix == "am" and hour == 12:
        hour = 0
    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


def parse_slot_range(time_slot: str) -> Optional[Tuple[time, time]]:
    """Split a slot label like '09:00 am - 10:15 am' into start and end times."""
    parts = [p.strip() for p in (time_slot or "").split("-")]
    if len(parts) < 2:
        return None
    start, end = parse_clock(parts[0]), parse_clock(parts[1])
    if start is None or end is None:
        return None
    return start, end

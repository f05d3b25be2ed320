#!/usr/bin/env python3
"""High level helpers for reading the timetable workbook.

One call to :func:`fetch_full_schedule` performs the whole read side of a
request: sheet-role discovery, the catalog, the roster sheets and the
formatted timetable grid.  The pieces live in their own modules so a
misbehaving sheet can be debugged one unit at a time; this module only
talks to Google Sheets and stitches the results together.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict, List, Sequence

import gspread
import pandas as pd
import requests
from gspread.utils import absolute_range_name

from ..errors import ConfigurationError, UpstreamError
from ..models import SheetRoles
from .catalog import parse_courses
from .google_client import GoogleClientConfig
from .sheet_roles import discover_base_roles, discover_electives
from .timetable_grid import cells_from_grid_data, parse_schedule

log = logging.getLogger(__name__)

GRID_FIELDS = (
    "sheets.data.rowData.values("
    "userEnteredValue,effectiveFormat.textFormat.strikethrough,formattedValue)"
)

UPSTREAM_ERRORS = (gspread.exceptions.GSpreadException, requests.RequestException)


# ---------------------------------------------------------------------------
# Google Sheets reads
# ---------------------------------------------------------------------------


def _open_spreadsheet(cfg: GoogleClientConfig, spreadsheet_id: str) -> gspread.Spreadsheet:
    log.debug("Opening spreadsheet %s", spreadsheet_id)
    try:
        return cfg.sheets().open_by_key(spreadsheet_id)
    except UPSTREAM_ERRORS as exc:
        log.exception("Failed to open spreadsheet", extra={"spreadsheet_id": spreadsheet_id})
        raise UpstreamError(f"Could not open spreadsheet: {exc}") from exc


def _sheet_titles(spreadsheet) -> List[str]:
    return [ws.title for ws in spreadsheet.worksheets()]


def _values(spreadsheet, title: str) -> List[List[str]]:
    payload = spreadsheet.values_get(absolute_range_name(title))
    rows = payload.get("values", [])
    log.debug("Sheet %s returned %d rows", title, len(rows))
    return rows


def _batch_values(spreadsheet, titles: Sequence[str]) -> Dict[str, List[List[str]]]:
    """Fetch several sheets in one call; value ranges come back in request order."""
    if not titles:
        return {}
    payload = spreadsheet.values_batch_get([absolute_range_name(t) for t in titles])
    value_ranges = payload.get("valueRanges", [])
    return {title: (vr.get("values") or []) for title, vr in zip(titles, value_ranges)}


def _grid(spreadsheet, title: str) -> Dict[str, Any]:
    meta = spreadsheet.fetch_sheet_metadata(
        params={
            "ranges": absolute_range_name(title),
            "includeGridData": "true",
            "fields": GRID_FIELDS,
        }
    )
    sheets = meta.get("sheets") or [{}]
    data = sheets[0].get("data") or [{}]
    return data[0]


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def load_schedule(spreadsheet) -> Dict[str, Any]:
    """Run discovery and parsing against an open spreadsheet."""
    titles = _sheet_titles(spreadsheet)
    roles: SheetRoles = discover_base_roles(titles)
    if not (roles.catalog and roles.timetable):
        raise ValueError("Workbook has too few sheets to locate the catalog and timetable.")

    courses = parse_courses(_values(spreadsheet, roles.catalog))
    discover_electives(titles, courses, roles)

    rosters = _batch_values(spreadsheet, roles.roster_ranges())
    student_rows: List[List[str]] = []
    for title in (roles.section_a, roles.section_b):
        if title:
            student_rows.extend(rosters.get(title, []))
    elective_rows_map = {code: rosters.get(title, []) for code, title in roles.electives.items()}

    grid_rows = cells_from_grid_data(_grid(spreadsheet, roles.timetable))
    schedule = parse_schedule(grid_rows, courses)

    for line in roles.log:
        log.debug("Discovery: %s", line)

    return {
        "courses": courses,
        "schedule": schedule,
        "studentRows": student_rows,
        "electiveRowsMap": elective_rows_map,
        "debug": {
            "sheetNames": titles,
            "discoveryLog": list(roles.log),
            "electiveSheets": dict(roles.electives),
        },
    }


def fetch_full_schedule(spreadsheet_id: str, access_token: str) -> Dict[str, Any]:
    if not spreadsheet_id:
        raise ConfigurationError("SPREADSHEET_ID is not configured.")
    cfg = GoogleClientConfig(access_token)

    log.info("Fetching full schedule", extra={"spreadsheet_id": spreadsheet_id})
    spreadsheet = _open_spreadsheet(cfg, spreadsheet_id)
    try:
        result = load_schedule(spreadsheet)
    except UPSTREAM_ERRORS as exc:
        log.exception("Failed to read timetable workbook", extra={"spreadsheet_id": spreadsheet_id})
        raise UpstreamError(f"Failed to read spreadsheet: {exc}") from exc
    except ValueError as exc:
        log.error("Timetable workbook is missing required sheets: %s", exc)
        raise UpstreamError(str(exc)) from exc

    log.info(
        "Schedule fetched: %d courses, %d sessions, %d roster rows, %d elective rosters",
        len(result["courses"]),
        len(result["schedule"]),
        len(result["studentRows"]),
        len(result["electiveRowsMap"]),
    )
    return result


# ---------------------------------------------------------------------------
# Command line diagnostics
# ---------------------------------------------------------------------------


def print_stats_report(progress: Dict[str, Dict[str, Any]]):
    if not progress:
        print("No classes found for this student.")
        return
    df = pd.DataFrame.from_dict(progress, orient="index")
    columns = ["name", "total", "attended", "leaves", "allowedLeaves", "percentage", "status"]
    print(df[columns].to_string())


if __name__ == "__main__":
    if len(sys.argv) < 5:
        print(
            "Usage:\n  schedule SPREADSHEET_ID ACCESS_TOKEN EMAIL\n"
            "  stats SPREADSHEET_ID ACCESS_TOKEN EMAIL\n"
            "  sync SPREADSHEET_ID ACCESS_TOKEN EMAIL"
        )
        sys.exit(1)

    from ..utils.attendance_stats import calculate_stats, course_progress, filter_classes_for_user
    from .roster import parse_student_profile

    logging.basicConfig(level=logging.INFO)
    mode, sheet_id, token, email = sys.argv[1].lower(), sys.argv[2], sys.argv[3], sys.argv[4]
    data = fetch_full_schedule(sheet_id, token)
    profile = parse_student_profile(email, data["studentRows"], data["electiveRowsMap"])
    mine = filter_classes_for_user(data["schedule"], data["courses"], profile)

    if mode == "schedule":
        print("\n".join(data["debug"]["discoveryLog"]))
        print(profile)
        print(pd.DataFrame([s.to_dict() for s in mine]).to_string(index=False))
    elif mode == "stats":
        print_stats_report(course_progress(calculate_stats(mine, {}), data["courses"]))
    elif mode == "sync":
        from .google_calendar import sync_to_calendar

        print(sync_to_calendar(token, mine, data["courses"]))
    else:
        print("Unknown mode. Use 'schedule', 'stats', or 'sync'.")

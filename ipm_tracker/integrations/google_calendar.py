"""One-way sync of a student's upcoming classes into Google Calendar.

Every event we create carries two private extended properties: a source
tag and the session signature ``<date>-<slot>-<code>``.  A sync lists the
tagged events from today onwards, then updates, inserts or deletes so
that running it twice with the same sessions leaves the calendar
unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date as _date
from datetime import datetime, time
from typing import Any, Dict, Iterable, Mapping, Optional

from googleapiclient.errors import HttpError

from ..errors import UpstreamError
from ..models import ClassSession, Course
from ..utils.sheet_dates import get_timezone, parse_sheet_date, parse_slot_range
from .google_client import GoogleClientConfig

log = logging.getLogger(__name__)

DEFAULT_SOURCE_TAG = "ipm-tracker"


@dataclass
class SyncResult:
    count: int = 0
    inserted: int = 0
    updated: int = 0
    deleted: int = 0
    skipped: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def list_tagged_events(service, calendar_id: str, time_min: datetime, source_tag: str) -> Dict[str, str]:
    """Map signature -> event id for our events ending after *time_min*."""
    existing: Dict[str, str] = {}
    page_token = None
    while True:
        response = (
            service.events()
            .list(
                calendarId=calendar_id,
                timeMin=time_min.isoformat(),
                privateExtendedProperty=[f"source={source_tag}"],
                singleEvents=True,
                pageToken=page_token,
            )
            .execute()
        )
        for event in response.get("items", []):
            private = (event.get("extendedProperties") or {}).get("private") or {}
            signature = private.get("signature")
            if signature and event.get("id"):
                existing[signature] = event["id"]
        page_token = response.get("nextPageToken")
        if not page_token:
            return existing


def build_event_body(
    session: ClassSession,
    course: Optional[Course],
    day: _date,
    tz,
    source_tag: str = DEFAULT_SOURCE_TAG,
) -> Optional[Dict[str, Any]]:
    times = parse_slot_range(session.time_slot)
    if times is None:
        return None
    start, end = times
    start_dt = tz.localize(datetime.combine(day, start))
    end_dt = tz.localize(datetime.combine(day, end))
    name = course.name if course and course.name else "Class"

    return {
        "summary": f"{session.course_code}: {name}",
        "description": f"Session: {session.session_number}\nSection: {session.section or 'Common'}",
        "start": {"dateTime": start_dt.isoformat(), "timeZone": tz.zone},
        "end": {"dateTime": end_dt.isoformat(), "timeZone": tz.zone},
        "extendedProperties": {
            "private": {"source": source_tag, "signature": session.signature},
        },
    }


def _reconcile(
    service,
    calendar_id: str,
    sessions: Iterable[ClassSession],
    courses: Mapping[str, Course],
    tz,
    now: datetime,
    source_tag: str,
) -> SyncResult:
    result = SyncResult()
    today = now.astimezone(tz).date() if now.tzinfo else now.date()
    # timeMin filters on event end, so list from midnight to still see
    # classes earlier today that have already finished.
    day_start = tz.localize(datetime.combine(today, time.min))
    existing = list_tagged_events(service, calendar_id, day_start, source_tag)
    log.debug("Found %d tagged events on %s", len(existing), calendar_id)
    events = service.events()

    for session in sessions:
        day = parse_sheet_date(session.date)
        if day is None or day < today:
            continue
        result.count += 1

        signature = session.signature
        event_id = existing.get(signature)

        if session.is_cancelled:
            if event_id:
                events.delete(calendarId=calendar_id, eventId=event_id).execute()
                existing.pop(signature, None)
                result.deleted += 1
            else:
                result.skipped += 1
            continue

        body = build_event_body(session, courses.get(session.course_code), day, tz, source_tag)
        if body is None:
            log.warning(
                "Skipping session with unparseable time slot",
                extra={"signature": signature, "time_slot": session.time_slot},
            )
            result.skipped += 1
            continue

        if event_id:
            events.update(calendarId=calendar_id, eventId=event_id, body=body).execute()
            result.updated += 1
        else:
            created = events.insert(calendarId=calendar_id, body=body).execute()
            if created and created.get("id"):
                existing[signature] = created["id"]
            result.inserted += 1

    return result


def sync_to_calendar(
    access_token: str,
    sessions: Iterable[ClassSession],
    courses: Mapping[str, Course],
    calendar_id: str = "primary",
    tz_name: str = "Asia/Kolkata",
    source_tag: str = DEFAULT_SOURCE_TAG,
    service=None,
    now: Optional[datetime] = None,
) -> SyncResult:
    tz = get_timezone(tz_name)
    if service is None:
        service = GoogleClientConfig(access_token).calendar()
    now = now or datetime.now(tz)

    log.info("Syncing classes to calendar", extra={"calendar_id": calendar_id})
    try:
        result = _reconcile(service, calendar_id, sessions, courses, tz, now, source_tag)
    except HttpError as exc:
        log.exception("Calendar sync aborted", extra={"calendar_id": calendar_id})
        raise UpstreamError(f"Calendar sync failed: {exc}") from exc

    log.info(
        "Calendar sync done: %d processed, %d inserted, %d updated, %d deleted, %d skipped",
        result.count,
        result.inserted,
        result.updated,
        result.deleted,
        result.skipped,
    )
    return result

# ipm_tracker/routes/schedule.py
from flask import Blueprint, current_app, jsonify, request

from ..errors import ConfigurationError
from ..integrations.google_client import GoogleClientConfig, fetch_user_email
from ..integrations.google_sheets_schedule import fetch_full_schedule
from ..integrations.roster import parse_student_profile
from ..utils.attendance_stats import (
    calculate_stats,
    course_progress,
    filter_classes_for_user,
    group_upcoming,
    sanitize_attendance,
    todays_classes,
)
from ..utils.auth import bearer_token_from_request
from ..utils.sheet_dates import today_in

URL_PREFIX = "/schedule"
bp = Blueprint("schedule", __name__)


def load_user_schedule():
    """Token -> (schedule data, profile).  Shared with the calendar blueprint."""
    token = bearer_token_from_request()
    spreadsheet_id = current_app.config.get("SPREADSHEET_ID")
    if not spreadsheet_id:
        current_app.logger.error("Schedule request failed: SPREADSHEET_ID missing.")
        raise ConfigurationError("SPREADSHEET_ID is not configured.")

    email = fetch_user_email(GoogleClientConfig(token))
    data = fetch_full_schedule(spreadsheet_id, token)
    profile = parse_student_profile(email, data["studentRows"], data["electiveRowsMap"])
    current_app.logger.debug(
        "Schedule loaded",
        extra={
            "courses": len(data["courses"]),
            "sessions": len(data["schedule"]),
            "section": profile.section,
            "electives": sorted(profile.electives),
        },
    )
    return token, data, profile


@bp.get("/")
def index():
    _, data, profile = load_user_schedule()
    return jsonify(
        {
            "courses": {code: c.to_dict() for code, c in data["courses"].items()},
            "schedule": [s.to_dict() for s in data["schedule"]],
            "userProfile": profile.to_dict(),
            "debug": data["debug"],
        }
    )


@bp.post("/dashboard")
def dashboard():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    attendance = sanitize_attendance(payload.get("attendance"))

    _, data, profile = load_user_schedule()
    courses = data["courses"]
    mine = filter_classes_for_user(data["schedule"], courses, profile)
    today = today_in(current_app.config.get("TZ", "Asia/Kolkata"))

    upcoming = group_upcoming(mine, today)
    stats = calculate_stats(mine, attendance)

    current_app.logger.debug(
        "Dashboard prepared",
        extra={"classes": len(mine), "upcoming_days": len(upcoming), "marks": len(attendance)},
    )
    return jsonify(
        {
            "userProfile": profile.to_dict(),
            "classes": [s.to_dict() for s in mine],
            "today": [s.to_dict() for s in todays_classes(mine, today)],
            "upcoming": [
                {"date": day, "classes": [s.to_dict() for s in sessions]}
                for day, sessions in upcoming.items()
            ],
            "stats": course_progress(stats, courses),
        }
    )

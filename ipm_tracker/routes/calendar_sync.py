# ipm_tracker/routes/calendar_sync.py
from flask import Blueprint, current_app, jsonify

from ..integrations.google_calendar import sync_to_calendar
from ..utils.attendance_stats import filter_classes_for_user
from .schedule import load_user_schedule

URL_PREFIX = "/calendar"
bp = Blueprint("calendar", __name__)


@bp.post("/sync")
def sync():
    token, data, profile = load_user_schedule()
    mine = filter_classes_for_user(data["schedule"], data["courses"], profile)

    current_app.logger.info(
        "Calendar sync requested", extra={"classes": len(mine), "section": profile.section}
    )
    result = sync_to_calendar(
        token,
        mine,
        data["courses"],
        calendar_id=current_app.config.get("CALENDAR_ID", "primary"),
        tz_name=current_app.config.get("TZ", "Asia/Kolkata"),
        source_tag=current_app.config.get("EVENT_SOURCE_TAG", "ipm-tracker"),
    )
    payload = {"success": True}
    payload.update(result.to_dict())
    return jsonify(payload)

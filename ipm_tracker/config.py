import os


class Config:
    """Base configuration loaded from environment variables."""

    # --- General ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_DIR = os.getenv("LOG_DIR", os.path.join(os.path.dirname(__file__), "..", "logs"))
    TZ = os.getenv("TZ", "Asia/Kolkata")

    # --- Google Sheets / Timetable workbook ---
    SPREADSHEET_ID = os.getenv("SPREADSHEET_ID")

    # --- Google Calendar ---
    CALENDAR_ID = os.getenv("CALENDAR_ID", "primary")
    EVENT_SOURCE_TAG = os.getenv("EVENT_SOURCE_TAG", "ipm-tracker")

    # --- Misc ---
    DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"

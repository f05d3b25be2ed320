import logging
import os

# Google client libraries log every HTTP round trip at INFO/DEBUG.
NOISY_LOGGERS = ("googleapiclient.discovery", "googleapiclient.discovery_cache", "urllib3", "google.auth")


def init_logging(app):
    """Configure process-wide logging and attach the tracker logger to *app*."""
    log_dir = app.config.get("LOG_DIR") or os.path.join(os.path.dirname(__file__), "..", "..", "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "ipm_tracker.log")

    log_level = (app.config.get("LOG_LEVEL") or "INFO").upper()
    numeric_level = getattr(logging, log_level, logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] [%(name)s:%(lineno)d] - %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    app.logger = logging.getLogger("ipm_tracker")
    app.logger.setLevel(numeric_level)
    app.logger.info(
        "Logging initialized at %s level (spreadsheet configured: %s)",
        log_level,
        bool(app.config.get("SPREADSHEET_ID")),
    )

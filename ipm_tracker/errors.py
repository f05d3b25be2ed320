"""Failure categories surfaced by the schedule pipeline.

Parse-level anomalies never raise; they fall back to defaults and show up
in the discovery log instead.  Everything here is fatal for the request.
"""


class TrackerError(RuntimeError):
    """Base class for request-fatal failures."""


class ConfigurationError(TrackerError):
    """A required setting (e.g. ``SPREADSHEET_ID``) is missing."""


class AuthenticationError(TrackerError):
    """The bearer token is missing or was rejected."""


class UpstreamError(TrackerError):
    """A Sheets, Calendar or userinfo call failed."""

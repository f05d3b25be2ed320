"""Per-request Google API access built from the caller's OAuth bearer token.

Nothing here is cached at module level: every request constructs its own
``GoogleClientConfig`` and hands it down the pipeline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import gspread
import requests
from google.auth.transport.requests import AuthorizedSession
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from ..errors import AuthenticationError, UpstreamError

log = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/spreadsheets.readonly",
    "https://www.googleapis.com/auth/calendar",
]

USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


@dataclass(frozen=True)
class GoogleClientConfig:
    access_token: str

    def __post_init__(self):
        if not (self.access_token or "").strip():
            raise AuthenticationError("Missing bearer token.")

    def credentials(self) -> Credentials:
        return Credentials(token=self.access_token, scopes=SCOPES)

    def sheets(self) -> gspread.Client:
        log.debug("Authorising Google Sheets client from bearer token")
        return gspread.authorize(self.credentials())

    def calendar(self):
        log.debug("Building Google Calendar v3 service from bearer token")
        return build("calendar", "v3", credentials=self.credentials(), cache_discovery=False)


def fetch_user_email(cfg: GoogleClientConfig) -> str:
    """Look up the signed-in user's email for the token."""
    session = AuthorizedSession(cfg.credentials())
    try:
        response = session.get(USERINFO_URL, timeout=30)
    except requests.RequestException as exc:
        log.exception("Userinfo request failed")
        raise UpstreamError("Could not reach the Google userinfo endpoint.") from exc

    log.debug("Userinfo response: status=%s", response.status_code)
    if response.status_code in (401, 403):
        raise AuthenticationError("Bearer token was rejected.")
    try:
        response.raise_for_status()
    except requests.HTTPError as exc:
        log.exception("Userinfo lookup failed")
        raise UpstreamError(f"Userinfo lookup failed ({response.status_code}).") from exc

    email = (response.json().get("email") or "").strip()
    if not email:
        raise AuthenticationError("Token carries no email scope.")
    return email

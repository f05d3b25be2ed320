"""Resolve a student's section and electives from the roster sheets.

Section rosters ("Section A", "Section B") carry the email in column D
and the section letter in column J.  Elective rosters only need the
email column.  A student missing from every roster lands in section A;
that default is deliberate.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

import pandas as pd

from ..models import DEFAULT_SECTION, SECTIONS, UserProfile

log = logging.getLogger(__name__)

EMAIL_COL = 3
SECTION_COL = 9


def _rows_to_df(rows: List[Sequence[str]], min_width: int) -> pd.DataFrame:
    """Ragged sheet rows -> DataFrame with at least *min_width* integer columns."""
    df = pd.DataFrame([list(r) for r in rows], dtype=object)
    width = max(min_width, df.shape[1])
    return df.reindex(columns=range(width)).fillna("").astype(str)


def _email_series(df: pd.DataFrame) -> pd.Series:
    return df[EMAIL_COL].str.strip().str.lower()


def resolve_section(target_email: str, student_rows: List[Sequence[str]]) -> str:
    if not student_rows:
        return DEFAULT_SECTION

    df = _rows_to_df(student_rows, SECTION_COL + 1)
    match = df[_email_series(df) == target_email]
    if match.empty:
        log.info("Email not found in section rosters; defaulting to section %s", DEFAULT_SECTION)
        return DEFAULT_SECTION

    section = match.iloc[0][SECTION_COL].strip().upper()
    if section not in SECTIONS:
        log.info(
            "Unrecognised section value %r; defaulting to section %s", section, DEFAULT_SECTION
        )
        return DEFAULT_SECTION
    return section


def resolve_electives(target_email: str, elective_rows_map: Dict[str, List[Sequence[str]]]) -> List[str]:
    electives = []
    for code, rows in elective_rows_map.items():
        if not rows:
            continue
        df = _rows_to_df(rows, EMAIL_COL + 1)
        if target_email in set(_email_series(df)):
            electives.append(code)
    return electives


def parse_student_profile(
    email: str,
    student_rows: List[Sequence[str]],
    elective_rows_map: Dict[str, List[Sequence[str]]],
) -> UserProfile:
    target = (email or "").strip().lower()
    if not target:
        return UserProfile(email=email or "", section=DEFAULT_SECTION)

    section = resolve_section(target, student_rows)
    electives = resolve_electives(target, elective_rows_map or {})
    log.debug(
        "Student profile resolved",
        extra={"section": section, "electives": sorted(electives)},
    )
    return UserProfile(email=email, section=section, electives=frozenset(electives))

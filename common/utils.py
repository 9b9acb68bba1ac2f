"""Utility functions for the Newsdesk application."""

import re
from typing import Optional

# Range of a PostgreSQL SERIAL (int4) column
_MIN_ID = -(2**31)
_MAX_ID = 2**31 - 1

_ID_PATTERN = re.compile(r"^[+-]?[0-9]+$")


def parse_id(raw: str) -> Optional[int]:
    """
    Parse a path identifier into a row id.

    Returns None for anything that can never match a row: non-numeric text,
    or numbers outside the int4 range. Callers treat None as "no row
    matched", never as a malformed request.

    Examples:
        "42" -> 42
        "-1" -> -1
        "abc" -> None
        "4.2" -> None
        "99999999999" -> None
    """
    raw = raw.strip()
    if not _ID_PATTERN.match(raw):
        return None

    value = int(raw)
    if value < _MIN_ID or value > _MAX_ID:
        return None
    return value

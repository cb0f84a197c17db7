"""
Date Validation Utilities

Provides helper functions for date handling including:
- Strict parsing of the two date formats allowed in header values
- Calendar validation (rejects e.g. 2024-02-31)
- Resolution of the reference date used for time-gated rules
"""

import re
from datetime import date
from typing import Optional

from ..config.constants import REGEX_PATTERNS


def parse_date(date_str: str) -> Optional[date]:
    """
    Parse a header date value.

    Supports:
    - YYYY-MM-DD
    - MM/DD/YYYY
    - M/D/YYYY

    The year, month and day are taken from the text and must form a real
    calendar date; the parsed date is never rolled over into the next month.

    Args:
        date_str: String representation of a date

    Returns:
        date object if the text is a valid date, None otherwise
    """
    if not date_str or not isinstance(date_str, str):
        return None

    date_str = date_str.strip()

    iso_match = re.match(REGEX_PATTERNS["iso_date"], date_str)
    if iso_match:
        year, month, day = iso_match.groups()
    else:
        us_match = re.match(REGEX_PATTERNS["us_date"], date_str)
        if not us_match:
            return None
        month, day, year = us_match.groups()

    try:
        parsed = date(int(year), int(month), int(day))
    except ValueError:
        return None

    # Guard against any normalization of the components
    if (parsed.year, parsed.month, parsed.day) != (int(year), int(month), int(day)):
        return None

    return parsed


def is_valid_date(date_str: str) -> bool:
    """Check if a header value is an allowed date."""
    return parse_date(date_str) is not None


def resolve_reference_date(reference_date: Optional[date] = None) -> date:
    """
    Resolve the date used to decide whether time-gated rules are enforced.

    Only the public entry points call this; everything below them receives
    an explicit date.
    """
    return reference_date if reference_date is not None else date.today()


def is_enforced(enforced_from: Optional[date], reference_date: date) -> bool:
    """True when a rule with the given enforcement date is a hard error."""
    if enforced_from is None:
        return True
    return reference_date >= enforced_from

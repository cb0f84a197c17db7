"""
Format Validation Utilities

Helpers for the value formats and compound column labels found in
machine-readable price transparency files.
"""

import re
from typing import List

from ..config.constants import (
    REGEX_PATTERNS,
    SEGMENT_SEPARATOR,
    COUNT_RANGE_TOKEN,
    MIN_EXACT_COUNT,
)


# ============================================================================
# COLUMN LABELS
# ============================================================================

def split_segments(label: str) -> List[str]:
    """
    Split a compound column label on "|" and trim each segment.

    Example:
        "standard_charge |  Payer A| Plan 1 " -> ["standard_charge", "Payer A", "Plan 1"]
    """
    if label is None:
        return []
    return [segment.strip() for segment in label.split(SEGMENT_SEPARATOR)]


def normalize_label(label: str) -> str:
    """Rejoin trimmed segments with a single " | " separator."""
    return f" {SEGMENT_SEPARATOR} ".join(split_segments(label))


def segments_equal(left: str, right: str) -> bool:
    """
    Compare two column labels segment by segment.

    Segments are trimmed and case-folded. Both labels must have the same
    number of segments; a shorter label is never a match for a longer one.
    """
    left_segments = [segment.casefold() for segment in split_segments(left)]
    right_segments = [segment.casefold() for segment in split_segments(right)]
    return left_segments == right_segments


def matches_string(value: str, expected: str) -> bool:
    """Case-insensitive comparison ignoring surrounding whitespace."""
    if value is None or expected is None:
        return False
    return value.strip().casefold() == expected.strip().casefold()


def is_blank_row(values: List[str]) -> bool:
    """True when every cell of a row is empty after trimming."""
    return all(not (value or "").strip() for value in values)


# ============================================================================
# NUMBERS
# ============================================================================

def is_positive_number(value: str) -> bool:
    """
    Check for a plain decimal number greater than zero.

    Signs, exponents, thousands separators and currency symbols are rejected.
    """
    if not value:
        return False
    if not re.match(REGEX_PATTERNS["positive_number"], value):
        return False
    return float(value) > 0


def is_valid_count(value: str) -> bool:
    """
    Check a "count of allowed amounts" value.

    Allowed: "0", a whole number of 11 or more, or the range token
    "1 through 10" (case-insensitive).
    """
    if not value:
        return False
    if matches_string(value, COUNT_RANGE_TOKEN):
        return True
    if not re.match(REGEX_PATTERNS["whole_number"], value):
        return False
    count = int(value)
    return count == 0 or count >= MIN_EXACT_COUNT


def is_zero_count(value: str) -> bool:
    """True for a count value that is numerically zero."""
    return bool(value) and bool(re.match(REGEX_PATTERNS["whole_number"], value)) and int(value) == 0


def numeric_equals(value: str, target: float) -> bool:
    """True when value parses as a number equal to target."""
    if not value or not re.match(REGEX_PATTERNS["positive_number"], value):
        return False
    return float(value) == target

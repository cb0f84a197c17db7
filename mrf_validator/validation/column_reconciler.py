"""
Column Reconciler

Matches the raw labels of a header row against the expected column
definitions. Matching ignores order, case and whitespace around "|"
segments; each expected column binds at most one raw column.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..config.constants import ColumnKind, STATE_CODES, LICENSE_PREFIX
from ..models.columns import ColumnDefinition, ColumnMapping
from ..models.violation import Violation
from ..utils.format_utils import split_segments, segments_equal
from . import violations


class ReconciliationResult(BaseModel):
    """Mapping plus the structural errors found while building it"""

    mapping: ColumnMapping
    errors: List[Violation] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _license_state(raw_label: str) -> Optional[str]:
    """State segment of a "license_number | XX" label, None for any other label."""
    segments = split_segments(raw_label)
    if len(segments) == 2 and segments[0].casefold() == LICENSE_PREFIX:
        return segments[1]
    return None


def _matches(raw_label: str, definition: ColumnDefinition) -> bool:
    if definition.region_coded:
        return _license_state(raw_label) is not None
    return segments_equal(raw_label, definition.label)


def _same_column(raw_label: str, other_label: str) -> bool:
    if _license_state(raw_label) is not None and _license_state(other_label) is not None:
        return True
    return segments_equal(raw_label, other_label)


def reconcile_columns(
    raw_columns: List[str],
    expected: List[ColumnDefinition],
    kind: ColumnKind
) -> ReconciliationResult:
    """
    Map raw column labels onto expected column definitions.

    Args:
        raw_columns: Labels of the header row, in file order
        expected: Column definitions for this file
        kind: HEADER for row 1 labels, DATA for row 3 labels; selects the
            error kinds and row they are reported on

    Returns:
        ReconciliationResult with a mapping index-aligned to raw_columns.
        Unmatched extra columns are tolerated; duplicates, invalid state
        codes and missing required columns are errors.
    """
    pool = list(expected)
    normalized: List[Optional[str]] = []
    consumed: List[str] = []
    errors: List[Violation] = []

    for index, raw_label in enumerate(raw_columns):
        match = next((definition for definition in pool if _matches(raw_label, definition)), None)

        if match is not None:
            pool.remove(match)
            consumed.append(raw_label)
            normalized.append(match.label)

            if match.region_coded:
                state = _license_state(raw_label)
                if state.upper() not in STATE_CODES:
                    errors.append(violations.invalid_state_code(index, state))
            continue

        normalized.append(None)
        if any(_same_column(raw_label, seen) for seen in consumed):
            if kind == ColumnKind.HEADER:
                errors.append(violations.duplicate_header_column(index, raw_label))
            else:
                errors.append(violations.duplicate_column(index, raw_label))

    for definition in pool:
        if not definition.required:
            continue
        if kind == ColumnKind.HEADER:
            errors.append(violations.header_column_missing(definition.label))
        else:
            errors.append(violations.column_missing(definition.label))

    mapping = ColumnMapping(raw=list(raw_columns), normalized=normalized)
    return ReconciliationResult(mapping=mapping, errors=errors)

"""
Rule Tree Evaluator

Interprets a rule forest against one row record. The traversal is a work
list: a node's children are placed at the front, so sub-rules run right after
their parent and before siblings declared later. Violation order therefore
follows catalog declaration order.
"""

from collections import deque
from typing import Callable, Dict, List

from ..models.columns import ColumnMapping
from ..models.rules import (
    RuleNode,
    AnyPresent,
    AllPresent,
    NonePresent,
    ValueIs,
    ZeroCount,
    AllOf,
    Required,
    AllowedValues,
    PositiveNumber,
    CountNumber,
    RequireAny,
    RequireEach,
    Flag,
    SentinelValue,
)
from ..models.violation import Violation
from ..utils.format_utils import (
    matches_string,
    is_positive_number,
    is_valid_count,
    is_zero_count,
    numeric_equals,
)
from . import violations


RowRecord = Dict[str, str]


def _present(row: RowRecord, field: str) -> bool:
    return bool(row.get(field, ""))


# ============================================================================
# PREDICATES
# ============================================================================

def predicate_holds(predicate, row: RowRecord) -> bool:
    """Evaluate a predicate variant against a row record."""
    if isinstance(predicate, AnyPresent):
        return any(_present(row, field) for field in predicate.fields)
    if isinstance(predicate, AllPresent):
        return all(_present(row, field) for field in predicate.fields)
    if isinstance(predicate, NonePresent):
        return not any(_present(row, field) for field in predicate.fields)
    if isinstance(predicate, ValueIs):
        return any(matches_string(row.get(field, ""), predicate.value) for field in predicate.fields)
    if isinstance(predicate, ZeroCount):
        return is_zero_count(row.get(predicate.field, ""))
    if isinstance(predicate, AllOf):
        return all(predicate_holds(nested, row) for nested in predicate.predicates)
    raise TypeError(f"Unknown predicate: {type(predicate).__name__}")


# ============================================================================
# CHECKS
# ============================================================================

class RowContext:
    """Row being evaluated plus what is needed to locate its violations."""

    def __init__(self, row: RowRecord, row_index: int, columns: ColumnMapping):
        self.row = row
        self.row_index = row_index
        self.columns = columns

    def value(self, field: str) -> str:
        return self.row.get(field, "")

    def column(self, field: str) -> int:
        return self.columns.index_of(field)

    def entered(self, field: str) -> str:
        return self.columns.raw_label(field)

    def end_column(self) -> int:
        """One column past the last column of the file."""
        return len(self.columns.raw)


def _check_required(check: Required, ctx: RowContext) -> List[Violation]:
    if ctx.value(check.field):
        return []
    return [violations.required_value(
        ctx.row_index, ctx.column(check.field), ctx.entered(check.field), check.suffix, field=check.field
    )]


def _check_allowed_values(check: AllowedValues, ctx: RowContext) -> List[Violation]:
    value = ctx.value(check.field)
    if not value:
        if check.required:
            return [violations.required_value(
                ctx.row_index, ctx.column(check.field), ctx.entered(check.field), check.suffix, field=check.field
            )]
        return []
    if any(matches_string(value, allowed) for allowed in check.values):
        return []
    return [violations.allowed_values(
        ctx.row_index, ctx.column(check.field), ctx.entered(check.field), value, check.values, field=check.field
    )]


def _check_positive_number(check: PositiveNumber, ctx: RowContext) -> List[Violation]:
    value = ctx.value(check.field)
    if not value:
        if check.required:
            return [violations.required_value(
                ctx.row_index, ctx.column(check.field), ctx.entered(check.field), check.suffix, field=check.field
            )]
        return []
    if is_positive_number(value):
        return []
    return [violations.invalid_positive_number(
        ctx.row_index, ctx.column(check.field), ctx.entered(check.field), value, field=check.field
    )]


def _check_count_number(check: CountNumber, ctx: RowContext) -> List[Violation]:
    value = ctx.value(check.field)
    if not value or is_valid_count(value):
        return []
    return [violations.invalid_count_number(
        ctx.row_index, ctx.column(check.field), ctx.entered(check.field), value, field=check.field
    )]


def _check_require_any(check: RequireAny, ctx: RowContext) -> List[Violation]:
    if any(ctx.value(field) for field in check.fields):
        return []
    column = ctx.column(check.at) if check.at else ctx.end_column()
    return [violations.rule_violation(check.code, ctx.row_index, column)]


def _check_require_each(check: RequireEach, ctx: RowContext) -> List[Violation]:
    missing = [field for field in check.fields if not ctx.value(field)]
    if check.first_only:
        missing = missing[:1]
    return [
        violations.rule_violation(check.code, ctx.row_index, ctx.column(field), field=field)
        for field in missing
    ]


def _check_flag(check: Flag, ctx: RowContext) -> List[Violation]:
    column = ctx.column(check.at) if check.at else ctx.end_column()
    return [violations.rule_violation(check.code, ctx.row_index, column)]


def _check_sentinel_value(check: SentinelValue, ctx: RowContext) -> List[Violation]:
    if not numeric_equals(ctx.value(check.field), check.value):
        return []
    return [violations.rule_violation(check.code, ctx.row_index, ctx.column(check.field), field=check.field)]


_CHECK_HANDLERS: Dict[type, Callable[..., List[Violation]]] = {
    Required: _check_required,
    AllowedValues: _check_allowed_values,
    PositiveNumber: _check_positive_number,
    CountNumber: _check_count_number,
    RequireAny: _check_require_any,
    RequireEach: _check_require_each,
    Flag: _check_flag,
    SentinelValue: _check_sentinel_value,
}


def run_check(check, ctx: RowContext) -> List[Violation]:
    """Run one check variant."""
    handler = _CHECK_HANDLERS.get(type(check))
    if handler is None:
        raise TypeError(f"Unknown check: {type(check).__name__}")
    return handler(check, ctx)


# ============================================================================
# TRAVERSAL
# ============================================================================

def evaluate(
    row: RowRecord,
    forest: List[RuleNode],
    columns: ColumnMapping,
    row_index: int
) -> List[Violation]:
    """
    Evaluate a rule forest against one row.

    Args:
        row: Row record keyed by semantic column key
        forest: Version-filtered rule forest
        columns: Discovered column mapping, used to locate violations
        row_index: Zero-based index of the row in the file

    Returns:
        Violations in catalog declaration order
    """
    ctx = RowContext(row, row_index, columns)
    found: List[Violation] = []
    work = deque(forest)

    while work:
        node = work.popleft()
        if node.predicate is None or predicate_holds(node.predicate, row):
            check, next_nodes = node.validator, node.children
        else:
            check, next_nodes = node.negative_validator, node.negative_children

        if check is not None:
            produced = run_check(check, ctx)
            if node.warning:
                produced = [violation.as_warning() for violation in produced]
            found.extend(produced)

        work.extendleft(reversed(next_nodes))

    return found

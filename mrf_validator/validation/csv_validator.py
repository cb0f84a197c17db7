"""
CSV Validator

Streaming validation of CSV machine-readable files. Rows are pulled one at a
time and dispatched by index:

- Row 0: header column labels
- Row 1: header values, checked against the reconciled header labels
- Row 2: data column labels; any problem in rows 0-2 stops the run
- Row 3+: data rows, evaluated against the validator session

Only the current row is held in memory, and no more input is read once the
run is aborted.
"""

import csv
import io
import os
import time
from contextlib import contextmanager
from datetime import date
from typing import Any, Iterable, Iterator, List, Optional

from ..config.catalog_loader import CatalogLoader, get_catalog_loader
from ..config.constants import ColumnKind, HeaderValueType, MIN_ROW_COUNT
from ..models.columns import ColumnMapping
from ..models.session import ValidationOptions, ValidatorSession
from ..models.version import SemanticVersion
from ..models.violation import Violation, ValidationResult
from ..utils.date_utils import is_valid_date, resolve_reference_date
from ..utils.error_handler import (
    MRFError,
    ErrorCode,
    ErrorLevel,
    stream_read_error,
    encoding_error,
    unsupported_source_error,
)
from ..utils.format_utils import is_blank_row, matches_string
from ..utils.logger import get_module_logger
from . import violations
from .column_reconciler import reconcile_columns
from .error_budget import ErrorBudget
from .format_detector import detect_format, expected_data_columns
from .rule_builder import RuleBuilder
from .rule_evaluator import evaluate

logger = get_module_logger()

BOM = "\ufeff"


def _strip_bom(lines: Iterable[str]) -> Iterator[str]:
    first = True
    for line in lines:
        if first:
            line = line.lstrip(BOM)
            first = False
        yield line


@contextmanager
def open_text_lines(source: Any) -> Iterator[Iterator[str]]:
    """
    Open any supported CSV source as an iterator of text lines.

    Supported sources: a file path, bytes, a binary or text file object
    (including uploaded files), or an iterable of text lines. A leading
    byte order mark is removed.

    Raises:
        MRFError: If the source type is not supported or cannot be opened
    """
    if isinstance(source, (str, os.PathLike)):
        try:
            handle = open(source, "r", encoding="utf-8-sig", newline="")
        except OSError as e:
            raise stream_read_error(str(source), e)
        with handle:
            yield iter(handle)
        return

    if isinstance(source, (bytes, bytearray)):
        try:
            text = bytes(source).decode("utf-8")
        except UnicodeDecodeError as e:
            raise encoding_error("<bytes>", e)
        yield _strip_bom(io.StringIO(text, newline=""))
        return

    if hasattr(source, "read"):
        sample = source.read(0)
        if isinstance(sample, bytes):
            wrapper = io.TextIOWrapper(source, encoding="utf-8-sig", newline="")
            try:
                yield iter(wrapper)
            finally:
                # Leave the caller's stream open
                wrapper.detach()
        else:
            yield _strip_bom(source)
        return

    if isinstance(source, Iterable):
        yield _strip_bom(source)
        return

    raise unsupported_source_error(source)


class CsvValidator:
    """
    Validates one CSV file against one schema version.

    Main entry point for CSV validation. Each call to validate() reads its
    source exactly once and starts from a clean error budget.
    """

    def __init__(
        self,
        version: str,
        options: Optional[ValidationOptions] = None,
        catalog_loader: Optional[CatalogLoader] = None,
        rule_builder: Optional[RuleBuilder] = None
    ):
        """
        Initialize the CSV validator.

        Args:
            version: Schema version, e.g. "2.2.0", "v2.2" or "3.0"
            options: Run options (error cap, row callback, reference date)
            catalog_loader: Catalog to use; packaged catalog when None
            rule_builder: Builder for the validator session
        """
        self.version_str = version
        self.options = options or ValidationOptions()
        self.catalog = catalog_loader or get_catalog_loader()
        self.rule_builder = rule_builder or RuleBuilder(self.catalog)

    def validate(self, source: Any) -> ValidationResult:
        """
        Validate a CSV source.

        Args:
            source: Path, bytes, file object or iterable of lines

        Returns:
            ValidationResult

        Raises:
            MRFError: If the input cannot be read or decoded
        """
        start_time = time.time()

        version = self.catalog.resolve_version(self.version_str)
        if version is None:
            logger.warning("Unsupported version requested", version=self.version_str)
            return ValidationResult(
                valid=False,
                errors=[violations.invalid_version(self.catalog.supported_versions())],
            )

        run = _CsvRun(
            version=version,
            options=self.options,
            reference_date=resolve_reference_date(self.options.reference_date),
            catalog=self.catalog,
            rule_builder=self.rule_builder,
        )

        with open_text_lines(source) as lines:
            result = run.consume(csv.reader(lines), source_name=describe_source(source))

        logger.log_validation(
            source=describe_source(source),
            is_valid=result.valid,
            error_count=len(result.errors),
            alert_count=len(result.alerts),
            version=str(version),
        )
        logger.log_performance("validate_csv", time.time() - start_time, {"rows": run.rows_seen})
        return result


class _CsvRun:
    """State of one pass over one CSV source."""

    def __init__(
        self,
        version: SemanticVersion,
        options: ValidationOptions,
        reference_date: date,
        catalog: CatalogLoader,
        rule_builder: RuleBuilder
    ):
        self.version = version
        self.options = options
        self.reference_date = reference_date
        self.catalog = catalog
        self.rule_builder = rule_builder

        self.budget = ErrorBudget(options.max_errors)
        self.rows_seen = 0
        self.data_rows = 0
        self.has_payer_charge = False
        self.header_labels: List[str] = []
        self.session: Optional[ValidatorSession] = None

    def consume(self, reader: Iterator[List[str]], source_name: str) -> ValidationResult:
        """Pull rows until the end of input or an abort."""
        index = 0
        while True:
            try:
                raw_values = next(reader)
            except StopIteration:
                break
            except UnicodeDecodeError as e:
                raise encoding_error(source_name, e)
            except csv.Error as e:
                raise MRFError(
                    message=f"Unable to tokenize row {index + 1}: {e}",
                    code=ErrorCode.MALFORMED_ROW,
                    level=ErrorLevel.ERROR,
                    details={'source': source_name, 'row': index + 1},
                    cause=e
                )
            except OSError as e:
                raise stream_read_error(source_name, e)

            self.rows_seen = index + 1
            values = [value.strip() for value in raw_values]
            result = self.handle_row(index, values)
            if result is not None:
                return result
            index += 1

        return self.finish()

    def handle_row(self, index: int, values: List[str]) -> Optional[ValidationResult]:
        """Process one row; returns a result when the run must stop."""
        blank = is_blank_row(values)

        if index in (0, 2) and blank:
            logger.log_abort("blank header row", index, 1)
            return ValidationResult(valid=False, errors=[violations.header_blank(index)])

        if index == 0:
            logger.log_phase("header labels", index, columns=len(values))
            self.header_labels = values
        elif index == 1:
            logger.log_phase("header values", index)
            self.validate_header(values)
        elif index == 2:
            logger.log_phase("data labels", index, columns=len(values))
            self.validate_columns(values)
            if self.budget.errors:
                return self.header_failure(index)
        elif not blank:
            self.validate_data_row(index, values)

        if self.budget.exhausted:
            if index <= 2:
                return self.header_failure(index)
            logger.log_abort("error limit reached", index, len(self.budget.errors))
            return self.budget.result(stopped=True)

        return None

    def header_failure(self, index: int) -> ValidationResult:
        """Errors in rows 1-3 plus one summary error, capped at max_errors."""
        errors = self.budget.errors + [violations.problems_in_header()]
        if self.options.max_errors:
            errors = errors[:self.options.max_errors]
        logger.log_abort("problems in header rows", index, len(errors))
        return ValidationResult(valid=False, errors=errors, alerts=list(self.budget.alerts))

    # ------------------------------------------------------------------
    # Header rows
    # ------------------------------------------------------------------

    def validate_header(self, values: List[str]) -> None:
        definitions = self.catalog.header_columns(self.version)
        reconciliation = reconcile_columns(self.header_labels, definitions, ColumnKind.HEADER)
        self.budget.add_errors(reconciliation.errors)

        by_label = {definition.label: definition for definition in definitions}
        errors, alerts = self.header_value_violations(reconciliation.mapping, by_label, values)
        self.budget.add_errors(errors)
        self.budget.add_alerts(alerts)

    def header_value_violations(self, mapping: ColumnMapping, by_label: dict, values: List[str]):
        errors: List[Violation] = []
        alerts: List[Violation] = []
        allowed = self.catalog.allowed_values("boolean", self.version)

        for index, label in enumerate(mapping.normalized):
            if label is None:
                continue
            definition = by_label[label]
            if definition.value_type == HeaderValueType.LICENSE:
                # License number is optional; the state is checked on the label
                continue

            value = values[index] if index < len(values) else ""
            if not value:
                errors.append(violations.required_value(1, index, label, field=label))
            elif definition.value_type == HeaderValueType.DATE:
                if not is_valid_date(value):
                    errors.append(violations.invalid_date(1, index, label, value, field=label))
            elif definition.value_type in (HeaderValueType.AFFIRMATION, HeaderValueType.ATTESTATION):
                if not any(matches_string(value, option) for option in allowed):
                    errors.append(violations.allowed_values(1, index, label, value, allowed, field=label))
                elif matches_string(value, "false"):
                    alerts.append(violations.false_statement(
                        1, index, attestation=definition.value_type == HeaderValueType.ATTESTATION
                    ))

        return errors, alerts

    def validate_columns(self, values: List[str]) -> None:
        detection = detect_format(values)
        if detection.is_ambiguous:
            self.budget.add_errors([violations.ambiguous_format()])
            return

        definitions = expected_data_columns(self.version, detection)
        reconciliation = reconcile_columns(values, definitions, ColumnKind.DATA)
        self.budget.add_errors(reconciliation.errors)
        if self.budget.errors:
            return

        self.session = self.rule_builder.build_session(
            self.version,
            detection,
            definitions,
            reconciliation.mapping,
            self.reference_date,
        )

    # ------------------------------------------------------------------
    # Data rows
    # ------------------------------------------------------------------

    def validate_data_row(self, index: int, values: List[str]) -> None:
        session = self.session
        record = session.columns.record(values)

        row_errors = evaluate(record, session.rules, session.columns, index)
        row_alerts: List[Violation] = []
        if self.budget.alerts_open:
            row_alerts = evaluate(record, session.alert_rules, session.columns, index)

        self.data_rows += 1
        if not self.has_payer_charge:
            self.has_payer_charge = any(record.get(field) for field in session.payer_charge_fields)

        self.budget.add_errors(row_errors)
        self.budget.add_alerts(row_alerts)

        if self.options.on_value_callback is not None:
            self.options.on_value_callback(record, row_errors, row_alerts)

    def finish(self) -> ValidationResult:
        if self.rows_seen < MIN_ROW_COUNT:
            logger.log_abort("too few rows", self.rows_seen, 1)
            return ValidationResult(valid=False, errors=[violations.min_rows()])

        if self.data_rows and not self.has_payer_charge:
            self.budget.add_alerts([violations.no_payer_charge()])

        return self.budget.result()


def describe_source(source: Any) -> str:
    """Short name of a source for log messages."""
    if isinstance(source, (str, os.PathLike)):
        return str(source)
    return getattr(source, "name", type(source).__name__)


def validate_csv(
    source: Any,
    version: str,
    options: Optional[ValidationOptions] = None,
    **option_values
) -> ValidationResult:
    """
    Validate a CSV machine-readable file.

    Args:
        source: Path, bytes, file object or iterable of lines
        version: Schema version, e.g. "2.2.0"
        options: Run options; alternatively pass max_errors,
            on_value_callback or reference_date as keyword arguments

    Returns:
        ValidationResult
    """
    if options is None:
        options = ValidationOptions(**option_values)
    return CsvValidator(version, options).validate(source)

"""
JSON Validator

Validates JSON machine-readable files with jsonschema. Each charge item is
checked on its own so errors are reported in item order and the run can stop
at max_errors; the metadata is checked once all items are done.
"""

import json
import os
import time
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator, FormatChecker

from ..config.catalog_loader import CatalogLoader, get_catalog_loader
from ..models.session import ValidationOptions
from ..models.violation import Violation, ValidationResult
from ..utils.error_handler import stream_read_error, encoding_error, unsupported_source_error
from ..utils.logger import get_module_logger
from . import violations
from .csv_validator import describe_source
from .error_budget import ErrorBudget
from .json_schemas import CHARGE_ITEMS_KEY, JsonSchemaBuilder

logger = get_module_logger()

PAYER_CHARGE_KEYS = ("standard_charge_dollar", "standard_charge_percentage", "standard_charge_algorithm")


class InvalidJsonDocument(Exception):
    """Raised internally when the input is not well-formed JSON."""


def load_document(source: Any) -> Any:
    """
    Load a JSON document from a path, bytes, or file object.

    Raises:
        InvalidJsonDocument: If the text is not valid JSON
        MRFError: If the source cannot be read or decoded
    """
    if isinstance(source, (str, os.PathLike)):
        try:
            with open(source, "r", encoding="utf-8-sig") as handle:
                text = handle.read()
        except UnicodeDecodeError as e:
            raise encoding_error(str(source), e)
        except OSError as e:
            raise stream_read_error(str(source), e)
    elif isinstance(source, (bytes, bytearray)):
        text = _decode(bytes(source), "<bytes>")
    elif hasattr(source, "read"):
        content = source.read()
        name = getattr(source, "name", type(source).__name__)
        text = _decode(content, name) if isinstance(content, bytes) else content
    else:
        raise unsupported_source_error(source)

    try:
        return json.loads(text.lstrip("\ufeff"))
    except json.JSONDecodeError as e:
        raise InvalidJsonDocument(str(e)) from e


def _decode(content: bytes, name: str) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise encoding_error(name, e)


def json_pointer(parts) -> str:
    """RFC 6901 pointer for a sequence of keys and indexes."""
    escaped = [str(part).replace("~", "~0").replace("/", "~1") for part in parts]
    return "".join(f"/{part}" for part in escaped)


def _has_payer_charge(item: Any) -> bool:
    if not isinstance(item, dict):
        return False
    for charge in item.get("standard_charges") or []:
        if not isinstance(charge, dict):
            continue
        for payer in charge.get("payers_information") or []:
            if isinstance(payer, dict) and any(key in payer for key in PAYER_CHARGE_KEYS):
                return True
    return False


class JsonValidator:
    """
    Validates one JSON file against one schema version.

    The three jsonschema validators (full document, charge item, metadata)
    are built once per instance.
    """

    def __init__(
        self,
        version: str,
        options: Optional[ValidationOptions] = None,
        catalog_loader: Optional[CatalogLoader] = None
    ):
        self.version_str = version
        self.options = options or ValidationOptions()
        self.catalog = catalog_loader or get_catalog_loader()
        self.version = self.catalog.resolve_version(version)

        if self.version is not None:
            builder = JsonSchemaBuilder(self.version, self.catalog)
            checker = FormatChecker()
            self.full_validator = Draft7Validator(builder.full_schema(), format_checker=checker)
            self.item_validator = Draft7Validator(builder.item_schema(), format_checker=checker)
            self.metadata_validator = Draft7Validator(builder.metadata_schema(), format_checker=checker)

    def schema_violations(self, validator: Draft7Validator, instance: Any, prefix: List[Any]) -> List[Violation]:
        """Schema errors of an instance, ordered by location."""
        errors = sorted(
            validator.iter_errors(instance),
            key=lambda error: [str(part) for part in error.absolute_path]
        )
        return [
            violations.schema_violation(json_pointer(prefix + list(error.absolute_path)), error.message)
            for error in errors
        ]

    def validate(self, source: Any) -> ValidationResult:
        """
        Validate a JSON source.

        Args:
            source: Path, bytes or file object

        Returns:
            ValidationResult; malformed JSON gives a single InvalidJson error

        Raises:
            MRFError: If the input cannot be read or decoded
        """
        start_time = time.time()

        if self.version is None:
            logger.warning("Unsupported version requested", version=self.version_str)
            return ValidationResult(
                valid=False,
                errors=[violations.invalid_version(self.catalog.supported_versions())],
            )

        try:
            document = load_document(source)
        except InvalidJsonDocument as e:
            logger.info("Input is not valid JSON", detail=str(e))
            return ValidationResult(valid=False, errors=[violations.invalid_json(str(e))])

        result = self.validate_document(document)

        logger.log_validation(
            source=describe_source(source),
            is_valid=result.valid,
            error_count=len(result.errors),
            alert_count=len(result.alerts),
            version=str(self.version),
        )
        logger.log_performance("validate_json", time.time() - start_time)
        return result

    def validate_document(self, document: Any) -> ValidationResult:
        """Validate an already parsed JSON document."""
        budget = ErrorBudget(self.options.max_errors)

        items = document.get(CHARGE_ITEMS_KEY) if isinstance(document, dict) else None
        if not isinstance(items, list) or not items:
            # No items to check one by one; the full schema reports what is missing
            budget.add_errors(self.schema_violations(self.full_validator, document, []))
            self.add_metadata_alerts(document, budget)
            return budget.result()

        has_payer_charge = False
        for index, item in enumerate(items):
            item_errors = self.schema_violations(self.item_validator, item, [CHARGE_ITEMS_KEY, index])
            budget.add_errors(item_errors)
            has_payer_charge = has_payer_charge or _has_payer_charge(item)

            if self.options.on_value_callback is not None:
                self.options.on_value_callback(item, item_errors, [])

            if budget.exhausted:
                logger.log_abort("error limit reached", index, len(budget.errors))
                return budget.result(stopped=True)

        metadata = {key: value for key, value in document.items() if key != CHARGE_ITEMS_KEY}
        budget.add_errors(self.schema_violations(self.metadata_validator, metadata, []))

        self.add_metadata_alerts(document, budget)
        if not has_payer_charge:
            budget.add_alerts([violations.json_no_payer_charge()])
        return budget.result()

    def add_metadata_alerts(self, document: Any, budget: ErrorBudget) -> None:
        if not isinstance(document, dict):
            return
        statements: Dict[str, bool] = {"affirmation": False, "attestation": True}
        for key, attestation in statements.items():
            section = document.get(key)
            if isinstance(section, dict) and section.get(f"confirm_{key}") is False:
                budget.add_alerts([violations.json_false_statement(attestation)])


def validate_json(
    source: Any,
    version: str,
    options: Optional[ValidationOptions] = None,
    **option_values
) -> ValidationResult:
    """
    Validate a JSON machine-readable file.

    Args:
        source: Path, bytes or file object
        version: Schema version, e.g. "2.2.0"
        options: Run options; alternatively pass max_errors,
            on_value_callback or reference_date as keyword arguments

    Returns:
        ValidationResult
    """
    if options is None:
        options = ValidationOptions(**option_values)
    return JsonValidator(version, options).validate(source)

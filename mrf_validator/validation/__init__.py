"""
Validation Module

Validates machine-readable files against the versioned schema catalog.

Components:
- column_reconciler.py: Matches discovered column labels to expected columns
- format_detector.py: Code column count, payer/plan groups, tall or wide layout
- rule_builder.py: Version filtered rule trees and the validator session
- rule_evaluator.py: Evaluates rule trees against one data row
- csv_validator.py: Streaming CSV validation
- json_schemas.py / json_validator.py: JSON validation with jsonschema
- filename.py: File naming convention check
"""

from .csv_validator import CsvValidator, validate_csv
from .json_validator import JsonValidator, validate_json
from .filename import validate_filename
from .rule_builder import RuleBuilder

__all__ = [
    "CsvValidator",
    "validate_csv",
    "JsonValidator",
    "validate_json",
    "validate_filename",
    "RuleBuilder",
]

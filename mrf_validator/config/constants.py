"""
Application Constants and Enumerations

Defines constants used throughout the validator: layouts, header value types,
violation codes, regex patterns and the state/territory code list.

KEY DESIGN PRINCIPLES:

1. VIOLATIONS ARE DATA:
   - Structural and business-rule problems are returned as Violation records
   - Only I/O failures and broken configuration raise MRFError

2. FAIL FAST ON HEADERS:
   - Any problem in rows 1 through 3 stops the run before data rows
   - Every header problem is reported together with one summary error

3. VERSIONED CATALOG:
   - Supported versions, header columns and value sets live in
     schema_catalog.yaml, never in validator code
"""

from enum import Enum


class Layout(str, Enum):
    """Data layouts for the CSV format"""
    TALL = "tall"
    WIDE = "wide"


class ColumnKind(str, Enum):
    """Which header row a set of column definitions belongs to"""
    HEADER = "header"  # row 1: hospital metadata labels
    DATA = "data"  # row 3: item/service column labels


class HeaderValueType(str, Enum):
    """How a header row value is checked"""
    TEXT = "text"
    DATE = "date"
    AFFIRMATION = "affirmation"
    ATTESTATION = "attestation"
    LICENSE = "license"


class ViolationCode(str, Enum):
    """Every kind of violation the validators can report"""

    # File structure
    INVALID_VERSION = "invalid_version"
    HEADER_BLANK = "header_blank"
    MIN_ROWS = "min_rows"
    PROBLEMS_IN_HEADER = "problems_in_header"
    AMBIGUOUS_FORMAT = "ambiguous_format"

    # Column reconciliation
    HEADER_COLUMN_MISSING = "header_column_missing"
    DUPLICATE_HEADER_COLUMN = "duplicate_header_column"
    INVALID_STATE_CODE = "invalid_state_code"
    COLUMN_MISSING = "column_missing"
    DUPLICATE_COLUMN = "duplicate_column"

    # Field values
    REQUIRED_VALUE = "required_value"
    ALLOWED_VALUES = "allowed_values"
    INVALID_DATE = "invalid_date"
    INVALID_POSITIVE_NUMBER = "invalid_positive_number"
    INVALID_COUNT_NUMBER = "invalid_count_number"

    # Cross-field rules
    CODE_PAIR_MISSING = "code_pair_missing"
    ITEM_REQUIRES_CHARGE = "item_requires_charge"
    DOLLAR_NEEDS_MIN_MAX = "dollar_needs_min_max"
    OTHER_METHODOLOGY_NOTES = "other_methodology_notes"
    ALLOWED_COUNT_ZERO_NOTES = "allowed_count_zero_notes"
    DRUG_INFORMATION_REQUIRED = "drug_information_required"
    MODIFIER_MISSING_INFO = "modifier_missing_info"
    CHARGE_WITH_PAYER_PLAN = "charge_with_payer_plan"
    PERCENTAGE_ALGORITHM_ESTIMATE = "percentage_algorithm_estimate"
    PERCENTAGE_ALGORITHM_COUNT = "percentage_algorithm_count"
    PERCENTAGE_ALGORITHM_MEDIAN = "percentage_algorithm_median"
    PERCENTAGE_ALGORITHM_10TH = "percentage_algorithm_10th"
    PERCENTAGE_ALGORITHM_90TH = "percentage_algorithm_90th"

    # JSON format
    INVALID_JSON = "invalid_json"
    SCHEMA_VIOLATION = "schema_violation"

    # Alerts (never affect validity)
    NINE_NINES = "nine_nines"
    NO_PAYER_CHARGE = "no_payer_charge"
    FALSE_AFFIRMATION = "false_affirmation"
    FALSE_ATTESTATION = "false_attestation"


# Regex patterns for value validation
REGEX_PATTERNS = {
    "positive_number": r"^(?:\d+|\d+\.\d+|\d+\.|\.\d+)$",
    "whole_number": r"^\d+$",
    "iso_date": r"^(\d{4})-(\d{2})-(\d{2})$",
    "us_date": r"^(\d{1,2})/(\d{1,2})/(\d{4})$",
    "version": r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?$",
    "filename": r"^(\d{2}-?\d{7})(-\d{10})?(_.+_)(standardcharges)\.(csv|json)$",
}


# State and territory abbreviations accepted in "license_number | [state]"
STATE_CODES = [
    "AL", "AK", "AS", "AZ", "AR", "CA", "CO", "CT", "DE", "DC",
    "FL", "GA", "GU", "HI", "ID", "IL", "IN", "IA", "KS", "KY",
    "LA", "ME", "MD", "MA", "MI", "MN", "MS", "MO", "MP", "MT",
    "NE", "NV", "NH", "NJ", "NM", "NY", "NC", "ND", "OH", "OK",
    "OR", "PA", "PR", "RI", "SC", "SD", "TN", "TX", "UT", "VT",
    "VI", "VA", "WA", "WV", "WI", "WY"
]


# Column label segments
SEGMENT_SEPARATOR = "|"
LICENSE_PREFIX = "license_number"
STATE_PLACEHOLDER = "[state]"

# Sentinel value some files use when no estimate can be calculated
NINE_NINES = 999999999

# Textual range accepted by the 3.0 "count" column
COUNT_RANGE_TOKEN = "1 through 10"
MIN_EXACT_COUNT = 11

# Rows 1-3 hold headers, so a file needs at least one more row
MIN_ROW_COUNT = 4

# Environment variables
LOG_LEVEL_ENV = "MRF_LOG_LEVEL"
LOG_DIR_ENV = "MRF_LOG_DIR"

"""
Violation Factories

One constructor per kind of violation, so every message text and location
rule lives in one place. Row and column indexes are zero-based.
"""

from typing import Dict, List, Optional

from ..config.constants import ViolationCode
from ..models.violation import Violation
from ..utils.cell_address import locate


STATE_CODES_URL = (
    "https://github.com/CMSgov/hospital-price-transparency/blob/master/"
    "documentation/CSV/state_codes.md"
)

NOTES_REQUIRED_TEMPLATE = (
    'If the "{element}" encoded value is "{value}", there must be a corresponding '
    'explanation found in the "additional notes" for the associated payer-specific '
    'negotiated charge.'
)

# Messages of cross-field rules; these never depend on the cell value
RULE_MESSAGES: Dict[ViolationCode, str] = {
    ViolationCode.CODE_PAIR_MISSING: (
        "If a standard charge is encoded, there must be a corresponding code and code type "
        "pairing. The code and code type pairing do not need to be in the first code and code "
        "type columns (i.e., code|1 and code|1|type)."
    ),
    ViolationCode.ITEM_REQUIRES_CHARGE: (
        'If an item or service is encoded, a corresponding valid value must be encoded for at '
        'least one of the following: "Gross Charge", "Discounted Cash Price", "Payer-Specific '
        'Negotiated Charge: Dollar Amount", "Payer-Specific Negotiated Charge: Percentage", '
        '"Payer-Specific Negotiated Charge: Algorithm".'
    ),
    ViolationCode.DOLLAR_NEEDS_MIN_MAX: (
        'If there is a "payer specific negotiated charge" encoded as a dollar amount, there '
        'must be a corresponding valid value encoded for the deidentified minimum and '
        'deidentified maximum negotiated charge data.'
    ),
    ViolationCode.OTHER_METHODOLOGY_NOTES: NOTES_REQUIRED_TEMPLATE.format(
        element="standard charge methodology", value="other"
    ),
    ViolationCode.ALLOWED_COUNT_ZERO_NOTES: NOTES_REQUIRED_TEMPLATE.format(
        element="count of allowed amounts", value="0"
    ),
    ViolationCode.DRUG_INFORMATION_REQUIRED: (
        "If code type is NDC, then the corresponding drug unit of measure and drug type of "
        "measure data element must be encoded."
    ),
    ViolationCode.MODIFIER_MISSING_INFO: (
        "If a modifier is encoded without an item or service, then a description and one of "
        "the following is the minimum information required: additional_payer_notes, "
        "standard_charge | negotiated_dollar, standard_charge | negotiated_percentage, or "
        "standard_charge | negotiated_algorithm."
    ),
    ViolationCode.CHARGE_WITH_PAYER_PLAN: (
        "If a payer name and plan name are encoded, a payer-specific charge must also be "
        "encoded."
    ),
    ViolationCode.PERCENTAGE_ALGORITHM_ESTIMATE: (
        'If a "payer specific negotiated charge" can only be expressed as a percentage or '
        'algorithm, then a corresponding "Estimated Allowed Amount" must also be encoded.'
    ),
    ViolationCode.PERCENTAGE_ALGORITHM_COUNT: (
        'If a "payer specific negotiated charge" is expressed as a percentage or algorithm, '
        'then a corresponding "Count of Allowed Amounts" must also be encoded.'
    ),
    ViolationCode.PERCENTAGE_ALGORITHM_MEDIAN: (
        'If a "payer specific negotiated charge" is expressed as a percentage or algorithm '
        'and the "Count of Allowed Amounts" is not 0, then a corresponding "Median Allowed '
        'Amount" must also be encoded.'
    ),
    ViolationCode.PERCENTAGE_ALGORITHM_10TH: (
        'If a "payer specific negotiated charge" is expressed as a percentage or algorithm '
        'and the "Count of Allowed Amounts" is not 0, then a corresponding "10th Percentile '
        'Allowed Amount" must also be encoded.'
    ),
    ViolationCode.PERCENTAGE_ALGORITHM_90TH: (
        'If a "payer specific negotiated charge" is expressed as a percentage or algorithm '
        'and the "Count of Allowed Amounts" is not 0, then a corresponding "90th Percentile '
        'Allowed Amount" must also be encoded.'
    ),
    ViolationCode.NINE_NINES: "Nine 9s used for estimated amount.",
}


def _violation(
    code: ViolationCode,
    row: int,
    column: Optional[int],
    message: str,
    field: Optional[str] = None
) -> Violation:
    return Violation(
        path=locate(row, column),
        row=row,
        column=column if column is not None and column >= 0 else None,
        field=field,
        message=message,
        code=code,
    )


def rule_violation(code: ViolationCode, row: int, column: int, field: Optional[str] = None) -> Violation:
    """Violation of a cross-field rule with a fixed message."""
    return _violation(code, row, column, RULE_MESSAGES[code], field)


# ============================================================================
# FILE STRUCTURE
# ============================================================================

def invalid_version(versions: List[str]) -> Violation:
    return _violation(
        ViolationCode.INVALID_VERSION, 0, 0,
        f"Invalid version supplied. Allowed versions are: {', '.join(versions)}"
    )


def header_blank(row: int) -> Violation:
    return _violation(
        ViolationCode.HEADER_BLANK, row, 0,
        f"Required headers must be defined on rows 1 and 3. Row {row + 1} is blank"
    )


def min_rows() -> Violation:
    return _violation(ViolationCode.MIN_ROWS, 0, 0, "At least one row must be present")


def problems_in_header() -> Violation:
    return _violation(
        ViolationCode.PROBLEMS_IN_HEADER, 0, 0,
        "Errors were found in the headers or values in rows 1 through 3, so the remaining "
        "rows were not evaluated."
    )


def ambiguous_format() -> Violation:
    return _violation(
        ViolationCode.AMBIGUOUS_FORMAT, 2, None,
        'Required payer-specific information data element headers are missing or miscoded '
        'from the MRF that does not follow the specifications for the CSV "Tall" or CSV '
        '"Wide" format.'
    )


# ============================================================================
# COLUMN RECONCILIATION
# ============================================================================

def header_column_missing(label: str) -> Violation:
    return _violation(
        ViolationCode.HEADER_COLUMN_MISSING, 0, None,
        f'Header column "{label}" is miscoded or missing. You must include this header and '
        f'confirm that it is encoded as specified in the data dictionary.',
        field=label
    )


def duplicate_header_column(column: int, label: str) -> Violation:
    return _violation(
        ViolationCode.DUPLICATE_HEADER_COLUMN, 0, column,
        f"Column {label} duplicated in header. You must review and revise your column "
        f"headers so that each header appears only once in the first row."
    )


def invalid_state_code(column: int, state_code: str) -> Violation:
    return _violation(
        ViolationCode.INVALID_STATE_CODE, 0, column,
        f"{state_code} is not an allowed value for state abbreviation. You must fill in the "
        f"state or territory abbreviation even if there is no license number to encode. See "
        f"the table found here for the list of valid values for state and territory "
        f"abbreviations {STATE_CODES_URL}"
    )


def column_missing(label: str) -> Violation:
    return _violation(
        ViolationCode.COLUMN_MISSING, 2, None,
        f"Column {label} is miscoded or missing from row 3. You must include this column and "
        f"confirm that it is encoded as specified in the data dictionary.",
        field=label
    )


def duplicate_column(column: int, label: str) -> Violation:
    return _violation(
        ViolationCode.DUPLICATE_COLUMN, 2, column,
        f"Column {label} duplicated in header. You must review and revise your column "
        f"headers so that each header appears only once in the third row."
    )


# ============================================================================
# FIELD VALUES
# ============================================================================

def required_value(row: int, column: int, column_name: str, suffix: str = "",
                   field: Optional[str] = None) -> Violation:
    return _violation(
        ViolationCode.REQUIRED_VALUE, row, column,
        f'A value is required for "{column_name}"{suffix}. You must encode the missing '
        f'information.',
        field=field
    )


def allowed_values(row: int, column: int, column_name: str, value: str,
                   allowed: List[str], field: Optional[str] = None) -> Violation:
    return _violation(
        ViolationCode.ALLOWED_VALUES, row, column,
        f'"{column_name}" value "{value}" is not one of the allowed valid values. You must '
        f'encode one of these valid values: {", ".join(allowed)}',
        field=field
    )


def invalid_date(row: int, column: int, column_name: str, value: str,
                 field: Optional[str] = None) -> Violation:
    return _violation(
        ViolationCode.INVALID_DATE, row, column,
        f'"{column_name}" value "{value}" is not in a valid format. You must encode the date '
        f'using the ISO 8601 format: YYYY-MM-DD or the month/day/year format: MM/DD/YYYY, '
        f'M/D/YYYY',
        field=field
    )


def invalid_positive_number(row: int, column: int, column_name: str, value: str,
                            field: Optional[str] = None) -> Violation:
    return _violation(
        ViolationCode.INVALID_POSITIVE_NUMBER, row, column,
        f'"{column_name}" value "{value}" is not a positive number. You must encode a '
        f'positive, non-zero, numeric value.',
        field=field
    )


def invalid_count_number(row: int, column: int, column_name: str, value: str,
                         field: Optional[str] = None) -> Violation:
    return _violation(
        ViolationCode.INVALID_COUNT_NUMBER, row, column,
        f'"{column_name}" value "{value}" is not a valid count. You must encode 0, a whole '
        f'number of 11 or greater, or the value "1 through 10".',
        field=field
    )


# ============================================================================
# ALERTS
# ============================================================================

def false_statement(row: int, column: int, attestation: bool) -> Violation:
    if attestation:
        return _violation(ViolationCode.FALSE_ATTESTATION, row, column, "Attestation value is false.")
    return _violation(ViolationCode.FALSE_AFFIRMATION, row, column, "Affirmation value is false.")


def no_payer_charge() -> Violation:
    return _violation(
        ViolationCode.NO_PAYER_CHARGE, 2, None,
        "File does not have any payer-specific charges"
    )


# ============================================================================
# JSON
# ============================================================================

JSON_CHARGES_POINTER = "/standard_charge_information"


def _json_violation(code: ViolationCode, pointer: str, message: str) -> Violation:
    field = pointer.rsplit("/", 1)[-1] if pointer else None
    return Violation(path=pointer, field=field or None, message=message, code=code)


def invalid_json(detail: str) -> Violation:
    return _json_violation(
        ViolationCode.INVALID_JSON, "",
        f"JSON parsing error: {detail}. The validator is unable to review a syntactically "
        f"invalid JSON file. Please ensure that your file is well-formatted JSON."
    )


def schema_violation(pointer: str, message: str) -> Violation:
    return _json_violation(ViolationCode.SCHEMA_VIOLATION, pointer, message)


def json_false_statement(attestation: bool) -> Violation:
    if attestation:
        return _json_violation(
            ViolationCode.FALSE_ATTESTATION, "/attestation/confirm_attestation",
            "Attestation value is false."
        )
    return _json_violation(
        ViolationCode.FALSE_AFFIRMATION, "/affirmation/confirm_affirmation",
        "Affirmation value is false."
    )


def json_no_payer_charge() -> Violation:
    return _json_violation(
        ViolationCode.NO_PAYER_CHARGE, JSON_CHARGES_POINTER,
        "File does not have any payer-specific charges."
    )

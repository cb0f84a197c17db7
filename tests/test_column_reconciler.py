import itertools
from collections import Counter

from mrf_validator.config.constants import ColumnKind, ViolationCode
from mrf_validator.config.catalog_loader import get_catalog_loader
from mrf_validator.models.columns import ColumnDefinition
from mrf_validator.models.version import SemanticVersion
from mrf_validator.validation.column_reconciler import reconcile_columns

from conftest import AFFIRMATION


DEFINITIONS = [
    ColumnDefinition(label="description"),
    ColumnDefinition(label="setting"),
    ColumnDefinition(label="code | 1"),
    ColumnDefinition(label="code | 1 | type"),
]


def header_definitions():
    return get_catalog_loader().header_columns(SemanticVersion.parse("2.2.0"))


def test_exact_match():
    result = reconcile_columns(["description", "setting", "code | 1", "code | 1 | type"], DEFINITIONS, ColumnKind.DATA)

    assert result.is_valid
    assert result.mapping.normalized == ["description", "setting", "code | 1", "code | 1 | type"]


def test_matching_ignores_case_and_segment_spacing():
    result = reconcile_columns(["DESCRIPTION", "Setting ", "code|1", "Code |1| TYPE"], DEFINITIONS, ColumnKind.DATA)

    assert result.is_valid
    assert result.mapping.normalized == ["description", "setting", "code | 1", "code | 1 | type"]
    assert result.mapping.raw_label("code | 1 | type") == "Code |1| TYPE"


def test_mapping_is_order_independent():
    raw = ["description", "setting", "code | 1", "code | 1 | type"]
    for permutation in itertools.permutations(raw):
        result = reconcile_columns(list(permutation), DEFINITIONS, ColumnKind.DATA)
        assert result.is_valid
        by_raw = dict(zip(permutation, result.mapping.normalized))
        assert by_raw == dict(zip(raw, raw))


def test_errors_are_order_independent():
    labels = ["hospital_name", "last_updated_on", "version", "internal_notes", "hospital_address",
              "license_number | ZZ", AFFIRMATION]
    expected = None
    for permutation in itertools.permutations(labels):
        result = reconcile_columns(list(permutation), header_definitions(), ColumnKind.HEADER)
        found = Counter((error.code, error.field) for error in result.errors)
        if expected is None:
            expected = found
        assert found == expected

    assert expected == Counter({
        (ViolationCode.HEADER_COLUMN_MISSING, "hospital_location"): 1,
        (ViolationCode.INVALID_STATE_CODE, None): 1,
    })


def test_extra_columns_are_tolerated():
    result = reconcile_columns(
        ["description", "internal_id", "setting", "code | 1", "code | 1 | type"], DEFINITIONS, ColumnKind.DATA
    )

    assert result.is_valid
    assert result.mapping.normalized[1] is None


def test_missing_data_column():
    result = reconcile_columns(["description", "code | 1", "code | 1 | type"], DEFINITIONS, ColumnKind.DATA)

    assert [error.code for error in result.errors] == [ViolationCode.COLUMN_MISSING]
    error = result.errors[0]
    assert error.path == "row 3"
    assert error.field == "setting"
    assert error.message.startswith("Column setting is miscoded or missing from row 3.")


def test_duplicate_data_column():
    result = reconcile_columns(
        ["description", "setting", "Setting", "code | 1", "code | 1 | type"], DEFINITIONS, ColumnKind.DATA
    )

    assert [error.code for error in result.errors] == [ViolationCode.DUPLICATE_COLUMN]
    assert result.errors[0].path == "C3"
    assert "third row" in result.errors[0].message
    assert result.mapping.normalized[2] is None


def test_shorter_label_does_not_match_longer_definition():
    result = reconcile_columns(["description", "setting", "code | 1 | type"], DEFINITIONS, ColumnKind.DATA)

    assert [error.field for error in result.errors] == ["code | 1"]


def test_header_license_column_matches_any_state():
    labels = ["hospital_name", "last_updated_on", "version", "hospital_location", "hospital_address",
              "license_number | CA", AFFIRMATION]
    result = reconcile_columns(labels, header_definitions(), ColumnKind.HEADER)

    assert result.is_valid
    assert result.mapping.normalized[5] == "license_number | [state]"


def test_header_invalid_state_code_still_consumes_slot():
    labels = ["hospital_name", "last_updated_on", "version", "hospital_location", "hospital_address",
              "license_number | ZZ", AFFIRMATION]
    result = reconcile_columns(labels, header_definitions(), ColumnKind.HEADER)

    assert [error.code for error in result.errors] == [ViolationCode.INVALID_STATE_CODE]
    assert result.errors[0].path == "F1"
    assert result.errors[0].message.startswith("ZZ is not an allowed value for state abbreviation.")


def test_header_missing_and_duplicate():
    labels = ["hospital_name", "hospital_name", "last_updated_on", "version", "hospital_address",
              "license_number | MD", AFFIRMATION]
    result = reconcile_columns(labels, header_definitions(), ColumnKind.HEADER)

    assert [error.code for error in result.errors] == [
        ViolationCode.DUPLICATE_HEADER_COLUMN,
        ViolationCode.HEADER_COLUMN_MISSING,
    ]
    assert result.errors[0].path == "B1"
    assert "first row" in result.errors[0].message
    assert result.errors[1].path == "row 1"
    assert result.errors[1].field == "hospital_location"


def test_optional_definitions_are_not_reported_missing():
    definitions = DEFINITIONS + [ColumnDefinition(label="modifiers", required=False)]
    result = reconcile_columns(["description", "setting", "code | 1", "code | 1 | type"], definitions, ColumnKind.DATA)

    assert result.is_valid

import io

import pytest

from mrf_validator import ValidationOptions, validate_csv
from mrf_validator.config.constants import ViolationCode
from mrf_validator.utils.error_handler import MRFError, ErrorCode
from mrf_validator.validation.csv_validator import CsvValidator

from conftest import (
    BEFORE_ENFORCEMENT,
    TALL_COLUMNS_V22,
    VALID_TALL_ROW,
    VALID_WIDE_ROW,
    header_rows,
    make_csv,
)


def run(text, version="2.2.0", **options):
    options.setdefault("reference_date", BEFORE_ENFORCEMENT)
    return validate_csv(io.StringIO(text), version, ValidationOptions(**options))


def codes(found):
    return [violation.code for violation in found]


# ============================================================================
# HEADER ROWS
# ============================================================================

def test_valid_tall_file(tall_csv):
    result = run(tall_csv(VALID_TALL_ROW))

    assert result.valid
    assert result.errors == []
    assert result.alerts == []


def test_valid_wide_file(wide_csv):
    result = run(wide_csv(VALID_WIDE_ROW, VALID_WIDE_ROW))

    assert result.valid
    assert result.errors == []


def test_header_problems_stop_the_run(wide_csv):
    header = header_rows(affirmation="yes", drop=("hospital_location",))
    seen = []

    result = run(wide_csv(VALID_WIDE_ROW, header=header), on_value_callback=lambda *args: seen.append(args))

    assert not result.valid
    assert codes(result.errors) == [
        ViolationCode.HEADER_COLUMN_MISSING,
        ViolationCode.ALLOWED_VALUES,
        ViolationCode.PROBLEMS_IN_HEADER,
    ]
    assert result.errors[0].path == "row 1"
    assert result.errors[0].field == "hospital_location"
    assert result.errors[1].path == "F2"
    assert seen == []


def test_header_problems_respect_error_limit(wide_csv):
    header = header_rows(affirmation="yes", drop=("hospital_location",))

    result = run(wide_csv(VALID_WIDE_ROW, header=header), max_errors=1)

    assert codes(result.errors) == [ViolationCode.HEADER_COLUMN_MISSING]


def test_missing_header_value(tall_csv):
    labels, values = header_rows()
    values[0] = ""

    result = run(tall_csv(VALID_TALL_ROW, header=(labels, values)))

    assert codes(result.errors) == [ViolationCode.REQUIRED_VALUE, ViolationCode.PROBLEMS_IN_HEADER]
    assert result.errors[0].path == "A2"


def test_invalid_last_updated_date(tall_csv):
    labels, values = header_rows()
    values[1] = "July 1st"

    result = run(tall_csv(VALID_TALL_ROW, header=(labels, values)))

    assert codes(result.errors) == [ViolationCode.INVALID_DATE, ViolationCode.PROBLEMS_IN_HEADER]
    assert result.errors[0].path == "B2"


def test_empty_license_number_is_allowed(tall_csv):
    labels, values = header_rows()
    values[5] = ""

    assert run(tall_csv(VALID_TALL_ROW, header=(labels, values))).valid


def test_false_affirmation_is_an_alert(tall_csv):
    result = run(tall_csv(VALID_TALL_ROW, header=header_rows(affirmation="false")))

    assert result.valid
    assert codes(result.alerts) == [ViolationCode.FALSE_AFFIRMATION]
    assert result.alerts[0].path == "G2"
    assert result.alerts[0].message == "Affirmation value is false."


def test_blank_first_row():
    text = make_csv([[], header_rows()[1], TALL_COLUMNS_V22])

    result = run(text)

    assert codes(result.errors) == [ViolationCode.HEADER_BLANK]
    assert result.errors[0].path == "A1"
    assert result.errors[0].message == "Required headers must be defined on rows 1 and 3. Row 1 is blank"


def test_blank_third_row():
    labels, values = header_rows()
    result = run(make_csv([labels, values, ["", ""]]))

    assert codes(result.errors) == [ViolationCode.HEADER_BLANK]
    assert result.errors[0].path == "A3"


def test_ambiguous_data_columns():
    labels, values = header_rows()
    result = run(make_csv([labels, values, ["description", "setting", "standard_charge | gross"]]))

    assert codes(result.errors) == [ViolationCode.AMBIGUOUS_FORMAT, ViolationCode.PROBLEMS_IN_HEADER]
    assert result.errors[0].path == "row 3"


def test_missing_data_column():
    labels, values = header_rows()
    columns = [label for label in TALL_COLUMNS_V22 if label != "setting"]

    result = run(make_csv([labels, values, columns]))

    assert codes(result.errors) == [ViolationCode.COLUMN_MISSING, ViolationCode.PROBLEMS_IN_HEADER]
    assert result.errors[0].field == "setting"


def test_code_label_with_superscript_digit_is_an_extra_column(tall_csv):
    result = run(tall_csv(VALID_TALL_ROW, columns=TALL_COLUMNS_V22 + ["code | \u00b2"]))

    assert result.valid
    assert result.errors == []


# ============================================================================
# ROW COUNT AND VERSION
# ============================================================================

def test_file_without_data_rows(tall_csv):
    result = run(tall_csv())

    assert codes(result.errors) == [ViolationCode.MIN_ROWS]
    assert result.errors[0].path == "A1"


def test_invalid_version_reads_nothing(tall_csv):
    source = io.StringIO(tall_csv(VALID_TALL_ROW))

    result = validate_csv(source, "9.9.9")

    assert codes(result.errors) == [ViolationCode.INVALID_VERSION]
    assert result.errors[0].message.startswith("Invalid version supplied. Allowed versions are: 2.0.0")
    assert source.tell() == 0


def test_version_aliases(tall_csv):
    assert run(tall_csv(VALID_TALL_ROW), version="v2.2").valid


# ============================================================================
# DATA ROWS
# ============================================================================

def test_data_row_errors_are_located(tall_csv):
    result = run(tall_csv(VALID_TALL_ROW, dict(VALID_TALL_ROW, setting="everywhere")))

    assert not result.valid
    assert codes(result.errors) == [ViolationCode.ALLOWED_VALUES]
    assert result.errors[0].path == "D5"


def test_blank_data_rows_are_skipped(tall_csv):
    text = tall_csv(VALID_TALL_ROW) + ",,,\n" + tall_csv(VALID_TALL_ROW).splitlines()[-1] + "\n"

    result = run(text)

    assert result.valid


def test_warnings_do_not_invalidate(tall_csv):
    row = dict(VALID_TALL_ROW, dollar="", minimum="", maximum="", percentage="50",
               methodology="percent of total billed charges")

    result = run(tall_csv(row))

    assert result.valid
    assert codes(result.errors) == [ViolationCode.PERCENTAGE_ALGORITHM_ESTIMATE]
    assert result.errors[0].warning
    assert result.warning_count == 1
    assert result.error_count == 0


def test_error_limit_stops_reading(tall_csv):
    bad = dict(VALID_TALL_ROW, setting="everywhere")
    seen = []

    result = run(tall_csv(bad, bad, bad), max_errors=2, on_value_callback=lambda *args: seen.append(args))

    assert len(result.errors) == 2
    assert len(seen) == 2


def test_run_stopped_by_warnings_is_invalid(tall_csv):
    estimate = dict(VALID_TALL_ROW, dollar="", minimum="", maximum="", percentage="50",
                    methodology="percent of total billed charges")
    bad = dict(VALID_TALL_ROW, setting="everywhere")

    result = run(tall_csv(estimate, bad), max_errors=1)

    assert not result.valid
    assert codes(result.errors) == [ViolationCode.PERCENTAGE_ALGORITHM_ESTIMATE]
    assert result.errors[0].warning
    assert result.error_count == 0


def test_callback_receives_record_and_violations(tall_csv):
    seen = []

    run(tall_csv(VALID_TALL_ROW, dict(VALID_TALL_ROW, description="")),
        on_value_callback=lambda *args: seen.append(args))

    assert len(seen) == 2
    record, row_errors, row_alerts = seen[1]
    assert record["code | 1"] == "99213"
    assert codes(row_errors) == [ViolationCode.REQUIRED_VALUE]
    assert row_alerts == []


def test_no_payer_charge_alert(tall_csv):
    row = dict(VALID_TALL_ROW, payer="", plan="", dollar="", methodology="", minimum="", maximum="")

    result = run(tall_csv(row))

    assert result.valid
    assert codes(result.alerts) == [ViolationCode.NO_PAYER_CHARGE]
    assert result.alerts[0].path == "row 3"


def test_3_0_file(tall_csv_v3):
    assert run(tall_csv_v3(VALID_TALL_ROW), version="3.0.0").valid


# ============================================================================
# INPUT SOURCES
# ============================================================================

def test_bytes_with_byte_order_mark(tall_csv):
    data = "\ufeff".encode("utf-8") + tall_csv(VALID_TALL_ROW).encode("utf-8")

    assert validate_csv(data, "2.2.0", reference_date=BEFORE_ENFORCEMENT).valid


def test_binary_stream_is_left_open(tall_csv):
    stream = io.BytesIO(tall_csv(VALID_TALL_ROW).encode("utf-8"))

    assert validate_csv(stream, "2.2.0", reference_date=BEFORE_ENFORCEMENT).valid
    assert not stream.closed


def test_file_path(tmp_path, tall_csv):
    path = tmp_path / "12-3456789_springfield-general_standardcharges.csv"
    path.write_text(tall_csv(VALID_TALL_ROW), encoding="utf-8")

    assert validate_csv(str(path), "2.2.0", reference_date=BEFORE_ENFORCEMENT).valid
    assert validate_csv(path, "2.2.0", reference_date=BEFORE_ENFORCEMENT).valid


def test_iterable_of_lines(tall_csv):
    lines = tall_csv(VALID_TALL_ROW).splitlines(keepends=True)

    assert validate_csv(lines, "2.2.0", reference_date=BEFORE_ENFORCEMENT).valid


def test_missing_file_raises(tmp_path):
    with pytest.raises(MRFError) as error:
        validate_csv(str(tmp_path / "missing.csv"), "2.2.0")

    assert error.value.code == ErrorCode.STREAM_READ_ERROR


def test_invalid_utf8_raises():
    with pytest.raises(MRFError) as error:
        validate_csv(b"hospital_name\n\xff\xfe\n", "2.2.0")

    assert error.value.code == ErrorCode.INVALID_ENCODING


def test_unsupported_source_raises():
    with pytest.raises(MRFError) as error:
        validate_csv(42, "2.2.0")

    assert error.value.code == ErrorCode.UNSUPPORTED_SOURCE


def test_validator_can_be_reused(tall_csv):
    validator = CsvValidator("2.2.0", ValidationOptions(reference_date=BEFORE_ENFORCEMENT))
    bad = tall_csv(dict(VALID_TALL_ROW, setting="everywhere"))

    first = validator.validate(io.StringIO(bad))
    second = validator.validate(io.StringIO(bad))

    assert len(first.errors) == len(second.errors) == 1

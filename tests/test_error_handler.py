import logging

import pytest

from mrf_validator.utils.error_handler import (
    ErrorCode,
    ErrorHandler,
    ErrorLevel,
    MRFError,
    encoding_error,
    unknown_rule_field_error,
)


def read_input():
    raise encoding_error("charges.csv", UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"))


def test_wrap_operation_success():
    result = ErrorHandler().wrap_operation(lambda value: value * 2, 21)

    assert result.success
    assert result.unwrap() == 42


def test_wrap_operation_keeps_validator_errors(caplog):
    handler = ErrorHandler(logging.getLogger("error_handler_test"))

    with caplog.at_level(logging.ERROR, logger="error_handler_test"):
        result = handler.wrap_operation(read_input)

    assert not result.success
    assert result.error.code == ErrorCode.INVALID_ENCODING
    assert result.unwrap_or("fallback") == "fallback"
    assert "[INVALID_ENCODING] Input is not valid UTF-8 text: charges.csv" in caplog.text
    assert "traceback" not in caplog.text


def test_wrap_operation_converts_unexpected_errors():
    result = ErrorHandler().wrap_operation(lambda: {}["missing"])

    assert result.error.code == ErrorCode.UNEXPECTED_ERROR
    assert isinstance(result.error.cause, KeyError)
    with pytest.raises(MRFError):
        result.unwrap()


def test_error_to_dict():
    error = unknown_rule_field_error("setting", "setting")

    assert error.to_dict() == {
        "message": "Rule 'setting' references unknown column 'setting'",
        "code": ErrorCode.UNKNOWN_RULE_FIELD.value,
        "level": ErrorLevel.CRITICAL.value,
        "details": {"rule": "setting", "field": "setting"},
    }

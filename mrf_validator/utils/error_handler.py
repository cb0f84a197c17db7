"""
Standardized error handling for the MRF validator.

Violations found in a file are returned as data. This module covers the other
kind of failure: input that cannot be read at all, and a broken catalog or
rule set. Those raise MRFError, and callers that must not crash (the
streamlit page) wrap them into an ErrorResult.
"""

import traceback
from typing import Optional, Any, Dict, Callable
from enum import Enum
import logging


class ErrorLevel(Enum):
    """Error severity levels."""
    CRITICAL = "critical"  # Configuration is broken, nothing can be validated
    ERROR = "error"  # This input cannot be validated
    WARNING = "warning"
    INFO = "info"


class ErrorCode(Enum):
    """Operational error codes. File content problems are ViolationCodes instead."""

    # Input (1xxx)
    STREAM_READ_ERROR = 1001
    INVALID_ENCODING = 1002
    UNSUPPORTED_SOURCE = 1003
    MALFORMED_ROW = 1004

    # Catalog and rules (4xxx)
    FILE_NOT_FOUND = 4001
    CONFIGURATION_ERROR = 4004
    UNKNOWN_RULE_FIELD = 4005
    UNEXPECTED_ERROR = 4999


_LOG_LEVELS = {
    ErrorLevel.CRITICAL: logging.CRITICAL,
    ErrorLevel.ERROR: logging.ERROR,
    ErrorLevel.WARNING: logging.WARNING,
    ErrorLevel.INFO: logging.INFO,
}


class MRFError(Exception):
    """Raised when validation cannot run; carries a code and structured details."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        level: ErrorLevel = ErrorLevel.ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """
        Args:
            message: Message shown to the person running the validator
            code: Error code from ErrorCode
            level: Severity from ErrorLevel
            details: Structured context (source name, row, rule...)
            cause: Exception this error was raised from
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.level = level
        self.details = dict(details or {})
        self.cause = cause

        if cause is not None:
            self.details['original_error'] = str(cause)
            self.details['traceback'] = ''.join(
                traceback.format_exception(type(cause), cause, cause.__traceback__)
            )

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form of the error."""
        return {
            'message': self.message,
            'code': self.code.value,
            'level': self.level.value,
            'details': self.details
        }


class ErrorResult:
    """
    Outcome of an operation run through ErrorHandler.wrap_operation.

    Holds either the return value or the MRFError that stopped it.
    """

    def __init__(self, success: bool, value: Optional[Any] = None, error: Optional[MRFError] = None):
        self.success = success
        self.value = value
        self.error = error

    @classmethod
    def ok(cls, value: Any) -> 'ErrorResult':
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: MRFError) -> 'ErrorResult':
        return cls(success=False, error=error)

    def unwrap(self) -> Any:
        """
        Return the value, or raise the stored error.

        Raises:
            MRFError: If the operation failed
        """
        if not self.success:
            raise self.error
        return self.value

    def unwrap_or(self, default: Any) -> Any:
        return self.value if self.success else default


class ErrorHandler:
    """Logs MRFErrors at their severity and turns failures into ErrorResults."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Args:
            logger: stdlib logger to report to; a module logger when None
        """
        self.logger = logger or logging.getLogger(__name__)

    def handle(self, error: MRFError) -> None:
        """Log an error; the traceback detail is left out of the message."""
        message = f"[{error.code.name}] {error.message}"
        details = {key: value for key, value in error.details.items() if key != 'traceback'}
        if details:
            message += f" | Details: {details}"
        self.logger.log(_LOG_LEVELS[error.level], message)

    def wrap_operation(self, operation: Callable, *args, **kwargs) -> ErrorResult:
        """
        Run an operation and capture its failure.

        Any exception other than MRFError is converted to UNEXPECTED_ERROR so
        the caller only ever deals with one error type.

        Returns:
            ErrorResult with the return value or the error
        """
        try:
            return ErrorResult.ok(operation(*args, **kwargs))
        except MRFError as e:
            error = e
        except Exception as e:
            error = MRFError(
                message=f"Unexpected error: {e}",
                code=ErrorCode.UNEXPECTED_ERROR,
                cause=e
            )
        self.handle(error)
        return ErrorResult.fail(error)


# ============================================================================
# FACTORIES
# ============================================================================

def _input_error(code: ErrorCode, message: str, source: str, cause: Optional[Exception] = None) -> MRFError:
    return MRFError(message=message, code=code, details={'source': source}, cause=cause)


def stream_read_error(source: str, cause: Exception) -> MRFError:
    """Input could not be opened or read."""
    return _input_error(ErrorCode.STREAM_READ_ERROR, f"Failed to read input: {source}", source, cause)


def encoding_error(source: str, cause: Exception) -> MRFError:
    """Input is not UTF-8 text."""
    return _input_error(ErrorCode.INVALID_ENCODING, f"Input is not valid UTF-8 text: {source}", source, cause)


def unsupported_source_error(source: Any) -> MRFError:
    """Input object is neither a path, bytes, a stream nor an iterable of lines."""
    type_name = type(source).__name__
    return MRFError(
        message=f"Unsupported input source: {type_name}",
        code=ErrorCode.UNSUPPORTED_SOURCE,
        details={'type': type_name}
    )


def configuration_error(path: str, reason: str, cause: Optional[Exception] = None) -> MRFError:
    """Schema catalog is malformed."""
    return MRFError(
        message=f"Invalid schema catalog {path}: {reason}",
        code=ErrorCode.CONFIGURATION_ERROR,
        level=ErrorLevel.CRITICAL,
        details={'path': path, 'reason': reason},
        cause=cause
    )


def unknown_rule_field_error(rule_name: str, field: str) -> MRFError:
    """A rule reads a column the session does not expect."""
    return MRFError(
        message=f"Rule '{rule_name}' references unknown column '{field}'",
        code=ErrorCode.UNKNOWN_RULE_FIELD,
        level=ErrorLevel.CRITICAL,
        details={'rule': rule_name, 'field': field}
    )

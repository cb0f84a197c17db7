"""
Utilities Module

Helper functions and utilities used across the application.

Components:
- cell_address.py: Spreadsheet style cell labels
- date_utils.py: Date parsing and enforcement date checks
- format_utils.py: Column label and cell value helpers
- logger.py: Centralized structured logging
- error_handler.py: Operational error taxonomy and result objects
- reporting.py: Text and JSON validation reports
"""

from .cell_address import column_name, locate
from .date_utils import parse_date, is_valid_date
from .format_utils import split_segments, segments_equal, is_positive_number, is_valid_count
from .logger import get_logger, get_module_logger
from .error_handler import MRFError, ErrorCode, ErrorHandler, ErrorResult
from .reporting import ValidationReporter, get_validation_reporter

__all__ = [
    "column_name",
    "locate",
    "parse_date",
    "is_valid_date",
    "split_segments",
    "segments_equal",
    "is_positive_number",
    "is_valid_count",
    "get_logger",
    "get_module_logger",
    "MRFError",
    "ErrorCode",
    "ErrorHandler",
    "ErrorResult",
    "ValidationReporter",
    "get_validation_reporter",
]

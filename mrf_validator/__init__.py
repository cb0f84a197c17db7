"""
Hospital Price Transparency MRF Validator

Checks hospital standard charge machine-readable files (CSV and JSON)
against the CMS schema versions 2.0.0 through 3.0.0.
"""

__version__ = "0.1.0"

from . import config
from . import models
from . import utils
from .models import ValidationOptions, ValidationResult, Violation
from .validation import validate_csv, validate_json, validate_filename

__all__ = [
    "config",
    "models",
    "utils",
    "ValidationOptions",
    "ValidationResult",
    "Violation",
    "validate_csv",
    "validate_json",
    "validate_filename",
]

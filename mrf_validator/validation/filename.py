"""
Filename Check

CMS naming convention for machine-readable files:
<EIN>[-<NPI>]_<hospital name>_standardcharges.<csv|json>
"""

import re

from ..config.constants import REGEX_PATTERNS

FILENAME_PATTERN = re.compile(REGEX_PATTERNS["filename"], re.IGNORECASE)


def validate_filename(filename: str) -> bool:
    """
    Check a file name against the naming convention.

    Args:
        filename: Base name of the file, without directories

    Returns:
        True if the name follows the convention
    """
    return FILENAME_PATTERN.match(filename) is not None

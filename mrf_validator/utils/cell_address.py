"""
Cell Addressing

Converts zero-based (row, column) positions into spreadsheet style labels
("A1", "AA12") used as the location of every CSV violation.
"""

from typing import Optional

ASCII_UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def column_name(column: int) -> str:
    """
    Convert a zero-based column index to letters.

    The sequence has no zero digit: 0 -> "A", 25 -> "Z", 26 -> "AA".
    """
    name = ""
    while column >= 0:
        name = ASCII_UPPERCASE[column % 26] + name
        column = column // 26 - 1
    return name


def locate(row: int, column: Optional[int] = None) -> str:
    """
    Build the location label for a cell.

    Args:
        row: Zero-based row index
        column: Zero-based column index, or None/negative for a whole row

    Returns:
        "C4" style label, or "row 4" when no column applies
    """
    if column is None or column < 0:
        return f"row {row + 1}"
    return f"{column_name(column)}{row + 1}"

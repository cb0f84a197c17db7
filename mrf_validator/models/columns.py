"""
Column Data Models

Expected column definitions and the mapping of a file's raw column labels
onto them.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Dict

from ..config.constants import HeaderValueType


class ColumnDefinition(BaseModel):
    """One expected column, built fresh for every validation run"""

    label: str = Field(..., description="Normalized semantic key, segments joined by ' | '")
    required: bool = Field(True, description="Whether a missing column is an error")
    value_type: HeaderValueType = Field(
        HeaderValueType.TEXT,
        description="How the header row value is checked (header columns only)"
    )
    region_coded: bool = Field(
        False,
        description="Label ends in a state placeholder matched against state codes"
    )

    class Config:
        frozen = True


class ColumnMapping(BaseModel):
    """
    Discovered column mapping.

    Index-aligned with the raw labels of a header row; each slot holds the
    matched semantic key or None for unmatched, duplicate and extra columns.
    """

    raw: List[str] = Field(default_factory=list, description="Labels as entered in the file")
    normalized: List[Optional[str]] = Field(
        default_factory=list,
        description="Semantic key per raw column, None when unassigned"
    )

    class Config:
        frozen = True

    def index_of(self, label: str) -> int:
        """Column index bound to a semantic key, -1 when the key is not mapped."""
        try:
            return self.normalized.index(label)
        except ValueError:
            return -1

    def raw_label(self, label: str) -> str:
        """Label as entered for a semantic key, falling back to the key itself."""
        index = self.index_of(label)
        return self.raw[index] if index >= 0 else label

    @property
    def keys(self) -> List[str]:
        """Semantic keys that are bound to a column."""
        return [label for label in self.normalized if label is not None]

    def record(self, values: List[str]) -> Dict[str, str]:
        """
        Build a row record from one row of cell values.

        Values are trimmed; cells missing from a short row read as "".
        """
        record = {}
        for index, label in enumerate(self.normalized):
            if label is None:
                continue
            record[label] = values[index].strip() if index < len(values) else ""
        return record

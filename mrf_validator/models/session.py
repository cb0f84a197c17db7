"""
Session Data Models

Run options supplied by callers and the immutable validator session that is
built once the data column header row has been reconciled.
"""

from datetime import date
from pydantic import BaseModel, Field
from typing import Any, Callable, FrozenSet, List, Optional

from ..config.constants import Layout
from .columns import ColumnMapping
from .rules import RuleNode
from .version import SemanticVersion


class ValidationOptions(BaseModel):
    """Caller supplied configuration for one validation run"""

    max_errors: int = Field(
        0,
        ge=0,
        description="Stop after this many errors; 0 means unlimited"
    )
    on_value_callback: Optional[Callable[..., Any]] = Field(
        None,
        description="Called per data row (CSV) or charge item (JSON) with its record and violations"
    )
    reference_date: Optional[date] = Field(
        None,
        description="Date used for time-gated rules; today when not set"
    )


class ValidatorSession(BaseModel):
    """
    Everything needed to validate data rows of one file.

    Built exactly once from (version, layout, code count, payer/plan groups)
    and never modified afterwards.
    """

    version: SemanticVersion
    layout: Layout
    code_count: int = Field(..., ge=0)
    payer_plans: List[str] = Field(default_factory=list, description="'payer | plan' keys in first-seen order")
    columns: ColumnMapping
    expected_keys: FrozenSet[str] = Field(..., description="Every key a row record may be read with")
    rules: List[RuleNode] = Field(default_factory=list)
    alert_rules: List[RuleNode] = Field(default_factory=list)
    reference_date: date

    class Config:
        frozen = True

    @property
    def payer_charge_fields(self) -> List[str]:
        """Keys of every payer-specific dollar, percentage and algorithm column."""
        if self.layout == Layout.TALL:
            return [
                "standard_charge | negotiated_dollar",
                "standard_charge | negotiated_percentage",
                "standard_charge | negotiated_algorithm",
            ]
        return [
            f"standard_charge | {payer_plan} | negotiated_{suffix}"
            for payer_plan in self.payer_plans
            for suffix in ("dollar", "percentage", "algorithm")
        ]

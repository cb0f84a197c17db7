"""
Format & Group Detector

Derives the shape of a file from its data column labels: how many code
pairs it has, which payer/plan groups a wide file carries, whether it uses
the tall layout, and from those the full list of expected data columns.
"""

import re
from typing import List, Optional

from pydantic import BaseModel, Field

from ..config.constants import Layout
from ..models.columns import ColumnDefinition
from ..models.version import SemanticVersion, version_satisfies
from ..utils.format_utils import split_segments
from . import column_keys as keys


NEGOTIATED_SUFFIXES = {
    "negotiated_dollar",
    "negotiated_percentage",
    "negotiated_algorithm",
    "methodology",
}

PAYER_SCOPED_PREFIXES = {
    keys.ESTIMATED_AMOUNT,
    keys.PAYER_NOTES,
    keys.MEDIAN_AMOUNT,
    keys.PERCENTILE_10TH,
    keys.PERCENTILE_90TH,
    keys.COUNT,
}


class FormatDetection(BaseModel):
    """What the data column labels say about a file's layout"""

    code_count: int = Field(0, ge=0, description="Highest code pair index found")
    payer_plans: List[str] = Field(default_factory=list, description="'payer | plan' keys in first-seen order")
    is_tall: bool = Field(False, description="Both payer_name and plan_name columns exist")

    class Config:
        frozen = True

    @property
    def is_ambiguous(self) -> bool:
        """Exactly one of tall markers and wide groups must be present."""
        return self.is_tall == bool(self.payer_plans)

    @property
    def layout(self) -> Optional[Layout]:
        if self.is_ambiguous:
            return None
        return Layout.TALL if self.is_tall else Layout.WIDE


def code_pair_count(columns: List[str]) -> int:
    """
    Highest N for which a "code | N" or "code | N | type" column exists.

    Returns:
        N, or 0 when the file has no code columns
    """
    count = 0
    for label in columns:
        segments = [segment for segment in split_segments(label) if segment]
        if len(segments) not in (2, 3) or segments[0].casefold() != "code":
            continue
        if len(segments) == 3 and segments[2].casefold() != "type":
            continue
        if re.fullmatch(r"[0-9]+", segments[1]):
            count = max(count, int(segments[1]))
    return count


def payer_plan_groups(columns: List[str]) -> List[str]:
    """
    Distinct "payer | plan" groups named by wide layout columns.

    Recognizes "standard_charge | payer | plan | negotiated_*|methodology" and
    "<payer-scoped prefix> | payer | plan".
    """
    groups: List[str] = []
    seen = set()
    for label in columns:
        segments = split_segments(label)
        if (
            len(segments) == 4
            and segments[0].casefold() == "standard_charge"
            and segments[3].casefold() in NEGOTIATED_SUFFIXES
        ):
            payer, plan = segments[1], segments[2]
        elif len(segments) == 3 and segments[0].casefold() in PAYER_SCOPED_PREFIXES:
            payer, plan = segments[1], segments[2]
        else:
            continue

        group = f"{payer} | {plan}"
        if group.casefold() not in seen:
            seen.add(group.casefold())
            groups.append(group)
    return groups


def is_tall_layout(columns: List[str]) -> bool:
    """True when both payer_name and plan_name columns exist."""
    labels = {label.strip().casefold() for label in columns if label is not None}
    return keys.PAYER_NAME in labels and keys.PLAN_NAME in labels


def detect_format(columns: List[str]) -> FormatDetection:
    """Run every detector over the data column labels."""
    return FormatDetection(
        code_count=code_pair_count(columns),
        payer_plans=payer_plan_groups(columns),
        is_tall=is_tall_layout(columns),
    )


def _payer_scoped_labels(version: SemanticVersion, payer_plan: Optional[str]) -> List[str]:
    prefixes = []
    if version_satisfies(version, "^2.2.0"):
        prefixes.append(keys.ESTIMATED_AMOUNT)
    if version_satisfies(version, ">=3.0.0"):
        prefixes.extend([keys.MEDIAN_AMOUNT, keys.PERCENTILE_10TH, keys.PERCENTILE_90TH, keys.COUNT])
    return [keys.payer_scoped(prefix, payer_plan) for prefix in prefixes]


def expected_data_columns(version: SemanticVersion, detection: FormatDetection) -> List[ColumnDefinition]:
    """
    Data columns a file of this version and shape must contain.

    Args:
        version: Active schema version
        detection: Result of detect_format; must not be ambiguous

    Returns:
        Required column definitions in reporting order
    """
    labels = [
        keys.DESCRIPTION,
        keys.SETTING,
        keys.GROSS,
        keys.DISCOUNTED_CASH,
        keys.MINIMUM,
        keys.MAXIMUM,
        keys.GENERIC_NOTES,
    ]

    for index in range(1, max(1, detection.code_count) + 1):
        labels.extend([keys.code(index), keys.code_type(index)])

    if detection.layout == Layout.TALL:
        labels.extend([keys.PAYER_NAME, keys.PLAN_NAME])
        labels.extend(keys.negotiated(kind) for kind in keys.NEGOTIATED_KINDS)
        labels.append(keys.methodology())
        labels.extend(_payer_scoped_labels(version, None))
    else:
        for payer_plan in detection.payer_plans:
            labels.extend(keys.negotiated(kind, payer_plan) for kind in keys.NEGOTIATED_KINDS)
            labels.append(keys.methodology(payer_plan))
            labels.append(keys.payer_scoped(keys.PAYER_NOTES, payer_plan))
            labels.extend(_payer_scoped_labels(version, payer_plan))

    if version_satisfies(version, ">=2.2.0"):
        labels.extend([keys.DRUG_UNIT, keys.DRUG_TYPE, keys.MODIFIERS])

    return [ColumnDefinition(label=label) for label in labels]

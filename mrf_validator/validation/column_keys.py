"""
Column Keys

Builders for the normalized semantic keys of data columns. Tall layout keys
are fixed; wide layout keys embed a "payer | plan" group.
"""

from typing import Optional

DESCRIPTION = "description"
SETTING = "setting"
GROSS = "standard_charge | gross"
DISCOUNTED_CASH = "standard_charge | discounted_cash"
MINIMUM = "standard_charge | min"
MAXIMUM = "standard_charge | max"
GENERIC_NOTES = "additional_generic_notes"
PAYER_NAME = "payer_name"
PLAN_NAME = "plan_name"
DRUG_UNIT = "drug_unit_of_measurement"
DRUG_TYPE = "drug_type_of_measurement"
MODIFIERS = "modifiers"

NEGOTIATED_KINDS = ("dollar", "percentage", "algorithm")

# Payer-scoped values; wide layout appends " | payer | plan"
ESTIMATED_AMOUNT = "estimated_amount"
PAYER_NOTES = "additional_payer_notes"
MEDIAN_AMOUNT = "median_amount"
PERCENTILE_10TH = "10th_percentile"
PERCENTILE_90TH = "90th_percentile"
COUNT = "count"


def code(index: int) -> str:
    return f"code | {index}"


def code_type(index: int) -> str:
    return f"code | {index} | type"


def negotiated(kind: str, payer_plan: Optional[str] = None) -> str:
    """Key of a negotiated dollar/percentage/algorithm column."""
    if payer_plan is None:
        return f"standard_charge | negotiated_{kind}"
    return f"standard_charge | {payer_plan} | negotiated_{kind}"


def methodology(payer_plan: Optional[str] = None) -> str:
    if payer_plan is None:
        return "standard_charge | methodology"
    return f"standard_charge | {payer_plan} | methodology"


def payer_scoped(prefix: str, payer_plan: Optional[str] = None) -> str:
    """Key of a column such as estimated_amount, optionally scoped to a group."""
    if payer_plan is None:
        return prefix
    return f"{prefix} | {payer_plan}"

import csv
import io
from datetime import date

import pytest

from mrf_validator.config.catalog_loader import get_catalog_loader


AFFIRMATION = get_catalog_loader().load_catalog().statements["affirmation"]

BEFORE_ENFORCEMENT = date(2024, 6, 1)
AFTER_ENFORCEMENT = date(2026, 6, 1)


def make_csv(rows):
    """Render rows of cells as CSV text."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def header_rows(version="2.2.0", affirmation="true", drop=()):
    """Row 1 labels and row 2 values of a valid header for a 2.x file."""
    columns = [
        ("hospital_name", "Springfield General"),
        ("last_updated_on", "2024-07-01"),
        ("version", version),
        ("hospital_location", "Springfield General Main Campus"),
        ("hospital_address", "123 Main St, Springfield, MD 21201"),
        ("license_number | MD", "H-12345"),
        (AFFIRMATION, affirmation),
    ]
    columns = [column for column in columns if column[0] not in drop]
    return [label for label, _ in columns], [value for _, value in columns]


def header_rows_v3(attestation="true"):
    columns = [
        ("hospital_name", "Springfield General"),
        ("last_updated_on", "2025-07-01"),
        ("version", "3.0.0"),
        ("location_name", "Springfield General Main Campus"),
        ("hospital_address", "123 Main St, Springfield, MD 21201"),
        ("license_number | MD", "H-12345"),
        ("type_2_npi", "1234567890"),
        (AFFIRMATION, attestation),
        ("attester_name", "Pat Doe"),
    ]
    return [label for label, _ in columns], [value for _, value in columns]


TALL_COLUMNS_V22 = [
    "description",
    "code | 1",
    "code | 1 | type",
    "setting",
    "drug_unit_of_measurement",
    "drug_type_of_measurement",
    "modifiers",
    "standard_charge | gross",
    "standard_charge | discounted_cash",
    "payer_name",
    "plan_name",
    "standard_charge | negotiated_dollar",
    "standard_charge | negotiated_percentage",
    "standard_charge | negotiated_algorithm",
    "estimated_amount",
    "standard_charge | methodology",
    "standard_charge | min",
    "standard_charge | max",
    "additional_generic_notes",
]

WIDE_COLUMNS_V22 = [
    "description",
    "code | 1",
    "code | 1 | type",
    "setting",
    "drug_unit_of_measurement",
    "drug_type_of_measurement",
    "modifiers",
    "standard_charge | gross",
    "standard_charge | discounted_cash",
    "standard_charge | Acme | Gold PPO | negotiated_dollar",
    "standard_charge | Acme | Gold PPO | negotiated_percentage",
    "standard_charge | Acme | Gold PPO | negotiated_algorithm",
    "estimated_amount | Acme | Gold PPO",
    "standard_charge | Acme | Gold PPO | methodology",
    "additional_payer_notes | Acme | Gold PPO",
    "standard_charge | min",
    "standard_charge | max",
    "additional_generic_notes",
]

TALL_COLUMNS_V30 = [
    "description",
    "code | 1",
    "code | 1 | type",
    "setting",
    "drug_unit_of_measurement",
    "drug_type_of_measurement",
    "modifiers",
    "standard_charge | gross",
    "standard_charge | discounted_cash",
    "payer_name",
    "plan_name",
    "standard_charge | negotiated_dollar",
    "standard_charge | negotiated_percentage",
    "standard_charge | negotiated_algorithm",
    "median_amount",
    "10th_percentile",
    "90th_percentile",
    "count",
    "standard_charge | methodology",
    "standard_charge | min",
    "standard_charge | max",
    "additional_generic_notes",
]


def row_for(columns, **values):
    """Data row aligned to columns; keyword names use the column key with spaces and pipes removed."""
    by_label = {label: "" for label in columns}
    for key, value in values.items():
        by_label[LABEL_ALIASES[key]] = value
    return [by_label[label] for label in columns]


LABEL_ALIASES = {
    "description": "description",
    "code": "code | 1",
    "code_type": "code | 1 | type",
    "setting": "setting",
    "drug_unit": "drug_unit_of_measurement",
    "drug_type": "drug_type_of_measurement",
    "modifiers": "modifiers",
    "gross": "standard_charge | gross",
    "cash": "standard_charge | discounted_cash",
    "payer": "payer_name",
    "plan": "plan_name",
    "dollar": "standard_charge | negotiated_dollar",
    "percentage": "standard_charge | negotiated_percentage",
    "algorithm": "standard_charge | negotiated_algorithm",
    "estimate": "estimated_amount",
    "median": "median_amount",
    "p10": "10th_percentile",
    "p90": "90th_percentile",
    "count": "count",
    "methodology": "standard_charge | methodology",
    "minimum": "standard_charge | min",
    "maximum": "standard_charge | max",
    "notes": "additional_generic_notes",
    "wide_dollar": "standard_charge | Acme | Gold PPO | negotiated_dollar",
    "wide_percentage": "standard_charge | Acme | Gold PPO | negotiated_percentage",
    "wide_algorithm": "standard_charge | Acme | Gold PPO | negotiated_algorithm",
    "wide_estimate": "estimated_amount | Acme | Gold PPO",
    "wide_methodology": "standard_charge | Acme | Gold PPO | methodology",
    "wide_notes": "additional_payer_notes | Acme | Gold PPO",
}


VALID_TALL_ROW = dict(
    description="Office visit",
    code="99213",
    code_type="CPT",
    setting="outpatient",
    gross="200",
    cash="150",
    payer="Acme",
    plan="Gold PPO",
    dollar="120",
    methodology="fee schedule",
    minimum="100",
    maximum="180",
)

VALID_WIDE_ROW = dict(
    description="Office visit",
    code="99213",
    code_type="CPT",
    setting="outpatient",
    gross="200",
    cash="150",
    wide_dollar="120",
    wide_methodology="fee schedule",
    minimum="100",
    maximum="180",
)


@pytest.fixture
def tall_csv():
    """Build a 2.2.0 tall CSV from data rows given as keyword dicts."""
    def build(*rows, columns=TALL_COLUMNS_V22, header=None):
        labels, values = header or header_rows()
        return make_csv([labels, values, columns] + [row_for(columns, **row) for row in rows])
    return build


@pytest.fixture
def wide_csv():
    def build(*rows, header=None):
        labels, values = header or header_rows()
        return make_csv(
            [labels, values, WIDE_COLUMNS_V22] + [row_for(WIDE_COLUMNS_V22, **row) for row in rows]
        )
    return build


@pytest.fixture
def tall_csv_v3():
    def build(*rows):
        labels, values = header_rows_v3()
        return make_csv([labels, values, TALL_COLUMNS_V30] + [row_for(TALL_COLUMNS_V30, **row) for row in rows])
    return build

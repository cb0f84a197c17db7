import pytest

from mrf_validator.config.catalog_loader import CatalogLoader, get_catalog_loader
from mrf_validator.config.constants import HeaderValueType
from mrf_validator.models.version import SemanticVersion
from mrf_validator.utils.error_handler import MRFError, ErrorCode


def v(text):
    return SemanticVersion.parse(text)


def test_singleton():
    assert get_catalog_loader() is get_catalog_loader()


def test_supported_versions():
    assert get_catalog_loader().supported_versions() == ["2.0.0", "2.1.0", "2.2.0", "3.0.0"]


@pytest.mark.parametrize("text, expected", [
    ("2.2", "2.2.0"),
    ("v2.2.0", "2.2.0"),
    ("3.0", "3.0.0"),
    ("2", "2.0.0"),
])
def test_resolve_version(text, expected):
    assert str(get_catalog_loader().resolve_version(text)) == expected


@pytest.mark.parametrize("text", ["1.1.0", "2.3.0", "4", "banana", ""])
def test_resolve_unsupported_version(text):
    assert get_catalog_loader().resolve_version(text) is None


def test_header_columns_below_3_0():
    columns = get_catalog_loader().header_columns(v("2.2.0"))
    labels = [column.label for column in columns]

    assert labels[:5] == ["hospital_name", "last_updated_on", "version", "hospital_location", "hospital_address"]
    assert "location_name" not in labels
    assert columns[-1].value_type == HeaderValueType.AFFIRMATION
    assert columns[-1].label.startswith("To the best of its knowledge and belief")
    license_column = columns[5]
    assert license_column.region_coded
    assert license_column.value_type == HeaderValueType.LICENSE


def test_header_columns_3_0():
    columns = get_catalog_loader().header_columns(v("3.0.0"))
    labels = [column.label for column in columns]

    assert "hospital_location" not in labels
    assert labels[-4:-1] == ["location_name", "type_2_npi", columns[-2].label]
    assert labels[-1] == "attester_name"
    assert columns[-2].value_type == HeaderValueType.ATTESTATION


def test_billing_code_types_grow_with_version():
    loader = get_catalog_loader()
    assert "CMG" not in loader.allowed_values("billing_code_type", v("2.2.0"))
    assert "CMG" in loader.allowed_values("billing_code_type", v("3.0.0"))
    assert "NDC" in loader.allowed_values("billing_code_type", v("2.0.0"))


def test_unknown_value_set():
    with pytest.raises(MRFError) as exc_info:
        get_catalog_loader().allowed_values("colors", v("2.2.0"))
    assert exc_info.value.code == ErrorCode.CONFIGURATION_ERROR


def test_enforcement_dates():
    loader = get_catalog_loader()
    assert str(loader.enforcement_date("estimated_amount")) == "2025-01-01"
    assert str(loader.enforcement_date("allowed_amount_count")) == "2026-01-01"
    assert loader.enforcement_date("anything else") is None


def test_missing_catalog_file(tmp_path):
    loader = CatalogLoader(tmp_path / "missing.yaml")
    with pytest.raises(MRFError) as exc_info:
        loader.load_catalog()
    assert exc_info.value.code == ErrorCode.FILE_NOT_FOUND


def test_malformed_catalog(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text("versions: [unclosed\n", encoding="utf-8")
    with pytest.raises(MRFError) as exc_info:
        CatalogLoader(path).load_catalog()
    assert exc_info.value.code == ErrorCode.CONFIGURATION_ERROR


def test_catalog_with_bad_version(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text('versions: ["2.2"]\n', encoding="utf-8")
    with pytest.raises(MRFError) as exc_info:
        CatalogLoader(path).load_catalog()
    assert exc_info.value.code == ErrorCode.CONFIGURATION_ERROR


def test_custom_catalog(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text(
        'versions: ["2.0.0"]\n'
        "header_columns:\n"
        "  - label: hospital_name\n"
        "value_sets:\n"
        "  setting:\n"
        "    - values: [inpatient]\n",
        encoding="utf-8",
    )
    loader = CatalogLoader(path)

    assert loader.supported_versions() == ["2.0.0"]
    assert [column.label for column in loader.header_columns(v("2.0.0"))] == ["hospital_name"]
    assert loader.allowed_values("setting", v("2.0.0")) == ["inpatient"]

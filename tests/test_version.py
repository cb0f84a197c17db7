import pytest

from mrf_validator.models.version import SemanticVersion, version_satisfies


def v(text):
    return SemanticVersion.parse(text)


@pytest.mark.parametrize("text", ["2.2", "v2.2.0", "2.2.0", "V2.2", " 2.2.0 "])
def test_coerce_fills_missing_parts(text):
    assert SemanticVersion.coerce(text) == v("2.2.0")


@pytest.mark.parametrize("text", ["", "latest", "2.x", "2.2.0-beta", None])
def test_coerce_rejects_non_versions(text):
    assert SemanticVersion.coerce(text) is None


def test_parse_is_strict():
    with pytest.raises(ValueError):
        SemanticVersion.parse("2.2")


def test_ordering():
    assert v("2.0.0") < v("2.1.0") < v("2.2.0") < v("3.0.0")
    assert v("2.2.0") >= v("2.2.0")
    assert str(v("3.0.0")) == "3.0.0"


@pytest.mark.parametrize("version, constraint, expected", [
    ("2.0.0", "*", True),
    ("2.2.0", ">=2.2.0", True),
    ("2.1.0", ">=2.2.0", False),
    ("2.2.0", "^2.2.0", True),
    ("2.3.1", "^2.2.0", True),
    ("3.0.0", "^2.2.0", False),
    ("2.9.0", "<3.0.0", True),
    ("3.0.0", "<3.0.0", False),
    ("2.2.3", "~2.2.0", True),
    ("2.3.0", "~2.2.0", False),
    ("2.1.0", "2.1.0", True),
    ("2.1.0", "=2.2.0", False),
    ("2.5.0", ">=2.2.0 <3.0.0", True),
    ("3.0.0", ">=2.2.0 <3.0.0", False),
])
def test_version_satisfies(version, constraint, expected):
    assert version_satisfies(v(version), constraint) is expected

"""
Schema Catalog Loader

Loads and parses the versioned schema catalog from schema_catalog.yaml.
Provides type-safe access to supported versions, header columns, value sets
and enforcement dates.
"""

import yaml
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Any

from pydantic import BaseModel, Field, ValidationError

from .constants import HeaderValueType
from ..models.columns import ColumnDefinition
from ..models.version import SemanticVersion, version_satisfies
from ..utils.error_handler import MRFError, ErrorCode, ErrorLevel, configuration_error


class HeaderColumnSpec(BaseModel):
    """One row 1 header column as written in the catalog"""

    label: str = Field(..., description="Label; {name} is replaced from statements")
    value_type: HeaderValueType = Field(
        HeaderValueType.TEXT,
        description="How the header value is checked"
    )
    region_coded: bool = Field(
        False,
        description="Second segment is a state code placeholder"
    )
    versions: str = Field("*", description="Version range the column applies to")


class ValueSetEntry(BaseModel):
    """Allowed values added for a version range"""

    values: List[str] = Field(..., description="Allowed values")
    versions: str = Field("*", description="Version range the values apply to")


class SchemaCatalog(BaseModel):
    """The whole closed catalog"""

    versions: List[str] = Field(..., min_length=1, description="Supported versions")
    statements: Dict[str, str] = Field(
        default_factory=dict,
        description="Long fixed texts referenced by labels"
    )
    header_columns: List[HeaderColumnSpec] = Field(default_factory=list)
    value_sets: Dict[str, List[ValueSetEntry]] = Field(default_factory=dict)
    enforcement_dates: Dict[str, date] = Field(default_factory=dict)


class CatalogLoader:
    """
    Loads and manages the schema catalog from YAML configuration.

    The catalog is parsed once and cached; every accessor takes the active
    schema version and returns only what applies to it.
    """

    def __init__(self, catalog_path: Optional[Path] = None):
        """
        Initialize the CatalogLoader.

        Args:
            catalog_path: Path to schema_catalog.yaml. If None, uses the
                packaged catalog next to this module.
        """
        if catalog_path is None:
            catalog_path = Path(__file__).parent / "schema_catalog.yaml"

        self.catalog_path = Path(catalog_path)
        self._catalog: Optional[SchemaCatalog] = None

    def load_catalog(self, force_reload: bool = False) -> SchemaCatalog:
        """
        Load the catalog from its YAML file.

        Args:
            force_reload: If True, reload even if already loaded

        Returns:
            Parsed SchemaCatalog

        Raises:
            MRFError: If the file is missing, is not valid YAML, or does not
                match the catalog structure
        """
        if self._catalog is not None and not force_reload:
            return self._catalog

        if not self.catalog_path.exists():
            raise MRFError(
                message=f"Schema catalog file not found: {self.catalog_path}",
                code=ErrorCode.FILE_NOT_FOUND,
                level=ErrorLevel.CRITICAL,
                details={'path': str(self.catalog_path)}
            )

        try:
            with open(self.catalog_path, 'r', encoding='utf-8') as f:
                raw_yaml: Any = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise configuration_error(str(self.catalog_path), "not valid YAML", cause=e)

        if not isinstance(raw_yaml, dict):
            raise configuration_error(str(self.catalog_path), "catalog YAML must be a mapping")

        try:
            catalog = SchemaCatalog(**raw_yaml)
        except ValidationError as e:
            raise configuration_error(str(self.catalog_path), "unexpected structure", cause=e)

        for version in catalog.versions:
            try:
                SemanticVersion.parse(version)
            except ValueError as e:
                raise configuration_error(str(self.catalog_path), f"bad version '{version}'", cause=e)

        self._catalog = catalog
        return self._catalog

    def reload_catalog(self) -> SchemaCatalog:
        """Force reload of the catalog from file."""
        return self.load_catalog(force_reload=True)

    def supported_versions(self) -> List[str]:
        """Supported versions in catalog order."""
        return list(self.load_catalog().versions)

    def resolve_version(self, version_str: str) -> Optional[SemanticVersion]:
        """
        Map a user supplied version string onto a catalog version.

        Args:
            version_str: e.g. "2.2", "v2.2.0", "3.0.0"

        Returns:
            The catalog version, or None if the string is not a supported version
        """
        coerced = SemanticVersion.coerce(version_str)
        if coerced is None:
            return None
        if str(coerced) not in self.supported_versions():
            return None
        return coerced

    def header_columns(self, version: SemanticVersion) -> List[ColumnDefinition]:
        """
        Expected row 1 header columns for a version.

        Returns:
            Column definitions in catalog order
        """
        catalog = self.load_catalog()
        return [
            ColumnDefinition(
                label=column.label.format(**catalog.statements),
                value_type=column.value_type,
                region_coded=column.region_coded,
            )
            for column in catalog.header_columns
            if version_satisfies(version, column.versions)
        ]

    def allowed_values(self, name: str, version: SemanticVersion) -> List[str]:
        """
        Allowed values of a value set for a version.

        Raises:
            MRFError: If the value set is not in the catalog
        """
        catalog = self.load_catalog()
        if name not in catalog.value_sets:
            raise configuration_error(str(self.catalog_path), f"unknown value set '{name}'")

        values: List[str] = []
        for entry in catalog.value_sets[name]:
            if version_satisfies(version, entry.versions):
                values.extend(entry.values)
        return values

    def enforcement_date(self, rule_family: str) -> Optional[date]:
        """Date from which a rule family is enforced, None when always enforced."""
        return self.load_catalog().enforcement_dates.get(rule_family)


@lru_cache(maxsize=1)
def get_catalog_loader() -> CatalogLoader:
    """
    Get singleton instance of CatalogLoader.

    Returns:
        CatalogLoader instance
    """
    return CatalogLoader()

"""
Configuration Module

Manages the versioned schema catalog and application constants.

Components:
- constants.py: Application constants and enums
- schema_catalog.yaml: Supported versions, header columns, value sets
- catalog_loader.py: Loads the schema catalog from YAML
"""

from .constants import Layout, ColumnKind, HeaderValueType, ViolationCode

__all__ = [
    "Layout",
    "ColumnKind",
    "HeaderValueType",
    "ViolationCode",
]

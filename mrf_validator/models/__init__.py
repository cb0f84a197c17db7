"""
Data Models Module

Pydantic models for type safety and validation.

Components:
- version.py: Semantic versions and range constraints
- columns.py: Column definitions and discovered column mapping
- violation.py: Violation and validation result models
- rules.py: Tagged rule variants and rule nodes
- session.py: Run options and the immutable validator session
"""

from .version import SemanticVersion, version_satisfies
from .columns import ColumnDefinition, ColumnMapping
from .violation import Violation, ValidationResult
from .rules import RuleNode
from .session import ValidationOptions, ValidatorSession

__all__ = [
    "SemanticVersion",
    "version_satisfies",
    "ColumnDefinition",
    "ColumnMapping",
    "Violation",
    "ValidationResult",
    "RuleNode",
    "ValidationOptions",
    "ValidatorSession",
]

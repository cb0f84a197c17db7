"""
Validation Reporting Module

Turns a ValidationResult into something people and pipelines can use:
- Plain text report with errors grouped by message
- JSON export for automation
"""

from typing import Dict, List, Optional
from datetime import datetime
import json

from ..models.violation import Violation, ValidationResult


class ValidationReporter:
    """
    Reporter for machine-readable file validation results.

    Most files repeat the same problem on many rows, so violations are
    grouped by message and only the first few locations of each group are
    listed.
    """

    def __init__(self, max_locations: int = 10):
        """
        Initialize the reporter.

        Args:
            max_locations: Locations listed per message group
        """
        self.max_locations = max_locations

    def format_violation(self, violation: Violation) -> str:
        """One line for a single violation."""
        marker = "⚠" if violation.warning else "✗"
        field = f" [{violation.field}]" if violation.field else ""
        return f"{marker} {violation.path or '(document)'}{field}: {violation.message}"

    def generate_report(
        self,
        result: ValidationResult,
        file_name: Optional[str] = None,
        version: Optional[str] = None,
        include_alerts: bool = True
    ) -> str:
        """
        Generate a plain text report.

        Args:
            result: Validation result
            file_name: Name shown in the report header
            version: Schema version the file was checked against
            include_alerts: Include the alerts section

        Returns:
            Report as string
        """
        lines = []

        lines.append("=" * 80)
        lines.append("MACHINE-READABLE FILE VALIDATION REPORT")
        lines.append("=" * 80)
        if file_name:
            lines.append(f"File: {file_name}")
        if version:
            lines.append(f"Schema version: {version}")
        lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append("")

        lines.append("─" * 80)
        lines.append("SUMMARY")
        lines.append("─" * 80)
        lines.append(f"  Status:   {'VALID' if result.valid else 'INVALID'}")
        lines.append(f"  ✗ Errors:   {result.error_count}")
        lines.append(f"  ⚠ Warnings: {result.warning_count}")
        lines.append(f"  ℹ Alerts:   {len(result.alerts)}")
        lines.append("")

        errors = [violation for violation in result.errors if not violation.warning]
        warnings = [violation for violation in result.errors if violation.warning]

        if errors:
            lines.extend(self._section("ERRORS", errors))
        if warnings:
            lines.extend(self._section("WARNINGS (Not Yet Enforced)", warnings))
        if include_alerts and result.alerts:
            lines.extend(self._section("ALERTS", result.alerts))

        if result.valid and not result.errors:
            lines.append("  No problems found.")
            lines.append("")

        lines.append("=" * 80)
        lines.append("END OF REPORT")
        lines.append("=" * 80)

        return "\n".join(lines)

    def _section(self, title: str, found: List[Violation]) -> List[str]:
        lines = ["─" * 80, title, "─" * 80]
        for message, group in self.group_by_message(found).items():
            lines.append(f"{message}")
            lines.append(f"    Occurrences: {len(group)}")
            locations = [violation.path or "(document)" for violation in group[:self.max_locations]]
            more = len(group) - len(locations)
            suffix = f" (+{more} more)" if more > 0 else ""
            lines.append(f"    Locations: {', '.join(locations)}{suffix}")
            lines.append("")
        return lines

    def group_by_message(self, found: List[Violation]) -> Dict[str, List[Violation]]:
        """
        Group violations by message, keeping first-seen order.

        Args:
            found: Violations to group

        Returns:
            Dictionary mapping messages to their violations
        """
        groups: Dict[str, List[Violation]] = {}
        for violation in found:
            groups.setdefault(violation.message, []).append(violation)
        return groups

    def export_to_json(
        self,
        result: ValidationResult,
        file_name: Optional[str] = None,
        version: Optional[str] = None
    ) -> str:
        """
        Export a validation result to JSON for automation/integration.

        Returns:
            JSON string
        """
        result_dict = result.to_output()
        result_dict["summary"] = {
            "file_name": file_name,
            "version": version,
            "total_errors": result.error_count,
            "total_warnings": result.warning_count,
            "total_alerts": len(result.alerts),
        }
        return json.dumps(result_dict, indent=2, default=str)


# Singleton instance for global access
_validation_reporter_instance = None


def get_validation_reporter() -> ValidationReporter:
    """
    Get singleton instance of ValidationReporter.

    Returns:
        ValidationReporter instance
    """
    global _validation_reporter_instance
    if _validation_reporter_instance is None:
        _validation_reporter_instance = ValidationReporter()
    return _validation_reporter_instance

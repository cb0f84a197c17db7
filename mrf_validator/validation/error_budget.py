"""
Error Budget

Collects violations for one validation run and applies the max_errors cap.
"""

from typing import List

from ..models.violation import Violation, ValidationResult


class ErrorBudget:
    """
    Collected errors and alerts with their caps.

    Errors and not-yet-enforced warnings share one list capped at
    max_errors; alerts are capped at the same number independently.
    max_errors of 0 means no cap.
    """

    def __init__(self, max_errors: int = 0):
        self.max_errors = max_errors
        self.errors: List[Violation] = []
        self.alerts: List[Violation] = []
        self.error_count = 0
        self.warning_count = 0

    def _has_room(self, collected: List[Violation]) -> bool:
        return self.max_errors == 0 or len(collected) < self.max_errors

    def add_errors(self, found: List[Violation]) -> None:
        for violation in found:
            if not self._has_room(self.errors):
                break
            self.errors.append(violation)
            if violation.warning:
                self.warning_count += 1
            else:
                self.error_count += 1

    def add_alerts(self, found: List[Violation]) -> None:
        for violation in found:
            if not self._has_room(self.alerts):
                break
            self.alerts.append(violation)

    @property
    def alerts_open(self) -> bool:
        """Whether alert rules are still worth running."""
        return self._has_room(self.alerts)

    @property
    def exhausted(self) -> bool:
        return self.max_errors > 0 and len(self.errors) >= self.max_errors

    def result(self, stopped: bool = False) -> ValidationResult:
        """
        Final result of the run.

        A run stopped at max_errors is never valid: rows it did not read may
        hold errors even when every collected entry is a warning.
        """
        return ValidationResult(
            valid=self.error_count == 0 and not stopped,
            errors=list(self.errors),
            alerts=list(self.alerts),
        )

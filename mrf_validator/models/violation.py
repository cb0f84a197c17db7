"""
Violation Data Models

Defines the records produced by the validators: a single violation (error,
warning or alert) and the overall result of a validation run.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any

from ..config.constants import ViolationCode


class Violation(BaseModel):
    """A single problem found in a file"""

    path: str = Field(..., description="Cell label (CSV) or JSON pointer (JSON)")
    row: Optional[int] = Field(None, description="Zero-based row index (CSV only)")
    column: Optional[int] = Field(None, description="Zero-based column index, None for whole-row problems")
    field: Optional[str] = Field(None, description="Semantic column key or JSON property")
    message: str = Field(..., description="Human-readable explanation")
    code: ViolationCode = Field(..., description="Kind of violation")
    warning: bool = Field(
        False,
        description="Reported but not yet enforced; does not affect validity"
    )

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "path": "B4",
                "row": 3,
                "column": 1,
                "field": "setting",
                "message": '"setting" value "everywhere" is not one of the allowed valid values. '
                           "You must encode one of these valid values: inpatient, outpatient, both",
                "code": "allowed_values",
                "warning": False
            }
        }

    def as_warning(self) -> "Violation":
        """Copy of this violation demoted to a warning."""
        return self.model_copy(update={"warning": True})

    def to_output(self) -> Dict[str, Any]:
        """Public result shape: path, optional field, message, optional warning."""
        output: Dict[str, Any] = {"path": self.path}
        if self.field is not None:
            output["field"] = self.field
        output["message"] = self.message
        if self.warning:
            output["warning"] = True
        return output


class ValidationResult(BaseModel):
    """Outcome of validating one file"""

    valid: bool = Field(..., description="True when no enforced error was found")
    errors: List[Violation] = Field(
        default_factory=list,
        description="Errors and not-yet-enforced warnings, in discovery order"
    )
    alerts: List[Violation] = Field(
        default_factory=list,
        description="Advisory notices that never affect validity"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "valid": False,
                "errors": [
                    {
                        "path": "row 1",
                        "field": "hospital_location",
                        "message": 'Header column "hospital_location" is miscoded or missing. '
                                   "You must include this header and confirm that it is encoded "
                                   "as specified in the data dictionary.",
                        "code": "header_column_missing"
                    }
                ],
                "alerts": []
            }
        }

    @property
    def error_count(self) -> int:
        """Number of enforced errors."""
        return sum(1 for violation in self.errors if not violation.warning)

    @property
    def warning_count(self) -> int:
        """Number of not-yet-enforced warnings."""
        return sum(1 for violation in self.errors if violation.warning)

    def to_output(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [violation.to_output() for violation in self.errors],
            "alerts": [violation.to_output() for violation in self.alerts],
        }

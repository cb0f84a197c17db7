"""
Rule Data Models

Business rules are plain data: predicates and checks are tagged variants
carrying their parameters, and rule nodes arrange them into a forest that a
single evaluator interprets. Nothing here executes anything.

Node semantics:
- No predicate, or predicate true: run `validator`, then `children`
- Predicate false: run `negative_validator`, then `negative_children`
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Union, Literal, Set, Annotated

from ..config.constants import ViolationCode


# ============================================================================
# PREDICATES
# ============================================================================

class AnyPresent(BaseModel):
    """At least one of the fields has a value"""
    kind: Literal["any_present"] = "any_present"
    fields: List[str]

    class Config:
        frozen = True


class AllPresent(BaseModel):
    """Every field has a value"""
    kind: Literal["all_present"] = "all_present"
    fields: List[str]

    class Config:
        frozen = True


class NonePresent(BaseModel):
    """No field has a value"""
    kind: Literal["none_present"] = "none_present"
    fields: List[str]

    class Config:
        frozen = True


class ValueIs(BaseModel):
    """At least one of the fields equals value, case-insensitively"""
    kind: Literal["value_is"] = "value_is"
    fields: List[str]
    value: str

    class Config:
        frozen = True


class ZeroCount(BaseModel):
    """The count field holds a numeric zero"""
    kind: Literal["zero_count"] = "zero_count"
    field: str

    class Config:
        frozen = True


class AllOf(BaseModel):
    """Every nested predicate holds"""
    kind: Literal["all_of"] = "all_of"
    predicates: List["Predicate"]

    class Config:
        frozen = True


Predicate = Annotated[
    Union[AnyPresent, AllPresent, NonePresent, ValueIs, ZeroCount, AllOf],
    Field(discriminator="kind"),
]


# ============================================================================
# CHECKS
# ============================================================================

class Required(BaseModel):
    """Field must have a value"""
    kind: Literal["required"] = "required"
    field: str
    suffix: str = ""

    class Config:
        frozen = True


class AllowedValues(BaseModel):
    """Field value must match one of values (case-insensitive)"""
    kind: Literal["allowed_values"] = "allowed_values"
    field: str
    values: List[str]
    required: bool = False
    suffix: str = ""

    class Config:
        frozen = True


class PositiveNumber(BaseModel):
    """Field must be empty (unless required) or a number greater than zero"""
    kind: Literal["positive_number"] = "positive_number"
    field: str
    required: bool = False
    suffix: str = ""

    class Config:
        frozen = True


class CountNumber(BaseModel):
    """Field must be empty, 0, a whole number of 11 or more, or '1 through 10'"""
    kind: Literal["count_number"] = "count_number"
    field: str

    class Config:
        frozen = True


class RequireAny(BaseModel):
    """
    At least one of fields must have a value.

    Reports `code` once, at column `at`; when `at` is None the violation is
    placed one column past the last column of the row.
    """
    kind: Literal["require_any"] = "require_any"
    fields: List[str]
    code: ViolationCode
    at: Optional[str] = None

    class Config:
        frozen = True


class RequireEach(BaseModel):
    """
    Every field must have a value.

    Reports `code` at each missing field, or only at the first one when
    `first_only` is set.
    """
    kind: Literal["require_each"] = "require_each"
    fields: List[str]
    code: ViolationCode
    first_only: bool = False

    class Config:
        frozen = True


class Flag(BaseModel):
    """Always reports `code` (used as a negative validator)"""
    kind: Literal["flag"] = "flag"
    code: ViolationCode
    at: Optional[str] = None

    class Config:
        frozen = True


class SentinelValue(BaseModel):
    """Reports `code` when the field holds the sentinel number"""
    kind: Literal["sentinel_value"] = "sentinel_value"
    field: str
    value: float
    code: ViolationCode

    class Config:
        frozen = True


Check = Annotated[
    Union[
        Required,
        AllowedValues,
        PositiveNumber,
        CountNumber,
        RequireAny,
        RequireEach,
        Flag,
        SentinelValue,
    ],
    Field(discriminator="kind"),
]


# ============================================================================
# NODES
# ============================================================================

class RuleNode(BaseModel):
    """One node of a rule forest"""

    name: str = Field(..., description="Identifies the rule in logs and tests")
    versions: str = Field("*", description="Version range the rule applies to")
    predicate: Optional[Predicate] = Field(None, description="Selects validator/children vs negative branch")
    validator: Optional[Check] = Field(None, description="Runs when predicate is absent or true")
    negative_validator: Optional[Check] = Field(None, description="Runs when predicate is false")
    children: List["RuleNode"] = Field(default_factory=list)
    negative_children: List["RuleNode"] = Field(default_factory=list)
    warning: bool = Field(
        False,
        description="Violations from this node are reported as warnings"
    )

    class Config:
        frozen = True


AllOf.model_rebuild()
RuleNode.model_rebuild()


def predicate_fields(predicate) -> Set[str]:
    """Column keys a predicate reads."""
    if predicate is None:
        return set()
    if isinstance(predicate, AllOf):
        fields = set()
        for nested in predicate.predicates:
            fields |= predicate_fields(nested)
        return fields
    if isinstance(predicate, ZeroCount):
        return {predicate.field}
    return set(predicate.fields)


def check_fields(check) -> Set[str]:
    """Column keys a check reads or reports at."""
    if check is None:
        return set()
    fields = set()
    if getattr(check, "field", None):
        fields.add(check.field)
    fields |= set(getattr(check, "fields", []))
    if getattr(check, "at", None):
        fields.add(check.at)
    return fields


def referenced_fields(forest: List[RuleNode]) -> Set[str]:
    """Every column key referenced anywhere in a forest."""
    fields = set()
    stack = list(forest)
    while stack:
        node = stack.pop()
        fields |= predicate_fields(node.predicate)
        fields |= check_fields(node.validator)
        fields |= check_fields(node.negative_validator)
        stack.extend(node.children)
        stack.extend(node.negative_children)
    return fields

"""
JSON Schemas

Draft 7 JSON schemas for the JSON machine-readable file, assembled per
schema version. Enumerations and the affirmation statement come from the
schema catalog so CSV and JSON validation share one source of allowed
values.

Three schemas are built for each version:

- full: the whole document, used when the file has no charge items
- item: one standard_charge_information entry
- metadata: the document without standard_charge_information
"""

import copy
from typing import Any, Dict, List, Optional

from ..config.catalog_loader import CatalogLoader, get_catalog_loader
from ..config.constants import STATE_CODES
from ..models.version import SemanticVersion, version_satisfies


DRAFT_07 = "http://json-schema.org/draft-07/schema#"
CHARGE_ITEMS_KEY = "standard_charge_information"

# 0, a whole number of 11 or more, or "1 through 10"
COUNT_PATTERN = r"^(0|1[1-9]|[2-9][0-9]|[1-9][0-9]{2,}|1 through 10)$"
TYPE_2_NPI_PATTERN = r"^[0-9]{10}$"


def _text() -> Dict[str, Any]:
    return {"type": "string", "minLength": 1}


def _positive_number() -> Dict[str, Any]:
    return {"type": "number", "exclusiveMinimum": 0}


def _enum(values: List[str]) -> Dict[str, Any]:
    return {"type": "string", "enum": list(values)}


def _array_of(items: Dict[str, Any], min_items: int = 1) -> Dict[str, Any]:
    return {"type": "array", "items": items, "minItems": min_items}


def _ref(name: str) -> Dict[str, str]:
    return {"$ref": f"#/definitions/{name}"}


class JsonSchemaBuilder:
    """
    Assembles the JSON schemas of one schema version.

    Example:
        builder = JsonSchemaBuilder(SemanticVersion.parse("2.2.0"))
        item_schema = builder.item_schema()
    """

    def __init__(self, version: SemanticVersion, catalog_loader: Optional[CatalogLoader] = None):
        self.version = version
        self.catalog = catalog_loader or get_catalog_loader()

    def applies(self, constraint: str) -> bool:
        return version_satisfies(self.version, constraint)

    def values(self, name: str) -> List[str]:
        return self.catalog.allowed_values(name, self.version)

    # ------------------------------------------------------------------
    # Charge item definitions
    # ------------------------------------------------------------------

    def payers_information(self) -> Dict[str, Any]:
        properties: Dict[str, Any] = {
            "payer_name": _text(),
            "plan_name": _text(),
            "additional_payer_notes": {"type": "string"},
            "standard_charge_dollar": _positive_number(),
            "standard_charge_algorithm": {"type": "string"},
            "standard_charge_percentage": _positive_number(),
            "methodology": _enum(self.values("methodology")),
        }
        if self.applies("^2.2.0"):
            properties["estimated_amount"] = _positive_number()
        if self.applies(">=3.0.0"):
            properties["median_amount"] = _positive_number()
            properties["10th_percentile"] = _positive_number()
            properties["90th_percentile"] = _positive_number()
            properties["count"] = {"type": "string", "pattern": COUNT_PATTERN}

        return {
            "type": "object",
            "properties": properties,
            "required": ["payer_name", "plan_name", "methodology"],
            "if": {
                "properties": {"methodology": {"const": "other"}},
                "required": ["methodology"],
            },
            "then": {"required": ["additional_payer_notes"]},
        }

    def standard_charges(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "minimum": _positive_number(),
                "maximum": _positive_number(),
                "gross_charge": _positive_number(),
                "discounted_cash": _positive_number(),
                "setting": _enum(self.values("setting")),
                "payers_information": _array_of(_ref("payers_information")),
                "billing_class": _enum(self.values("billing_class")),
                "additional_generic_notes": {"type": "string"},
            },
            "required": ["setting"],
            "anyOf": [
                {"type": "object", "required": ["gross_charge"]},
                {"type": "object", "required": ["discounted_cash"]},
                {
                    "type": "object",
                    "properties": {
                        "payers_information": {
                            "type": "array",
                            "items": {
                                "anyOf": [
                                    {"type": "object", "required": ["standard_charge_dollar"]},
                                    {"type": "object", "required": ["standard_charge_algorithm"]},
                                    {"type": "object", "required": ["standard_charge_percentage"]},
                                ]
                            },
                        }
                    },
                    "required": ["payers_information"],
                },
            ],
            # A dollar amount anywhere requires the min and max
            "if": {
                "type": "object",
                "properties": {
                    "payers_information": {
                        "type": "array",
                        "items": {"type": "object", "not": {"required": ["standard_charge_dollar"]}},
                    }
                },
            },
            "else": {"required": ["minimum", "maximum"]},
        }

    def standard_charge_item(self) -> Dict[str, Any]:
        properties: Dict[str, Any] = {
            "description": _text(),
            "code_information": _array_of(_ref("code_information")),
            "standard_charges": _array_of(_ref("standard_charges")),
        }
        if self.applies(">=2.2.0"):
            properties["drug_information"] = _ref("drug_information")
        return {
            "type": "object",
            "properties": properties,
            "required": ["description", "code_information", "standard_charges"],
        }

    def charge_definitions(self) -> Dict[str, Any]:
        definitions: Dict[str, Any] = {
            "code_information": {
                "type": "object",
                "properties": {
                    "code": _text(),
                    "type": _enum(self.values("billing_code_type")),
                },
                "required": ["code", "type"],
            },
            "standard_charges": self.standard_charges(),
            "payers_information": self.payers_information(),
        }
        if self.applies(">=2.2.0"):
            definitions["drug_information"] = {
                "type": "object",
                "properties": {
                    "unit": _text(),
                    "type": _enum(self.values("drug_unit_type")),
                },
                "required": ["unit", "type"],
            }
        return definitions

    # ------------------------------------------------------------------
    # Metadata definitions
    # ------------------------------------------------------------------

    def metadata_definitions(self) -> Dict[str, Any]:
        definitions: Dict[str, Any] = {
            "license_information": {
                "type": "object",
                "properties": {
                    "license_number": {"type": "string"},
                    "state": _enum(STATE_CODES),
                },
                "required": ["state"],
            },
        }

        if self.applies("<3.0.0"):
            statement = self.catalog.load_catalog().statements.get("affirmation")
            definitions["affirmation"] = {
                "type": "object",
                "properties": {
                    "affirmation": {"const": statement} if statement else _text(),
                    "confirm_affirmation": {"type": "boolean"},
                },
                "required": ["affirmation", "confirm_affirmation"],
            }
        else:
            definitions["attestation"] = {
                "type": "object",
                "properties": {
                    "attestation": _text(),
                    "confirm_attestation": {"type": "boolean"},
                    "attester_name": _text(),
                },
                "required": ["attestation", "confirm_attestation", "attester_name"],
            }

        if self.applies(">=2.2.0"):
            definitions["modifier_information"] = {
                "type": "object",
                "properties": {
                    "description": _text(),
                    "code": _text(),
                    "modifier_payer_information": _array_of(_ref("modifier_payer_information")),
                },
                "required": ["description", "modifier_payer_information", "code"],
            }
            definitions["modifier_payer_information"] = {
                "type": "object",
                "properties": {
                    "payer_name": _text(),
                    "plan_name": _text(),
                    "description": _text(),
                },
                "required": ["payer_name", "plan_name", "description"],
            }

        return definitions

    def metadata_properties(self) -> Dict[str, Any]:
        properties: Dict[str, Any] = {
            "hospital_name": _text(),
            "last_updated_on": {"type": "string", "format": "date"},
            "license_information": _ref("license_information"),
            "version": _text(),
            "hospital_address": _array_of({"type": "string"}),
        }
        if self.applies("<3.0.0"):
            properties["hospital_location"] = _array_of({"type": "string"})
            properties["affirmation"] = _ref("affirmation")
        else:
            properties["location_name"] = _array_of(_text())
            properties["type_2_npi"] = _array_of({"type": "string", "pattern": TYPE_2_NPI_PATTERN})
            properties["attestation"] = _ref("attestation")
        if self.applies(">=2.2.0"):
            properties["modifier_information"] = {
                "type": "array",
                "items": _ref("modifier_information"),
            }
        return properties

    def metadata_required(self) -> List[str]:
        required = ["hospital_name", "last_updated_on", "license_information", "version", "hospital_address"]
        if self.applies("<3.0.0"):
            required += ["hospital_location", "affirmation"]
        else:
            required += ["location_name", "type_2_npi", "attestation"]
        return required

    # ------------------------------------------------------------------
    # Schemas
    # ------------------------------------------------------------------

    def definitions(self) -> Dict[str, Any]:
        definitions = self.metadata_definitions()
        definitions.update(self.charge_definitions())
        definitions[CHARGE_ITEMS_KEY] = self.standard_charge_item()
        return definitions

    def full_schema(self) -> Dict[str, Any]:
        """Schema of the whole document."""
        properties = self.metadata_properties()
        properties[CHARGE_ITEMS_KEY] = _array_of(_ref(CHARGE_ITEMS_KEY))
        return {
            "$schema": DRAFT_07,
            "definitions": self.definitions(),
            "type": "object",
            "properties": properties,
            "required": self.metadata_required() + [CHARGE_ITEMS_KEY],
        }

    def item_schema(self) -> Dict[str, Any]:
        """Schema of a single standard_charge_information entry."""
        schema = copy.deepcopy(self.standard_charge_item())
        schema["$schema"] = DRAFT_07
        schema["definitions"] = self.definitions()
        return schema

    def metadata_schema(self) -> Dict[str, Any]:
        """Schema of the document with the charge items left out."""
        return {
            "$schema": DRAFT_07,
            "definitions": self.definitions(),
            "type": "object",
            "properties": self.metadata_properties(),
            "required": self.metadata_required(),
        }

"""
Rule Tree Builder

Assembles the row rule forest and the alert forest for one file from a fixed
catalog of rule templates. Every template is tagged with the version range it
applies to; payer-scoped templates are instantiated once for the tall layout
or once per payer/plan group for the wide layout. After assembly the forest
is filtered on the active version.
"""

from datetime import date
from typing import List, Optional

from ..config.catalog_loader import CatalogLoader, get_catalog_loader
from ..config.constants import Layout, ViolationCode, NINE_NINES
from ..models.columns import ColumnDefinition, ColumnMapping
from ..models.rules import (
    RuleNode,
    AnyPresent,
    AllPresent,
    NonePresent,
    ValueIs,
    ZeroCount,
    AllOf,
    Required,
    AllowedValues,
    PositiveNumber,
    CountNumber,
    RequireAny,
    RequireEach,
    Flag,
    SentinelValue,
    referenced_fields,
)
from ..models.session import ValidatorSession
from ..models.version import SemanticVersion, version_satisfies
from ..utils.date_utils import is_enforced
from ..utils.error_handler import unknown_rule_field_error
from ..utils.logger import get_module_logger
from . import column_keys as keys
from .format_detector import FormatDetection

logger = get_module_logger()


PAYER_SPECIFIC_SUFFIX = (
    " when a payer specific negotiated charge is encoded as a dollar amount, "
    "percentage, or algorithm"
)
DRUG_UNIT_SUFFIX = ' when "drug_type_of_measurement" is present'
DRUG_TYPE_SUFFIX = ' when "drug_unit_of_measurement" is present'

# Rule families whose enforcement starts on a catalog date
ESTIMATE_FAMILY = "estimated_amount"
ALLOWED_AMOUNT_FAMILY = "allowed_amount_count"


def filter_forest(forest: List[RuleNode], version: SemanticVersion) -> List[RuleNode]:
    """
    Keep only nodes whose version range includes version.

    Tree shape is preserved: a kept node keeps its position and its children
    are filtered the same way. Filtering an already filtered forest with the
    same version returns an equal forest.
    """
    kept = []
    for node in forest:
        if not version_satisfies(version, node.versions):
            continue
        kept.append(node.model_copy(update={
            "children": filter_forest(node.children, version),
            "negative_children": filter_forest(node.negative_children, version),
        }))
    return kept


class _ForestAssembler:
    """Builds the unfiltered forests for one (version, layout, groups) combination."""

    def __init__(
        self,
        catalog: CatalogLoader,
        version: SemanticVersion,
        layout: Layout,
        code_count: int,
        payer_plans: List[str],
        reference_date: date
    ):
        self.catalog = catalog
        self.version = version
        self.layout = layout
        self.code_indexes = list(range(1, max(1, code_count) + 1))
        # None stands for the fixed tall layout keys
        self.scopes: List[Optional[str]] = [None] if layout == Layout.TALL else list(payer_plans)
        self.reference_date = reference_date

    def values(self, name: str) -> List[str]:
        return self.catalog.allowed_values(name, self.version)

    def demoted(self, family: str) -> bool:
        """True when violations of a rule family are still only warnings."""
        return not is_enforced(self.catalog.enforcement_date(family), self.reference_date)

    def notes_key(self, scope: Optional[str]) -> str:
        if scope is None:
            return keys.GENERIC_NOTES
        return keys.payer_scoped(keys.PAYER_NOTES, scope)

    def negotiated_keys(self, scope: Optional[str]) -> List[str]:
        return [keys.negotiated(kind, scope) for kind in keys.NEGOTIATED_KINDS]

    # ------------------------------------------------------------------
    # Row rules
    # ------------------------------------------------------------------

    def row_forest(self) -> List[RuleNode]:
        forest = [
            RuleNode(
                name="description",
                versions=">=2.0.0",
                validator=Required(field=keys.DESCRIPTION),
            ),
            RuleNode(
                name="setting",
                versions=">=2.0.0",
                validator=AllowedValues(field=keys.SETTING, values=self.values("setting"), required=True),
            ),
        ]
        forest.extend(self.code_pair_rules())
        forest.extend(
            RuleNode(name=key, versions=">=2.0.0", validator=PositiveNumber(field=key))
            for key in (keys.GROSS, keys.DISCOUNTED_CASH, keys.MINIMUM, keys.MAXIMUM)
        )
        forest.extend(self.payer_number_rules())
        forest.extend(self.drug_rules())
        forest.extend(self.code_tree())
        return forest

    def code_pair_rules(self) -> List[RuleNode]:
        rules = []
        for index in self.code_indexes:
            rules.append(RuleNode(
                name=keys.code(index),
                versions=">=2.0.0",
                predicate=AnyPresent(fields=[keys.code_type(index)]),
                validator=Required(field=keys.code(index)),
            ))
            rules.append(RuleNode(
                name=keys.code_type(index),
                versions=">=2.0.0",
                predicate=AnyPresent(fields=[keys.code(index)]),
                validator=AllowedValues(
                    field=keys.code_type(index),
                    values=self.values("billing_code_type"),
                    required=True,
                ),
            ))
        return rules

    def payer_number_rules(self) -> List[RuleNode]:
        rules = []
        for scope in self.scopes:
            for key in (keys.negotiated("dollar", scope), keys.negotiated("percentage", scope)):
                rules.append(RuleNode(name=key, versions=">=2.0.0", validator=PositiveNumber(field=key)))

            estimated = keys.payer_scoped(keys.ESTIMATED_AMOUNT, scope)
            rules.append(RuleNode(name=estimated, versions="^2.2.0", validator=PositiveNumber(field=estimated)))

            for prefix in (keys.MEDIAN_AMOUNT, keys.PERCENTILE_10TH, keys.PERCENTILE_90TH):
                key = keys.payer_scoped(prefix, scope)
                rules.append(RuleNode(name=key, versions=">=3.0.0", validator=PositiveNumber(field=key)))

            count = keys.payer_scoped(keys.COUNT, scope)
            rules.append(RuleNode(name=count, versions=">=3.0.0", validator=CountNumber(field=count)))
        return rules

    def drug_rules(self) -> List[RuleNode]:
        either_drug_field = AnyPresent(fields=[keys.DRUG_UNIT, keys.DRUG_TYPE])
        return [
            RuleNode(
                name=keys.DRUG_UNIT,
                versions=">=2.2.0",
                predicate=either_drug_field,
                validator=PositiveNumber(field=keys.DRUG_UNIT, required=True, suffix=DRUG_UNIT_SUFFIX),
            ),
            RuleNode(
                name=keys.DRUG_TYPE,
                versions=">=2.2.0",
                predicate=either_drug_field,
                validator=AllowedValues(
                    field=keys.DRUG_TYPE,
                    values=self.values("drug_unit_type"),
                    required=True,
                    suffix=DRUG_TYPE_SUFFIX,
                ),
            ),
            RuleNode(
                name="NDC code requires drug information",
                versions=">=2.2.0",
                predicate=ValueIs(fields=[keys.code_type(index) for index in self.code_indexes], value="NDC"),
                validator=RequireEach(
                    fields=[keys.DRUG_UNIT, keys.DRUG_TYPE],
                    code=ViolationCode.DRUG_INFORMATION_REQUIRED,
                ),
            ),
        ]

    def code_tree(self) -> List[RuleNode]:
        """Root nodes that branch on whether the row has a code or is a modifier row."""
        non_modifier = self.non_modifier_checks()
        code_fields = []
        for index in self.code_indexes:
            code_fields.extend([keys.code(index), keys.code_type(index)])

        is_modifier_present = RuleNode(
            name="is a modifier present",
            versions=">=2.2.0",
            predicate=AnyPresent(fields=[keys.MODIFIERS]),
            children=self.modifier_checks(),
            negative_validator=Flag(code=ViolationCode.CODE_PAIR_MISSING),
            negative_children=non_modifier,
        )
        return [
            RuleNode(
                name="found at least one code",
                versions=">=2.2.0",
                predicate=AnyPresent(fields=code_fields),
                children=non_modifier,
                negative_children=[is_modifier_present],
            ),
            # Before 2.2.0 there are no modifier rows, so code information is always required
            RuleNode(
                name="found at least one code",
                versions="<2.2.0",
                validator=RequireAny(fields=code_fields, code=ViolationCode.CODE_PAIR_MISSING),
                children=non_modifier,
            ),
        ]

    def modifier_checks(self) -> List[RuleNode]:
        extra_info = [keys.GENERIC_NOTES]
        for scope in self.scopes:
            extra_info.extend(self.negotiated_keys(scope))
            if scope is not None:
                extra_info.append(keys.payer_scoped(keys.PAYER_NOTES, scope))

        return [RuleNode(
            name="extra info for modifier row",
            versions=">=2.2.0",
            validator=RequireAny(
                fields=extra_info,
                code=ViolationCode.MODIFIER_MISSING_INFO,
                at=keys.GENERIC_NOTES,
            ),
        )]

    def non_modifier_checks(self) -> List[RuleNode]:
        checks = []
        checks.extend(self.payer_specific_conditionals())
        checks.extend(
            RuleNode(
                name=f"{scope or 'tall'} other methodology requires notes",
                versions=">=2.1.0",
                predicate=ValueIs(fields=[keys.methodology(scope)], value="other"),
                validator=RequireEach(
                    fields=[self.notes_key(scope)],
                    code=ViolationCode.OTHER_METHODOLOGY_NOTES,
                ),
            )
            for scope in self.scopes
        )
        checks.append(RuleNode(
            name="item requires charge",
            versions=">=2.1.0",
            validator=RequireAny(
                fields=self.item_charge_fields(),
                code=ViolationCode.ITEM_REQUIRES_CHARGE,
                at=keys.GROSS,
            ),
        ))
        checks.append(RuleNode(
            name="dollar requires min and max",
            versions=">=2.1.0",
            predicate=AnyPresent(fields=[keys.negotiated("dollar", scope) for scope in self.scopes]),
            validator=RequireEach(
                fields=[keys.MINIMUM, keys.MAXIMUM],
                code=ViolationCode.DOLLAR_NEEDS_MIN_MAX,
                first_only=True,
            ),
        ))
        if self.layout == Layout.TALL:
            checks.append(RuleNode(
                name="payer and plan require a payer-specific charge",
                versions=">=3.0.0",
                predicate=AllPresent(fields=[keys.PAYER_NAME, keys.PLAN_NAME]),
                validator=RequireAny(
                    fields=self.negotiated_keys(None),
                    code=ViolationCode.CHARGE_WITH_PAYER_PLAN,
                    at=keys.PAYER_NAME,
                ),
            ))
        checks.extend(self.estimate_rules())
        checks.extend(self.allowed_amount_rules())
        return checks

    def payer_specific_conditionals(self) -> List[RuleNode]:
        methodologies = self.values("methodology")
        if self.layout == Layout.TALL:
            return [RuleNode(
                name="conditional for payer specific negotiated charge",
                versions=">=2.1.0",
                predicate=AnyPresent(fields=self.negotiated_keys(None)),
                children=[
                    RuleNode(
                        name=keys.PAYER_NAME,
                        versions=">=2.1.0",
                        validator=Required(field=keys.PAYER_NAME, suffix=PAYER_SPECIFIC_SUFFIX),
                    ),
                    RuleNode(
                        name=keys.PLAN_NAME,
                        versions=">=2.1.0",
                        validator=Required(field=keys.PLAN_NAME, suffix=PAYER_SPECIFIC_SUFFIX),
                    ),
                    RuleNode(
                        name=keys.methodology(),
                        versions=">=2.1.0",
                        validator=AllowedValues(
                            field=keys.methodology(),
                            values=methodologies,
                            required=True,
                            suffix=PAYER_SPECIFIC_SUFFIX,
                        ),
                    ),
                ],
            )]

        return [
            RuleNode(
                name=f"conditional for {scope} negotiated charge methodology",
                versions=">=2.1.0",
                predicate=AnyPresent(fields=self.negotiated_keys(scope)),
                validator=AllowedValues(
                    field=keys.methodology(scope),
                    values=methodologies,
                    required=True,
                    suffix=PAYER_SPECIFIC_SUFFIX,
                ),
            )
            for scope in self.scopes
        ]

    def item_charge_fields(self) -> List[str]:
        fields = [keys.GROSS, keys.DISCOUNTED_CASH]
        for scope in self.scopes:
            fields.extend(self.negotiated_keys(scope))
            if scope is None:
                continue
            fields.append(keys.methodology(scope))
            if version_satisfies(self.version, "^2.2.0"):
                fields.append(keys.payer_scoped(keys.ESTIMATED_AMOUNT, scope))
            fields.append(keys.payer_scoped(keys.PAYER_NOTES, scope))
        return fields

    def estimate_rules(self) -> List[RuleNode]:
        """2.2.x: a charge that is only a percentage or algorithm needs an estimated amount."""
        warning = self.demoted(ESTIMATE_FAMILY)
        rules = []
        for scope in self.scopes:
            rules.append(RuleNode(
                name=f"{scope or 'tall'} estimated allowed amount required when charge is only percentage or algorithm",
                versions="^2.2.0",
                predicate=AllOf(predicates=[
                    NonePresent(fields=[keys.negotiated("dollar", scope)]),
                    AnyPresent(fields=[keys.negotiated("percentage", scope), keys.negotiated("algorithm", scope)]),
                ]),
                validator=RequireEach(
                    fields=[keys.payer_scoped(keys.ESTIMATED_AMOUNT, scope)],
                    code=ViolationCode.PERCENTAGE_ALGORITHM_ESTIMATE,
                ),
                warning=warning,
            ))
        return rules

    def allowed_amount_rules(self) -> List[RuleNode]:
        """
        3.0: a percentage or algorithm charge needs a count of allowed amounts.

        A zero count needs notes; any other count needs the median, 10th and
        90th percentile allowed amounts.
        """
        warning = self.demoted(ALLOWED_AMOUNT_FAMILY)
        rules = []
        for scope in self.scopes:
            count = keys.payer_scoped(keys.COUNT, scope)
            percentiles = [
                (keys.MEDIAN_AMOUNT, ViolationCode.PERCENTAGE_ALGORITHM_MEDIAN),
                (keys.PERCENTILE_10TH, ViolationCode.PERCENTAGE_ALGORITHM_10TH),
                (keys.PERCENTILE_90TH, ViolationCode.PERCENTAGE_ALGORITHM_90TH),
            ]
            percentile_rules = [
                RuleNode(
                    name=f"{keys.payer_scoped(prefix, scope)} required when count is not zero",
                    versions=">=3.0.0",
                    validator=RequireEach(fields=[keys.payer_scoped(prefix, scope)], code=code),
                    warning=warning,
                )
                for prefix, code in percentiles
            ]
            zero_count = RuleNode(
                name=f"{count} of zero requires notes",
                versions=">=3.0.0",
                predicate=ZeroCount(field=count),
                validator=RequireEach(
                    fields=[self.notes_key(scope)],
                    code=ViolationCode.ALLOWED_COUNT_ZERO_NOTES,
                ),
                negative_children=percentile_rules,
                warning=warning,
            )
            rules.append(RuleNode(
                name=f"{scope or 'tall'} allowed amounts required when charge is percentage or algorithm",
                versions=">=3.0.0",
                predicate=AnyPresent(fields=[keys.negotiated("percentage", scope), keys.negotiated("algorithm", scope)]),
                children=[RuleNode(
                    name=f"{count} encoded",
                    versions=">=3.0.0",
                    predicate=AnyPresent(fields=[count]),
                    children=[zero_count],
                    negative_validator=RequireEach(fields=[count], code=ViolationCode.PERCENTAGE_ALGORITHM_COUNT),
                    warning=warning,
                )],
                warning=warning,
            ))
        return rules

    # ------------------------------------------------------------------
    # Alert rules
    # ------------------------------------------------------------------

    def alert_forest(self) -> List[RuleNode]:
        return [
            RuleNode(
                name="discontinue encoding nine 9s for estimated amount",
                versions="^2.2.0",
                validator=SentinelValue(
                    field=keys.payer_scoped(keys.ESTIMATED_AMOUNT, scope),
                    value=NINE_NINES,
                    code=ViolationCode.NINE_NINES,
                ),
            )
            for scope in self.scopes
        ]


class RuleBuilder:
    """
    Builds validator sessions.

    Provides the single place where column definitions, rule forests and the
    session that carries them are put together.
    """

    def __init__(self, catalog_loader: Optional[CatalogLoader] = None):
        """
        Initialize the RuleBuilder.

        Args:
            catalog_loader: Catalog to read value sets and enforcement dates
                from. Uses the packaged catalog when None.
        """
        self.catalog = catalog_loader or get_catalog_loader()

    def build_rules(
        self,
        version: SemanticVersion,
        layout: Layout,
        code_count: int,
        payer_plans: List[str],
        reference_date: date
    ) -> List[RuleNode]:
        """Version-filtered row rule forest."""
        assembler = _ForestAssembler(self.catalog, version, layout, code_count, payer_plans, reference_date)
        return filter_forest(assembler.row_forest(), version)

    def build_alert_rules(
        self,
        version: SemanticVersion,
        layout: Layout,
        code_count: int,
        payer_plans: List[str],
        reference_date: date
    ) -> List[RuleNode]:
        """Version-filtered alert rule forest."""
        assembler = _ForestAssembler(self.catalog, version, layout, code_count, payer_plans, reference_date)
        return filter_forest(assembler.alert_forest(), version)

    def build_session(
        self,
        version: SemanticVersion,
        detection: FormatDetection,
        definitions: List[ColumnDefinition],
        mapping: ColumnMapping,
        reference_date: date
    ) -> ValidatorSession:
        """
        Build the immutable session used for every data row of a file.

        Args:
            version: Active schema version
            detection: Unambiguous format detection of the data columns
            definitions: Expected data columns the mapping was reconciled against
            mapping: Discovered column mapping without errors
            reference_date: Date deciding which time-gated rules are enforced

        Returns:
            ValidatorSession

        Raises:
            MRFError: If a rule reads a column outside the expected columns
        """
        layout = detection.layout
        rules = self.build_rules(version, layout, detection.code_count, detection.payer_plans, reference_date)
        alert_rules = self.build_alert_rules(
            version, layout, detection.code_count, detection.payer_plans, reference_date
        )

        expected_keys = frozenset(definition.label for definition in definitions)
        for name, forest in (("row rules", rules), ("alert rules", alert_rules)):
            unknown = sorted(referenced_fields(forest) - expected_keys)
            if unknown:
                raise unknown_rule_field_error(name, unknown[0])

        logger.debug(
            "Validator session built",
            version=str(version),
            layout=layout.value,
            code_count=detection.code_count,
            payer_plans=len(detection.payer_plans),
            rules=len(rules),
        )

        return ValidatorSession(
            version=version,
            layout=layout,
            code_count=detection.code_count,
            payer_plans=list(detection.payer_plans),
            columns=mapping,
            expected_keys=expected_keys,
            rules=rules,
            alert_rules=alert_rules,
            reference_date=reference_date,
        )

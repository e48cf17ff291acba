"""Eligibility Filter - hard filters over the tool catalog.

Removes tools the company cannot or should not adopt and records why.
Rules run in a fixed order (compliance, budget, tech savviness, fit) but
each rule is independent, so the composed result equals the intersection
of the individual filters.
"""

from typing import Optional

from tool_catalog.schema import ComplexityTier, PricingTier, Tool

from .config import RecommenderConfig, get_config
from .schema import (
    CompanyAssessment,
    ComplianceRequirement,
    CostSensitivity,
    ExcludedTool,
    ExclusionReasonDetail,
    TechSavviness,
)


class EligibilityFilter:
    """Filters tools based on hard eligibility rules.

    A tool is excluded if any rule fails. Every failed rule is recorded,
    not just the first, so the exclusion report shows all blockers.
    """

    # Complexity tiers each savviness level can handle
    ALLOWED_COMPLEXITY = {
        TechSavviness.NEWBIE: {ComplexityTier.SIMPLE, ComplexityTier.MODERATE},
        TechSavviness.DECENT: {ComplexityTier.SIMPLE, ComplexityTier.MODERATE, ComplexityTier.ADVANCED},
        TechSavviness.NINJA: set(ComplexityTier),
    }

    # How each compliance requirement is satisfied
    COMPLIANCE_CHECKS = {
        ComplianceRequirement.SOC2: lambda t: t.soc2,
        ComplianceRequirement.HIPAA: lambda t: t.hipaa,
        ComplianceRequirement.EU_DATA_RESIDENCY: lambda t: t.eu_data_residency or t.gdpr,
        ComplianceRequirement.SELF_HOSTED: lambda t: t.self_hosted,
        ComplianceRequirement.AIR_GAPPED: lambda t: t.air_gapped,
    }

    def __init__(self, config: Optional[RecommenderConfig] = None):
        cfg = (config or get_config()).filters
        self.low_budget_threshold = cfg.low_budget_threshold
        self.balanced_budget_tolerance = cfg.balanced_budget_tolerance

    def filter(
        self,
        tools: list[Tool],
        assessment: CompanyAssessment,
    ) -> tuple[list[Tool], list[ExcludedTool]]:
        """Filter tools based on eligibility rules.

        Args:
            tools: All tools from the catalog
            assessment: Normalized company assessment

        Returns:
            Tuple of (eligible_tools, excluded_tools), eligible in input order
        """
        eligible = []
        excluded = []

        for tool in tools:
            exclusion_reasons = self._check_eligibility(tool, assessment)

            if exclusion_reasons:
                excluded.append(ExcludedTool(
                    tool_id=tool.id,
                    name=tool.display_name,
                    reasons=exclusion_reasons,
                ))
            else:
                eligible.append(tool)

        return eligible, excluded

    def filter_by_compliance(self, tools: list[Tool], assessment: CompanyAssessment) -> list[Tool]:
        return [t for t in tools if self._check_compliance(t, assessment) is None]

    def filter_by_budget(self, tools: list[Tool], assessment: CompanyAssessment) -> list[Tool]:
        return [t for t in tools if self._check_budget(t, assessment) is None]

    def filter_by_tech_savviness(self, tools: list[Tool], assessment: CompanyAssessment) -> list[Tool]:
        return [t for t in tools if self._check_tech_savviness(t, assessment) is None]

    def filter_by_fit(self, tools: list[Tool], assessment: CompanyAssessment) -> list[Tool]:
        return [t for t in tools if not self._check_fit(t, assessment)]

    def _check_eligibility(
        self,
        tool: Tool,
        assessment: CompanyAssessment,
    ) -> list[ExclusionReasonDetail]:
        """Check all eligibility rules for a tool.

        Returns list of exclusion reasons (empty if eligible).
        """
        reasons = []

        # Rule 1: Compliance (high-stakes only)
        compliance_reason = self._check_compliance(tool, assessment)
        if compliance_reason:
            reasons.append(compliance_reason)

        # Rule 2: Budget
        budget_reason = self._check_budget(tool, assessment)
        if budget_reason:
            reasons.append(budget_reason)

        # Rule 3: Tech savviness vs complexity
        savviness_reason = self._check_tech_savviness(tool, assessment)
        if savviness_reason:
            reasons.append(savviness_reason)

        # Rule 4: Team size and stage fit
        reasons.extend(self._check_fit(tool, assessment))

        return reasons

    def _check_compliance(
        self,
        tool: Tool,
        assessment: CompanyAssessment,
    ) -> Optional[ExclusionReasonDetail]:
        """Every declared requirement must be met; there is no partial credit."""
        if not assessment.requires_compliance:
            return None

        missing = [
            req.value for req in assessment.compliance_requirements
            if not self.COMPLIANCE_CHECKS[req](tool)
        ]
        if not missing:
            return None

        return ExclusionReasonDetail(
            reason_type="compliance",
            description=f"Tool does not meet required compliance: {', '.join(missing)}",
            blocking_value=", ".join(missing),
            required_value=", ".join(r.value for r in assessment.compliance_requirements),
        )

    def _check_budget(
        self,
        tool: Tool,
        assessment: CompanyAssessment,
    ) -> Optional[ExclusionReasonDetail]:
        """Budget rule, branching on cost sensitivity.

        Free-forever tools and tools with unknown cost always pass.
        """
        cost = tool.estimated_cost_per_user
        if tool.has_free_forever or cost is None:
            return None

        budget = assessment.budget_per_user
        sensitivity = assessment.cost_sensitivity

        if sensitivity == CostSensitivity.PRICE_FIRST:
            if cost > budget:
                return ExclusionReasonDetail(
                    reason_type="budget",
                    description=f"${cost:.2f}/user exceeds the ${budget:.2f} budget (price-first)",
                    blocking_value=f"{cost:.2f}",
                    required_value=f"<= {budget:.2f}",
                )
        elif sensitivity == CostSensitivity.BALANCED:
            ceiling = budget * self.balanced_budget_tolerance
            if cost > ceiling:
                return ExclusionReasonDetail(
                    reason_type="budget",
                    description=(
                        f"${cost:.2f}/user exceeds {self.balanced_budget_tolerance}x "
                        f"the ${budget:.2f} budget"
                    ),
                    blocking_value=f"{cost:.2f}",
                    required_value=f"<= {ceiling:.2f}",
                )
        elif sensitivity == CostSensitivity.VALUE_FIRST:
            if budget < self.low_budget_threshold and tool.pricing_tier == PricingTier.ENTERPRISE:
                return ExclusionReasonDetail(
                    reason_type="budget",
                    description="Enterprise pricing is out of reach for a budget this low",
                    blocking_value=tool.pricing_tier.value,
                    required_value=f"budget >= {self.low_budget_threshold:.2f}",
                )

        return None

    def _check_tech_savviness(
        self,
        tool: Tool,
        assessment: CompanyAssessment,
    ) -> Optional[ExclusionReasonDetail]:
        allowed = self.ALLOWED_COMPLEXITY[assessment.tech_savviness]
        if tool.complexity in allowed:
            return None

        return ExclusionReasonDetail(
            reason_type="tech_savviness",
            description=(
                f"{tool.complexity.value.capitalize()} tools are too complex for a "
                f"{assessment.tech_savviness.value} team"
            ),
            blocking_value=tool.complexity.value,
            required_value=", ".join(sorted(c.value for c in allowed)),
        )

    def _check_fit(
        self,
        tool: Tool,
        assessment: CompanyAssessment,
    ) -> list[ExclusionReasonDetail]:
        """Team size and stage must appear in the tool's best-for sets.

        An empty best-for set means the tool suits everyone on that axis.
        """
        reasons = []

        if tool.best_for_team_size and assessment.team_size not in tool.best_for_team_size:
            reasons.append(ExclusionReasonDetail(
                reason_type="team_size_fit",
                description=f"Tool is not aimed at {assessment.team_size.value} teams",
                blocking_value=assessment.team_size.value,
                required_value=", ".join(s.value for s in tool.best_for_team_size),
            ))

        if tool.best_for_stage and assessment.stage not in tool.best_for_stage:
            reasons.append(ExclusionReasonDetail(
                reason_type="stage_fit",
                description=f"Tool is not aimed at {assessment.stage.value} companies",
                blocking_value=assessment.stage.value,
                required_value=", ".join(s.value for s in tool.best_for_stage),
            ))

        return reasons

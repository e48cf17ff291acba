"""Decision Pipeline - the request-level half of a recommendation.

Turns a normalized assessment into the context every scenario builds on:

1. Match the company's current tools against the catalog
2. Hard-filter the catalog (compliance, budget, tech savviness, fit)
3. Build the request weight profile and rank the eligible tools
4. Resolve the anchor tool
5. Seed the displacement list from redundancy among current tools
"""

import logging
import re
from typing import Optional

from tool_catalog.schema import ReplacementContext, Tool

from .anchor import resolve_anchor
from .config import RecommenderConfig, get_config
from .eligibility_filter import EligibilityFilter
from .integration import IntegrationScorer
from .providers import CatalogProvider, NameMatcher
from .redundancy import RedundancyResolver
from .schema import (
    AutomationPhilosophy,
    CompanyAssessment,
    PipelineContext,
)
from .scorer import ToolScorer
from .weights import build_weight_profile

logger = logging.getLogger(__name__)

TOOL_NAME_SEPARATORS = re.compile(r"[,;]+")


def split_tool_names(current_tools: str) -> list[str]:
    """Split a free-text tool list on commas and semicolons, dropping blanks."""
    names = [n.strip() for n in TOOL_NAME_SEPARATORS.split(current_tools or "")]
    return list(dict.fromkeys(n for n in names if n))


def build_replacement_context(assessment: CompanyAssessment) -> ReplacementContext:
    """Company attributes replacement rules are matched against."""
    return ReplacementContext(
        cost_sensitivity=assessment.cost_sensitivity,
        tech_savviness=assessment.tech_savviness,
        team_size=assessment.team_size,
        requires_compliance=(
            list(assessment.compliance_requirements) if assessment.requires_compliance else []
        ),
        prefer_ai_native=assessment.philosophy == AutomationPhilosophy.AUTO_PILOT,
    )


class DecisionPipeline:
    """Runs the per-request steps shared by all scenarios."""

    def __init__(
        self,
        catalog_provider: CatalogProvider,
        name_matcher: NameMatcher,
        integration_scorer: IntegrationScorer,
        redundancy_resolver: RedundancyResolver,
        config: Optional[RecommenderConfig] = None,
    ):
        self.catalog_provider = catalog_provider
        self.name_matcher = name_matcher
        self.redundancy_resolver = redundancy_resolver
        self.config = config or get_config()
        self.eligibility_filter = EligibilityFilter(self.config)
        self.scorer = ToolScorer(integration_scorer, self.config)

    def run(self, assessment: CompanyAssessment) -> PipelineContext:
        """Build the pipeline context for one assessment."""
        user_tools, unmatched = self.match_user_tools(assessment.current_tools)
        if unmatched:
            logger.info("Unrecognized tools: %s", ", ".join(unmatched))

        all_tools = self.catalog_provider.get_all_tools()
        eligible, excluded = self.eligibility_filter.filter(all_tools, assessment)
        logger.info("%d of %d tools eligible", len(eligible), len(all_tools))

        weights = build_weight_profile(assessment.pain_points, assessment.stage, self.config)
        scored = self.scorer.score(eligible, assessment, weights, [t.id for t in user_tools])

        anchor = resolve_anchor(assessment.anchor_type, assessment.other_anchor_text, user_tools)
        if anchor:
            logger.info("Anchor tool: %s", anchor.display_name)

        suggestions = self.redundancy_resolver.analyze_redundancies(
            user_tools,
            anchor_id=anchor.id if anchor else None,
        )

        return PipelineContext(
            assessment=assessment,
            user_tools=user_tools,
            unmatched_tool_names=unmatched,
            allowed_tools=[s.tool for s in scored],
            scored_tools=scored,
            excluded=excluded,
            weight_profile=weights,
            anchor_tool=anchor,
            displacement_list=list(dict.fromkeys(s.displace_name for s in suggestions)),
            replacement_context=build_replacement_context(assessment),
        )

    def match_user_tools(self, current_tools: str) -> tuple[list[Tool], list[str]]:
        """Resolve free-text tool names to catalog tools.

        Returns:
            Tuple of (matched tools without duplicates, unmatched names)
        """
        names = split_tool_names(current_tools)
        if not names:
            return [], []

        matches = self.name_matcher.match_tool_names(names)
        tools: list[Tool] = []
        unmatched = []
        for name in names:
            tool = matches.get(name)
            if tool is None:
                unmatched.append(name)
            elif all(t.id != tool.id for t in tools):
                tools.append(tool)
        return tools, unmatched

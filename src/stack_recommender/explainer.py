"""Explainer - rationale and cross-scenario summary.

Gives every scenario a static explanation of what it optimizes for plus
messages tied to the company's own pain points, and summarizes how the
three scenarios compare.
"""

from typing import Optional

from .schema import (
    BuiltScenario,
    CompanyAssessment,
    PainPoint,
    PipelineContext,
    RecommendationSummary,
    ScenarioRationale,
    ScenarioType,
)


SCENARIO_RATIONALE_DATA = {
    ScenarioType.MONO_STACK: {
        "goal": "Minimize context-switching by consolidating into the fewest tools possible",
        "key_principle": "One tool should cover multiple workflow phases; fewer integrations mean less friction",
        "best_for_generic": [
            "Solo or small teams wanting simplicity",
            "Budget-conscious teams reducing per-seat costs",
            "Teams overwhelmed by tool sprawl",
        ],
        "decision_framing": (
            "Choose this if your top priority is simplicity and reducing the number "
            "of tools your team juggles daily"
        ),
        "complexity_note": "Lowest complexity: fewer tools mean fewer integration points to maintain",
    },
    ScenarioType.NATIVE_INTEGRATOR: {
        "goal": "Best-of-breed tools per function, optimized for native integration quality",
        "key_principle": "One specialized tool per major function, connected via native integrations rather than glue code",
        "best_for_generic": [
            "Growing teams needing specialized capabilities",
            "Teams that value deep integration between tools",
            "Organizations with diverse functional needs",
        ],
        "decision_framing": (
            "Choose this if you want the best tool for each job, with confidence "
            "they will work together"
        ),
        "complexity_note": "Moderate complexity: more tools, but each earns its place through deep integration",
    },
    ScenarioType.AGENTIC_LEAN: {
        "goal": "Maximize AI automation across every workflow phase",
        "key_principle": "Every tool must have AI capabilities; human effort is reserved for high-judgment decisions",
        "best_for_generic": [
            "Tech-forward teams embracing AI-first workflows",
            "Teams wanting to automate repetitive tasks",
            "Organizations pursuing maximum efficiency",
        ],
        "decision_framing": (
            "Choose this if you want AI handling routine work so your team "
            "focuses on strategy and creative work"
        ),
        "complexity_note": "Higher capability complexity: AI tools are powerful but need tuning and oversight",
    },
}

# (pain point, scenario) -> personalized message
USER_RELEVANCE_RULES = [
    (PainPoint.TOO_MANY_TOOLS, ScenarioType.MONO_STACK,
     "Directly addresses your tool consolidation concern by reducing to 3-4 core tools"),
    (PainPoint.TOO_MANY_TOOLS, ScenarioType.NATIVE_INTEGRATOR,
     "Replaces redundant tools with purpose-built alternatives that integrate natively"),
    (PainPoint.TOO_MANY_TOOLS, ScenarioType.AGENTIC_LEAN,
     "AI tools often replace multiple single-purpose tools with one capable platform"),
    (PainPoint.TOOLS_DONT_TALK, ScenarioType.NATIVE_INTEGRATOR,
     "Every tool is selected for native integration quality, so data stops living in silos"),
    (PainPoint.TOOLS_DONT_TALK, ScenarioType.MONO_STACK,
     "Fewer tools means fewer integration points that can break"),
    (PainPoint.TOOLS_DONT_TALK, ScenarioType.AGENTIC_LEAN,
     "AI tools often act as connective tissue between your workflow phases"),
    (PainPoint.OVERPAYING, ScenarioType.MONO_STACK,
     "Consolidation eliminates redundant subscriptions, directly cutting costs"),
    (PainPoint.OVERPAYING, ScenarioType.AGENTIC_LEAN,
     "AI automation reduces headcount needs, offsetting tool costs"),
    (PainPoint.TOO_MUCH_MANUAL_WORK, ScenarioType.AGENTIC_LEAN,
     "AI agents handle repetitive tasks end-to-end, freeing your team for creative work"),
    (PainPoint.TOO_MUCH_MANUAL_WORK, ScenarioType.NATIVE_INTEGRATOR,
     "Native integrations automate handoffs between tools, so there is less copy-paste"),
    (PainPoint.DISORGANIZED, ScenarioType.MONO_STACK,
     "A single hub means one place to find everything"),
    (PainPoint.DISORGANIZED, ScenarioType.NATIVE_INTEGRATOR,
     "Specialized tools with strong integrations keep data organized and accessible"),
    (PainPoint.SLOW_APPROVALS, ScenarioType.AGENTIC_LEAN,
     "AI can pre-review and fast-track approvals, reducing bottlenecks"),
    (PainPoint.SLOW_APPROVALS, ScenarioType.NATIVE_INTEGRATOR,
     "Integrated notification workflows keep approvals moving without manual nudges"),
    (PainPoint.NO_VISIBILITY, ScenarioType.NATIVE_INTEGRATOR,
     "Best-of-breed analytics tools provide deep visibility across your workflow"),
    (PainPoint.NO_VISIBILITY, ScenarioType.AGENTIC_LEAN,
     "AI-powered analytics surface insights you would miss with manual reporting"),
]


class ScenarioExplainer:
    """Generates rationales and the cross-scenario summary.

    Principles:
    - Every scenario explains what it optimizes for
    - Personalized messages only when a pain point actually applies
    """

    def build_rationale(
        self,
        scenario_type: ScenarioType,
        assessment: CompanyAssessment,
    ) -> ScenarioRationale:
        """Static rationale for scenario_type plus pain-point specific messages."""
        data = SCENARIO_RATIONALE_DATA[scenario_type]
        pain_points = set(assessment.pain_points)

        best_for_user = [
            message for pain_point, scenario, message in USER_RELEVANCE_RULES
            if scenario == scenario_type and pain_point in pain_points
        ]

        return ScenarioRationale(
            goal=data["goal"],
            key_principle=data["key_principle"],
            best_for_generic=list(data["best_for_generic"]),
            best_for_user=best_for_user,
            decision_framing=data["decision_framing"],
            complexity_note=data["complexity_note"],
        )

    def generate_summary(
        self,
        scenarios: list[BuiltScenario],
        context: PipelineContext,
    ) -> RecommendationSummary:
        """Summarize how the scenarios compare.

        Args:
            scenarios: The three built scenarios
            context: Pipeline context they were built from

        Returns:
            Summary naming the cheapest, leanest and most consolidating option
        """
        populated = [s for s in scenarios if s.tools]

        cheapest = self._best(populated, key=lambda s: s.estimated_monthly_cost_per_user)
        leanest = self._best(populated, key=lambda s: len(s.tools))
        biggest = self._best(populated, key=lambda s: -s.complexity_reduction_score)

        drivers = []
        weights = context.weight_profile
        top = max(weights.DIMENSIONS, key=lambda d: getattr(weights, d))
        drivers.append(f"Ranking weighted most heavily toward {top} ({getattr(weights, top):.0%})")
        if context.anchor_tool:
            drivers.append(f"Built around your anchor tool {context.anchor_tool.display_name}")
        if context.assessment.requires_compliance:
            reqs = ", ".join(r.value for r in context.assessment.compliance_requirements)
            drivers.append(f"Only tools meeting {reqs}")
        if context.excluded:
            drivers.append(f"{len(context.excluded)} tools filtered out before scoring")

        return RecommendationSummary(
            cheapest_scenario=cheapest.title if cheapest else None,
            leanest_scenario=leanest.title if leanest else None,
            biggest_reduction_scenario=(
                biggest.title if biggest and biggest.complexity_reduction_score > 0 else None
            ),
            anchor_tool=context.anchor_tool.display_name if context.anchor_tool else None,
            key_drivers=drivers,
        )

    @staticmethod
    def _best(scenarios: list[BuiltScenario], key) -> Optional[BuiltScenario]:
        # min() keeps the first scenario on ties
        return min(scenarios, key=key) if scenarios else None

"""Tests for scenario rationales and the cross-scenario summary."""

import pytest

from stack_recommender.explainer import ScenarioExplainer
from stack_recommender.schema import (
    BuiltScenario,
    ComplianceRequirement,
    ExcludedTool,
    PainPoint,
    PipelineContext,
    ProductSensitivity,
    ScenarioType,
    WeightProfile,
)


@pytest.fixture
def explainer():
    return ScenarioExplainer()


def _scenario(scenario_type, tools, cost=0.0, reduction=0):
    return BuiltScenario(
        title=scenario_type.display_title,
        scenario_type=scenario_type,
        tools=tools,
        estimated_monthly_cost_per_user=cost,
        complexity_reduction_score=reduction,
    )


class TestBuildRationale:
    """Tests for build_rationale."""

    def test_static_content(self, explainer, make_assessment):
        rationale = explainer.build_rationale(ScenarioType.AGENTIC_LEAN, make_assessment())
        assert rationale.goal == "Maximize AI automation across every workflow phase"
        assert len(rationale.best_for_generic) == 3
        assert rationale.best_for_user == []

    def test_pain_point_messages(self, explainer, make_assessment):
        assessment = make_assessment(pain_points=[PainPoint.TOO_MANY_TOOLS, PainPoint.OVERPAYING])
        rationale = explainer.build_rationale(ScenarioType.MONO_STACK, assessment)
        assert len(rationale.best_for_user) == 2
        assert "consolidation" in rationale.best_for_user[0]

    def test_unrelated_pain_point(self, explainer, make_assessment):
        """Overpaying has no message for the native integrator."""
        assessment = make_assessment(pain_points=[PainPoint.OVERPAYING])
        rationale = explainer.build_rationale(ScenarioType.NATIVE_INTEGRATOR, assessment)
        assert rationale.best_for_user == []


class TestGenerateSummary:
    """Tests for generate_summary."""

    def test_cheapest_and_leanest(self, explainer, make_assessment, make_tool):
        a, b, c = make_tool("a"), make_tool("b"), make_tool("c")
        scenarios = [
            _scenario(ScenarioType.MONO_STACK, [a, b], cost=20, reduction=50),
            _scenario(ScenarioType.NATIVE_INTEGRATOR, [a, b, c], cost=10, reduction=70),
            _scenario(ScenarioType.AGENTIC_LEAN, [], cost=0),
        ]
        summary = explainer.generate_summary(scenarios, PipelineContext(assessment=make_assessment()))

        assert summary.cheapest_scenario == ScenarioType.NATIVE_INTEGRATOR.display_title
        assert summary.leanest_scenario == ScenarioType.MONO_STACK.display_title
        assert summary.biggest_reduction_scenario == ScenarioType.NATIVE_INTEGRATOR.display_title

    def test_ties_keep_scenario_order(self, explainer, make_assessment, make_tool):
        scenarios = [
            _scenario(ScenarioType.MONO_STACK, [make_tool("a")], cost=10),
            _scenario(ScenarioType.NATIVE_INTEGRATOR, [make_tool("b")], cost=10),
        ]
        summary = explainer.generate_summary(scenarios, PipelineContext(assessment=make_assessment()))
        assert summary.cheapest_scenario == ScenarioType.MONO_STACK.display_title

    def test_no_reduction(self, explainer, make_assessment, make_tool):
        scenarios = [_scenario(ScenarioType.MONO_STACK, [make_tool("a")])]
        summary = explainer.generate_summary(scenarios, PipelineContext(assessment=make_assessment()))
        assert summary.biggest_reduction_scenario is None

    def test_all_empty(self, explainer, make_assessment):
        scenarios = [_scenario(t, []) for t in ScenarioType]
        summary = explainer.generate_summary(scenarios, PipelineContext(assessment=make_assessment()))
        assert summary.cheapest_scenario is None
        assert summary.leanest_scenario is None

    def test_key_drivers(self, explainer, make_assessment, make_tool):
        context = PipelineContext(
            assessment=make_assessment(
                sensitivity=ProductSensitivity.HIGH_STAKES,
                compliance_requirements=[ComplianceRequirement.HIPAA],
            ),
            weight_profile=WeightProfile(fit=0.4, popularity=0.2, cost=0.2, ai=0.1, integration=0.1),
            anchor_tool=make_tool("notion", display_name="Notion"),
            excluded=[ExcludedTool(tool_id="x", name="X", reasons=[])],
        )
        summary = explainer.generate_summary([], context)

        assert summary.key_drivers == [
            "Ranking weighted most heavily toward fit (40%)",
            "Built around your anchor tool Notion",
            "Only tools meeting hipaa",
            "1 tools filtered out before scoring",
        ]
        assert summary.anchor_tool == "Notion"

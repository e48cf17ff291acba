"""Tests for the three scenario strategies and the scenario builder."""

from pathlib import Path

import pytest

from tool_catalog.catalog import CatalogStore
from tool_catalog.schema import (
    IntegrationEdge,
    IntegrationQuality,
    RedundancyStrength,
    ToolCatalog,
    ToolCategory,
    WorkflowPhase,
)
from stack_recommender import scenario_builder
from stack_recommender.config import ToolRange
from stack_recommender.explainer import ScenarioExplainer
from stack_recommender.integration import IntegrationScorer
from stack_recommender.normalizer import load_assessment_file
from stack_recommender.phases import DEFAULT_PHASE_CATEGORY_MAP, MultiPhaseResolution
from stack_recommender.pipeline import DecisionPipeline
from stack_recommender.redundancy import RedundancyResolver
from stack_recommender.scenario_scoring import ScenarioToolScore
from stack_recommender.scenario_builder import (
    MonoStackStrategy,
    NativeIntegratorStrategy,
    ScenarioBuilder,
    ScenarioServices,
    ScenarioState,
    calculate_complexity_reduction,
    calculate_stack_cost,
)
from stack_recommender.schema import (
    AnchorType,
    AutomationPhilosophy,
    CompanyAssessment,
    PipelineContext,
    ScenarioType,
    TeamSize,
    WeightProfile,
)


ASSESSMENTS_DIR = Path(__file__).parent.parent / "data" / "assessments"


def _builder(store, **kwargs) -> ScenarioBuilder:
    return ScenarioBuilder(
        integration_scorer=IntegrationScorer(store),
        redundancy_resolver=RedundancyResolver(store, max_workers=2),
        **kwargs,
    )


def _pipeline_context(store, assessment) -> PipelineContext:
    pipeline = DecisionPipeline(
        catalog_provider=store,
        name_matcher=store,
        integration_scorer=IntegrationScorer(store),
        redundancy_resolver=RedundancyResolver(store, max_workers=2),
    )
    return pipeline.run(assessment)


def _by_type(scenarios):
    return {s.scenario_type: s for s in scenarios}


def _state(assessment) -> ScenarioState:
    return ScenarioState(
        context=PipelineContext(assessment=assessment),
        weights=WeightProfile(),
        tool_range=ToolRange(min=0, max=5),
        pool=[],
    )


def _scored(tool, score) -> ScenarioToolScore:
    return ScenarioToolScore(
        tool=tool,
        composite_score=score,
        fit_score=0,
        popularity_score=0,
        cost_score=0,
        ai_score=0,
        integration_score=0,
        synergy_bonus=0,
        familiarity_bonus=0,
    )


@pytest.fixture
def services():
    """Services for calling strategy steps directly, without any lookups."""
    store = CatalogStore(ToolCatalog())
    return ScenarioServices(
        integration=IntegrationScorer(store),
        redundancy=RedundancyResolver(store, max_workers=1),
        explainer=ScenarioExplainer(),
        io_pool=None,
        multi_phase=MultiPhaseResolution(),
        phase_map=DEFAULT_PHASE_CATEGORY_MAP,
    )


class BrokenClusters:
    def find_clusters_for_tools(self, tools, min_confidence=60, min_matched_tools=2):
        raise ConnectionError("cluster service unavailable")


class BrokenPhases:
    def get_phase_capabilities(self):
        raise ConnectionError("phase service unavailable")

    def get_phase_recommendations(self):
        raise ConnectionError("phase service unavailable")


class ExplodingStrategy(MonoStackStrategy):
    def fill(self, state):
        raise RuntimeError("boom")


# =============================================================================
# Stack Metrics
# =============================================================================


class TestStackMetrics:
    """Tests for calculate_stack_cost and calculate_complexity_reduction."""

    def test_cost_sums_known_costs(self, make_tool):
        tools = [
            make_tool("a", estimated_cost_per_user=8.75),
            make_tool("b", estimated_cost_per_user=None),
            make_tool("c", estimated_cost_per_user=4.1),
        ]
        assert calculate_stack_cost(tools) == 12.85

    def test_cost_of_empty_stack(self):
        assert calculate_stack_cost([]) == 0

    @pytest.mark.parametrize("original,new,expected", [
        (0, 3, 0),
        (5, 5, 0),
        (3, 5, 0),
        (8, 3, 63),
        (4, 0, 100),
        (3, 2, 33),
    ])
    def test_complexity_reduction(self, original, new, expected):
        assert calculate_complexity_reduction(original, new) == expected


# =============================================================================
# Builder
# =============================================================================


class TestScenarioBuilder:
    """Tests for build_all_scenarios."""

    def test_always_three_scenarios_in_order(self):
        store = CatalogStore(ToolCatalog())
        context = PipelineContext(assessment=CompanyAssessment())
        scenarios = _builder(store).build_all_scenarios(context)

        assert [s.scenario_type for s in scenarios] == list(ScenarioType)
        assert all(s.tools == [] for s in scenarios)
        assert all(s.rationale is not None for s in scenarios)
        assert all(len(s.workflow.steps) == 7 for s in scenarios)

    def test_solo_founder_scenarios(self, sample_store):
        assessment = load_assessment_file(ASSESSMENTS_DIR / "solo-founder.json")
        context = _pipeline_context(sample_store, assessment)
        scenarios = _by_type(_builder(sample_store).build_all_scenarios(context))

        mono = scenarios[ScenarioType.MONO_STACK]
        assert "notion" in mono.tool_ids
        assert mono.anchor_tool_id == "notion"
        assert len(mono.tools) <= 4

        for scenario in scenarios.values():
            assert len(scenario.tool_ids) == len(set(scenario.tool_ids))
            assert scenario.target_min_tools <= scenario.target_max_tools

    def test_every_tool_comes_from_the_allowed_set(self, sample_store):
        assessment = load_assessment_file(ASSESSMENTS_DIR / "health-startup.json")
        context = _pipeline_context(sample_store, assessment)
        allowed = {t.id for t in context.allowed_tools}
        if context.anchor_tool:
            allowed.add(context.anchor_tool.id)

        for scenario in _builder(sample_store).build_all_scenarios(context):
            assert set(scenario.tool_ids) <= allowed
            assert all(t.hipaa and t.soc2 for t in scenario.tools)

    def test_no_full_redundancy_inside_a_scenario(self, sample_store, sample_catalog):
        assessment = load_assessment_file(ASSESSMENTS_DIR / "dev-team.yaml")
        context = _pipeline_context(sample_store, assessment)

        for scenario in _builder(sample_store).build_all_scenarios(context):
            ids = set(scenario.tool_ids)
            for relation in sample_catalog.redundancies:
                if relation.strength == RedundancyStrength.FULL:
                    assert not (relation.tool_a_id in ids and relation.tool_b_id in ids)

    def test_displacement_lists_dropped_user_tools(self, sample_store):
        assessment = load_assessment_file(ASSESSMENTS_DIR / "dev-team.yaml")
        context = _pipeline_context(sample_store, assessment)

        for scenario in _builder(sample_store).build_all_scenarios(context):
            kept = set(scenario.tool_ids)
            for user_tool in context.user_tools:
                if user_tool.id not in kept:
                    assert user_tool.display_name in scenario.displacement_list
            assert len(scenario.displacement_list) == len(set(scenario.displacement_list))

    def test_cluster_failure_leaves_clusters_empty(self, sample_store):
        assessment = load_assessment_file(ASSESSMENTS_DIR / "solo-founder.json")
        context = _pipeline_context(sample_store, assessment)
        scenarios = _builder(sample_store, cluster_provider=BrokenClusters()).build_all_scenarios(context)

        assert len(scenarios) == 3
        assert all(s.matched_clusters == [] for s in scenarios)
        assert any(s.tools for s in scenarios)

    def test_phase_data_failure_falls_back_to_defaults(self, sample_store):
        assessment = load_assessment_file(ASSESSMENTS_DIR / "solo-founder.json")
        context = _pipeline_context(sample_store, assessment)
        scenarios = _builder(sample_store, phase_provider=BrokenPhases()).build_all_scenarios(context)
        assert [s.scenario_type for s in scenarios] == list(ScenarioType)

    def test_failed_strategy_yields_empty_scenario(self, sample_store, monkeypatch):
        monkeypatch.setitem(scenario_builder.STRATEGY_REGISTRY, ScenarioType.MONO_STACK, ExplodingStrategy)
        assessment = load_assessment_file(ASSESSMENTS_DIR / "solo-founder.json")
        context = _pipeline_context(sample_store, assessment)
        scenarios = _builder(sample_store).build_all_scenarios(context)

        mono = scenarios[0]
        assert mono.scenario_type == ScenarioType.MONO_STACK
        assert mono.tools == []
        assert "boom" in mono.build_notes[0]
        assert scenarios[1].tools


# =============================================================================
# Strategies
# =============================================================================


class TestMonoStack:
    """Mono-stack selection."""

    def test_seeds_with_multi_phase_tool_without_anchor(self, sample_store):
        assessment = CompanyAssessment(team_size=TeamSize.SMALL, budget_per_user=50)
        context = _pipeline_context(sample_store, assessment)
        mono = _builder(sample_store, phase_provider=sample_store).build_all_scenarios(context)[0]

        assert mono.tools
        assert mono.anchor_tool_id is None
        assert any("multi-phase" in note for note in mono.build_notes)

    def test_never_exceeds_ceiling(self, sample_store):
        assessment = CompanyAssessment(team_size=TeamSize.ENTERPRISE, budget_per_user=200)
        context = _pipeline_context(sample_store, assessment)
        mono = _builder(sample_store).build_all_scenarios(context)[0]
        assert mono.target_max_tools == 4
        assert len(mono.tools) <= 4

    def test_at_most_one_communication_tool(self, sample_store):
        assessment = load_assessment_file(ASSESSMENTS_DIR / "solo-founder.json")
        context = _pipeline_context(sample_store, assessment)
        mono = _builder(sample_store).build_all_scenarios(context)[0]
        assert sum(1 for t in mono.tools if t.category == ToolCategory.COMMUNICATION) <= 1


class TestNativeIntegrator:
    """Native integrator anchor handling."""

    @pytest.fixture
    def tools(self, make_tool):
        return {
            "weak": make_tool(
                "weak",
                category=ToolCategory.DOCUMENTATION,
                popularity_score=0,
                estimated_cost_per_user=500,
                best_for_team_size=[TeamSize.LARGE],
            ),
            "strong": make_tool(
                "strong",
                category=ToolCategory.DOCUMENTATION,
                popularity_score=100,
                estimated_cost_per_user=0,
                has_free_forever=True,
                has_ai_features=True,
            ),
        }

    def _context(self, tools, anchor_id):
        anchor = tools[anchor_id]
        return PipelineContext(
            assessment=CompanyAssessment(anchor_type=AnchorType.DOC_CENTRIC, budget_per_user=20),
            user_tools=[anchor],
            allowed_tools=list(tools.values()),
            anchor_tool=anchor,
        )

    def test_anchor_is_kept_when_no_alternative_is_decisively_better(self, tools):
        store = CatalogStore(ToolCatalog(tools=list(tools.values())))
        scenarios = _by_type(_builder(store).build_all_scenarios(self._context(tools, "strong")))

        native = scenarios[ScenarioType.NATIVE_INTEGRATOR]
        assert native.anchor_tool_id == "strong"
        assert native.tool_ids == ["strong"]

    def test_decisively_better_tool_replaces_anchor(self, tools):
        store = CatalogStore(ToolCatalog(tools=list(tools.values())))
        scenarios = _by_type(_builder(store).build_all_scenarios(self._context(tools, "weak")))

        native = scenarios[ScenarioType.NATIVE_INTEGRATOR]
        assert native.tool_ids == ["strong"]
        assert native.anchor_tool_id is None
        assert any("replaced anchor" in note for note in native.build_notes)

        # Only the native integrator challenges its anchor
        mono = scenarios[ScenarioType.MONO_STACK]
        assert mono.anchor_tool_id == "weak"

    def test_categories_follow_desired_capabilities_and_phase_priorities(self, services):
        assessment = CompanyAssessment(
            desired_capabilities=[ToolCategory.ANALYTICS, ToolCategory.DESIGN, ToolCategory.DOCUMENTATION],
            phase_priorities=[WorkflowPhase.DESIGN, WorkflowPhase.ITERATE],
        )
        strategy = NativeIntegratorStrategy(services)
        assert strategy.categories(_state(assessment)) == [
            ToolCategory.DESIGN,
            ToolCategory.DOCUMENTATION,
            ToolCategory.ANALYTICS,
        ]

    def test_categories_default_to_essentials(self, services):
        strategy = NativeIntegratorStrategy(services)
        assert strategy.categories(_state(CompanyAssessment())) == list(NativeIntegratorStrategy.ESSENTIAL_CATEGORIES)

    def test_quality_floor_needs_two_tools(self, services, make_tool):
        strategy = NativeIntegratorStrategy(services)
        state = _state(CompanyAssessment())
        weak = _scored(make_tool("weak"), 10)

        state.tools = [make_tool("a")]
        state.scores = {"a": 90}
        assert not strategy.below_floor(state, weak)

        state.tools.append(make_tool("b"))
        state.scores["b"] = 70
        # floor = 80 - 10
        assert strategy.below_floor(state, weak)
        assert not strategy.below_floor(state, _scored(make_tool("ok"), 70))

    def test_mono_stack_has_no_floor(self, services, make_tool):
        strategy = MonoStackStrategy(services)
        state = _state(CompanyAssessment())
        state.tools = [make_tool("a"), make_tool("b")]
        state.scores = {"a": 90, "b": 70}
        assert not strategy.below_floor(state, _scored(make_tool("weak"), 1))


class TestAgenticLean:
    """Agentic lean selection."""

    def test_only_ai_tools_plus_communication(self, sample_store):
        assessment = load_assessment_file(ASSESSMENTS_DIR / "dev-team.yaml")
        context = _pipeline_context(sample_store, assessment)
        agentic = _builder(sample_store).build_all_scenarios(context)[2]

        assert agentic.tools
        for tool in agentic.tools:
            assert tool.has_ai_features or tool.category == ToolCategory.COMMUNICATION
        assert sum(1 for t in agentic.tools if t.category == ToolCategory.COMMUNICATION) <= 1

    def test_non_ai_anchor_gets_ai_stand_in(self, make_tool):
        tools = [
            make_tool("paper", category=ToolCategory.PROJECT_MANAGEMENT, has_ai_features=False),
            make_tool("smart-pm", category=ToolCategory.PROJECT_MANAGEMENT, has_ai_features=True),
            make_tool("chat", category=ToolCategory.COMMUNICATION, has_ai_features=False),
        ]
        store = CatalogStore(ToolCatalog(
            tools=tools,
            integrations=[
                IntegrationEdge(source_tool_id="smart-pm", target_tool_id="chat", quality=IntegrationQuality.NATIVE),
            ],
        ))
        context = PipelineContext(
            assessment=CompanyAssessment(
                anchor_type=AnchorType.OTHER,
                other_anchor_text="paper",
                philosophy=AutomationPhilosophy.AUTO_PILOT,
                budget_per_user=20,
            ),
            user_tools=[tools[0]],
            allowed_tools=tools,
            anchor_tool=tools[0],
        )
        agentic = _builder(store).build_all_scenarios(context)[2]

        assert agentic.tool_ids[0] == "smart-pm"
        assert "paper" not in agentic.tool_ids
        assert agentic.anchor_tool_id is None
        # A non-AI communication tool is still allowed as the single chat slot
        assert "chat" in agentic.tool_ids
        assert "Paper" in agentic.displacement_list

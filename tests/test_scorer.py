"""Tests for the multi-factor tool scorer."""

import pytest

from tool_catalog.catalog import CatalogStore
from tool_catalog.schema import IntegrationEdge, IntegrationQuality, ToolCatalog
from stack_recommender.integration import IntegrationScorer
from stack_recommender.schema import (
    AutomationPhilosophy,
    Stage,
    TeamSize,
    WeightProfile,
)
from stack_recommender.scorer import (
    ToolScorer,
    compute_ai_score,
    compute_cost_score,
    compute_fit_score,
)


# =============================================================================
# Dimension Scores
# =============================================================================


class TestCostScore:
    """Cost efficiency relative to budget."""

    def test_free_forever_with_no_cost(self, make_tool):
        assert compute_cost_score(make_tool("a", has_free_forever=True, estimated_cost_per_user=0), 20) == 90
        assert compute_cost_score(make_tool("b", has_free_forever=True, estimated_cost_per_user=None), 20) == 90

    def test_unknown_cost_is_neutral(self, make_tool):
        assert compute_cost_score(make_tool("a", estimated_cost_per_user=None), 20) == 60

    def test_within_budget(self, make_tool):
        assert compute_cost_score(make_tool("a", estimated_cost_per_user=0), 20) == pytest.approx(90)
        assert compute_cost_score(make_tool("b", estimated_cost_per_user=10), 20) == pytest.approx(80)
        assert compute_cost_score(make_tool("c", estimated_cost_per_user=20), 20) == pytest.approx(70)

    def test_overage_is_relative_to_budget(self, make_tool):
        small = compute_cost_score(make_tool("a", estimated_cost_per_user=22), 20)
        large = compute_cost_score(make_tool("b", estimated_cost_per_user=110), 100)
        assert small == pytest.approx(46)
        assert large == pytest.approx(46)

    def test_overage_floors_at_ten(self, make_tool):
        assert compute_cost_score(make_tool("a", estimated_cost_per_user=500), 20) == 10

    def test_zero_budget_does_not_divide_by_zero(self, make_tool):
        assert compute_cost_score(make_tool("a", estimated_cost_per_user=5), 0) == 10


class TestFitScore:
    """Team-size and stage halves."""

    def test_no_preferences_is_full_fit(self, make_tool):
        assert compute_fit_score(make_tool("a"), TeamSize.SOLO, Stage.BOOTSTRAPPING) == 100

    def test_half_fit(self, make_tool):
        tool = make_tool("a", best_for_team_size=[TeamSize.LARGE])
        assert compute_fit_score(tool, TeamSize.SOLO, Stage.BOOTSTRAPPING) == 50

    def test_no_fit(self, make_tool):
        tool = make_tool("a", best_for_team_size=[TeamSize.LARGE], best_for_stage=[Stage.GROWTH])
        assert compute_fit_score(tool, TeamSize.SOLO, Stage.BOOTSTRAPPING) == 0


class TestAiScore:
    """AI readiness by philosophy."""

    @pytest.mark.parametrize("philosophy,with_ai,without_ai", [
        (AutomationPhilosophy.AUTO_PILOT, 100, 10),
        (AutomationPhilosophy.HYBRID, 80, 30),
        (AutomationPhilosophy.CO_PILOT, 60, 30),
    ])
    def test_ai_scores(self, make_tool, philosophy, with_ai, without_ai):
        assert compute_ai_score(make_tool("ai", has_ai_features=True), philosophy) == with_ai
        assert compute_ai_score(make_tool("plain"), philosophy) == without_ai


# =============================================================================
# ToolScorer
# =============================================================================


@pytest.fixture
def scorer_tools(make_tool):
    return [
        make_tool("hub", popularity_score=80),
        make_tool("spoke", popularity_score=80),
        make_tool("island", popularity_score=80),
    ]


@pytest.fixture
def tool_scorer(scorer_tools):
    catalog = ToolCatalog(
        tools=scorer_tools,
        integrations=[
            IntegrationEdge(source_tool_id="hub", target_tool_id="spoke", quality=IntegrationQuality.NATIVE),
        ],
    )
    return ToolScorer(IntegrationScorer(CatalogStore(catalog)))


class TestToolScorer:
    """Composite scoring and ranking."""

    def test_empty_input(self, tool_scorer, make_assessment):
        assert tool_scorer.score([], make_assessment(), WeightProfile(), []) == []

    def test_no_user_tools_gives_neutral_integration(self, tool_scorer, scorer_tools, make_assessment):
        scored = tool_scorer.score(scorer_tools, make_assessment(), WeightProfile(), [])
        assert all(s.breakdown.integration_score == 50 for s in scored)

    def test_unconnected_tool_gets_neutral_low(self, tool_scorer, scorer_tools, make_assessment):
        scored = tool_scorer.score(scorer_tools, make_assessment(), WeightProfile(), ["hub"])
        by_id = {s.tool.id: s for s in scored}
        assert by_id["spoke"].breakdown.integration_score == 100
        assert by_id["island"].breakdown.integration_score == 25

    def test_tool_is_not_scored_against_itself(self, tool_scorer, scorer_tools, make_assessment):
        scored = tool_scorer.score(scorer_tools, make_assessment(), WeightProfile(), ["hub"])
        by_id = {s.tool.id: s for s in scored}
        # hub is the only user tool, so it has nothing else to integrate with
        assert by_id["hub"].breakdown.integration_score == 50

    def test_sorted_descending(self, tool_scorer, scorer_tools, make_assessment):
        scored = tool_scorer.score(scorer_tools, make_assessment(), WeightProfile(), ["hub"])
        scores = [s.score for s in scored]
        assert scores == sorted(scores, reverse=True)
        assert scored[0].tool.id == "spoke"

    def test_ties_keep_input_order(self, tool_scorer, scorer_tools, make_assessment):
        scored = tool_scorer.score(scorer_tools, make_assessment(), WeightProfile(), [])
        assert [s.tool.id for s in scored] == ["hub", "spoke", "island"]

    def test_score_is_weighted_sum(self, tool_scorer, scorer_tools, make_assessment):
        weights = WeightProfile(fit=1, popularity=0, cost=0, ai=0, integration=0)
        scored = tool_scorer.score(scorer_tools, make_assessment(), weights, [])
        assert all(s.score == 100 for s in scored)
        assert [d.dimension for d in scored[0].dimensions] == [
            "fit", "popularity", "cost", "ai", "integration",
        ]

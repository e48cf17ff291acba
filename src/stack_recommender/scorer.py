"""Scorer - multi-factor ranking of eligible tools.

Scores each eligible tool on five 0-100 dimensions (fit, popularity, cost,
AI readiness, integration) and combines them with the request's weight
profile. The pure per-dimension helpers are shared with scenario scoring.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from tool_catalog.schema import Stage, TeamSize, Tool

from .config import RecommenderConfig, get_config
from .integration import IntegrationScorer
from .schema import (
    AutomationPhilosophy,
    CompanyAssessment,
    ScoreBreakdown,
    ScoredTool,
    ScoringDimension,
    WeightProfile,
)


# AI readiness when the tool has AI features, by philosophy
AI_FEATURE_SCORES = {
    AutomationPhilosophy.AUTO_PILOT: 100,
    AutomationPhilosophy.HYBRID: 80,
    AutomationPhilosophy.CO_PILOT: 60,
}


def compute_fit_score(tool: Tool, team_size: TeamSize, stage: Stage) -> float:
    """50 points for team-size fit plus 50 for stage fit (empty set = fits)."""
    size_match = not tool.best_for_team_size or team_size in tool.best_for_team_size
    stage_match = not tool.best_for_stage or stage in tool.best_for_stage
    return (50 if size_match else 0) + (50 if stage_match else 0)


def compute_cost_score(tool: Tool, budget: float) -> float:
    """Cost efficiency relative to the per-user budget.

    Over-budget tools are penalized on the overage ratio, not the dollar
    amount, so 10% over a $20 budget scores the same as 10% over $100.
    """
    cost = tool.estimated_cost_per_user
    if tool.has_free_forever and (cost is None or cost == 0):
        return 90
    if cost is None:
        return 60

    denominator = max(budget, 1)
    if cost <= budget:
        return 70 + 20 * (1 - cost / denominator)

    overage_ratio = (cost - budget) / denominator
    return max(10, 50 - 40 * overage_ratio)


def compute_ai_score(tool: Tool, philosophy: AutomationPhilosophy) -> float:
    if tool.has_ai_features:
        return AI_FEATURE_SCORES.get(philosophy, 50)
    return 10 if philosophy == AutomationPhilosophy.AUTO_PILOT else 30


class ToolScorer:
    """Scores eligible tools against a company assessment.

    Scoring principles:
    - Every dimension degrades to a documented default, never an error
    - Integration is measured against the company's current tools
    - Ties keep catalog order (stable sort)
    """

    def __init__(
        self,
        integration_scorer: IntegrationScorer,
        config: Optional[RecommenderConfig] = None,
    ):
        cfg = config or get_config()
        self.integration_scorer = integration_scorer
        self.neutral_score = cfg.scoring.neutral_integration_score
        self.neutral_low_score = cfg.scoring.neutral_low_integration_score
        self.max_workers = cfg.concurrency.max_workers

    def score(
        self,
        tools: list[Tool],
        assessment: CompanyAssessment,
        weights: WeightProfile,
        user_tool_ids: list[str],
    ) -> list[ScoredTool]:
        """Score eligible tools and return them sorted best first.

        Args:
            tools: Eligible tools (already filtered)
            assessment: Normalized company assessment
            weights: Request-level weight profile
            user_tool_ids: Ids of the company's current tools

        Returns:
            Sorted list of scored tools (highest score first)
        """
        if not tools:
            return []

        # Integration lookups are the only I/O; fan them out
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            integration_scores = list(pool.map(
                lambda t: self._integration_score(t, user_tool_ids),
                tools,
            ))

        scored = [
            self._score_tool(tool, assessment, weights, integration)
            for tool, integration in zip(tools, integration_scores)
        ]

        # Sort by score descending; sort() is stable so ties keep input order
        scored.sort(key=lambda s: s.score, reverse=True)
        return scored

    def _integration_score(self, tool: Tool, user_tool_ids: list[str]) -> float:
        """Integration against the user's other tools.

        No current tools means no data (neutral); current tools with no
        connection at all is distinguished as neutral-low.
        """
        others = [tid for tid in user_tool_ids if tid != tool.id]
        if not others:
            return self.neutral_score

        score = self.integration_scorer.calculate_integration_score(tool.id, others)
        if score == 0:
            return self.neutral_low_score
        return score

    def _score_tool(
        self,
        tool: Tool,
        assessment: CompanyAssessment,
        weights: WeightProfile,
        integration_score: float,
    ) -> ScoredTool:
        """Score a single tool."""
        breakdown = ScoreBreakdown(
            fit_score=compute_fit_score(tool, assessment.team_size, assessment.stage),
            popularity_score=tool.composite_popularity,
            cost_score=compute_cost_score(tool, assessment.budget_per_user),
            ai_score=compute_ai_score(tool, assessment.philosophy),
            integration_score=integration_score,
        )

        dimensions = [
            self._dimension("fit", weights.fit, breakdown.fit_score, self._fit_reasoning(breakdown.fit_score)),
            self._dimension(
                "popularity", weights.popularity, breakdown.popularity_score,
                f"Composite popularity {breakdown.popularity_score:.0f}/100",
            ),
            self._dimension(
                "cost", weights.cost, breakdown.cost_score,
                self._cost_reasoning(tool, assessment.budget_per_user),
            ),
            self._dimension(
                "ai", weights.ai, breakdown.ai_score,
                ("Has AI features" if tool.has_ai_features else "No AI features")
                + f" for a {assessment.philosophy.value} team",
            ),
            self._dimension(
                "integration", weights.integration, breakdown.integration_score,
                self._integration_reasoning(breakdown.integration_score),
            ),
        ]

        total = sum(d.weighted_score for d in dimensions)
        return ScoredTool(
            tool=tool,
            score=round(total, 2),
            breakdown=breakdown,
            dimensions=dimensions,
        )

    @staticmethod
    def _dimension(name: str, weight: float, raw: float, reasoning: str) -> ScoringDimension:
        return ScoringDimension(
            dimension=name,
            weight=weight,
            raw_score=raw,
            weighted_score=raw * weight,
            reasoning=reasoning,
        )

    @staticmethod
    def _fit_reasoning(fit_score: float) -> str:
        if fit_score >= 100:
            return "Suits this team size and stage"
        if fit_score > 0:
            return "Suits either the team size or the stage, not both"
        return "Aimed at a different team size and stage"

    @staticmethod
    def _cost_reasoning(tool: Tool, budget: float) -> str:
        cost = tool.estimated_cost_per_user
        if tool.has_free_forever and not cost:
            return "Free forever"
        if cost is None:
            return "Cost unknown"
        if cost <= budget:
            return f"${cost:.2f}/user is within the ${budget:.2f} budget"
        return f"${cost:.2f}/user is over the ${budget:.2f} budget"

    def _integration_reasoning(self, score: float) -> str:
        if score == self.neutral_score:
            return "No current tools to integrate with (neutral)"
        if score == self.neutral_low_score:
            return "No known integrations with current tools"
        return f"Integrates with current tools ({score:.0f}/100)"

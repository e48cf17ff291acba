"""Scenario scoring primitives shared by every scenario strategy.

- per-scenario composite tool score (five weighted dimensions plus
  additive synergy and familiarity bonuses)
- adaptive target tool range per team size, scenario and pain points
- rolling quality floor
"""

import math
from dataclasses import dataclass
from typing import Iterable, Optional

from tool_catalog.schema import Tool

from .config import RecommenderConfig, ToolRange, get_config
from .schema import (
    AutomationPhilosophy,
    PainPoint,
    ScenarioType,
    Stage,
    TeamSize,
    WeightProfile,
)
from .scorer import compute_ai_score, compute_cost_score, compute_fit_score


@dataclass
class ScenarioScoringContext:
    """Per-candidate inputs the scenario score needs beyond the tool."""
    budget_per_user: float
    team_size: TeamSize
    stage: Stage
    philosophy: AutomationPhilosophy
    user_tool_ids: list[str]
    integration_score: float
    synergy_bonus: int


@dataclass
class ScenarioToolScore:
    """Composite score and its parts for one candidate in one scenario."""
    tool: Tool
    composite_score: float
    fit_score: float
    popularity_score: float
    cost_score: float
    ai_score: float
    integration_score: float
    synergy_bonus: int
    familiarity_bonus: float


def get_familiarity_bonus(
    tool_id: str,
    user_tool_ids: Iterable[str],
    config: Optional[RecommenderConfig] = None,
) -> float:
    """Additive bonus for tools the company already uses."""
    if tool_id in set(user_tool_ids):
        return (config or get_config()).scoring.familiarity_bonus
    return 0


def score_tool_for_scenario(
    tool: Tool,
    weights: WeightProfile,
    context: ScenarioScoringContext,
    config: Optional[RecommenderConfig] = None,
) -> ScenarioToolScore:
    """Weighted five-dimension score plus synergy and familiarity bonuses."""
    fit = compute_fit_score(tool, context.team_size, context.stage)
    popularity = tool.composite_popularity
    cost = compute_cost_score(tool, context.budget_per_user)
    ai = compute_ai_score(tool, context.philosophy)
    familiarity = get_familiarity_bonus(tool.id, context.user_tool_ids, config)

    weighted = (
        fit * weights.fit
        + popularity * weights.popularity
        + cost * weights.cost
        + ai * weights.ai
        + context.integration_score * weights.integration
    )

    return ScenarioToolScore(
        tool=tool,
        composite_score=weighted + context.synergy_bonus + familiarity,
        fit_score=fit,
        popularity_score=popularity,
        cost_score=cost,
        ai_score=ai,
        integration_score=context.integration_score,
        synergy_bonus=context.synergy_bonus,
        familiarity_bonus=familiarity,
    )


def calculate_target_tool_range(
    team_size: TeamSize,
    scenario_type: ScenarioType,
    pain_points: Iterable[PainPoint],
    config: Optional[RecommenderConfig] = None,
) -> ToolRange:
    """How many tools a scenario should aim for.

    Starts from the team-size range, then biases it: the mono-stack pulls
    the maximum toward the minimum, agentic lean pushes the minimum toward
    the maximum, the native integrator keeps the full range. Each shrinking
    pain point removes one slot from the maximum, never below the minimum.
    """
    cfg = (config or get_config()).tool_ranges
    base = cfg.team_ranges.get(team_size) or cfg.team_ranges[TeamSize.SMALL]
    low, high = base.min, base.max
    span = high - low

    if scenario_type == ScenarioType.MONO_STACK:
        high = max(low, math.ceil(low + span * cfg.lean_bias))
    elif scenario_type == ScenarioType.AGENTIC_LEAN:
        low = max(low, math.floor(low + span * cfg.rich_bias))

    shrink = sum(1 for p in set(pain_points) if p in cfg.shrinking_pain_points)
    high = max(low, high - shrink)

    return ToolRange(min=low, max=high)


def calculate_quality_floor(scores: list[float]) -> float:
    """Rolling floor below which new candidates are rejected.

    0 with no scores, 70% of a single score, otherwise the mean minus one
    population standard deviation.
    """
    if not scores:
        return 0
    if len(scores) == 1:
        return scores[0] * 0.7

    mean = sum(scores) / len(scores)
    variance = sum((s - mean) ** 2 for s in scores) / len(scores)
    return mean - math.sqrt(variance)

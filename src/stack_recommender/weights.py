"""Weight Profile Builder.

Turns pain points, stage and (for scenarios) cost sensitivity and
philosophy into a normalized five-dimension weight vector.
"""

from typing import Iterable, Optional

from .config import RecommenderConfig, WeightModifier, get_config
from .schema import (
    CompanyAssessment,
    PainPoint,
    ScenarioType,
    Stage,
    WeightProfile,
)


def normalize_weights(raw: dict[str, float], fallback: WeightProfile) -> WeightProfile:
    """Clamp every dimension at zero and rescale so the total is 1.0.

    If everything clamps to zero the fallback is normalized instead.
    """
    clamped = {dim: max(0.0, raw.get(dim, 0.0)) for dim in WeightProfile.DIMENSIONS}
    total = sum(clamped.values())
    if total <= 0:
        clamped = {dim: max(0.0, getattr(fallback, dim)) for dim in WeightProfile.DIMENSIONS}
        total = sum(clamped.values())
        if total <= 0:
            return WeightProfile()
    return WeightProfile(**{dim: value / total for dim, value in clamped.items()})


def _apply(weights: dict[str, float], modifier: Optional[WeightModifier]) -> None:
    if modifier is None:
        return
    for dim in WeightProfile.DIMENSIONS:
        weights[dim] += getattr(modifier, dim)


def build_weight_profile(
    pain_points: Iterable[PainPoint],
    stage: Stage,
    config: Optional[RecommenderConfig] = None,
) -> WeightProfile:
    """Build the request-level weight profile.

    Args:
        pain_points: Pain points reported by the company (may be empty)
        stage: Company growth stage
        config: Configuration (defaults to the global config)

    Returns:
        Weight profile whose five values are >= 0 and sum to 1.0
    """
    cfg = (config or get_config()).weights
    weights = cfg.defaults.model_dump()

    for pain_point in pain_points:
        _apply(weights, cfg.pain_points.get(pain_point))
    _apply(weights, cfg.stages.get(stage))

    return normalize_weights(weights, cfg.defaults)


def build_scenario_weights(
    scenario_type: ScenarioType,
    assessment: CompanyAssessment,
    config: Optional[RecommenderConfig] = None,
) -> WeightProfile:
    """Build the weight profile a scenario scores its own candidates with.

    Starts from the scenario's base weights and applies pain point, stage,
    cost sensitivity and philosophy modifiers in that order.
    """
    cfg = (config or get_config()).weights
    base = cfg.scenarios.get(scenario_type, cfg.defaults)
    weights = base.model_dump()

    for pain_point in assessment.pain_points:
        _apply(weights, cfg.pain_points.get(pain_point))
    _apply(weights, cfg.stages.get(assessment.stage))
    _apply(weights, cfg.cost_sensitivity.get(assessment.cost_sensitivity))
    _apply(weights, cfg.philosophy.get(assessment.philosophy))

    return normalize_weights(weights, base)

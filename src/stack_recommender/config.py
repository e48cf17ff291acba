"""Centralized configuration management for the stack recommender."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from .schema import (
    AutomationPhilosophy,
    CostSensitivity,
    PainPoint,
    ScenarioType,
    Stage,
    TeamSize,
    WeightProfile,
)


class WeightModifier(BaseModel):
    """Signed additive deltas applied to a weight profile before normalization."""
    fit: float = 0.0
    popularity: float = 0.0
    cost: float = 0.0
    ai: float = 0.0
    integration: float = 0.0


def _default_pain_point_modifiers() -> dict[PainPoint, WeightModifier]:
    return {
        PainPoint.TOO_MANY_TOOLS: WeightModifier(integration=0.15, popularity=-0.05, fit=-0.05, ai=-0.05),
        PainPoint.TOOLS_DONT_TALK: WeightModifier(integration=0.20, popularity=-0.10, cost=-0.05),
        PainPoint.OVERPAYING: WeightModifier(cost=0.15, popularity=-0.05, ai=-0.05),
        PainPoint.TOO_MUCH_MANUAL_WORK: WeightModifier(ai=0.15, popularity=-0.05, cost=-0.05),
        PainPoint.DISORGANIZED: WeightModifier(fit=0.10, integration=0.05, popularity=-0.05),
        PainPoint.SLOW_APPROVALS: WeightModifier(integration=0.10, ai=0.05, popularity=-0.05),
        PainPoint.NO_VISIBILITY: WeightModifier(integration=0.05, popularity=0.05, cost=-0.05),
    }


def _default_stage_modifiers() -> dict[Stage, WeightModifier]:
    return {
        Stage.BOOTSTRAPPING: WeightModifier(cost=0.10, popularity=-0.05),
        Stage.PRE_SEED: WeightModifier(cost=0.05),
        Stage.EARLY_SEED: WeightModifier(),
        Stage.GROWTH: WeightModifier(integration=0.05, popularity=0.05, cost=-0.05),
        Stage.ESTABLISHED: WeightModifier(popularity=0.10, cost=-0.10),
    }


def _default_cost_sensitivity_modifiers() -> dict[CostSensitivity, WeightModifier]:
    return {
        CostSensitivity.PRICE_FIRST: WeightModifier(cost=0.15, popularity=-0.05),
        CostSensitivity.BALANCED: WeightModifier(),
        CostSensitivity.VALUE_FIRST: WeightModifier(cost=-0.10, fit=0.10),
    }


def _default_philosophy_modifiers() -> dict[AutomationPhilosophy, WeightModifier]:
    return {
        AutomationPhilosophy.CO_PILOT: WeightModifier(ai=-0.10, popularity=0.10),
        AutomationPhilosophy.HYBRID: WeightModifier(),
        AutomationPhilosophy.AUTO_PILOT: WeightModifier(ai=0.15, popularity=-0.05),
    }


def _default_scenario_weights() -> dict[ScenarioType, WeightProfile]:
    return {
        ScenarioType.MONO_STACK: WeightProfile(
            integration=0.35, cost=0.25, fit=0.25, popularity=0.10, ai=0.05
        ),
        ScenarioType.NATIVE_INTEGRATOR: WeightProfile(
            integration=0.30, popularity=0.30, fit=0.20, cost=0.10, ai=0.10
        ),
        ScenarioType.AGENTIC_LEAN: WeightProfile(
            ai=0.35, integration=0.30, popularity=0.15, fit=0.10, cost=0.10
        ),
    }


class WeightsConfig(BaseModel):
    """Default weights and the modifier tables that reshape them.

    Modifiers are added to the starting weights, negatives are clamped to
    zero and the result is renormalized to sum to 1.0, so their magnitude
    is relative rather than absolute.
    """
    defaults: WeightProfile = Field(
        default_factory=WeightProfile,
        description="Starting weights for the request-level ranking"
    )
    pain_points: dict[PainPoint, WeightModifier] = Field(default_factory=_default_pain_point_modifiers)
    stages: dict[Stage, WeightModifier] = Field(default_factory=_default_stage_modifiers)
    cost_sensitivity: dict[CostSensitivity, WeightModifier] = Field(
        default_factory=_default_cost_sensitivity_modifiers
    )
    philosophy: dict[AutomationPhilosophy, WeightModifier] = Field(
        default_factory=_default_philosophy_modifiers
    )
    scenarios: dict[ScenarioType, WeightProfile] = Field(
        default_factory=_default_scenario_weights,
        description="Starting weights for each scenario's own tool scoring"
    )


class FilterConfig(BaseModel):
    """Thresholds for the hard eligibility filters."""
    low_budget_threshold: float = Field(
        20.0,
        description="Below this per-user budget, value-first companies exclude enterprise-tier tools"
    )
    balanced_budget_tolerance: float = Field(
        1.5,
        description="Balanced companies accept tools up to this multiple of their budget"
    )


class ScoringConfig(BaseModel):
    """Constants used by the tool and scenario scorers."""
    neutral_integration_score: float = Field(
        50.0,
        description="Integration score when there is nothing to integrate with"
    )
    neutral_low_integration_score: float = Field(
        25.0,
        description="Integration score when the user has tools but none connect"
    )
    familiarity_bonus: float = Field(
        8.0,
        description="Additive bonus for tools the company already uses"
    )
    anchor_challenge_ratio: float = Field(
        1.2,
        description="An alternative must beat the anchor's score by this factor to replace it"
    )
    agentic_integration_weight: float = Field(
        0.4,
        description="Integration share when ranking AI alternatives to a non-AI anchor"
    )
    agentic_momentum_weight: float = Field(
        0.6,
        description="Momentum share when ranking AI alternatives to a non-AI anchor"
    )
    multi_phase_min_phases: int = Field(
        3,
        description="Phases a tool must cover to seed a mono-stack"
    )


class ToolRange(BaseModel):
    """Inclusive tool-count range."""
    min: int = Field(..., ge=0)
    max: int = Field(..., ge=0)


def _default_team_ranges() -> dict[TeamSize, ToolRange]:
    return {
        TeamSize.SOLO: ToolRange(min=2, max=4),
        TeamSize.SMALL: ToolRange(min=3, max=5),
        TeamSize.MEDIUM: ToolRange(min=4, max=7),
        TeamSize.LARGE: ToolRange(min=5, max=8),
        TeamSize.ENTERPRISE: ToolRange(min=6, max=10),
    }


class ToolRangeConfig(BaseModel):
    """Adaptive target range for the number of tools in a scenario."""
    team_ranges: dict[TeamSize, ToolRange] = Field(default_factory=_default_team_ranges)
    lean_bias: float = Field(
        0.4,
        description="Mono-stack keeps the range maximum within this fraction above the minimum"
    )
    rich_bias: float = Field(
        0.6,
        description="Agentic lean lifts the range minimum to this fraction of the span"
    )
    mono_stack_ceiling: int = Field(
        4,
        description="Hard cap on mono-stack size"
    )
    shrinking_pain_points: list[PainPoint] = Field(
        default_factory=lambda: [PainPoint.TOO_MANY_TOOLS, PainPoint.OVERPAYING],
        description="Each of these pain points removes one slot from the maximum"
    )


class ClusterConfig(BaseModel):
    """Synergy cluster enrichment."""
    min_confidence: float = Field(60.0, description="Ignore clusters below this confidence")
    min_matched_tools: int = Field(2, description="Tools a stack must share with a cluster")


class ConcurrencyConfig(BaseModel):
    """Thread pools used for scenario builds and provider lookups."""
    max_workers: int = Field(8, ge=1, description="Worker threads for candidate lookups")


class RecommenderConfig(BaseModel):
    """Complete configuration for the stack recommender."""
    weights: WeightsConfig = Field(default_factory=WeightsConfig)
    filters: FilterConfig = Field(default_factory=FilterConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    tool_ranges: ToolRangeConfig = Field(default_factory=ToolRangeConfig)
    clusters: ClusterConfig = Field(default_factory=ClusterConfig)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)


# Global config instance
_config: Optional[RecommenderConfig] = None


def get_config() -> RecommenderConfig:
    """Get the current configuration.

    Returns the global config, initializing with defaults if not yet loaded.
    """
    global _config
    if _config is None:
        _config = RecommenderConfig()
    return _config


def load_config(path: Path) -> RecommenderConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        The loaded RecommenderConfig.
    """
    global _config

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    _config = RecommenderConfig.model_validate(data or {})
    return _config


def reset_config() -> None:
    """Reset configuration to defaults."""
    global _config
    _config = RecommenderConfig()


def find_config_file() -> Optional[Path]:
    """Find a recommender configuration file.

    Looks in (order of priority):
    1. STACK_RECOMMENDER_CONFIG environment variable
    2. ./recommender-config.yaml
    3. ./recommender-config.yml
    4. ~/.config/stack-recommender/config.yaml
    """
    env_path = os.environ.get("STACK_RECOMMENDER_CONFIG")
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path

    for name in ["recommender-config.yaml", "recommender-config.yml"]:
        path = Path(name)
        if path.exists():
            return path

    user_config = Path.home() / ".config" / "stack-recommender" / "config.yaml"
    if user_config.exists():
        return user_config

    return None


def save_default_config(path: Path) -> None:
    """Save the default configuration to a YAML file.

    Args:
        path: Path where to save the configuration.
    """
    config = RecommenderConfig()

    # Enum keys have to become plain strings for YAML
    data = config.model_dump(mode="json")

    yaml_content = """# Stack Recommender Configuration
# ===============================
#
# This file configures the scoring weights, filter thresholds,
# scenario tool ranges and cluster enrichment.
#
# Copy this file to one of these locations:
#   - ./recommender-config.yaml (current directory)
#   - ~/.config/stack-recommender/config.yaml (user config)
#
# Or set the STACK_RECOMMENDER_CONFIG environment variable.

"""
    yaml_content += yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(yaml_content)

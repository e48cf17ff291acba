"""Pydantic models for the Stack Recommendation Engine.

Input schemas for the company assessment and output schemas for the
pipeline context and the three built scenarios.
"""

from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional

from pydantic import BaseModel, Field

# Re-export catalog enums for convenience
from tool_catalog.schema import (
    ClusterMatch,
    ComplianceRequirement,
    CostSensitivity,
    ReplacementContext,
    Stage,
    TeamSize,
    TechSavviness,
    Tool,
    ToolCategory,
    WorkflowPhase,
)


def _label_key(value: str) -> str:
    return value.strip().lower().replace("-", "_").replace(" ", "_")


# =============================================================================
# Assessment Enums
# =============================================================================


class AutomationPhilosophy(str, Enum):
    """How much work the company wants AI to take over."""
    CO_PILOT = "co_pilot"
    HYBRID = "hybrid"
    AUTO_PILOT = "auto_pilot"

    @classmethod
    def from_string(cls, value: str) -> "AutomationPhilosophy":
        """Parse philosophy from string ('Co-Pilot', 'auto pilot', ...)."""
        if not value:
            return cls.HYBRID
        key = _label_key(value).replace("copilot", "co_pilot").replace("autopilot", "auto_pilot")
        try:
            return cls(key)
        except ValueError:
            return cls.HYBRID


class ProductSensitivity(str, Enum):
    """Whether the product handles regulated or sensitive data."""
    LOW_STAKES = "low_stakes"
    HIGH_STAKES = "high_stakes"

    @classmethod
    def from_string(cls, value: str) -> "ProductSensitivity":
        if not value:
            return cls.LOW_STAKES
        try:
            return cls(_label_key(value))
        except ValueError:
            return cls.LOW_STAKES


class AnchorType(str, Enum):
    """Declared centre of gravity of the company's current tooling."""
    DOC_CENTRIC = "doc_centric"
    DEV_CENTRIC = "dev_centric"
    COMM_CENTRIC = "comm_centric"
    OTHER = "other"
    NONE = "none"

    @classmethod
    def from_string(cls, value: str) -> "AnchorType":
        """Parse anchor type from an enum value or an intake form label."""
        if not value:
            return cls.NONE
        text = value.strip().lower()
        if text.startswith("the doc") or text in ("doc", "doc_centric", "doc-centric"):
            return cls.DOC_CENTRIC
        if text.startswith("the dev") or text in ("dev", "dev_centric", "dev-centric"):
            return cls.DEV_CENTRIC
        if text.startswith("the comm") or text in ("comm", "comm_centric", "comm-centric"):
            return cls.COMM_CENTRIC
        if text == "other":
            return cls.OTHER
        return cls.NONE


class PainPoint(str, Enum):
    """Self-reported problems with the current stack."""
    TOO_MANY_TOOLS = "too_many_tools"
    TOOLS_DONT_TALK = "tools_dont_talk"
    OVERPAYING = "overpaying"
    TOO_MUCH_MANUAL_WORK = "too_much_manual_work"
    DISORGANIZED = "disorganized"
    SLOW_APPROVALS = "slow_approvals"
    NO_VISIBILITY = "no_visibility"

    @classmethod
    def from_string(cls, value: str) -> Optional["PainPoint"]:
        """Parse pain point from string; unknown labels return None."""
        if not value:
            return None
        key = _label_key(value).replace("'", "")
        try:
            return cls(key)
        except ValueError:
            return None


class ScenarioType(str, Enum):
    """The three competing stack philosophies."""
    MONO_STACK = "mono_stack"
    NATIVE_INTEGRATOR = "native_integrator"
    AGENTIC_LEAN = "agentic_lean"

    @property
    def display_title(self) -> str:
        return SCENARIO_TITLES[self]


SCENARIO_TITLES = {
    ScenarioType.MONO_STACK: "The Mono-Stack",
    ScenarioType.NATIVE_INTEGRATOR: "The Native Integrator",
    ScenarioType.AGENTIC_LEAN: "The Agentic Lean",
}


# =============================================================================
# Raw Input Model (intake form format)
# =============================================================================


class RawAssessment(BaseModel):
    """Assessment as submitted by the intake form, with UI labels."""
    company: str = ""
    stage: str = "Bootstrapping"
    team_size: str = "small"
    current_tools: str = ""
    philosophy: str = "Hybrid"
    tech_savviness: str = "Decent"
    budget_per_user: float = 0
    cost_sensitivity: str = "Balanced"
    sensitivity: str = "Low-Stakes"
    high_stakes_requirements: list[str] = Field(default_factory=list)
    anchor_type: str = ""
    other_anchor_text: str = ""
    pain_points: list[str] = Field(default_factory=list)
    phase_priorities: list[str] = Field(default_factory=list)
    desired_capabilities: list[str] = Field(default_factory=list)

    class Config:
        extra = "allow"


# =============================================================================
# Normalized Assessment
# =============================================================================


class CompanyAssessment(BaseModel):
    """Normalized, immutable company self-assessment."""
    company: str = ""
    stage: Stage = Stage.BOOTSTRAPPING
    team_size: TeamSize = TeamSize.SMALL
    current_tools: str = Field("", description="Comma or semicolon separated tool names")
    philosophy: AutomationPhilosophy = AutomationPhilosophy.HYBRID
    tech_savviness: TechSavviness = TechSavviness.DECENT
    budget_per_user: float = Field(0, ge=0, description="Monthly budget per user in USD")
    cost_sensitivity: CostSensitivity = CostSensitivity.BALANCED
    sensitivity: ProductSensitivity = ProductSensitivity.LOW_STAKES
    compliance_requirements: list[ComplianceRequirement] = Field(default_factory=list)
    anchor_type: AnchorType = AnchorType.NONE
    other_anchor_text: str = ""
    pain_points: list[PainPoint] = Field(default_factory=list)
    phase_priorities: list[WorkflowPhase] = Field(default_factory=list)
    desired_capabilities: list[ToolCategory] = Field(default_factory=list)

    class Config:
        frozen = True

    @property
    def requires_compliance(self) -> bool:
        """Compliance is enforced only for high-stakes products with requirements."""
        return self.sensitivity == ProductSensitivity.HIGH_STAKES and bool(self.compliance_requirements)

    @classmethod
    def from_raw(cls, raw: RawAssessment) -> "CompanyAssessment":
        """Create normalized assessment from raw intake-form answers."""
        from .normalizer import AssessmentNormalizer
        normalizer = AssessmentNormalizer()
        return normalizer.normalize(raw)


# =============================================================================
# Scoring Models
# =============================================================================


class WeightProfile(BaseModel):
    """Five non-negative scoring weights that sum to 1.0."""
    fit: float = 0.25
    popularity: float = 0.25
    cost: float = 0.20
    ai: float = 0.15
    integration: float = 0.15

    DIMENSIONS: ClassVar[tuple[str, ...]] = ("fit", "popularity", "cost", "ai", "integration")

    def total(self) -> float:
        return sum(getattr(self, d) for d in self.DIMENSIONS)


class ScoringDimension(BaseModel):
    """A single scoring dimension."""
    dimension: str
    weight: float
    raw_score: float  # 0-100 before weighting
    weighted_score: float
    reasoning: str


class ScoreBreakdown(BaseModel):
    """Raw per-dimension sub-scores (each 0-100)."""
    fit_score: float = 0
    popularity_score: float = 0
    cost_score: float = 0
    ai_score: float = 0
    integration_score: float = 0


class ScoredTool(BaseModel):
    """A tool with its composite score for this request."""
    tool: Tool
    score: float
    breakdown: ScoreBreakdown
    dimensions: list[ScoringDimension] = Field(default_factory=list)


class ExclusionReasonDetail(BaseModel):
    """Detailed reason for excluding a tool."""
    reason_type: str  # e.g., "compliance", "budget", "tech_savviness", "fit"
    description: str
    blocking_value: Optional[str] = None
    required_value: Optional[str] = None


class ExcludedTool(BaseModel):
    """A tool that did not survive the filter chain."""
    tool_id: str
    name: str
    reasons: list[ExclusionReasonDetail]


class DisplacementSuggestion(BaseModel):
    """One of the user's own tools made redundant by another one they have."""
    keep_tool_id: str
    keep_name: str
    displace_tool_id: str
    displace_name: str
    reason: Optional[str] = None


# =============================================================================
# Pipeline Context
# =============================================================================


class PipelineContext(BaseModel):
    """Everything the scenario builder needs, produced once per request."""
    assessment: CompanyAssessment
    user_tools: list[Tool] = Field(default_factory=list)
    unmatched_tool_names: list[str] = Field(default_factory=list)
    allowed_tools: list[Tool] = Field(default_factory=list)
    scored_tools: list[ScoredTool] = Field(default_factory=list)
    excluded: list[ExcludedTool] = Field(default_factory=list)
    weight_profile: WeightProfile = Field(default_factory=WeightProfile)
    anchor_tool: Optional[Tool] = None
    displacement_list: list[str] = Field(default_factory=list)
    replacement_context: ReplacementContext = Field(default_factory=ReplacementContext)

    @property
    def user_tool_ids(self) -> list[str]:
        return [t.id for t in self.user_tools]

    @property
    def anchor_tool_id(self) -> Optional[str]:
        return self.anchor_tool.id if self.anchor_tool else None


# =============================================================================
# Scenario Output Models
# =============================================================================


class WorkflowStep(BaseModel):
    """Who does what, with which tool, in one workflow phase."""
    phase: WorkflowPhase
    phase_name: str
    tool_id: Optional[str] = None
    tool_name: str
    ai_agent_role: str
    human_role: str
    outcome: str
    estimated_time_per_week: str


class GeneratedWorkflow(BaseModel):
    """The seven-phase workflow for a stack."""
    steps: list[WorkflowStep] = Field(default_factory=list)
    weekly_human_hours: float = 0
    weekly_ai_hours: float = 0
    automation_percentage: int = 0


class ScenarioRationale(BaseModel):
    """Why a scenario exists and who it suits."""
    goal: str
    key_principle: str
    best_for_generic: list[str] = Field(default_factory=list)
    best_for_user: list[str] = Field(default_factory=list)
    decision_framing: str
    complexity_note: str


class BuiltScenario(BaseModel):
    """One of the three recommended stacks."""
    title: str
    scenario_type: ScenarioType
    tools: list[Tool] = Field(default_factory=list)
    anchor_tool_id: Optional[str] = None
    displacement_list: list[str] = Field(default_factory=list)
    workflow: GeneratedWorkflow = Field(default_factory=GeneratedWorkflow)
    estimated_monthly_cost_per_user: float = 0
    complexity_reduction_score: int = Field(0, ge=0, le=100)
    target_min_tools: int = 0
    target_max_tools: int = 0
    matched_clusters: list[ClusterMatch] = Field(default_factory=list)
    rationale: Optional[ScenarioRationale] = None
    build_notes: list[str] = Field(default_factory=list)

    @property
    def tool_ids(self) -> list[str]:
        return [t.id for t in self.tools]


class RecommendationSummary(BaseModel):
    """Cross-scenario comparison."""
    cheapest_scenario: Optional[str] = None
    leanest_scenario: Optional[str] = None
    biggest_reduction_scenario: Optional[str] = None
    anchor_tool: Optional[str] = None
    key_drivers: list[str] = Field(default_factory=list)


class RecommendationResult(BaseModel):
    """Complete output from the recommendation engine."""
    # Metadata
    engine_version: str = Field(default="1.0.0")
    generated_at: datetime = Field(default_factory=datetime.utcnow)
    company: str = ""
    catalog_version: str
    catalog_tool_count: int

    # Request-level derivations (for transparency)
    weight_profile: WeightProfile
    user_tools: list[str] = Field(default_factory=list)
    unmatched_tools: list[str] = Field(default_factory=list)
    anchor_tool: Optional[str] = None

    # Results
    scenarios: list[BuiltScenario] = Field(default_factory=list)
    excluded: list[ExcludedTool] = Field(default_factory=list)

    # Summary
    summary: RecommendationSummary = Field(default_factory=RecommendationSummary)

    # Debug/audit info
    eligible_count: int = 0
    excluded_count: int = 0

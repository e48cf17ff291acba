"""Pydantic models for the SaaS tool catalog schema."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


def _enum_key(value: str) -> str:
    """Collapse a UI label into the lowercase snake form used by enum values."""
    return value.strip().lower().replace("-", "_").replace(" ", "_")


class ToolCategory(str, Enum):
    """Functional category of a tool."""
    PROJECT_MANAGEMENT = "project_management"
    DOCUMENTATION = "documentation"
    COMMUNICATION = "communication"
    DEVELOPMENT = "development"
    DESIGN = "design"
    MEETINGS = "meetings"
    AUTOMATION = "automation"
    AI_ASSISTANTS = "ai_assistants"
    AI_BUILDERS = "ai_builders"
    ANALYTICS = "analytics"
    GROWTH = "growth"
    OTHER = "other"

    @classmethod
    def from_string(cls, value: str) -> "ToolCategory":
        """Parse category from string."""
        if not value:
            return cls.OTHER
        key = _enum_key(value)
        aliases = {
            "pm": cls.PROJECT_MANAGEMENT,
            "docs": cls.DOCUMENTATION,
            "comm": cls.COMMUNICATION,
            "dev": cls.DEVELOPMENT,
            "ai_assistant": cls.AI_ASSISTANTS,
            "ai_builder": cls.AI_BUILDERS,
        }
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            return cls.OTHER


class ComplexityTier(str, Enum):
    """How hard a tool is to adopt."""
    SIMPLE = "simple"
    MODERATE = "moderate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class PricingTier(str, Enum):
    """Pricing tier of a tool."""
    FREE = "free"
    FREEMIUM = "freemium"
    STARTER = "starter"
    PROFESSIONAL = "professional"
    ENTERPRISE = "enterprise"


class TeamSize(str, Enum):
    """Team-size bucket."""
    SOLO = "solo"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    ENTERPRISE = "enterprise"

    @classmethod
    def from_string(cls, value: str) -> "TeamSize":
        """Parse team size from a bucket name or a headcount label like '2-10'."""
        if not value:
            return cls.SMALL
        key = _enum_key(value)
        mapping = {
            "solo": cls.SOLO,
            "1": cls.SOLO,
            "just_me": cls.SOLO,
            "small": cls.SMALL,
            "2_10": cls.SMALL,
            "medium": cls.MEDIUM,
            "11_50": cls.MEDIUM,
            "large": cls.LARGE,
            "51_200": cls.LARGE,
            "enterprise": cls.ENTERPRISE,
            "200+": cls.ENTERPRISE,
            "201+": cls.ENTERPRISE,
        }
        return mapping.get(key, cls.SMALL)


class Stage(str, Enum):
    """Company growth stage."""
    BOOTSTRAPPING = "bootstrapping"
    PRE_SEED = "pre_seed"
    EARLY_SEED = "early_seed"
    GROWTH = "growth"
    ESTABLISHED = "established"

    @classmethod
    def from_string(cls, value: str) -> "Stage":
        """Parse stage from string (handles 'Pre-Seed' style labels)."""
        if not value:
            return cls.BOOTSTRAPPING
        try:
            return cls(_enum_key(value))
        except ValueError:
            return cls.BOOTSTRAPPING


class TechSavviness(str, Enum):
    """Self-reported technical skill of the team."""
    NEWBIE = "newbie"
    DECENT = "decent"
    NINJA = "ninja"

    @classmethod
    def from_string(cls, value: str) -> "TechSavviness":
        """Parse tech savviness from string."""
        if not value:
            return cls.DECENT
        try:
            return cls(_enum_key(value))
        except ValueError:
            return cls.DECENT


class CostSensitivity(str, Enum):
    """How the company trades cost against value."""
    PRICE_FIRST = "price_first"
    BALANCED = "balanced"
    VALUE_FIRST = "value_first"

    @classmethod
    def from_string(cls, value: str) -> "CostSensitivity":
        """Parse cost sensitivity from string."""
        if not value:
            return cls.BALANCED
        try:
            return cls(_enum_key(value))
        except ValueError:
            return cls.BALANCED


class ComplianceRequirement(str, Enum):
    """Certifications or deployment constraints a high-stakes company may require."""
    SOC2 = "soc2"
    HIPAA = "hipaa"
    EU_DATA_RESIDENCY = "eu_data_residency"
    SELF_HOSTED = "self_hosted"
    AIR_GAPPED = "air_gapped"

    @classmethod
    def from_string(cls, value: str) -> Optional["ComplianceRequirement"]:
        """Parse requirement from string; unknown labels return None."""
        if not value:
            return None
        key = _enum_key(value)
        aliases = {
            "soc_2": cls.SOC2,
            "gdpr": cls.EU_DATA_RESIDENCY,
            "eu_residency": cls.EU_DATA_RESIDENCY,
            "on_prem": cls.SELF_HOSTED,
            "airgapped": cls.AIR_GAPPED,
        }
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            return None


class WorkflowPhase(str, Enum):
    """Phases of the product workflow a stack has to cover."""
    DISCOVER = "discover"
    DECIDE = "decide"
    DESIGN = "design"
    BUILD = "build"
    LAUNCH = "launch"
    REVIEW = "review"
    ITERATE = "iterate"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class IntegrationQuality(str, Enum):
    """Quality tier of an integration edge, best first."""
    NATIVE = "native"
    DEEP = "deep"
    BASIC = "basic"
    WEBHOOK_ONLY = "webhook_only"
    ZAPIER_ONLY = "zapier_only"

    @property
    def weight(self) -> int:
        return INTEGRATION_QUALITY_WEIGHTS[self]


INTEGRATION_QUALITY_WEIGHTS = {
    IntegrationQuality.NATIVE: 100,
    IntegrationQuality.DEEP: 80,
    IntegrationQuality.BASIC: 50,
    IntegrationQuality.WEBHOOK_ONLY: 30,
    IntegrationQuality.ZAPIER_ONLY: 15,
}


class RedundancyStrength(str, Enum):
    """How much two tools overlap."""
    FULL = "full"  # Interchangeable, keep only one
    PARTIAL = "partial"  # Overlapping, both can coexist
    NICHE = "niche"  # Overlap only in an edge case


class RecommendationHint(str, Enum):
    """Which side of a redundancy pair to keep."""
    PREFER_A = "prefer_a"
    PREFER_B = "prefer_b"
    CONTEXT_DEPENDENT = "context_dependent"


class ReplacementReason(str, Enum):
    """Why one tool is a better fit than another."""
    COST_SAVINGS = "cost_savings"
    SIMPLER_UX = "simpler_ux"
    AI_NATIVE = "ai_native"
    FEATURE_SUPERSET = "feature_superset"
    CONSOLIDATION = "consolidation"
    COMPLIANCE = "compliance"
    BETTER_INTEGRATION = "better_integration"


class ClusterStatus(str, Enum):
    """Review state of a synergy cluster."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# =============================================================================
# Tool Entry
# =============================================================================


POPULARITY_WEIGHTS = {
    "adoption": 0.30,
    "sentiment": 0.20,
    "momentum": 0.20,
    "ecosystem": 0.15,
    "reliability": 0.15,
}


class PopularityScores(BaseModel):
    """Five-part popularity breakdown (each 0-100)."""
    adoption: float = Field(50, ge=0, le=100, description="Market adoption")
    sentiment: float = Field(50, ge=0, le=100, description="User sentiment")
    momentum: float = Field(50, ge=0, le=100, description="Growth momentum")
    ecosystem: float = Field(50, ge=0, le=100, description="Ecosystem and integrations breadth")
    reliability: float = Field(50, ge=0, le=100, description="Uptime and reliability")

    def composite(self) -> int:
        """Weighted composite popularity, rounded and clamped to 0-100."""
        total = sum(getattr(self, name) * weight for name, weight in POPULARITY_WEIGHTS.items())
        return max(0, min(100, int(total + 0.5)))


class Tool(BaseModel):
    """Complete tool catalog entry. Immutable once loaded."""

    # Identity
    id: str = Field(..., description="Unique tool identifier")
    name: str = Field(..., description="Lowercase canonical name, e.g. 'notion'")
    display_name: str = Field(..., description="Human-readable name")
    aliases: list[str] = Field(default_factory=list, description="Alternative names")
    description: Optional[str] = None
    website: Optional[str] = None

    # Classification
    category: ToolCategory = ToolCategory.OTHER
    complexity: ComplexityTier = ComplexityTier.MODERATE

    # Pricing
    pricing_tier: PricingTier = PricingTier.FREEMIUM
    estimated_cost_per_user: Optional[float] = Field(
        None,
        ge=0,
        description="Monthly per-user cost in USD (None when unknown)"
    )
    has_free_forever: bool = False

    # Applicability hints (empty means no preference)
    best_for_team_size: list[TeamSize] = Field(default_factory=list)
    best_for_stage: list[Stage] = Field(default_factory=list)
    best_for_tech_savviness: list[TechSavviness] = Field(default_factory=list)

    # Compliance
    soc2: bool = False
    hipaa: bool = False
    gdpr: bool = False
    eu_data_residency: bool = False
    self_hosted: bool = False
    air_gapped: bool = False

    # AI
    has_ai_features: bool = False

    # Popularity
    popularity: PopularityScores = Field(default_factory=PopularityScores)
    popularity_score: Optional[float] = Field(
        None,
        ge=0,
        le=100,
        description="Stored composite popularity; derived from sub-scores when absent"
    )

    class Config:
        frozen = True

    @property
    def composite_popularity(self) -> float:
        """Stored composite popularity, falling back to the weighted sub-scores."""
        if self.popularity_score is not None:
            return self.popularity_score
        return self.popularity.composite()

    @property
    def momentum_score(self) -> float:
        return self.popularity.momentum

    def matches_name(self, value: str) -> bool:
        """Case-insensitive exact match on name, display name or any alias."""
        needle = value.strip().lower()
        if not needle:
            return False
        candidates = [self.name, self.display_name, *self.aliases]
        return any(c.strip().lower() == needle for c in candidates)


# =============================================================================
# Relationship Records
# =============================================================================


class IntegrationEdge(BaseModel):
    """A directed 'source connects to target' relation."""
    source_tool_id: str
    target_tool_id: str
    quality: IntegrationQuality = IntegrationQuality.BASIC
    description: Optional[str] = None

    def partner_of(self, tool_id: str) -> Optional[str]:
        """Return the other endpoint if tool_id is on this edge."""
        if self.source_tool_id == tool_id:
            return self.target_tool_id
        if self.target_tool_id == tool_id:
            return self.source_tool_id
        return None


class AutomationRecipe(BaseModel):
    """A trigger -> action automation between two tools."""
    id: str
    name: str
    trigger_tool_id: str
    action_tool_id: str
    trigger_event: Optional[str] = None
    action_event: Optional[str] = None
    description: Optional[str] = None

    def partner_of(self, tool_id: str) -> Optional[str]:
        if self.trigger_tool_id == tool_id:
            return self.action_tool_id
        if self.action_tool_id == tool_id:
            return self.trigger_tool_id
        return None


class RedundancyRelation(BaseModel):
    """Two tools that overlap in capability."""
    tool_a_id: str
    tool_b_id: str
    strength: RedundancyStrength = RedundancyStrength.PARTIAL
    hint: RecommendationHint = RecommendationHint.CONTEXT_DEPENDENT
    reason: Optional[str] = None


class ReplacementContext(BaseModel):
    """Company attributes a replacement rule is evaluated against."""
    cost_sensitivity: CostSensitivity = CostSensitivity.BALANCED
    tech_savviness: TechSavviness = TechSavviness.DECENT
    team_size: TeamSize = TeamSize.SMALL
    requires_compliance: list[ComplianceRequirement] = Field(default_factory=list)
    prefer_ai_native: bool = False


class ReplacementConditions(BaseModel):
    """When a replacement rule applies. Empty lists mean 'any'."""
    cost_sensitivity: list[CostSensitivity] = Field(default_factory=list)
    tech_savviness: list[TechSavviness] = Field(default_factory=list)
    team_size: list[TeamSize] = Field(default_factory=list)
    requires_compliance: list[ComplianceRequirement] = Field(default_factory=list)
    prefer_ai_native: Optional[bool] = None

    def matches(self, context: ReplacementContext) -> bool:
        if self.cost_sensitivity and context.cost_sensitivity not in self.cost_sensitivity:
            return False
        if self.tech_savviness and context.tech_savviness not in self.tech_savviness:
            return False
        if self.team_size and context.team_size not in self.team_size:
            return False
        if self.requires_compliance and not all(
            req in context.requires_compliance for req in self.requires_compliance
        ):
            return False
        if self.prefer_ai_native is not None and self.prefer_ai_native != context.prefer_ai_native:
            return False
        return True


class ReplacementRule(BaseModel):
    """Suggests swapping from_tool for to_tool under given conditions."""
    id: str
    from_tool_id: str
    to_tool_id: str
    reason: ReplacementReason
    conditions: ReplacementConditions = Field(default_factory=ReplacementConditions)
    notes: Optional[str] = None


class ToolCluster(BaseModel):
    """A curated group of tools known to work well together."""
    id: str
    name: str
    tool_ids: list[str] = Field(default_factory=list)
    confidence: float = Field(50, ge=0, le=100)
    synergy_strength: float = Field(50, ge=0, le=100)
    status: ClusterStatus = ClusterStatus.PENDING
    use_case: Optional[str] = None


class ClusterMatch(BaseModel):
    """A cluster that overlaps with a built stack."""
    cluster_id: str
    name: str
    matched_tool_ids: list[str]
    overlap: float = Field(..., ge=0, le=1, description="Fraction of the cluster present in the stack")
    match_score: int = Field(..., ge=0, le=100)
    use_case: Optional[str] = None


class PhaseCapability(BaseModel):
    """Workflow phases a tool is known to cover."""
    tool_id: str
    phases: list[WorkflowPhase] = Field(default_factory=list)


class PhaseRecommendation(BaseModel):
    """A tool recommended for a single workflow phase."""
    phase: WorkflowPhase
    tool_id: str
    rank: int = 1


# =============================================================================
# Catalog
# =============================================================================


class ToolCatalog(BaseModel):
    """Complete tool catalog with its relationship tables."""
    version: str = Field(default="1.0.0", description="Catalog schema version")
    generated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Generation timestamp"
    )
    total_tools: int = Field(default=0, description="Total number of tools")
    tools: list[Tool] = Field(default_factory=list)
    integrations: list[IntegrationEdge] = Field(default_factory=list)
    recipes: list[AutomationRecipe] = Field(default_factory=list)
    redundancies: list[RedundancyRelation] = Field(default_factory=list)
    replacements: list[ReplacementRule] = Field(default_factory=list)
    clusters: list[ToolCluster] = Field(default_factory=list)
    phase_capabilities: list[PhaseCapability] = Field(default_factory=list)
    phase_recommendations: list[PhaseRecommendation] = Field(default_factory=list)

    def model_post_init(self, __context) -> None:
        """Update total count after initialization."""
        self.total_tools = len(self.tools)

"""Scenario Builder - assembles three competing stacks from one ranked catalog.

Each scenario is a strategy over the same pipeline context. Every strategy
runs the same sequence of steps:

    seed -> fill categories -> enforce target range -> complete stack
    -> anchor challenge -> replacements -> redundancy removal -> finalize

Fill steps are sequential because each pick is scored against the tools
already chosen. Candidates inside one step are independent and are scored
in parallel on a shared I/O pool. The three strategies themselves run
concurrently and share no mutable state.
"""

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

from tool_catalog.schema import Tool, ToolCategory, WorkflowPhase

from .config import RecommenderConfig, ToolRange, get_config
from .explainer import ScenarioExplainer
from .integration import IntegrationScorer, round_half_up
from .phases import (
    DEFAULT_PHASE_CATEGORY_MAP,
    MultiPhaseResolution,
    resolve_multi_phase_tools,
    resolve_phase_category_map,
)
from .providers import ClusterProvider, PhaseDataProvider
from .redundancy import RedundancyResolver
from .scenario_scoring import (
    ScenarioScoringContext,
    ScenarioToolScore,
    calculate_quality_floor,
    calculate_target_tool_range,
    score_tool_for_scenario,
)
from .schema import BuiltScenario, PipelineContext, ScenarioType, WeightProfile
from .weights import build_scenario_weights
from .workflow import build_workflow

logger = logging.getLogger(__name__)


@dataclass
class ScenarioServices:
    """Shared, read-only collaborators for one build_all_scenarios call."""
    integration: IntegrationScorer
    redundancy: RedundancyResolver
    explainer: ScenarioExplainer
    io_pool: Executor
    multi_phase: MultiPhaseResolution
    phase_map: dict[WorkflowPhase, list[ToolCategory]]
    cluster_provider: Optional[ClusterProvider] = None


@dataclass
class ScenarioState:
    """Mutable build state private to one strategy run."""
    context: PipelineContext
    weights: WeightProfile
    tool_range: ToolRange
    pool: list[Tool]
    tools: list[Tool] = field(default_factory=list)
    scores: dict[str, float] = field(default_factory=dict)
    protected_ids: set[str] = field(default_factory=set)
    anchor_id: Optional[str] = None
    notes: list[str] = field(default_factory=list)

    @property
    def tool_ids(self) -> set[str]:
        return {t.id for t in self.tools}

    def has_category(self, category: ToolCategory) -> bool:
        return any(t.category == category for t in self.tools)


class ScenarioStrategy:
    """Base selection policy. Subclasses override the steps they change."""

    scenario_type: ScenarioType
    uses_quality_floor = False
    applies_replacements = False

    def __init__(self, services: ScenarioServices, config: Optional[RecommenderConfig] = None):
        self.services = services
        self.config = config or get_config()

    # -------------------------------------------------------------------------
    # Template
    # -------------------------------------------------------------------------

    def build(self, context: PipelineContext) -> BuiltScenario:
        """Build this strategy's scenario from the pipeline context."""
        state = ScenarioState(
            context=context,
            weights=build_scenario_weights(self.scenario_type, context.assessment, self.config),
            tool_range=self.target_range(context),
            pool=self.candidate_pool(context),
        )

        self.seed(state)
        self.fill(state)
        self.enforce_range(state)
        self.complete_stack(state)
        self.challenge_anchor(state)

        if self.applies_replacements:
            state.tools = self.services.redundancy.apply_replacements(
                state.tools,
                state.pool,
                context.replacement_context,
                protected_ids=state.protected_ids,
            )

        state.tools = self.services.redundancy.remove_redundant_tools(
            state.tools,
            protected_ids=state.protected_ids,
        )

        return self.finalize(state)

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def target_range(self, context: PipelineContext) -> ToolRange:
        return calculate_target_tool_range(
            context.assessment.team_size,
            self.scenario_type,
            context.assessment.pain_points,
            self.config,
        )

    def candidate_pool(self, context: PipelineContext) -> list[Tool]:
        return list(context.allowed_tools)

    def seed(self, state: ScenarioState) -> None:
        """Start from the anchor when there is one."""
        anchor = state.context.anchor_tool
        if anchor is None:
            return
        scored = self.score_candidates(state, [anchor], [])
        self.add(state, scored[0])
        state.protected_ids.add(anchor.id)
        state.anchor_id = anchor.id

    def fill(self, state: ScenarioState) -> None:
        raise NotImplementedError

    def fill_limit(self, state: ScenarioState) -> int:
        """Maximum stack size while filling."""
        return state.tool_range.max

    def enforce_range(self, state: ScenarioState) -> None:
        """Top up to the range minimum, then trim to the maximum.

        Top-up picks come from categories not yet in the stack, one at a
        time, each scored against the stack as it stands.
        """
        limit = self.fill_limit(state)
        target_min = min(state.tool_range.min, limit)

        while len(state.tools) < target_min:
            present = {t.category for t in state.tools}
            candidates = [
                t for t in state.pool
                if t.id not in state.tool_ids and t.category not in present
            ]
            if not candidates:
                break
            best = self.first_above_floor(state, self.score_candidates(state, candidates, state.tools))
            if best is None:
                state.notes.append("Stopped below the target range: remaining candidates fall under the quality floor")
                break
            self.add(state, best)

        while len(state.tools) > limit:
            removable = [t for t in state.tools if t.id not in state.protected_ids]
            if not removable:
                break
            dropped = removable[-1]
            state.tools.remove(dropped)
            state.scores.pop(dropped.id, None)
            state.notes.append(f"Dropped {dropped.display_name} to stay within {limit} tools")

    def complete_stack(self, state: ScenarioState) -> None:
        """Hook for tools added after the range is enforced."""

    def challenge_anchor(self, state: ScenarioState) -> None:
        """Hook for replacing the anchor with a decisively better tool."""

    def finalize(self, state: ScenarioState) -> BuiltScenario:
        context = state.context
        tools = state.tools

        displacement = list(context.displacement_list)
        for user_tool in context.user_tools:
            if user_tool.id not in state.tool_ids:
                displacement.append(user_tool.display_name)
        displacement = list(dict.fromkeys(displacement))

        return BuiltScenario(
            title=self.scenario_type.display_title,
            scenario_type=self.scenario_type,
            tools=tools,
            anchor_tool_id=state.anchor_id if state.anchor_id in state.tool_ids else None,
            displacement_list=displacement,
            workflow=build_workflow(tools, context.assessment.philosophy, self.services.phase_map),
            estimated_monthly_cost_per_user=calculate_stack_cost(tools),
            complexity_reduction_score=calculate_complexity_reduction(len(context.user_tools), len(tools)),
            target_min_tools=state.tool_range.min,
            target_max_tools=state.tool_range.max,
            matched_clusters=self.match_clusters(tools),
            rationale=self.services.explainer.build_rationale(self.scenario_type, context.assessment),
            build_notes=state.notes,
        )

    # -------------------------------------------------------------------------
    # Shared helpers
    # -------------------------------------------------------------------------

    def add(self, state: ScenarioState, scored: ScenarioToolScore) -> None:
        state.tools.append(scored.tool)
        state.scores[scored.tool.id] = scored.composite_score

    def score_candidates(
        self,
        state: ScenarioState,
        candidates: list[Tool],
        against: list[Tool],
    ) -> list[ScenarioToolScore]:
        """Score candidates against a fixed stack, best first.

        Candidates are independent of each other so their integration and
        synergy lookups run in parallel. Ties keep pool order.
        """
        if not candidates:
            return []

        assessment = state.context.assessment
        selected_ids = [t.id for t in against]
        user_tool_ids = state.context.user_tool_ids
        integration = self.services.integration

        def _score(tool: Tool) -> ScenarioToolScore:
            others = [tid for tid in selected_ids if tid != tool.id]
            scoring_context = ScenarioScoringContext(
                budget_per_user=assessment.budget_per_user,
                team_size=assessment.team_size,
                stage=assessment.stage,
                philosophy=assessment.philosophy,
                user_tool_ids=user_tool_ids,
                integration_score=integration.calculate_integration_score(tool.id, others),
                synergy_bonus=integration.calculate_stack_synergy_bonus(tool.id, others),
            )
            return score_tool_for_scenario(tool, state.weights, scoring_context, self.config)

        results = list(self.services.io_pool.map(_score, candidates))
        results.sort(key=lambda s: s.composite_score, reverse=True)
        return results

    def best_in_category(self, state: ScenarioState, category: ToolCategory) -> Optional[ScenarioToolScore]:
        candidates = [
            t for t in state.pool
            if t.category == category and t.id not in state.tool_ids
        ]
        if not candidates:
            logger.info(
                "%s: no eligible %s tool, leaving the category out",
                self.scenario_type.value, category.value,
            )
            state.notes.append(f"No eligible {category.value} tool")
            return None
        return self.score_candidates(state, candidates, state.tools)[0]

    def first_above_floor(
        self,
        state: ScenarioState,
        scored: list[ScenarioToolScore],
    ) -> Optional[ScenarioToolScore]:
        if not scored:
            return None
        if not self.below_floor(state, scored[0]):
            return scored[0]
        return None

    def below_floor(self, state: ScenarioState, candidate: ScenarioToolScore) -> bool:
        """True when the quality floor applies and candidate falls under it."""
        if not self.uses_quality_floor or len(state.tools) < 2:
            return False
        floor = calculate_quality_floor(list(state.scores.values()))
        return candidate.composite_score < floor

    def match_clusters(self, tools: list[Tool]):
        """Cluster enrichment; any failure leaves the field empty."""
        provider = self.services.cluster_provider
        if provider is None or not tools:
            return []
        cfg = self.config.clusters
        try:
            return provider.find_clusters_for_tools(
                tools,
                min_confidence=cfg.min_confidence,
                min_matched_tools=cfg.min_matched_tools,
            )
        except Exception as e:
            logger.warning("%s: cluster matching failed: %s", self.scenario_type.value, e)
            return []


class MonoStackStrategy(ScenarioStrategy):
    """Fewest tools: a multi-phase hub plus one communication and one development tool."""

    scenario_type = ScenarioType.MONO_STACK
    REQUIRED_CATEGORIES = (ToolCategory.COMMUNICATION, ToolCategory.DEVELOPMENT)

    def target_range(self, context: PipelineContext) -> ToolRange:
        base = super().target_range(context)
        high = min(base.max, self.config.tool_ranges.mono_stack_ceiling)
        return ToolRange(min=min(base.min, high), max=high)

    def seed(self, state: ScenarioState) -> None:
        if state.context.anchor_tool is not None:
            super().seed(state)
            return

        pool_ids = {t.id for t in state.pool}
        hubs = [t for t in self.services.multi_phase.tools if t.id in pool_ids]
        if not hubs:
            state.notes.append("No multi-phase tool available to anchor the stack")
            return
        best = self.score_candidates(state, hubs, [])[0]
        self.add(state, best)
        state.notes.append(
            f"Seeded with multi-phase tool {best.tool.display_name} "
            f"({self.services.multi_phase.tier.value})"
        )

    def fill(self, state: ScenarioState) -> None:
        for category in self.REQUIRED_CATEGORIES:
            if state.has_category(category):
                continue
            if len(state.tools) >= self.fill_limit(state):
                break
            best = self.best_in_category(state, category)
            if best:
                self.add(state, best)


class NativeIntegratorStrategy(ScenarioStrategy):
    """One best-integrated tool per essential category."""

    scenario_type = ScenarioType.NATIVE_INTEGRATOR
    uses_quality_floor = True
    applies_replacements = True

    ESSENTIAL_CATEGORIES = (
        ToolCategory.PROJECT_MANAGEMENT,
        ToolCategory.DOCUMENTATION,
        ToolCategory.DEVELOPMENT,
        ToolCategory.DESIGN,
        ToolCategory.COMMUNICATION,
        ToolCategory.MEETINGS,
        ToolCategory.ANALYTICS,
    )

    def categories(self, state: ScenarioState) -> list[ToolCategory]:
        """Essential categories, narrowed to desired ones and ordered by phase priority."""
        assessment = state.context.assessment
        categories = list(self.ESSENTIAL_CATEGORIES)

        if assessment.desired_capabilities:
            categories = [c for c in categories if c in assessment.desired_capabilities]

        if assessment.phase_priorities:
            rank: dict[ToolCategory, int] = {}
            for i, phase in enumerate(assessment.phase_priorities):
                phase_categories = self.services.phase_map.get(phase) or DEFAULT_PHASE_CATEGORY_MAP[phase]
                for category in phase_categories:
                    rank.setdefault(category, i)
            categories.sort(key=lambda c: rank.get(c, len(assessment.phase_priorities)))

        return categories

    def fill(self, state: ScenarioState) -> None:
        for category in self.categories(state):
            if state.has_category(category):
                continue
            if len(state.tools) >= self.fill_limit(state):
                break
            best = self.best_in_category(state, category)
            if best is None:
                continue
            if self.below_floor(state, best):
                state.notes.append(
                    f"Skipped {best.tool.display_name}: score {best.composite_score:.1f} "
                    f"is under the quality floor"
                )
                continue
            self.add(state, best)

    def challenge_anchor(self, state: ScenarioState) -> None:
        """Swap the anchor for a same-category tool scoring over ratio x its score."""
        anchor_id = state.anchor_id
        if anchor_id is None or anchor_id not in state.tool_ids:
            return

        anchor = next(t for t in state.tools if t.id == anchor_id)
        rest = [t for t in state.tools if t.id != anchor_id]
        alternatives = [
            t for t in state.pool
            if t.category == anchor.category and t.id not in state.tool_ids
        ]
        if not alternatives:
            return

        anchor_score = self.score_candidates(state, [anchor], rest)[0].composite_score
        best = self.score_candidates(state, alternatives, rest)[0]
        ratio = self.config.scoring.anchor_challenge_ratio

        if best.composite_score <= ratio * anchor_score:
            return

        index = state.tools.index(anchor)
        state.tools[index] = best.tool
        state.scores.pop(anchor_id, None)
        state.scores[best.tool.id] = best.composite_score
        state.protected_ids.discard(anchor_id)
        state.anchor_id = None
        state.notes.append(
            f"{best.tool.display_name} replaced anchor {anchor.display_name} "
            f"({best.composite_score:.1f} vs {anchor_score:.1f})"
        )


class AgenticLeanStrategy(ScenarioStrategy):
    """AI-feature tools only, plus one communication tool of any kind."""

    scenario_type = ScenarioType.AGENTIC_LEAN
    applies_replacements = True

    AI_CATEGORIES = (
        ToolCategory.AI_ASSISTANTS,
        ToolCategory.DEVELOPMENT,
        ToolCategory.MEETINGS,
        ToolCategory.DOCUMENTATION,
        ToolCategory.PROJECT_MANAGEMENT,
        ToolCategory.AUTOMATION,
        ToolCategory.AI_BUILDERS,
    )

    def candidate_pool(self, context: PipelineContext) -> list[Tool]:
        return [t for t in context.allowed_tools if t.has_ai_features]

    def seed(self, state: ScenarioState) -> None:
        anchor = state.context.anchor_tool
        if anchor is None:
            return
        if anchor.has_ai_features:
            super().seed(state)
            return

        alternatives = [t for t in state.pool if t.category == anchor.category]
        if not alternatives:
            state.notes.append(f"No AI-enabled alternative to {anchor.display_name}")
            return

        best = self.best_ai_alternative(state, alternatives)
        scored = self.score_candidates(state, [best], [])
        self.add(state, scored[0])
        state.protected_ids.add(best.id)
        state.notes.append(f"{best.display_name} stands in for {anchor.display_name}, which has no AI features")

    def best_ai_alternative(self, state: ScenarioState, alternatives: list[Tool]) -> Tool:
        """Rank by integration with the user's tools and popularity momentum."""
        cfg = self.config.scoring
        user_tool_ids = state.context.user_tool_ids
        integration = self.services.integration

        def _rank(tool: Tool) -> float:
            others = [tid for tid in user_tool_ids if tid != tool.id]
            return (
                cfg.agentic_integration_weight * integration.calculate_integration_score(tool.id, others)
                + cfg.agentic_momentum_weight * tool.momentum_score
            )

        ranks = list(self.services.io_pool.map(_rank, alternatives))
        best_index = max(range(len(alternatives)), key=lambda i: ranks[i])
        return alternatives[best_index]

    def fill_limit(self, state: ScenarioState) -> int:
        # One slot is held back for the communication tool
        if state.has_category(ToolCategory.COMMUNICATION):
            return state.tool_range.max
        return max(0, state.tool_range.max - 1)

    def fill(self, state: ScenarioState) -> None:
        for category in self.AI_CATEGORIES:
            if state.has_category(category):
                continue
            if len(state.tools) >= self.fill_limit(state):
                break
            best = self.best_in_category(state, category)
            if best:
                self.add(state, best)

    def complete_stack(self, state: ScenarioState) -> None:
        if state.has_category(ToolCategory.COMMUNICATION):
            return
        candidates = [
            t for t in state.context.allowed_tools
            if t.category == ToolCategory.COMMUNICATION and t.id not in state.tool_ids
        ]
        if not candidates:
            logger.info("%s: no eligible communication tool", self.scenario_type.value)
            state.notes.append("No eligible communication tool")
            return
        self.add(state, self.score_candidates(state, candidates, state.tools)[0])


STRATEGY_REGISTRY: dict[ScenarioType, type[ScenarioStrategy]] = {
    ScenarioType.MONO_STACK: MonoStackStrategy,
    ScenarioType.NATIVE_INTEGRATOR: NativeIntegratorStrategy,
    ScenarioType.AGENTIC_LEAN: AgenticLeanStrategy,
}


def calculate_stack_cost(tools: list[Tool]) -> float:
    """Monthly per-user cost; unknown costs count as zero."""
    return round(sum(t.estimated_cost_per_user or 0 for t in tools), 2)


def calculate_complexity_reduction(original_count: int, new_count: int) -> int:
    """Percentage fewer tools than the company uses today, clamped to 0-100."""
    if original_count == 0:
        return 0
    reduction = (original_count - new_count) / original_count * 100
    if reduction <= 0:
        return 0
    return min(100, round_half_up(reduction))


class ScenarioBuilder:
    """Builds the three scenarios concurrently.

    Always returns exactly three scenarios in ScenarioType order. A strategy
    that fails outright yields an empty scenario carrying the error in its
    build notes rather than failing the whole request.
    """

    def __init__(
        self,
        integration_scorer: IntegrationScorer,
        redundancy_resolver: RedundancyResolver,
        cluster_provider: Optional[ClusterProvider] = None,
        phase_provider: Optional[PhaseDataProvider] = None,
        explainer: Optional[ScenarioExplainer] = None,
        config: Optional[RecommenderConfig] = None,
    ):
        self.integration_scorer = integration_scorer
        self.redundancy_resolver = redundancy_resolver
        self.cluster_provider = cluster_provider
        self.phase_provider = phase_provider
        self.explainer = explainer or ScenarioExplainer()
        self.config = config or get_config()

    def build_all_scenarios(self, context: PipelineContext) -> list[BuiltScenario]:
        """Build mono-stack, native integrator and agentic lean scenarios."""
        capabilities, recommendations = self._load_phase_data()
        multi_phase = resolve_multi_phase_tools(
            context.allowed_tools,
            capabilities,
            recommendations,
            min_phases=self.config.scoring.multi_phase_min_phases,
        )
        phase_map = resolve_phase_category_map(capabilities, context.allowed_tools)

        with ThreadPoolExecutor(max_workers=self.config.concurrency.max_workers) as io_pool:
            services = ScenarioServices(
                integration=self.integration_scorer,
                redundancy=self.redundancy_resolver,
                explainer=self.explainer,
                io_pool=io_pool,
                multi_phase=multi_phase,
                phase_map=phase_map,
                cluster_provider=self.cluster_provider,
            )
            with ThreadPoolExecutor(max_workers=len(STRATEGY_REGISTRY)) as scenario_pool:
                futures = {
                    scenario_type: scenario_pool.submit(strategy(services, self.config).build, context)
                    for scenario_type, strategy in STRATEGY_REGISTRY.items()
                }
                return [
                    self._result_or_empty(scenario_type, future, context)
                    for scenario_type, future in futures.items()
                ]

    def _result_or_empty(self, scenario_type: ScenarioType, future, context: PipelineContext) -> BuiltScenario:
        try:
            return future.result()
        except Exception as e:
            logger.exception("Failed to build %s scenario", scenario_type.value)
            return BuiltScenario(
                title=scenario_type.display_title,
                scenario_type=scenario_type,
                displacement_list=[t.display_name for t in context.user_tools],
                rationale=self.explainer.build_rationale(scenario_type, context.assessment),
                build_notes=[f"Scenario could not be built: {e}"],
            )

    def _load_phase_data(self):
        if self.phase_provider is None:
            return [], []
        try:
            return (
                self.phase_provider.get_phase_capabilities(),
                self.phase_provider.get_phase_recommendations(),
            )
        except Exception as e:
            logger.warning("Phase data unavailable, using defaults: %s", e)
            return [], []

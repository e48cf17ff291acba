"""Phase resolution: which tools span many workflow phases, and which
categories serve each phase.

Both resolvers are pure functions with an explicit precedence:

1. phase capability records
2. per-phase tool recommendations
3. built-in defaults
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from tool_catalog.schema import (
    PhaseCapability,
    PhaseRecommendation,
    Tool,
    ToolCategory,
    WorkflowPhase,
)


DEFAULT_PHASE_CATEGORY_MAP: dict[WorkflowPhase, list[ToolCategory]] = {
    WorkflowPhase.DISCOVER: [ToolCategory.DOCUMENTATION, ToolCategory.AI_ASSISTANTS, ToolCategory.GROWTH],
    WorkflowPhase.DECIDE: [ToolCategory.PROJECT_MANAGEMENT, ToolCategory.DOCUMENTATION, ToolCategory.AI_ASSISTANTS],
    WorkflowPhase.DESIGN: [ToolCategory.DESIGN, ToolCategory.AI_BUILDERS],
    WorkflowPhase.BUILD: [
        ToolCategory.DEVELOPMENT,
        ToolCategory.AI_BUILDERS,
        ToolCategory.AI_ASSISTANTS,
        ToolCategory.PROJECT_MANAGEMENT,
    ],
    WorkflowPhase.LAUNCH: [ToolCategory.DEVELOPMENT, ToolCategory.AUTOMATION, ToolCategory.ANALYTICS],
    WorkflowPhase.REVIEW: [ToolCategory.MEETINGS, ToolCategory.COMMUNICATION, ToolCategory.ANALYTICS],
    WorkflowPhase.ITERATE: [
        ToolCategory.ANALYTICS,
        ToolCategory.GROWTH,
        ToolCategory.PROJECT_MANAGEMENT,
        ToolCategory.DOCUMENTATION,
    ],
}

# Known multi-phase tools, used when there is no phase data at all
DEFAULT_MULTI_PHASE_TOOLS = ("notion", "clickup", "linear", "asana", "monday")


class ResolutionTier(str, Enum):
    """Which data source produced a resolution."""
    CAPABILITIES = "capabilities"
    RECOMMENDATIONS = "recommendations"
    DEFAULTS = "defaults"


@dataclass
class MultiPhaseResolution:
    """Multi-phase tools in preference order and where they came from."""
    tools: list[Tool] = field(default_factory=list)
    tier: ResolutionTier = ResolutionTier.DEFAULTS


def resolve_multi_phase_tools(
    allowed: list[Tool],
    capabilities: list[PhaseCapability],
    recommendations: list[PhaseRecommendation],
    min_phases: int = 3,
) -> MultiPhaseResolution:
    """Find allowed tools that cover at least min_phases workflow phases.

    Tools from the first tier that yields any are returned, ordered by the
    number of phases covered and then by their position in ``allowed``.
    """
    # Tier 1: capability records
    cap_phases: dict[str, set[WorkflowPhase]] = {}
    for cap in capabilities:
        cap_phases.setdefault(cap.tool_id, set()).update(cap.phases)
    tools = _tools_covering(allowed, cap_phases, min_phases)
    if tools:
        return MultiPhaseResolution(tools=tools, tier=ResolutionTier.CAPABILITIES)

    # Tier 2: per-phase recommendations
    rec_phases: dict[str, set[WorkflowPhase]] = {}
    for rec in recommendations:
        rec_phases.setdefault(rec.tool_id, set()).add(rec.phase)
    tools = _tools_covering(allowed, rec_phases, min_phases)
    if tools:
        return MultiPhaseResolution(tools=tools, tier=ResolutionTier.RECOMMENDATIONS)

    # Tier 3: built-in names
    by_name = {t.name.lower(): t for t in reversed(allowed)}
    tools = [by_name[name] for name in DEFAULT_MULTI_PHASE_TOOLS if name in by_name]
    return MultiPhaseResolution(tools=tools, tier=ResolutionTier.DEFAULTS)


def _tools_covering(
    allowed: list[Tool],
    phases_by_tool: dict[str, set[WorkflowPhase]],
    min_phases: int,
) -> list[Tool]:
    covering = [t for t in allowed if len(phases_by_tool.get(t.id, ())) >= min_phases]
    covering.sort(key=lambda t: len(phases_by_tool[t.id]), reverse=True)
    return covering


def resolve_phase_category_map(
    capabilities: list[PhaseCapability],
    tools: list[Tool],
) -> dict[WorkflowPhase, list[ToolCategory]]:
    """Categories serving each phase, most common first.

    Categories are ranked by how many capable tools of that category cover
    the phase, with the default order breaking ties. Phases without any
    capability data keep the default list.
    """
    category_by_tool = {t.id: t.category for t in tools}
    counts: dict[WorkflowPhase, Counter] = {}
    for cap in capabilities:
        category = category_by_tool.get(cap.tool_id)
        if category is None:
            continue
        for phase in set(cap.phases):
            counts.setdefault(phase, Counter())[category] += 1

    result = {}
    for phase, defaults in DEFAULT_PHASE_CATEGORY_MAP.items():
        phase_counts = counts.get(phase)
        if not phase_counts:
            result[phase] = list(defaults)
            continue

        default_order = {c: i for i, c in enumerate(defaults)}
        categories = list(dict.fromkeys([*phase_counts.keys(), *defaults]))
        categories.sort(key=lambda c: (-phase_counts.get(c, 0), default_order.get(c, 99)))
        result[phase] = categories

    return result

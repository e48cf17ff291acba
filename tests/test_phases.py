"""Tests for multi-phase tool and phase-category resolution."""

from tool_catalog.schema import (
    PhaseCapability,
    PhaseRecommendation,
    ToolCategory,
    WorkflowPhase,
)
from stack_recommender.phases import (
    DEFAULT_PHASE_CATEGORY_MAP,
    ResolutionTier,
    resolve_multi_phase_tools,
    resolve_phase_category_map,
)


P = WorkflowPhase


class TestResolveMultiPhaseTools:
    """Three-tier fallback for multi-phase tools."""

    def test_capabilities_win(self, make_tool):
        allowed = [make_tool("hub"), make_tool("wide"), make_tool("narrow")]
        capabilities = [
            PhaseCapability(tool_id="hub", phases=[P.DISCOVER, P.DECIDE, P.ITERATE]),
            PhaseCapability(tool_id="wide", phases=[P.DISCOVER, P.DECIDE, P.BUILD, P.REVIEW]),
            PhaseCapability(tool_id="narrow", phases=[P.BUILD]),
        ]
        result = resolve_multi_phase_tools(allowed, capabilities, [])
        assert result.tier == ResolutionTier.CAPABILITIES
        assert [t.id for t in result.tools] == ["wide", "hub"]

    def test_only_allowed_tools_are_returned(self, make_tool):
        capabilities = [PhaseCapability(tool_id="excluded", phases=list(WorkflowPhase))]
        result = resolve_multi_phase_tools([make_tool("notion", name="notion")], capabilities, [])
        assert result.tier == ResolutionTier.DEFAULTS
        assert [t.id for t in result.tools] == ["notion"]

    def test_recommendations_need_distinct_phases(self, make_tool):
        allowed = [make_tool("repeat"), make_tool("spread")]
        recommendations = [
            PhaseRecommendation(phase=P.BUILD, tool_id="repeat", rank=1),
            PhaseRecommendation(phase=P.BUILD, tool_id="repeat", rank=2),
            PhaseRecommendation(phase=P.BUILD, tool_id="repeat", rank=3),
            PhaseRecommendation(phase=P.DECIDE, tool_id="spread"),
            PhaseRecommendation(phase=P.BUILD, tool_id="spread"),
            PhaseRecommendation(phase=P.ITERATE, tool_id="spread"),
        ]
        result = resolve_multi_phase_tools(allowed, [], recommendations)
        assert result.tier == ResolutionTier.RECOMMENDATIONS
        assert [t.id for t in result.tools] == ["spread"]

    def test_defaults_by_name(self, make_tool):
        allowed = [make_tool("x1", name="clickup"), make_tool("x2", name="figma"), make_tool("x3", name="notion")]
        result = resolve_multi_phase_tools(allowed, [], [])
        assert result.tier == ResolutionTier.DEFAULTS
        assert [t.name for t in result.tools] == ["notion", "clickup"]

    def test_nothing_found(self, make_tool):
        result = resolve_multi_phase_tools([make_tool("figma")], [], [])
        assert result.tools == []

    def test_min_phases_is_configurable(self, make_tool):
        allowed = [make_tool("pair")]
        capabilities = [PhaseCapability(tool_id="pair", phases=[P.DESIGN, P.BUILD])]
        assert resolve_multi_phase_tools(allowed, capabilities, [], min_phases=2).tools[0].id == "pair"


class TestResolvePhaseCategoryMap:
    """Phase to category preference resolution."""

    def test_no_data_returns_defaults(self):
        assert resolve_phase_category_map([], []) == DEFAULT_PHASE_CATEGORY_MAP

    def test_capabilities_reorder_categories(self, make_tool):
        tools = [
            make_tool("pm-1", category=ToolCategory.PROJECT_MANAGEMENT),
            make_tool("pm-2", category=ToolCategory.PROJECT_MANAGEMENT),
            make_tool("doc", category=ToolCategory.DOCUMENTATION),
        ]
        capabilities = [
            PhaseCapability(tool_id="pm-1", phases=[P.DISCOVER]),
            PhaseCapability(tool_id="pm-2", phases=[P.DISCOVER]),
            PhaseCapability(tool_id="doc", phases=[P.DISCOVER]),
        ]
        result = resolve_phase_category_map(capabilities, tools)
        assert result[P.DISCOVER][:2] == [ToolCategory.PROJECT_MANAGEMENT, ToolCategory.DOCUMENTATION]
        # Defaults are kept after the counted categories
        assert ToolCategory.GROWTH in result[P.DISCOVER]
        assert result[P.BUILD] == DEFAULT_PHASE_CATEGORY_MAP[P.BUILD]

    def test_unknown_tools_are_ignored(self):
        capabilities = [PhaseCapability(tool_id="ghost", phases=[P.DESIGN])]
        assert resolve_phase_category_map(capabilities, []) == DEFAULT_PHASE_CATEGORY_MAP

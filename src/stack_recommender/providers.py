"""Collaborator contracts consumed by the recommendation engine.

Every lookup the engine makes against reference data goes through one of
these protocols, so tests and alternative stores can be injected without
touching the engine. ``tool_catalog.catalog.CatalogStore`` implements all
of them.
"""

from typing import Iterable, Optional, Protocol

from tool_catalog.schema import (
    AutomationRecipe,
    ClusterMatch,
    IntegrationEdge,
    PhaseCapability,
    PhaseRecommendation,
    RedundancyRelation,
    ReplacementContext,
    ReplacementRule,
    Tool,
    ToolCategory,
)


class CatalogProvider(Protocol):
    def get_all_tools(self) -> list[Tool]: ...

    def get_tools_by_category(self, category: ToolCategory) -> list[Tool]: ...


class IntegrationDataProvider(Protocol):
    def get_integrations_for_tool(self, tool_id: str) -> list[IntegrationEdge]:
        """Edges with tool_id at either end."""
        ...

    def get_recipes_for_tool(self, tool_id: str) -> list[AutomationRecipe]:
        """Recipes with tool_id as trigger or action."""
        ...


class RedundancyDataProvider(Protocol):
    def find_redundancies_in_set(self, tool_ids: Iterable[str]) -> list[RedundancyRelation]: ...

    def find_best_replacement(
        self,
        tool_id: str,
        context: ReplacementContext,
    ) -> Optional[ReplacementRule]: ...


class NameMatcher(Protocol):
    def match_tool_names(self, names: Iterable[str]) -> dict[str, Optional[Tool]]: ...


class ClusterProvider(Protocol):
    def find_clusters_for_tools(
        self,
        tools: list[Tool],
        min_confidence: float = 60,
        min_matched_tools: int = 2,
    ) -> list[ClusterMatch]: ...


class PhaseDataProvider(Protocol):
    def get_phase_capabilities(self) -> list[PhaseCapability]: ...

    def get_phase_recommendations(self) -> list[PhaseRecommendation]: ...

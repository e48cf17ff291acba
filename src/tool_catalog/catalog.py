"""Catalog loading and the in-memory store behind every engine lookup.

The store answers catalog, integration, redundancy/replacement, cluster,
phase and name-matching queries from a single loaded ``ToolCatalog``.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Optional, Union

import yaml
from pydantic import ValidationError

from .schema import (
    AutomationRecipe,
    ClusterMatch,
    ClusterStatus,
    CostSensitivity,
    IntegrationEdge,
    PhaseCapability,
    PhaseRecommendation,
    RedundancyRelation,
    ReplacementContext,
    ReplacementReason,
    ReplacementRule,
    TechSavviness,
    Tool,
    ToolCatalog,
    ToolCategory,
)

logger = logging.getLogger(__name__)


class CatalogLoadError(Exception):
    """Raised when a catalog file cannot be read or validated."""


def load_catalog(path: Union[str, Path]) -> ToolCatalog:
    """Load a tool catalog from a JSON or YAML file.

    Args:
        path: Path to the catalog file (.json, .yaml or .yml).

    Returns:
        The validated ToolCatalog.

    Raises:
        CatalogLoadError: If the file is missing, unparseable or invalid.
    """
    catalog_path = Path(path)
    if not catalog_path.exists():
        raise CatalogLoadError(f"Catalog file not found: {catalog_path}")

    try:
        with open(catalog_path, "r", encoding="utf-8") as f:
            if catalog_path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise CatalogLoadError(f"Could not parse catalog {catalog_path}: {e}") from e

    # A bare list is treated as a tools-only catalog
    if isinstance(data, list):
        data = {"tools": data}

    try:
        catalog = ToolCatalog.model_validate(data or {})
    except ValidationError as e:
        raise CatalogLoadError(
            f"Catalog {catalog_path} failed validation with {e.error_count()} error(s): {e}"
        ) from e

    logger.info("Loaded catalog %s with %d tools", catalog_path, catalog.total_tools)
    return catalog


class CatalogStore:
    """Read-only, in-memory view over a ToolCatalog.

    Implements the catalog, integration, redundancy/replacement, cluster,
    phase and name-matching lookups the recommendation engine depends on.
    All indexes are built once in the constructor and never mutated.
    """

    # Points added when a replacement's reason suits the requesting company
    REASON_POINTS = {
        ReplacementReason.CONSOLIDATION: 2,
        ReplacementReason.BETTER_INTEGRATION: 1,
    }
    CONDITIONS_MATCH_POINTS = 2

    def __init__(self, catalog: ToolCatalog):
        self.catalog = catalog
        self._tools_by_id = {t.id: t for t in catalog.tools}

        self._integrations_by_tool: dict[str, list[IntegrationEdge]] = {}
        for edge in catalog.integrations:
            self._integrations_by_tool.setdefault(edge.source_tool_id, []).append(edge)
            if edge.target_tool_id != edge.source_tool_id:
                self._integrations_by_tool.setdefault(edge.target_tool_id, []).append(edge)

        self._recipes_by_tool: dict[str, list[AutomationRecipe]] = {}
        for recipe in catalog.recipes:
            self._recipes_by_tool.setdefault(recipe.trigger_tool_id, []).append(recipe)
            if recipe.action_tool_id != recipe.trigger_tool_id:
                self._recipes_by_tool.setdefault(recipe.action_tool_id, []).append(recipe)

        self._replacements_by_tool: dict[str, list[ReplacementRule]] = {}
        for rule in catalog.replacements:
            self._replacements_by_tool.setdefault(rule.from_tool_id, []).append(rule)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "CatalogStore":
        return cls(load_catalog(path))

    # -------------------------------------------------------------------------
    # Catalog provider
    # -------------------------------------------------------------------------

    def get_all_tools(self) -> list[Tool]:
        return list(self.catalog.tools)

    def get_tools_by_category(self, category: ToolCategory) -> list[Tool]:
        return [t for t in self.catalog.tools if t.category == category]

    def get_tool(self, tool_id: str) -> Optional[Tool]:
        return self._tools_by_id.get(tool_id)

    # -------------------------------------------------------------------------
    # Name matcher
    # -------------------------------------------------------------------------

    def match_tool_names(self, names: Iterable[str]) -> dict[str, Optional[Tool]]:
        """Resolve free-text names to tools by exact, case-insensitive match.

        Returns a mapping from each input name to its tool, or None when
        nothing in the catalog carries that name, display name or alias.
        """
        results: dict[str, Optional[Tool]] = {}
        for name in names:
            results[name] = next(
                (t for t in self.catalog.tools if t.matches_name(name)),
                None,
            )
        return results

    # -------------------------------------------------------------------------
    # Integration data provider
    # -------------------------------------------------------------------------

    def get_integrations_for_tool(self, tool_id: str) -> list[IntegrationEdge]:
        """All integration edges touching tool_id, in either direction."""
        return list(self._integrations_by_tool.get(tool_id, []))

    def get_recipes_for_tool(self, tool_id: str) -> list[AutomationRecipe]:
        """All automation recipes with tool_id as trigger or action."""
        return list(self._recipes_by_tool.get(tool_id, []))

    # -------------------------------------------------------------------------
    # Redundancy / replacement data provider
    # -------------------------------------------------------------------------

    def find_redundancies_in_set(self, tool_ids: Iterable[str]) -> list[RedundancyRelation]:
        """Redundancy relations whose both members are in tool_ids."""
        id_set = set(tool_ids)
        return [
            r for r in self.catalog.redundancies
            if r.tool_a_id in id_set and r.tool_b_id in id_set and r.tool_a_id != r.tool_b_id
        ]

    def find_best_replacement(
        self,
        tool_id: str,
        context: ReplacementContext,
    ) -> Optional[ReplacementRule]:
        """Pick the replacement rule for tool_id that best suits context.

        Rules are scored by how well their reason fits the company plus a
        bonus when their conditions match. The highest scoring rule wins;
        when no rule scores above zero the first declared rule is returned.
        """
        rules = self._replacements_by_tool.get(tool_id, [])
        if not rules:
            return None

        scored = [(self._score_replacement(rule, context), rule) for rule in rules]
        best_score, best_rule = max(scored, key=lambda pair: pair[0])
        if best_score > 0:
            return best_rule
        return rules[0]

    def _score_replacement(self, rule: ReplacementRule, context: ReplacementContext) -> int:
        score = 0

        if rule.reason == ReplacementReason.COST_SAVINGS:
            if context.cost_sensitivity == CostSensitivity.PRICE_FIRST:
                score += 3
            elif context.cost_sensitivity == CostSensitivity.BALANCED:
                score += 1
        elif rule.reason == ReplacementReason.SIMPLER_UX:
            if context.tech_savviness == TechSavviness.NEWBIE:
                score += 3
            elif context.tech_savviness == TechSavviness.DECENT:
                score += 1
        elif rule.reason == ReplacementReason.AI_NATIVE:
            if context.prefer_ai_native:
                score += 3
        elif rule.reason == ReplacementReason.FEATURE_SUPERSET:
            if context.cost_sensitivity == CostSensitivity.VALUE_FIRST:
                score += 2
        elif rule.reason == ReplacementReason.COMPLIANCE:
            if context.requires_compliance:
                score += 3
        else:
            score += self.REASON_POINTS.get(rule.reason, 0)

        if rule.conditions.matches(context):
            score += self.CONDITIONS_MATCH_POINTS

        return score

    # -------------------------------------------------------------------------
    # Cluster provider
    # -------------------------------------------------------------------------

    def find_clusters_for_tools(
        self,
        tools: list[Tool],
        min_confidence: float = 60,
        min_matched_tools: int = 2,
    ) -> list[ClusterMatch]:
        """Approved clusters that share at least min_matched_tools with tools.

        Matches are scored ``overlap * 50 + confidence * 0.3 + synergy * 0.2``
        and returned best first.
        """
        stack_ids = {t.id for t in tools}
        matches = []

        for cluster in self.catalog.clusters:
            if cluster.status != ClusterStatus.APPROVED:
                continue
            if cluster.confidence < min_confidence or not cluster.tool_ids:
                continue

            matched = [tid for tid in cluster.tool_ids if tid in stack_ids]
            if len(matched) < min_matched_tools:
                continue

            overlap = len(matched) / len(cluster.tool_ids)
            raw = overlap * 50 + (cluster.confidence / 100) * 30 + (cluster.synergy_strength / 100) * 20
            matches.append(ClusterMatch(
                cluster_id=cluster.id,
                name=cluster.name,
                matched_tool_ids=matched,
                overlap=round(overlap, 3),
                match_score=min(100, int(raw + 0.5)),
                use_case=cluster.use_case,
            ))

        matches.sort(key=lambda m: m.match_score, reverse=True)
        return matches

    # -------------------------------------------------------------------------
    # Phase data provider
    # -------------------------------------------------------------------------

    def get_phase_capabilities(self) -> list[PhaseCapability]:
        return list(self.catalog.phase_capabilities)

    def get_phase_recommendations(self) -> list[PhaseRecommendation]:
        return list(self.catalog.phase_recommendations)

"""Redundancy/Replacement Resolver.

Removes tools that fully duplicate each other inside a stack, suggests
which of the company's own tools are made redundant, and swaps in better
fitting replacements. The anchor is never removed or replaced.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional

from tool_catalog.schema import (
    RecommendationHint,
    RedundancyRelation,
    RedundancyStrength,
    ReplacementContext,
    ReplacementRule,
    Tool,
)

from .providers import RedundancyDataProvider
from .schema import DisplacementSuggestion

logger = logging.getLogger(__name__)


class RedundancyResolver:
    """Resolves overlap and substitution within a tool stack.

    Missing redundancy or replacement data is expected and simply leaves the
    stack untouched; provider failures are logged and treated the same way.
    """

    def __init__(self, provider: RedundancyDataProvider, max_workers: int = 8):
        self.provider = provider
        self.max_workers = max_workers

    def remove_redundant_tools(
        self,
        tools: list[Tool],
        protected_ids: Iterable[str] = (),
    ) -> list[Tool]:
        """Drop one member of every fully redundant pair.

        Args:
            tools: Candidate stack, in order
            protected_ids: Tool ids that must survive (the anchor)

        Returns:
            The stack with losers removed, order preserved
        """
        if len(tools) < 2:
            return list(tools)

        relations = self._relations_for([t.id for t in tools])
        by_id = {t.id: t for t in tools}
        protected = set(protected_ids)
        dropped: set[str] = set()

        for relation in self._ordered(relations):
            if relation.strength != RedundancyStrength.FULL:
                continue
            if relation.tool_a_id not in by_id or relation.tool_b_id not in by_id:
                continue
            # A pair already resolved by an earlier relation is left alone
            if relation.tool_a_id in dropped or relation.tool_b_id in dropped:
                continue

            loser = self._pick_loser(relation, by_id, protected)
            if loser:
                logger.debug("Removing %s as redundant (%s)", loser, relation.reason or relation.hint.value)
                dropped.add(loser)

        return [t for t in tools if t.id not in dropped]

    def analyze_redundancies(
        self,
        user_tools: list[Tool],
        anchor_id: Optional[str] = None,
    ) -> list[DisplacementSuggestion]:
        """Which of the company's own tools overlap with another of theirs.

        Full and partial relations produce suggestions; niche overlap never
        does. Each displaced tool appears at most once.
        """
        if len(user_tools) < 2:
            return []

        relations = self._relations_for([t.id for t in user_tools])
        by_id = {t.id: t for t in user_tools}
        protected = {anchor_id} if anchor_id else set()
        suggestions = []
        displaced: set[str] = set()

        for relation in self._ordered(relations):
            if relation.strength == RedundancyStrength.NICHE:
                continue
            if relation.tool_a_id not in by_id or relation.tool_b_id not in by_id:
                continue
            if relation.tool_a_id in displaced or relation.tool_b_id in displaced:
                continue

            loser = self._pick_loser(relation, by_id, protected)
            if not loser:
                continue
            winner = relation.tool_b_id if loser == relation.tool_a_id else relation.tool_a_id

            displaced.add(loser)
            suggestions.append(DisplacementSuggestion(
                keep_tool_id=winner,
                keep_name=by_id[winner].display_name,
                displace_tool_id=loser,
                displace_name=by_id[loser].display_name,
                reason=relation.reason,
            ))

        return suggestions

    def apply_replacements(
        self,
        tools: list[Tool],
        pool: list[Tool],
        context: ReplacementContext,
        protected_ids: Iterable[str] = (),
    ) -> list[Tool]:
        """Swap tools for better-fitting replacements, position for position.

        A replacement is used only if it is in the eligible pool and not
        already in the stack. Stack order and size are preserved.
        """
        protected = set(protected_ids)
        pool_by_id = {t.id: t for t in pool}
        candidates = [t for t in tools if t.id not in protected]

        # Lookups are independent of each other; batch them
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            rules = dict(zip(
                [t.id for t in candidates],
                executor.map(lambda t: self._lookup_replacement(t.id, context), candidates),
            ))

        result = list(tools)
        for i, tool in enumerate(result):
            rule = rules.get(tool.id)
            if rule is None:
                continue
            replacement = pool_by_id.get(rule.to_tool_id)
            if replacement is None:
                continue
            if any(t.id == replacement.id for t in result):
                continue
            logger.debug(
                "Replacing %s with %s (%s)", tool.id, replacement.id, rule.reason.value
            )
            result[i] = replacement

        return result

    def _lookup_replacement(
        self,
        tool_id: str,
        context: ReplacementContext,
    ) -> Optional[ReplacementRule]:
        try:
            return self.provider.find_best_replacement(tool_id, context)
        except Exception as e:
            logger.warning("Replacement lookup failed for %s: %s", tool_id, e)
            return None

    def _relations_for(self, tool_ids: list[str]) -> list[RedundancyRelation]:
        try:
            return self.provider.find_redundancies_in_set(tool_ids)
        except Exception as e:
            logger.warning("Redundancy lookup failed: %s", e)
            return []

    @staticmethod
    def _ordered(relations: list[RedundancyRelation]) -> list[RedundancyRelation]:
        """Deterministic processing order, independent of provider order."""
        return sorted(relations, key=lambda r: (r.tool_a_id, r.tool_b_id))

    @staticmethod
    def _pick_loser(
        relation: RedundancyRelation,
        by_id: dict[str, Tool],
        protected: set[str],
    ) -> Optional[str]:
        """Id of the tool to drop from a redundant pair, or None to keep both."""
        a_id, b_id = relation.tool_a_id, relation.tool_b_id
        a_protected, b_protected = a_id in protected, b_id in protected

        if a_protected and b_protected:
            return None
        if a_protected:
            return b_id
        if b_protected:
            return a_id

        if relation.hint == RecommendationHint.PREFER_A:
            return b_id
        if relation.hint == RecommendationHint.PREFER_B:
            return a_id

        # Context dependent: drop the pricier one; on a tie keep the lower id
        cost_a = by_id[a_id].estimated_cost_per_user or 0
        cost_b = by_id[b_id].estimated_cost_per_user or 0
        if cost_a != cost_b:
            return a_id if cost_a > cost_b else b_id
        return max(a_id, b_id)

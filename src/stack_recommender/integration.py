"""Integration & Synergy Scorer.

Two independent graph signals for a candidate tool against a tool set:

- coverage/quality: how many of the selected tools the candidate has an
  integration edge with, and how good those edges are (60/40 blend)
- stack synergy: a stepped bonus for automation-recipe chains linking the
  candidate to the existing stack
"""

import logging
from typing import Iterable, Optional

from tool_catalog.schema import INTEGRATION_QUALITY_WEIGHTS

from .config import RecommenderConfig, get_config
from .providers import IntegrationDataProvider

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round non-negative scores the way a score card does (2.5 -> 3)."""
    return int(value + 0.5)


class IntegrationScorer:
    """Scores how well a candidate connects to a set of tools.

    Provider failures are treated as missing data: coverage falls back to
    the neutral score and synergy to zero.
    """

    COVERAGE_WEIGHT = 60
    QUALITY_WEIGHT = 40

    # (minimum chain length, bonus), checked top-down
    SYNERGY_TIERS = ((5, 15), (4, 10), (3, 5))

    def __init__(
        self,
        provider: IntegrationDataProvider,
        config: Optional[RecommenderConfig] = None,
    ):
        self.provider = provider
        self.neutral_score = (config or get_config()).scoring.neutral_integration_score

    def calculate_integration_score(self, candidate_id: str, selected_ids: Iterable[str]) -> float:
        """Coverage/quality score of candidate against the selected tools.

        Returns:
            The neutral score (50) for an empty selection, 0 when no edge
            connects the candidate to the selection, otherwise an integer
            in [0, 100].
        """
        selected = set(selected_ids)
        if not selected:
            return self.neutral_score

        try:
            edges = self.provider.get_integrations_for_tool(candidate_id)
        except Exception as e:
            logger.warning("Integration lookup failed for %s: %s", candidate_id, e)
            return self.neutral_score

        # Best edge per partner so duplicate or reverse edges count once
        best_by_partner: dict[str, int] = {}
        for edge in edges:
            partner = edge.partner_of(candidate_id)
            if partner is None or partner not in selected:
                continue
            weight = INTEGRATION_QUALITY_WEIGHTS[edge.quality]
            if weight > best_by_partner.get(partner, -1):
                best_by_partner[partner] = weight

        if not best_by_partner:
            return 0

        coverage = len(best_by_partner) / len(selected)
        avg_quality = sum(best_by_partner.values()) / len(best_by_partner)
        raw = coverage * self.COVERAGE_WEIGHT + (avg_quality / 100) * self.QUALITY_WEIGHT
        return round_half_up(min(100.0, raw))

    def calculate_stack_synergy_bonus(self, candidate_id: str, existing_ids: Iterable[str]) -> int:
        """Stepped bonus (0, 5, 10 or 15) for automation chains.

        Chain length is the number of existing tools sharing a recipe with
        the candidate, plus the candidate itself.
        """
        existing = set(existing_ids)
        existing.discard(candidate_id)
        if not existing:
            return 0

        try:
            recipes = self.provider.get_recipes_for_tool(candidate_id)
        except Exception as e:
            logger.warning("Recipe lookup failed for %s: %s", candidate_id, e)
            return 0

        connected = set()
        for recipe in recipes:
            partner = recipe.partner_of(candidate_id)
            if partner in existing:
                connected.add(partner)

        chain_length = len(connected) + 1
        for min_length, bonus in self.SYNERGY_TIERS:
            if chain_length >= min_length:
                return bonus
        return 0

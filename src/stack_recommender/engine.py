"""Stack Recommendation Engine - main orchestration layer.

Loads a tool catalog once and turns company assessments into three
scenario recommendations.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from tool_catalog.catalog import CatalogLoadError, CatalogStore, load_catalog
from tool_catalog.schema import ToolCatalog

from .config import RecommenderConfig, get_config
from .explainer import ScenarioExplainer
from .integration import IntegrationScorer
from .normalizer import AssessmentLoadError, AssessmentNormalizer, load_assessment_file
from .pipeline import DecisionPipeline
from .redundancy import RedundancyResolver
from .scenario_builder import ScenarioBuilder
from .schema import CompanyAssessment, RawAssessment, RecommendationResult

logger = logging.getLogger(__name__)

ENGINE_VERSION = "1.0.0"

AssessmentInput = Union[CompanyAssessment, RawAssessment, dict, str, Path]


class RecommendationEngine:
    """Main recommendation engine.

    Usage:
        engine = RecommendationEngine()
        engine.load_catalog("tool-catalog.json")
        result = engine.recommend("assessment.json")
    """

    def __init__(self, config: Optional[RecommenderConfig] = None):
        self.config = config or get_config()
        self.normalizer = AssessmentNormalizer()
        self.explainer = ScenarioExplainer()
        self._store: Optional[CatalogStore] = None

    def load_catalog(self, catalog_path: Union[str, Path]) -> None:
        """Load the tool catalog from file."""
        self.use_catalog(load_catalog(catalog_path))

    def use_catalog(self, catalog: ToolCatalog) -> None:
        """Use an already loaded catalog."""
        self._store = CatalogStore(catalog)

    @property
    def catalog(self) -> ToolCatalog:
        if self._store is None:
            raise RuntimeError("Catalog not loaded. Call load_catalog() first.")
        return self._store.catalog

    def recommend(self, assessment: AssessmentInput) -> RecommendationResult:
        """Recommend three tool stacks for a company.

        Args:
            assessment: A normalized assessment, a raw intake-form assessment
                (model or dict) or a path to an assessment file

        Returns:
            RecommendationResult with the three scenarios and a summary
        """
        if self._store is None:
            raise RuntimeError("Catalog not loaded. Call load_catalog() first.")

        company = self._normalize(assessment)
        store = self._store
        max_workers = self.config.concurrency.max_workers

        integration_scorer = IntegrationScorer(store, self.config)
        redundancy_resolver = RedundancyResolver(store, max_workers=max_workers)

        pipeline = DecisionPipeline(
            catalog_provider=store,
            name_matcher=store,
            integration_scorer=integration_scorer,
            redundancy_resolver=redundancy_resolver,
            config=self.config,
        )
        context = pipeline.run(company)

        builder = ScenarioBuilder(
            integration_scorer=integration_scorer,
            redundancy_resolver=redundancy_resolver,
            cluster_provider=store,
            phase_provider=store,
            explainer=self.explainer,
            config=self.config,
        )
        scenarios = builder.build_all_scenarios(context)

        logger.info(
            "Built %s",
            ", ".join(f"{s.scenario_type.value}={len(s.tools)}" for s in scenarios),
        )

        return RecommendationResult(
            engine_version=ENGINE_VERSION,
            company=company.company,
            catalog_version=self.catalog.version,
            catalog_tool_count=self.catalog.total_tools,
            weight_profile=context.weight_profile,
            user_tools=[t.display_name for t in context.user_tools],
            unmatched_tools=context.unmatched_tool_names,
            anchor_tool=context.anchor_tool.display_name if context.anchor_tool else None,
            scenarios=scenarios,
            excluded=context.excluded,
            summary=self.explainer.generate_summary(scenarios, context),
            eligible_count=len(context.allowed_tools),
            excluded_count=len(context.excluded),
        )

    def _normalize(self, assessment: AssessmentInput) -> CompanyAssessment:
        if isinstance(assessment, CompanyAssessment):
            return assessment
        if isinstance(assessment, RawAssessment):
            return self.normalizer.normalize(assessment)
        if isinstance(assessment, dict):
            try:
                raw = RawAssessment.model_validate(assessment)
            except ValidationError as e:
                raise AssessmentLoadError(f"Invalid assessment: {e}") from e
            return self.normalizer.normalize(raw)
        return load_assessment_file(assessment)


def validate_catalog(catalog_path: Union[str, Path]) -> tuple[bool, list[str]]:
    """Validate a catalog file.

    Returns:
        Tuple of (is_valid, list of issues)
    """
    issues = []
    try:
        catalog = load_catalog(catalog_path)
    except CatalogLoadError as e:
        return False, [str(e)]

    if not catalog.tools:
        issues.append("Catalog contains no tools")

    seen = set()
    for tool in catalog.tools:
        if tool.id in seen:
            issues.append(f"Duplicate tool id: {tool.id}")
        seen.add(tool.id)

    known = seen
    for edge in catalog.integrations:
        for tool_id in (edge.source_tool_id, edge.target_tool_id):
            if tool_id not in known:
                issues.append(f"Integration references unknown tool: {tool_id}")
    for rule in catalog.replacements:
        for tool_id in (rule.from_tool_id, rule.to_tool_id):
            if tool_id not in known:
                issues.append(f"Replacement {rule.id} references unknown tool: {tool_id}")
    for recipe in catalog.recipes:
        for tool_id in (recipe.trigger_tool_id, recipe.action_tool_id):
            if tool_id not in known:
                issues.append(f"Recipe {recipe.id} references unknown tool: {tool_id}")
    for relation in catalog.redundancies:
        for tool_id in (relation.tool_a_id, relation.tool_b_id):
            if tool_id not in known:
                issues.append(f"Redundancy references unknown tool: {tool_id}")
    for cluster in catalog.clusters:
        for tool_id in cluster.tool_ids:
            if tool_id not in known:
                issues.append(f"Cluster {cluster.id} references unknown tool: {tool_id}")

    return len(issues) == 0, issues


def validate_assessment(assessment_path: Union[str, Path]) -> tuple[bool, list[str]]:
    """Validate an assessment file.

    Returns:
        Tuple of (is_valid, list of issues)
    """
    try:
        assessment = load_assessment_file(assessment_path)
    except AssessmentLoadError as e:
        return False, [str(e)]

    issues = []
    if not assessment.current_tools.strip():
        issues.append("No current tools listed")
    if assessment.budget_per_user == 0:
        issues.append("Budget per user is 0; only free tools will be eligible for price-first companies")

    # Warnings do not make the file invalid
    return True, issues

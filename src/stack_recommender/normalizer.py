"""Assessment Normalizer - first step of the recommendation engine.

Normalizes raw intake-form answers into a typed CompanyAssessment.
Handles the labels the form actually sends ("Pre-Seed", "Auto-Pilot",
"The Doc-Centric Team (Notion)") as well as plain enum values.
"""

import json
import logging
from pathlib import Path
from typing import Union

import yaml
from pydantic import ValidationError

from .schema import (
    AnchorType,
    AutomationPhilosophy,
    CompanyAssessment,
    ComplianceRequirement,
    CostSensitivity,
    PainPoint,
    ProductSensitivity,
    RawAssessment,
    Stage,
    TeamSize,
    TechSavviness,
    ToolCategory,
    WorkflowPhase,
)

logger = logging.getLogger(__name__)


class AssessmentLoadError(ValueError):
    """Raised when an assessment file cannot be read or validated."""


class AssessmentNormalizer:
    """Normalizes raw assessments into structured CompanyAssessment."""

    def normalize(self, raw: RawAssessment) -> CompanyAssessment:
        """Normalize a raw assessment.

        Unknown labels fall back to each enum's documented default; unknown
        list entries (pain points, requirements) are dropped with a debug log.
        """
        return CompanyAssessment(
            company=raw.company.strip(),
            stage=Stage.from_string(raw.stage),
            team_size=TeamSize.from_string(raw.team_size),
            current_tools=raw.current_tools,
            philosophy=AutomationPhilosophy.from_string(raw.philosophy),
            tech_savviness=TechSavviness.from_string(raw.tech_savviness),
            budget_per_user=max(0.0, raw.budget_per_user),
            cost_sensitivity=CostSensitivity.from_string(raw.cost_sensitivity),
            sensitivity=ProductSensitivity.from_string(raw.sensitivity),
            compliance_requirements=self._parse_list(
                raw.high_stakes_requirements, ComplianceRequirement.from_string, "requirement"
            ),
            anchor_type=AnchorType.from_string(raw.anchor_type),
            other_anchor_text=raw.other_anchor_text.strip(),
            pain_points=self._parse_list(raw.pain_points, PainPoint.from_string, "pain point"),
            phase_priorities=self._parse_list(raw.phase_priorities, self._parse_phase, "phase"),
            desired_capabilities=self._parse_list(
                raw.desired_capabilities, self._parse_category, "capability"
            ),
        )

    @staticmethod
    def _parse_list(values: list[str], parser, label: str) -> list:
        parsed = []
        for value in values:
            item = parser(value)
            if item is None:
                logger.debug("Ignoring unknown %s: %r", label, value)
                continue
            if item not in parsed:
                parsed.append(item)
        return parsed

    @staticmethod
    def _parse_phase(value: str):
        try:
            return WorkflowPhase(value.strip().lower())
        except ValueError:
            return None

    @staticmethod
    def _parse_category(value: str):
        category = ToolCategory.from_string(value)
        return None if category == ToolCategory.OTHER else category


def load_assessment_file(file_path: Union[str, Path]) -> CompanyAssessment:
    """Load and normalize an assessment file from disk.

    Args:
        file_path: Path to the JSON or YAML assessment file.

    Returns:
        Normalized CompanyAssessment ready for the pipeline.

    Raises:
        AssessmentLoadError: If the file is missing or invalid.
    """
    path = Path(file_path)
    if not path.exists():
        raise AssessmentLoadError(f"Assessment file not found: {file_path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise AssessmentLoadError(f"Could not parse assessment {file_path}: {e}") from e

    # Handle array wrapper (file is a list with one assessment)
    if isinstance(data, list):
        if len(data) != 1:
            raise AssessmentLoadError(f"Expected exactly 1 assessment object, got {len(data)}")
        data = data[0]

    try:
        raw = RawAssessment.model_validate(data or {})
    except ValidationError as e:
        raise AssessmentLoadError(f"Invalid assessment {file_path}: {e}") from e

    normalizer = AssessmentNormalizer()
    return normalizer.normalize(raw)

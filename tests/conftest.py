"""Shared fixtures for the stack recommender test suite."""

from pathlib import Path

import pytest

from tool_catalog.catalog import CatalogStore, load_catalog
from tool_catalog.schema import Tool, ToolCatalog
from stack_recommender.config import RecommenderConfig, reset_config
from stack_recommender.schema import CompanyAssessment


DATA_DIR = Path(__file__).parent.parent / "data"
CATALOG_PATH = DATA_DIR / "tool-catalog.json"
ASSESSMENTS_DIR = DATA_DIR / "assessments"


def build_tool(tool_id: str, **overrides) -> Tool:
    """Minimal valid tool; keyword arguments override any field."""
    fields = {
        "id": tool_id,
        "name": tool_id,
        "display_name": tool_id.replace("-", " ").title(),
        "estimated_cost_per_user": 10,
    }
    fields.update(overrides)
    return Tool(**fields)


@pytest.fixture(autouse=True)
def _default_config():
    """Every test starts from the default configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config() -> RecommenderConfig:
    return RecommenderConfig()


@pytest.fixture(scope="session")
def sample_catalog() -> ToolCatalog:
    """The sample catalog shipped in data/."""
    return load_catalog(CATALOG_PATH)


@pytest.fixture
def sample_store(sample_catalog) -> CatalogStore:
    return CatalogStore(sample_catalog)


@pytest.fixture
def make_tool():
    """Factory for ad-hoc tools."""
    return build_tool


@pytest.fixture
def make_assessment():
    """Factory for normalized assessments with sensible defaults."""
    def _make(**overrides) -> CompanyAssessment:
        return CompanyAssessment(**overrides)
    return _make

# tests/conftest.py

"""
Pytest Fixtures - Shared rubrics, stores and API client

RUBRIC REFERENCE:
- two_pillar_rubric: Metrics (weight 40) + EconomicBuyer (weight 15), one 10-point question each,
                     thresholds low 70 / medium 50 / high 30
- balanced_rubric:   three pillars, weights 50 / 30 / 20, mixed question types
"""

import pytest
from fastapi.testclient import TestClient

from meddpicc_scoring.core.dependencies import reset_dependencies
from meddpicc_scoring.models.configuration import Pillar, Question, RubricDefinition, Thresholds
from meddpicc_scoring.repositories.configuration_repository import InMemoryConfigurationRepository
from meddpicc_scoring.services.configuration_store import ConfigurationStore
from meddpicc_scoring.services.score_cache import ScoreCache
from meddpicc_scoring.services.scoring_service import ScoringService


ORG_ID = "org-acme"
ACTOR_ID = "user-admin"


# =============================================================================
# FASTAPI TEST CLIENT FIXTURE
# =============================================================================

@pytest.fixture
def client():
    """TestClient over fresh in-memory singletons."""
    from meddpicc_scoring.main import app

    reset_dependencies()
    with TestClient(app) as test_client:
        yield test_client
    reset_dependencies()


# =============================================================================
# RUBRIC FIXTURES
# =============================================================================

@pytest.fixture
def two_pillar_pillars():
    return [
        Pillar(
            id="Metrics",
            name="Metrics",
            weight=40,
            questions=[Question(id="metrics_q1", text="What is the measurable impact?", max_points=10)],
        ),
        Pillar(
            id="EconomicBuyer",
            name="Economic Buyer",
            weight=15,
            questions=[Question(id="eb_q1", text="Who signs the budget?", max_points=10)],
        ),
    ]


@pytest.fixture
def two_pillar_thresholds():
    return Thresholds(low=70, medium=50, high=30)


@pytest.fixture
def two_pillar_rubric(two_pillar_pillars, two_pillar_thresholds):
    return RubricDefinition(pillars=two_pillar_pillars, thresholds=two_pillar_thresholds)


@pytest.fixture
def balanced_pillars():
    return [
        Pillar(
            id="metrics",
            name="Metrics",
            weight=50,
            questions=[
                Question(id="current_cost", text="What is the current cost of the problem?"),
                Question(id="success_metrics", text="How will success be measured?"),
            ],
        ),
        Pillar(
            id="champion",
            name="Champion",
            weight=30,
            questions=[
                Question(id="champion_identity", text="Who is our internal champion?"),
                Question(
                    id="champion_commitment",
                    text="How committed are they to our solution?",
                    type="scale",
                    answers=[
                        {"text": "Fully committed", "points": 10},
                        {"text": "Neutral", "points": 4},
                    ],
                ),
            ],
        ),
        Pillar(
            id="competition",
            name="Competition",
            weight=20,
            questions=[Question(id="competitors", text="Who else are they considering?")],
        ),
    ]


@pytest.fixture
def balanced_rubric(balanced_pillars):
    return RubricDefinition(pillars=balanced_pillars, thresholds=Thresholds(low=80, medium=60, high=40))


# =============================================================================
# SERVICE FIXTURES
# =============================================================================

@pytest.fixture
def repository():
    return InMemoryConfigurationRepository()


@pytest.fixture
def store(repository):
    return ConfigurationStore(repository)


@pytest.fixture
def score_cache():
    return ScoreCache(ttl_seconds=300, max_entries=100)


@pytest.fixture
def scoring_service(store, score_cache):
    return ScoringService(store=store, cache=score_cache)


@pytest.fixture
def active_balanced(store, balanced_rubric):
    """Organization ORG_ID with balanced_rubric saved and active as version 1."""
    saved = store.save_configuration(ORG_ID, balanced_rubric.pillars, balanced_rubric.thresholds, ACTOR_ID)
    return store.activate_configuration(ORG_ID, saved.version, ACTOR_ID)

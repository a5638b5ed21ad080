import random
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from mindwyn.main import app
from mindwyn.services.behavior_engine.aggregator import TelemetryAggregator
from mindwyn.services.behavior_engine.metrics import FeatureSnapshot, Prediction
from mindwyn.services.behavior_engine.stress_scorer import ModelBasedStrategy, StressScorer
from mindwyn.services.recommendation_engine.selector import RecommendationSelector


class FirstEntryRandom(random.Random):
    """Deterministic RNG that always picks index 0."""

    def randrange(self, *args, **kwargs):
        return 0


@pytest.fixture
def make_snapshot():
    def _make(**overrides) -> FeatureSnapshot:
        fields = dict(
            tab_switches=0,
            typing_speed=0.0,
            mouse_movements=0,
            scroll_speed=0.0,
            idle_time_ms=0,
            active_time_ms=0,
            time_of_day_hour=12,
            app_category_code=1,
        )
        fields.update(overrides)
        return FeatureSnapshot(**fields)
    return _make


@pytest.fixture
def make_prediction():
    def _make(stress=0.2, focus=0.8, energy=0.8, confidence=0.6) -> Prediction:
        return Prediction(stress_level=stress, focus_level=focus, energy_level=energy, confidence=confidence)
    return _make


@pytest.fixture
def aggregator() -> TelemetryAggregator:
    return TelemetryAggregator(clock=lambda: datetime(2024, 3, 4, 10, 30))


@pytest.fixture
def first_entry_rng() -> random.Random:
    return FirstEntryRandom()


@pytest.fixture
def client():
    """TestClient with rule-only scoring and no generative-text client."""
    with TestClient(app) as test_client:
        app.state.scorer = StressScorer(primary=ModelBasedStrategy())
        app.state.selector = RecommendationSelector()
        app.state.sessions.llm_client = None
        app.state.sessions.scorer = app.state.scorer
        yield test_client

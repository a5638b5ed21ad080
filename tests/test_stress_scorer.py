import numpy as np
import pytest
import torch

from mindwyn.config import Settings
from mindwyn.services.behavior_engine.metrics import StressScores
from mindwyn.services.behavior_engine.network import FeedForwardNetwork
from mindwyn.services.behavior_engine.stress_scorer import (
    FailureReason,
    InferenceResult,
    ModelBasedStrategy,
    RuleBasedStrategy,
    ScoringStrategy,
    StressScorer,
)

ALL_FACTORS = [
    "High stress detected",
    "Fast typing pace",
    "Frequent tab switching",
    "High mouse activity",
]


class FixedStrategy(ScoringStrategy):
    name = "fixed"

    def __init__(self, stress):
        self.stress = stress

    def evaluate(self, snapshot):
        return InferenceResult.success(StressScores(self.stress, 0.5, 0.5, 0.9))


class ExplodingStrategy(ScoringStrategy):
    name = "exploding"

    def evaluate(self, snapshot):
        raise RuntimeError("boom")


class NaNNetwork:
    def predict(self, features):
        return np.array([np.nan, 0.5, 0.5])


@pytest.fixture
def rule_scorer():
    return StressScorer(primary=RuleBasedStrategy())


@pytest.mark.parametrize("overrides", [
    {},
    {"tab_switches": 60, "typing_speed": 90.0, "mouse_movements": 600, "active_time_ms": 8_000_000},
    {"tab_switches": 500, "active_time_ms": 50_000_000},
    {"typing_speed": 81.0, "scroll_speed": 1e6, "idle_time_ms": 10**9},
    {"mouse_movements": 501, "time_of_day_hour": 23, "app_category_code": 5},
])
def test_rule_based_outputs_in_range(rule_scorer, make_snapshot, overrides):
    prediction = rule_scorer.score(make_snapshot(**overrides))
    for value in (prediction.stress_level, prediction.focus_level, prediction.energy_level):
        assert 0.0 <= value <= 1.0
    assert prediction.confidence == 0.6
    assert prediction.strategy == "rule"


def test_rule_based_all_factors_trigger(rule_scorer, make_snapshot):
    snapshot = make_snapshot(tab_switches=60, typing_speed=90.0, mouse_movements=600, active_time_ms=8_000_000)
    prediction = rule_scorer.score(snapshot)
    assert prediction.stress_level == 1.0
    assert list(prediction.factors) == ALL_FACTORS


def test_rule_based_idle_student(rule_scorer, make_snapshot):
    prediction = rule_scorer.score(make_snapshot())
    assert prediction.stress_level == 0.0
    assert prediction.focus_level == 1.0
    assert prediction.energy_level == 1.0
    assert prediction.factors == ()


def test_rule_based_partial_factors(make_snapshot):
    result = RuleBasedStrategy().evaluate(
        make_snapshot(tab_switches=51, mouse_movements=501, active_time_ms=3_600_000)
    )
    assert result.ok
    assert result.scores.stress == pytest.approx(0.5)
    assert result.scores.focus == pytest.approx(0.49)
    assert result.scores.energy == pytest.approx(0.75)


def test_focus_non_increasing_in_tab_switches(rule_scorer, make_snapshot):
    focus_values = [rule_scorer.score(make_snapshot(tab_switches=n)).focus_level for n in range(0, 160, 5)]
    assert all(a >= b for a, b in zip(focus_values, focus_values[1:]))
    assert rule_scorer.score(make_snapshot(tab_switches=100)).focus_level == 0.0
    assert rule_scorer.score(make_snapshot(tab_switches=150)).focus_level == 0.0


def test_rule_based_is_idempotent(rule_scorer, make_snapshot):
    snapshot = make_snapshot(tab_switches=33, typing_speed=85.5, mouse_movements=420, active_time_ms=1_234_567)
    assert rule_scorer.score(snapshot) == rule_scorer.score(snapshot)


def test_unloaded_model_falls_back_to_rules(make_snapshot):
    scorer = StressScorer()
    assert not scorer.primary.is_loaded

    prediction = scorer.score(make_snapshot(tab_switches=60))
    assert prediction.strategy == "rule"
    assert prediction.confidence == 0.6
    assert prediction.stress_level == pytest.approx(0.3)


def test_model_strategy_reports_unavailable(make_snapshot):
    result = ModelBasedStrategy().evaluate(make_snapshot())
    assert not result.ok
    assert result.scores is None
    assert result.failure.reason == FailureReason.MODEL_UNAVAILABLE


def test_loaded_model_is_used(make_snapshot):
    scorer = StressScorer(primary=ModelBasedStrategy(FeedForwardNetwork(seed=3)))
    prediction = scorer.score(make_snapshot(tab_switches=12, typing_speed=40.0, mouse_movements=300))

    assert prediction.strategy == "model"
    assert prediction.confidence == 0.8
    for value in (prediction.stress_level, prediction.focus_level, prediction.energy_level):
        assert 0.0 <= value <= 1.0


def test_non_finite_model_output_falls_back(make_snapshot):
    strategy = ModelBasedStrategy(NaNNetwork())
    result = strategy.evaluate(make_snapshot())
    assert result.failure.reason == FailureReason.NUMERICAL_ERROR

    prediction = StressScorer(primary=strategy).score(make_snapshot())
    assert prediction.strategy == "rule"


def test_raising_strategy_never_propagates(make_snapshot):
    prediction = StressScorer(primary=ExplodingStrategy()).score(make_snapshot(tab_switches=70))
    assert prediction.strategy == "rule"
    assert prediction.focus_level == pytest.approx(0.3)


def test_normalize_feature_order(make_snapshot):
    snapshot = make_snapshot(
        tab_switches=50, typing_speed=25.0, mouse_movements=250, scroll_speed=10.0,
        idle_time_ms=1_800_000, active_time_ms=3_600_000, time_of_day_hour=6, app_category_code=5,
    )
    np.testing.assert_allclose(
        ModelBasedStrategy.normalize(snapshot),
        [0.5, 0.25, 0.25, 0.1, 0.5, 1.0, 0.25, 1.0],
    )


def test_from_artifact_missing_file(tmp_path):
    strategy = ModelBasedStrategy.from_artifact(tmp_path / "missing.pt")
    assert not strategy.is_loaded
    assert not ModelBasedStrategy.from_artifact(None).is_loaded


def test_from_artifact_loads_saved_network(tmp_path):
    path = tmp_path / "weights.pt"
    FeedForwardNetwork(seed=1).save(path)
    assert ModelBasedStrategy.from_artifact(path).is_loaded


def _truncated_zip(path):
    path.write_bytes(b"PK\x03\x04" + bytes(64))


def _plain_array(path):
    with open(path, "wb") as fh:
        np.save(fh, np.zeros((8, 16)))


def _random_bytes(path):
    path.write_bytes(bytes(range(256)))


def _foreign_checkpoint(path):
    torch.save({"layers": [1, 2, 3]}, path)


def _mismatched_state_dict(path):
    torch.save({"model_state_dict": {"layers.0.weight": torch.zeros(4, 4)}}, path)


@pytest.mark.parametrize("write_artifact", [
    _truncated_zip, _plain_array, _random_bytes, _foreign_checkpoint, _mismatched_state_dict,
])
def test_from_artifact_bad_checkpoint_stays_uninitialised(tmp_path, make_snapshot, write_artifact):
    path = tmp_path / "weights.pt"
    write_artifact(path)

    strategy = ModelBasedStrategy.from_artifact(path)
    assert not strategy.is_loaded

    scorer = StressScorer.from_settings(Settings(model_weights_path=str(path)))
    assert scorer.score(make_snapshot()).strategy == "rule"


def test_factors_use_ambient_stress(make_snapshot):
    scorer = StressScorer(primary=FixedStrategy(stress=0.8))
    prediction = scorer.score(make_snapshot())
    assert prediction.strategy == "fixed"
    assert list(prediction.factors) == ["High stress detected"]


def test_factors_thresholds_are_strict(make_snapshot):
    scorer = StressScorer(primary=FixedStrategy(stress=0.7))
    snapshot = make_snapshot(typing_speed=80.0, tab_switches=20, mouse_movements=500)
    assert scorer.score(snapshot).factors == ()

    snapshot = make_snapshot(typing_speed=80.1, tab_switches=21, mouse_movements=501)
    assert list(scorer.score(snapshot).factors) == ALL_FACTORS[1:]

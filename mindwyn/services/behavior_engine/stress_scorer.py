import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import numpy as np

from mindwyn.services.behavior_engine.metrics import FeatureSnapshot, Prediction, StressScores
from mindwyn.services.behavior_engine.network import FeedForwardNetwork

logger = logging.getLogger(__name__)


# --- RESULT TYPE ---

class FailureReason(str, Enum):
    MODEL_UNAVAILABLE = "Model Unavailable"
    NUMERICAL_ERROR = "Numerical Error"
    INFERENCE_ERROR = "Inference Error"


@dataclass(frozen=True)
class InferenceFailure:
    reason: FailureReason
    detail: str = ""


@dataclass(frozen=True)
class InferenceResult:
    """Either scores or a failure, never both."""
    scores: Optional[StressScores] = None
    failure: Optional[InferenceFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, scores: StressScores) -> "InferenceResult":
        return cls(scores=scores)

    @classmethod
    def error(cls, reason: FailureReason, detail: str = "") -> "InferenceResult":
        return cls(failure=InferenceFailure(reason, detail))


# --- STRATEGIES ---

class ScoringStrategy(ABC):
    name: str = ""

    @abstractmethod
    def evaluate(self, snapshot: FeatureSnapshot) -> InferenceResult:
        ...


class RuleBasedStrategy(ScoringStrategy):
    """
    Deterministic threshold heuristics. Always succeeds.
    """
    name = "rule"

    CONFIDENCE = 0.6

    # (threshold, contribution) per stress factor
    TAB_SWITCH_THRESHOLD = 50
    TAB_SWITCH_WEIGHT = 0.3
    TYPING_SPEED_THRESHOLD = 80
    TYPING_SPEED_WEIGHT = 0.2
    MOUSE_MOVEMENT_THRESHOLD = 500
    MOUSE_MOVEMENT_WEIGHT = 0.2
    ACTIVE_TIME_THRESHOLD_MS = 7_200_000   # 2 hours
    ACTIVE_TIME_WEIGHT = 0.3

    FOCUS_TAB_SWITCH_REFERENCE = 100
    ENERGY_ACTIVE_TIME_REFERENCE_MS = 14_400_000   # 4 hours

    def evaluate(self, snapshot: FeatureSnapshot) -> InferenceResult:
        stress_factors = [
            self.TAB_SWITCH_WEIGHT if snapshot.tab_switches > self.TAB_SWITCH_THRESHOLD else 0.0,
            self.TYPING_SPEED_WEIGHT if snapshot.typing_speed > self.TYPING_SPEED_THRESHOLD else 0.0,
            self.MOUSE_MOVEMENT_WEIGHT if snapshot.mouse_movements > self.MOUSE_MOVEMENT_THRESHOLD else 0.0,
            self.ACTIVE_TIME_WEIGHT if snapshot.active_time_ms > self.ACTIVE_TIME_THRESHOLD_MS else 0.0,
        ]
        stress = min(sum(stress_factors), 1.0)
        focus = max(0.0, 1 - snapshot.tab_switches / self.FOCUS_TAB_SWITCH_REFERENCE)
        energy = max(0.0, 1 - snapshot.active_time_ms / self.ENERGY_ACTIVE_TIME_REFERENCE_MS)

        return InferenceResult.success(
            StressScores(stress=stress, focus=focus, energy=energy, confidence=self.CONFIDENCE)
        )


class ModelBasedStrategy(ScoringStrategy):
    """
    Feed-forward network over normalised snapshot features.

    Returns a failure result (instead of raising) when no network is
    loaded or inference produces non-finite values.
    """
    name = "model"

    CONFIDENCE = 0.8

    # Divisors applied to each FeatureSnapshot field, in network input order
    NORMALIZERS = (
        ("tab_switches", 100),
        ("typing_speed", 100),
        ("mouse_movements", 1000),
        ("scroll_speed", 100),
        ("idle_time_ms", 3_600_000),
        ("active_time_ms", 3_600_000),
        ("time_of_day_hour", 24),
        ("app_category_code", 5),
    )

    def __init__(self, network: Optional[FeedForwardNetwork] = None):
        self.network = network

    @classmethod
    def from_artifact(cls, path: Union[str, Path, None]) -> "ModelBasedStrategy":
        """
        Load a network checkpoint if one is configured.

        Any unreadable, corrupt or incompatible checkpoint leaves the
        strategy uninitialised, so scoring falls back to rules.
        """
        if not path:
            return cls()
        try:
            return cls(FeedForwardNetwork.load(path))
        except Exception as e:
            logger.warning(f"Could not load network checkpoint from {path}: {e}")
            return cls()

    @property
    def is_loaded(self) -> bool:
        return self.network is not None

    @classmethod
    def normalize(cls, snapshot: FeatureSnapshot) -> np.ndarray:
        return np.array(
            [getattr(snapshot, field) / divisor for field, divisor in cls.NORMALIZERS],
            dtype=np.float64,
        )

    def evaluate(self, snapshot: FeatureSnapshot) -> InferenceResult:
        if self.network is None:
            return InferenceResult.error(FailureReason.MODEL_UNAVAILABLE, "no network loaded")

        features = self.normalize(snapshot)
        if not np.all(np.isfinite(features)):
            return InferenceResult.error(FailureReason.NUMERICAL_ERROR, "non-finite input features")

        try:
            outputs = np.asarray(self.network.predict(features))
        except (ValueError, RuntimeError, ArithmeticError) as e:
            return InferenceResult.error(FailureReason.INFERENCE_ERROR, str(e))

        if outputs.shape != (3,) or not np.all(np.isfinite(outputs)):
            return InferenceResult.error(FailureReason.NUMERICAL_ERROR, f"invalid network output {outputs!r}")

        stress, focus, energy = (min(max(float(v), 0.0), 1.0) for v in outputs)
        return InferenceResult.success(
            StressScores(stress=stress, focus=focus, energy=energy, confidence=self.CONFIDENCE)
        )


# --- SCORER ---

class StressScorer:
    """
    Maps a FeatureSnapshot to a Prediction.

    Tries the primary strategy first; any InferenceFailure is logged and
    the rule-based fallback is used instead. score() never raises.
    """

    HIGH_STRESS_THRESHOLD = 0.7
    FAST_TYPING_THRESHOLD = 80
    FREQUENT_TAB_SWITCH_THRESHOLD = 20
    HIGH_MOUSE_ACTIVITY_THRESHOLD = 500

    def __init__(
        self,
        primary: Optional[ScoringStrategy] = None,
        fallback: Optional[ScoringStrategy] = None,
    ):
        self.primary = primary if primary is not None else ModelBasedStrategy()
        self.fallback = fallback if fallback is not None else RuleBasedStrategy()

    @classmethod
    def from_settings(cls, settings) -> "StressScorer":
        return cls(primary=ModelBasedStrategy.from_artifact(settings.model_weights_path))

    def score(self, snapshot: FeatureSnapshot) -> Prediction:
        strategy = self.primary
        result = self._evaluate_primary(snapshot)

        if not result.ok:
            failure = result.failure
            if failure.reason == FailureReason.MODEL_UNAVAILABLE:
                logger.debug(f"{strategy.name} strategy unavailable, using {self.fallback.name} fallback")
            else:
                logger.warning(
                    f"{strategy.name} strategy failed ({failure.reason.value}: {failure.detail}), "
                    f"using {self.fallback.name} fallback"
                )
            strategy = self.fallback
            result = strategy.evaluate(snapshot)

        scores = result.scores
        return Prediction(
            stress_level=scores.stress,
            focus_level=scores.focus,
            energy_level=scores.energy,
            confidence=scores.confidence,
            factors=tuple(self.derive_factors(snapshot, scores.stress)),
            strategy=strategy.name,
        )

    def _evaluate_primary(self, snapshot: FeatureSnapshot) -> InferenceResult:
        try:
            return self.primary.evaluate(snapshot)
        except Exception as e:
            logger.error(f"{self.primary.name} strategy raised: {e}", exc_info=True)
            return InferenceResult.error(FailureReason.INFERENCE_ERROR, str(e))

    def derive_factors(self, snapshot: FeatureSnapshot, stress: float) -> List[str]:
        """Human-readable diagnostic tags, always in the same order."""
        factors = []
        if stress > self.HIGH_STRESS_THRESHOLD:
            factors.append("High stress detected")
        if snapshot.typing_speed > self.FAST_TYPING_THRESHOLD:
            factors.append("Fast typing pace")
        if snapshot.tab_switches > self.FREQUENT_TAB_SWITCH_THRESHOLD:
            factors.append("Frequent tab switching")
        if snapshot.mouse_movements > self.HIGH_MOUSE_ACTIVITY_THRESHOLD:
            factors.append("High mouse activity")
        return factors

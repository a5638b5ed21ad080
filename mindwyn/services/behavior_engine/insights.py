from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List

from mindwyn.services.behavior_engine.metrics import Prediction


class InsightType(str, Enum):
    STRESS = "stress"
    FOCUS = "focus"


@dataclass
class WellnessInsight:
    type: InsightType
    level: float
    confidence: float
    suggestions: List[str]
    created_at: datetime = field(default_factory=datetime.now)


class InsightPolicy:
    """
    Maps a Prediction to short, actionable suggestions.
    """

    STRESS_INSIGHT_THRESHOLD = 0.6
    HIGH_STRESS = 0.7
    MODERATE_STRESS = 0.5
    LOW_FOCUS = 0.4
    LOW_ENERGY = 0.3

    DEFAULT_SUGGESTION = "You're doing great! Keep it up!"

    @classmethod
    def suggestions_for(cls, prediction: Prediction) -> List[str]:
        suggestions = []

        if prediction.stress_level > cls.HIGH_STRESS:
            suggestions += [
                "Take a 5-minute breathing break",
                "Try some gentle stretching",
                "Listen to calming music",
            ]
        elif prediction.stress_level > cls.MODERATE_STRESS:
            suggestions += ["Consider a short break", "Stay hydrated"]

        if prediction.focus_level < cls.LOW_FOCUS:
            suggestions += ["Minimize distractions", "Try the Pomodoro technique"]

        if prediction.energy_level < cls.LOW_ENERGY:
            suggestions += ["Take a power nap if possible", "Get some fresh air", "Have a healthy snack"]

        return suggestions or [cls.DEFAULT_SUGGESTION]

    @classmethod
    def build_insight(cls, prediction: Prediction) -> WellnessInsight:
        insight_type = (
            InsightType.STRESS if prediction.stress_level > cls.STRESS_INSIGHT_THRESHOLD
            else InsightType.FOCUS
        )
        return WellnessInsight(
            type=insight_type,
            level=prediction.stress_level,
            confidence=prediction.confidence,
            suggestions=cls.suggestions_for(prediction),
        )

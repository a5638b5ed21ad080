from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Tuple


class AppCategory(int, Enum):
    """Categorical encoding of the application the student is in."""
    STUDY = 1
    SOCIAL = 2
    ENTERTAINMENT = 3
    PRODUCTIVITY = 4
    OTHER = 5


@dataclass(frozen=True)
class FeatureSnapshot:
    """
    DTO that holds one analysis cycle's worth of telemetry.
    Built by the TelemetryAggregator, consumed by the StressScorer, then discarded.
    """
    tab_switches: int
    typing_speed: float       # approx. words per minute over the last keypresses
    mouse_movements: int      # since last window reset
    scroll_speed: float       # running average of |wheel delta|
    idle_time_ms: int
    active_time_ms: int
    time_of_day_hour: int
    app_category_code: int = AppCategory.STUDY.value

    def __post_init__(self):
        for name in ("tab_switches", "typing_speed", "mouse_movements", "scroll_speed",
                     "idle_time_ms", "active_time_ms", "app_category_code"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if not 0 <= self.time_of_day_hour <= 23:
            raise ValueError(f"time_of_day_hour must be in [0, 23], got {self.time_of_day_hour}")


@dataclass(frozen=True)
class StressScores:
    """Raw strategy output before diagnostic factors are attached."""
    stress: float
    focus: float
    energy: float
    confidence: float


@dataclass(frozen=True)
class Prediction:
    stress_level: float
    focus_level: float
    energy_level: float
    confidence: float
    factors: Tuple[str, ...] = ()
    strategy: str = "rule"
    created_at: datetime = field(default_factory=datetime.now, compare=False)

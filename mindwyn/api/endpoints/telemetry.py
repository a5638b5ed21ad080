"""
FastAPI endpoints for stateless behavioral scoring.

Frontend sends a feature snapshot → Backend scores it → Returns the Prediction
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from typing import List
from datetime import datetime
import logging

from ...services.behavior_engine.metrics import FeatureSnapshot, Prediction
from ...services.behavior_engine.stress_scorer import StressScorer
from ..dependencies import get_scorer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/telemetry", tags=["telemetry"])


# --- REQUEST/RESPONSE MODELS ---

class SnapshotModel(BaseModel):
    """One analysis cycle's aggregated telemetry"""
    tab_switches: int = Field(..., ge=0, description="Tab switches (visibility → hidden)")
    typing_speed: float = Field(..., ge=0, description="Approximate words per minute")
    mouse_movements: int = Field(..., ge=0, description="Pointer moves since last reset")
    scroll_speed: float = Field(..., ge=0, description="Running average of |wheel delta|")
    idle_time_ms: int = Field(..., ge=0, description="Idle time in milliseconds")
    active_time_ms: int = Field(..., ge=0, description="Active time in milliseconds")
    time_of_day_hour: int = Field(..., ge=0, le=23, description="Local hour 0-23")
    app_category_code: int = Field(1, ge=0, description="1=study 2=social 3=entertainment 4=productivity 5=other")

    def to_snapshot(self) -> FeatureSnapshot:
        return FeatureSnapshot(
            tab_switches=self.tab_switches,
            typing_speed=self.typing_speed,
            mouse_movements=self.mouse_movements,
            scroll_speed=self.scroll_speed,
            idle_time_ms=self.idle_time_ms,
            active_time_ms=self.active_time_ms,
            time_of_day_hour=self.time_of_day_hour,
            app_category_code=self.app_category_code,
        )

    @classmethod
    def from_snapshot(cls, snapshot: FeatureSnapshot) -> "SnapshotModel":
        return cls(
            tab_switches=snapshot.tab_switches,
            typing_speed=snapshot.typing_speed,
            mouse_movements=snapshot.mouse_movements,
            scroll_speed=snapshot.scroll_speed,
            idle_time_ms=snapshot.idle_time_ms,
            active_time_ms=snapshot.active_time_ms,
            time_of_day_hour=snapshot.time_of_day_hour,
            app_category_code=snapshot.app_category_code,
        )


class PredictionModel(BaseModel):
    """Scorer output"""
    stress_level: float = Field(..., ge=0, le=1)
    focus_level: float = Field(..., ge=0, le=1)
    energy_level: float = Field(..., ge=0, le=1)
    confidence: float = Field(..., ge=0, le=1)
    factors: List[str] = Field(default_factory=list, description="Diagnostic tags in fixed order")
    strategy: str = Field("rule", description="'model' or 'rule'")
    created_at: datetime = Field(default_factory=datetime.now)

    @classmethod
    def from_prediction(cls, prediction: Prediction) -> "PredictionModel":
        return cls(
            stress_level=prediction.stress_level,
            focus_level=prediction.focus_level,
            energy_level=prediction.energy_level,
            confidence=prediction.confidence,
            factors=list(prediction.factors),
            strategy=prediction.strategy,
            created_at=prediction.created_at,
        )

    def to_prediction(self) -> Prediction:
        return Prediction(
            stress_level=self.stress_level,
            focus_level=self.focus_level,
            energy_level=self.energy_level,
            confidence=self.confidence,
            factors=tuple(self.factors),
            strategy=self.strategy,
            created_at=self.created_at,
        )


# --- ENDPOINTS ---

@router.post("/score", response_model=PredictionModel)
async def score_snapshot(request: SnapshotModel, scorer: StressScorer = Depends(get_scorer)):
    """
    Scores a snapshot without creating a session.

    Uses the model strategy when a trained artifact is configured,
    otherwise the rule-based heuristics.
    """
    prediction = scorer.score(request.to_snapshot())
    logger.info(f"Stress scored: {prediction.stress_level:.2f} ({prediction.strategy})")
    return PredictionModel.from_prediction(prediction)


@router.get("/health")
async def health_check(scorer: StressScorer = Depends(get_scorer)):
    """Check if scoring services are available"""
    return {
        "status": "healthy",
        "services": {
            "primary_strategy": scorer.primary.name,
            "model_loaded": getattr(scorer.primary, "is_loaded", False),
            "fallback_strategy": scorer.fallback.name,
        }
    }

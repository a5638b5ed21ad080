"""
Recommendation API endpoints.

Stateless selection from a prediction plus the fixed emergency list.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
import logging

from ...services.recommendation_engine.catalog import Recommendation, StudentProfile
from ...services.recommendation_engine.selector import RecommendationSelector
from ..dependencies import get_selector
from .telemetry import PredictionModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recommendations", tags=["recommendations"])


# --- REQUEST/RESPONSE MODELS ---

class ProfileModel(BaseModel):
    """Student profile used to personalise the generative message"""
    id: str = Field("anonymous", description="Student identifier")
    name: str = ""
    study_hours: float = Field(0.0, ge=0)
    break_preference_minutes: int = Field(15, ge=0)
    stress_threshold: float = Field(0.7, ge=0, le=1)
    academic_goals: List[str] = Field(default_factory=list)
    courses: List[str] = Field(default_factory=list)
    preferred_interventions: List[str] = Field(default_factory=list)

    def to_profile(self) -> StudentProfile:
        return StudentProfile(
            id=self.id,
            name=self.name,
            study_hours=self.study_hours,
            break_preference_minutes=self.break_preference_minutes,
            stress_threshold=self.stress_threshold,
            academic_goals=list(self.academic_goals),
            courses=list(self.courses),
            preferred_interventions=list(self.preferred_interventions),
        )


class RecommendationModel(BaseModel):
    id: str
    category: str = Field(..., description="motivation, activity, music, game or quote")
    content: str
    emoji: str
    priority: int = Field(..., description="Lower = more urgent")
    created_at: datetime

    @classmethod
    def from_recommendation(cls, recommendation: Recommendation) -> "RecommendationModel":
        return cls(
            id=recommendation.id,
            category=recommendation.category.value,
            content=recommendation.content,
            emoji=recommendation.emoji,
            priority=recommendation.priority,
            created_at=recommendation.created_at,
        )


class GenerateRequest(BaseModel):
    prediction: PredictionModel
    profile: Optional[ProfileModel] = None
    hour: Optional[int] = Field(None, ge=0, le=23, description="Local hour; server time if omitted")


class RecommendationListResponse(BaseModel):
    recommendations: List[RecommendationModel]


def to_response(recommendations: List[Recommendation]) -> RecommendationListResponse:
    return RecommendationListResponse(
        recommendations=[RecommendationModel.from_recommendation(r) for r in recommendations]
    )


# --- ENDPOINTS ---

@router.post("/generate", response_model=RecommendationListResponse)
async def generate_recommendations(
    request: GenerateRequest,
    selector: RecommendationSelector = Depends(get_selector),
):
    """Ranked suggestion cards for a prediction (ascending priority)."""
    profile = request.profile.to_profile() if request.profile else None
    recommendations = await selector.generate(request.prediction.to_prediction(), profile, hour=request.hour)
    logger.info(f"Generated {len(recommendations)} recommendations")
    return to_response(recommendations)


@router.get("/emergency", response_model=RecommendationListResponse)
async def emergency_recommendations():
    """Fixed two-item fallback list."""
    return to_response(RecommendationSelector.emergency_recommendations())

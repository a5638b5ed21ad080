"""
Session endpoints - live telemetry ingestion for one student.

Frontend streams raw interaction events → Session monitor aggregates them →
analysis ticks (timer or on demand) publish Prediction + Recommendations.
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from typing import List, Optional
import logging

from ...services.behavior_engine.app_usage import ApplicationUsageTracker
from ...services.session.events import EventType, InteractionEvent
from ...services.session.monitor import RecommendationAction
from ...services.session.registry import SessionRegistry
from ..dependencies import get_registry, require_session
from .recommendations import ProfileModel, RecommendationModel, to_response, RecommendationListResponse
from .telemetry import PredictionModel, SnapshotModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


# --- REQUEST/RESPONSE MODELS ---

class CreateSessionRequest(BaseModel):
    profile: Optional[ProfileModel] = None
    start_timers: bool = Field(True, description="Run the periodic analysis/reset ticks")


class CreateSessionResponse(BaseModel):
    session_id: str
    analysis_interval_seconds: float
    reset_interval_seconds: float


class EventModel(BaseModel):
    """Raw interaction event captured in the browser"""
    type: EventType
    timestamp_ms: float = Field(..., description="Event time in epoch milliseconds")
    delta: Optional[float] = Field(None, description="Signed wheel delta (wheel events)")
    visible: Optional[bool] = Field(None, description="Page visibility (visibilitychange events)")


class EventBatchRequest(BaseModel):
    events: List[EventModel] = Field(default_factory=list)
    app_name: Optional[str] = Field(None, description="Foreground application, if known")


class EventBatchResponse(BaseModel):
    accepted: int


class InsightModel(BaseModel):
    type: str
    level: float
    confidence: float
    suggestions: List[str]


class ApplicationUsageModel(BaseModel):
    name: str
    category: str
    time_spent_ms: float
    stress_impact: float


class CategoryUsageModel(BaseModel):
    category: str
    time_ms: float
    percentage: float


class AppUsageSummary(BaseModel):
    current_app: str
    total_stress_impact: float
    by_category: List[CategoryUsageModel]
    top_applications: List[ApplicationUsageModel]

    @classmethod
    def from_tracker(cls, tracker: ApplicationUsageTracker) -> "AppUsageSummary":
        return cls(
            current_app=tracker.current_app,
            total_stress_impact=tracker.total_stress_impact(),
            by_category=[
                CategoryUsageModel(category=c.category.name.lower(), time_ms=c.time_ms, percentage=c.percentage)
                for c in tracker.usage_by_category()
            ],
            top_applications=[
                ApplicationUsageModel(
                    name=u.name,
                    category=u.category.name.lower(),
                    time_spent_ms=u.time_spent_ms,
                    stress_impact=u.stress_impact,
                )
                for u in tracker.top_applications()
            ],
        )


class SessionStateResponse(BaseModel):
    session_id: str
    running: bool
    latest_prediction: Optional[PredictionModel] = None
    latest_insight: Optional[InsightModel] = None
    recommendations: List[RecommendationModel] = Field(default_factory=list)
    prediction_count: int = 0
    app_usage: AppUsageSummary


class AnalyzeResponse(BaseModel):
    prediction: PredictionModel
    recommendations: List[RecommendationModel]


class RecommendationActionRequest(BaseModel):
    action: RecommendationAction


# --- ENDPOINTS ---

@router.post("", response_model=CreateSessionResponse, status_code=201)
async def create_session(
    request: Optional[CreateSessionRequest] = None,
    registry: SessionRegistry = Depends(get_registry),
):
    request = request or CreateSessionRequest()
    profile = request.profile.to_profile() if request.profile else None
    session = await registry.create(profile=profile, start_timers=request.start_timers)
    return CreateSessionResponse(
        session_id=session.monitor.session_id,
        analysis_interval_seconds=session.monitor.analysis_interval,
        reset_interval_seconds=session.monitor.reset_interval,
    )


@router.post("/{session_id}/events", response_model=EventBatchResponse)
async def ingest_events(
    session_id: str,
    request: EventBatchRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    session = require_session(registry, session_id)
    if request.app_name:
        # App switches are charged at the newest event in the batch
        switched_at = max((event.timestamp_ms for event in request.events), default=None)
        session.monitor.aggregator.set_application(request.app_name, timestamp_ms=switched_at)

    for event in request.events:
        session.hub.dispatch(InteractionEvent(
            type=event.type,
            timestamp_ms=event.timestamp_ms,
            delta=event.delta,
            visible=event.visible,
        ))
    logger.debug(f"Session {session_id}: {len(request.events)} events ingested")
    return EventBatchResponse(accepted=len(request.events))


@router.get("/{session_id}/snapshot", response_model=SnapshotModel)
async def get_snapshot(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = require_session(registry, session_id)
    return SnapshotModel.from_snapshot(session.monitor.aggregator.snapshot())


@router.post("/{session_id}/analyze", response_model=AnalyzeResponse)
async def analyze_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Run an analysis tick now instead of waiting for the timer."""
    session = require_session(registry, session_id)
    try:
        prediction = await session.monitor.analyze()
    except Exception as e:
        logger.error(f"Analysis failed for session {session_id}: {e}", exc_info=True)
        raise
    return AnalyzeResponse(
        prediction=PredictionModel.from_prediction(prediction),
        recommendations=to_response(session.monitor.recommendations).recommendations,
    )


@router.get("/{session_id}/state", response_model=SessionStateResponse)
async def get_state(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    monitor = require_session(registry, session_id).monitor
    prediction = monitor.latest_prediction
    insight = monitor.latest_insight
    return SessionStateResponse(
        session_id=session_id,
        running=monitor.is_running,
        latest_prediction=PredictionModel.from_prediction(prediction) if prediction else None,
        latest_insight=InsightModel(
            type=insight.type.value,
            level=insight.level,
            confidence=insight.confidence,
            suggestions=insight.suggestions,
        ) if insight else None,
        recommendations=to_response(monitor.recommendations).recommendations,
        prediction_count=len(monitor.predictions),
        app_usage=AppUsageSummary.from_tracker(monitor.aggregator.app_usage),
    )


@router.post("/{session_id}/recommendations/{recommendation_id}", response_model=RecommendationListResponse)
async def act_on_recommendation(
    session_id: str,
    recommendation_id: str,
    request: RecommendationActionRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """Accept or dismiss a recommendation; returns the remaining list."""
    monitor = require_session(registry, session_id).monitor
    if monitor.act_on(recommendation_id, request.action) is None:
        raise HTTPException(status_code=404, detail=f"Recommendation '{recommendation_id}' not found")
    return to_response(monitor.recommendations)


@router.delete("/{session_id}", status_code=204)
async def close_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    require_session(registry, session_id)
    await registry.close(session_id)

from fastapi import HTTPException, Request

from mindwyn.services.behavior_engine.stress_scorer import StressScorer
from mindwyn.services.recommendation_engine.selector import RecommendationSelector
from mindwyn.services.session.registry import Session, SessionRegistry


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_scorer(request: Request) -> StressScorer:
    return request.app.state.scorer


def get_selector(request: Request) -> RecommendationSelector:
    return request.app.state.selector


def require_session(registry: SessionRegistry, session_id: str) -> Session:
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return session

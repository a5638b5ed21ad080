# mindwyn/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.endpoints import recommendations, sessions, telemetry
from .config import settings
from .services.behavior_engine.stress_scorer import StressScorer
from .services.recommendation_engine.llm_client import LLMClient
from .services.recommendation_engine.selector import RecommendationSelector
from .services.session.registry import SessionRegistry

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    llm_client = LLMClient.from_settings(settings)
    app.state.scorer = StressScorer.from_settings(settings)
    app.state.selector = RecommendationSelector(llm_client=llm_client)
    app.state.sessions = SessionRegistry(settings, llm_client=llm_client, scorer=app.state.scorer)
    app.state.sessions.start_sweeper(settings.session_sweep_interval_seconds)
    logger.info("MindWyn behavior engine ready")
    yield
    # Stop the expiry sweep, then cancel every session's timers and drop its listeners
    await app.state.sessions.close_all()


app = FastAPI(title="MindWyn Behavior Engine", version="1.0.0", lifespan=lifespan)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(telemetry.router)
app.include_router(sessions.router)
app.include_router(recommendations.router)


@app.get("/")
async def root():
    return {"message": "MindWyn Behavior Engine API", "version": "1.0.0"}


@app.get("/health")
async def health():
    return {"status": "healthy", "service": "mindwyn"}

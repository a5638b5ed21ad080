import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class Settings:
    # Telemetry pipeline
    analysis_interval_seconds: float = 30.0
    reset_interval_seconds: float = 300.0
    idle_threshold_ms: int = 60_000
    history_size: int = 10

    # Session registry
    session_ttl_seconds: float = 1800.0
    max_sessions: int = 500
    session_sweep_interval_seconds: float = 60.0

    # Scoring
    model_weights_path: Optional[str] = None

    # Generative-text collaborator
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    llm_model: str = "gpt-4o-mini"

    # HTTP / logging
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173"])  # Vite default port
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            analysis_interval_seconds=float(os.getenv("MINDWYN_ANALYSIS_INTERVAL_SECONDS", "30")),
            reset_interval_seconds=float(os.getenv("MINDWYN_RESET_INTERVAL_SECONDS", "300")),
            idle_threshold_ms=int(os.getenv("MINDWYN_IDLE_THRESHOLD_MS", "60000")),
            history_size=int(os.getenv("MINDWYN_HISTORY_SIZE", "10")),
            session_ttl_seconds=float(os.getenv("MINDWYN_SESSION_TTL_SECONDS", "1800")),
            max_sessions=int(os.getenv("MINDWYN_MAX_SESSIONS", "500")),
            session_sweep_interval_seconds=float(os.getenv("MINDWYN_SESSION_SWEEP_INTERVAL_SECONDS", "60")),
            model_weights_path=os.getenv("MINDWYN_MODEL_WEIGHTS_PATH") or None,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            llm_model=os.getenv("MINDWYN_LLM_MODEL", "gpt-4o-mini"),
            cors_origins=_env_list("MINDWYN_CORS_ORIGINS", "http://localhost:5173"),
            log_level=os.getenv("MINDWYN_LOG_LEVEL", "INFO").upper(),
        )


settings = Settings.from_env()

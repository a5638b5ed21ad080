import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from mindwyn.services.behavior_engine.stress_scorer import StressScorer
from mindwyn.services.recommendation_engine.catalog import StudentProfile
from mindwyn.services.recommendation_engine.llm_client import LLMClient
from mindwyn.services.session.events import EventHub
from mindwyn.services.session.monitor import BehaviorMonitor

logger = logging.getLogger(__name__)


@dataclass
class Session:
    monitor: BehaviorMonitor
    hub: EventHub
    last_seen: float = field(default_factory=time.monotonic)


class SessionRegistry:
    """
    In-memory sessions keyed by session_id. Nothing is persisted.

    Sessions are bounded two ways: any session not accessed for
    `session_ttl_seconds` is closed by expire_idle(), and creating a session
    at `max_sessions` closes the least recently seen one first.
    """

    def __init__(
        self,
        settings,
        llm_client: Optional[LLMClient] = None,
        scorer: Optional[StressScorer] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.llm_client = llm_client
        self.scorer = scorer
        self.session_ttl = settings.session_ttl_seconds
        self.max_sessions = settings.max_sessions
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self):
        return len(self._sessions)

    async def create(self, profile: Optional[StudentProfile] = None, start_timers: bool = True) -> Session:
        await self.expire_idle()
        while len(self._sessions) >= self.max_sessions:
            oldest_id = min(self._sessions, key=lambda sid: self._sessions[sid].last_seen)
            logger.warning(f"Session limit ({self.max_sessions}) reached, evicting {oldest_id}")
            await self.close(oldest_id)

        monitor = BehaviorMonitor.from_settings(
            self.settings, profile=profile, llm_client=self.llm_client, scorer=self.scorer,
        )
        hub = EventHub()
        monitor.attach(hub)
        if start_timers:
            monitor.start()

        session = Session(monitor=monitor, hub=hub, last_seen=self._clock())
        self._sessions[monitor.session_id] = session
        logger.info(f"Session {monitor.session_id} created (timers: {start_timers})")
        return session

    def get(self, session_id: str) -> Optional[Session]:
        """Look up a session and mark it as seen."""
        session = self._sessions.get(session_id)
        if session is not None:
            session.last_seen = self._clock()
        return session

    async def close(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.monitor.stop()
        logger.info(f"Session {session_id} closed")
        return True

    async def expire_idle(self) -> List[str]:
        """Close every session not seen within the TTL. Returns the closed ids."""
        cutoff = self._clock() - self.session_ttl
        expired = [sid for sid, session in self._sessions.items() if session.last_seen < cutoff]
        for session_id in expired:
            logger.info(f"Session {session_id} idle for over {self.session_ttl}s, expiring")
            await self.close(session_id)
        return expired

    def start_sweeper(self, interval: float) -> None:
        """Run expire_idle() every `interval` seconds on the running loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep(interval))

    async def _sweep(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.expire_idle()
            except Exception as e:
                logger.error(f"Session expiry sweep failed: {e}", exc_info=True)

    async def close_all(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        for session_id in list(self._sessions):
            await self.close(session_id)

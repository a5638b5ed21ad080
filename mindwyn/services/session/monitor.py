"""
Behavior Monitor - one student's telemetry session.

Owns the aggregator, scorer and selector, plus the bounded prediction and
insight histories. Two independent asyncio tasks drive it:
- analysis tick: snapshot -> score -> insight -> recommendations
- reset tick: clear the aggregator's interaction window
"""

import asyncio
import logging
import uuid
from collections import deque
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional

from mindwyn.services.behavior_engine.aggregator import TelemetryAggregator
from mindwyn.services.behavior_engine.insights import InsightPolicy, WellnessInsight
from mindwyn.services.behavior_engine.metrics import Prediction
from mindwyn.services.behavior_engine.stress_scorer import StressScorer
from mindwyn.services.recommendation_engine.catalog import Recommendation, StudentProfile
from mindwyn.services.recommendation_engine.llm_client import LLMClient
from mindwyn.services.recommendation_engine.selector import RecommendationSelector
from mindwyn.services.session.events import EventHub, EventType, InteractionEvent

logger = logging.getLogger(__name__)


class RecommendationAction(str, Enum):
    ACCEPTED = "accepted"
    DISMISSED = "dismissed"


class BehaviorMonitor:

    DEFAULT_ANALYSIS_INTERVAL = 30.0   # seconds
    DEFAULT_RESET_INTERVAL = 300.0     # seconds
    DEFAULT_HISTORY_SIZE = 10

    def __init__(
        self,
        aggregator: Optional[TelemetryAggregator] = None,
        scorer: Optional[StressScorer] = None,
        selector: Optional[RecommendationSelector] = None,
        profile: Optional[StudentProfile] = None,
        analysis_interval: float = DEFAULT_ANALYSIS_INTERVAL,
        reset_interval: float = DEFAULT_RESET_INTERVAL,
        history_size: int = DEFAULT_HISTORY_SIZE,
        session_id: Optional[str] = None,
    ):
        self.session_id = session_id or f"session_{uuid.uuid4().hex[:12]}"
        self.aggregator = aggregator or TelemetryAggregator()
        self.scorer = scorer or StressScorer()
        self.selector = selector or RecommendationSelector()
        self.profile = profile or StudentProfile()
        self.analysis_interval = analysis_interval
        self.reset_interval = reset_interval

        self._predictions: deque = deque(maxlen=history_size)
        self._insights: deque = deque(maxlen=history_size)
        self._recommendations: List[Recommendation] = []

        self._hub: Optional[EventHub] = None
        self._handlers: Dict[EventType, Callable[[InteractionEvent], None]] = {
            EventType.KEYDOWN: self._on_key_press,
            EventType.MOUSEMOVE: self._on_mouse_move,
            EventType.CLICK: self._on_click,
            EventType.WHEEL: self._on_wheel,
            EventType.VISIBILITY_CHANGE: self._on_visibility_change,
        }
        self._tasks: List[asyncio.Task] = []

    @classmethod
    def from_settings(
        cls,
        settings,
        profile: Optional[StudentProfile] = None,
        llm_client: Optional[LLMClient] = None,
        scorer: Optional[StressScorer] = None,
    ) -> "BehaviorMonitor":
        return cls(
            aggregator=TelemetryAggregator(idle_threshold_ms=settings.idle_threshold_ms),
            scorer=scorer if scorer is not None else StressScorer.from_settings(settings),
            selector=RecommendationSelector(llm_client=llm_client),
            profile=profile,
            analysis_interval=settings.analysis_interval_seconds,
            reset_interval=settings.reset_interval_seconds,
            history_size=settings.history_size,
        )

    # --- READ-ONLY STATE ---

    @property
    def predictions(self) -> List[Prediction]:
        return list(self._predictions)

    @property
    def insights(self) -> List[WellnessInsight]:
        return list(self._insights)

    @property
    def latest_prediction(self) -> Optional[Prediction]:
        return self._predictions[-1] if self._predictions else None

    @property
    def latest_insight(self) -> Optional[WellnessInsight]:
        return self._insights[-1] if self._insights else None

    @property
    def recommendations(self) -> List[Recommendation]:
        return list(self._recommendations)

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    # --- EVENT WIRING ---

    def attach(self, hub: EventHub) -> None:
        if self._hub is not None:
            self.detach()
        for event_type, handler in self._handlers.items():
            hub.add_listener(event_type, handler)
        self._hub = hub

    def detach(self) -> None:
        if self._hub is None:
            return
        for event_type, handler in self._handlers.items():
            self._hub.remove_listener(event_type, handler)
        self._hub = None

    def _on_key_press(self, event: InteractionEvent) -> None:
        self.aggregator.on_key_press(event.timestamp_ms)

    def _on_mouse_move(self, event: InteractionEvent) -> None:
        self.aggregator.on_mouse_move(event.timestamp_ms)

    def _on_click(self, event: InteractionEvent) -> None:
        self.aggregator.on_click(event.timestamp_ms)

    def _on_wheel(self, event: InteractionEvent) -> None:
        self.aggregator.on_scroll(event.delta, event.timestamp_ms)

    def _on_visibility_change(self, event: InteractionEvent) -> None:
        self.aggregator.on_visibility_change(event.visible, event.timestamp_ms)

    # --- PIPELINE ---

    async def analyze(self) -> Prediction:
        """
        One analysis tick. The snapshot is taken before any await, so it only
        reflects telemetry received before the tick started.
        """
        snapshot = self.aggregator.snapshot()
        prediction = self.scorer.score(snapshot)
        self._predictions.append(prediction)

        insight = InsightPolicy.build_insight(prediction)
        self._insights.append(insight)

        self._recommendations = await self.selector.generate(
            prediction, self.profile, hour=snapshot.time_of_day_hour,
        )

        logger.info(
            f"[{self.session_id}] stress={prediction.stress_level:.2f} focus={prediction.focus_level:.2f} "
            f"energy={prediction.energy_level:.2f} ({prediction.strategy}), "
            f"{len(self._recommendations)} recommendations"
        )
        return prediction

    def reset_window(self) -> None:
        self.aggregator.reset()

    def act_on(self, recommendation_id: str, action: RecommendationAction) -> Optional[Recommendation]:
        """Remove an accepted/dismissed recommendation. Returns it, or None if unknown."""
        for index, recommendation in enumerate(self._recommendations):
            if recommendation.id == recommendation_id:
                del self._recommendations[index]
                logger.info(f"[{self.session_id}] recommendation {recommendation_id} {action.value}")
                return recommendation
        return None

    # --- TIMERS ---

    def start(self) -> None:
        """Schedule the analysis and reset ticks on the running event loop."""
        if self.is_running:
            return
        self._tasks = [
            asyncio.create_task(self._every(self.analysis_interval, self.analyze, "analysis")),
            asyncio.create_task(self._every(self.reset_interval, self._reset_tick, "reset")),
        ]
        logger.info(
            f"[{self.session_id}] monitor started (analysis every {self.analysis_interval}s, "
            f"reset every {self.reset_interval}s)"
        )

    async def stop(self) -> None:
        """Cancel both ticks and remove every event listener."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.detach()
        logger.info(f"[{self.session_id}] monitor stopped")

    async def _reset_tick(self) -> None:
        self.reset_window()

    async def _every(self, interval: float, callback: Callable[[], Awaitable], name: str) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await callback()
            except Exception as e:
                logger.error(f"[{self.session_id}] {name} tick failed: {e}", exc_info=True)

import logging
from collections import deque
from datetime import datetime
from typing import Callable, Optional

from mindwyn.services.behavior_engine.app_usage import ApplicationUsageTracker, categorize_application
from mindwyn.services.behavior_engine.metrics import AppCategory, FeatureSnapshot

logger = logging.getLogger(__name__)


class TelemetryAggregator:
    """
    Accumulates raw interaction events into a FeatureSnapshot.

    Two kinds of state are kept:
    - Interaction window (mouse count, click/key timestamps, scroll average):
      cleared by reset() every reset interval.
    - Session totals (tab switches, active/idle time, current app and
      per-app usage): live for the whole session.

    All handlers are synchronous and O(1); malformed input is ignored.
    """

    MAX_CLICK_HISTORY = 20
    MAX_KEY_HISTORY = 10

    # 5 keystrokes ~ 1 word
    KEYSTROKES_PER_WORD = 5

    DEFAULT_IDLE_THRESHOLD_MS = 60_000

    def __init__(
        self,
        idle_threshold_ms: int = DEFAULT_IDLE_THRESHOLD_MS,
        clock: Callable[[], datetime] = datetime.now,
        app_usage: Optional[ApplicationUsageTracker] = None,
    ):
        self.idle_threshold_ms = idle_threshold_ms
        self._clock = clock

        # Session totals
        self.tab_switches = 0
        self.active_time_ms = 0
        self.idle_time_ms = 0
        self.app_category = AppCategory.STUDY
        self.app_usage = app_usage or ApplicationUsageTracker()
        self._last_event_ms: Optional[float] = None

        # Interaction window
        self.mouse_movements = 0
        self.scroll_speed = 0.0
        self._click_timestamps: deque = deque(maxlen=self.MAX_CLICK_HISTORY)
        self._key_timestamps: deque = deque(maxlen=self.MAX_KEY_HISTORY)

    # --- EVENT HANDLERS ---

    def on_key_press(self, timestamp_ms: float) -> None:
        if not self._track_activity(timestamp_ms):
            return
        self._key_timestamps.append(float(timestamp_ms))

    def on_mouse_move(self, timestamp_ms: float) -> None:
        if not self._track_activity(timestamp_ms):
            return
        self.mouse_movements += 1

    def on_click(self, timestamp_ms: float) -> None:
        if not self._track_activity(timestamp_ms):
            return
        self._click_timestamps.append(float(timestamp_ms))

    def on_scroll(self, delta, timestamp_ms: float) -> None:
        if not self._track_activity(timestamp_ms):
            return
        magnitude = _as_magnitude(delta)
        if magnitude == 0.0:
            return
        self.scroll_speed = (self.scroll_speed + magnitude) / 2

    def on_visibility_change(self, visible: bool, timestamp_ms: float) -> None:
        if not self._track_activity(timestamp_ms):
            return
        if visible is False:
            self.tab_switches += 1

    def set_application(self, app_name: str, timestamp_ms: Optional[float] = None) -> AppCategory:
        """
        Classify the foreground app. A change of app is also charged to the
        usage tracker at `timestamp_ms` (tracker clock when omitted).
        """
        self.app_category = categorize_application(app_name)
        if app_name != self.app_usage.current_app:
            self.app_usage.track_switch(app_name, timestamp_ms)
        logger.debug(f"Foreground app '{app_name}' classified as {self.app_category.name}")
        return self.app_category

    # --- DERIVED METRICS ---

    @property
    def click_timestamps(self) -> tuple:
        return tuple(self._click_timestamps)

    @property
    def key_timestamps(self) -> tuple:
        return tuple(self._key_timestamps)

    @property
    def typing_speed(self) -> float:
        """
        Approximate WPM over the last MAX_KEY_HISTORY keypresses.

        Returns 0.0 with fewer than two keypresses or no elapsed time.
        """
        if len(self._key_timestamps) < 2:
            return 0.0
        elapsed_ms = self._key_timestamps[-1] - self._key_timestamps[0]
        if elapsed_ms <= 0:
            return 0.0
        elapsed_minutes = elapsed_ms / 60_000
        return (len(self._key_timestamps) / elapsed_minutes) * self.KEYSTROKES_PER_WORD

    def snapshot(self) -> FeatureSnapshot:
        """Freeze the current counters into an immutable FeatureSnapshot."""
        return FeatureSnapshot(
            tab_switches=self.tab_switches,
            typing_speed=self.typing_speed,
            mouse_movements=self.mouse_movements,
            scroll_speed=self.scroll_speed,
            idle_time_ms=int(self.idle_time_ms),
            active_time_ms=int(self.active_time_ms),
            time_of_day_hour=self._clock().hour,
            app_category_code=self.app_category.value,
        )

    def reset(self) -> None:
        """Clear the interaction window. Session totals are kept."""
        self.mouse_movements = 0
        self.scroll_speed = 0.0
        self._click_timestamps.clear()
        self._key_timestamps.clear()
        logger.debug("Telemetry window reset")

    # --- INTERNALS ---

    def _track_activity(self, timestamp_ms) -> bool:
        """
        Advance the session clock. Returns False for unusable timestamps
        so the caller drops the event.
        """
        try:
            timestamp_ms = float(timestamp_ms)
        except (TypeError, ValueError):
            return False
        if timestamp_ms != timestamp_ms or timestamp_ms < 0:  # NaN or negative
            return False

        if self._last_event_ms is not None:
            gap = timestamp_ms - self._last_event_ms
            if gap < 0:
                # Out-of-order event: count it, but don't rewind the clock
                return True
            if gap < self.idle_threshold_ms:
                self.active_time_ms += gap
            else:
                self.idle_time_ms += gap
        self._last_event_ms = timestamp_ms
        return True


def _as_magnitude(delta) -> float:
    try:
        value = abs(float(delta))
    except (TypeError, ValueError):
        return 0.0
    if value != value or value == float("inf"):
        return 0.0
    return value

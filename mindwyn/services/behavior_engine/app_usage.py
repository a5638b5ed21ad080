"""
Application usage tracking - time spent per foreground app and its stress impact.

Time is charged to the previous app on every switch. Short visits (5 s or
less) are ignored, and a revisit within 5 minutes of leaving an app extends
its existing entry instead of adding a new one.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from mindwyn.services.behavior_engine.metrics import AppCategory

logger = logging.getLogger(__name__)


# Keyword lists used to classify the foreground application.
APP_CATEGORY_KEYWORDS = {
    AppCategory.STUDY: ["notion", "obsidian", "anki", "khan academy", "coursera", "udemy", "zoom", "teams"],
    AppCategory.SOCIAL: ["facebook", "twitter", "instagram", "tiktok", "snapchat", "discord", "whatsapp"],
    AppCategory.ENTERTAINMENT: ["youtube", "netflix", "spotify", "twitch", "reddit", "gaming"],
    AppCategory.PRODUCTIVITY: ["gmail", "calendar", "trello", "slack", "asana", "todoist"],
}

# Stress contribution per hour of use
STRESS_IMPACT_PER_HOUR = {
    AppCategory.STUDY: 0.2,
    AppCategory.PRODUCTIVITY: -0.1,
    AppCategory.SOCIAL: 0.3,
    AppCategory.ENTERTAINMENT: 0.1,
    AppCategory.OTHER: 0.0,
}


def categorize_application(app_name: str) -> AppCategory:
    """Map an application name to its AppCategory by keyword match (first match wins)."""
    lower_name = (app_name or "").lower()
    for category, keywords in APP_CATEGORY_KEYWORDS.items():
        if any(keyword in lower_name for keyword in keywords):
            return category
    return AppCategory.OTHER


def calculate_stress_impact(category: AppCategory, time_spent_ms: float) -> float:
    """Per-category impact scaled by hours of use, capped at 2 hours."""
    hours = min(time_spent_ms / ApplicationUsageTracker.MS_PER_HOUR, ApplicationUsageTracker.MAX_IMPACT_HOURS)
    return STRESS_IMPACT_PER_HOUR[category] * hours


@dataclass
class ApplicationUsage:
    id: str
    name: str
    category: AppCategory
    time_spent_ms: float
    timestamp_ms: float     # when the app was last left
    stress_impact: float


@dataclass(frozen=True)
class CategoryUsage:
    category: AppCategory
    time_ms: float
    percentage: float


def _now_ms() -> float:
    return time.time() * 1000


class ApplicationUsageTracker:

    HOME_APP = "MindWyn"
    MIN_TRACKED_MS = 5_000
    MERGE_WINDOW_MS = 300_000     # 5 minutes
    MAX_IMPACT_HOURS = 2
    MS_PER_HOUR = 3_600_000

    def __init__(self, clock_ms: Callable[[], float] = _now_ms):
        self._clock_ms = clock_ms
        self.current_app = self.HOME_APP
        self._session_start_ms = clock_ms()
        self._usage: List[ApplicationUsage] = []

    @property
    def usage(self) -> List[ApplicationUsage]:
        return list(self._usage)

    def track_switch(self, new_app: str, timestamp_ms: Optional[float] = None) -> Optional[ApplicationUsage]:
        """
        Charge the time since the last switch to the current app, then make
        `new_app` current.

        Returns the created or extended entry, or None when nothing was
        recorded (home app or a visit of 5 s or less).
        """
        now = self._clock_ms() if timestamp_ms is None else float(timestamp_ms)
        time_spent = now - self._session_start_ms
        recorded = None

        if time_spent > self.MIN_TRACKED_MS and self.current_app != self.HOME_APP:
            recorded = self._record(self.current_app, time_spent, now)

        self.current_app = new_app
        self._session_start_ms = now
        return recorded

    def _record(self, app_name: str, time_spent: float, now: float) -> ApplicationUsage:
        for usage in self._usage:
            if usage.name == app_name and now - usage.timestamp_ms < self.MERGE_WINDOW_MS:
                usage.time_spent_ms += time_spent
                usage.timestamp_ms = now
                usage.stress_impact = calculate_stress_impact(usage.category, usage.time_spent_ms)
                logger.debug(f"Extended usage of '{app_name}' to {usage.time_spent_ms / 1000:.0f}s")
                return usage

        category = categorize_application(app_name)
        usage = ApplicationUsage(
            id=f"app_{uuid.uuid4().hex[:12]}",
            name=app_name,
            category=category,
            time_spent_ms=time_spent,
            timestamp_ms=now,
            stress_impact=calculate_stress_impact(category, time_spent),
        )
        self._usage.append(usage)
        logger.debug(f"Recorded {time_spent / 1000:.0f}s in '{app_name}' ({category.name.lower()})")
        return usage

    # --- REPORTING ---

    def usage_by_category(self) -> List[CategoryUsage]:
        """Total time per category in first-seen order, with its share of all tracked time."""
        totals: Dict[AppCategory, float] = {}
        for usage in self._usage:
            totals[usage.category] = totals.get(usage.category, 0.0) + usage.time_spent_ms

        grand_total = sum(totals.values())
        return [
            CategoryUsage(
                category=category,
                time_ms=time_ms,
                percentage=(time_ms / grand_total * 100) if grand_total else 0.0,
            )
            for category, time_ms in totals.items()
        ]

    def total_stress_impact(self) -> float:
        return sum(usage.stress_impact for usage in self._usage)

    def top_applications(self, limit: int = 5) -> List[ApplicationUsage]:
        return sorted(self._usage, key=lambda u: u.time_spent_ms, reverse=True)[:limit]

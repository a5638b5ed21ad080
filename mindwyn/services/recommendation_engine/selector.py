import logging
import random
from datetime import datetime
from typing import List, Optional

from mindwyn.services.behavior_engine.metrics import Prediction
from mindwyn.services.recommendation_engine.catalog import (
    EMERGENCY_BREATHING,
    EMERGENCY_MUSIC,
    MOTIVATIONAL_QUOTES,
    STRESS_RELIEF_ACTIVITIES,
    WIND_DOWN,
    Catalog,
    Recommendation,
    RecommendationCategory,
    StudentProfile,
)
from mindwyn.services.recommendation_engine.llm_client import LLMClient
from mindwyn.services.recommendation_engine.prompts import build_motivation_prompt

logger = logging.getLogger(__name__)


class RecommendationSelector:
    """
    Builds a ranked list of suggestion cards from a Prediction.

    Pipeline:
    1. Stress-relief activity (high stress only)
    2. Motivational quote (always)
    3. Wind-down activity (late night / early morning)
    4. Generative motivation message (best effort)
    5. Stable sort by ascending priority

    Any failure in steps 1-5 yields the fixed emergency list instead.
    """

    HIGH_STRESS_THRESHOLD = 0.7
    ELEVATED_STRESS_THRESHOLD = 0.5

    # Wind-down window: hour > 22 or hour < 6
    LATE_NIGHT_AFTER_HOUR = 22
    EARLY_MORNING_BEFORE_HOUR = 6

    AI_EMOJI = "🤖"

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        rng: Optional[random.Random] = None,
        quotes: Catalog = MOTIVATIONAL_QUOTES,
        activities: Catalog = STRESS_RELIEF_ACTIVITIES,
    ):
        self.llm = llm_client
        self.rng = rng or random.Random()
        self.quotes = quotes
        self.activities = activities

    async def generate(
        self,
        prediction: Prediction,
        profile: Optional[StudentProfile] = None,
        hour: Optional[int] = None,
    ) -> List[Recommendation]:
        """
        Main entry point. Never raises.

        Args:
            prediction: Latest scorer output
            profile: Student profile for the generative prompt (optional)
            hour: Local hour 0-23 (defaults to the current hour)
        """
        try:
            return await self._generate(prediction, profile or StudentProfile(), hour)
        except Exception as e:
            logger.error(f"Recommendation generation failed, using emergency list: {e}", exc_info=True)
            return self.emergency_recommendations()

    async def _generate(self, prediction: Prediction, profile: StudentProfile,
                        hour: Optional[int]) -> List[Recommendation]:
        if hour is None:
            hour = datetime.now().hour
        recommendations = []

        if prediction.stress_level > self.HIGH_STRESS_THRESHOLD:
            activity = self.activities.pick(self.rng)
            recommendations.append(Recommendation.create(
                "stress", RecommendationCategory.ACTIVITY, activity.content, activity.emoji, priority=1,
            ))

        quote = self.quotes.pick(self.rng)
        recommendations.append(Recommendation.create(
            "quote", RecommendationCategory.QUOTE, quote.content, quote.emoji,
            priority=2 if prediction.stress_level > self.ELEVATED_STRESS_THRESHOLD else 3,
        ))

        if self.is_wind_down_hour(hour):
            recommendations.append(Recommendation.create(
                "sleep", RecommendationCategory.ACTIVITY, WIND_DOWN.content, WIND_DOWN.emoji, priority=2,
            ))

        motivation = await self._motivation(prediction, profile)
        if motivation is not None:
            recommendations.append(motivation)

        # sorted() is stable: equal priorities keep insertion order
        return sorted(recommendations, key=lambda r: r.priority)

    @classmethod
    def is_wind_down_hour(cls, hour: int) -> bool:
        return hour > cls.LATE_NIGHT_AFTER_HOUR or hour < cls.EARLY_MORNING_BEFORE_HOUR

    async def _motivation(self, prediction: Prediction, profile: StudentProfile) -> Optional[Recommendation]:
        if self.llm is None:
            return None

        try:
            system_prompt, user_prompt = build_motivation_prompt(prediction, profile)
            content = await self.llm.complete(system_prompt=system_prompt, user_prompt=user_prompt)
        except Exception as e:
            logger.error(f"Generative recommendation unavailable: {e}")
            return None

        if not content:
            return None
        return Recommendation.create(
            "ai", RecommendationCategory.MOTIVATION, content.strip(), self.AI_EMOJI, priority=1,
        )

    @staticmethod
    def emergency_recommendations() -> List[Recommendation]:
        return [
            Recommendation.create(
                "emergency", RecommendationCategory.ACTIVITY,
                EMERGENCY_BREATHING.content, EMERGENCY_BREATHING.emoji, priority=1,
            ),
            Recommendation.create(
                "emergency_music", RecommendationCategory.MUSIC,
                EMERGENCY_MUSIC.content, EMERGENCY_MUSIC.emoji, priority=1,
            ),
        ]

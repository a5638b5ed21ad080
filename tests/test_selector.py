import random
from unittest.mock import AsyncMock

import pytest

from mindwyn.services.recommendation_engine.catalog import (
    MOTIVATIONAL_QUOTES,
    STRESS_RELIEF_ACTIVITIES,
    WIND_DOWN,
    RecommendationCategory,
    StudentProfile,
)
from mindwyn.services.recommendation_engine.selector import RecommendationSelector

pytestmark = pytest.mark.asyncio


class BrokenRandom(random.Random):
    def randrange(self, *args, **kwargs):
        raise RuntimeError("rng exploded")


async def test_high_stress_late_night(make_prediction, first_entry_rng):
    selector = RecommendationSelector(rng=first_entry_rng)
    recommendations = await selector.generate(make_prediction(stress=0.9), hour=2)

    assert [r.priority for r in recommendations] == [1, 2, 2]
    relief, quote, wind_down = recommendations
    assert relief.category == RecommendationCategory.ACTIVITY
    assert relief.content == STRESS_RELIEF_ACTIVITIES.entries[0].content
    assert quote.category == RecommendationCategory.QUOTE
    assert quote.content == MOTIVATIONAL_QUOTES.entries[0].content
    assert wind_down.category == RecommendationCategory.ACTIVITY
    assert wind_down.content == WIND_DOWN.content


async def test_calm_daytime_gets_single_quote(make_prediction, first_entry_rng):
    selector = RecommendationSelector(rng=first_entry_rng)
    recommendations = await selector.generate(make_prediction(stress=0.1), hour=14)

    assert len(recommendations) == 1
    assert recommendations[0].category == RecommendationCategory.QUOTE
    assert recommendations[0].priority == 3


async def test_elevated_stress_raises_quote_priority(make_prediction):
    recommendations = await RecommendationSelector().generate(make_prediction(stress=0.6), hour=12)
    assert [(r.category, r.priority) for r in recommendations] == [(RecommendationCategory.QUOTE, 2)]


@pytest.mark.parametrize("hour, expected", [(0, True), (5, True), (6, False), (12, False), (22, False), (23, True)])
async def test_wind_down_window(make_prediction, hour, expected):
    recommendations = await RecommendationSelector().generate(make_prediction(stress=0.1), hour=hour)
    has_wind_down = any(r.content == WIND_DOWN.content for r in recommendations)
    assert has_wind_down is expected


async def test_never_empty_and_sorted(make_prediction):
    selector = RecommendationSelector(rng=random.Random(11))
    for stress in (0.0, 0.49, 0.51, 0.71, 1.0):
        for hour in range(24):
            recommendations = await selector.generate(make_prediction(stress=stress), hour=hour)
            assert recommendations
            priorities = [r.priority for r in recommendations]
            assert priorities == sorted(priorities)


async def test_seeded_rng_is_reproducible(make_prediction):
    first = await RecommendationSelector(rng=random.Random(5)).generate(make_prediction(stress=0.9), hour=12)
    second = await RecommendationSelector(rng=random.Random(5)).generate(make_prediction(stress=0.9), hour=12)
    assert [r.content for r in first] == [r.content for r in second]


async def test_generative_motivation_appended(make_prediction, first_entry_rng):
    llm = AsyncMock()
    llm.complete.return_value = "  Keep going, you're doing great 🌟  "
    selector = RecommendationSelector(llm_client=llm, rng=first_entry_rng)
    profile = StudentProfile(study_hours=6, academic_goals=["Pass calculus"])

    recommendations = await selector.generate(make_prediction(stress=0.9), profile, hour=12)

    assert [r.category for r in recommendations] == [
        RecommendationCategory.ACTIVITY,
        RecommendationCategory.MOTIVATION,
        RecommendationCategory.QUOTE,
    ]
    motivation = recommendations[1]
    assert motivation.content == "Keep going, you're doing great 🌟"
    assert motivation.priority == 1
    user_prompt = llm.complete.await_args.kwargs["user_prompt"]
    assert "Stress level: 90%" in user_prompt
    assert "Pass calculus" in user_prompt


async def test_generative_failure_is_omitted(make_prediction):
    llm = AsyncMock()
    llm.complete.side_effect = RuntimeError("AI service error")
    recommendations = await RecommendationSelector(llm_client=llm).generate(make_prediction(stress=0.2), hour=12)

    assert len(recommendations) == 1
    assert all(r.category != RecommendationCategory.MOTIVATION for r in recommendations)


async def test_empty_generative_reply_is_omitted(make_prediction):
    llm = AsyncMock()
    llm.complete.return_value = ""
    recommendations = await RecommendationSelector(llm_client=llm).generate(make_prediction(stress=0.2), hour=12)
    assert [r.category for r in recommendations] == [RecommendationCategory.QUOTE]


async def test_generation_failure_returns_emergency_list(make_prediction):
    selector = RecommendationSelector(rng=BrokenRandom())
    recommendations = await selector.generate(make_prediction(stress=0.9), hour=12)

    assert len(recommendations) == 2
    assert [r.category for r in recommendations] == [RecommendationCategory.ACTIVITY, RecommendationCategory.MUSIC]


async def test_recommendation_ids_are_unique(make_prediction):
    selector = RecommendationSelector()
    recommendations = []
    for _ in range(5):
        recommendations += await selector.generate(make_prediction(stress=0.9), hour=1)
    ids = [r.id for r in recommendations]
    assert len(ids) == len(set(ids))


import pytest

from mindwyn.services.behavior_engine.metrics import Prediction
from mindwyn.services.recommendation_engine.catalog import (
    MOTIVATIONAL_QUOTES,
    STRESS_RELIEF_ACTIVITIES,
    Catalog,
    RecommendationCategory,
    StudentProfile,
)
from mindwyn.services.recommendation_engine.prompts import PromptTemplate, build_motivation_prompt
from mindwyn.services.recommendation_engine.selector import RecommendationSelector


def test_emergency_list_shape():
    recommendations = RecommendationSelector.emergency_recommendations()
    assert len(recommendations) == 2
    assert all(r.priority == 1 for r in recommendations)
    assert {r.category for r in recommendations} == {RecommendationCategory.ACTIVITY, RecommendationCategory.MUSIC}


def test_catalog_must_not_be_empty():
    with pytest.raises(ValueError, match="must not be empty"):
        Catalog("empty", ())


def test_catalog_pick_uses_rng(first_entry_rng):
    assert MOTIVATIONAL_QUOTES.pick(first_entry_rng) == MOTIVATIONAL_QUOTES.entries[0]
    assert len(STRESS_RELIEF_ACTIVITIES) == 8


def test_motivation_prompt_includes_levels_and_goals():
    prediction = Prediction(stress_level=0.856, focus_level=0.4, energy_level=0.1, confidence=0.6)
    profile = StudentProfile(study_hours=5.5, academic_goals=["Finish thesis", "Pass stats"])

    system_prompt, user_prompt = build_motivation_prompt(prediction, profile)

    assert "max 50 words" in system_prompt
    assert "Stress level: 86%" in user_prompt
    assert "Focus level: 40%" in user_prompt
    assert "Energy level: 10%" in user_prompt
    assert "Study hours: 5.5" in user_prompt
    assert "Finish thesis, Pass stats" in user_prompt


def test_motivation_prompt_without_goals():
    prediction = Prediction(stress_level=0.0, focus_level=1.0, energy_level=1.0, confidence=0.6)
    _, user_prompt = build_motivation_prompt(prediction, StudentProfile())
    assert "Academic goals: not specified" in user_prompt


def test_prompt_template_missing_variable():
    with pytest.raises(ValueError, match="Missing required template variable"):
        PromptTemplate(system="{a}", user="{b}").format(a=1)

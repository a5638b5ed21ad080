from mindwyn.services.behavior_engine.insights import InsightPolicy, InsightType


def test_high_stress_insight(make_prediction):
    insight = InsightPolicy.build_insight(make_prediction(stress=0.8, confidence=0.6))
    assert insight.type == InsightType.STRESS
    assert insight.level == 0.8
    assert insight.confidence == 0.6
    assert insight.suggestions == [
        "Take a 5-minute breathing break",
        "Try some gentle stretching",
        "Listen to calming music",
    ]


def test_moderate_stress_is_focus_insight(make_prediction):
    insight = InsightPolicy.build_insight(make_prediction(stress=0.55))
    assert insight.type == InsightType.FOCUS
    assert insight.suggestions == ["Consider a short break", "Stay hydrated"]


def test_low_focus_and_energy_suggestions(make_prediction):
    suggestions = InsightPolicy.suggestions_for(make_prediction(stress=0.1, focus=0.2, energy=0.1))
    assert suggestions == [
        "Minimize distractions",
        "Try the Pomodoro technique",
        "Take a power nap if possible",
        "Get some fresh air",
        "Have a healthy snack",
    ]


def test_default_suggestion(make_prediction):
    assert InsightPolicy.suggestions_for(make_prediction()) == [InsightPolicy.DEFAULT_SUGGESTION]

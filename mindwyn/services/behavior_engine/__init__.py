"""
Behavior Engine - turns interaction telemetry into stress/focus/energy predictions.
"""

from .aggregator import TelemetryAggregator
from .app_usage import ApplicationUsage, ApplicationUsageTracker, CategoryUsage, categorize_application
from .insights import InsightPolicy, WellnessInsight
from .metrics import AppCategory, FeatureSnapshot, Prediction
from .stress_scorer import ModelBasedStrategy, RuleBasedStrategy, StressScorer

__all__ = [
    "AppCategory",
    "ApplicationUsage",
    "ApplicationUsageTracker",
    "CategoryUsage",
    "FeatureSnapshot",
    "InsightPolicy",
    "ModelBasedStrategy",
    "Prediction",
    "RuleBasedStrategy",
    "StressScorer",
    "TelemetryAggregator",
    "WellnessInsight",
    "categorize_application",
]

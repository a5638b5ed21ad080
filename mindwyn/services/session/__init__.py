"""
Session layer - wires interaction events and timers to the behavior engine.
"""

from .events import EventHub, EventType, InteractionEvent
from .monitor import BehaviorMonitor, RecommendationAction

__all__ = ["BehaviorMonitor", "EventHub", "EventType", "InteractionEvent", "RecommendationAction"]

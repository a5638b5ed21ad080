"""
Recommendation Engine - ranked suggestion cards from stress predictions.

Catalog-driven selection with an optional generative motivation message.
"""

from .catalog import Recommendation, RecommendationCategory, StudentProfile
from .llm_client import LLMClient
from .selector import RecommendationSelector

__all__ = [
    "LLMClient",
    "Recommendation",
    "RecommendationCategory",
    "RecommendationSelector",
    "StudentProfile",
]

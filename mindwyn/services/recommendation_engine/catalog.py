import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Tuple


class RecommendationCategory(str, Enum):
    MOTIVATION = "motivation"
    ACTIVITY = "activity"
    MUSIC = "music"
    GAME = "game"
    QUOTE = "quote"


@dataclass(frozen=True)
class Recommendation:
    id: str
    category: RecommendationCategory
    content: str
    emoji: str
    priority: int          # lower = more urgent
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def create(cls, prefix: str, category: RecommendationCategory, content: str, emoji: str,
               priority: int) -> "Recommendation":
        return cls(
            id=f"{prefix}_{uuid.uuid4().hex[:12]}",
            category=category,
            content=content,
            emoji=emoji,
            priority=priority,
        )


@dataclass(frozen=True)
class CatalogEntry:
    content: str
    emoji: str
    kind: str = ""


@dataclass(frozen=True)
class Catalog:
    """Fixed, non-empty set of canned entries sampled uniformly."""
    name: str
    entries: Tuple[CatalogEntry, ...]

    def __post_init__(self):
        if not self.entries:
            raise ValueError(f"Catalog '{self.name}' must not be empty")

    def pick(self, rng: random.Random) -> CatalogEntry:
        return self.entries[rng.randrange(len(self.entries))]

    def __len__(self):
        return len(self.entries)


@dataclass
class StudentProfile:
    id: str = "anonymous"
    name: str = ""
    study_hours: float = 0.0
    break_preference_minutes: int = 15
    stress_threshold: float = 0.7
    academic_goals: List[str] = field(default_factory=list)
    courses: List[str] = field(default_factory=list)
    preferred_interventions: List[str] = field(default_factory=list)


# --- CONTENT ---

MOTIVATIONAL_QUOTES = Catalog("motivational_quotes", (
    CatalogEntry("You're stronger than you think! 💪", "💪"),
    CatalogEntry("Take it one step at a time 🌟", "🌟"),
    CatalogEntry("Progress, not perfection! 🎯", "🎯"),
    CatalogEntry("You've got this! Believe in yourself 🌈", "🌈"),
    CatalogEntry("Every challenge is a chance to grow 🌱", "🌱"),
    CatalogEntry("Breathe, focus, achieve ✨", "✨"),
    CatalogEntry("Your potential is limitless! 🚀", "🚀"),
    CatalogEntry("Small steps lead to big changes 👣", "👣"),
))

STRESS_RELIEF_ACTIVITIES = Catalog("stress_relief_activities", (
    CatalogEntry("Take 5 deep breaths", "🫁", "breathing"),
    CatalogEntry("Listen to calming music", "🎵", "music"),
    CatalogEntry("Do a quick stretch", "🤸", "movement"),
    CatalogEntry("Play a relaxing game", "🎮", "game"),
    CatalogEntry("Write down 3 things you're grateful for", "📝", "mindfulness"),
    CatalogEntry("Look at something green or nature", "🌿", "visual"),
    CatalogEntry("Drink some water", "💧", "health"),
    CatalogEntry("Take a 2-minute walk", "🚶", "movement"),
))

WIND_DOWN = CatalogEntry("Consider winding down for better sleep 😴", "😴", "sleep")

EMERGENCY_BREATHING = CatalogEntry("Take 10 deep breaths right now 🫁", "🫁", "breathing")
EMERGENCY_MUSIC = CatalogEntry("Listen to calming music for 5 minutes 🎵", "🎵", "music")

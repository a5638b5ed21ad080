"""
Prompt templates for the generative motivation message.
Simple string formatting with validation, no templating engine.
"""

from dataclasses import dataclass

from mindwyn.services.behavior_engine.metrics import Prediction
from mindwyn.services.recommendation_engine.catalog import StudentProfile


@dataclass
class PromptTemplate:
    """Simple template with variable injection"""
    system: str
    user: str

    def format(self, **kwargs) -> tuple[str, str]:
        """Format both system and user prompts with provided variables"""
        try:
            system_msg = self.system.format(**kwargs)
            user_msg = self.user.format(**kwargs)
            return system_msg, user_msg
        except KeyError as e:
            raise ValueError(f"Missing required template variable: {e}")


MOTIVATION_TEMPLATE = PromptTemplate(
    system="""You are a supportive wellness coach for university students.

RULES:
- Reply with ONE short, encouraging message (max 50 words)
- Include exactly one fitting emoji
- No medical advice, no diagnoses
- Plain text only""",
    user="""As a wellness AI, provide a personalized recommendation for a student with:
- Stress level: {stress_pct}%
- Focus level: {focus_pct}%
- Energy level: {energy_pct}%
- Study hours: {study_hours}
- Academic goals: {academic_goals}"""
)


def build_motivation_prompt(prediction: Prediction, profile: StudentProfile) -> tuple[str, str]:
    return MOTIVATION_TEMPLATE.format(
        stress_pct=f"{prediction.stress_level * 100:.0f}",
        focus_pct=f"{prediction.focus_level * 100:.0f}",
        energy_pct=f"{prediction.energy_level * 100:.0f}",
        study_hours=profile.study_hours,
        academic_goals=", ".join(profile.academic_goals) or "not specified",
    )

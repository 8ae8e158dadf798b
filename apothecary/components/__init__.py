"""
State components for the apothecary rules (pydantic models).
"""

from apothecary.components.progression import (
    Chosen,
    PlayerProgression,
    ProfessionChoice,
    SkillProgress,
    Unchosen,
)

__all__ = [
    "Chosen",
    "PlayerProgression",
    "ProfessionChoice",
    "SkillProgress",
    "Unchosen",
]

"""
Player progression components - level, XP, skills and profession choice.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from engine.core.component import Component, register_component
from apothecary.progression.professions import ProfessionId


class Unchosen(BaseModel):
    """No profession chosen yet."""
    model_config = ConfigDict(frozen=True)

    kind: Literal['unchosen'] = 'unchosen'


class Chosen(BaseModel):
    """A profession was chosen; permanent for the rest of the game."""
    model_config = ConfigDict(frozen=True)

    kind: Literal['chosen'] = 'chosen'
    profession: ProfessionId


ProfessionChoice = Annotated[Union[Unchosen, Chosen], Field(discriminator='kind')]


@register_component
class SkillProgress(Component):
    """
    One known skill.

    Attributes:
        level: Current skill level (1..max level of the skill)
        xp: XP towards the next skill level
    """
    level: int = Field(default=1, ge=0)
    xp: int = Field(default=0, ge=0)


@register_component
class PlayerProgression(Component):
    """
    Experience, level and specialization of the player.

    Attributes:
        level: Current level, never decreases
        xp: XP earned inside the current level band
        total_xp: Lifetime XP earned
        skill_points: Unspent points (one per level gained)
        known_skills: skill id -> progress
        learning_skills: skill id -> XP put into learning it so far
        profession: Unchosen until the one-time choice
    """
    level: int = Field(default=4, ge=1)
    xp: int = Field(default=0, ge=0)
    total_xp: int = Field(default=0, ge=0)
    skill_points: int = Field(default=0, ge=0)
    known_skills: dict[str, SkillProgress] = Field(default_factory=dict)
    learning_skills: dict[str, int] = Field(default_factory=dict)
    profession: ProfessionChoice = Field(default_factory=Unchosen)

    @property
    def chosen_profession(self) -> Optional[ProfessionId]:
        if isinstance(self.profession, Chosen):
            return self.profession.profession
        return None

    @property
    def has_profession(self) -> bool:
        return isinstance(self.profession, Chosen)

    def skill_level(self, skill_id: str) -> int:
        """Level of a known skill, 0 if unknown."""
        if not isinstance(skill_id, str):
            return 0
        progress = self.known_skills.get(skill_id)
        return progress.level if progress else 0

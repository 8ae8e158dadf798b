"""
Skill system - the learnable skills, their families and XP thresholds.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, Optional

from apothecary.progression.data import default_database, load_database


class SkillCategory(Enum):
    """Skill families."""
    MEDICAL = "medical"
    SOCIAL = "social"
    PRACTICAL = "practical"
    SCHOLARLY = "scholarly"
    COVERT = "covert"
    LANGUAGES = "languages"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS = {
    SkillCategory.MEDICAL: "Medical Arts",
    SkillCategory.SOCIAL: "Social Navigation",
    SkillCategory.PRACTICAL: "Practical Skills",
    SkillCategory.SCHOLARLY: "Scholarly Pursuits",
    SkillCategory.COVERT: "Covert Operations",
    SkillCategory.LANGUAGES: "Languages",
}


@dataclass(frozen=True)
class SkillDefinition:
    """Complete definition of a skill."""
    id: str
    name: str
    category: SkillCategory
    description: str = ""
    icon: str = ""
    max_level: int = 5
    xp_per_level: int = 20

    # Baseline skills every new character starts with
    starting_level: Optional[int] = None

    @property
    def is_baseline(self) -> bool:
        return self.starting_level is not None


class SkillCatalog:
    """
    Lookup of skill definitions.
    """

    def __init__(self, skills: Iterable[SkillDefinition] = ()):
        self._skills: dict[str, SkillDefinition] = {s.id: s for s in skills}

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> SkillCatalog:
        skills = []
        for skill_data in records:
            skills.append(SkillDefinition(
                id=skill_data['id'],
                name=skill_data['name'],
                category=SkillCategory(skill_data['category']),
                description=skill_data.get('description', ''),
                icon=skill_data.get('icon', ''),
                max_level=skill_data.get('max_level', 5),
                xp_per_level=skill_data.get('xp_per_level', 20),
                starting_level=skill_data.get('starting_level'),
            ))
        return cls(skills)

    @classmethod
    def load(cls, data_path: Path | str | None = None) -> SkillCatalog:
        """Load skill definitions from a data folder."""
        return cls.from_records(load_database(data_path).all("skills"))

    def __iter__(self) -> Iterator[SkillDefinition]:
        return iter(self._skills.values())

    def __len__(self) -> int:
        return len(self._skills)

    def __contains__(self, skill_id: object) -> bool:
        return isinstance(skill_id, str) and skill_id in self._skills

    def get(self, skill_id: str) -> Optional[SkillDefinition]:
        """Get a skill definition."""
        if not isinstance(skill_id, str):
            return None
        return self._skills.get(skill_id)

    def by_category(self, category: SkillCategory) -> list[SkillDefinition]:
        return [s for s in self._skills.values() if s.category == category]

    def baseline_skills(self) -> dict[str, int]:
        """Skill id -> starting level for every baseline skill."""
        return {
            s.id: s.starting_level
            for s in self._skills.values()
            if s.starting_level is not None
        }

    def get_learnable_skills(
        self,
        known_skills: Iterable[str],
        learning_skills: Iterable[str] = (),
    ) -> list[str]:
        """Skills that are neither known nor already being learned."""
        taken = set(known_skills) | set(learning_skills)
        return [skill_id for skill_id in self._skills if skill_id not in taken]


_default_skills: SkillCatalog | None = None


def default_skill_catalog() -> SkillCatalog:
    """The shipped skill table, built once per process."""
    global _default_skills
    if _default_skills is None:
        _default_skills = SkillCatalog.from_records(default_database().all("skills"))
    return _default_skills

"""
Tunable constants for the progression rules.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = Path(__file__).parent / "data"

DEFAULT_PRE_PROFESSION_TITLES: dict[int, str] = {
    1: "Apprentice Apothecary",
    2: "Junior Apothecary",
    3: "Competent Apothecary",
    4: "Independent Apothecary",
}


class ProgressionConfig:
    """Configuration for the progression engine."""

    def __init__(
        self,
        starting_level: int = 4,
        profession_choice_level: int = 5,
        max_level: int = 99,
        master_title_level: int = 50,
        skill_bonus_per_level: int = 2,
        die_sides: int = 20,
        default_skill_xp_per_level: int = 20,
        pre_profession_titles: Mapping[int, str] | None = None,
        fallback_title: str = "Independent Apothecary",
        data_path: Path | str = DEFAULT_DATA_PATH,
    ):
        if not 1 <= starting_level <= max_level:
            raise ValueError(f"starting_level must be within 1..{max_level}, got {starting_level}")
        if not 1 < profession_choice_level <= master_title_level <= max_level:
            raise ValueError(
                "expected 1 < profession_choice_level <= master_title_level <= max_level, got "
                f"{profession_choice_level}, {master_title_level}, {max_level}"
            )
        if die_sides < 2:
            raise ValueError(f"die_sides must be at least 2, got {die_sides}")

        self.starting_level = starting_level
        self.profession_choice_level = profession_choice_level
        self.max_level = max_level
        self.master_title_level = master_title_level
        self.skill_bonus_per_level = skill_bonus_per_level
        self.die_sides = die_sides
        self.default_skill_xp_per_level = default_skill_xp_per_level
        self.pre_profession_titles = dict(
            DEFAULT_PRE_PROFESSION_TITLES if pre_profession_titles is None else pre_profession_titles
        )
        self.fallback_title = fallback_title
        self.data_path = Path(data_path)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProgressionConfig:
        """Build a config from a mapping, ignoring keys it does not know."""
        known = {
            'starting_level', 'profession_choice_level', 'max_level',
            'master_title_level', 'skill_bonus_per_level', 'die_sides',
            'default_skill_xp_per_level', 'pre_profession_titles',
            'fallback_title', 'data_path',
        }
        kwargs = {}
        for key, value in data.items():
            if key not in known:
                logger.warning(f"Ignoring unknown config key: {key}")
                continue
            kwargs[key] = value

        # JSON object keys are strings
        titles = kwargs.get('pre_profession_titles')
        if titles is not None:
            kwargs['pre_profession_titles'] = {int(level): title for level, title in titles.items()}

        return cls(**kwargs)

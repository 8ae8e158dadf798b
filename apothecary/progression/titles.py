"""
Display titles for the player.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from apothecary.config import ProgressionConfig
from apothecary.progression.professions import ProfessionCatalog, default_catalog

logger = logging.getLogger(__name__)


class TitleResolver:
    """
    Resolves the title shown next to the player's name.

    Before the profession choice the title follows the fixed apprentice
    ladder. Afterwards it is the profession's base, master or legendary
    title by level.
    """

    def __init__(
        self,
        config: ProgressionConfig | None = None,
        catalog: ProfessionCatalog | None = None,
    ):
        self.config = config or ProgressionConfig()
        self.catalog = catalog or default_catalog()

    def title(self, level: int, profession: Any = None, known_skills: Mapping[str, Any] | None = None) -> str:
        """
        Title for a level and profession.

        Args:
            level: Player level
            profession: ProfessionId, its string id, a Chosen/Unchosen variant or None
            known_skills: Accepted for callers that pass full state; unused

        Returns:
            A title; never raises
        """
        if not isinstance(level, int) or isinstance(level, bool):
            logger.warning(f"Invalid level for title: {level!r}")
            return self.config.fallback_title

        if level < self.config.profession_choice_level:
            return self.pre_profession_title(level)

        found = self.catalog.get(profession)
        if found is None:
            return self.config.fallback_title

        if level >= self.config.max_level:
            return found.titles.legendary
        if level >= self.config.master_title_level:
            return found.titles.master
        return found.titles.base

    def pre_profession_title(self, level: int) -> str:
        """Exact title for the level, else the nearest lower one."""
        titles = self.config.pre_profession_titles
        if not titles:
            return self.config.fallback_title
        if level in titles:
            return titles[level]

        lower = [defined for defined in titles if defined <= level]
        if not lower:
            return titles[min(titles)]
        return titles[max(lower)]

"""
Profession affinity - how well a player's skills match each profession.

Scores are advisory: they drive the recommendation shown at the
profession choice and never restrict what the player may pick.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from apothecary.progression.professions import ProfessionId, resolve_profession_id

logger = logging.getLogger(__name__)

# profession -> skill id -> weight
AFFINITY_WEIGHTS: dict[ProfessionId, dict[str, float]] = {
    ProfessionId.ALCHEMIST: {
        'alchemy': 2.0,
        'pharmacy': 1.5,
        'preservation': 1.0,
    },
    ProfessionId.HERBALIST: {
        'herbalism': 2.0,
        'foraging': 1.5,
        'diagnosis': 1.0,
        'gardening': 1.5,
        'cooking': 0.5,
    },
    ProfessionId.SURGEON: {
        'anatomy': 2.0,
        'diagnosis': 1.5,
        'combat': 0.5,
    },
    ProfessionId.POISONER: {
        'stealth': 2.0,
        'deception': 1.5,
        'theft': 1.5,
        'lockpicking': 1.0,
        'disguise': 1.0,
        'alchemy': 0.5,  # poisons need chemistry
    },
    ProfessionId.SCHOLAR: {
        'natural_philosophy': 2.0,
        'literacy': 1.5,
        'latin': 1.5,
        'greek': 1.0,
        'bookkeeping': 0.5,
    },
    ProfessionId.COURT_PHYSICIAN: {
        'persuasion': 2.0,
        'etiquette': 2.0,
        'bargaining': 1.0,
        'theology': 1.0,
        'diagnosis': 0.5,
    },
}

DEFAULT_DOMINANT = ProfessionId.ALCHEMIST


@dataclass(frozen=True)
class AffinityScore:
    profession: ProfessionId
    score: float


def skill_level_of(entry: Any) -> int:
    """
    Level of one known-skill entry.

    Accepts a SkillProgress-like object or a `{"level": n}` mapping.
    Anything malformed counts as 0.
    """
    if isinstance(entry, Mapping):
        level = entry.get('level', 0)
    else:
        level = getattr(entry, 'level', 0)
    if isinstance(level, bool) or not isinstance(level, (int, float)):
        return 0
    return max(0, int(level))


class AffinityScorer:
    """
    Weighted skill sums per profession.

    Args:
        professions: Professions to score, in declaration order
        weights: Override for AFFINITY_WEIGHTS
    """

    def __init__(
        self,
        professions: Iterable[ProfessionId] | None = None,
        weights: Mapping[ProfessionId, Mapping[str, float]] | None = None,
    ):
        self._professions = list(professions) if professions is not None else list(ProfessionId)
        self._weights = weights if weights is not None else AFFINITY_WEIGHTS

    def score(self, known_skills: Mapping[str, Any] | None) -> dict[ProfessionId, float]:
        """Score every profession; missing or malformed skills contribute 0."""
        if not isinstance(known_skills, Mapping):
            if known_skills is not None:
                logger.warning(f"Ignoring malformed skill map: {known_skills!r}")
            known_skills = {}

        scores: dict[ProfessionId, float] = {}
        for profession in self._professions:
            weights = self._weights.get(profession, {})
            scores[profession] = float(sum(
                weight * skill_level_of(known_skills.get(skill_id))
                for skill_id, weight in weights.items()
            ))
        return scores

    def rank(self, scores: Mapping[Any, float]) -> list[AffinityScore]:
        """
        Professions by descending score.

        Ties keep profession declaration order.
        """
        if not isinstance(scores, Mapping):
            logger.warning(f"Ignoring malformed scores: {scores!r}")
            scores = {}

        normalized: dict[ProfessionId, float] = {}
        for key, value in scores.items():
            profession = resolve_profession_id(key)
            if profession is None:
                continue
            is_number = isinstance(value, (int, float)) and not isinstance(value, bool)
            normalized[profession] = float(value) if is_number else 0.0

        ordered = [
            AffinityScore(profession, normalized.get(profession, 0.0))
            for profession in self._professions
        ]
        # sorted() is stable, reverse included
        return sorted(ordered, key=lambda s: s.score, reverse=True)

    def recommend(self, known_skills: Mapping[str, Any] | None, count: int = 2) -> list[AffinityScore]:
        """Top professions for the choice screen."""
        return self.rank(self.score(known_skills))[:count]

    def dominant(self, scores: Mapping[Any, float]) -> ProfessionId:
        """Highest scoring profession; alchemist when nothing scores above 0."""
        best_score = 0.0
        dominant = DEFAULT_DOMINANT
        for entry in self.rank(scores):
            if entry.score > best_score:
                best_score = entry.score
                dominant = entry.profession
        return dominant

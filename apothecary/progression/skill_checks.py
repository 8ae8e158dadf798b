"""
Skill checks - d20 plus skill bonus against a difficulty class.

The resolver never looks at professions or abilities. Callers that want
an ability to ease a check lower the DC before calling `check`.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Any, Mapping

from apothecary.config import ProgressionConfig
from apothecary.progression.affinity import skill_level_of

logger = logging.getLogger(__name__)


class Difficulty(IntEnum):
    """Standard difficulty classes, easiest first."""
    TRIVIAL = 5      # almost impossible to fail
    EASY = 10        # easy for trained characters
    MODERATE = 15
    HARD = 20        # difficult even for experts
    VERY_HARD = 25
    HEROIC = 30      # legendary feat


# recommended_dc contexts
CONTEXT_DIFFICULTY: dict[str, Difficulty] = {
    'trivial': Difficulty.TRIVIAL,
    'easy': Difficulty.EASY,
    'standard': Difficulty.MODERATE,
    'hard': Difficulty.HARD,
    'very_hard': Difficulty.VERY_HARD,
    'heroic': Difficulty.HEROIC,
}

OPPOSED_CHECK_DC = Difficulty.EASY


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _difficulty_class(value: Any) -> int:
    if not _is_number(value) or not math.isfinite(value):
        logger.warning(f"Invalid difficulty class {value!r}, using {int(Difficulty.MODERATE)}")
        return int(Difficulty.MODERATE)
    return int(value)


class CheckDegree(Enum):
    """How well a check went, for narration."""
    CRITICAL_SUCCESS = auto()
    OUTSTANDING_SUCCESS = auto()
    SOLID_SUCCESS = auto()
    NARROW_SUCCESS = auto()
    NARROW_FAILURE = auto()
    FAILURE = auto()
    COMPLETE_FAILURE = auto()
    CRITICAL_FAILURE = auto()


@dataclass(frozen=True)
class SkillCheckResult:
    """Outcome of one check. `roll` is 0 when no die was rolled."""
    success: bool
    roll: int
    total: int
    difficulty_class: int
    skill_level: int = 0
    skill_bonus: int = 0
    modifier: int = 0
    rolls: tuple[int, ...] = ()
    natural_1: bool = False
    natural_20: bool = False
    advantage: bool = False
    disadvantage: bool = False

    @property
    def margin(self) -> int:
        """Total minus DC; negative on failure."""
        return self.total - self.difficulty_class

    @property
    def degree(self) -> CheckDegree:
        if self.success:
            if self.natural_20:
                return CheckDegree.CRITICAL_SUCCESS
            if self.margin >= 10:
                return CheckDegree.OUTSTANDING_SUCCESS
            if self.margin >= 5:
                return CheckDegree.SOLID_SUCCESS
            return CheckDegree.NARROW_SUCCESS

        if self.natural_1:
            return CheckDegree.CRITICAL_FAILURE
        if self.margin <= -10:
            return CheckDegree.COMPLETE_FAILURE
        if self.margin <= -5:
            return CheckDegree.FAILURE
        return CheckDegree.NARROW_FAILURE


@dataclass(frozen=True)
class OpposedCheckResult:
    player: SkillCheckResult
    opponent: SkillCheckResult

    @property
    def tie(self) -> bool:
        return self.player.total == self.opponent.total

    @property
    def player_wins(self) -> bool:
        return self.player.total > self.opponent.total

    @property
    def margin(self) -> int:
        return abs(self.player.total - self.opponent.total)


class SkillCheckResolver:
    """
    Rolls skill checks.

    Args:
        config: Supplies die size and bonus per skill level
        rng: Random source; pass a seeded Random for repeatable rolls
    """

    def __init__(self, config: ProgressionConfig | None = None, rng: random.Random | None = None):
        self.config = config or ProgressionConfig()
        self.rng = rng or random.Random()

    def skill_bonus(self, skill_level: int) -> int:
        """Bonus added to the roll; grows linearly with level."""
        return max(0, skill_level) * self.config.skill_bonus_per_level

    def roll_die(self) -> int:
        return self.rng.randint(1, self.config.die_sides)

    def check(
        self,
        skill_level: int,
        difficulty_class: int,
        *,
        modifier: int = 0,
        advantage: bool = False,
        disadvantage: bool = False,
    ) -> SkillCheckResult:
        """
        Roll once (twice with advantage or disadvantage) and compare.

        Success iff roll + skill bonus + modifier >= DC. The natural
        flags report the raw die only and do not change the outcome.
        Advantage and disadvantage together cancel out.
        """
        if isinstance(skill_level, bool) or not isinstance(skill_level, int):
            logger.warning(f"Invalid skill level {skill_level!r}, treating as 0")
            skill_level = 0

        dc = _difficulty_class(difficulty_class)
        if not _is_number(modifier):
            logger.warning(f"Invalid check modifier {modifier!r}, treating as 0")
            modifier = 0
        if advantage and disadvantage:
            advantage = disadvantage = False

        if advantage or disadvantage:
            rolls = (self.roll_die(), self.roll_die())
            roll = max(rolls) if advantage else min(rolls)
        else:
            rolls = (self.roll_die(),)
            roll = rolls[0]

        bonus = self.skill_bonus(skill_level)
        total = roll + bonus + modifier

        result = SkillCheckResult(
            success=total >= dc,
            roll=roll,
            total=total,
            difficulty_class=dc,
            skill_level=skill_level,
            skill_bonus=bonus,
            modifier=modifier,
            rolls=rolls,
            natural_1=roll == 1,
            natural_20=roll == self.config.die_sides,
            advantage=advantage,
            disadvantage=disadvantage,
        )
        logger.debug(
            f"Skill check: rolled {roll} + {bonus} + {modifier} = {total} vs DC {dc} "
            f"-> {'success' if result.success else 'failure'}"
        )
        return result

    def check_skill(
        self,
        known_skills: Mapping[str, Any] | None,
        skill_id: str,
        difficulty_class: int = Difficulty.MODERATE,
        *,
        modifier: int = 0,
        advantage: bool = False,
        disadvantage: bool = False,
    ) -> SkillCheckResult:
        """
        Check a skill from a known-skills map.

        An untrained skill cannot be attempted: the result is a failure
        with no roll.
        """
        level = self._level_in(known_skills, skill_id)
        if level <= 0:
            return SkillCheckResult(
                success=False,
                roll=0,
                total=0,
                difficulty_class=_difficulty_class(difficulty_class),
            )
        return self.check(
            level,
            difficulty_class,
            modifier=modifier,
            advantage=advantage,
            disadvantage=disadvantage,
        )

    def can_attempt(self, known_skills: Mapping[str, Any] | None, skill_id: str) -> bool:
        return self._level_in(known_skills, skill_id) > 0

    def recommended_dc(self, skill_level: int, context: str = 'standard') -> int:
        """Base DC for the context, eased by half the skill level, never below TRIVIAL."""
        if not isinstance(skill_level, int) or isinstance(skill_level, bool):
            logger.warning(f"Invalid skill level {skill_level!r}, treating as 0")
            skill_level = 0
        if not isinstance(context, str):
            context = 'standard'
        base = CONTEXT_DIFFICULTY.get(context, Difficulty.MODERATE)
        return max(int(base) - max(0, skill_level) // 2, int(Difficulty.TRIVIAL))

    def opposed_check(
        self,
        player_level: int,
        opponent_level: int,
        *,
        player_modifier: int = 0,
        opponent_modifier: int = 0,
    ) -> OpposedCheckResult:
        """Both sides roll; the higher total wins, equal totals tie."""
        return OpposedCheckResult(
            player=self.check(player_level, OPPOSED_CHECK_DC, modifier=player_modifier),
            opponent=self.check(opponent_level, OPPOSED_CHECK_DC, modifier=opponent_modifier),
        )

    @staticmethod
    def _level_in(known_skills: Mapping[str, Any] | None, skill_id: str) -> int:
        if not isinstance(known_skills, Mapping) or not isinstance(skill_id, str):
            return 0
        return skill_level_of(known_skills.get(skill_id))

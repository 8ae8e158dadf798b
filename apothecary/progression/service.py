"""
Progression service - the single mutation point for player progression.

The game loop reports XP, skill practice and the profession choice here;
the rest of the game reads level, title, modifiers and quest state back.
Everything derived (title, modifiers, unlocked abilities) is recomputed
from the stored state on each query.
"""

from __future__ import annotations

import logging
import math
import random
from enum import Enum, auto
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from engine.core.component import load_component
from engine.core.events import EventBus
from apothecary.config import DEFAULT_DATA_PATH, ProgressionConfig
from apothecary.components.progression import (
    Chosen,
    PlayerProgression,
    ProfessionChoice,
    SkillProgress,
)
from apothecary.progression.affinity import AffinityScore, AffinityScorer
from apothecary.progression.leveling import xp_for_next_level
from apothecary.progression.modifiers import ModifierResolver, ModifierSnapshot
from apothecary.progression.professions import (
    Ability,
    ModifierKey,
    ModifierValue,
    ProfessionCatalog,
    ProfessionId,
    default_catalog,
    resolve_profession_id,
)
from apothecary.progression.quests import QuestLedger
from apothecary.progression.skill_checks import Difficulty, SkillCheckResolver, SkillCheckResult
from apothecary.progression.skills import SkillCatalog, default_skill_catalog
from apothecary.progression.titles import TitleResolver


class ProgressionEvent(Enum):
    """Progression changes published on the event bus."""
    XP_GAINED = auto()
    LEVEL_UP = auto()
    PROFESSION_CHOICE_AVAILABLE = auto()
    PROFESSION_CHOSEN = auto()
    ABILITY_UNLOCKED = auto()
    SKILL_LEARNED = auto()
    SKILL_LEVEL_UP = auto()
    TITLE_CHANGED = auto()


def _is_positive_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


def _scaled(amount: float, multiplier: float) -> int | None:
    """amount x multiplier rounded to whole XP; None when it overflows."""
    scaled = amount * multiplier
    if not math.isfinite(scaled):
        return None
    return int(round(scaled))


class ProgressionService:
    """
    Owns one player's progression and quest ledger for a session.

    Usage:
        service = ProgressionService(event_bus=bus)
        service.award_xp(60, skill_id='herbalism', source='foraging')
        if service.is_profession_choice_pending:
            service.choose_profession('herbalist')
        service.modifier('herbDiscount')  # 0.1
    """

    def __init__(
        self,
        config: ProgressionConfig | None = None,
        catalog: ProfessionCatalog | None = None,
        skills: SkillCatalog | None = None,
        event_bus: EventBus | None = None,
        rng: random.Random | None = None,
        player: PlayerProgression | None = None,
        ledger: QuestLedger | None = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.config = config or ProgressionConfig()
        self.event_bus = event_bus

        shipped_data = self.config.data_path == DEFAULT_DATA_PATH
        if catalog is None:
            catalog = default_catalog() if shipped_data else ProfessionCatalog.load(self.config.data_path)
        if skills is None:
            skills = default_skill_catalog() if shipped_data else SkillCatalog.load(self.config.data_path)
        self.catalog = catalog
        self.skills = skills

        self.resolver = ModifierResolver(self.catalog)
        self.titles = TitleResolver(self.config, self.catalog)
        self.affinity = AffinityScorer(self.catalog.ids())
        self.checks = SkillCheckResolver(self.config, rng)
        self.ledger = ledger if ledger is not None else QuestLedger(event_bus)

        self._player = player.clone() if player is not None else self.new_player()

    def new_player(self) -> PlayerProgression:
        """Fresh state: starting level and the baseline skills."""
        return PlayerProgression(
            level=self.config.starting_level,
            known_skills={
                skill_id: SkillProgress(level=level)
                for skill_id, level in self.skills.baseline_skills().items()
            },
        )

    # Read API

    @property
    def state(self) -> PlayerProgression:
        """Copy of the player state; changing it does not affect the service."""
        return self._player.clone()

    @property
    def level(self) -> int:
        return self._player.level

    @property
    def xp(self) -> int:
        return self._player.xp

    @property
    def total_xp(self) -> int:
        return self._player.total_xp

    @property
    def skill_points(self) -> int:
        return self._player.skill_points

    @property
    def xp_to_next_level(self) -> int:
        """XP still missing for the next level; 0 at the level cap."""
        if self._player.level >= self.config.max_level:
            return 0
        return xp_for_next_level(self._player.level) - self._player.xp

    @property
    def chosen_profession(self) -> Optional[ProfessionId]:
        return self._player.chosen_profession

    @property
    def profession_choice(self) -> ProfessionChoice:
        return self._player.profession

    @property
    def is_profession_choice_pending(self) -> bool:
        return (
            self._player.level >= self.config.profession_choice_level
            and not self._player.has_profession
        )

    @property
    def title(self) -> str:
        return self.titles.title(
            self._player.level,
            self._player.chosen_profession,
            self._player.known_skills,
        )

    def skill_level(self, skill_id: str) -> int:
        return self._player.skill_level(skill_id)

    def unlocked_abilities(self) -> list[Ability]:
        return self.resolver.unlocked_abilities(self._player.chosen_profession, self._player.level)

    def modifier(self, key: ModifierKey | str) -> ModifierValue | None:
        """Effective modifier value, None when nothing grants it."""
        return self.resolver.effective_modifier(self._player.chosen_profession, self._player.level, key)

    def modifier_or_default(self, key: ModifierKey | str) -> Any:
        return self.resolver.value_or_default(self._player.chosen_profession, self._player.level, key)

    def modifiers(self) -> ModifierSnapshot:
        return self.resolver.snapshot(self._player.chosen_profession, self._player.level)

    def affinity_scores(self) -> dict[ProfessionId, float]:
        return self.affinity.score(self._player.known_skills)

    def recommendations(self, count: int = 2) -> list[AffinityScore]:
        """Professions that suit the player's skills best. Advisory only."""
        return self.affinity.recommend(self._player.known_skills, count)

    def skill_check(
        self,
        skill_id: str,
        difficulty_class: int = Difficulty.MODERATE,
        **options: Any,
    ) -> SkillCheckResult:
        """Roll a check with the player's level in `skill_id`; see SkillCheckResolver.check."""
        return self.checks.check_skill(self._player.known_skills, skill_id, difficulty_class, **options)

    # Mutations

    def award_xp(self, amount: int, skill_id: Optional[str] = None, source: str = "") -> int:
        """
        Award player XP, scaled by the XP multiplier of unlocked abilities.

        Args:
            amount: Base XP, must be positive
            skill_id: Skill that was practised; it receives the base amount
            source: What earned the XP, passed along on events

        Returns:
            Number of levels gained
        """
        if not _is_positive_number(amount):
            self.logger.warning(f"Ignoring XP award of {amount!r}")
            return 0

        player = self._player
        old_level = player.level
        old_title = self.title

        multiplier = self.modifier_or_default(ModifierKey.XP_MULTIPLIER)
        gained = _scaled(amount, multiplier)
        if gained is None:
            self.logger.warning(f"Ignoring XP award of {amount!r} x {multiplier}")
            return 0

        xp = player.xp + gained
        level = player.level
        while level < self.config.max_level and xp >= xp_for_next_level(level):
            xp -= xp_for_next_level(level)
            level += 1
        if level >= self.config.max_level:
            xp = 0

        player.total_xp += gained
        player.xp = xp
        player.level = level
        player.skill_points += level - old_level

        self.logger.debug(f"XP +{gained} ({amount} x {multiplier}) from {source or 'unknown'}")
        self._publish(
            ProgressionEvent.XP_GAINED,
            amount=gained,
            base_amount=amount,
            source=source,
            skill_id=skill_id,
        )

        if skill_id is not None:
            self.award_skill_xp(skill_id, amount)

        if level > old_level:
            self._on_level_up(old_level, old_title)
        return level - old_level

    def award_skill_xp(self, skill_id: str, amount: int) -> bool:
        """
        Practise a skill being learned or already known.

        Returns:
            True if the skill was learned or gained a level
        """
        definition = self.skills.get(skill_id)
        if definition is None:
            self.logger.warning(f"Unknown skill: {skill_id!r}")
            return False
        if not _is_positive_number(amount):
            self.logger.warning(f"Ignoring skill XP award of {amount!r} for {skill_id}")
            return False

        multiplier = self.modifier_or_default(ModifierKey.SKILL_XP_MULTIPLIER)
        gained = _scaled(amount, multiplier)
        if gained is None:
            self.logger.warning(f"Ignoring skill XP award of {amount!r} for {skill_id}")
            return False
        threshold = definition.xp_per_level or self.config.default_skill_xp_per_level

        player = self._player
        if skill_id in player.learning_skills:
            progress = player.learning_skills[skill_id] + gained
            if progress < threshold:
                player.learning_skills[skill_id] = progress
                return False

            del player.learning_skills[skill_id]
            player.known_skills[skill_id] = SkillProgress(level=1)
            self.logger.info(f"Learned new skill: {definition.name}")
            self._publish(ProgressionEvent.SKILL_LEARNED, skill_id=skill_id, level=1)
            return True

        known = player.known_skills.get(skill_id)
        if known is None:
            self.logger.debug(f"XP for {skill_id} ignored: neither known nor being learned")
            return False

        known.xp += gained
        if known.xp >= threshold and known.level < definition.max_level:
            known.level += 1
            known.xp = 0
            self.logger.info(f"{definition.name} leveled up to {known.level}")
            self._publish(ProgressionEvent.SKILL_LEVEL_UP, skill_id=skill_id, level=known.level)
            return True
        return False

    def start_learning_skill(self, skill_id: str) -> bool:
        """Spend a skill point to start learning a new skill."""
        player = self._player
        if skill_id not in self.skills:
            self.logger.warning(f"Unknown skill: {skill_id!r}")
            return False
        if player.skill_points < 1:
            self.logger.warning("Not enough skill points")
            return False
        if skill_id in player.known_skills:
            self.logger.warning(f"Already know skill: {skill_id}")
            return False
        if skill_id in player.learning_skills:
            self.logger.warning(f"Already learning skill: {skill_id}")
            return False

        player.skill_points -= 1
        player.learning_skills[skill_id] = 0
        self.logger.info(f"Started learning {self.skills.get(skill_id).name}")
        return True

    def spend_skill_point(self, skill_id: str) -> bool:
        """Spend a skill point to raise a known skill by one level."""
        player = self._player
        definition = self.skills.get(skill_id)
        if definition is None:
            self.logger.warning(f"Unknown skill: {skill_id!r}")
            return False
        known = player.known_skills.get(skill_id)
        if player.skill_points < 1:
            self.logger.warning("Not enough skill points")
            return False
        if known is None:
            self.logger.warning(f"Don't know skill yet: {skill_id}")
            return False
        if known.level >= definition.max_level:
            self.logger.warning(f"{definition.name} already at max level")
            return False

        player.skill_points -= 1
        known.level += 1
        self.logger.info(f"Spent skill point on {definition.name}, now level {known.level}")
        self._publish(ProgressionEvent.SKILL_LEVEL_UP, skill_id=skill_id, level=known.level)
        return True

    def choose_profession(self, profession: Any, current_level: Optional[int] = None) -> bool:
        """
        Make the one-time profession choice.

        Args:
            profession: ProfessionId or its string id
            current_level: Level the choice is made at; defaults to the player's

        Returns:
            True if the choice was recorded. A second choice never is.
        """
        player = self._player
        if player.has_profession:
            self.logger.warning(
                f"Profession already chosen ({player.chosen_profession.value}); ignoring {profession!r}"
            )
            return False

        profession_id = resolve_profession_id(profession)
        if profession_id is None or profession_id not in self.catalog:
            self.logger.warning(f"Unknown profession: {profession!r}")
            return False

        level = player.level if current_level is None else current_level
        if isinstance(level, bool) or not isinstance(level, int):
            self.logger.warning(f"Invalid level for profession choice: {level!r}")
            return False
        if level < self.config.profession_choice_level:
            self.logger.warning(
                f"Profession choice requires level {self.config.profession_choice_level}, got {level}"
            )
            return False

        old_title = self.title
        player.profession = Chosen(profession=profession_id)

        self.logger.info(f"Profession chosen: {profession_id.value}")
        self._publish(ProgressionEvent.PROFESSION_CHOSEN, profession=profession_id, level=level)
        for ability in self.unlocked_abilities():
            self._publish(ProgressionEvent.ABILITY_UNLOCKED, ability=ability, profession=profession_id)
        self._publish_title_change(old_title)
        return True

    # Save data

    def get_save_data(self) -> dict:
        """Minimal state needed to resume: player progression and quests."""
        return {
            'player': self._player.to_save_data(),
            'quests': self.ledger.get_save_data(),
        }

    def load_save_data(self, data: Mapping[str, Any]) -> bool:
        """
        Restore saved state.

        Returns:
            False if the player data was unusable; the current state is kept
        """
        saved = data.get('player') if isinstance(data, Mapping) else None
        if not isinstance(saved, Mapping):
            self.logger.warning("Saved data has no player progression")
            return False

        try:
            player = load_component(saved)
        except ValidationError as e:
            self.logger.warning(f"Invalid saved player data: {e}")
            return False
        if not isinstance(player, PlayerProgression):
            self.logger.warning("Saved data has no player progression")
            return False

        quests = data.get('quests')
        self._player = player
        self.ledger.load_save_data(quests if isinstance(quests, Mapping) else {})
        return True

    # Internal

    def _on_level_up(self, old_level: int, old_title: str) -> None:
        player = self._player
        self.logger.info(f"Level up! {old_level} -> {player.level}")
        self._publish(
            ProgressionEvent.LEVEL_UP,
            level=player.level,
            previous_level=old_level,
            skill_points=player.skill_points,
        )

        choice_level = self.config.profession_choice_level
        if old_level < choice_level <= player.level and not player.has_profession:
            self._publish(
                ProgressionEvent.PROFESSION_CHOICE_AVAILABLE,
                level=player.level,
                recommendations=self.recommendations(),
            )

        profession = player.chosen_profession
        for ability in self.resolver.newly_unlocked(profession, old_level, player.level):
            self.logger.info(f"Ability unlocked: {ability.name}")
            self._publish(ProgressionEvent.ABILITY_UNLOCKED, ability=ability, profession=profession)

        self._publish_title_change(old_title)

    def _publish_title_change(self, old_title: str) -> None:
        title = self.title
        if title != old_title:
            self._publish(ProgressionEvent.TITLE_CHANGED, title=title, previous_title=old_title)

    def _publish(self, event_type: ProgressionEvent, **data: Any) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event_type, **data)

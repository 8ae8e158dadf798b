"""
Modifier resolution - one effective value per modifier key.

A profession's abilities unlock in ascending level order and may redefine
the same key. Resolution replaces, it never combines: the highest unlocked
ability that defines a key supplies its value. A level-25 "+100% XP"
supersedes a level-5 "+25% XP"; the two are not added.

Everything here is a pure projection of (profession, level) and is
recomputed on every call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from apothecary.progression.professions import (
    Ability,
    ModifierKey,
    ModifierKind,
    ModifierValue,
    ProfessionCatalog,
    ProfessionId,
    default_catalog,
)

logger = logging.getLogger(__name__)

# Substrings that mark a prescribed item as toxic
TOXIC_KEYWORDS = (
    'mercury', 'quicksilver', 'opium', 'laudanum', 'arsenic',
    'belladonna', 'hemlock', 'nightshade', 'aconite', 'antimony',
    'lead', 'vitriol', 'aqua fortis',
)

HERB_CATEGORY = 'herb'
BLACK_MARKET_CATEGORY = 'black_market'


def _is_level(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class ModifierSnapshot:
    """Read-only view of everything a (profession, level) pair grants."""
    profession: ProfessionId | None
    level: int
    abilities: tuple[Ability, ...] = ()
    values: Mapping[ModifierKey, ModifierValue] = field(default_factory=dict)

    def get(self, key: ModifierKey | str) -> ModifierValue | None:
        parsed = ModifierKey.parse(key)
        return self.values.get(parsed) if parsed else None

    def value_or_default(self, key: ModifierKey | str) -> Any:
        parsed = ModifierKey.parse(key)
        if parsed is None:
            return None
        return self.values.get(parsed, parsed.default)

    def __contains__(self, key: object) -> bool:
        return ModifierKey.parse(key) in self.values


class ModifierResolver:
    """
    Resolves ability modifiers for a profession at a level.

    Usage:
        resolver = ModifierResolver()
        resolver.effective_modifier('scholar', 30, 'xpMultiplier')  # 2.0
    """

    def __init__(self, catalog: ProfessionCatalog | None = None):
        self.catalog = catalog or default_catalog()

    def unlocked_abilities(self, profession: Any, level: int) -> list[Ability]:
        """Abilities with unlock level <= level, ascending. Empty without a profession."""
        found = self.catalog.get(profession)
        if found is None:
            return []
        if not _is_level(level):
            logger.warning(f"Invalid level for abilities: {level!r}")
            return []
        return sorted(
            (a for a in found.abilities if a.unlock_level <= level),
            key=lambda a: a.unlock_level,
        )

    def newly_unlocked(self, profession: Any, old_level: int, new_level: int) -> list[Ability]:
        """Abilities crossed when moving from old_level to new_level."""
        if not _is_level(old_level):
            logger.warning(f"Invalid previous level: {old_level!r}")
            return []
        return [
            a for a in self.unlocked_abilities(profession, new_level)
            if a.unlock_level > old_level
        ]

    def effective_modifier(self, profession: Any, level: int, key: ModifierKey | str) -> ModifierValue | None:
        """
        Value of `key` from the highest unlocked ability that defines it.

        Returns:
            The value, or None when nothing unlocked defines the key.
            None means "no bonus", never zero.
        """
        parsed = ModifierKey.parse(key)
        if parsed is None:
            logger.debug(f"Unknown modifier key: {key!r}")
            return None

        best: ModifierValue | None = None
        for ability in self.unlocked_abilities(profession, level):
            if ability.defines(parsed):
                best = ability.get(parsed)
        return best

    def value_or_default(self, profession: Any, level: int, key: ModifierKey | str) -> Any:
        """Effective value, or the key's neutral default (1.0 multipliers, 0, False, ())."""
        parsed = ModifierKey.parse(key)
        if parsed is None:
            return None
        value = self.effective_modifier(profession, level, parsed)
        return parsed.default if value is None else value

    def is_granted(self, profession: Any, level: int, flag: ModifierKey | str) -> bool:
        """Boolean flags: False or absent means not granted."""
        parsed = ModifierKey.parse(flag)
        if parsed is None or parsed.kind is not ModifierKind.FLAG:
            return False
        return self.effective_modifier(profession, level, parsed) is True

    def snapshot(self, profession: Any, level: int) -> ModifierSnapshot:
        abilities = self.unlocked_abilities(profession, level)
        values: dict[ModifierKey, ModifierValue] = {}
        for ability in abilities:
            values.update(ability.modifiers)
        return ModifierSnapshot(
            profession=self._known_id(profession),
            level=level,
            abilities=tuple(abilities),
            values=MappingProxyType(values),
        )

    # Gameplay queries that need context beyond the key

    def toxic_xp_bonus(self, profession: Any, level: int, item_name: str) -> float:
        """XP multiplier for prescribing `item_name`; 1.0 unless it is toxic."""
        name = item_name.lower() if isinstance(item_name, str) else ''
        if not any(keyword in name for keyword in TOXIC_KEYWORDS):
            return 1.0
        return self.value_or_default(profession, level, ModifierKey.TOXIC_XP_MULTIPLIER)

    def reputation_multiplier(self, profession: Any, level: int, delta: float) -> float:
        """Multiplier applied to a reputation change, by its direction."""
        if isinstance(delta, bool) or not isinstance(delta, (int, float)):
            logger.warning(f"Invalid reputation change: {delta!r}")
            return 1.0
        if delta > 0:
            return self.value_or_default(profession, level, ModifierKey.POSITIVE_REPUTATION_MULTIPLIER)
        if delta < 0:
            return self.value_or_default(profession, level, ModifierKey.NEGATIVE_REPUTATION_MULTIPLIER)
        return 1.0

    def market_discount(self, profession: Any, level: int, item_categories: Iterable[str] = ()) -> float:
        """Total discount (0-1) on an item with the given categories."""
        if isinstance(item_categories, str) or not isinstance(item_categories, Iterable):
            item_categories = ()
        categories = {c for c in item_categories if isinstance(c, str)}
        discount = self.value_or_default(profession, level, ModifierKey.MARKET_DISCOUNT)
        if HERB_CATEGORY in categories:
            discount += self.value_or_default(profession, level, ModifierKey.HERB_DISCOUNT)
        if BLACK_MARKET_CATEGORY in categories:
            discount += self.value_or_default(profession, level, ModifierKey.BLACK_MARKET_DISCOUNT)
        return min(1.0, discount)

    def black_market_categories(self, profession: Any, level: int) -> tuple[str, ...]:
        if not self.is_granted(profession, level, ModifierKey.UNLOCK_BLACK_MARKET):
            return ()
        return self.value_or_default(profession, level, ModifierKey.BLACK_MARKET_CATEGORIES)

    def _known_id(self, profession: Any) -> ProfessionId | None:
        found = self.catalog.get(profession)
        return found.id if found else None

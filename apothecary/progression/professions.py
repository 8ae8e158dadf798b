"""
Profession catalog - identities, titles and per-level ability tables.

Each profession unlocks a fixed ladder of abilities (levels 5/10/15/20/25
in the shipped data). An ability carries a bundle of named modifiers drawn
from the closed `ModifierKey` vocabulary. The tables are data, loaded from
`apothecary/data/database/professions/*.json`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Union

from apothecary.progression.data import default_database, load_database

logger = logging.getLogger(__name__)


class ProfessionId(str, Enum):
    """The six professions, in declaration order."""
    ALCHEMIST = "alchemist"
    HERBALIST = "herbalist"
    SURGEON = "surgeon"
    POISONER = "poisoner"
    SCHOLAR = "scholar"
    COURT_PHYSICIAN = "courtPhysician"


class ModifierKind(Enum):
    """Value type of a modifier key."""
    MULTIPLIER = auto()    # float > 0, 1.0 is neutral
    PROBABILITY = auto()   # float in [0, 1]: chances, discounts, thresholds
    FLAT = auto()          # integer bonus
    FLAG = auto()          # boolean grant
    CATEGORIES = auto()    # tuple of category names


class ModifierKey(str, Enum):
    """
    Documented modifier vocabulary.

    Values are the identifiers gameplay systems query with. The engine
    does not interpret them; mixing, foraging, surgery, market and
    reputation systems do.
    """
    # Alchemist
    INGREDIENT_RETENTION = "ingredientRetention"
    MIXING_TIME_MULTIPLIER = "mixingTimeMultiplier"
    DOUBLE_BATCH_CHANCE = "doubleBatchChance"
    PREVENT_SLUDGE = "preventSludge"
    # Herbalist
    FORAGING_SUCCESS_MULTIPLIER = "foragingSuccessMultiplier"
    MIN_FORAGE_QUANTITY = "minForageQuantity"
    HERB_DISCOUNT = "herbDiscount"
    RARE_DROP_THRESHOLD = "rareDropThreshold"
    # Surgeon
    SURGERY_SKILL_BONUS = "surgerySkillBonus"
    SURGERY_PAYMENT_MULTIPLIER = "surgeryPaymentMultiplier"
    COMPLICATION_PREVENTION_CHANCE = "complicationPreventionChance"
    SURGERY_TIME_MULTIPLIER = "surgeryTimeMultiplier"
    BLOODLETTING_DC_REDUCTION = "bloodlettingDCReduction"
    # Poisoner
    UNLOCK_BLACK_MARKET = "unlockBlackMarket"
    BLACK_MARKET_CATEGORIES = "blackMarketCategories"
    TOXIC_XP_MULTIPLIER = "toxicXPMultiplier"
    BLACK_MARKET_DISCOUNT = "blackMarketDiscount"
    NEGATIVE_REPUTATION_MULTIPLIER = "negativeReputationMultiplier"
    UNLOCK_RARE_CONTRABAND = "unlockRareContraband"
    # Scholar
    XP_MULTIPLIER = "xpMultiplier"
    SKILL_XP_MULTIPLIER = "skillXPMultiplier"
    # Court Physician
    POSITIVE_REPUTATION_MULTIPLIER = "positiveReputationMultiplier"
    PRESCRIPTION_PAYMENT_MULTIPLIER = "prescriptionPaymentMultiplier"
    MARKET_DISCOUNT = "marketDiscount"
    PASSIVE_INCOME_PER_DAY = "passiveIncomePerDay"

    @property
    def kind(self) -> ModifierKind:
        return _MODIFIER_SPECS[self][0]

    @property
    def default(self) -> Any:
        """Neutral value gameplay systems use when no ability grants the key."""
        return _MODIFIER_SPECS[self][1]

    @classmethod
    def parse(cls, value: Any) -> ModifierKey | None:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except (ValueError, TypeError):
            return None


_MODIFIER_SPECS: dict[ModifierKey, tuple[ModifierKind, Any]] = {
    ModifierKey.INGREDIENT_RETENTION: (ModifierKind.PROBABILITY, 0.0),
    ModifierKey.MIXING_TIME_MULTIPLIER: (ModifierKind.MULTIPLIER, 1.0),
    ModifierKey.DOUBLE_BATCH_CHANCE: (ModifierKind.PROBABILITY, 0.0),
    ModifierKey.PREVENT_SLUDGE: (ModifierKind.FLAG, False),
    ModifierKey.FORAGING_SUCCESS_MULTIPLIER: (ModifierKind.MULTIPLIER, 1.0),
    ModifierKey.MIN_FORAGE_QUANTITY: (ModifierKind.FLAT, 1),
    ModifierKey.HERB_DISCOUNT: (ModifierKind.PROBABILITY, 0.0),
    ModifierKey.RARE_DROP_THRESHOLD: (ModifierKind.PROBABILITY, 0.10),
    ModifierKey.SURGERY_SKILL_BONUS: (ModifierKind.FLAT, 0),
    ModifierKey.SURGERY_PAYMENT_MULTIPLIER: (ModifierKind.MULTIPLIER, 1.0),
    ModifierKey.COMPLICATION_PREVENTION_CHANCE: (ModifierKind.PROBABILITY, 0.0),
    ModifierKey.SURGERY_TIME_MULTIPLIER: (ModifierKind.MULTIPLIER, 1.0),
    ModifierKey.BLOODLETTING_DC_REDUCTION: (ModifierKind.FLAT, 0),
    ModifierKey.UNLOCK_BLACK_MARKET: (ModifierKind.FLAG, False),
    ModifierKey.BLACK_MARKET_CATEGORIES: (ModifierKind.CATEGORIES, ()),
    ModifierKey.TOXIC_XP_MULTIPLIER: (ModifierKind.MULTIPLIER, 1.0),
    ModifierKey.BLACK_MARKET_DISCOUNT: (ModifierKind.PROBABILITY, 0.0),
    ModifierKey.NEGATIVE_REPUTATION_MULTIPLIER: (ModifierKind.MULTIPLIER, 1.0),
    ModifierKey.UNLOCK_RARE_CONTRABAND: (ModifierKind.FLAG, False),
    ModifierKey.XP_MULTIPLIER: (ModifierKind.MULTIPLIER, 1.0),
    ModifierKey.SKILL_XP_MULTIPLIER: (ModifierKind.MULTIPLIER, 1.0),
    ModifierKey.POSITIVE_REPUTATION_MULTIPLIER: (ModifierKind.MULTIPLIER, 1.0),
    ModifierKey.PRESCRIPTION_PAYMENT_MULTIPLIER: (ModifierKind.MULTIPLIER, 1.0),
    ModifierKey.MARKET_DISCOUNT: (ModifierKind.PROBABILITY, 0.0),
    ModifierKey.PASSIVE_INCOME_PER_DAY: (ModifierKind.FLAT, 0),
}

ModifierValue = Union[float, int, bool, tuple[str, ...]]


def coerce_modifier_value(key: ModifierKey, raw: Any) -> ModifierValue | None:
    """
    Check a raw data value against the key's kind.

    Returns:
        The typed value, or None if it does not fit the kind
    """
    kind = key.kind
    is_number = isinstance(raw, (int, float)) and not isinstance(raw, bool)

    if kind is ModifierKind.MULTIPLIER:
        return float(raw) if is_number and raw > 0 else None
    if kind is ModifierKind.PROBABILITY:
        return float(raw) if is_number and 0.0 <= raw <= 1.0 else None
    if kind is ModifierKind.FLAT:
        return raw if isinstance(raw, int) and not isinstance(raw, bool) else None
    if kind is ModifierKind.FLAG:
        return raw if isinstance(raw, bool) else None
    if kind is ModifierKind.CATEGORIES:
        if isinstance(raw, (list, tuple)) and all(isinstance(c, str) for c in raw):
            return tuple(raw)
        return None
    return None


def resolve_profession_id(value: Any) -> ProfessionId | None:
    """
    Normalize anything that names a profession.

    Accepts a ProfessionId, its string value, or a chosen-profession
    variant (anything with a `profession` attribute). Everything else,
    including None and unknown ids, resolves to None.
    """
    if value is None:
        return None
    if isinstance(value, ProfessionId):
        return value
    if isinstance(value, str):
        try:
            return ProfessionId(value)
        except ValueError:
            return None
    nested = getattr(value, 'profession', None)
    if nested is not None and nested is not value:
        return resolve_profession_id(nested)
    return None


@dataclass(frozen=True)
class Ability:
    """A bonus bundle unlocked at one level of one profession."""
    profession: ProfessionId
    unlock_level: int
    name: str
    description: str = ""
    modifiers: Mapping[ModifierKey, ModifierValue] = field(default_factory=dict)

    def defines(self, key: ModifierKey) -> bool:
        return key in self.modifiers

    def get(self, key: ModifierKey) -> ModifierValue | None:
        return self.modifiers.get(key)


@dataclass(frozen=True)
class ProfessionTitles:
    base: str
    master: str
    legendary: str


@dataclass(frozen=True)
class Profession:
    """A profession's identity and ability ladder."""
    id: ProfessionId
    name: str
    description: str
    icon: str
    titles: ProfessionTitles
    abilities: tuple[Ability, ...] = ()

    @property
    def unlock_levels(self) -> tuple[int, ...]:
        return tuple(a.unlock_level for a in self.abilities)

    def ability_at(self, unlock_level: int) -> Ability | None:
        for ability in self.abilities:
            if ability.unlock_level == unlock_level:
                return ability
        return None


def _parse_ability(profession_id: ProfessionId, data: dict) -> Ability:
    modifiers: dict[ModifierKey, ModifierValue] = {}
    for raw_key, raw_value in data.get('modifiers', {}).items():
        key = ModifierKey.parse(raw_key)
        if key is None:
            logger.error(f"{profession_id.value}: unknown modifier key '{raw_key}', dropped")
            continue
        value = coerce_modifier_value(key, raw_value)
        if value is None:
            logger.error(
                f"{profession_id.value}: modifier '{raw_key}' expects {key.kind.name}, "
                f"got {raw_value!r}, dropped"
            )
            continue
        modifiers[key] = value

    return Ability(
        profession=profession_id,
        unlock_level=data['unlock_level'],
        name=data['name'],
        description=data.get('description', ''),
        modifiers=MappingProxyType(modifiers),
    )


def parse_profession(data: dict) -> Profession | None:
    """
    Build a Profession from a (schema-validated) data record.

    Returns:
        The profession, or None if the record breaks a catalog invariant
    """
    profession_id = resolve_profession_id(data.get('id'))
    if profession_id is None:
        logger.error(f"Unknown profession id '{data.get('id')}', skipped")
        return None

    abilities = [_parse_ability(profession_id, a) for a in data.get('abilities', [])]
    levels = [a.unlock_level for a in abilities]
    if any(later <= earlier for earlier, later in zip(levels, levels[1:])):
        logger.error(f"{profession_id.value}: unlock levels must be strictly increasing, got {levels}; skipped")
        return None

    titles = data['titles']
    return Profession(
        id=profession_id,
        name=data['name'],
        description=data.get('description', ''),
        icon=data.get('icon', ''),
        titles=ProfessionTitles(
            base=titles['base'],
            master=titles['master'],
            legendary=titles['legendary'],
        ),
        abilities=tuple(abilities),
    )


class ProfessionCatalog:
    """
    Read-only lookup of every loaded profession.

    Iteration follows `ProfessionId` declaration order regardless of the
    order records were loaded in.
    """

    UNKNOWN_NAME = "Unknown"
    UNKNOWN_DESCRIPTION = "Unknown profession."
    UNKNOWN_ICON = "🎓"

    def __init__(self, professions: Iterable[Profession]):
        by_id = {p.id: p for p in professions}
        self._professions: dict[ProfessionId, Profession] = {
            pid: by_id[pid] for pid in ProfessionId if pid in by_id
        }

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> ProfessionCatalog:
        parsed = (parse_profession(r) for r in records)
        return cls(p for p in parsed if p is not None)

    @classmethod
    def load(cls, data_path: Path | str | None = None) -> ProfessionCatalog:
        """Load the profession tables from a data folder."""
        return cls.from_records(load_database(data_path).all("professions"))

    def __iter__(self) -> Iterator[Profession]:
        return iter(self._professions.values())

    def __len__(self) -> int:
        return len(self._professions)

    def __contains__(self, profession: Any) -> bool:
        return resolve_profession_id(profession) in self._professions

    def ids(self) -> list[ProfessionId]:
        return list(self._professions)

    def get(self, profession: Any) -> Profession | None:
        profession_id = resolve_profession_id(profession)
        if profession_id is None:
            return None
        return self._professions.get(profession_id)

    def abilities(self, profession: Any) -> tuple[Ability, ...]:
        """Full ability ladder of a profession, for progression-tree display."""
        found = self.get(profession)
        return found.abilities if found else ()

    def name(self, profession: Any) -> str:
        found = self.get(profession)
        return found.name if found else self.UNKNOWN_NAME

    def description(self, profession: Any) -> str:
        found = self.get(profession)
        return found.description if found else self.UNKNOWN_DESCRIPTION

    def icon(self, profession: Any) -> str:
        found = self.get(profession)
        return found.icon if found else self.UNKNOWN_ICON


_default_catalog: ProfessionCatalog | None = None


def default_catalog() -> ProfessionCatalog:
    """The shipped profession tables, built once per process."""
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = ProfessionCatalog.from_records(default_database().all("professions"))
    return _default_catalog

"""
Progression module - levels, professions, abilities, quests.

Provides:
- XP bands and level projections
- Profession catalog and ability tables
- Modifier resolution for unlocked abilities
- Titles, affinity scoring and skill checks
- Quest ledger

The service lives in `apothecary.progression.service`; it depends on
`apothecary.components`, which in turn imports from this package.
"""

from apothecary.progression.professions import (
    Ability,
    ModifierKey,
    ModifierKind,
    Profession,
    ProfessionCatalog,
    ProfessionId,
    ProfessionTitles,
    default_catalog,
    resolve_profession_id,
)
from apothecary.progression.leveling import (
    XP_BANDS,
    level_progress,
    total_xp_for_level,
    xp_for_next_level,
)
from apothecary.progression.affinity import AffinityScore, AffinityScorer
from apothecary.progression.modifiers import ModifierResolver, ModifierSnapshot
from apothecary.progression.titles import TitleResolver
from apothecary.progression.skills import (
    SkillCatalog,
    SkillCategory,
    SkillDefinition,
    default_skill_catalog,
)
from apothecary.progression.skill_checks import (
    CheckDegree,
    Difficulty,
    OpposedCheckResult,
    SkillCheckResolver,
    SkillCheckResult,
)
from apothecary.progression.quests import (
    Quest,
    QuestEvent,
    QuestGiver,
    QuestLedger,
    QuestRewards,
    QuestStatus,
    QuestStep,
    validate_quest,
)

__all__ = [
    # Professions
    "Ability",
    "ModifierKey",
    "ModifierKind",
    "Profession",
    "ProfessionCatalog",
    "ProfessionId",
    "ProfessionTitles",
    "default_catalog",
    "resolve_profession_id",
    # Leveling
    "XP_BANDS",
    "level_progress",
    "total_xp_for_level",
    "xp_for_next_level",
    # Resolution
    "AffinityScore",
    "AffinityScorer",
    "ModifierResolver",
    "ModifierSnapshot",
    "TitleResolver",
    # Skills
    "SkillCatalog",
    "SkillCategory",
    "SkillDefinition",
    "default_skill_catalog",
    "CheckDegree",
    "Difficulty",
    "OpposedCheckResult",
    "SkillCheckResolver",
    "SkillCheckResult",
    # Quests
    "Quest",
    "QuestEvent",
    "QuestGiver",
    "QuestLedger",
    "QuestRewards",
    "QuestStatus",
    "QuestStep",
    "validate_quest",
]

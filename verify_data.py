import sys
import logging
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent))

from apothecary.config import DEFAULT_DATA_PATH
from apothecary.progression.data import load_database
from apothecary.progression.professions import ModifierKey, ProfessionCatalog, ProfessionId
from apothecary.progression.skills import SkillCatalog


def verify(data_path: Path = DEFAULT_DATA_PATH) -> list[str]:
    """
    Check the shipped tables beyond what the schemas can express.

    Returns:
        List of problems (empty if the data is sound)
    """
    problems = []
    db = load_database(data_path)
    catalog = ProfessionCatalog.from_records(db.all("professions"))
    skills = SkillCatalog.from_records(db.all("skills"))

    for profession_id in ProfessionId:
        profession = catalog.get(profession_id)
        if profession is None:
            problems.append(f"Missing profession: {profession_id.value}")
            continue
        if not profession.abilities:
            problems.append(f"{profession_id.value}: no abilities")
        for ability in profession.abilities:
            if not ability.modifiers:
                problems.append(f"{profession_id.value} L{ability.unlock_level}: no modifiers")

    used_keys = {key for p in catalog for a in p.abilities for key in a.modifiers}
    for key in ModifierKey:
        if key not in used_keys:
            problems.append(f"Modifier key never granted: {key.value}")

    if not skills.baseline_skills():
        problems.append("No baseline skills")
    for skill in skills:
        if skill.starting_level is not None and skill.starting_level > skill.max_level:
            problems.append(f"{skill.id}: starting level above max level")

    return problems


def main():
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger("DataVerification")

    data_path = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_DATA_PATH
    logger.info(f"Verifying data in {data_path}...")
    problems = verify(data_path)

    if problems:
        for problem in problems:
            logger.error(problem)
        logger.error(f"VERIFICATION FAILED: {len(problems)} problem(s)")
        sys.exit(1)

    logger.info("VERIFICATION SUCCESSFUL: All data loaded and validated.")


if __name__ == "__main__":
    main()

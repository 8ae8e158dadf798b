import pytest
from apothecary.components.progression import Chosen, Unchosen
from apothecary.config import ProgressionConfig
from apothecary.progression.professions import ProfessionId
from apothecary.progression.titles import TitleResolver

@pytest.fixture
def titles(catalog):
    return TitleResolver(catalog=catalog)

def test_pre_profession_titles(titles):
    assert titles.title(1, None, {}) == "Apprentice Apothecary"
    assert titles.title(2, None, {}) == "Junior Apothecary"
    assert titles.title(3, None, {}) == "Competent Apothecary"
    assert titles.title(4, None, {}) == "Independent Apothecary"

def test_surgeon_tiers(titles):
    assert titles.title(5, "surgeon", {}) == "Surgeon"
    assert titles.title(49, "surgeon", {}) == "Surgeon"
    assert titles.title(50, "surgeon", {}) == "Master Surgeon"
    assert titles.title(60, "surgeon", {}) == "Master Surgeon"
    assert titles.title(98, "surgeon", {}) == "Master Surgeon"
    assert titles.title(99, "surgeon", {}) == "Hand of Galen"

def test_accepts_variants(titles):
    assert titles.title(20, Chosen(profession=ProfessionId.SCHOLAR)) == "Scholar-Physician"
    assert titles.title(20, Unchosen()) == "Independent Apothecary"
    assert titles.title(20, ProfessionId.COURT_PHYSICIAN) == "Court Physician"

def test_eligible_but_unchosen_uses_fallback(titles):
    assert titles.title(5, None, {}) == "Independent Apothecary"
    assert titles.title(70, None) == "Independent Apothecary"

def test_unknown_profession_uses_fallback(titles):
    assert titles.title(30, "wizard") == "Independent Apothecary"

def test_profession_ignored_before_choice_level(titles):
    assert titles.title(3, "surgeon") == "Competent Apothecary"

def test_level_below_one_uses_lowest_title(titles):
    assert titles.title(0) == "Apprentice Apothecary"
    assert titles.title(-5) == "Apprentice Apothecary"

def test_invalid_level_uses_fallback(titles):
    assert titles.title("ten", "surgeon") == "Independent Apothecary"
    assert titles.title(None) == "Independent Apothecary"

def test_gaps_fall_back_to_nearest_lower(catalog):
    config = ProgressionConfig(
        profession_choice_level=8,
        pre_profession_titles={1: "Novice", 4: "Journeyman"},
    )
    titles = TitleResolver(config, catalog)

    assert titles.title(1) == "Novice"
    assert titles.title(3) == "Novice"
    assert titles.title(7) == "Journeyman"
    assert titles.title(8, "alchemist") == "Alchemist"

def test_known_skills_do_not_change_title(titles):
    skills = {"anatomy": {"level": 5}}
    assert titles.title(4, None, skills) == titles.title(4, None, {})

import pytest
from pathlib import Path
from apothecary.config import DEFAULT_DATA_PATH, DEFAULT_PRE_PROFESSION_TITLES, ProgressionConfig

def test_defaults():
    config = ProgressionConfig()
    assert config.starting_level == 4
    assert config.profession_choice_level == 5
    assert config.max_level == 99
    assert config.master_title_level == 50
    assert config.skill_bonus_per_level == 2
    assert config.die_sides == 20
    assert config.pre_profession_titles == DEFAULT_PRE_PROFESSION_TITLES
    assert config.fallback_title == "Independent Apothecary"
    assert config.data_path == DEFAULT_DATA_PATH

def test_titles_are_copied():
    titles = {1: "Novice"}
    config = ProgressionConfig(pre_profession_titles=titles)
    titles[2] = "Changed"
    assert config.pre_profession_titles == {1: "Novice"}

def test_from_dict_converts_title_keys():
    config = ProgressionConfig.from_dict({
        "max_level": 60,
        "master_title_level": 40,
        "pre_profession_titles": {"1": "Novice", "3": "Journeyman"},
        "data_path": "somewhere",
    })

    assert config.max_level == 60
    assert config.master_title_level == 40
    assert config.pre_profession_titles == {1: "Novice", 3: "Journeyman"}
    assert config.data_path == Path("somewhere")

def test_from_dict_ignores_unknown_keys(caplog):
    config = ProgressionConfig.from_dict({"die_sides": 12, "difficulty": "hard"})

    assert config.die_sides == 12
    assert not hasattr(config, "difficulty")
    assert "Ignoring unknown config key: difficulty" in caplog.text

@pytest.mark.parametrize("kwargs", [
    {"starting_level": 0},
    {"starting_level": 100},
    {"profession_choice_level": 1},
    {"profession_choice_level": 60, "master_title_level": 50},
    {"master_title_level": 120},
    {"die_sides": 1},
])
def test_nonsensical_values_raise(kwargs):
    with pytest.raises(ValueError):
        ProgressionConfig(**kwargs)

def test_from_dict_validates_values():
    with pytest.raises(ValueError):
        ProgressionConfig.from_dict({"max_level": 3})

import pytest
from apothecary.config import ProgressionConfig
from apothecary.progression.leveling import (
    XP_BANDS,
    band_for_level,
    level_progress,
    total_xp_for_level,
    xp_for_next_level,
)

@pytest.mark.parametrize("level, expected", [
    (1, 50), (4, 50),
    (5, 75), (9, 75),
    (10, 100), (19, 100),
    (20, 150), (39, 150),
    (40, 200), (59, 200),
    (60, 250), (79, 250),
    (80, 300), (98, 300), (99, 300),
])
def test_xp_bands(level, expected):
    assert xp_for_next_level(level) == expected

def test_band_boundaries_are_exclusive_upper():
    assert xp_for_next_level(4) == 50
    assert xp_for_next_level(9) == 75
    assert xp_for_next_level(19) == 100

def test_levels_below_one_are_clamped():
    assert xp_for_next_level(0) == 50
    assert xp_for_next_level(-7) == 50
    assert band_for_level(-7) is XP_BANDS[0]

def test_bands_ascending_and_open_ended():
    bounds = [b.below_level for b in XP_BANDS[:-1]]
    assert bounds == sorted(bounds)
    assert XP_BANDS[-1].below_level is None

def test_total_xp_from_choice_level():
    assert total_xp_for_level(5) == 0
    assert total_xp_for_level(3) == 0
    assert total_xp_for_level(6) == 75
    assert total_xp_for_level(10) == 5 * 75
    assert total_xp_for_level(11) == 5 * 75 + 100

def test_total_xp_custom_baseline():
    assert total_xp_for_level(5, baseline_level=1) == 4 * 50

def test_total_xp_follows_configured_choice_level():
    config = ProgressionConfig(profession_choice_level=6)
    assert total_xp_for_level(6, config=config) == 0
    assert total_xp_for_level(7, config=config) == 75

def test_level_progress():
    assert level_progress(4, 0) == 0.0
    assert level_progress(4, 25) == 0.5
    assert level_progress(5, 150) == 1.0
    assert level_progress(5, -3) == 0.0

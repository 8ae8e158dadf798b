"""
Leveling - XP requirements per level band.

Players start at level 4, choose a profession at level 5 and can reach
level 99. Early levels come fast; every band past that asks for more.
"""

from __future__ import annotations

from dataclasses import dataclass

from apothecary.config import ProgressionConfig


@dataclass(frozen=True)
class XPBand:
    """Levels below `below_level` (and at or above the previous band) need `xp` each."""
    below_level: int | None
    xp: int


# Ascending; the last band is open-ended
XP_BANDS: tuple[XPBand, ...] = (
    XPBand(below_level=5, xp=50),     # 1-4: very fast early progression
    XPBand(below_level=10, xp=75),    # 5-9
    XPBand(below_level=20, xp=100),   # 10-19
    XPBand(below_level=40, xp=150),   # 20-39
    XPBand(below_level=60, xp=200),   # 40-59
    XPBand(below_level=80, xp=250),   # 60-79
    XPBand(below_level=None, xp=300), # 80-99: true mastery
)


def band_for_level(level: int) -> XPBand:
    """Band that governs advancing from `level` (clamped to 1)."""
    level = max(1, level)
    for band in XP_BANDS:
        if band.below_level is None or level < band.below_level:
            return band
    return XP_BANDS[-1]


def xp_for_next_level(level: int) -> int:
    """XP required to advance from `level` to `level + 1`."""
    return band_for_level(level).xp


def total_xp_for_level(
    target_level: int,
    baseline_level: int | None = None,
    config: ProgressionConfig | None = None,
) -> int:
    """
    Total XP needed to climb from the baseline level to `target_level`.

    The baseline defaults to the configured profession choice level.
    Projection for UI only; 0 when the target is at or below the baseline.
    """
    if baseline_level is None:
        baseline_level = (config or ProgressionConfig()).profession_choice_level
    return sum(xp_for_next_level(level) for level in range(baseline_level, target_level))


def level_progress(level: int, xp: int) -> float:
    """Fraction (0-1) of the current level's requirement already earned."""
    needed = xp_for_next_level(level)
    if needed <= 0:
        return 1.0
    return max(0.0, min(1.0, xp / needed))

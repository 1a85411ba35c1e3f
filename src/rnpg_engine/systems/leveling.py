"""
Leveling and progression as pure functions.

XP curve, proportional stat allocation by job class, max-HP recalculation.

The two engine modes deliberately treat HP differently on level-up:
- INTERACTIVE fully heals the character.
- OFFLINE carries HP over as a proportion of the old max.
"""

import math
from dataclasses import dataclass, field

from ..state.schema import (
    Character,
    EngineMode,
    JobClass,
    StatType,
    JOB_CLASS_STAT_WEIGHTS,
    MAX_LEVEL,
)


STAT_POINTS_PER_LEVEL = 5


@dataclass
class LevelUpReport:
    """What a call to apply_level_ups changed."""
    levels_gained: int = 0
    new_level: int = 1
    stat_gains: dict[StatType, int] = field(default_factory=dict)
    hit_level_cap: bool = False

    @property
    def leveled_up(self) -> bool:
        return self.levels_gained > 0


def xp_for_level(level: int) -> int:
    """XP needed to advance past `level`: floor(100 * level^1.5)."""
    return math.floor(100 * level ** 1.5)


def stat_allocation(job_class: JobClass) -> dict[StatType, int]:
    """
    Points each stat gains per level.

    Floor division per stat; the remainder is dropped, not redistributed.
    """
    weights = JOB_CLASS_STAT_WEIGHTS.get(job_class, JOB_CLASS_STAT_WEIGHTS[JobClass.WARRIOR])
    total = sum(weights.values())
    return {
        stat: (STAT_POINTS_PER_LEVEL * weight) // total
        for stat, weight in weights.items()
    }


def apply_level_ups(
    character: Character,
    mode: EngineMode = EngineMode.OFFLINE,
) -> LevelUpReport:
    """
    Apply every level-up the character's experience has earned.

    Mutates the character in place.

    Args:
        character: Character to level
        mode: INTERACTIVE heals fully, OFFLINE keeps the HP proportion

    Returns:
        LevelUpReport with levels gained and per-stat gains
    """
    report = LevelUpReport(new_level=character.level)

    if character.level == MAX_LEVEL:
        character.experience = 0
        report.hit_level_cap = True
        return report

    allocation = stat_allocation(character.job_class)

    while character.experience >= xp_for_level(character.level):
        character.experience -= xp_for_level(character.level)
        character.level += 1
        report.levels_gained += 1

        for stat, points in allocation.items():
            if points:
                setattr(character, stat.value, character.get_stat(stat) + points)
                report.stat_gains[stat] = report.stat_gains.get(stat, 0) + points

        old_max = character.max_hp
        character.max_hp = character.calculate_max_hp()
        character.current_hp = _carry_hp(character.current_hp, old_max, character.max_hp, mode)

        if character.level >= MAX_LEVEL:
            # Excess experience is discarded at the cap
            character.experience = 0
            report.hit_level_cap = True
            break

    report.new_level = character.level
    return report


def _carry_hp(current: int, old_max: int, new_max: int, mode: EngineMode) -> int:
    if mode == EngineMode.INTERACTIVE or current >= old_max:
        return new_max
    return min(new_max, math.floor(new_max * current / old_max))

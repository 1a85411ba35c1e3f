"""Dice and randomness helpers."""

from .dice import (
    RollResult,
    critical_threshold,
    reroll_chance,
    roll_d21,
    roll_multiple,
    roll_with_advantage,
    roll_with_disadvantage,
    skill_check,
)
from .rng import RandomSource, make_rng

__all__ = [
    "RollResult",
    "critical_threshold",
    "reroll_chance",
    "roll_d21",
    "roll_multiple",
    "roll_with_advantage",
    "roll_with_disadvantage",
    "skill_check",
    "RandomSource",
    "make_rng",
]

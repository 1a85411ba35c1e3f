"""
Dice rolling tools for the engine.

Handles the d21 mechanic: a uniform roll over 1..21 where 21 is a universal
critical success and 1 a universal critical failure that luck may reroll.
"""

from dataclasses import dataclass, field

from .rng import RandomSource


D21_SIDES = 21
NATURAL_SUCCESS = 21
NATURAL_FAILURE = 1

# Luck at or above this widens the critical range downward
EXPANDED_CRIT_LUCK = 15
MIN_CRIT_THRESHOLD = 2
MAX_REROLL_CHANCE = 0.8


@dataclass
class RollResult:
    """Result of a d21 skill check."""
    roll: int  # The roll that counted
    stat: int
    difficulty: int
    luck: int
    succeeded: bool
    is_critical_success: bool = False
    is_critical_failure: bool = False
    was_rerolled: bool = False
    rolls: list[int] = field(default_factory=list)  # All dice rolled

    @property
    def margin(self) -> int:
        """Positive = over difficulty, negative = under."""
        return self.stat + self.roll - self.difficulty

    @property
    def narrative(self) -> str:
        """Narrative description of the result."""
        if self.is_critical_success:
            return "critical success"
        if self.is_critical_failure:
            return "critical failure"
        if self.succeeded:
            return "solid success" if self.margin >= 4 else "narrow success"
        return "clear failure" if self.margin <= -4 else "near miss"


def roll_d21(rng: RandomSource) -> int:
    """Roll a single d21."""
    return rng.randint(1, D21_SIDES)


def roll_multiple(rng: RandomSource, count: int) -> list[int]:
    """Roll `count` independent d21. Counts below 1 roll once."""
    return [roll_d21(rng) for _ in range(max(1, count))]


def roll_with_advantage(rng: RandomSource, count: int = 2) -> int:
    """Roll several d21, keep the highest."""
    return max(roll_multiple(rng, count))


def roll_with_disadvantage(rng: RandomSource, count: int = 2) -> int:
    """Roll several d21, keep the lowest."""
    return min(roll_multiple(rng, count))


def reroll_chance(luck: int) -> float:
    """
    Probability that a natural 1 is rerolled.

    Luck 1-5 gives nothing, then each band of five luck adds 20%:
    6-10 → 0.2, 11-15 → 0.4, 16-20 → 0.6, 21+ → 0.8 (cap).
    """
    if luck <= 5:
        return 0.0
    return min(MAX_REROLL_CHANCE, ((luck - 1) // 5) * 0.2)


def critical_threshold(luck: int) -> int:
    """Lowest roll that counts as a critical success for this luck."""
    if luck < EXPANDED_CRIT_LUCK:
        return NATURAL_SUCCESS
    return max(MIN_CRIT_THRESHOLD, NATURAL_SUCCESS - luck // 5)


def is_critical_roll(roll: int, luck: int) -> bool:
    """Whether a roll lands in the (luck-expanded) critical range."""
    return roll >= critical_threshold(luck)


def skill_check(
    rng: RandomSource,
    stat: int,
    difficulty: int,
    luck: int = 0,
) -> RollResult:
    """
    Roll a d21 skill check.

    Args:
        rng: Random source
        stat: The stat being tested
        difficulty: Target the check must meet
        luck: Character luck, drives reroll chance and expanded crits

    Returns:
        RollResult with all roll information
    """
    roll = roll_d21(rng)
    rolls = [roll]
    was_rerolled = False

    if roll == NATURAL_FAILURE:
        chance = reroll_chance(luck)
        if chance > 0 and rng.random() < chance:
            roll = roll_d21(rng)
            rolls.append(roll)
            was_rerolled = True

    if roll == NATURAL_SUCCESS:
        return RollResult(
            roll=roll, stat=stat, difficulty=difficulty, luck=luck,
            succeeded=True, is_critical_success=True,
            was_rerolled=was_rerolled, rolls=rolls,
        )

    # A second 1 after a reroll stands
    if roll == NATURAL_FAILURE:
        return RollResult(
            roll=roll, stat=stat, difficulty=difficulty, luck=luck,
            succeeded=False, is_critical_failure=True,
            was_rerolled=was_rerolled, rolls=rolls,
        )

    succeeded = difficulty - stat - roll <= 0
    return RollResult(
        roll=roll,
        stat=stat,
        difficulty=difficulty,
        luck=luck,
        succeeded=succeeded,
        is_critical_success=succeeded and is_critical_roll(roll, luck),
        was_rerolled=was_rerolled,
        rolls=rolls,
    )

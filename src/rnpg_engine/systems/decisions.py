"""
Decision engine for autonomous characters.

Pure function: decide(character, context, rng) -> Decision.
No state mutation, no side effects, no globals.

Two policies, one per EngineMode, kept intentionally distinct:

- INTERACTIVE (decide): strict priority cascade, first matching tier wins.
    SURVIVAL → CRITICAL_NEEDS → ACTIVE_QUEST → personality-driven idle
- OFFLINE (decide_offline): independent weighted rolls evaluated in a
    fixed order, falling through to exploring the current location.

Idle is the guaranteed fallback, so a decision is always produced.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..state.schema import (
    Character,
    PersonalityTraits,
    SAFE_TOWN,
)
from ..state.schemas.decision import Decision, DecisionContext, DecisionType
from ..tools.rng import RandomSource

if TYPE_CHECKING:
    from .bestiary import Bestiary


# ─── Thresholds ──────────────────────────────────────────────

SURVIVAL_HP = 0.30
CRITICAL_HP = 0.60
LOW_GOLD = 50
SHOP_GOLD_FLOOR = 100

# Offline tiers
OFFLINE_CRITICAL_HP = 0.15
OFFLINE_REST_HP = 0.70
OFFLINE_EXPLORE_FACTOR = 0.5
OFFLINE_NEW_LOCATION_CHANCE = 0.3
OFFLINE_UNDISCOVERED_BIAS = 0.7
OFFLINE_COMBAT_FACTOR = 0.7
OFFLINE_COWARDICE_FACTOR = 0.1
RETREAT_BASE = 0.2
RETREAT_COURAGE_FACTOR = 0.3

HUNTING_GROUND = "heartlands_meadowbrook_fields"
HUNTING_GROUND_MAX_LEVEL = 3
PLACEHOLDER_QUEST = "placeholder_quest"

# Minutes each decision takes in compressed game time (inclusive ranges)
DECISION_DURATIONS: dict[DecisionType, tuple[int, int]] = {
    DecisionType.REST: (30, 60),
    DecisionType.EXPLORE: (15, 30),
    DecisionType.COMBAT: (5, 15),
    DecisionType.FLEE: (2, 5),
    DecisionType.RETURN_TO_TOWN: (20, 40),
}
DEFAULT_DURATION = 10


# ─── Interactive policy ──────────────────────────────────────

def decide(
    character: Character,
    context: DecisionContext,
    rng: RandomSource,
) -> Decision:
    """
    Pick the next interactive action. First matching tier wins.

    Args:
        character: Supplies personality traits
        context: What the character can see and afford right now
        rng: Random source for the personality rolls

    Returns:
        A Decision; Idle when nothing else triggers
    """
    health = context.health_fraction

    if health < SURVIVAL_HP:
        return _survival(context)

    if health < CRITICAL_HP or context.gold < LOW_GOLD:
        return _critical_needs(context)

    if context.has_active_quest:
        return Decision.continue_quest(context.active_quest_id or PLACEHOLDER_QUEST)

    return _idle_behaviour(character.personality, context, rng)


def _heal_or_rest(context: DecisionContext) -> Decision | None:
    """Paid full heal when affordable, else free rest when allowed."""
    if context.has_inn_access and context.can_afford(context.inn_heal_cost):
        return Decision.heal_at_inn(context.current_location, context.inn_heal_cost)
    if context.can_rest:
        return Decision.rest(context.current_location)
    return None


def _survival(context: DecisionContext) -> Decision:
    heal = _heal_or_rest(context)
    if heal is not None:
        return heal
    percent = int(context.health_fraction * 100)
    return Decision.flee(f"Critically wounded ({percent}% HP)")


def _critical_needs(context: DecisionContext) -> Decision:
    if context.health_fraction < CRITICAL_HP:
        heal = _heal_or_rest(context)
        if heal is not None:
            return heal

    if context.gold < LOW_GOLD:
        hunting = hunting_location(context.level, context.current_location)
        if hunting != context.current_location:
            return Decision.explore(hunting)
        return Decision.combat(
            enemy_label=f"Level {context.level} Monster",
            difficulty=context.level,
        )

    return Decision.rest(context.current_location)


def _idle_behaviour(
    personality: PersonalityTraits,
    context: DecisionContext,
    rng: RandomSource,
) -> Decision:
    if context.nearby_locations and rng.random() < personality.curiosity:
        return Decision.explore(rng.choice(context.nearby_locations))

    if rng.random() < personality.aggression:
        return Decision.combat(
            enemy_label=f"Level {context.level} Monster",
            difficulty=context.level,
        )

    if rng.random() < personality.greed and context.gold > SHOP_GOLD_FLOOR:
        return Decision.shop(context.current_location, "equipment")

    return Decision.idle()


def hunting_location(level: int, current_location: str) -> str:
    """Where a character short on gold should go fight."""
    if level <= HUNTING_GROUND_MAX_LEVEL:
        return HUNTING_GROUND
    return current_location


# ─── Offline policy ──────────────────────────────────────────

def decide_offline(
    character: Character,
    rng: RandomSource,
    bestiary: Bestiary,
) -> Decision:
    """
    Pick the next offline action using independent weighted rolls.

    Order: survival, exploration, combat, rest, explore current location.
    """
    health = character.health_fraction
    personality = character.personality

    if health < SURVIVAL_HP:
        if health < OFFLINE_CRITICAL_HP or personality.courage <= 0.0:
            return Decision.return_to_town(SAFE_TOWN, "Retreating to safety")
        return Decision.rest(character.current_location, "Recovering from wounds")

    if rng.random() < personality.curiosity * OFFLINE_EXPLORE_FACTOR:
        if rng.random() < OFFLINE_NEW_LOCATION_CHANCE:
            target = pick_exploration_target(character, rng, bestiary)
            return Decision.explore(target)

    combat_chance = (
        personality.aggression * OFFLINE_COMBAT_FACTOR
        + (1 - personality.courage) * OFFLINE_COWARDICE_FACTOR
    )
    if rng.random() < combat_chance:
        enemy = bestiary.enemy_for_level(character.level, character.current_location, rng)
        if should_retreat(character):
            return Decision.flee(f"Avoided {enemy.name}", location=character.current_location)
        return Decision.combat(enemy=enemy)

    if health < OFFLINE_REST_HP:
        return Decision.rest(character.current_location)

    return Decision.explore(character.current_location)


def pick_exploration_target(character: Character, rng: RandomSource, bestiary: Bestiary) -> str:
    """Mostly somewhere new, otherwise somewhere already known."""
    region = bestiary.region_for_location(character.current_location)
    undiscovered = [
        loc for loc in bestiary.locations(region)
        if loc not in character.discovered_locations
    ]
    if undiscovered and rng.random() < OFFLINE_UNDISCOVERED_BIAS:
        return rng.choice(undiscovered)
    if character.discovered_locations:
        return rng.choice(character.discovered_locations)
    return character.current_location


def should_retreat(character: Character) -> bool:
    """Braver characters stay in a fight at lower health."""
    threshold = RETREAT_BASE + character.personality.courage * RETREAT_COURAGE_FACTOR
    return character.health_fraction < threshold


# ─── Helpers ─────────────────────────────────────────────────

def decision_duration(decision_type: DecisionType, rng: RandomSource) -> int:
    """Game minutes a decision takes."""
    bounds = DECISION_DURATIONS.get(decision_type)
    if bounds is None:
        return DEFAULT_DURATION
    return rng.randint(*bounds)


def evaluate_decision_fit(decision: Decision, personality: PersonalityTraits) -> float:
    """How well a decision suits a personality, in [0, 1]."""
    p = personality
    scorers = {
        DecisionType.COMBAT: lambda: p.aggression,
        DecisionType.EXPLORE: lambda: p.curiosity,
        DecisionType.FLEE: lambda: 1 - p.courage,
        DecisionType.RETURN_TO_TOWN: lambda: 1 - p.courage,
        DecisionType.REST: lambda: 1 - p.impulsive,
        DecisionType.SHOP: lambda: p.greed,
        DecisionType.ACCEPT_QUEST: lambda: p.curiosity * 0.5 + (1 - p.impulsive) * 0.5,
        DecisionType.HEAL_AT_INN: lambda: (1 - p.greed) * 0.3 + (1 - p.impulsive) * 0.7,
        DecisionType.CONTINUE_QUEST: lambda: 1 - p.impulsive,
        DecisionType.IDLE: lambda: 1 - p.curiosity,
    }
    return scorers[decision.decision_type]()

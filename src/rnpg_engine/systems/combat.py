"""
Combat resolution for autonomous characters.

Two algorithms share the d21 resolver and one power formula:

- Interactive: resolve_attack() / resolve_encounter(), a turn-based
  exchange of attack rolls, dodge rolls and damage.
- Batch: resolve_batch_combat() (score-banded WIN/FLEE/DEATH) and
  resolve_power_combat() (win probability, used by the offline simulator),
  one-shot outcomes with no per-round simulation.

Every function is pure over its inputs and the injected random source.
None of them mutate the character or enemy; callers apply the results.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

from ..state.schema import Character, Enemy, Item, ItemRarity
from ..tools.dice import NATURAL_FAILURE, NATURAL_SUCCESS, roll_d21, skill_check
from ..tools.rng import RandomSource


# ─── Tuning ───────────────────────────────────────────────────

ATTACK_DIFFICULTY_BASE = 10
DODGE_DIFFICULTY_BASE = 12
DAMAGE_JITTER = (0.8, 1.2)
GOLD_JITTER = (0.8, 1.5)
MAX_COMBAT_ROUNDS = 50

WIN_THRESHOLD = 15
FLEE_THRESHOLD = 8
NATURAL_WIN_BONUS = 1.5

VICTORY_HP_LOSS_RATIO = 0.3
VICTORY_HP_JITTER = 10
DEFEAT_HP_LOSS_RATIO = 0.5
DEFEAT_HP_JITTER = 15
DEFEAT_XP_SHARE = 0.1

BASE_DROP_CHANCE = 0.1
DROP_CHANCE_PER_LUCK = 0.01
ITEM_TYPES = ("weapon", "armor", "accessory", "consumable")


# ─── Results ──────────────────────────────────────────────────

class CombatOutcome(str, Enum):
    WIN = "win"
    FLEE = "flee"
    DEATH = "death"


@dataclass
class Combatant:
    """Stat block view shared by characters and enemies."""
    name: str
    strength: int
    intelligence: int
    agility: int
    luck: int
    vitality: int

    @classmethod
    def of(cls, fighter: Character | Enemy) -> "Combatant":
        return cls(
            name=fighter.name,
            strength=fighter.strength,
            intelligence=fighter.intelligence,
            agility=fighter.agility,
            luck=fighter.luck,
            vitality=fighter.vitality,
        )


@dataclass
class CombatRewards:
    experience: int = 0
    gold: int = 0
    items: list[Item] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.experience or self.gold or self.items)


@dataclass
class AttackResult:
    """One attack from one combatant against another."""
    hit: bool
    damage: int
    attack_roll: int
    dodge_roll: int | None
    is_critical_hit: bool
    is_critical_miss: bool
    defender_dodged: bool
    damage_reduction: int
    description: str


@dataclass
class CombatRound:
    round_number: int
    character_attack: AttackResult
    enemy_attack: AttackResult | None  # None when the enemy fell first


@dataclass
class EncounterResult:
    """Full turn-based fight."""
    victory: bool
    character_final_hp: int
    enemy_final_hp: int
    rounds: list[CombatRound]
    combat_log: list[str]
    rewards: CombatRewards | None
    round_cap_reached: bool = False  # Stalemate guard fired

    @property
    def total_rounds(self) -> int:
        return len(self.rounds)


@dataclass
class BatchCombatResult:
    """Score-banded one-shot fight."""
    outcome: CombatOutcome
    roll: int
    combat_score: float
    character_power: float
    enemy_power: float
    rewards: CombatRewards | None
    gold_lost: int
    description: str

    @property
    def is_natural_win(self) -> bool:
        return self.roll == NATURAL_SUCCESS


@dataclass
class PowerCombatResult:
    """Win-probability one-shot fight."""
    victory: bool
    win_probability: float
    hp_lost: int
    xp_gained: int
    gold_gained: int
    items_found: list[Item]
    description: str


# ─── Shared formulas ─────────────────────────────────────────

def calculate_power(fighter: Character | Enemy) -> float:
    """Average of the four combat stats plus level × 2."""
    average = (fighter.strength + fighter.intelligence + fighter.agility + fighter.vitality) / 4
    return average + fighter.level * 2


def attack_difficulty(defender_level: int, defender_agility: int) -> int:
    return ATTACK_DIFFICULTY_BASE + defender_level // 2 + defender_agility // 3


def dodge_difficulty(attacker_level: int, attacker_agility: int) -> int:
    return DODGE_DIFFICULTY_BASE + attacker_level // 2 + attacker_agility // 2


def experience_multiplier(level_difference: int) -> float:
    """Bonus for fighting up, penalty for fighting down (enemy − character)."""
    if level_difference >= 3:
        return 1.5
    if level_difference >= 1:
        return 1.2
    if level_difference <= -3:
        return 0.5
    if level_difference <= -1:
        return 0.8
    return 1.0


def experience_reward(enemy_level: int, character_level: int) -> int:
    return int(enemy_level * 10 * experience_multiplier(enemy_level - character_level))


def gold_reward(enemy_level: int, rng: RandomSource) -> int:
    return int(enemy_level * 5 * rng.uniform(*GOLD_JITTER))


def roll_item_drop(rng: RandomSource, luck: int, level: int) -> Item | None:
    """Luck-scaled drop roll: 10% base plus 1% per luck point."""
    if rng.random() >= BASE_DROP_CHANCE + luck * DROP_CHANCE_PER_LUCK:
        return None
    return generate_item(rng, level)


def generate_item(rng: RandomSource, level: int) -> Item:
    item_type = rng.choice(ITEM_TYPES)
    rarity_roll = rng.random()
    if rarity_roll > 0.95:
        rarity = ItemRarity.LEGENDARY
    elif rarity_roll > 0.8:
        rarity = ItemRarity.RARE
    elif rarity_roll > 0.5:
        rarity = ItemRarity.UNCOMMON
    else:
        rarity = ItemRarity.COMMON
    return Item(
        name=f"{rarity.value.title()} {item_type.title()} Lv.{level}",
        item_type=item_type,
        rarity=rarity,
        level=max(1, level),
    )


# ─── Interactive mode ────────────────────────────────────────

def base_damage(attacker: Combatant, attacker_level: int, rng: RandomSource) -> int:
    """Stronger of physical and magical damage, with ±20% jitter."""
    physical = attacker.strength * 2 + attacker_level // 2
    magical = attacker.intelligence * 2 + attacker_level // 2
    return max(1, int(max(physical, magical) * rng.uniform(*DAMAGE_JITTER)))


def resolve_attack(
    attacker: Combatant,
    defender: Combatant,
    rng: RandomSource,
    attacker_level: int = 1,
    defender_level: int = 1,
) -> AttackResult:
    """
    Resolve a single attack.

    Attack roll against the defender's level and agility, then a dodge roll
    against the attacker's. A confirmed hit always deals at least 1 damage.
    """
    attack = skill_check(
        rng,
        stat=attacker.agility,
        difficulty=attack_difficulty(defender_level, defender.agility),
        luck=attacker.luck,
    )

    if not attack.succeeded:
        return AttackResult(
            hit=False,
            damage=0,
            attack_roll=attack.roll,
            dodge_roll=None,
            is_critical_hit=False,
            is_critical_miss=attack.is_critical_failure,
            defender_dodged=False,
            damage_reduction=0,
            description=(
                f"{attacker.name} fumbles the attack!" if attack.is_critical_failure
                else f"{attacker.name} misses {defender.name}."
            ),
        )

    dodge = skill_check(
        rng,
        stat=defender.agility,
        difficulty=dodge_difficulty(attacker_level, attacker.agility),
        luck=defender.luck,
    )

    if dodge.succeeded:
        return AttackResult(
            hit=False,
            damage=0,
            attack_roll=attack.roll,
            dodge_roll=dodge.roll,
            is_critical_hit=attack.is_critical_success,
            is_critical_miss=False,
            defender_dodged=True,
            damage_reduction=0,
            description=f"{defender.name} dodges {attacker.name}'s attack.",
        )

    damage = base_damage(attacker, attacker_level, rng)
    if attack.is_critical_success:
        damage *= 2
    reduction = defender.vitality // 2
    final_damage = max(1, damage - reduction)

    crit = "Critical hit! " if attack.is_critical_success else ""
    return AttackResult(
        hit=True,
        damage=final_damage,
        attack_roll=attack.roll,
        dodge_roll=dodge.roll,
        is_critical_hit=attack.is_critical_success,
        is_critical_miss=False,
        defender_dodged=False,
        damage_reduction=reduction,
        description=f"{crit}{attacker.name} hits {defender.name} for {final_damage} damage.",
    )


def resolve_encounter(
    character: Character,
    enemy: Enemy,
    rng: RandomSource,
    max_rounds: int = MAX_COMBAT_ROUNDS,
) -> EncounterResult:
    """
    Fight until one side drops or the round cap is reached.

    The character strikes first every round. Victory requires the enemy
    at 0 HP with the character still standing; hitting the cap is a
    stalemate, reported through round_cap_reached.
    """
    hero = Combatant.of(character)
    foe = Combatant.of(enemy)
    character_hp = character.current_hp
    enemy_hp = enemy.hp
    rounds: list[CombatRound] = []
    log: list[str] = [f"{hero.name} engages {foe.name} (Lv.{enemy.level})."]

    while character_hp > 0 and enemy_hp > 0 and len(rounds) < max_rounds:
        round_number = len(rounds) + 1

        strike = resolve_attack(hero, foe, rng, character.level, enemy.level)
        enemy_hp = max(0, enemy_hp - strike.damage)
        log.append(f"Round {round_number}: {strike.description}")

        counter = None
        if enemy_hp > 0:
            counter = resolve_attack(foe, hero, rng, enemy.level, character.level)
            character_hp = max(0, character_hp - counter.damage)
            log.append(f"Round {round_number}: {counter.description}")

        rounds.append(CombatRound(round_number, strike, counter))

    victory = enemy_hp <= 0 and character_hp > 0
    cap_reached = character_hp > 0 and enemy_hp > 0

    rewards = None
    if victory:
        rewards = CombatRewards(
            experience=experience_reward(enemy.level, character.level),
            gold=gold_reward(enemy.level, rng),
        )
        log.append(f"{foe.name} is defeated! +{rewards.experience} XP, +{rewards.gold} gold.")
    elif cap_reached:
        log.append(f"The fight with {foe.name} drags on and both sides withdraw.")
    else:
        log.append(f"{hero.name} falls to {foe.name}.")

    return EncounterResult(
        victory=victory,
        character_final_hp=character_hp,
        enemy_final_hp=enemy_hp,
        rounds=rounds,
        combat_log=log,
        rewards=rewards,
        round_cap_reached=cap_reached,
    )


# ─── Batch mode ──────────────────────────────────────────────

def resolve_batch_combat(
    character: Character,
    enemy: Enemy,
    rng: RandomSource,
) -> BatchCombatResult:
    """
    Score-banded one-shot combat.

    combat_score = d21 + (character power − enemy power)
    - natural 21: WIN, rewards ×1.5
    - natural 1: DEATH, half the gold lost
    - score ≥ 15: WIN
    - 8 ≤ score < 15: FLEE, nothing gained or lost
    - score < 8: DEATH, half the gold lost
    """
    roll = roll_d21(rng)
    character_power = calculate_power(character)
    enemy_power = calculate_power(enemy)
    score = roll + (character_power - enemy_power)

    if roll == NATURAL_SUCCESS or (roll != NATURAL_FAILURE and score >= WIN_THRESHOLD):
        outcome = CombatOutcome.WIN
    elif roll != NATURAL_FAILURE and score >= FLEE_THRESHOLD:
        outcome = CombatOutcome.FLEE
    else:
        outcome = CombatOutcome.DEATH

    rewards = None
    gold_lost = 0
    if outcome == CombatOutcome.WIN:
        xp = experience_reward(enemy.level, character.level)
        gold = gold_reward(enemy.level, rng)
        if roll == NATURAL_SUCCESS:
            xp = int(xp * NATURAL_WIN_BONUS)
            gold = int(gold * NATURAL_WIN_BONUS)
        drop = roll_item_drop(rng, character.luck, enemy.level)
        rewards = CombatRewards(experience=xp, gold=gold, items=[drop] if drop else [])
        description = (
            f"Critical victory! {character.name} crushes the {enemy.name}."
            if roll == NATURAL_SUCCESS
            else f"{character.name} defeats the {enemy.name}."
        )
    elif outcome == CombatOutcome.FLEE:
        description = f"{character.name} escapes from the {enemy.name}."
    else:
        gold_lost = character.gold // 2
        description = (
            f"A disastrous stumble! {character.name} is slain by the {enemy.name}."
            if roll == NATURAL_FAILURE
            else f"{character.name} is slain by the {enemy.name}."
        )

    return BatchCombatResult(
        outcome=outcome,
        roll=roll,
        combat_score=score,
        character_power=character_power,
        enemy_power=enemy_power,
        rewards=rewards,
        gold_lost=gold_lost,
        description=description,
    )


def resolve_power_combat(
    character: Character,
    enemy: Enemy,
    rng: RandomSource,
) -> PowerCombatResult:
    """
    Win-probability one-shot combat.

    P(win) = character power / (character power + enemy power). A win costs
    HP proportional to the power ratio but never kills. A loss costs more
    and may kill; the caller handles death.
    """
    character_power = calculate_power(character)
    enemy_power = calculate_power(enemy)
    total = character_power + enemy_power
    win_probability = character_power / total if total > 0 else 0.5
    ratio = enemy_power / character_power if character_power > 0 else 1.0

    if rng.random() < win_probability:
        hp_lost = math.floor(
            character.max_hp * ratio * VICTORY_HP_LOSS_RATIO + rng.random() * VICTORY_HP_JITTER
        )
        hp_lost = max(0, min(hp_lost, character.current_hp - 1))
        drop = roll_item_drop(rng, character.luck, enemy.level)
        items = [drop] if drop else []
        loot = f" Found {items[0].name}!" if items else ""
        return PowerCombatResult(
            victory=True,
            win_probability=win_probability,
            hp_lost=hp_lost,
            xp_gained=enemy.xp_reward,
            gold_gained=enemy.gold_reward,
            items_found=items,
            description=(
                f"Defeated {enemy.name} (Lv.{enemy.level}), losing {hp_lost} HP.{loot}"
            ),
        )

    hp_lost = math.floor(
        character.max_hp * ratio * DEFEAT_HP_LOSS_RATIO + rng.random() * DEFEAT_HP_JITTER
    )
    return PowerCombatResult(
        victory=False,
        win_probability=win_probability,
        hp_lost=hp_lost,
        xp_gained=math.floor(enemy.xp_reward * DEFEAT_XP_SHARE),
        gold_gained=0,
        items_found=[],
        description=f"Lost to {enemy.name} (Lv.{enemy.level}), taking {hp_lost} damage.",
    )

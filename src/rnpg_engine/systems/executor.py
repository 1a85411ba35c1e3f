"""
Interactive decision executor.

execute(character, decision) -> DecisionOutcome

Works on a deep copy of the character, so the caller's snapshot is never
touched. Each decision type has a dedicated handler that mutates the copy
and returns one Activity. Level-ups earned along the way are applied in
INTERACTIVE mode (full heal) and logged as major events.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from ..config import EngineConfig, resolve_config
from ..state.schema import (
    Activity,
    ActivityRewards,
    ActivityType,
    Character,
    Enemy,
    EnemyTier,
    EngineMode,
)
from ..state.schemas.decision import Decision, DecisionContext, DecisionType
from ..state.store import ActivitySink
from ..tools.rng import RandomSource
from .bestiary import Bestiary
from .combat import CombatOutcome, EncounterResult, resolve_batch_combat, resolve_encounter
from .decisions import decide
from .leveling import LevelUpReport, apply_level_ups


logger = logging.getLogger(__name__)


REST_HEAL_FRACTION = 0.3
ENCOUNTER_LEVEL_SPREAD = 2  # Enemies at most this many levels below the character

# Exploration: chance of a loot roll instead of a plain visit, then loot tiers
EXPLORE_LOOT_CHANCE = 0.3
LOOT_TIERS: list[tuple[float, str, tuple[int, int], int]] = [
    # (roll below, label, gold range, xp)
    (0.05, "excellent", (50, 100), 50),
    (0.20, "good", (20, 40), 25),
    (0.60, "poor", (5, 15), 10),
]
NOTHING_FOUND_XP = 5


@dataclass
class DecisionOutcome:
    """Result of executing one decision."""
    character: Character
    decision: Decision
    activities: list[Activity] = field(default_factory=list)
    level_up: LevelUpReport | None = None


def level_up_activity(
    character: Character,
    report: LevelUpReport,
    timestamp: datetime,
) -> Activity:
    """Major-event record for one or more levels gained."""
    summary = f"Reached level {report.new_level}"
    if report.levels_gained > 1:
        summary += f" (+{report.levels_gained} levels)"
    return Activity(
        character_id=character.id,
        timestamp=timestamp,
        activity_type=ActivityType.LEVEL_UP,
        description=f"{character.name} {summary[0].lower()}{summary[1:]}!",
        metadata={
            "new_level": report.new_level,
            "levels_gained": report.levels_gained,
            "stat_gains": {stat.value: gain for stat, gain in report.stat_gains.items()},
        },
        is_major_event=True,
    )


class DecisionExecutor:
    """
    Applies interactive decisions to a character.

    Stateless apart from its collaborators: the random source, the
    bestiary, and the engine config.
    """

    def __init__(
        self,
        rng: RandomSource,
        bestiary: Bestiary | None = None,
        config: EngineConfig | None = None,
    ):
        self.rng = rng
        self.bestiary = bestiary or Bestiary()
        self.config = resolve_config(config)

    @property
    def safe_location(self) -> str:
        return self.config["safe_location"]

    def context_for(self, character: Character, **overrides) -> DecisionContext:
        """Decision context for a character, priced with the configured inn cost."""
        overrides.setdefault("inn_heal_cost", self.config["inn_heal_cost"])
        return DecisionContext.from_character(character, **overrides)

    def encounter(self, character: Character, enemy: Enemy) -> EncounterResult:
        """Turn-based fight under the configured round cap. Does not touch the character."""
        return resolve_encounter(character, enemy, self.rng, max_rounds=self.config["max_combat_rounds"])

    def execute(
        self,
        character: Character,
        decision: Decision,
        now: datetime | None = None,
    ) -> DecisionOutcome:
        """
        Execute a decision against a copy of the character.

        Routes to type-specific handlers based on decision_type.
        """
        handlers: dict[DecisionType, Callable[[Character, Decision, datetime], Activity]] = {
            DecisionType.COMBAT: self._execute_combat,
            DecisionType.EXPLORE: self._execute_explore,
            DecisionType.REST: self._execute_rest,
            DecisionType.HEAL_AT_INN: self._execute_heal_at_inn,
            DecisionType.FLEE: self._execute_flee,
            DecisionType.RETURN_TO_TOWN: self._execute_return_to_town,
            DecisionType.ACCEPT_QUEST: self._execute_quest,
            DecisionType.CONTINUE_QUEST: self._execute_quest,
            DecisionType.SHOP: self._execute_shop,
            DecisionType.IDLE: self._execute_idle,
        }

        timestamp = now or datetime.now()
        working = character.model_copy(deep=True)
        activity = handlers[decision.decision_type](working, decision, timestamp)
        outcome = DecisionOutcome(character=working, decision=decision, activities=[activity])

        report = apply_level_ups(working, EngineMode.INTERACTIVE)
        if report.leveled_up:
            outcome.level_up = report
            outcome.activities.append(level_up_activity(working, report, timestamp))
            logger.info(f"{working.name} reached level {report.new_level}")

        return outcome

    def _activity(
        self,
        character: Character,
        timestamp: datetime,
        activity_type: ActivityType,
        description: str,
        rewards: ActivityRewards | None = None,
        is_major_event: bool = False,
        **metadata,
    ) -> Activity:
        return Activity(
            character_id=character.id,
            timestamp=timestamp,
            activity_type=activity_type,
            description=description,
            rewards=rewards,
            metadata=metadata,
            is_major_event=is_major_event,
        )

    # ─── Combat ───────────────────────────────────────────────────

    def _execute_combat(self, character: Character, decision: Decision, timestamp: datetime) -> Activity:
        enemy = decision.enemy
        if enemy is None:
            level = max(decision.difficulty or character.level, character.level - ENCOUNTER_LEVEL_SPREAD, 1)
            enemy = self.bestiary.enemy_for_level(level, character.current_location, self.rng)

        result = resolve_batch_combat(character, enemy, self.rng)

        rewards = None
        if result.outcome == CombatOutcome.WIN and result.rewards:
            character.experience += result.rewards.experience
            character.gold += result.rewards.gold
            character.inventory.extend(result.rewards.items)
            rewards = ActivityRewards(
                xp=result.rewards.experience,
                gold=result.rewards.gold,
                items=result.rewards.items,
            )
        elif result.outcome == CombatOutcome.DEATH:
            character.gold = max(0, character.gold - result.gold_lost)
            character.current_hp = character.max_hp // 2
            character.current_location = self.safe_location

        return self._activity(
            character,
            timestamp,
            ActivityType.COMBAT,
            result.description,
            rewards=rewards,
            is_major_event=(
                result.outcome == CombatOutcome.DEATH
                or result.is_natural_win
                or enemy.tier != EnemyTier.NORMAL
            ),
            enemy=enemy.name,
            enemy_level=enemy.level,
            outcome=result.outcome.value,
            roll=result.roll,
            combat_score=result.combat_score,
            gold_lost=result.gold_lost,
        )

    # ─── Exploration ──────────────────────────────────────────────

    def _execute_explore(self, character: Character, decision: Decision, timestamp: datetime) -> Activity:
        target = decision.location or character.current_location
        is_new = character.discover(target)
        character.current_location = target

        if self.rng.random() >= EXPLORE_LOOT_CHANCE:
            verb = "Discovered" if is_new else "Explored"
            return self._activity(
                character, timestamp, ActivityType.EXPLORATION,
                f"{verb} {target}.",
                is_major_event=is_new,
                location=target,
                new_location=is_new,
            )

        loot_roll = self.rng.random()
        for threshold, label, gold_range, xp in LOOT_TIERS:
            if loot_roll < threshold:
                gold = self.rng.randint(*gold_range)
                character.gold += gold
                character.experience += xp
                return self._activity(
                    character, timestamp, ActivityType.EXPLORATION,
                    f"Searched {target} and found {gold} gold ({label} find).",
                    rewards=ActivityRewards(xp=xp, gold=gold),
                    is_major_event=is_new or label == "excellent",
                    location=target,
                    new_location=is_new,
                    loot_tier=label,
                )

        character.experience += NOTHING_FOUND_XP
        return self._activity(
            character, timestamp, ActivityType.EXPLORATION,
            f"Searched {target} but found nothing of value.",
            rewards=ActivityRewards(xp=NOTHING_FOUND_XP),
            is_major_event=is_new,
            location=target,
            new_location=is_new,
            loot_tier="nothing",
        )

    # ─── Recovery ─────────────────────────────────────────────────

    def _execute_rest(self, character: Character, decision: Decision, timestamp: datetime) -> Activity:
        healed = min(int(character.max_hp * REST_HEAL_FRACTION), character.max_hp - character.current_hp)
        character.current_hp += healed
        return self._activity(
            character, timestamp, ActivityType.REST,
            f"Rested and recovered {healed} HP.",
            healed=healed,
        )

    def _execute_heal_at_inn(self, character: Character, decision: Decision, timestamp: datetime) -> Activity:
        if character.gold < decision.cost:
            # Not enough gold: free rest instead
            return self._execute_rest(character, Decision.rest(character.current_location), timestamp)

        character.gold -= decision.cost
        healed = character.max_hp - character.current_hp
        character.full_heal()
        return self._activity(
            character, timestamp, ActivityType.REST,
            f"Paid {decision.cost} gold at the inn and recovered fully.",
            healed=healed,
            cost=decision.cost,
        )

    # ─── Movement ─────────────────────────────────────────────────

    def _execute_flee(self, character: Character, decision: Decision, timestamp: datetime) -> Activity:
        character.current_location = decision.location or self.safe_location
        return self._activity(
            character, timestamp, ActivityType.FLEE,
            f"Fled to {character.current_location}: {decision.reason}",
            reason=decision.reason,
        )

    def _execute_return_to_town(self, character: Character, decision: Decision, timestamp: datetime) -> Activity:
        character.current_location = self.safe_location
        character.full_heal()
        return self._activity(
            character, timestamp, ActivityType.RETURN_TO_TOWN,
            f"Returned to {self.safe_location} to recover.",
            reason=decision.reason,
        )

    # ─── Log-only ─────────────────────────────────────────────────

    def _execute_quest(self, character: Character, decision: Decision, timestamp: datetime) -> Activity:
        if decision.decision_type == DecisionType.ACCEPT_QUEST:
            description = f"Accepted quest: {decision.quest_name or decision.quest_id}"
        else:
            description = f"Continued quest {decision.quest_id}"
        return self._activity(
            character, timestamp, ActivityType.QUEST, description,
            quest_id=decision.quest_id,
        )

    def _execute_shop(self, character: Character, decision: Decision, timestamp: datetime) -> Activity:
        return self._activity(
            character, timestamp, ActivityType.SHOPPING,
            f"Browsed {decision.item_type or 'wares'} at {decision.location or character.current_location}.",
        )

    def _execute_idle(self, character: Character, decision: Decision, timestamp: datetime) -> Activity:
        return self._activity(
            character, timestamp, ActivityType.IDLE,
            f"{character.name} takes a moment to look around.",
        )


def run_cycle(
    character: Character,
    context: DecisionContext,
    executor: DecisionExecutor,
    sink: ActivitySink | None = None,
    now: datetime | None = None,
) -> DecisionOutcome:
    """One interactive tick: decide, execute, record."""
    decision = decide(character, context, executor.rng)
    logger.debug(f"{character.name} decided {decision.decision_type.value}")

    outcome = executor.execute(character, decision, now=now)
    if sink is not None:
        sink.extend(outcome.activities)
    return outcome

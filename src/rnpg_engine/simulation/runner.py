"""
Offline time-compression simulator.

Fast-forwards a character through a game-hour budget while the player is
away. Each cycle: decide (offline policy), execute, apply level-ups, check
for death, advance the clock by the decision's duration.

The caller's character is never mutated; the simulator works on a deep
copy and returns it with the ordered activity log and summary counters.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

from ..config import DEFAULT_CONFIG, EngineConfig, resolve_config
from ..errors import SimulationError
from ..state.schema import (
    Activity,
    ActivityRewards,
    ActivityType,
    Character,
    EnemyTier,
    EngineMode,
    SimulationSummary,
)
from ..state.schemas.decision import Decision, DecisionType
from ..systems.bestiary import Bestiary
from ..systems.combat import resolve_power_combat
from ..systems.decisions import decide_offline, decision_duration
from ..systems.executor import level_up_activity
from ..systems.leveling import apply_level_ups
from ..tools.rng import RandomSource


logger = logging.getLogger(__name__)


MIN_GAME_HOURS = 0.5  # Shorter absences are not worth simulating
EXPLORE_BASE_XP = 5
EXPLORE_XP_JITTER = 9
ACTIVITIES_PER_CYCLE = 3  # Action, level-up, death

# Mission discovery: a gate roll, then a principal step (only with an active
# principal mission) or a secondary mission
EXPLORE_MISSION_CHANCE = 0.1
EXPLORE_PRINCIPAL_STEP_CHANCE = 0.2
SECONDARY_MISSION_CHANCE = 0.3
SECONDARY_MISSION_COUNT = 100
VICTORY_MISSION_CHANCE = 0.05
VICTORY_PRINCIPAL_STEP_CHANCE = 0.4
MISSION_STEP_SUFFIX_MAX = 999


@dataclass
class SimulationResult:
    """Everything an offline run produced."""
    character: Character
    activities: list[Activity] = field(default_factory=list)
    summary: SimulationSummary = field(default_factory=SimulationSummary)

    @property
    def major_activities(self) -> list[Activity]:
        return [a for a in self.activities if a.is_major_event]


def compute_game_hours(
    elapsed: timedelta,
    compression_ratio: float = DEFAULT_CONFIG["compression_ratio"],
    max_game_hours: float = DEFAULT_CONFIG["max_game_hours"],
) -> float:
    """
    Convert real time away into a game-hour budget.

    1 real hour is `compression_ratio` game hours, capped at
    `max_game_hours`. Budgets under half a game hour come back as 0.
    """
    real_hours = max(0.0, elapsed.total_seconds() / 3600)
    game_hours = min(real_hours * compression_ratio, max_game_hours)
    if game_hours < MIN_GAME_HOURS:
        return 0.0
    return game_hours


class OfflineSimulator:
    """
    Runs bounded decide → execute → level cycles over a time budget.

    Single-threaded and self-contained: separate instances (or separate
    calls) can simulate different characters concurrently.
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

    def simulate(
        self,
        character: Character,
        game_hours: float,
        started_at: datetime | None = None,
    ) -> SimulationResult:
        """
        Simulate `game_hours` of autonomous play.

        Args:
            character: Snapshot to start from (left untouched)
            game_hours: Compressed game-time budget
            started_at: Timestamp of the first activity (defaults to now)

        Returns:
            SimulationResult with the updated copy, activities and summary

        Raises:
            SimulationError: If the budget is negative or not finite
        """
        if not math.isfinite(game_hours) or game_hours < 0:
            raise SimulationError(game_hours)

        handlers: dict[DecisionType, Callable[..., Activity]] = {
            DecisionType.REST: self._execute_rest,
            DecisionType.EXPLORE: self._execute_explore,
            DecisionType.COMBAT: self._execute_combat,
            DecisionType.FLEE: self._execute_flee,
            DecisionType.RETURN_TO_TOWN: self._execute_return_to_town,
        }

        working = character.model_copy(deep=True)
        start = started_at or datetime.now()
        budget_minutes = game_hours * 60
        max_activities = self.config["max_activities"]
        result = SimulationResult(character=working)
        summary = result.summary
        elapsed = 0

        logger.info(f"Simulating {game_hours:.1f} game hours for {working.name} (Lv.{working.level})")

        while elapsed < budget_minutes:
            if len(result.activities) + ACTIVITIES_PER_CYCLE > max_activities:
                summary.activity_cap_reached = True
                logger.warning(
                    f"Activity cap ({max_activities}) hit for {working.name} "
                    f"after {elapsed} of {budget_minutes:.0f} game minutes"
                )
                break

            decision = decide_offline(working, self.rng, self.bestiary)
            duration = decision_duration(decision.decision_type, self.rng)
            timestamp = start + timedelta(minutes=elapsed)
            logger.debug(f"[{elapsed}m] {working.name} -> {decision.decision_type.value} ({duration}m)")

            produced = [handlers[decision.decision_type](working, decision, duration, timestamp, summary)]

            report = apply_level_ups(working, EngineMode.OFFLINE)
            if report.leveled_up:
                summary.levels_gained += report.levels_gained
                produced.append(level_up_activity(working, report, timestamp))

            if working.current_hp <= 0:
                produced.append(self._handle_death(working, timestamp, summary))

            for activity in produced:
                if activity.is_major_event:
                    summary.major_events.append(activity.description)
            result.activities.extend(produced)
            elapsed += duration

        # Safety net: a character left in town is always topped up
        if working.current_location == self.safe_location:
            working.full_heal()

        summary.game_minutes_elapsed = elapsed
        logger.info(
            f"Simulation finished for {working.name}: {len(result.activities)} activities, "
            f"{summary.combats_won}/{summary.total_combats} combats won, {summary.deaths} deaths"
        )
        return result

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

    # ─── Handlers ─────────────────────────────────────────────────

    def _execute_rest(
        self, character: Character, decision: Decision, duration: int,
        timestamp: datetime, summary: SimulationSummary,
    ) -> Activity:
        healed = rest_healing(character, duration)
        character.current_hp += healed
        return self._activity(
            character, timestamp, ActivityType.REST,
            f"Rested for {duration} minutes, recovering {healed} HP.",
            duration=duration,
            healed=healed,
        )

    def _execute_explore(
        self, character: Character, decision: Decision, duration: int,
        timestamp: datetime, summary: SimulationSummary,
    ) -> Activity:
        target = decision.location or character.current_location
        is_new = character.discover(target)
        character.current_location = target

        xp = EXPLORE_BASE_XP + self.rng.randint(0, EXPLORE_XP_JITTER)
        character.experience += xp
        summary.total_xp_gained += xp

        description = f"Discovered {target}." if is_new else f"Explored {target}."
        if is_new:
            summary.locations_discovered.append(target)

        clue = None
        if self.rng.random() < EXPLORE_MISSION_CHANCE:
            if character.active_principal_mission_id and self.rng.random() < EXPLORE_PRINCIPAL_STEP_CHANCE:
                clue = self._mission_step("story", timestamp, summary)
                description += " Found a clue about the principal mission."
            elif self.rng.random() < SECONDARY_MISSION_CHANCE:
                clue = f"sm_{self.rng.randint(1, SECONDARY_MISSION_COUNT):03d}"
                summary.mission_clues.append(clue)
                description += f" Overheard rumours of a mission ({clue})."

        return self._activity(
            character, timestamp, ActivityType.EXPLORATION, description,
            rewards=ActivityRewards(xp=xp),
            is_major_event=is_new or clue is not None,
            location=target,
            new_location=is_new,
            mission_clue=clue,
        )

    def _execute_combat(
        self, character: Character, decision: Decision, duration: int,
        timestamp: datetime, summary: SimulationSummary,
    ) -> Activity:
        enemy = decision.enemy or self.bestiary.enemy_for_level(
            character.level, character.current_location, self.rng,
        )
        outcome = resolve_power_combat(character, enemy, self.rng)

        summary.total_combats += 1
        character.current_hp = max(0, character.current_hp - outcome.hp_lost)
        character.experience += outcome.xp_gained
        character.gold += outcome.gold_gained
        character.inventory.extend(outcome.items_found)
        summary.total_xp_gained += outcome.xp_gained
        summary.total_gold_gained += outcome.gold_gained
        summary.items_found += len(outcome.items_found)
        if outcome.victory:
            summary.combats_won += 1
        else:
            summary.combats_lost += 1

        description = outcome.description
        clue = None
        if outcome.victory and self.rng.random() < VICTORY_MISSION_CHANCE:
            if character.active_principal_mission_id and self.rng.random() < VICTORY_PRINCIPAL_STEP_CHANCE:
                clue = self._mission_step("combat", timestamp, summary)
                description += " The fight revealed a clue about the principal mission."

        return self._activity(
            character, timestamp, ActivityType.COMBAT, description,
            rewards=ActivityRewards(
                xp=outcome.xp_gained,
                gold=outcome.gold_gained,
                items=outcome.items_found,
            ),
            is_major_event=enemy.tier != EnemyTier.NORMAL or clue is not None,
            enemy=enemy.name,
            enemy_level=enemy.level,
            victory=outcome.victory,
            win_probability=round(outcome.win_probability, 3),
            hp_lost=outcome.hp_lost,
            mission_clue=clue,
        )

    def _execute_flee(
        self, character: Character, decision: Decision, duration: int,
        timestamp: datetime, summary: SimulationSummary,
    ) -> Activity:
        summary.flees += 1
        return self._activity(
            character, timestamp, ActivityType.FLEE,
            f"{decision.reason}, slipping away before the fight began.",
            reason=decision.reason,
        )

    def _execute_return_to_town(
        self, character: Character, decision: Decision, duration: int,
        timestamp: datetime, summary: SimulationSummary,
    ) -> Activity:
        character.current_location = self.safe_location
        character.full_heal()
        return self._activity(
            character, timestamp, ActivityType.RETURN_TO_TOWN,
            f"Returned to {self.safe_location} to recover.",
            reason=decision.reason,
        )

    # ─── Missions ─────────────────────────────────────────────────

    def _mission_step(self, source: str, timestamp: datetime, summary: SimulationSummary) -> str:
        """Record a principal mission step and return its id."""
        step = f"{source}_step_{timestamp:%Y%m%d%H%M}_{self.rng.randint(0, MISSION_STEP_SUFFIX_MAX)}"
        summary.mission_steps.append(step)
        return step

    # ─── Death ────────────────────────────────────────────────────

    def _handle_death(
        self, character: Character, timestamp: datetime, summary: SimulationSummary,
    ) -> Activity:
        """Respawn in the safe town, paying a share of gold and experience."""
        gold_lost = int(character.gold * self.config["death_gold_penalty"])
        xp_lost = int(character.experience * self.config["death_xp_penalty"])
        character.gold = max(0, character.gold - gold_lost)
        character.experience = max(0, character.experience - xp_lost)
        character.current_location = self.safe_location
        character.full_heal()
        summary.deaths += 1

        return self._activity(
            character, timestamp, ActivityType.DEATH,
            f"{character.name} was defeated and woke up in {self.safe_location}, "
            f"losing {gold_lost} gold and {xp_lost} XP.",
            is_major_event=True,
            gold_lost=gold_lost,
            xp_lost=xp_lost,
        )


def rest_healing(character: Character, minutes: int) -> int:
    """HP recovered by resting, scaled by duration and vitality, capped at missing HP."""
    healed = math.floor(
        character.max_hp * minutes / 500
        + character.vitality * character.max_hp * minutes / 1000
    )
    return max(0, min(healed, character.max_hp - character.current_hp))

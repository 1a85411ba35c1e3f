"""
Tests for the offline time-compression simulator.
"""

import logging
import math
import random
from datetime import datetime, timedelta

import pytest

from rnpg_engine import SimulationError
from rnpg_engine.state import (
    ActivityType,
    Character,
    Decision,
    Enemy,
    JobClass,
    SAFE_TOWN,
    SimulationSummary,
)
from rnpg_engine.simulation import OfflineSimulator, compute_game_hours
from rnpg_engine.simulation import runner
from rnpg_engine.simulation.runner import rest_healing


START = datetime(2024, 6, 1, 8, 0, 0)


def run(character, hours, seed=7, **config):
    simulator = OfflineSimulator(random.Random(seed), config=config or None)
    return simulator.simulate(character, hours, started_at=START)


class TestBudget:
    """Test game-hour budget handling."""

    def test_zero_hours_does_nothing(self, build_character):
        character = build_character(current_hp=50)
        result = run(character, 0)
        assert result.activities == []
        assert result.summary.game_minutes_elapsed == 0

    def test_zero_hours_in_town_still_heals(self, build_character):
        result = run(build_character(current_hp=50), 0)
        assert result.character.current_hp == result.character.max_hp

    def test_zero_hours_outside_town_no_heal(self, build_character):
        result = run(build_character(current_hp=50, current_location="heartlands_crystal_lake"), 0)
        assert result.character.current_hp == 50

    @pytest.mark.parametrize("hours", [-1, math.nan, math.inf])
    def test_invalid_budget_rejected(self, character, hours):
        with pytest.raises(SimulationError):
            run(character, hours)

    def test_budget_consumed(self, character):
        result = run(character, 4)
        assert result.summary.game_minutes_elapsed >= 4 * 60
        assert not result.summary.activity_cap_reached


class TestComputeGameHours:
    """Test real-time to game-time conversion."""

    def test_one_hour(self):
        assert compute_game_hours(timedelta(hours=1)) == pytest.approx(6.0)

    def test_capped_at_one_week(self):
        assert compute_game_hours(timedelta(days=10)) == pytest.approx(1008.0)

    def test_short_absence_ignored(self):
        """Four real minutes is under half a game hour."""
        assert compute_game_hours(timedelta(minutes=4)) == 0.0

    def test_negative_elapsed(self):
        assert compute_game_hours(timedelta(hours=-3)) == 0.0

    def test_custom_ratio(self):
        assert compute_game_hours(timedelta(hours=2), compression_ratio=3.0) == pytest.approx(6.0)


class TestInvariants:
    """Test state invariants after a run."""

    def test_input_not_mutated(self, character):
        before = character.model_dump()
        run(character, 48)
        assert character.model_dump() == before

    @pytest.mark.parametrize("seed", range(5))
    @pytest.mark.parametrize("job_class", [JobClass.WARRIOR, JobClass.MAGE, JobClass.ROGUE])
    def test_state_stays_valid(self, seed, job_class):
        rng = random.Random(seed)
        character = Character.create("Wanderer", job_class, rng=rng)
        result = run(character, 72, seed=seed)
        hero = result.character
        assert 0 <= hero.current_hp <= hero.max_hp
        assert hero.gold >= 0
        assert hero.experience >= 0
        assert 1 <= hero.level <= 50
        assert hero.max_hp == 50 + hero.vitality * 10 + hero.level * 5

    def test_timestamps_non_decreasing(self, character):
        result = run(character, 24)
        stamps = [a.timestamp for a in result.activities]
        assert stamps == sorted(stamps)
        assert stamps[0] == START

    def test_same_seed_same_story(self, character):
        first = run(character, 24, seed=3)
        second = run(character, 24, seed=3)
        assert [a.description for a in first.activities] == [a.description for a in second.activities]
        assert first.character.level == second.character.level
        assert first.character.gold == second.character.gold
        assert first.character.current_hp == second.character.current_hp


class TestSummary:
    """Test summary counters against the activity log."""

    def test_counters_match_log(self, character):
        result = run(character, 96, seed=11)
        summary = result.summary

        def by_type(activity_type):
            return [a for a in result.activities if a.activity_type == activity_type]

        assert summary.total_combats == len(by_type(ActivityType.COMBAT))
        assert summary.combats_won + summary.combats_lost == summary.total_combats
        assert summary.deaths == len(by_type(ActivityType.DEATH))
        assert summary.flees == len(by_type(ActivityType.FLEE))
        assert summary.major_events == [a.description for a in result.major_activities]
        assert summary.levels_gained == result.character.level - character.level

    def test_discoveries_recorded(self, character):
        result = run(character, 96, seed=11)
        for location in result.summary.locations_discovered:
            assert location in result.character.discovered_locations

    def test_mission_clue_format(self, character):
        result = run(character, 200, seed=5)
        for clue in result.summary.mission_clues:
            assert clue.startswith("sm_")
            assert len(clue) == 6

    def test_level_up_from_banked_experience(self, build_character):
        result = run(build_character(experience=5000), 1)
        assert result.character.level >= 7
        assert result.summary.levels_gained >= 6
        assert any(a.activity_type == ActivityType.LEVEL_UP for a in result.activities)


class TestActivityCap:
    """Test the runaway-loop guard."""

    def test_cap_stops_run(self, character, caplog):
        with caplog.at_level(logging.WARNING):
            result = run(character, 500, max_activities=5)
        assert result.summary.activity_cap_reached
        assert len(result.activities) <= 5
        assert result.summary.game_minutes_elapsed < 500 * 60
        assert "Activity cap" in caplog.text


class TestDeathAndRest:
    """Test respawn penalties and rest healing."""

    def test_handle_death(self, build_character, rng):
        character = build_character(
            current_hp=0, gold=200, experience=60, current_location="heartlands_bandit_camp",
        )
        summary = SimulationSummary()
        activity = OfflineSimulator(rng)._handle_death(character, START, summary)

        assert character.gold == 180
        assert character.experience == 57
        assert character.current_location == SAFE_TOWN
        assert character.current_hp == character.max_hp
        assert summary.deaths == 1
        assert activity.activity_type == ActivityType.DEATH
        assert activity.is_major_event

    def test_custom_death_penalty(self, build_character, rng):
        character = build_character(current_hp=0, gold=200)
        simulator = OfflineSimulator(rng, config={"death_gold_penalty": 0.5})
        simulator._handle_death(character, START, SimulationSummary())
        assert character.gold == 100

    def test_rest_healing(self, build_character):
        """30 minutes at 100 max HP and 2 VIT recovers 6 + 6."""
        character = build_character(vitality=2, current_hp=40, max_hp=100)
        assert rest_healing(character, 30) == 12

    def test_rest_healing_capped(self, build_character):
        character = build_character(vitality=2, current_hp=95, max_hp=100)
        assert rest_healing(character, 60) == 5

    @pytest.mark.parametrize("cap", [3, 4, 10, 25])
    def test_log_never_exceeds_cap(self, character, cap):
        result = run(character, 500, max_activities=cap)
        assert len(result.activities) <= cap


def brute() -> Enemy:
    return Enemy(
        name="Brute", level=10, hp=200,
        strength=60, intelligence=10, agility=20, vitality=60,
        xp_reward=50, gold_reward=20,
    )


def rival(character) -> Enemy:
    """Same combat power as the character."""
    return Enemy(
        name="Rival", level=character.level, hp=40,
        strength=character.strength, intelligence=character.intelligence,
        agility=character.agility, vitality=character.vitality,
        xp_reward=20, gold_reward=10,
    )


class TestLethalCycle:
    """Test a cycle whose lost fight both levels the character and kills them."""

    def test_level_up_then_death_then_heal(self, build_character, scripted, monkeypatch):
        """Participation XP tips the level, then the death respawns at full HP."""
        monkeypatch.setattr(runner, "decide_offline", lambda character, rng, bestiary: Decision.combat(enemy=brute()))
        character = build_character(experience=99, gold=100, current_location="heartlands_bandit_camp")
        rng = scripted(ints=[10], floats=[0.99, 0.0])

        result = OfflineSimulator(rng).simulate(character, 0.1, started_at=START)
        hero = result.character

        assert [a.activity_type for a in result.activities] == [
            ActivityType.COMBAT,
            ActivityType.LEVEL_UP,
            ActivityType.DEATH,
        ]
        assert hero.level == 2
        assert hero.experience == 4
        assert hero.gold == 90
        assert hero.current_location == SAFE_TOWN
        assert hero.max_hp == 50 + hero.vitality * 10 + hero.level * 5
        assert hero.current_hp == hero.max_hp
        assert result.summary.deaths == 1
        assert result.summary.levels_gained == 1
        assert result.summary.major_events == [a.description for a in result.activities[1:]]

    def test_death_penalty_never_negative(self, build_character, scripted, monkeypatch):
        monkeypatch.setattr(runner, "decide_offline", lambda character, rng, bestiary: Decision.combat(enemy=brute()))
        character = build_character(experience=0, gold=0)
        result = OfflineSimulator(scripted(ints=[10], floats=[0.99, 0.0])).simulate(character, 0.1, started_at=START)
        assert result.character.experience >= 0
        assert result.character.gold == 0
        assert result.summary.deaths == 1


class TestMissionClues:
    """Test principal and secondary mission discovery."""

    def explore(self, character, rng):
        summary = SimulationSummary()
        activity = OfflineSimulator(rng)._execute_explore(
            character, Decision.explore(SAFE_TOWN), 20, START, summary,
        )
        return activity, summary

    def fight(self, character, rng):
        summary = SimulationSummary()
        activity = OfflineSimulator(rng)._execute_combat(
            character, Decision.combat(enemy=rival(character)), 10, START, summary,
        )
        return activity, summary

    def test_principal_step_on_explore(self, build_character, scripted):
        character = build_character(active_principal_mission_id="pm_001")
        activity, summary = self.explore(character, scripted(ints=[3, 500], floats=[0.05, 0.1]))
        assert summary.mission_steps == ["story_step_202406010800_500"]
        assert summary.mission_clues == []
        assert activity.is_major_event
        assert activity.metadata["mission_clue"] == "story_step_202406010800_500"

    def test_secondary_without_principal_mission(self, character, scripted):
        """No active principal mission: the gate goes straight to the secondary roll."""
        activity, summary = self.explore(character, scripted(ints=[3, 42], floats=[0.05, 0.2]))
        assert summary.mission_clues == ["sm_042"]
        assert summary.mission_steps == []
        assert activity.is_major_event

    def test_failed_principal_roll_falls_to_secondary(self, build_character, scripted):
        character = build_character(active_principal_mission_id="pm_001")
        _, summary = self.explore(character, scripted(ints=[3, 7], floats=[0.05, 0.5, 0.2]))
        assert summary.mission_clues == ["sm_007"]
        assert summary.mission_steps == []

    @pytest.mark.parametrize("floats", [[0.1], [0.05, 0.3]])
    def test_no_clue(self, character, scripted, floats):
        """The 10% gate and the 30% secondary roll are both exclusive."""
        activity, summary = self.explore(character, scripted(ints=[3], floats=floats))
        assert summary.mission_clues == []
        assert summary.mission_steps == []
        assert not activity.is_major_event

    def test_principal_step_on_victory(self, build_character, scripted):
        character = build_character(active_principal_mission_id="pm_001")
        rng = scripted(ints=[17], floats=[0.0, 0.0, 0.99, 0.01, 0.1])
        activity, summary = self.fight(character, rng)
        assert activity.metadata["victory"]
        assert summary.mission_steps == ["combat_step_202406010800_17"]
        assert activity.is_major_event

    def test_victory_clue_needs_principal_mission(self, character, scripted):
        activity, summary = self.fight(character, scripted(floats=[0.0, 0.0, 0.99, 0.01]))
        assert activity.metadata["victory"]
        assert summary.mission_steps == []
        assert summary.mission_clues == []
        assert not activity.is_major_event

    def test_defeat_gives_no_clue(self, build_character, scripted):
        character = build_character(active_principal_mission_id="pm_001")
        activity, summary = self.fight(character, scripted(floats=[0.999, 0.0, 0.0, 0.0]))
        assert not activity.metadata["victory"]
        assert summary.mission_steps == []

    def test_secondary_rate_per_exploration(self, character):
        """About 3% of explorations turn up a secondary mission."""
        rng = random.Random(1)
        simulator = OfflineSimulator(rng)
        summary = SimulationSummary()
        for _ in range(5000):
            simulator._execute_explore(character, Decision.explore(SAFE_TOWN), 20, START, summary)
        assert 0.015 < len(summary.mission_clues) / 5000 < 0.05

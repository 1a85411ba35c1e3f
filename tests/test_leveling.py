"""
Tests for leveling and progression.
"""

import pytest

from rnpg_engine.state import EngineMode, JobClass, StatType
from rnpg_engine.systems.leveling import (
    MAX_LEVEL,
    apply_level_ups,
    stat_allocation,
    xp_for_level,
)


class TestXpCurve:
    """Test the XP-to-level curve."""

    @pytest.mark.parametrize("level,expected", [(1, 100), (2, 282), (3, 519), (5, 1118)])
    def test_xp_for_level(self, level, expected):
        assert xp_for_level(level) == expected

    def test_curve_increases(self):
        thresholds = [xp_for_level(level) for level in range(1, MAX_LEVEL)]
        assert thresholds == sorted(thresholds)


class TestStatAllocation:
    """Test proportional stat points by job class."""

    def test_warrior_allocation(self):
        """40/30 weights earn 2 STR and 1 VIT; the rest floors to 0."""
        allocation = stat_allocation(JobClass.WARRIOR)
        assert allocation[StatType.STRENGTH] == 2
        assert allocation[StatType.VITALITY] == 1
        assert allocation[StatType.AGILITY] == 0

    def test_remainder_is_dropped(self):
        """Floor division never hands out more than five points."""
        for job_class in JobClass:
            assert sum(stat_allocation(job_class).values()) <= 5

    def test_mage_favours_intelligence(self):
        allocation = stat_allocation(JobClass.MAGE)
        assert allocation[StatType.INTELLIGENCE] == 2
        assert allocation[StatType.STRENGTH] == 0


class TestApplyLevelUps:
    """Test apply_level_ups."""

    def test_no_level_without_xp(self, build_character):
        character = build_character(experience=99)
        report = apply_level_ups(character)
        assert not report.leveled_up
        assert character.level == 1
        assert character.experience == 99

    def test_single_level_carries_excess(self, build_character):
        character = build_character(experience=150, vitality=1, current_hp=65, max_hp=65)
        report = apply_level_ups(character)
        assert report.levels_gained == 1
        assert character.level == 2
        assert character.experience == 50
        assert character.strength == 12
        assert character.vitality == 2
        assert character.max_hp == 50 + 2 * 10 + 2 * 5

    def test_multiple_levels_in_one_call(self, build_character):
        character = build_character(experience=100 + 282 + 10)
        report = apply_level_ups(character)
        assert report.levels_gained == 2
        assert report.new_level == 3
        assert character.experience == 10
        assert report.stat_gains[StatType.STRENGTH] == 4

    def test_max_hp_matches_formula(self, build_character):
        character = build_character(experience=50_000)
        apply_level_ups(character)
        assert character.max_hp == 50 + character.vitality * 10 + character.level * 5
        assert character.experience >= 0

    def test_offline_keeps_hp_proportion(self, build_character):
        """Offline mode carries HP over as a share of the old max."""
        character = build_character(experience=100, vitality=1, current_hp=26, max_hp=65)
        apply_level_ups(character, EngineMode.OFFLINE)
        assert character.max_hp == 80
        assert character.current_hp == 32

    def test_offline_full_stays_full(self, build_character):
        character = build_character(experience=100, vitality=1, current_hp=65, max_hp=65)
        apply_level_ups(character, EngineMode.OFFLINE)
        assert character.current_hp == character.max_hp

    def test_interactive_heals_fully(self, build_character):
        """Interactive mode fully heals on level-up."""
        character = build_character(experience=100, vitality=1, current_hp=26, max_hp=65)
        apply_level_ups(character, EngineMode.INTERACTIVE)
        assert character.current_hp == character.max_hp == 80

    def test_level_cap_discards_experience(self, build_character):
        character = build_character(level=49, experience=10**9)
        report = apply_level_ups(character)
        assert character.level == MAX_LEVEL
        assert character.experience == 0
        assert report.hit_level_cap

    def test_at_cap_experience_is_discarded(self, build_character):
        character = build_character(level=MAX_LEVEL, experience=500)
        report = apply_level_ups(character)
        assert not report.leveled_up
        assert character.experience == 0

    def test_at_cap_leaves_hp_alone(self, build_character):
        character = build_character(level=MAX_LEVEL, experience=500, current_hp=80, max_hp=115)
        apply_level_ups(character)
        assert character.level == MAX_LEVEL
        assert character.max_hp == 115
        assert character.current_hp == 80

    def test_stale_max_hp_recomputed_on_level_up(self, build_character):
        """A max_hp that drifted from the formula is corrected by the first level-up."""
        character = build_character(experience=100, current_hp=100, max_hp=100)
        apply_level_ups(character, EngineMode.INTERACTIVE)
        assert character.max_hp == 50 + character.vitality * 10 + character.level * 5

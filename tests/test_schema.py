"""
Tests for state models: validation at construction and model helpers.
"""

import pytest
from pydantic import ValidationError

from rnpg_engine.state import (
    Activity,
    ActivityType,
    Character,
    JobClass,
    MAX_LEVEL,
    PersonalityTraits,
    SAFE_TOWN,
    StatType,
)
from rnpg_engine.state.schema import calculate_max_hp


class TestPersonalityTraits:
    """Test trait validation and derived values."""

    def test_rejects_trait_above_one(self, traits):
        with pytest.raises(ValidationError, match="courage"):
            traits(courage=1.5)

    def test_rejects_negative_trait(self, traits):
        with pytest.raises(ValidationError, match="greed"):
            traits(greed=-0.1)

    def test_traits_are_immutable(self, traits):
        """Traits cannot change after creation."""
        personality = traits()
        with pytest.raises(ValidationError):
            personality.courage = 0.9

    def test_risk_tolerance_is_clamped(self, traits):
        """A timid, generous personality bottoms out at 0."""
        timid = traits(courage=0.0, impulsive=0.0, greed=0.0)
        assert timid.risk_tolerance == 0.0

    def test_risk_tolerance_formula(self, traits):
        reckless = traits(courage=1.0, impulsive=1.0, greed=1.0)
        assert reckless.risk_tolerance == pytest.approx(0.8)

    def test_social_compatibility(self, traits):
        """Identical personalities score 1, opposites score 0."""
        low = PersonalityTraits(courage=0, greed=0, curiosity=0, aggression=0, social=0, impulsive=0)
        high = PersonalityTraits(courage=1, greed=1, curiosity=1, aggression=1, social=1, impulsive=1)
        assert low.social_compatibility(low) == pytest.approx(1.0)
        assert low.social_compatibility(high) == pytest.approx(0.0)

    def test_job_class_bias(self, scripted):
        """Warriors roll braver and more aggressive, clamped to 1."""
        rng = scripted(floats=[0.9, 0.5, 0.5, 0.5, 0.5, 0.5])
        personality = PersonalityTraits.for_job_class(JobClass.WARRIOR, rng)
        assert personality.courage == pytest.approx(1.0)
        assert personality.aggression == pytest.approx(0.7)
        assert personality.greed == pytest.approx(0.5)

    def test_random_traits_in_range(self, rng):
        for _ in range(50):
            values = PersonalityTraits.random(rng).model_dump().values()
            assert all(0.0 <= v <= 1.0 for v in values)


class TestCharacter:
    """Test character validation and helpers."""

    def test_rejects_negative_stat(self, build_character):
        with pytest.raises(ValidationError, match="strength"):
            build_character(strength=-1)

    def test_rejects_level_zero(self, build_character):
        with pytest.raises(ValidationError, match="level"):
            build_character(level=0)

    def test_rejects_level_above_cap(self, build_character):
        with pytest.raises(ValidationError, match="level"):
            build_character(level=MAX_LEVEL + 1)

    def test_accepts_level_cap(self, build_character):
        assert build_character(level=MAX_LEVEL).level == MAX_LEVEL

    def test_stale_max_hp_accepted(self, build_character):
        """A stored max_hp off the formula still loads; only current_hp is checked."""
        character = build_character(current_hp=100, max_hp=100)
        assert character.max_hp != character.calculate_max_hp()

    def test_no_principal_mission_by_default(self, character):
        assert character.active_principal_mission_id is None

    def test_rejects_hp_above_max(self, build_character):
        with pytest.raises(ValidationError, match="exceeds max_hp"):
            build_character(current_hp=200, max_hp=115)

    def test_rejects_negative_gold(self, build_character):
        with pytest.raises(ValidationError, match="gold"):
            build_character(gold=-5)

    def test_health_fraction(self, build_character):
        character = build_character(current_hp=23, max_hp=115)
        assert character.health_fraction == pytest.approx(0.2)
        assert character.is_in_danger

    def test_get_stat(self, character):
        assert character.get_stat(StatType.STRENGTH) == 10
        assert character.get_stat(StatType.VITALITY) == 6

    def test_discover_reports_new_locations(self, character):
        assert character.discover("heartlands_crystal_lake") is True
        assert character.discover("heartlands_crystal_lake") is False
        assert SAFE_TOWN in character.discovered_locations

    def test_create_uses_hp_formula(self, rng):
        """New characters start at full health with max HP from vitality and level."""
        hero = Character.create(
            "Mira", JobClass.MAGE,
            stats={StatType.INTELLIGENCE: 8, StatType.VITALITY: 3},
            rng=rng,
        )
        assert hero.max_hp == calculate_max_hp(3, 1) == 85
        assert hero.current_hp == hero.max_hp
        assert hero.strength == 1
        assert hero.current_location == SAFE_TOWN
        assert hero.gold > 0

    def test_create_without_personality_needs_rng(self):
        with pytest.raises(ValueError, match="rng is required"):
            Character.create("Mira", JobClass.MAGE)


class TestActivity:
    """Test activity records."""

    def test_activity_is_immutable(self):
        activity = Activity(
            character_id="abc",
            activity_type=ActivityType.REST,
            description="Rested.",
        )
        with pytest.raises(ValidationError):
            activity.description = "Changed."

    def test_activity_defaults(self):
        activity = Activity(character_id="abc", activity_type=ActivityType.IDLE, description="...")
        assert activity.rewards is None
        assert activity.metadata == {}
        assert not activity.is_major_event

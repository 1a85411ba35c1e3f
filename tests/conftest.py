"""
Pytest fixtures for engine tests.

Provides seeded and scripted random sources, sample characters and
enemies, and an in-memory activity sink.
"""

import random

import pytest

from rnpg_engine.state import (
    Character,
    Enemy,
    JobClass,
    MemoryActivitySink,
    PersonalityTraits,
)
from rnpg_engine.systems.bestiary import Bestiary


class ScriptedRandom(random.Random):
    """
    Random source that replays fixed values.

    `ints` feed randint(), `floats` feed random() (and therefore uniform()).
    Once a queue runs dry it falls back to a seeded generator, so tests
    only script the draws they care about.
    """

    def __init__(self, ints=(), floats=(), seed=0):
        super().__init__(seed)
        self.ints = list(ints)
        self.floats = list(floats)

    def randint(self, a, b):
        if self.ints:
            value = self.ints.pop(0)
            assert a <= value <= b, f"scripted int {value} outside [{a}, {b}]"
            return value
        return super().randint(a, b)

    def random(self):
        if self.floats:
            return self.floats.pop(0)
        return super().random()

    def getrandbits(self, k):
        # Keeps choice() and fallback randint() off the scripted float queue
        return super().getrandbits(k)


def make_traits(**overrides) -> PersonalityTraits:
    """Balanced traits with selected overrides."""
    values = dict(courage=0.5, greed=0.5, curiosity=0.5, aggression=0.5, social=0.5, impulsive=0.5)
    values.update(overrides)
    return PersonalityTraits(**values)


def make_character(**overrides) -> Character:
    """Level 1 warrior at full health, formula-consistent max HP."""
    values = dict(
        name="Aldric",
        job_class=JobClass.WARRIOR,
        strength=10,
        intelligence=2,
        agility=6,
        luck=3,
        charisma=2,
        vitality=6,
        level=1,
        current_hp=115,
        max_hp=115,
        gold=100,
        personality=make_traits(),
    )
    values.update(overrides)
    return Character(**values)


@pytest.fixture
def rng():
    """Seeded PRNG."""
    return random.Random(42)


@pytest.fixture
def scripted():
    """Factory for scripted random sources."""
    return ScriptedRandom


@pytest.fixture
def traits():
    return make_traits


@pytest.fixture
def character():
    """Sample level 1 warrior."""
    return make_character()


@pytest.fixture
def build_character():
    """Factory for characters with overrides."""
    return make_character


@pytest.fixture
def enemy():
    """A plain level 1 opponent."""
    return Enemy(
        name="Slime",
        level=1,
        hp=18,
        strength=2,
        intelligence=1,
        agility=1,
        luck=1,
        vitality=2,
        xp_reward=15,
        gold_reward=7,
    )


@pytest.fixture
def bestiary():
    """Bestiary backed by the packaged data file."""
    return Bestiary()


@pytest.fixture
def sink():
    """In-memory activity log."""
    return MemoryActivitySink()

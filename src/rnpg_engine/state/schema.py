"""
Pydantic models for engine state.

Characters, enemies and activities are plain data: designed to serialize
to JSON so the surrounding application can persist them however it likes.
Validation happens at construction; a bad trait or negative stat raises
pydantic.ValidationError instead of being clamped.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, model_validator
from uuid import uuid4

from ..tools.rng import RandomSource


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class JobClass(str, Enum):
    WARRIOR = "warrior"          # Frontline, strength and vitality
    ASSASSIN = "assassin"        # Burst damage, agility
    ROGUE = "rogue"              # Agility and luck
    ARCHER = "archer"            # Ranged, agility
    MAGE = "mage"                # Raw intelligence
    PRIEST = "priest"            # Healer, intelligence and charisma
    WARLOCK = "warlock"          # Dark arts, intelligence and luck
    BARD = "bard"                # Charisma above all
    MERCHANT = "merchant"        # Luck and charisma
    SCHOLAR = "scholar"          # Knowledge, intelligence
    PALADIN = "paladin"          # Holy warrior
    BATTLE_MAGE = "battle_mage"  # Strength and intelligence hybrid
    RANGER = "ranger"            # Wilderness, agility and vitality


class StatType(str, Enum):
    STRENGTH = "strength"
    INTELLIGENCE = "intelligence"
    AGILITY = "agility"
    LUCK = "luck"
    CHARISMA = "charisma"
    VITALITY = "vitality"


class EngineMode(str, Enum):
    """The two paths that drive a character, which intentionally differ."""
    INTERACTIVE = "interactive"  # Live play: priority cascade, full heal on level-up
    OFFLINE = "offline"          # Time compression: weighted rolls, proportional HP


class EnemyTier(str, Enum):
    NORMAL = "normal"
    ELITE = "elite"
    BOSS = "boss"
    WORLD_BOSS = "world_boss"
    LEGENDARY = "legendary"


class ItemRarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    LEGENDARY = "legendary"


class ActivityType(str, Enum):
    COMBAT = "combat"
    EXPLORATION = "exploration"
    REST = "rest"
    LEVEL_UP = "level_up"
    DEATH = "death"
    SOCIAL = "social"
    FLEE = "flee"
    RETURN_TO_TOWN = "return_to_town"
    QUEST = "quest"
    SHOPPING = "shopping"
    IDLE = "idle"


# Stat point distribution per level, by job class.
# Order: STR, INT, AGI, LUCK, CHA, VIT. Each row sums to 100.
JOB_CLASS_STAT_WEIGHTS: dict[JobClass, dict[StatType, int]] = {
    JobClass.WARRIOR: {StatType.STRENGTH: 40, StatType.INTELLIGENCE: 5, StatType.AGILITY: 15,
                       StatType.LUCK: 5, StatType.CHARISMA: 5, StatType.VITALITY: 30},
    JobClass.ASSASSIN: {StatType.STRENGTH: 25, StatType.INTELLIGENCE: 5, StatType.AGILITY: 40,
                        StatType.LUCK: 15, StatType.CHARISMA: 5, StatType.VITALITY: 10},
    JobClass.ROGUE: {StatType.STRENGTH: 15, StatType.INTELLIGENCE: 5, StatType.AGILITY: 35,
                     StatType.LUCK: 25, StatType.CHARISMA: 10, StatType.VITALITY: 10},
    JobClass.ARCHER: {StatType.STRENGTH: 20, StatType.INTELLIGENCE: 5, StatType.AGILITY: 40,
                      StatType.LUCK: 20, StatType.CHARISMA: 5, StatType.VITALITY: 10},
    JobClass.MAGE: {StatType.STRENGTH: 5, StatType.INTELLIGENCE: 45, StatType.AGILITY: 10,
                    StatType.LUCK: 15, StatType.CHARISMA: 5, StatType.VITALITY: 20},
    JobClass.PRIEST: {StatType.STRENGTH: 5, StatType.INTELLIGENCE: 35, StatType.AGILITY: 5,
                      StatType.LUCK: 10, StatType.CHARISMA: 20, StatType.VITALITY: 25},
    JobClass.WARLOCK: {StatType.STRENGTH: 5, StatType.INTELLIGENCE: 40, StatType.AGILITY: 10,
                       StatType.LUCK: 20, StatType.CHARISMA: 15, StatType.VITALITY: 10},
    JobClass.BARD: {StatType.STRENGTH: 10, StatType.INTELLIGENCE: 20, StatType.AGILITY: 15,
                    StatType.LUCK: 15, StatType.CHARISMA: 30, StatType.VITALITY: 10},
    JobClass.MERCHANT: {StatType.STRENGTH: 10, StatType.INTELLIGENCE: 15, StatType.AGILITY: 15,
                        StatType.LUCK: 30, StatType.CHARISMA: 20, StatType.VITALITY: 10},
    JobClass.SCHOLAR: {StatType.STRENGTH: 5, StatType.INTELLIGENCE: 40, StatType.AGILITY: 10,
                       StatType.LUCK: 10, StatType.CHARISMA: 15, StatType.VITALITY: 20},
    JobClass.PALADIN: {StatType.STRENGTH: 30, StatType.INTELLIGENCE: 10, StatType.AGILITY: 10,
                       StatType.LUCK: 5, StatType.CHARISMA: 20, StatType.VITALITY: 25},
    JobClass.BATTLE_MAGE: {StatType.STRENGTH: 20, StatType.INTELLIGENCE: 35, StatType.AGILITY: 10,
                           StatType.LUCK: 10, StatType.CHARISMA: 5, StatType.VITALITY: 20},
    JobClass.RANGER: {StatType.STRENGTH: 20, StatType.INTELLIGENCE: 10, StatType.AGILITY: 35,
                      StatType.LUCK: 10, StatType.CHARISMA: 5, StatType.VITALITY: 20},
}

# Personality nudges applied on top of random traits at creation
_JOB_CLASS_TRAIT_BIAS: dict[JobClass, dict[str, float]] = {
    JobClass.WARRIOR: {"courage": 0.3, "aggression": 0.2},
    JobClass.ASSASSIN: {"aggression": 0.3, "impulsive": -0.2},
    JobClass.ROGUE: {"curiosity": 0.3, "greed": 0.2},
    JobClass.MAGE: {"curiosity": 0.3, "impulsive": -0.2},
    JobClass.SCHOLAR: {"curiosity": 0.3, "impulsive": -0.2},
    JobClass.PRIEST: {"courage": 0.2, "greed": -0.3},
    JobClass.PALADIN: {"courage": 0.2, "greed": -0.3},
    JobClass.BARD: {"social": 0.4, "greed": 0.2},
    JobClass.MERCHANT: {"social": 0.4, "greed": 0.2},
}

SAFE_TOWN = "heartlands_havenmoor"
STARTING_GOLD = 100
MAX_LEVEL = 50


def generate_id() -> str:
    return str(uuid4())[:8]


def calculate_max_hp(vitality: int, level: int) -> int:
    """Max HP derived from vitality and level."""
    return 50 + vitality * 10 + level * 5


# -----------------------------------------------------------------------------
# Character
# -----------------------------------------------------------------------------

class PersonalityTraits(BaseModel):
    """
    Six traits in [0, 1] that bias autonomous decisions.

    Fixed once the character exists.
    """
    model_config = ConfigDict(frozen=True)

    courage: float = Field(ge=0.0, le=1.0)     # 0 = cautious, 1 = reckless
    greed: float = Field(ge=0.0, le=1.0)       # 0 = generous, 1 = greedy
    curiosity: float = Field(ge=0.0, le=1.0)   # 0 = focused, 1 = wanders off
    aggression: float = Field(ge=0.0, le=1.0)  # 0 = peaceful, 1 = picks fights
    social: float = Field(ge=0.0, le=1.0)      # 0 = loner, 1 = seeks company
    impulsive: float = Field(ge=0.0, le=1.0)   # 0 = methodical, 1 = impulsive

    @property
    def risk_tolerance(self) -> float:
        """Willingness to take risks, clamped to [0, 1]."""
        raw = (self.courage + self.impulsive - 0.5 * (1.0 - self.greed)) / 2.5
        return min(1.0, max(0.0, raw))

    def social_compatibility(self, other: "PersonalityTraits") -> float:
        """Similar personalities get along better. 1.0 = identical."""
        mine = self.model_dump()
        theirs = other.model_dump()
        differences = [abs(mine[trait] - theirs[trait]) for trait in mine]
        return 1.0 - sum(differences) / len(differences)

    @classmethod
    def random(cls, rng: RandomSource) -> "PersonalityTraits":
        return cls(
            courage=rng.random(),
            greed=rng.random(),
            curiosity=rng.random(),
            aggression=rng.random(),
            social=rng.random(),
            impulsive=rng.random(),
        )

    @classmethod
    def for_job_class(cls, job_class: JobClass, rng: RandomSource) -> "PersonalityTraits":
        """Random traits nudged toward the class archetype."""
        traits = cls.random(rng).model_dump()
        for trait, delta in _JOB_CLASS_TRAIT_BIAS.get(job_class, {}).items():
            traits[trait] = min(1.0, max(0.0, traits[trait] + delta))
        return cls(**traits)


class Item(BaseModel):
    """Loot found in combat or exploration."""
    id: str = Field(default_factory=generate_id)
    name: str
    item_type: str  # weapon, armor, accessory, consumable
    rarity: ItemRarity = ItemRarity.COMMON
    level: int = Field(default=1, ge=1)


class Character(BaseModel):
    """
    Snapshot of an autonomous character.

    Only current_hp <= max_hp is checked at construction. A stored max_hp that
    predates a balance change is accepted as-is and brought back in line with
    calculate_max_hp() on the next level-up.
    """
    id: str = Field(default_factory=generate_id)
    name: str
    job_class: JobClass = JobClass.WARRIOR

    strength: int = Field(default=1, ge=0)
    intelligence: int = Field(default=1, ge=0)
    agility: int = Field(default=1, ge=0)
    luck: int = Field(default=1, ge=0)
    charisma: int = Field(default=1, ge=0)
    vitality: int = Field(default=1, ge=0)

    level: int = Field(default=1, ge=1, le=MAX_LEVEL)
    experience: int = Field(default=0, ge=0)  # Progress toward next level
    current_hp: int = Field(ge=0)
    max_hp: int = Field(ge=1)
    gold: int = Field(default=0, ge=0)

    current_location: str = SAFE_TOWN
    discovered_locations: list[str] = Field(default_factory=lambda: [SAFE_TOWN])
    personality: PersonalityTraits
    inventory: list[Item] = Field(default_factory=list)
    active_principal_mission_id: str | None = None

    @model_validator(mode="after")
    def _hp_within_max(self) -> "Character":
        if self.current_hp > self.max_hp:
            raise ValueError(
                f"current_hp ({self.current_hp}) exceeds max_hp ({self.max_hp})"
            )
        return self

    @property
    def health_fraction(self) -> float:
        return self.current_hp / self.max_hp

    @property
    def is_in_danger(self) -> bool:
        """Below the survival threshold."""
        return self.health_fraction < 0.3

    @property
    def is_alive(self) -> bool:
        return self.current_hp > 0

    def get_stat(self, stat: StatType) -> int:
        return getattr(self, stat.value)

    def calculate_max_hp(self) -> int:
        return calculate_max_hp(self.vitality, self.level)

    def full_heal(self) -> None:
        self.current_hp = self.max_hp

    def discover(self, location: str) -> bool:
        """Record a location. Returns True if it was new."""
        if location in self.discovered_locations:
            return False
        self.discovered_locations.append(location)
        return True

    @classmethod
    def create(
        cls,
        name: str,
        job_class: JobClass,
        stats: dict[StatType, int] | None = None,
        personality: PersonalityTraits | None = None,
        rng: RandomSource | None = None,
        **kwargs: Any,
    ) -> "Character":
        """
        Create a level 1 character at full health.

        Missing stats default to 1. Personality is rolled from the job class
        when not given, which needs an rng.
        """
        if personality is None:
            if rng is None:
                raise ValueError("rng is required to roll a personality")
            personality = PersonalityTraits.for_job_class(job_class, rng)

        stats = stats or {}
        values = {stat.value: stats.get(stat, 1) for stat in StatType}
        level = kwargs.pop("level", 1)
        max_hp = calculate_max_hp(values["vitality"], level)
        kwargs.setdefault("gold", STARTING_GOLD)

        return cls(
            name=name,
            job_class=job_class,
            level=level,
            current_hp=max_hp,
            max_hp=max_hp,
            personality=personality,
            **values,
            **kwargs,
        )


# -----------------------------------------------------------------------------
# Enemies
# -----------------------------------------------------------------------------

class Enemy(BaseModel):
    """Ephemeral combat opponent, generated on demand."""
    name: str
    level: int = Field(default=1, ge=1)
    hp: int = Field(ge=1)
    strength: int = Field(default=1, ge=0)
    intelligence: int = Field(default=1, ge=0)
    agility: int = Field(default=1, ge=0)
    luck: int = Field(default=0, ge=0)
    vitality: int = Field(default=1, ge=0)
    tier: EnemyTier = EnemyTier.NORMAL
    region: str = "heartlands"
    xp_reward: int = Field(default=0, ge=0)
    gold_reward: int = Field(default=0, ge=0)


# -----------------------------------------------------------------------------
# Activity log
# -----------------------------------------------------------------------------

class ActivityRewards(BaseModel):
    xp: int = 0
    gold: int = 0
    items: list[Item] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.xp or self.gold or self.items)


class Activity(BaseModel):
    """Immutable record of something a character did."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    character_id: str
    timestamp: datetime = Field(default_factory=datetime.now)
    activity_type: ActivityType
    description: str
    rewards: ActivityRewards | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    is_major_event: bool = False


class SimulationSummary(BaseModel):
    """Counters accumulated over one offline simulation run."""
    total_combats: int = 0
    combats_won: int = 0
    combats_lost: int = 0
    flees: int = 0
    total_xp_gained: int = 0
    total_gold_gained: int = 0
    levels_gained: int = 0
    deaths: int = 0
    locations_discovered: list[str] = Field(default_factory=list)
    items_found: int = 0
    mission_clues: list[str] = Field(default_factory=list)  # Secondary missions (sm_NNN)
    mission_steps: list[str] = Field(default_factory=list)  # Principal mission steps
    major_events: list[str] = Field(default_factory=list)
    game_minutes_elapsed: int = 0
    activity_cap_reached: bool = False  # Runaway-loop guard fired

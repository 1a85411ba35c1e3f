"""State models for autonomous characters."""

from .schema import (
    Activity,
    ActivityRewards,
    ActivityType,
    Character,
    Enemy,
    EnemyTier,
    EngineMode,
    Item,
    ItemRarity,
    JobClass,
    PersonalityTraits,
    SimulationSummary,
    StatType,
    JOB_CLASS_STAT_WEIGHTS,
    MAX_LEVEL,
    SAFE_TOWN,
)
from .schemas import Decision, DecisionContext, DecisionType
from .store import ActivitySink, MemoryActivitySink

__all__ = [
    # Schema
    "Activity",
    "ActivityRewards",
    "ActivityType",
    "Character",
    "Enemy",
    "EnemyTier",
    "EngineMode",
    "Item",
    "ItemRarity",
    "JobClass",
    "PersonalityTraits",
    "SimulationSummary",
    "StatType",
    "JOB_CLASS_STAT_WEIGHTS",
    "MAX_LEVEL",
    "SAFE_TOWN",
    # Decisions
    "Decision",
    "DecisionContext",
    "DecisionType",
    # Storage
    "ActivitySink",
    "MemoryActivitySink",
]

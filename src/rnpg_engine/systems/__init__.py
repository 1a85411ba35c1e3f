"""
Game systems for autonomous characters.

Pure resolvers (combat, decisions, leveling) plus the interactive
executor that applies a decision to a character copy.
"""

from .bestiary import Bestiary
from .combat import (
    AttackResult,
    BatchCombatResult,
    CombatOutcome,
    Combatant,
    EncounterResult,
    PowerCombatResult,
    calculate_power,
    resolve_attack,
    resolve_batch_combat,
    resolve_encounter,
    resolve_power_combat,
)
from .decisions import decide, decide_offline, decision_duration, evaluate_decision_fit
from .executor import DecisionExecutor, DecisionOutcome, run_cycle
from .leveling import LevelUpReport, MAX_LEVEL, apply_level_ups, xp_for_level

__all__ = [
    "Bestiary",
    # Combat
    "AttackResult",
    "BatchCombatResult",
    "CombatOutcome",
    "Combatant",
    "EncounterResult",
    "PowerCombatResult",
    "calculate_power",
    "resolve_attack",
    "resolve_batch_combat",
    "resolve_encounter",
    "resolve_power_combat",
    # Decisions
    "decide",
    "decide_offline",
    "decision_duration",
    "evaluate_decision_fit",
    "DecisionExecutor",
    "DecisionOutcome",
    "run_cycle",
    # Progression
    "LevelUpReport",
    "MAX_LEVEL",
    "apply_level_ups",
    "xp_for_level",
]

"""
Autonomous RPG core: d21 dice, combat, decisions, leveling and
offline time-compression simulation.
"""

__version__ = "0.1.0"

from .config import DEFAULT_CONFIG, EngineConfig, load_config, save_config
from .errors import EngineError, SimulationError
from .simulation import OfflineSimulator, SimulationResult, compute_game_hours
from .state import Character, Decision, DecisionContext, EngineMode, PersonalityTraits
from .systems import (
    DecisionExecutor,
    apply_level_ups,
    decide,
    decide_offline,
    resolve_attack,
    resolve_batch_combat,
    resolve_encounter,
    resolve_power_combat,
    xp_for_level,
)

__all__ = [
    "DEFAULT_CONFIG",
    "EngineConfig",
    "load_config",
    "save_config",
    "EngineError",
    "SimulationError",
    "OfflineSimulator",
    "SimulationResult",
    "compute_game_hours",
    "Character",
    "Decision",
    "DecisionContext",
    "EngineMode",
    "PersonalityTraits",
    "DecisionExecutor",
    "apply_level_ups",
    "decide",
    "decide_offline",
    "resolve_attack",
    "resolve_batch_combat",
    "resolve_encounter",
    "resolve_power_combat",
    "xp_for_level",
]

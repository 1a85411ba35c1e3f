"""
Engine configuration persistence.

Tuning knobs for safety caps and penalties, stored in a JSON file.
Missing keys fall back to defaults.
"""

import json
import logging
from pathlib import Path
from typing import TypedDict

from .state.schema import SAFE_TOWN


logger = logging.getLogger(__name__)


class EngineConfig(TypedDict, total=False):
    """Engine configuration."""
    max_activities: int  # Runaway-loop guard for offline simulation
    max_combat_rounds: int  # Stalemate guard for turn-based encounters
    safe_location: str  # Respawn point and full-heal town
    death_gold_penalty: float  # Fraction of gold lost on an offline death
    death_xp_penalty: float  # Fraction of experience lost on an offline death
    inn_heal_cost: int  # Gold for a full heal at an inn
    compression_ratio: float  # Game hours per real hour
    max_game_hours: float  # Longest absence that gets simulated


DEFAULT_CONFIG: EngineConfig = {
    "max_activities": 1000,
    "max_combat_rounds": 50,
    "safe_location": SAFE_TOWN,
    "death_gold_penalty": 0.1,
    "death_xp_penalty": 0.05,
    "inn_heal_cost": 10,
    "compression_ratio": 6.0,
    "max_game_hours": 1008.0,  # 7 days
}


def get_config_path(config_dir: Path | str = ".") -> Path:
    """Get path to config file."""
    return Path(config_dir) / ".rnpg_engine.json"


def load_config(config_dir: Path | str = ".") -> EngineConfig:
    """Load config from file, or return defaults if not found."""
    path = get_config_path(config_dir)

    if not path.exists():
        return DEFAULT_CONFIG.copy()

    try:
        with open(path, "r", encoding="utf-8") as f:
            saved = json.load(f)
        # Merge with defaults to handle missing keys
        config = DEFAULT_CONFIG.copy()
        config.update({k: v for k, v in saved.items() if k in DEFAULT_CONFIG})
        return config
    except (json.JSONDecodeError, OSError, AttributeError) as e:
        logger.warning(f"Ignoring unreadable config at {path}: {e}")
        return DEFAULT_CONFIG.copy()


def save_config(config: EngineConfig, config_dir: Path | str = ".") -> bool:
    """Save config to file. Returns True on success."""
    path = get_config_path(config_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        return True
    except OSError as e:
        logger.warning(f"Could not save config to {path}: {e}")
        return False


def resolve_config(overrides: EngineConfig | None = None) -> EngineConfig:
    """Defaults with the given keys replaced."""
    config = DEFAULT_CONFIG.copy()
    if overrides:
        config.update(overrides)
    return config

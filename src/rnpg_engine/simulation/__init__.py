"""Offline time-compression simulation."""

from .runner import OfflineSimulator, SimulationResult, compute_game_hours, rest_healing

__all__ = [
    "OfflineSimulator",
    "SimulationResult",
    "compute_game_hours",
    "rest_healing",
]

"""Engine error types."""


class EngineError(Exception):
    """Base error for the engine."""
    pass


class SimulationError(EngineError):
    """Raised when an offline simulation is asked for an invalid budget."""

    def __init__(self, game_hours: float):
        self.game_hours = game_hours
        super().__init__(
            f"Game-hour budget must be a finite, non-negative number (got {game_hours!r})"
        )

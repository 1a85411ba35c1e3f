"""
Random sources for the engine.

Every stochastic function takes an explicit ``rng`` argument. There is no
module-level random state; callers decide how randomness is seeded.
"""

import random
from typing import Any, Protocol, Sequence, runtime_checkable


@runtime_checkable
class RandomSource(Protocol):
    """
    Minimal random interface used by the engine.

    ``random.Random`` satisfies it, so does ``random.SystemRandom``.
    Tests substitute seeded or scripted implementations.
    """

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        ...

    def randint(self, a: int, b: int) -> int:
        """Uniform integer in [a, b], both inclusive."""
        ...

    def uniform(self, a: float, b: float) -> float:
        """Uniform float between a and b."""
        ...

    def choice(self, seq: Sequence[Any]) -> Any:
        """Pick one element of a non-empty sequence."""
        ...


def make_rng(seed: int | None = None) -> random.Random:
    """Build a PRNG. Same seed, same sequence."""
    return random.Random(seed)

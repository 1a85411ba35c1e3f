"""
Schema contracts for the autonomy loop.

    DecisionContext → Decision → Activity

- DecisionContext: what the character can see this tick (read-only)
- Decision: what the engine chose (tag + payload, never persisted)
- Activity: what actually happened (see state.schema)
"""

from .decision import Decision, DecisionContext, DecisionType

__all__ = [
    "Decision",
    "DecisionContext",
    "DecisionType",
]

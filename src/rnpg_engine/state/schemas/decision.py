"""
Decision schemas for the autonomy loop.

A Decision is a tagged union: DecisionType is the tag, the remaining
fields are the payload for that tag. Decisions are produced fresh every
cycle from a read-only DecisionContext, consumed immediately by an
executor, and never persisted (only the resulting Activity is).

Interactive tags: rest, heal_at_inn, explore, combat, flee, accept_quest,
continue_quest, shop, idle.
Offline tags: rest, explore, combat, flee, return_to_town.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..schema import Character, Enemy


class DecisionType(str, Enum):
    REST = "rest"
    HEAL_AT_INN = "heal_at_inn"
    EXPLORE = "explore"
    COMBAT = "combat"
    FLEE = "flee"
    ACCEPT_QUEST = "accept_quest"
    CONTINUE_QUEST = "continue_quest"
    SHOP = "shop"
    IDLE = "idle"
    RETURN_TO_TOWN = "return_to_town"


class Decision(BaseModel):
    """One discrete action chosen by the decision engine."""
    model_config = ConfigDict(frozen=True)

    decision_type: DecisionType
    reason: str = ""
    location: str | None = None  # Target for rest/inn/explore/flee/shop/return
    cost: int = 0  # Gold, for paid actions
    enemy: Enemy | None = None  # Concrete opponent (offline)
    enemy_label: str | None = None  # "Level 3 Monster" (interactive)
    difficulty: int | None = None  # Estimated enemy level
    quest_id: str | None = None
    quest_name: str | None = None
    item_type: str | None = None  # What a shop visit is for

    @classmethod
    def rest(cls, location: str, reason: str = "") -> "Decision":
        return cls(decision_type=DecisionType.REST, location=location, reason=reason)

    @classmethod
    def heal_at_inn(cls, location: str, cost: int) -> "Decision":
        return cls(decision_type=DecisionType.HEAL_AT_INN, location=location, cost=cost)

    @classmethod
    def explore(cls, location: str) -> "Decision":
        return cls(decision_type=DecisionType.EXPLORE, location=location)

    @classmethod
    def combat(
        cls,
        enemy: Enemy | None = None,
        enemy_label: str | None = None,
        difficulty: int | None = None,
    ) -> "Decision":
        if enemy is not None:
            enemy_label = enemy_label or enemy.name
            difficulty = difficulty if difficulty is not None else enemy.level
        return cls(
            decision_type=DecisionType.COMBAT,
            enemy=enemy,
            enemy_label=enemy_label,
            difficulty=difficulty,
        )

    @classmethod
    def flee(cls, reason: str, location: str | None = None) -> "Decision":
        return cls(decision_type=DecisionType.FLEE, reason=reason, location=location)

    @classmethod
    def accept_quest(cls, quest_id: str, quest_name: str) -> "Decision":
        return cls(decision_type=DecisionType.ACCEPT_QUEST, quest_id=quest_id, quest_name=quest_name)

    @classmethod
    def continue_quest(cls, quest_id: str) -> "Decision":
        return cls(decision_type=DecisionType.CONTINUE_QUEST, quest_id=quest_id)

    @classmethod
    def shop(cls, location: str, item_type: str) -> "Decision":
        return cls(decision_type=DecisionType.SHOP, location=location, item_type=item_type)

    @classmethod
    def idle(cls) -> "Decision":
        return cls(decision_type=DecisionType.IDLE)

    @classmethod
    def return_to_town(cls, location: str, reason: str = "") -> "Decision":
        return cls(decision_type=DecisionType.RETURN_TO_TOWN, location=location, reason=reason)


class DecisionContext(BaseModel):
    """
    Read-only snapshot of the character's surroundings.

    Built by the caller each tick; the decision engine never mutates it.
    """
    current_location: str
    current_hp: int = Field(ge=0)
    max_hp: int = Field(ge=1)
    gold: int = Field(ge=0)
    level: int = Field(ge=1)
    has_active_quest: bool = False
    active_quest_id: str | None = None
    nearby_locations: list[str] = Field(default_factory=list)
    nearby_characters: list[str] = Field(default_factory=list)
    can_rest: bool = True
    has_inn_access: bool = False
    inn_heal_cost: int = Field(default=10, ge=0)

    @property
    def health_fraction(self) -> float:
        return self.current_hp / self.max_hp

    def can_afford(self, cost: int) -> bool:
        return self.gold >= cost

    @classmethod
    def from_character(cls, character: Character, **overrides) -> "DecisionContext":
        """Context seeded from a character snapshot; keyword args override."""
        values = {
            "current_location": character.current_location,
            "current_hp": character.current_hp,
            "max_hp": character.max_hp,
            "gold": character.gold,
            "level": character.level,
        }
        values.update(overrides)
        return cls(**values)

"""
Regional enemy table.

Enemies are generated on demand: a template is picked by region and level,
then scaled to the requested level. Templates live in data/bestiary.json.
"""

from __future__ import annotations

import json
from pathlib import Path

from ..state.schema import Enemy, EnemyTier
from ..tools.rng import RandomSource


# Default bestiary data path
BESTIARY_DATA_PATH = Path(__file__).parent.parent / "data" / "bestiary.json"

DEFAULT_REGION = "heartlands"

# Templates up to this many levels above the character are fair game
LEVEL_HEADROOM = 3

# HP scales faster than the rest of the stat block
HP_SCALE_BONUS = 1.2


class Bestiary:
    """
    Level-indexed enemy source.

    Read-only after load, so one instance can serve any number of
    simulations.
    """

    def __init__(self, data_path: Path | None = None):
        self._data_path = data_path or BESTIARY_DATA_PATH
        self._regions_data: dict | None = None

    def _load_regions(self) -> dict:
        """Load regions data from JSON (cached)."""
        if self._regions_data is None:
            with open(self._data_path, "r", encoding="utf-8") as f:
                self._regions_data = json.load(f).get("regions", {})
        return self._regions_data

    @property
    def regions(self) -> list[str]:
        return list(self._load_regions())

    def region_for_location(self, location: str) -> str:
        """Map a location key to its region by keyword, defaulting to the Heartlands."""
        location_lower = location.lower()
        for region_id, region in self._load_regions().items():
            if any(keyword in location_lower for keyword in region.get("keywords", [])):
                return region_id
        return DEFAULT_REGION

    def locations(self, region: str = DEFAULT_REGION) -> list[str]:
        """Known location keys in a region."""
        return list(self._load_regions().get(region, {}).get("locations", []))

    def templates(self, region: str) -> list[dict]:
        return list(self._load_regions().get(region, {}).get("enemies", []))

    def enemy_for_level(self, level: int, location: str, rng: RandomSource) -> Enemy:
        """
        Pick and scale an enemy for a character level at a location.

        Candidates are regional templates no more than LEVEL_HEADROOM levels
        above the character (Heartlands when the region has none). The
        closest base level wins; ties are broken at random.
        """
        region = self.region_for_location(location)
        candidates = [
            t for t in self.templates(region)
            if t["base_level"] <= level + LEVEL_HEADROOM
        ]
        if not candidates:
            region = DEFAULT_REGION
            candidates = self.templates(DEFAULT_REGION)

        best_distance = min(abs(t["base_level"] - level) for t in candidates)
        closest = [t for t in candidates if abs(t["base_level"] - level) == best_distance]
        template = closest[0] if len(closest) == 1 else rng.choice(closest)

        return scale_enemy(template, level, region, rng)

    def get_enemy(self, name: str, level: int, rng: RandomSource) -> Enemy | None:
        """Look up a template by name (case-insensitive) and scale it."""
        for region_id in self._load_regions():
            for template in self.templates(region_id):
                if template["name"].lower() == name.lower():
                    return scale_enemy(template, level, region_id, rng)
        return None


def scale_enemy(template: dict, level: int, region: str, rng: RandomSource) -> Enemy:
    """
    Scale a template to a target level.

    Stats scale by level / base_level, HP an extra 20% on top, luck not at
    all. Rewards are rolled here so each spawn yields slightly different loot.
    """
    level = max(1, level)
    factor = level / template["base_level"]

    return Enemy(
        name=template["name"],
        level=level,
        hp=max(1, int(template["hp"] * factor * HP_SCALE_BONUS)),
        strength=int(template["strength"] * factor),
        intelligence=int(template["intelligence"] * factor),
        agility=int(template["agility"] * factor),
        luck=template["luck"],
        vitality=int(template["vitality"] * factor),
        tier=EnemyTier(template.get("tier", EnemyTier.NORMAL.value)),
        region=region,
        xp_reward=level * 10 + rng.randint(0, 19),
        gold_reward=level * 5 + rng.randint(0, 9),
    )

#!/usr/bin/env python3
"""
Offline simulation runner.

Fast-forwards a freshly created character through an absence and prints
the summary and major events. Handy for eyeballing balance changes.

Usage:
    python scripts/simulate_offline.py --job-class warrior --hours 24
    python scripts/simulate_offline.py --real-hours 8 --seed 7
    python scripts/simulate_offline.py --hours 72 --json   # JSON output
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import timedelta

from rich.console import Console
from rich.table import Table

from rnpg_engine import (
    Character,
    OfflineSimulator,
    SimulationResult,
    compute_game_hours,
    load_config,
)
from rnpg_engine.state import JobClass, StatType
from rnpg_engine.tools import make_rng


# ─────────────────────────────────────────────────────────────────────────────
# Output Formatters
# ─────────────────────────────────────────────────────────────────────────────


def summary_table(result: SimulationResult, game_hours: float) -> Table:
    summary = result.summary
    hero = result.character

    table = Table(title=f"{hero.name} after {game_hours:.1f} game hours")
    table.add_column("Metric")
    table.add_column("Value", justify="right")

    rows = [
        ("Level", str(hero.level)),
        ("HP", f"{hero.current_hp}/{hero.max_hp}"),
        ("Gold", str(hero.gold)),
        ("Location", hero.current_location),
        ("Combats won / total", f"{summary.combats_won}/{summary.total_combats}"),
        ("Flees", str(summary.flees)),
        ("Deaths", str(summary.deaths)),
        ("XP gained", str(summary.total_xp_gained)),
        ("Gold gained", str(summary.total_gold_gained)),
        ("Levels gained", str(summary.levels_gained)),
        ("Items found", str(summary.items_found)),
        ("Locations discovered", str(len(summary.locations_discovered))),
        ("Mission clues", ", ".join(summary.mission_clues) or "-"),
        ("Mission steps", ", ".join(summary.mission_steps) or "-"),
        ("Game minutes", str(summary.game_minutes_elapsed)),
    ]
    if summary.activity_cap_reached:
        rows.append(("Activity cap", "[red]reached[/red]"))

    for metric, value in rows:
        table.add_row(metric, value)
    return table


def events_table(result: SimulationResult) -> Table:
    table = Table(title="Major events")
    table.add_column("Time", style="dim")
    table.add_column("Type")
    table.add_column("Description")

    for activity in result.major_activities:
        table.add_row(
            activity.timestamp.strftime("%d %H:%M"),
            activity.activity_type.value,
            activity.description,
        )
    return table


# ─────────────────────────────────────────────────────────────────────────────
# CLI Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def main():
    parser = argparse.ArgumentParser(
        description="Simulate an offline absence for a new character"
    )
    parser.add_argument(
        "--job-class",
        choices=[job.value for job in JobClass],
        default=JobClass.WARRIOR.value,
    )
    parser.add_argument("--name", default="Wanderer")
    parser.add_argument("--level", type=int, default=1)
    budget = parser.add_mutually_exclusive_group()
    budget.add_argument("--hours", type=float, help="Game hours to simulate")
    budget.add_argument("--real-hours", type=float, help="Real hours away (compressed)")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config-dir", default=".", help="Directory holding .rnpg_engine.json")
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config_dir)
    if args.real_hours is not None:
        game_hours = compute_game_hours(
            timedelta(hours=args.real_hours),
            config["compression_ratio"],
            config["max_game_hours"],
        )
    else:
        game_hours = args.hours if args.hours is not None else 24.0

    rng = make_rng(args.seed)
    job_class = JobClass(args.job_class)
    stats = {stat: rng.randint(3, 10) for stat in StatType}
    character = Character.create(args.name, job_class, stats=stats, rng=rng, level=args.level)

    result = OfflineSimulator(rng, config=config).simulate(character, game_hours)

    if args.json:
        print(json.dumps({
            "character": result.character.model_dump(mode="json"),
            "summary": result.summary.model_dump(mode="json"),
        }, indent=2))
        sys.exit(0)

    console = Console()
    console.print(summary_table(result, game_hours))
    if result.major_activities:
        console.print(events_table(result))


if __name__ == "__main__":
    main()

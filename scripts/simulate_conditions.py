"""
scripts/simulate_conditions.py

Dry-run every simulation condition against the stored monitored areas and
print how the overlay would distribute risk, without touching the store.

Usage:
    python -m scripts.simulate_conditions
    python -m scripts.simulate_conditions --db-url sqlite:///data/floodwatch.sqlite3 --json
"""

import argparse
import asyncio
import json
from collections import Counter
from typing import Dict, List

from backend.floodwatch.db_models import DATABASE_URL, make_session_factory
from backend.floodwatch.notifications import is_high_risk
from backend.floodwatch.schemas import MonitoredArea, SimulationCondition
from backend.floodwatch.simulation import SimulationEngine
from backend.floodwatch.store import PersistenceStore


def summarize_conditions(areas: List[MonitoredArea]) -> Dict[str, dict]:
    """Per condition: count of areas at each simulated level and in the high-risk alert."""
    summary = {}
    for condition in SimulationCondition:
        copies = [a.model_copy(deep=True) for a in areas]
        SimulationEngine(realtime_enabled=False).apply_condition(condition, copies, manual=True)
        levels = Counter(a.simulated_flood_risk.value for a in copies)
        summary[condition.value] = {
            "low": levels.get("low", 0),
            "medium": levels.get("medium", 0),
            "high": levels.get("high", 0),
            "alerted": sum(1 for a in copies if is_high_risk(a)),
        }
    return summary


def parse_args():
    parser = argparse.ArgumentParser(description="Preview simulation outcomes for stored areas")
    parser.add_argument("--db-url", default=DATABASE_URL)
    parser.add_argument("--json", action="store_true", help="print JSON instead of a table")
    return parser.parse_args()


def main():
    args = parse_args()
    store = PersistenceStore(make_session_factory(args.db_url))
    areas = asyncio.run(store.load_areas())
    summary = summarize_conditions(areas)

    if args.json:
        print(json.dumps({"areas": len(areas), "conditions": summary}, indent=2))
        return

    print(f"[simulate_conditions] {len(areas)} monitored areas")
    print(f"{'condition':<14}{'low':>6}{'medium':>8}{'high':>6}{'alerted':>9}")
    for name, row in summary.items():
        print(f"{name:<14}{row['low']:>6}{row['medium']:>8}{row['high']:>6}{row['alerted']:>9}")


if __name__ == "__main__":
    main()

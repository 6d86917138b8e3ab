"""
Drift Comparator — pure function, no side effects.

Computes a structured diff between two world snapshots, e.g. before and
after a turn. A snapshot maps nation id -> record dict (NationRecord.to_dict()).
"""

from __future__ import annotations

from typing import Dict, List, Set

from nation_kernel.invariants import MalformedRecordError

from .record_store import RecordStore, StoreReadError


def snapshot_world(store: RecordStore) -> Dict[str, dict]:
    """Read every decodable record into a plain dict snapshot."""
    snapshot: Dict[str, dict] = {}
    for nation_id in sorted(store.list()):
        try:
            record = store.read(nation_id)
        except (StoreReadError, MalformedRecordError):
            continue
        if record is not None:
            snapshot[nation_id] = record.to_dict()
    return snapshot


def compare_worlds(world_a: Dict[str, dict], world_b: Dict[str, dict]) -> dict:
    """
    Compare two world snapshots and return a structured diff.

    Returns dict with:
        added_nations, removed_nations, nations (per-id stat deltas),
        total_population_delta, total_gdp_delta, mean_hdi_a, mean_hdi_b,
        mean_hdi_delta
    """
    ids_a: Set[str] = set(world_a)
    ids_b: Set[str] = set(world_b)

    per_nation: Dict[str, dict] = {}
    for nid in sorted(ids_a & ids_b):
        stats_a = world_a[nid].get("stats", {})
        stats_b = world_b[nid].get("stats", {})
        per_nation[nid] = {
            "population_delta": stats_b.get("population", 0) - stats_a.get("population", 0),
            "gdp_delta": stats_b.get("gdp", 0) - stats_a.get("gdp", 0),
            "hdi_delta": round(stats_b.get("hdi", 0.0) - stats_a.get("hdi", 0.0), 6),
        }

    mean_a = _mean_hdi(world_a)
    mean_b = _mean_hdi(world_b)

    return {
        "added_nations": sorted(ids_b - ids_a),
        "removed_nations": sorted(ids_a - ids_b),
        "nations": per_nation,
        "total_population_delta": _total(world_b, "population") - _total(world_a, "population"),
        "total_gdp_delta": _total(world_b, "gdp") - _total(world_a, "gdp"),
        "mean_hdi_a": round(mean_a, 6),
        "mean_hdi_b": round(mean_b, 6),
        "mean_hdi_delta": round(mean_b - mean_a, 6),
    }


def _total(world: Dict[str, dict], key: str):
    return sum(r.get("stats", {}).get(key, 0) for r in world.values())


def _mean_hdi(world: Dict[str, dict]) -> float:
    values: List[float] = [r.get("stats", {}).get("hdi", 0.0) for r in world.values()]
    if not values:
        return 0.0
    return sum(values) / len(values)

"""
Nation Kernel — Record Validation

Hard-fail validation. Every check raises MalformedRecordError on failure.
A malformed record fails on its own; it never takes a batch down with it.
"""

from __future__ import annotations

import math
from typing import Any

from .domain_types import NationRecord


class MalformedRecordError(Exception):
    """Raised when a nation record cannot be advanced."""

    def __init__(self, field: str, detail: str, nation_id: str = "") -> None:
        self.field = field
        self.detail = detail
        self.nation_id = nation_id
        prefix = f"{nation_id}: " if nation_id else ""
        super().__init__(f"[MALFORMED:{field}] {prefix}{detail}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate_record_dict(data: Any) -> None:
    """Validate the raw JSON shape of a nation record."""
    if not isinstance(data, dict):
        raise MalformedRecordError(
            "record", f"expected a JSON object, got {type(data).__name__}"
        )
    nation_id = data.get("id")
    if not isinstance(nation_id, str) or not nation_id:
        raise MalformedRecordError("id", f"missing or empty id: {nation_id!r}")

    stats = data.get("stats")
    if not isinstance(stats, dict):
        raise MalformedRecordError("stats", "missing stats object", nation_id)

    for key in ("population", "gdp", "hdi"):
        if key not in stats:
            raise MalformedRecordError(key, "missing", nation_id)
        _check_number(key, stats[key], nation_id)

    population = stats["population"]
    if isinstance(population, float) and not population.is_integer():
        raise MalformedRecordError(
            "population", f"must be an integer, got {population!r}", nation_id
        )
    _check_stats(population, stats["gdp"], stats["hdi"], nation_id)


def validate_record(record: NationRecord) -> None:
    """Validate a NationRecord before it is advanced."""
    if not isinstance(record.id, str) or not record.id:
        raise MalformedRecordError("id", f"missing or empty id: {record.id!r}")
    stats = record.stats
    for key in ("population", "gdp", "hdi"):
        _check_number(key, getattr(stats, key), record.id)
    _check_stats(stats.population, stats.gdp, stats.hdi, record.id)


# ---------------------------------------------------------------------------
# Individual checks (private)
# ---------------------------------------------------------------------------

def _check_number(field: str, value: Any, nation_id: str) -> None:
    # bool is an int subclass; true/false in a stats field is a data error.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedRecordError(
            field, f"must be numeric, got {value!r}", nation_id
        )
    if isinstance(value, float) and not math.isfinite(value):
        raise MalformedRecordError(field, f"must be finite, got {value!r}", nation_id)


def _check_stats(population: Any, gdp: Any, hdi: Any, nation_id: str) -> None:
    if population <= 0:
        raise MalformedRecordError(
            "population", f"must be > 0, got {population!r}", nation_id
        )
    if gdp < 0:
        raise MalformedRecordError("gdp", f"must be >= 0, got {gdp!r}", nation_id)
    if not 0.0 <= hdi <= 1.0:
        raise MalformedRecordError(
            "hdi", f"must lie in [0, 1], got {hdi!r}", nation_id
        )

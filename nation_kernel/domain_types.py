"""
Nation Kernel — Core Domain Types

Pure data. No behaviour, no growth logic.

────────────────────────────────────────────────
DOMAIN GLOSSARY
────────────────────────────────────────────────

Nation record:
    Persisted state unit for one simulated country.

Turn:
    One discrete application of the growth model to every nation record.

HDI:
    Bounded [0,1] wellbeing score recomputed each turn from GDP per
    capita and governance penalties.

Governance modifier:
    Per-government-type multipliers on baseline GDP and population growth.

────────────────────────────────────────────────
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Union

Number = Union[int, float]

# Top-level JSON keys owned by NationRecord. Everything else is payload.
RECORD_KEYS = ("id", "name", "capital", "governmentType", "stats")
STATS_KEYS = ("population", "gdp", "hdi")


@dataclass(frozen=True)
class GovernanceModifier:
    """Growth multipliers for one government type."""

    gdp_mod: float = 1.0
    pop_mod: float = 1.0


@dataclass(frozen=True)
class NationStats:
    """The three statistics a turn recomputes."""

    population: int
    gdp: Number
    hdi: float
    # Unknown keys found inside "stats", carried through untouched.
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        out = copy.deepcopy(dict(self.extra))
        out["population"] = self.population
        out["gdp"] = self.gdp
        out["hdi"] = self.hdi
        return out


@dataclass(frozen=True)
class NationRecord:
    """
    One nation as stored.

    `id` is assigned once at founding and never regenerated.
    `extra` holds every other JSON key (flag URL, motto, owner handle,
    founding timestamp, law history, ...) verbatim.
    """

    id: str
    name: str
    capital: str
    government_type: str
    stats: NationStats
    extra: Mapping[str, Any] = field(default_factory=dict)

    def with_stats(self, stats: NationStats) -> "NationRecord":
        """Return a copy with only `stats` replaced."""
        return replace(self, stats=stats)

    def to_dict(self) -> dict:
        """Serialise to the external JSON shape."""
        out = copy.deepcopy(dict(self.extra))
        out["id"] = self.id
        out["name"] = self.name
        out["capital"] = self.capital
        out["governmentType"] = self.government_type
        out["stats"] = self.stats.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: Any) -> "NationRecord":
        """Build a validated record from its JSON shape."""
        from .invariants import validate_record_dict

        validate_record_dict(data)
        raw_stats = data["stats"]
        stats = NationStats(
            population=_as_int(raw_stats["population"]),
            gdp=raw_stats["gdp"],
            hdi=float(raw_stats["hdi"]),
            extra={
                k: copy.deepcopy(v)
                for k, v in raw_stats.items()
                if k not in STATS_KEYS
            },
        )
        return cls(
            id=data["id"],
            name=str(data.get("name", "")),
            capital=str(data.get("capital", "")),
            government_type=str(data.get("governmentType", "")),
            stats=stats,
            extra={
                k: copy.deepcopy(v)
                for k, v in data.items()
                if k not in RECORD_KEYS
            },
        )


def _as_int(value: Number) -> int:
    """Integral floats (10000000.0) come back from JSON in some stores."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value  # type: ignore[return-value]


@dataclass(frozen=True)
class TurnFailure:
    """One record that could not be advanced during a turn."""

    id: str
    reason: str

    def to_dict(self) -> dict:
        return {"id": self.id, "reason": self.reason}


@dataclass(frozen=True)
class TurnSummary:
    """
    Structured, immutable outcome of one global turn.

    processed: records advanced and written back.
    skipped:   listed ids that no longer resolve to a record.
    failed:    per-record failures, ordered by nation id.
    aborted:   True when the store could not be enumerated.
    """

    processed: int = 0
    skipped: int = 0
    failed: tuple = ()
    skipped_ids: tuple = ()
    aborted: bool = False
    abort_reason: Optional[str] = None
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.aborted and not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": [f.to_dict() for f in self.failed],
            "skipped_ids": list(self.skipped_ids),
            "aborted": self.aborted,
            "abort_reason": self.abort_reason,
            "elapsed_ms": self.elapsed_ms,
        }

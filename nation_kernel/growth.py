"""
Nation Kernel — Growth Model

Pure functions. No I/O, no randomness, no mutation of inputs.

One turn for one nation:

    pop_rate  = base_rate * pop_mod + hdi * pop_hdi_weight
    gdp_rate  = base_rate * gdp_mod + hdi * gdp_hdi_weight
    pop'      = max(0, round(pop * (1 + pop_rate)))
    gdp'      = max(0, round(gdp * (1 + gdp_rate)))
    hdi'      = clamp((0.5 + 0.5 * tanh((gdp' / pop') / hdi_scale)) * penalty, 0, 1)

GDP per capita is taken as 0 when pop' is 0.
"""

from __future__ import annotations

import math
from typing import Tuple

from .constants import DEFAULT_GROWTH_CONFIG, GrowthConfig
from .domain_types import NationRecord, NationStats, Number
from .invariants import validate_record


def growth_rates(
    government_type: str,
    hdi: float,
    config: GrowthConfig = DEFAULT_GROWTH_CONFIG,
) -> Tuple[float, float]:
    """Return (population growth rate, GDP growth rate)."""
    mods = config.modifiers_for(government_type)
    pop_rate = config.base_rate * mods.pop_mod + hdi * config.pop_hdi_weight
    gdp_rate = config.base_rate * mods.gdp_mod + hdi * config.gdp_hdi_weight
    return pop_rate, gdp_rate


def hdi_from_gdp_per_capita(
    gdp_per_capita: float,
    government_type: str,
    config: GrowthConfig = DEFAULT_GROWTH_CONFIG,
) -> float:
    """Saturating HDI curve, governance penalty, then clamp to [0, 1]."""
    raw = 0.5 + 0.5 * math.tanh(gdp_per_capita / config.hdi_scale)
    raw *= config.penalty_for(government_type)
    return min(1.0, max(0.0, raw))


def compute_next_stats(
    stats: NationStats,
    government_type: str,
    config: GrowthConfig = DEFAULT_GROWTH_CONFIG,
) -> NationStats:
    """
    Total over any non-negative snapshot, including population 0.
    Never raises for an unknown government type.
    """
    pop_rate, gdp_rate = growth_rates(government_type, stats.hdi, config)

    new_population = _round_non_negative(stats.population * (1 + pop_rate))
    new_gdp = _round_non_negative(stats.gdp * (1 + gdp_rate))

    gdp_per_capita = new_gdp / new_population if new_population else 0.0
    new_hdi = hdi_from_gdp_per_capita(gdp_per_capita, government_type, config)

    return NationStats(
        population=new_population,
        gdp=new_gdp,
        hdi=new_hdi,
        extra=stats.extra,
    )


def advance(
    record: NationRecord,
    config: GrowthConfig = DEFAULT_GROWTH_CONFIG,
) -> NationRecord:
    """
    Advance one nation by one turn.

    Raises MalformedRecordError when the record cannot be advanced
    (missing or non-numeric stats, population <= 0, hdi outside [0, 1]).
    Every field other than `stats` is copied unchanged.
    """
    validate_record(record)
    new_stats = compute_next_stats(record.stats, record.government_type, config)
    return record.with_stats(new_stats)


def _round_non_negative(value: Number) -> int:
    """Round half up, floor at zero."""
    if value <= 0:
        return 0
    return int(math.floor(value + 0.5))

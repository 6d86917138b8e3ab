"""
Observability — in-process world metrics.

No external dependencies. Reads every record once through the store.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from nation_kernel.invariants import MalformedRecordError

from .record_store import RecordStore, StoreReadError


@dataclass(frozen=True)
class WorldMetrics:
    """Aggregate statistics across every readable nation."""

    nation_count: int
    total_population: int
    total_gdp: int
    mean_hdi: float
    unreadable_count: int

    def to_dict(self) -> dict:
        return asdict(self)


def collect_world_metrics(store: RecordStore) -> WorldMetrics:
    """
    Aggregate population, GDP and HDI over the whole store.

    Missing records are ignored; records that fail to read or decode are
    counted in unreadable_count instead of aborting the collection.
    """
    count = 0
    unreadable = 0
    population = 0
    gdp = 0
    hdi_sum = 0.0

    for nation_id in sorted(store.list()):
        try:
            record = store.read(nation_id)
        except (StoreReadError, MalformedRecordError):
            unreadable += 1
            continue
        if record is None:
            continue
        count += 1
        population += record.stats.population
        gdp += record.stats.gdp
        hdi_sum += record.stats.hdi

    return WorldMetrics(
        nation_count=count,
        total_population=population,
        total_gdp=int(gdp),
        mean_hdi=round(hdi_sum / count, 6) if count else 0.0,
        unreadable_count=unreadable,
    )

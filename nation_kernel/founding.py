"""
Nation Kernel — Founding

Builds the initial record for a new nation: derived id, baseline
statistics, founding timestamp. Persisting it is the caller's job.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .constants import BASELINE_GDP, BASELINE_HDI, BASELINE_POPULATION
from .domain_types import NationRecord, NationStats
from .identity import derive_nation_id


def found_nation(
    name: str,
    capital: str,
    government_type: str,
    founder: str = "",
    motto: str = "",
    flag_url: str = "",
    founded_at: Optional[datetime] = None,
) -> NationRecord:
    """Create a fresh NationRecord with baseline statistics."""
    name = name.strip()
    capital = capital.strip()
    if not name or not capital:
        raise ValueError("Nation name and capital are required")

    extra: Dict[str, Any] = {
        "founder": founder.strip(),
        "foundedAt": (founded_at or datetime.now(timezone.utc)).isoformat(),
        "motto": motto.strip(),
        "laws": [],
    }
    if flag_url:
        extra["flagUrl"] = flag_url.strip()

    return NationRecord(
        id=derive_nation_id(name),
        name=name,
        capital=capital,
        government_type=government_type.strip(),
        stats=NationStats(
            population=BASELINE_POPULATION,
            gdp=BASELINE_GDP,
            hdi=BASELINE_HDI,
        ),
        extra=extra,
    )

"""
Nation Kernel
Deterministic, pure growth model for nation records.
No I/O: storage and orchestration live in nation_runtime.
"""

from .domain_types import (
    GovernanceModifier,
    NationRecord,
    NationStats,
    TurnFailure,
    TurnSummary,
)
from .constants import (
    BASE_RATE,
    DEFAULT_GROWTH_CONFIG,
    GDP_HDI_WEIGHT,
    GOVERNMENT_MODIFIERS,
    HDI_PENALTIES,
    HDI_SCALE,
    POP_HDI_WEIGHT,
    GrowthConfig,
)
from .invariants import MalformedRecordError, validate_record, validate_record_dict
from .growth import advance, compute_next_stats, growth_rates, hdi_from_gdp_per_capita
from .identity import derive_nation_id, is_valid_nation_id
from .founding import found_nation
from .codec import decode_blob, decode_record, encode_blob, encode_record

__all__ = [
    "GovernanceModifier",
    "NationRecord",
    "NationStats",
    "TurnFailure",
    "TurnSummary",
    "BASE_RATE",
    "DEFAULT_GROWTH_CONFIG",
    "GDP_HDI_WEIGHT",
    "GOVERNMENT_MODIFIERS",
    "HDI_PENALTIES",
    "HDI_SCALE",
    "POP_HDI_WEIGHT",
    "GrowthConfig",
    "MalformedRecordError",
    "validate_record",
    "validate_record_dict",
    "advance",
    "compute_next_stats",
    "growth_rates",
    "hdi_from_gdp_per_capita",
    "derive_nation_id",
    "is_valid_nation_id",
    "found_nation",
    "decode_blob",
    "decode_record",
    "encode_blob",
    "encode_record",
]

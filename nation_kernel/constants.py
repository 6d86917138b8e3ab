"""
Nation Kernel — Growth Constants (Default Values)

All magic numbers live here as module-level defaults.
Runtime values are carried by GrowthConfig, which is passed explicitly
into the growth model so tests can override any of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping

from .domain_types import GovernanceModifier

# --- Growth rates ---
BASE_RATE: float = 0.01
POP_HDI_WEIGHT: float = 0.005
GDP_HDI_WEIGHT: float = 0.02

# --- HDI curve ---
HDI_SCALE: float = 50000.0

# --- Governance ---
NEUTRAL_MODIFIER = GovernanceModifier(gdp_mod=1.0, pop_mod=1.0)

GOVERNMENT_MODIFIERS: Dict[str, GovernanceModifier] = {
    "Democracy": GovernanceModifier(gdp_mod=1.05, pop_mod=1.01),
    "Monarchy": GovernanceModifier(gdp_mod=0.95, pop_mod=1.02),
    "Dictatorship": GovernanceModifier(gdp_mod=1.10, pop_mod=0.98),
}

# Multiplier applied to the raw HDI. Missing types get 1.0.
HDI_PENALTIES: Dict[str, float] = {
    "Dictatorship": 0.95,
}

# Spellings found in records written by the original Portuguese intake form.
GOVERNMENT_ALIASES: Dict[str, str] = {
    "Democracia": "Democracy",
    "Monarquia": "Monarchy",
    "Ditadura": "Dictatorship",
}

# --- Founding baseline ---
BASELINE_POPULATION: int = 1_000_000
BASELINE_GDP: int = 1_000_000_000
BASELINE_HDI: float = 0.5


@dataclass(frozen=True)
class GrowthConfig:
    """All tunables of the growth model."""

    base_rate: float = BASE_RATE
    pop_hdi_weight: float = POP_HDI_WEIGHT
    gdp_hdi_weight: float = GDP_HDI_WEIGHT
    hdi_scale: float = HDI_SCALE
    modifiers: Mapping[str, GovernanceModifier] = field(
        default_factory=lambda: dict(GOVERNMENT_MODIFIERS)
    )
    default_modifier: GovernanceModifier = NEUTRAL_MODIFIER
    hdi_penalties: Mapping[str, float] = field(
        default_factory=lambda: dict(HDI_PENALTIES)
    )
    aliases: Mapping[str, str] = field(
        default_factory=lambda: dict(GOVERNMENT_ALIASES)
    )

    def canonical_type(self, government_type: str) -> str:
        return self.aliases.get(government_type, government_type)

    def modifiers_for(self, government_type: str) -> GovernanceModifier:
        """Modifier tuple for a government type; unknown types get the default."""
        return self.modifiers.get(
            self.canonical_type(government_type), self.default_modifier
        )

    def penalty_for(self, government_type: str) -> float:
        return self.hdi_penalties.get(self.canonical_type(government_type), 1.0)


DEFAULT_GROWTH_CONFIG = GrowthConfig()

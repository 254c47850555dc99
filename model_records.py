"""
Model Records
=============

Immutable value records passed between the fractionation, atmosphere,
evaporation and seasonal components. Everything here is derived on demand
from climate inputs; nothing is mutated after construction.

Notation (per mil unless stated otherwise):
    d2H, d18O   isotopic composition (δ²H, δ¹⁸O)
    alpha       equilibrium fractionation factor R_liquid/R_vapor (ratio)
    eps         fractionation expressed in per mil
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict

from model_errors import InvalidParameterError


ABSOLUTE_ZERO_CELSIUS = -273.15


class Isotope(Enum):
    """Isotope species tracked by the model."""
    H2 = "2H"
    O18 = "18O"


@dataclass(frozen=True)
class ClimateInput:
    """Climate forcing and source water for one evaporation event."""
    temperature: float  # degrees C
    relative_humidity: float  # fraction [0, 1]
    d2H_source: float  # per mil
    d18O_source: float  # per mil

    def __post_init__(self):
        if not 0.0 <= self.relative_humidity <= 1.0:
            raise InvalidParameterError(
                f"Relative humidity must be 0-1, got {self.relative_humidity}")
        if self.temperature <= ABSOLUTE_ZERO_CELSIUS:
            raise InvalidParameterError(
                f"Temperature must be above {ABSOLUTE_ZERO_CELSIUS}°C, got {self.temperature}°C")

    def source(self, isotope: Isotope) -> float:
        """Source composition for one species."""
        return self.d2H_source if isotope is Isotope.H2 else self.d18O_source


@dataclass(frozen=True)
class FractionationFactors:
    """Equilibrium and kinetic fractionation for one species."""
    alpha_equilibrium: float
    eps_equilibrium: float  # per mil
    eps_kinetic: float  # per mil


@dataclass(frozen=True)
class DualIsotope:
    """A (δ²H, δ¹⁸O) pair."""
    d2H: float
    d18O: float

    def get(self, isotope: Isotope) -> float:
        return self.d2H if isotope is Isotope.H2 else self.d18O


@dataclass(frozen=True)
class AtmosphereComposition(DualIsotope):
    """Isotopic composition of ambient atmospheric moisture."""


@dataclass(frozen=True)
class ResidualLiquidState(DualIsotope):
    """Isotopic composition of the residual (evaporating) liquid."""


@dataclass(frozen=True)
class VaporComposition(DualIsotope):
    """Isotopic composition of the evaporation flux (Craig-Gordon)."""


@dataclass(frozen=True)
class EvaporationParameters:
    """Enrichment slope m and limiting composition d* for one species."""
    enrichment_slope: float
    limiting_composition: float  # per mil


@dataclass(frozen=True)
class MonthlyRecord:
    """One month of the seasonal series."""
    month: int  # 1..12
    climate: ClimateInput
    evaporated_fraction: float
    atmosphere: AtmosphereComposition
    parameters: Dict[Isotope, EvaporationParameters]
    residual: ResidualLiquidState
    vapor: VaporComposition

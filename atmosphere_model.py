"""
Atmospheric Vapor Composition
=============================

Ambient vapor composition from the precipitation-equilibrium assumption
(Gibson et al., 2008). The seasonality factor k weights how closely the
atmosphere is assumed to be in isotopic equilibrium with precipitation;
k = 1 is full equilibrium, where da = (dp - eps) / alpha.
"""

from typing import Dict

from model_errors import InvalidParameterError
from model_records import AtmosphereComposition, ClimateInput, FractionationFactors, Isotope


def atmosphere_composition(source: float, eps_equilibrium: float,
                           seasonality_factor: float = 1.0) -> float:
    """
    Atmospheric vapor composition for one species.

    Args:
        source: Precipitation (source water) composition, per mil
        eps_equilibrium: Equilibrium fractionation, per mil
        seasonality_factor: k in [0, 1]

    Returns:
        da = (source - k eps) / (1 + k eps 10⁻³), per mil
    """
    if not 0.0 <= seasonality_factor <= 1.0:
        raise InvalidParameterError(
            f"Seasonality factor must be 0-1, got {seasonality_factor}")

    k = seasonality_factor
    return (source - k * eps_equilibrium) / (1.0 + k * eps_equilibrium * 1e-3)


def atmosphere_from_climate(climate: ClimateInput,
                            factors: Dict[Isotope, FractionationFactors],
                            seasonality_factor: float = 1.0) -> AtmosphereComposition:
    """Atmospheric vapor composition for both species."""
    return AtmosphereComposition(
        d2H=atmosphere_composition(climate.d2H_source,
                                   factors[Isotope.H2].eps_equilibrium,
                                   seasonality_factor),
        d18O=atmosphere_composition(climate.d18O_source,
                                    factors[Isotope.O18].eps_equilibrium,
                                    seasonality_factor),
    )

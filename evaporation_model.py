"""
Evaporating Water Volume Model
==============================

Isotopic enrichment of an evaporating (desiccating) water volume with the
Craig-Gordon (1965) model, following the formulation of Gonfiantini (1986)
and the notation of Gibson et al. (2016).

This module provides:
- Closed-form enrichment slope m and limiting composition d*
- Residual liquid composition as a function of evaporated fraction x
- Composition of the evaporation flux
- Approximate evaporation line slope (source to d*)
- EvaporatingVolumeModel: a single climate state swept over x

Notation (per mil unless stated otherwise):
    dp      source (precipitation) water
    da      ambient atmospheric moisture
    dl      residual liquid
    dE      evaporation flux
    dstar   limiting composition of a fully desiccated volume
    m       enrichment slope
    h       relative humidity [-]
    x       evaporated fraction of the initial volume [-]
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

import numpy as np

from atmosphere_model import atmosphere_from_climate
from config_manager import ModelConfiguration, load_config
from evaporation_regression import fit_line
from isotope_fractionation import fractionation_factors
from model_errors import DegenerateGeometryError, InvalidParameterError
from model_records import (AtmosphereComposition, ClimateInput, EvaporationParameters,
                           FractionationFactors, Isotope, ResidualLiquidState,
                           VaporComposition)


def enrichment_slope(relative_humidity: float, eps_equilibrium: float,
                     eps_kinetic: float, alpha_equilibrium: float) -> float:
    """
    Enrichment slope m (Gibson et al. 2016).

    m = (h - 10⁻³ (eps_k + eps_eq/alpha_eq)) / (1 - h + 10⁻³ eps_k)
    """
    h = relative_humidity
    total = eps_kinetic + eps_equilibrium / alpha_equilibrium
    return (h - 1e-3 * total) / _net_evaporation_term(h, eps_kinetic)


def _net_evaporation_term(relative_humidity: float, eps_kinetic: float) -> float:
    """1 - h + 10⁻³ eps_k; zero for a saturated atmosphere without kinetic fractionation."""
    term = 1.0 - relative_humidity + 1e-3 * eps_kinetic
    if term == 0:
        raise InvalidParameterError(
            "Saturated atmosphere without kinetic fractionation, no net evaporation")
    return term


def limiting_composition(relative_humidity: float, atmosphere: float, eps_equilibrium: float,
                         eps_kinetic: float, alpha_equilibrium: float) -> float:
    """
    Limiting isotopic composition d* (A/B in Gonfiantini 1986).

    d* = (h da + eps_k + eps_eq/alpha_eq) / (h - 10⁻³ (eps_k + eps_eq/alpha_eq))
    """
    h = relative_humidity
    total = eps_kinetic + eps_equilibrium / alpha_equilibrium
    denominator = h - 1e-3 * total
    if denominator == 0:
        raise InvalidParameterError(
            f"Limiting composition undefined for humidity {h} with total fractionation {total}")
    return (h * atmosphere + total) / denominator


def evaporation_parameters(relative_humidity: float, factors: FractionationFactors,
                           atmosphere: float) -> EvaporationParameters:
    """Enrichment slope and limiting composition for one species."""
    return EvaporationParameters(
        enrichment_slope=enrichment_slope(relative_humidity, factors.eps_equilibrium,
                                          factors.eps_kinetic, factors.alpha_equilibrium),
        limiting_composition=limiting_composition(relative_humidity, atmosphere,
                                                  factors.eps_equilibrium, factors.eps_kinetic,
                                                  factors.alpha_equilibrium),
    )


def residual_liquid(source: float, dstar: float, slope: float, evaporated_fraction: float) -> float:
    """
    Residual liquid composition of a desiccating water body.

    dl = (dp - d*) (1 - x)^m + d*

    Args:
        source: Initial composition dp, per mil
        dstar: Limiting composition d*, per mil
        slope: Enrichment slope m
        evaporated_fraction: x, fraction of the initial volume evaporated

    Raises:
        InvalidParameterError: If x is outside [0, 1], or x = 1 with an m that
            is not a non-negative integer
    """
    x = evaporated_fraction
    if not 0.0 <= x <= 1.0:
        raise InvalidParameterError(f"Evaporated fraction must be 0-1, got {x}")
    if x == 1.0 and not (slope >= 0 and float(slope).is_integer()):
        raise InvalidParameterError(
            f"Evaporated fraction of 1 is undefined for enrichment slope {slope}")

    return (source - dstar) * (1.0 - x) ** slope + dstar


def residual_liquid_series(source: float, dstar: float, slope: float,
                           evaporated_fractions: Sequence[float]) -> np.ndarray:
    """Residual liquid composition for each evaporated fraction, in order."""
    return np.array([residual_liquid(source, dstar, slope, x) for x in evaporated_fractions],
                    dtype=float)


def vapor_composition(residual: float, eps_equilibrium: float, alpha_equilibrium: float,
                      relative_humidity: float, atmosphere: float, eps_kinetic: float) -> float:
    """
    Composition of the evaporation flux (Craig & Gordon 1965, Gibson 2016 notation).

    dE = ((dl - eps_eq)/alpha_eq - h da - eps_k) / (1 - h + 10⁻³ eps_k)
    """
    h = relative_humidity
    return (((residual - eps_equilibrium) / alpha_equilibrium - h * atmosphere - eps_kinetic)
            / _net_evaporation_term(h, eps_kinetic))


def approximate_evaporation_slope(dstar_H: float, source_H: float,
                                  dstar_O: float, source_O: float) -> float:
    """
    Slope of the line joining the source water to the limiting composition.

    Raises:
        DegenerateGeometryError: If d*_O equals the source δ¹⁸O
    """
    if dstar_O == source_O:
        raise DegenerateGeometryError(
            f"Limiting d18O equals source d18O ({source_O}), evaporation slope undefined")
    return (dstar_H - source_H) / (dstar_O - source_O)


@dataclass(frozen=True)
class EvaporationSolution:
    """All x-independent quantities for one climate state."""
    climate: ClimateInput
    factors: Dict[Isotope, FractionationFactors]
    atmosphere: AtmosphereComposition
    parameters: Dict[Isotope, EvaporationParameters]

    def residual(self, evaporated_fraction: float) -> ResidualLiquidState:
        values = {
            isotope: residual_liquid(self.climate.source(isotope),
                                     self.parameters[isotope].limiting_composition,
                                     self.parameters[isotope].enrichment_slope,
                                     evaporated_fraction)
            for isotope in Isotope
        }
        return ResidualLiquidState(d2H=values[Isotope.H2], d18O=values[Isotope.O18])

    def vapor(self, residual: ResidualLiquidState) -> VaporComposition:
        values = {}
        for isotope in Isotope:
            factors = self.factors[isotope]
            values[isotope] = vapor_composition(residual.get(isotope),
                                                factors.eps_equilibrium,
                                                factors.alpha_equilibrium,
                                                self.climate.relative_humidity,
                                                self.atmosphere.get(isotope),
                                                factors.eps_kinetic)
        return VaporComposition(d2H=values[Isotope.H2], d18O=values[Isotope.O18])

    def approximate_slope(self) -> float:
        return approximate_evaporation_slope(self.parameters[Isotope.H2].limiting_composition,
                                             self.climate.d2H_source,
                                             self.parameters[Isotope.O18].limiting_composition,
                                             self.climate.d18O_source)


def solve_evaporation(climate: ClimateInput, aerodynamic_n: float,
                      seasonality_factor: float = 1.0,
                      atmosphere: Optional[AtmosphereComposition] = None) -> EvaporationSolution:
    """
    Derive fractionation, atmosphere and evaporation parameters for one climate state.

    Args:
        climate: Temperature, humidity and source composition
        aerodynamic_n: Kinetic regime parameter n
        seasonality_factor: k for the precipitation-equilibrium atmosphere
        atmosphere: Measured atmospheric composition; bypasses the
            precipitation-equilibrium estimate when given

    Returns:
        EvaporationSolution
    """
    factors = {isotope: fractionation_factors(isotope, climate, aerodynamic_n)
               for isotope in Isotope}
    if atmosphere is None:
        atmosphere = atmosphere_from_climate(climate, factors, seasonality_factor)

    parameters = {isotope: evaporation_parameters(climate.relative_humidity,
                                                  factors[isotope],
                                                  atmosphere.get(isotope))
                  for isotope in Isotope}
    return EvaporationSolution(climate=climate, factors=factors,
                               atmosphere=atmosphere, parameters=parameters)


class EvaporatingVolumeModel:
    """
    Single evaporating water volume swept over evaporated fraction.

    One climate state (temperature, humidity, source water) is held fixed and
    the residual liquid and evaporation flux compositions are computed for
    each evaporated fraction in the configured sweep. The results dictionary
    is what the plotting and output layers consume.
    """

    def __init__(self, config: Optional[ModelConfiguration] = None) -> None:
        """
        Initialize the model.

        Args:
            config: Model configuration object. If None, loads default configuration.
        """
        self.config = config or load_config()
        self.config.validate()

        self.climate = None
        self.solution = None
        self.evaporated_fractions = None
        self.results = {}

        self._is_setup = False

    def setup_model(self) -> None:
        """
        Build the climate input, fractionation factors and evaporation parameters.

        Raises:
            InvalidParameterError: If the configured climate is outside its domain
        """
        params = self.config.evaporating_volume
        self.climate = ClimateInput(
            temperature=params.temperature,
            relative_humidity=params.relative_humidity,
            d2H_source=params.d2H_source,
            d18O_source=params.d18O_source,
        )

        atmosphere = None
        if params.d2H_atmosphere is not None:
            atmosphere = AtmosphereComposition(d2H=params.d2H_atmosphere,
                                               d18O=params.d18O_atmosphere)

        self.solution = solve_evaporation(self.climate,
                                          self.config.fractionation.aerodynamic_n,
                                          self.config.fractionation.seasonality_factor,
                                          atmosphere=atmosphere)
        self.evaporated_fractions = np.linspace(params.fraction_min, params.fraction_max,
                                                params.fraction_steps)
        self._is_setup = True

    def run_simulation(self) -> Dict[str, Any]:
        """
        Compute the enrichment curve.

        Returns:
            Dictionary with arrays over the evaporated fraction sweep
            ('evaporated_fraction', 'remaining_fraction', 'd2H_residual',
            'd18O_residual', 'd2H_vapor', 'd18O_vapor') and scalar results
            (source, atmosphere, enrichment slopes, limiting compositions,
            approximate and fitted evaporation line slopes).
        """
        if not self._is_setup:
            self.setup_model()

        solution = self.solution
        climate = self.climate
        params = solution.parameters

        d2H_residual = residual_liquid_series(climate.d2H_source,
                                              params[Isotope.H2].limiting_composition,
                                              params[Isotope.H2].enrichment_slope,
                                              self.evaporated_fractions)
        d18O_residual = residual_liquid_series(climate.d18O_source,
                                               params[Isotope.O18].limiting_composition,
                                               params[Isotope.O18].enrichment_slope,
                                               self.evaporated_fractions)

        vapors = [solution.vapor(ResidualLiquidState(d2H=h, d18O=o))
                  for h, o in zip(d2H_residual, d18O_residual)]

        results = {
            'evaporated_fraction': self.evaporated_fractions.copy(),
            'remaining_fraction': 1.0 - self.evaporated_fractions,
            'd2H_residual': d2H_residual,
            'd18O_residual': d18O_residual,
            'd2H_vapor': np.array([v.d2H for v in vapors]),
            'd18O_vapor': np.array([v.d18O for v in vapors]),
            'temperature': climate.temperature,
            'relative_humidity': climate.relative_humidity,
            'd2H_source': climate.d2H_source,
            'd18O_source': climate.d18O_source,
            'd2H_atmosphere': solution.atmosphere.d2H,
            'd18O_atmosphere': solution.atmosphere.d18O,
            'alpha_2H': solution.factors[Isotope.H2].alpha_equilibrium,
            'alpha_18O': solution.factors[Isotope.O18].alpha_equilibrium,
            'eps_kinetic_2H': solution.factors[Isotope.H2].eps_kinetic,
            'eps_kinetic_18O': solution.factors[Isotope.O18].eps_kinetic,
            'enrichment_slope_2H': params[Isotope.H2].enrichment_slope,
            'enrichment_slope_18O': params[Isotope.O18].enrichment_slope,
            'd2H_limiting': params[Isotope.H2].limiting_composition,
            'd18O_limiting': params[Isotope.O18].limiting_composition,
            'approximate_evaporation_slope': solution.approximate_slope(),
        }

        # Empirical evaporation line through the residual liquid
        if np.unique(d18O_residual).size >= 2:
            slope, intercept = fit_line(d18O_residual, d2H_residual)
            results['evaporation_line_slope'] = slope
            results['evaporation_line_intercept'] = intercept

        self.results = results
        return results

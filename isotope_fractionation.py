"""
Isotope Fractionation Factors
=============================

Equilibrium and kinetic liquid-vapor fractionation for δ²H and δ¹⁸O.

Scientific Background:
- Equilibrium factors from Horita & Wesolowski (1994), valid from the freezing
  point to the critical temperature of water
- Kinetic factors follow Horita et al. (2008): εk = n (1 - h) (1 - Di/D) 1000
- Diffusivity ratios Di/D from Merlivat (1978)

All epsilon values are in per mil; alpha is the dimensionless ratio
R_liquid / R_vapor (> 1 for both species at ambient temperatures).
"""

import numpy as np

from model_errors import InvalidParameterError
from model_records import ClimateInput, FractionationFactors, Isotope


KELVIN_OFFSET = 273.15

# Horita & Wesolowski (1994), 1000 ln(alpha) for ²H:
#   a3 T³/10⁹ + a2 T²/10⁶ + a1 T/10³ + a0 + b3 10⁹/T³
HW94_H2_CUBIC = 1158.8
HW94_H2_QUADRATIC = -1620.1
HW94_H2_LINEAR = 794.84
HW94_H2_CONSTANT = -161.04
HW94_H2_INVERSE_CUBIC = 2.9992

# Horita & Wesolowski (1994), 1000 ln(alpha) for ¹⁸O:
#   c0 + c1 10³/T + c2 10⁶/T² + c3 10⁹/T³
HW94_O18_CONSTANT = -7.685
HW94_O18_INVERSE = 6.7123
HW94_O18_INVERSE_SQUARE = -1.6664
HW94_O18_INVERSE_CUBIC = 0.3504

# Merlivat (1978) molecular diffusivity ratios Di/D
DIFFUSIVITY_RATIO = {
    Isotope.H2: 0.9755,
    Isotope.O18: 0.9723,
}


def celsius_to_kelvin(temperature_c: float) -> float:
    return temperature_c + KELVIN_OFFSET


def equilibrium_factor(isotope: Isotope, temperature_kelvin: float) -> float:
    """
    Liquid-vapor equilibrium fractionation factor alpha (Horita & Wesolowski 1994).

    Args:
        isotope: Species to evaluate
        temperature_kelvin: Temperature in K

    Returns:
        alpha = R_liquid / R_vapor

    Raises:
        InvalidParameterError: If temperature_kelvin <= 0
    """
    if temperature_kelvin <= 0:
        raise InvalidParameterError(
            f"Temperature must be above absolute zero, got {temperature_kelvin} K")

    t = float(temperature_kelvin)
    if isotope is Isotope.H2:
        thousand_ln_alpha = (HW94_H2_CUBIC * t**3 / 1e9
                             + HW94_H2_QUADRATIC * t**2 / 1e6
                             + HW94_H2_LINEAR * t / 1e3
                             + HW94_H2_CONSTANT
                             + HW94_H2_INVERSE_CUBIC * 1e9 / t**3)
    elif isotope is Isotope.O18:
        thousand_ln_alpha = (HW94_O18_CONSTANT
                             + HW94_O18_INVERSE * 1e3 / t
                             + HW94_O18_INVERSE_SQUARE * 1e6 / t**2
                             + HW94_O18_INVERSE_CUBIC * 1e9 / t**3)
    else:
        raise InvalidParameterError(f"Unknown isotope species: {isotope}")

    return float(np.exp(thousand_ln_alpha / 1000.0))


def equilibrium_epsilon(alpha: float) -> float:
    """Equilibrium fractionation in per mil, (alpha - 1) * 1000."""
    return (alpha - 1.0) * 1000.0


def kinetic_factor(isotope: Isotope, n: float, relative_humidity: float) -> float:
    """
    Kinetic fractionation in per mil.

    Args:
        isotope: Species to evaluate
        n: Aerodynamic regime parameter (1 for dry soils, 0.5 for lakes and
           saturated soils)
        relative_humidity: Relative humidity of the atmosphere, fraction [0, 1]

    Returns:
        eps_k = n (1 - h) (1 - Di/D) 1000
    """
    if not 0.0 <= relative_humidity <= 1.0:
        raise InvalidParameterError(
            f"Relative humidity must be 0-1, got {relative_humidity}")
    return n * (1.0 - relative_humidity) * (1.0 - DIFFUSIVITY_RATIO[isotope]) * 1000.0


def fractionation_factors(isotope: Isotope, climate: ClimateInput, n: float) -> FractionationFactors:
    """Equilibrium and kinetic fractionation for one species under given climate."""
    alpha = equilibrium_factor(isotope, celsius_to_kelvin(climate.temperature))
    return FractionationFactors(
        alpha_equilibrium=alpha,
        eps_equilibrium=equilibrium_epsilon(alpha),
        eps_kinetic=kinetic_factor(isotope, n, climate.relative_humidity),
    )

"""
Seasonal Evaporation Driver
===========================

Monthly climate forcing drives twelve independent single-step evaporation
events. Each month starts from its own precipitation composition; no
residual water is carried from one month to the next, so the series
approximates seasonally resolved evaporation events rather than a
continuously mixing reservoir.

The evaporation/precipitation ratio x is either supplied per month or
generated as a sinusoid around a mean value:

    x_i = xmean - xmean * fampl * cos(2 pi (i/12 - shift/12)),   i = 0..11
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from climate_data import (climate_frame_from_config, climate_inputs_from_frame,
                          relative_humidity_from_vapor_pressure)
from config_manager import MONTHS_PER_YEAR, ModelConfiguration, load_config
from evaporation_model import solve_evaporation
from evaporation_regression import (DEFAULT_LOCAL_METEORIC_WATER_LINE, Line,
                                    MeteoricWaterLine, fit_line, intersection)
from model_errors import DegenerateRegressionError, InvalidParameterError
from model_records import ClimateInput, Isotope, MonthlyRecord


def build_monthly_climate(temperature: Sequence[float], vapor_pressure: Sequence[float],
                          d18O_precipitation: Sequence[float],
                          d2H_precipitation: Optional[Sequence[float]] = None,
                          lmwl: MeteoricWaterLine = DEFAULT_LOCAL_METEORIC_WATER_LINE
                          ) -> List[ClimateInput]:
    """
    Monthly climate inputs from plain monthly series.

    Relative humidity is vapor pressure over saturated vapor pressure (hPa);
    precipitation δ²H falls back to the local meteoric water line.
    """
    if d2H_precipitation is None:
        d2H_precipitation = lmwl.evaluate(d18O_precipitation)

    lengths = {len(temperature), len(vapor_pressure), len(d18O_precipitation), len(d2H_precipitation)}
    if len(lengths) != 1:
        raise InvalidParameterError("Monthly climate series must have equal lengths")

    return [
        ClimateInput(temperature=float(tc),
                     relative_humidity=relative_humidity_from_vapor_pressure(vp, tc),
                     d2H_source=float(d2H),
                     d18O_source=float(d18O))
        for tc, vp, d18O, d2H in zip(temperature, vapor_pressure,
                                     d18O_precipitation, d2H_precipitation)
    ]


def sinusoidal_evaporation_ratios(mean_ratio: float, amplitude_fraction: float,
                                  shift_months: float = 0.0,
                                  n_months: int = MONTHS_PER_YEAR) -> np.ndarray:
    """
    Monthly evaporation/precipitation ratios following a seasonal sinusoid.

    Args:
        mean_ratio: Mean ratio xmean
        amplitude_fraction: 0 = constant xmean, 1 = x spans 0 to 2 xmean
        shift_months: Phase shift of the sinusoid in months
        n_months: Number of months to generate

    Returns:
        Array of n_months ratios, the first at the seasonal minimum when shift is 0
    """
    if mean_ratio < 0:
        raise InvalidParameterError(f"Mean evaporation ratio must be non-negative, got {mean_ratio}")
    if not 0.0 <= amplitude_fraction <= 1.0:
        raise InvalidParameterError(f"Seasonal amplitude must be 0-1, got {amplitude_fraction}")

    phase = np.arange(n_months) / MONTHS_PER_YEAR - shift_months / MONTHS_PER_YEAR
    return mean_ratio - mean_ratio * amplitude_fraction * np.cos(2 * np.pi * phase)


def run_monthly_evaporation(climate_inputs: Sequence[ClimateInput],
                            evaporation_ratios: Sequence[float],
                            aerodynamic_n: float,
                            seasonality_factor: float = 1.0) -> List[MonthlyRecord]:
    """
    Evaporate each month's precipitation independently.

    Args:
        climate_inputs: Twelve monthly climate inputs, January first
        evaporation_ratios: Twelve evaporated fractions in [0, 1)
        aerodynamic_n: Kinetic regime parameter n
        seasonality_factor: k for the precipitation-equilibrium atmosphere

    Returns:
        One MonthlyRecord per month, in input order

    Raises:
        InvalidParameterError: On wrong series lengths or ratios outside [0, 1)
    """
    if len(climate_inputs) != MONTHS_PER_YEAR or len(evaporation_ratios) != MONTHS_PER_YEAR:
        raise InvalidParameterError(
            f"Expected {MONTHS_PER_YEAR} climate inputs and evaporation ratios, "
            f"got {len(climate_inputs)} and {len(evaporation_ratios)}")
    for x in evaporation_ratios:
        if not 0.0 <= x < 1.0:
            raise InvalidParameterError(f"Monthly evaporation ratio must be in [0, 1), got {x}")

    records = []
    for month, (climate, x) in enumerate(zip(climate_inputs, evaporation_ratios), start=1):
        solution = solve_evaporation(climate, aerodynamic_n, seasonality_factor)
        residual = solution.residual(float(x))
        records.append(MonthlyRecord(
            month=month,
            climate=climate,
            evaporated_fraction=float(x),
            atmosphere=solution.atmosphere,
            parameters=solution.parameters,
            residual=residual,
            vapor=solution.vapor(residual),
        ))
    return records


@dataclass(frozen=True)
class SeasonalSummary:
    """Regression summary of a seasonal run in dual-isotope space."""
    trendline: Line
    lmwl_intercept: Tuple[float, float]  # (d18O, d2H) where the trendline meets the LMWL
    monthly_evaporation_slopes: Tuple[float, ...]
    mean_evaporation_slope: float


def summarize_monthly_records(records: Sequence[MonthlyRecord],
                              lmwl: MeteoricWaterLine = DEFAULT_LOCAL_METEORIC_WATER_LINE
                              ) -> SeasonalSummary:
    """
    Fit the trendline through the monthly residual liquids and compare with the LMWL.

    The actual evaporation line of each month joins its precipitation to its
    residual liquid. A month without evaporation has no such line; its slope
    is reported as NaN and left out of the mean.

    Raises:
        DegenerateRegressionError: If the residual liquids share one δ¹⁸O value
            or no month evaporated at all
        DegenerateGeometryError: If the trendline is parallel to the LMWL
    """
    d18O = [r.residual.d18O for r in records]
    d2H = [r.residual.d2H for r in records]
    trendline = fit_line(d18O, d2H)

    monthly_slopes = []
    for r in records:
        if r.evaporated_fraction == 0:
            monthly_slopes.append(float('nan'))
            continue
        slope, _ = fit_line([r.climate.d18O_source, r.residual.d18O],
                            [r.climate.d2H_source, r.residual.d2H])
        monthly_slopes.append(slope)

    evaporating = [s for s in monthly_slopes if not np.isnan(s)]
    if not evaporating:
        raise DegenerateRegressionError("No month evaporated, evaporation slopes undefined")

    return SeasonalSummary(
        trendline=trendline,
        lmwl_intercept=intersection(trendline, lmwl.as_line()),
        monthly_evaporation_slopes=tuple(monthly_slopes),
        mean_evaporation_slope=float(np.mean(evaporating)),
    )


def records_to_frame(records: Sequence[MonthlyRecord]) -> pd.DataFrame:
    """Flatten monthly records into one row per month."""
    rows = []
    for r in records:
        rows.append({
            'month': r.month,
            'temperature': r.climate.temperature,
            'relative_humidity': r.climate.relative_humidity,
            'd2H_precipitation': r.climate.d2H_source,
            'd18O_precipitation': r.climate.d18O_source,
            'evaporation_ratio': r.evaporated_fraction,
            'd2H_atmosphere': r.atmosphere.d2H,
            'd18O_atmosphere': r.atmosphere.d18O,
            'enrichment_slope_2H': r.parameters[Isotope.H2].enrichment_slope,
            'enrichment_slope_18O': r.parameters[Isotope.O18].enrichment_slope,
            'd2H_limiting': r.parameters[Isotope.H2].limiting_composition,
            'd18O_limiting': r.parameters[Isotope.O18].limiting_composition,
            'd2H_residual': r.residual.d2H,
            'd18O_residual': r.residual.d18O,
            'd2H_vapor': r.vapor.d2H,
            'd18O_vapor': r.vapor.d18O,
        })
    return pd.DataFrame(rows)


class SeasonalEvaporationModel:
    """
    Seasonal run: monthly climate forcing and a seasonal evaporation cycle.

    Monthly climate comes from the configuration lists or a monthly climate
    CSV; relative humidity is derived from vapor pressure, and precipitation
    δ²H from the local meteoric water line unless measured values are given.
    """

    def __init__(self, config: Optional[ModelConfiguration] = None) -> None:
        self.config = config or load_config()
        self.config.validate()

        self.lmwl = MeteoricWaterLine(slope=self.config.seasonal.lmwl_slope,
                                      intercept=self.config.seasonal.lmwl_intercept)
        self.climate_frame = None
        self.climate_inputs = None
        self.evaporation_ratios = None
        self.records = None
        self.summary = None
        self.results = {}

        self._is_setup = False

    def setup_model(self) -> None:
        """Build monthly climate inputs and evaporation ratios from the configuration."""
        seasonal = self.config.seasonal
        self.climate_frame = climate_frame_from_config(self.config)
        self.climate_inputs = climate_inputs_from_frame(self.climate_frame)

        if seasonal.evaporation_ratios is not None:
            self.evaporation_ratios = np.asarray(seasonal.evaporation_ratios, dtype=float)
        else:
            self.evaporation_ratios = sinusoidal_evaporation_ratios(
                seasonal.mean_evaporation_ratio,
                seasonal.seasonal_amplitude,
                seasonal.phase_shift,
            )
        self._is_setup = True

    def run_simulation(self) -> Dict[str, Any]:
        """
        Run the twelve monthly evaporation events and summarize them.

        Returns:
            Dictionary with monthly arrays (forcing, atmosphere, residual
            liquid, vapor) and the regression summary scalars.
        """
        if not self._is_setup:
            self.setup_model()

        self.records = run_monthly_evaporation(self.climate_inputs,
                                               self.evaporation_ratios,
                                               self.config.fractionation.aerodynamic_n,
                                               self.config.fractionation.seasonality_factor)
        self.summary = summarize_monthly_records(self.records, self.lmwl)

        frame = records_to_frame(self.records)
        results = {column: frame[column].to_numpy() for column in frame.columns}
        results.update({
            'monthly_evaporation_slope': np.array(self.summary.monthly_evaporation_slopes),
            'trendline_slope': self.summary.trendline[0],
            'trendline_intercept': self.summary.trendline[1],
            'lmwl_slope': self.lmwl.slope,
            'lmwl_intercept': self.lmwl.intercept,
            'd18O_lmwl_intercept': self.summary.lmwl_intercept[0],
            'd2H_lmwl_intercept': self.summary.lmwl_intercept[1],
            'mean_evaporation_slope': self.summary.mean_evaporation_slope,
        })

        self.results = results
        return results

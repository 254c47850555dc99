"""
Monthly Climate Data Utilities
==============================

Loading, validation and derived variables for monthly climate forcing
(temperature, vapor pressure, precipitation isotopes) used by the seasonal
evaporation run.

Expected table columns:
    month, temperature [°C], vapor_pressure [hPa], d18O_precipitation [per mil]
    d2H_precipitation [per mil] (optional, derived from the LMWL when absent)
"""

import numpy as np
import pandas as pd
from pathlib import Path
from typing import List, Optional, Union

from model_records import ClimateInput


REQUIRED_COLUMNS = ['month', 'temperature', 'vapor_pressure', 'd18O_precipitation']


def saturation_vapor_pressure(temperature_c):
    """
    Saturated vapor pressure in hPa.

    es = 6.11 * 10^(7.5 T / (237.3 + T)), T in °C
    (see e.g. www.weather.gov/epz/wxcalc_vaporpressure)
    """
    t = np.asarray(temperature_c, dtype=float)
    es = 6.11 * 10.0 ** (7.5 * t / (237.3 + t))
    return float(es) if es.ndim == 0 else es


def relative_humidity_from_vapor_pressure(vapor_pressure, temperature_c):
    """Relative humidity [-] = vapor pressure / saturated vapor pressure."""
    h = np.asarray(vapor_pressure, dtype=float) / saturation_vapor_pressure(temperature_c)
    return float(h) if np.ndim(h) == 0 else h


def validate_monthly_climate_data(data: pd.DataFrame) -> None:
    """Validate monthly climate table format and ranges."""
    missing_columns = [col for col in REQUIRED_COLUMNS if col not in data.columns]
    if missing_columns:
        raise ValueError(f"Missing required climate columns: {missing_columns}")

    if len(data) != 12:
        raise ValueError(f"Monthly climate table must have 12 rows, got {len(data)}")

    if sorted(data['month'].tolist()) != list(range(1, 13)):
        raise ValueError("Month column must hold each month 1-12 exactly once")

    if data[REQUIRED_COLUMNS].isna().any().any():
        raise ValueError("Monthly climate table contains missing values")

    if data['temperature'].min() < -100 or data['temperature'].max() > 100:
        raise ValueError("Temperature values outside reasonable range (-100 to 100°C)")

    if (data['vapor_pressure'] <= 0).any():
        raise ValueError("Vapor pressure must be positive")


def calculate_monthly_derived_variables(data: pd.DataFrame, lmwl_slope: float,
                                        lmwl_intercept: float) -> None:
    """Add saturation vapor pressure, relative humidity and (if missing) d2H columns in place."""
    data['saturation_vapor_pressure'] = saturation_vapor_pressure(data['temperature'].to_numpy())
    data['relative_humidity'] = data['vapor_pressure'] / data['saturation_vapor_pressure']

    if 'd2H_precipitation' not in data.columns or data['d2H_precipitation'].isna().all():
        data['d2H_precipitation'] = lmwl_intercept + lmwl_slope * data['d18O_precipitation']

    supersaturated = data.loc[data['relative_humidity'] > 1.0, 'month'].tolist()
    if supersaturated:
        raise ValueError(f"Vapor pressure exceeds saturation in months {supersaturated}")


def load_monthly_climate(file_path: Union[str, Path], lmwl_slope: float = 7.45,
                         lmwl_intercept: float = 2.12) -> pd.DataFrame:
    """
    Load and validate a monthly climate CSV.

    Returns:
        DataFrame sorted by month with derived humidity and d2H columns
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Monthly climate file not found: {file_path}")

    data = pd.read_csv(file_path)
    validate_monthly_climate_data(data)
    data = data.sort_values('month').reset_index(drop=True)
    calculate_monthly_derived_variables(data, lmwl_slope, lmwl_intercept)
    return data


def climate_frame_from_lists(temperature: List[float], vapor_pressure: List[float],
                             d18O_precipitation: List[float],
                             d2H_precipitation: Optional[List[float]] = None,
                             lmwl_slope: float = 7.45, lmwl_intercept: float = 2.12) -> pd.DataFrame:
    """Monthly climate table from January-to-December lists."""
    data = pd.DataFrame({
        'month': np.arange(1, len(temperature) + 1),
        'temperature': temperature,
        'vapor_pressure': vapor_pressure,
        'd18O_precipitation': d18O_precipitation,
    })
    if d2H_precipitation is not None:
        data['d2H_precipitation'] = d2H_precipitation

    validate_monthly_climate_data(data)
    calculate_monthly_derived_variables(data, lmwl_slope, lmwl_intercept)
    return data


def climate_frame_from_config(config) -> pd.DataFrame:
    """Monthly climate table from the seasonal configuration (file takes precedence)."""
    seasonal = config.seasonal
    if seasonal.climate_file:
        return load_monthly_climate(seasonal.climate_file, seasonal.lmwl_slope,
                                    seasonal.lmwl_intercept)

    return climate_frame_from_lists(seasonal.temperature, seasonal.vapor_pressure,
                                    seasonal.d18O_precipitation, seasonal.d2H_precipitation,
                                    seasonal.lmwl_slope, seasonal.lmwl_intercept)


def climate_inputs_from_frame(data: pd.DataFrame) -> List[ClimateInput]:
    """Convert a monthly climate table into ClimateInput records, January first."""
    return [
        ClimateInput(temperature=float(row.temperature),
                     relative_humidity=float(row.relative_humidity),
                     d2H_source=float(row.d2H_precipitation),
                     d18O_source=float(row.d18O_precipitation))
        for row in data.sort_values('month').itertuples(index=False)
    ]

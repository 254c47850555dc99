"""
Shared pytest fixtures for the evaporation line model tests.

Reference values below are for the Gonfiantini (1986, pp. 117-118)
evaporating-volume example: source -38‰ / -6‰, 20 °C, h = 0.75, n = 0.75.
"""

import matplotlib
matplotlib.use("Agg")

import pytest

from config_manager import create_default_config
from model_records import AtmosphereComposition, ClimateInput


GONFIANTINI_N = 0.75

# Measured atmospheric moisture reported with the example
GONFIANTINI_ATMOSPHERE = AtmosphereComposition(d2H=-86.0, d18O=-12.0)


@pytest.fixture
def gonfiantini_climate():
    return ClimateInput(temperature=20.0, relative_humidity=0.75,
                        d2H_source=-38.0, d18O_source=-6.0)


@pytest.fixture
def default_config():
    return create_default_config()


@pytest.fixture
def offline_config(tmp_path):
    """Default configuration writing into a temporary directory."""
    config = create_default_config()
    config.output.output_directory = str(tmp_path / "output")
    config.output.save_results = False
    config.output.save_csv = False
    config.output.save_plots = False
    return config


@pytest.fixture
def monthly_climate_csv(tmp_path):
    """GNIP long-term monthly means written as a shuffled CSV."""
    rows = [
        (7, 20.4, 15.7, -6.39), (1, -0.1, 5.0, -13.25), (2, 1.6, 5.3, -12.66),
        (3, 5.7, 6.4, -11.19), (4, 10.7, 8.3, -9.34), (5, 15.3, 11.6, -7.18),
        (6, 18.6, 14.4, -7.30), (8, 19.9, 15.6, -6.43), (9, 15.5, 13.0, -7.97),
        (10, 10.2, 10.0, -9.35), (11, 5.3, 7.3, -12.00), (12, 1.2, 5.5, -13.47),
    ]
    path = tmp_path / "monthly_climate.csv"
    lines = ["month,temperature,vapor_pressure,d18O_precipitation"]
    lines += [",".join(str(v) for v in row) for row in rows]
    path.write_text("\n".join(lines) + "\n")
    return path

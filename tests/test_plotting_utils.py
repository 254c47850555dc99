"""Tests for the evaporation line plots."""

import numpy as np
import pytest

from evaporation_model import EvaporatingVolumeModel
from plotting_utils import EvaporationLinePlotter, validate_plot_data
from seasonal_driver import SeasonalEvaporationModel


@pytest.fixture
def single_volume_data(offline_config):
    return {'results': EvaporatingVolumeModel(offline_config).run_simulation()}


@pytest.fixture
def seasonal_data(offline_config):
    return {'results': SeasonalEvaporationModel(offline_config).run_simulation()}


@pytest.fixture
def plotter():
    return EvaporationLinePlotter()


def test_enrichment_plot(plotter, single_volume_data):
    assert plotter.create_enrichment_plot(single_volume_data)
    assert len(plotter.figure.axes) == 2
    assert plotter.current_plot_type == "enrichment"


def test_dual_isotope_plot(plotter, single_volume_data):
    assert plotter.create_dual_isotope_plot(single_volume_data)
    ax = plotter.figure.axes[0]
    labels = [line.get_label() for line in ax.get_lines()]

    assert len(plotter.figure.axes) == 1
    assert 'GMWL' in labels
    assert 'evaporation line' in labels


def test_seasonal_dual_isotope_plot(plotter, seasonal_data):
    assert plotter.create_seasonal_dual_isotope_plot(seasonal_data)
    labels = [line.get_label() for line in plotter.figure.axes[0].get_lines()]

    assert labels.count('actual evaporation lines') == 1
    assert 'trendline' in labels
    assert 'intercept' in labels


def test_seasonal_plot_skips_months_without_evaporation(plotter, seasonal_data):
    results = dict(seasonal_data['results'])
    slopes = results['monthly_evaporation_slope'].copy()
    slopes[0] = np.nan
    results['monthly_evaporation_slope'] = slopes

    assert plotter.create_seasonal_dual_isotope_plot({'results': results})
    # LMWL, trendline, 11 evaporation lines, source, residual, intercept
    assert len(plotter.figure.axes[0].get_lines()) == 16


def test_seasonal_forcing_plot(plotter, seasonal_data):
    assert plotter.create_seasonal_forcing_plot(seasonal_data)
    assert len(plotter.figure.axes) == 4


def test_missing_data_shows_error(plotter):
    assert not plotter.create_enrichment_plot({'results': {'d18O_residual': np.array([1.0])}})
    assert plotter.current_plot_type is None
    assert len(plotter.figure.axes) == 1


def test_validate_plot_data():
    assert validate_plot_data({'a': np.array([1.0])}, ['a']) == (True, "")
    assert not validate_plot_data({'a': np.array([])}, ['a'])[0]
    assert not validate_plot_data({}, ['a'])[0]


def test_save_current_plot(plotter, single_volume_data, tmp_path):
    plotter.create_dual_isotope_plot(single_volume_data)
    path = tmp_path / "dual_isotope.png"

    assert plotter.save_current_plot(path, dpi=50)
    assert path.stat().st_size > 0

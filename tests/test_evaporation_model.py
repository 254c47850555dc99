"""Tests for the Craig-Gordon evaporating volume equations and runner."""

import numpy as np
import pytest
from numpy.testing import assert_array_almost_equal

from conftest import GONFIANTINI_ATMOSPHERE, GONFIANTINI_N
from evaporation_model import (EvaporatingVolumeModel, approximate_evaporation_slope,
                               enrichment_slope, limiting_composition, residual_liquid,
                               residual_liquid_series, solve_evaporation, vapor_composition)
from model_errors import DegenerateGeometryError, InvalidParameterError
from model_records import Isotope, ResidualLiquidState


class TestClosedForms:

    def test_no_fractionation_limit(self):
        """Without fractionation m = h/(1-h) and d* is the atmosphere."""
        h = 0.6
        assert enrichment_slope(h, 0.0, 0.0, 1.0) == pytest.approx(1.5)
        assert limiting_composition(h, -20.0, 0.0, 0.0, 1.0) == pytest.approx(-20.0)

    def test_per_mil_scaling(self):
        """eps values enter m scaled by 1e-3, d* unscaled in the numerator."""
        m = enrichment_slope(0.75, 10.0, 5.0, 1.01)
        assert m == pytest.approx((0.75 - 1e-3 * (5.0 + 10.0 / 1.01)) / (0.25 + 5e-3))

        dstar = limiting_composition(0.75, -12.0, 10.0, 5.0, 1.01)
        total = 5.0 + 10.0 / 1.01
        assert dstar == pytest.approx((0.75 * -12.0 + total) / (0.75 - 1e-3 * total))

    def test_saturated_without_kinetic_effect_is_rejected(self):
        with pytest.raises(InvalidParameterError):
            enrichment_slope(1.0, 10.0, 0.0, 1.01)
        with pytest.raises(InvalidParameterError):
            vapor_composition(-6.0, 10.0, 1.01, 1.0, -12.0, 0.0)

    def test_vapor_is_depleted_relative_to_liquid(self):
        d_e = vapor_composition(-6.0, 9.78, 1.00978, 0.75, -12.0, 5.19)
        assert d_e < -6.0


class TestResidualLiquid:

    @pytest.mark.parametrize("dstar,m", [(26.8, 2.6), (-3.4, 0.5), (8.0, 3.0), (10.0, -0.4)])
    def test_no_evaporation_returns_source(self, dstar, m):
        assert residual_liquid(-38.0, dstar, m, 0.0) == pytest.approx(-38.0, abs=1e-12)

    def test_approaches_limiting_composition(self):
        dstar, m = 26.8, 2.6
        near = residual_liquid(-38.0, dstar, m, 0.99)
        nearer = residual_liquid(-38.0, dstar, m, 0.999)

        assert abs(nearer - dstar) < abs(near - dstar)
        assert nearer == pytest.approx(dstar, abs=1e-4)

    def test_enrichment_is_monotonic(self):
        series = residual_liquid_series(-6.0, 8.0, 2.9, np.linspace(0.0, 0.95, 20))
        assert np.all(np.diff(series) > 0)

    def test_full_desiccation_with_integer_slope(self):
        assert residual_liquid(-38.0, 26.8, 2.0, 1.0) == pytest.approx(26.8)
        assert residual_liquid(-38.0, 26.8, 0.0, 1.0) == pytest.approx(-38.0)

    def test_full_desiccation_with_fractional_slope_is_rejected(self):
        with pytest.raises(InvalidParameterError):
            residual_liquid(-38.0, 26.8, 2.6, 1.0)

    @pytest.mark.parametrize("x", [-0.1, 1.2])
    def test_fraction_outside_unit_interval_is_rejected(self, x):
        with pytest.raises(InvalidParameterError):
            residual_liquid(-38.0, 26.8, 2.0, x)

    def test_series_matches_pointwise(self):
        xs = [0.1, 0.5, 0.9]
        series = residual_liquid_series(-6.0, 8.0, 2.9, xs)
        assert_array_almost_equal(series, [residual_liquid(-6.0, 8.0, 2.9, x) for x in xs])


class TestApproximateSlope:

    def test_slope(self):
        assert approximate_evaporation_slope(20.0, -40.0, 6.0, -6.0) == pytest.approx(5.0)

    def test_degenerate(self):
        with pytest.raises(DegenerateGeometryError):
            approximate_evaporation_slope(20.0, -40.0, -6.0, -6.0)


class TestGonfiantiniExample:

    def test_measured_atmosphere(self, gonfiantini_climate):
        """Gonfiantini (1986) Figure 3.1 with da = -86‰ / -12‰ supplied directly."""
        solution = solve_evaporation(gonfiantini_climate, GONFIANTINI_N,
                                     atmosphere=GONFIANTINI_ATMOSPHERE)

        assert solution.atmosphere == GONFIANTINI_ATMOSPHERE
        assert solution.parameters[Isotope.H2].limiting_composition == pytest.approx(26.79, rel=1e-2)
        assert solution.parameters[Isotope.O18].limiting_composition == pytest.approx(7.99, rel=1e-2)
        assert solution.approximate_slope() == pytest.approx(4.63, rel=1e-2)

    def test_enrichment_slopes(self, gonfiantini_climate):
        solution = solve_evaporation(gonfiantini_climate, GONFIANTINI_N,
                                     atmosphere=GONFIANTINI_ATMOSPHERE)
        assert solution.parameters[Isotope.H2].enrichment_slope == pytest.approx(2.622, rel=1e-3)
        assert solution.parameters[Isotope.O18].enrichment_slope == pytest.approx(2.881, rel=1e-3)

    def test_derived_atmosphere(self, gonfiantini_climate):
        """Atmosphere in equilibrium with the source gives a shallower slope than the measured one."""
        solution = solve_evaporation(gonfiantini_climate, GONFIANTINI_N, seasonality_factor=1.0)

        assert solution.approximate_slope() == pytest.approx(3.36, rel=3e-2)
        assert solution.parameters[Isotope.O18].limiting_composition == pytest.approx(4.30, rel=1e-2)

    def test_vapor_from_source(self, gonfiantini_climate):
        solution = solve_evaporation(gonfiantini_climate, GONFIANTINI_N,
                                     atmosphere=GONFIANTINI_ATMOSPHERE)
        vapor = solution.vapor(solution.residual(0.0))

        assert vapor.d2H == pytest.approx(-207.90, rel=1e-3)
        assert vapor.d18O < -6.0

    def test_residual_state(self, gonfiantini_climate):
        solution = solve_evaporation(gonfiantini_climate, GONFIANTINI_N)
        state = solution.residual(0.5)

        assert isinstance(state, ResidualLiquidState)
        assert state.d18O > gonfiantini_climate.d18O_source
        assert state.d2H > gonfiantini_climate.d2H_source


class TestEvaporatingVolumeModel:

    def test_default_run(self, offline_config):
        results = EvaporatingVolumeModel(offline_config).run_simulation()

        assert_array_almost_equal(results['evaporated_fraction'], np.linspace(0.1, 0.9, 9))
        assert_array_almost_equal(results['remaining_fraction'], 1 - np.linspace(0.1, 0.9, 9))
        for key in ['d2H_residual', 'd18O_residual', 'd2H_vapor', 'd18O_vapor']:
            assert results[key].shape == (9,)
        assert np.all(np.diff(results['d18O_residual']) > 0)
        assert results['approximate_evaporation_slope'] == pytest.approx(3.36, rel=3e-2)
        assert 0 < results['evaporation_line_slope'] < 8

    def test_measured_atmosphere_from_config(self, offline_config):
        offline_config.evaporating_volume.d2H_atmosphere = -86.0
        offline_config.evaporating_volume.d18O_atmosphere = -12.0
        results = EvaporatingVolumeModel(offline_config).run_simulation()

        assert results['d2H_atmosphere'] == -86.0
        assert results['approximate_evaporation_slope'] == pytest.approx(4.63, rel=1e-2)

    def test_single_fraction_skips_fitted_line(self, offline_config):
        offline_config.evaporating_volume.fraction_min = 0.5
        offline_config.evaporating_volume.fraction_max = 0.5
        offline_config.evaporating_volume.fraction_steps = 1
        results = EvaporatingVolumeModel(offline_config).run_simulation()

        assert results['d18O_residual'].shape == (1,)
        assert 'evaporation_line_slope' not in results

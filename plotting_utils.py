"""
Plotting Utilities for the Evaporation Line Model
=================================================

Enrichment curves and dual-isotope plots drawn from model result
dictionaries. Plots are drawn on a plain matplotlib Figure so they work
headless and can be embedded or saved.
"""

import numpy as np
from matplotlib.figure import Figure
from typing import Dict, Any, List, Tuple
from pathlib import Path
from functools import wraps

from evaporation_regression import GLOBAL_METEORIC_WATER_LINE, evaluate_line


class PlotStyle:
    """Plotting style constants."""

    BLACK = '#000000'
    LIGHT_GRAY = '#999999'
    PALE_GRAY = '#e5e5e5'
    ERROR_COLOR = '#000000'

    SOURCE_COLOR = 'y'
    RESIDUAL_COLOR = (.2, .8, .5)
    LIMITING_COLOR = (.3, .5, .3)
    ATMOSPHERE_COLOR = (1, .7, 0)
    VAPOR_COLOR = (0, .6, 1)
    TRENDLINE_COLOR = (.5, 1, .5)
    INTERCEPT_COLOR = (1, .1, .1)

    LINE_WIDTH = 1.5
    MARKER_SIZE = 6

    TITLE_SIZE = 12
    LABEL_SIZE = 11
    LEGEND_SIZE = 9

    DPI = 100
    FIGURE_SIZE = (7, 7)

    D18O_LABEL = 'δ¹⁸O (‰)'
    D2H_LABEL = 'δ²H (‰)'


# ================================
# Utility Functions
# ================================

def plot_error_handler(func):
    """Decorator for consistent error handling in plot methods."""
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            self.figure.clear()
            return func(self, *args, **kwargs)
        except (KeyError, ValueError, TypeError, IndexError) as e:
            self._show_error_plot(f"Error in {func.__name__}: {str(e)}")
            return False
    return wrapper

def validate_plot_data(results: Dict[str, Any], required_keys: List[str]) -> Tuple[bool, str]:
    """Validate that required data is present and non-empty."""
    missing = [key for key in required_keys if key not in results]
    if missing:
        return False, f"Missing required data: {', '.join(missing)}"

    for key in required_keys:
        data = results[key]
        if isinstance(data, (list, np.ndarray)) and len(data) == 0:
            return False, f"No data available for {key}"

    return True, ""

def style_dual_isotope_axes(ax, title: str):
    """Apply consistent styling to a δ¹⁸O-δ²H plot."""
    ax.set_xlabel(PlotStyle.D18O_LABEL, fontsize=PlotStyle.LABEL_SIZE)
    ax.set_ylabel(PlotStyle.D2H_LABEL, fontsize=PlotStyle.LABEL_SIZE)
    ax.set_title(title, fontsize=PlotStyle.TITLE_SIZE, fontweight='bold')
    ax.tick_params(direction='out')
    ax.set_box_aspect(1)


class EvaporationLinePlotter:
    """
    Plots for single-volume and seasonal evaporation runs.

    Every create_* method takes a model_data dictionary with a 'results'
    entry (as returned by OutputDataManager.load_complete_run, or built
    directly around a run_simulation result) and returns True on success.
    """

    def __init__(self, figure: Figure = None):
        """
        Initialize plotter with optional figure.

        Args:
            figure: Matplotlib Figure object. If None, creates new figure.
        """
        if figure is None:
            self.figure = Figure(figsize=PlotStyle.FIGURE_SIZE, dpi=PlotStyle.DPI)
        else:
            self.figure = figure

        self.current_plot_type = None
        self.current_data = None

    def _check(self, results: Dict[str, Any], required_keys: List[str]) -> bool:
        is_valid, error_msg = validate_plot_data(results, required_keys)
        if not is_valid:
            self._show_error_plot(error_msg)
        return is_valid

    @plot_error_handler
    def create_enrichment_plot(self, model_data: Dict[str, Any]) -> bool:
        """
        Residual liquid δ¹⁸O (top) and δ²H (bottom) against remaining water fraction.

        The x axis runs from 1 (source) to 0 (fully desiccated), where the
        limiting composition is marked.
        """
        results = model_data.get('results', {})
        required_keys = ['remaining_fraction', 'd18O_residual', 'd2H_residual',
                         'd18O_source', 'd2H_source', 'd18O_limiting', 'd2H_limiting']
        if not self._check(results, required_keys):
            return False

        remaining = np.concatenate([[1.0], np.asarray(results['remaining_fraction'])])
        panels = [('18O', PlotStyle.D18O_LABEL), ('2H', PlotStyle.D2H_LABEL)]

        for i, (species, label) in enumerate(panels, start=1):
            ax = self.figure.add_subplot(2, 1, i)
            source = results[f'd{species}_source']
            residual = np.concatenate([[source], np.asarray(results[f'd{species}_residual'])])

            ax.plot(remaining, residual, '-o', color=PlotStyle.RESIDUAL_COLOR,
                    markersize=PlotStyle.MARKER_SIZE - 2, label='residual liquid')
            ax.plot(1, source, 'p', markeredgecolor=PlotStyle.BLACK,
                    markerfacecolor=PlotStyle.SOURCE_COLOR, markersize=PlotStyle.MARKER_SIZE,
                    linestyle='None', label='source')
            ax.plot(0, results[f'd{species}_limiting'], '^', markeredgecolor=PlotStyle.BLACK,
                    markerfacecolor=PlotStyle.LIMITING_COLOR, markersize=PlotStyle.MARKER_SIZE,
                    linestyle='None', label='limit. composition')

            ax.set_xlim(1.05, -0.05)
            ax.set_xlabel('fraction remaining water (-)', fontsize=PlotStyle.LABEL_SIZE)
            ax.set_ylabel(label, fontsize=PlotStyle.LABEL_SIZE)
            ax.tick_params(direction='out')
            if i == 2:
                ax.legend(loc='upper left', fontsize=PlotStyle.LEGEND_SIZE)

        self.figure.tight_layout()
        self.current_plot_type = "enrichment"
        self.current_data = model_data
        return True

    @plot_error_handler
    def create_dual_isotope_plot(self, model_data: Dict[str, Any]) -> bool:
        """Single-volume dual-isotope plot with the global meteoric water line."""
        results = model_data.get('results', {})
        required_keys = ['d18O_residual', 'd2H_residual', 'd18O_vapor', 'd2H_vapor',
                         'd18O_source', 'd2H_source', 'd18O_atmosphere', 'd2H_atmosphere',
                         'd18O_limiting', 'd2H_limiting']
        if not self._check(results, required_keys):
            return False

        ax = self.figure.add_subplot(111)
        x_interval = np.array([-90.0, 25.0])

        ax.plot(x_interval, GLOBAL_METEORIC_WATER_LINE.evaluate(x_interval),
                color=PlotStyle.BLACK, linewidth=1, label='GMWL')
        if 'evaporation_line_slope' in results:
            line = (results['evaporation_line_slope'], results['evaporation_line_intercept'])
            ax.plot(x_interval, evaluate_line(line, x_interval), '-',
                    color=PlotStyle.LIGHT_GRAY, label='evaporation line')

        markers = [
            ('source', 'p', PlotStyle.SOURCE_COLOR, PlotStyle.MARKER_SIZE + 2),
            ('atmosphere', 'd', PlotStyle.ATMOSPHERE_COLOR, PlotStyle.MARKER_SIZE - 1),
            ('residual', 'o', PlotStyle.RESIDUAL_COLOR, PlotStyle.MARKER_SIZE),
            ('limiting', '^', PlotStyle.LIMITING_COLOR, PlotStyle.MARKER_SIZE),
        ]
        labels = {'residual': 'residual liquid', 'limiting': 'limit. composition'}
        for key, marker, color, size in markers:
            ax.plot(results[f'd18O_{key}'], results[f'd2H_{key}'], marker, linestyle='None',
                    markeredgecolor=PlotStyle.BLACK, markerfacecolor=color, markersize=size,
                    label=labels.get(key, key))
        ax.plot(results['d18O_vapor'], results['d2H_vapor'], 'x', linestyle='None',
                color=PlotStyle.VAPOR_COLOR, markersize=PlotStyle.MARKER_SIZE, label='vapor')

        ax.set_xlim(-35, 20)
        ax.set_ylim(-180, 100)
        style_dual_isotope_axes(ax, 'dual-isotope plot')
        ax.legend(loc='lower right', fontsize=PlotStyle.LEGEND_SIZE)

        self.current_plot_type = "dual_isotope"
        self.current_data = model_data
        return True

    @plot_error_handler
    def create_seasonal_dual_isotope_plot(self, model_data: Dict[str, Any]) -> bool:
        """Monthly residual liquids with LMWL, trendline, LMWL intercept and actual evaporation lines."""
        results = model_data.get('results', {})
        required_keys = ['d18O_precipitation', 'd2H_precipitation', 'd18O_residual', 'd2H_residual',
                         'trendline_slope', 'trendline_intercept', 'lmwl_slope', 'lmwl_intercept',
                         'd18O_lmwl_intercept', 'd2H_lmwl_intercept']
        if not self._check(results, required_keys):
            return False

        ax = self.figure.add_subplot(111)
        x_interval = np.array([-90.0, 10.0])
        lmwl = (results['lmwl_slope'], results['lmwl_intercept'])
        trendline = (results['trendline_slope'], results['trendline_intercept'])

        ax.plot(x_interval, evaluate_line(lmwl, x_interval), color=PlotStyle.BLACK,
                linewidth=1, label='LMWL')
        ax.plot(x_interval, evaluate_line(trendline, x_interval), '--', linewidth=PlotStyle.LINE_WIDTH,
                color=PlotStyle.TRENDLINE_COLOR, label='trendline')

        d18O_source = np.asarray(results['d18O_precipitation'])
        d2H_source = np.asarray(results['d2H_precipitation'])
        d18O_residual = np.asarray(results['d18O_residual'])
        d2H_residual = np.asarray(results['d2H_residual'])
        slopes = np.asarray(results.get('monthly_evaporation_slope', []))

        label = 'actual evaporation lines'
        for i, slope in enumerate(slopes):
            if np.isnan(slope):
                continue
            x_evap = np.array([d18O_source[i] - 2, d18O_residual[i] + 2])
            y_evap = d2H_source[i] + slope * (x_evap - d18O_source[i])
            ax.plot(x_evap, y_evap, color=PlotStyle.PALE_GRAY, label=label)
            label = None

        ax.plot(d18O_source, d2H_source, 'p', linestyle='None', markeredgecolor=PlotStyle.BLACK,
                markerfacecolor=PlotStyle.SOURCE_COLOR, markersize=PlotStyle.MARKER_SIZE + 2,
                label='source')
        ax.plot(d18O_residual, d2H_residual, 'o', linestyle='None', markeredgecolor=PlotStyle.BLACK,
                markerfacecolor=PlotStyle.RESIDUAL_COLOR, markersize=PlotStyle.MARKER_SIZE,
                label='residual liquid')
        ax.plot(results['d18O_lmwl_intercept'], results['d2H_lmwl_intercept'], 's', linestyle='None',
                markeredgecolor=PlotStyle.BLACK, markerfacecolor=PlotStyle.INTERCEPT_COLOR,
                markersize=PlotStyle.MARKER_SIZE, label='intercept')

        ax.set_xlim(-20, 2)
        ax.set_ylim(-130, -10)
        style_dual_isotope_axes(ax, 'dual-isotope plot')
        ax.legend(loc='upper left', fontsize=PlotStyle.LEGEND_SIZE, frameon=False)

        self.current_plot_type = "seasonal_dual_isotope"
        self.current_data = model_data
        return True

    @plot_error_handler
    def create_seasonal_forcing_plot(self, model_data: Dict[str, Any]) -> bool:
        """Monthly temperature, precipitation δ¹⁸O, relative humidity and evaporation ratio."""
        results = model_data.get('results', {})
        required_keys = ['month', 'temperature', 'd18O_precipitation', 'relative_humidity',
                         'evaporation_ratio']
        if not self._check(results, required_keys):
            return False

        panels = [
            ('temperature', 'Temperature', '(°C)'),
            ('d18O_precipitation', 'δ¹⁸O in precipitation', '(‰)'),
            ('relative_humidity', 'relative humidity', '(-)'),
            ('evaporation_ratio', 'x = ratio Evap/Precip', '(-)'),
        ]
        months = np.asarray(results['month'])
        for i, (key, title, unit) in enumerate(panels, start=1):
            ax = self.figure.add_subplot(len(panels), 1, i)
            ax.plot(months, results[key], '-o', color=PlotStyle.BLACK, markersize=4)
            ax.set_title(title, fontsize=PlotStyle.LABEL_SIZE, fontweight='bold')
            ax.set_ylabel(unit)
            ax.tick_params(direction='out')
        ax.set_xlabel('month')

        self.figure.tight_layout()
        self.current_plot_type = "seasonal_forcing"
        self.current_data = model_data
        return True

    def _show_error_plot(self, error_message: str):
        """Show error message on the figure."""
        self.figure.clear()
        ax = self.figure.add_subplot(111)
        ax.text(0.5, 0.5, f"Error: {error_message}",
               ha='center', va='center', fontsize=PlotStyle.LABEL_SIZE,
               color=PlotStyle.ERROR_COLOR, wrap=True,
               bbox=dict(boxstyle='round', facecolor='white',
                        edgecolor='black', alpha=0.8))
        ax.set_xlim(0, 1)
        ax.set_ylim(0, 1)
        ax.axis('off')

    def save_current_plot(self, filepath: Path, dpi: int = 300, format: str = 'png') -> bool:
        """
        Save current plot to file.

        Returns:
            True if saved successfully, False otherwise
        """
        try:
            self.figure.savefig(filepath, dpi=dpi, format=format,
                              bbox_inches='tight', facecolor='white')
            return True
        except (OSError, ValueError) as e:
            print(f"Error saving plot: {e}")
            return False

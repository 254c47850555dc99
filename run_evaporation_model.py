#!/usr/bin/env python3
"""
Evaporation Line Model Runner
=============================

Runs the evaporating-volume and/or seasonal evaporation model from a
configuration file, prints the headline slopes, and optionally saves results
and plots.

    python run_evaporation_model.py
    python run_evaporation_model.py --config my_site.yaml --mode seasonal
    python run_evaporation_model.py --set evaporating_volume.d2H_atmosphere=-86 \\
                                    --set evaporating_volume.d18O_atmosphere=-12
"""

import argparse
import sys
import time
from pathlib import Path

from config_manager import ConfigurationManager
from evaporation_model import EvaporatingVolumeModel
from model_errors import EvaporationModelError
from output_data_manager import OutputDataManager
from plotting_utils import EvaporationLinePlotter
from seasonal_driver import SeasonalEvaporationModel


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Isotopic evaporation lines of evaporating water volumes (Craig-Gordon model)")
    parser.add_argument('--config', type=Path, default=None,
                        help="YAML or JSON configuration file (defaults if omitted)")
    parser.add_argument('--mode', choices=['single', 'seasonal', 'both'], default=None,
                        help="Which model to run (overrides the configuration)")
    parser.add_argument('--set', dest='overrides', action='append', default=[],
                        metavar='PATH=VALUE',
                        help="Override a configuration parameter, e.g. fractionation.aerodynamic_n=0.5")
    parser.add_argument('--output-dir', type=Path, default=None,
                        help="Directory for saved runs and plots")
    parser.add_argument('--no-save', action='store_true',
                        help="Do not save results to disk")
    parser.add_argument('--plots', action='store_true',
                        help="Save plots of each run")
    return parser.parse_args(argv)


def build_configuration(args) -> ConfigurationManager:
    """Load the configuration and apply command-line overrides."""
    manager = ConfigurationManager(args.config)

    for override in args.overrides:
        if '=' not in override:
            raise ValueError(f"Override must look like PATH=VALUE, got '{override}'")
        path, value = override.split('=', 1)
        if not manager.update_config_parameter(path.strip(), value.strip()):
            raise ValueError(f"Could not apply override '{override}'")

    if args.mode is not None:
        manager.update_config_parameter('output.run_single_volume', args.mode in ('single', 'both'))
        manager.update_config_parameter('output.run_seasonal', args.mode in ('seasonal', 'both'))
    if args.output_dir is not None:
        manager.update_config_parameter('output.output_directory', str(args.output_dir))
    if args.no_save:
        manager.update_config_parameter('output.save_results', False)
        manager.update_config_parameter('output.save_csv', False)
    if args.plots:
        manager.update_config_parameter('output.save_plots', True)

    errors = manager.validate_config()
    if errors:
        raise ValueError("; ".join(errors))
    return manager


def save_run(config, results, run_type, execution_time, plot_methods):
    """Persist one run and its plots according to the output settings."""
    output = config.output
    if not (output.save_results or output.save_csv or output.save_plots):
        return

    data_manager = OutputDataManager(Path(output.output_directory), output.filename_prefix)
    if output.save_results:
        data_manager.save_complete_run(config, results, run_type=run_type,
                                       execution_time=execution_time)
    if output.save_csv:
        data_manager.export_csv(results, run_type)

    if output.save_plots:
        plotter = EvaporationLinePlotter()
        for name in plot_methods:
            if getattr(plotter, f"create_{name}_plot")({'results': results}):
                plot_path = data_manager.output_directory / (
                    f"{output.filename_prefix}_{name}.{output.plot_format}")
                if plotter.save_current_plot(plot_path, dpi=output.plot_dpi, format=output.plot_format):
                    print(f"✓ Plot saved: {plot_path.name}")


def run_single_volume(config):
    start_time = time.time()
    model = EvaporatingVolumeModel(config)
    results = model.run_simulation()
    elapsed = time.time() - start_time

    print("Evaporating water volume")
    print(f"  enrichment slope m: 2H = {results['enrichment_slope_2H']:.3f}, "
          f"18O = {results['enrichment_slope_18O']:.3f}")
    print(f"  limiting composition: 2H = {results['d2H_limiting']:.2f}, "
          f"18O = {results['d18O_limiting']:.2f}")
    print(f"  approx. evaporation slope = {results['approximate_evaporation_slope']:.2f}")
    if 'evaporation_line_slope' in results:
        print(f"  empiric slope = {results['evaporation_line_slope']:.2f}")

    save_run(config, results, "single_volume", elapsed, ["enrichment", "dual_isotope"])
    return results


def run_seasonal(config):
    start_time = time.time()
    model = SeasonalEvaporationModel(config)
    results = model.run_simulation()
    elapsed = time.time() - start_time

    print("Seasonal evaporation")
    print(f"  trendline slope = {results['trendline_slope']:.2f}")
    print(f"  LMWL intercept: 18O = {results['d18O_lmwl_intercept']:.2f}, "
          f"2H = {results['d2H_lmwl_intercept']:.2f}")
    print(f"  mean evaporation slope = {results['mean_evaporation_slope']:.2f}")

    save_run(config, results, "seasonal", elapsed, ["seasonal_forcing", "seasonal_dual_isotope"])
    return results


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        manager = build_configuration(args)
    except (RuntimeError, ValueError) as e:
        print(f"❌ Configuration error: {e}")
        return 2

    config = manager.current_config
    try:
        if config.output.run_single_volume:
            run_single_volume(config)
        if config.output.run_seasonal:
            run_seasonal(config)
    except EvaporationModelError as e:
        print(f"❌ Model error ({type(e).__name__}): {e}")
        return 1
    except (OSError, ValueError) as e:
        print(f"❌ Input data error: {e}")
        return 1

    print("✓ Done")
    return 0


if __name__ == "__main__":
    sys.exit(main())

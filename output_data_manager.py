"""
Output Data Management System
============================

Handles persistent storage and retrieval of model runs with configuration
and results. Each run is stored as a pair of files sharing one base name:
a JSON file with metadata, configuration and scalar results, and a
compressed NumPy archive with the array results.
"""

import json
import numpy as np
import pandas as pd
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, asdict

from config_manager import ModelConfiguration


@dataclass
class RunMetadata:
    """Metadata for a model run."""
    timestamp: str
    run_type: str  # "single_volume" or "seasonal"
    description: str
    version: str = "1.0"
    execution_time_seconds: Optional[float] = None
    success: bool = True
    error_message: Optional[str] = None


class OutputDataManager:
    """
    Manages persistent storage of model runs with configuration and results.

    Provides methods to save complete model runs and retrieve them for plotting.
    """

    def __init__(self, output_directory: Path = None, filename_prefix: str = "evaporation_line"):
        """
        Initialize output data manager.

        Args:
            output_directory: Directory to store output files (default: ./output_results)
            filename_prefix: Prefix for saved run files
        """
        if output_directory is None:
            output_directory = Path.cwd() / "output_results"

        self.output_directory = Path(output_directory)
        self.output_directory.mkdir(parents=True, exist_ok=True)

        self.filename_prefix = filename_prefix
        self.complete_pattern = f"{filename_prefix}_*.npz"

    def _make_json_serializable(self, obj: Any) -> Any:
        """Convert numpy arrays and scalars to JSON-serializable format."""
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, dict):
            return {key: self._make_json_serializable(value) for key, value in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return [self._make_json_serializable(item) for item in obj]
        else:
            return obj

    def _generate_timestamp(self) -> str:
        """Generate timestamp for file naming (microseconds keep quick runs apart)."""
        return datetime.now().strftime("%Y%m%d_%H%M%S_%f")

    def _generate_description(self, run_type: str, config: ModelConfiguration) -> str:
        """Generate a user-friendly description for the run."""
        frac = config.fractionation
        if run_type == "single_volume":
            volume = config.evaporating_volume
            return (f"Evaporating volume - {volume.temperature:.1f}°C, "
                    f"h={volume.relative_humidity:.2f}, n={frac.aerodynamic_n:.2f}")
        seasonal = config.seasonal
        return (f"Seasonal - xmean={seasonal.mean_evaporation_ratio:.2f}, "
                f"amplitude={seasonal.seasonal_amplitude:.2f}, n={frac.aerodynamic_n:.2f}")

    def save_complete_run(self,
                         config: ModelConfiguration,
                         model_results: Dict[str, Any],
                         run_type: str = "single_volume",
                         description: str = None,
                         execution_time: float = None,
                         success: bool = True,
                         error_message: str = None) -> Path:
        """
        Save complete model run with configuration and results.

        Args:
            config: Model configuration used for the run
            model_results: Model output dictionary
            run_type: "single_volume" or "seasonal"
            description: Optional custom description
            execution_time: Runtime in seconds
            success: Whether the run was successful
            error_message: Error message if run failed

        Returns:
            Path to saved data file (.npz)
        """
        timestamp = self._generate_timestamp()

        if description is None:
            description = self._generate_description(run_type, config)

        metadata = RunMetadata(
            timestamp=timestamp,
            run_type=run_type,
            description=description,
            execution_time_seconds=execution_time,
            success=success,
            error_message=error_message
        )

        metadata_config = {
            "metadata": asdict(metadata),
            "configuration": self._make_json_serializable(config.to_dict()),
            "format_version": "1.0"
        }

        numpy_data = {}
        json_data = {}
        for key, value in (model_results or {}).items():
            if isinstance(value, np.ndarray):
                numpy_data[key] = value
            else:
                json_data[key] = self._make_json_serializable(value)

        if json_data:
            metadata_config["scalar_results"] = json_data

        base_filename = f"{self.filename_prefix}_{run_type}_{timestamp}"
        metadata_file = self.output_directory / f"{base_filename}.json"
        data_file = self.output_directory / f"{base_filename}.npz"

        try:
            with open(metadata_file, 'w') as f:
                json.dump(metadata_config, f, indent=2)
            np.savez_compressed(data_file, **numpy_data)
        except OSError as e:
            print(f"❌ Error saving complete run: {e}")
            raise

        print(f"✓ Complete model run saved: {base_filename}")
        return data_file

    def load_complete_run(self, filepath: Path) -> Dict[str, Any]:
        """
        Load complete model run.

        Args:
            filepath: Path to saved run data file (.npz)

        Returns:
            Dictionary with metadata, configuration, and results
        """
        filepath = Path(filepath)
        metadata_filepath = filepath.with_suffix(".json")

        try:
            with open(metadata_filepath, 'r') as f:
                metadata_config = json.load(f)
            with np.load(filepath) as compressed_data:
                results = {key: compressed_data[key] for key in compressed_data.files}
        except OSError as e:
            print(f"❌ Error loading run from {filepath}: {e}")
            raise

        results.update(metadata_config.pop("scalar_results", {}))

        return {
            "metadata": metadata_config["metadata"],
            "configuration": metadata_config["configuration"],
            "results": results,
            "format_version": metadata_config.get("format_version", "1.0")
        }

    def get_available_runs(self) -> List[Dict[str, Any]]:
        """
        List saved runs, most recent first.

        Only file names are read; metadata is loaded on demand with
        ``load_complete_run``.
        """
        runs = []
        prefix = f"{self.filename_prefix}_"
        for filepath in sorted(self.output_directory.glob(self.complete_pattern), reverse=True):
            stem = filepath.stem[len(prefix):]
            for run_type in ("single_volume", "seasonal"):
                if stem.startswith(f"{run_type}_"):
                    runs.append({
                        "filepath": filepath,
                        "filename": filepath.name,
                        "run_type": run_type,
                        "timestamp": stem[len(run_type) + 1:],
                    })
                    break
        return runs

    def export_csv(self, model_results: Dict[str, Any], run_type: str) -> Optional[Path]:
        """
        Write the 1-D array results of a run as a CSV table.

        Returns:
            Path to the CSV file, or None if the run has no tabular results
        """
        columns = {key: value for key, value in model_results.items()
                   if isinstance(value, np.ndarray) and value.ndim == 1}
        if not columns:
            return None

        lengths = {len(value) for value in columns.values()}
        if len(lengths) > 1:
            # keep the columns of the most common length (e.g. the twelve months)
            common = max(lengths, key=lambda n: sum(len(v) == n for v in columns.values()))
            columns = {key: value for key, value in columns.items() if len(value) == common}

        csv_path = self.output_directory / f"{self.filename_prefix}_{run_type}_{self._generate_timestamp()}.csv"
        pd.DataFrame(columns).to_csv(csv_path, index=False)
        print(f"✓ Results table saved: {csv_path.name}")
        return csv_path
